from fastapi import APIRouter
from httpsql.api.endpoints import metrics

api_router = APIRouter()

# The metrics router owns every path, keep it last
api_router.include_router(metrics.router)
