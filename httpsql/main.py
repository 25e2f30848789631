import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from httpsql.api.router import api_router
from httpsql.core.catalog import load_catalog
from httpsql.core.config import DEFAULT_PORT, settings
from httpsql.core.database import ConnectionManager


# Load the catalog before serving and close every connection once we are done
@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.LOG_LEVEL)

    config = load_catalog(settings.CONFIG_PATH)
    app.state.catalog = config.catalog
    app.state.connections = ConnectionManager()

    yield
    await app.state.connections.close()


# Every path belongs to the catalog, so no docs routes
app = FastAPI(
    title="HttpSQL",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

# Include the master router containing all our endpoints
app.include_router(api_router)


def resolve_port() -> int:
    """PORT from the environment, then "Port" from config.json, then 9000."""
    if settings.PORT:
        return settings.PORT

    config = load_catalog(settings.CONFIG_PATH)
    return config.port or DEFAULT_PORT


def run():
    logging.basicConfig(level=settings.LOG_LEVEL)
    port = resolve_port()
    logging.info(f"HttpSQL running on {port} port")
    uvicorn.run(app, host=settings.HOST, port=port)


if __name__ == "__main__":
    run()
