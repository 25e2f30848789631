from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from httpsql.core import catalog as catalog_ops
from httpsql.core import metrics, serializer
from httpsql.core.catalog import get_catalog
from httpsql.core.database import ConnectionManager, get_connection_manager
from httpsql.core.exceptions import HttpSQLError
from httpsql.core.query_builder import first_values
from httpsql.core.schemas import Catalog

router = APIRouter(tags=["Metrics"])

catalog_dep = Annotated[Catalog, Depends(get_catalog)]
connections_dep = Annotated[ConnectionManager, Depends(get_connection_manager)]


# One route for every path, "/" included: /{alias}/{metric}/...
@router.get("/{path:path}")
async def handle_request(
    path: str,
    request: Request,
    catalog: catalog_dep,
    connections: connections_dep,
):
    """
    - `/` lists the aliases
    - `/{alias}` lists the alias's metrics with their descriptions
    - `/{alias}/{metric}` runs the metric; the query string feeds the template
    """
    try:
        alias, metric = metrics.parse_path(f"/{path}")

        # Catalog listing
        if not alias:
            return catalog_ops.list_aliases(catalog)

        # Metric listing
        if not metric:
            return catalog_ops.describe_metrics(catalog, alias)

        params = first_values(request.query_params.multi_items())
        result = await metrics.run_metric(catalog, connections, alias, metric, params)

        text = serializer.wants_text(
            request.query_params, request.headers.get("accept")
        )
        body = serializer.render(result, text=text)

    except HttpSQLError as error:
        raise HTTPException(status_code=error.status_code, detail=error.code)

    media_type = serializer.TEXT_MEDIA_TYPE if text else serializer.JSON_MEDIA_TYPE
    return Response(content=body, media_type=media_type)
