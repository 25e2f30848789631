import logging
from typing import Dict, Tuple

from httpsql.core import catalog as catalog_ops
from httpsql.core import executor
from httpsql.core.database import ConnectionManager
from httpsql.core.drivers import get_driver
from httpsql.core.exceptions import BadRequest, ConnectionRefused, SQLError
from httpsql.core.query_builder import build_query
from httpsql.core.schemas import Catalog


def parse_path(path: str) -> Tuple[str, str]:
    """
    Split "/{alias}/{metric}" into its two parts; anything deeper is ignored.

    Example:
        parse_path("/sales/count/extra") -> ("sales", "count")
        parse_path("/") -> ("", "")
    """
    segments = path.split("/")
    if len(segments) < 2:
        raise BadRequest(f"Unparseable path {path!r}")

    alias = segments[1]
    metric = segments[2] if len(segments) > 2 else ""
    return alias, metric


async def run_metric(
    catalog: Catalog,
    connections: ConnectionManager,
    alias: str,
    metric_name: str,
    params: Dict[str, str],
) -> executor.ResultSet:
    """
    Resolve, build and execute one metric.
    Catalog lookups raise NotFound; connection and SQL failures are logged
    with enough context to reproduce them, then re-raised.
    """
    database = catalog_ops.get_database(catalog, alias)
    metric = catalog_ops.get_metric(catalog, alias, metric_name)

    try:
        driver = get_driver(database.driver)
    except ConnectionRefused as error:
        logging.error(f"{alias}/{metric_name}: {error}")
        raise

    query, bound = build_query(metric.query, params, driver.placeholder)

    try:
        handle = await connections.acquire(alias, database.driver, database.connection_string)
    except ConnectionRefused as error:
        logging.error(
            f"{alias}/{metric_name}: connection refused\nQuery: {query}\nParams: {bound}\n{error}"
        )
        raise

    try:
        return await executor.run(handle, query, bound)
    except SQLError as error:
        logging.error(
            f"{alias}/{metric_name}\nQuery: {error.query}\nParams: {error.params}\n{error}"
        )
        raise
