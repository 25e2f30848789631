import logging
from pathlib import Path
from typing import Dict, List, Union

from fastapi import Request
from pydantic import ValidationError

from httpsql.core.exceptions import ConfigError, NotFound
from httpsql.core.schemas import Catalog, DatabaseDef, MetricDef, ServiceConfig


def load_catalog(path: Union[str, Path]) -> ServiceConfig:
    """
    Read and validate the JSON config file.

    Args:
        path: Location of config.json.

    Returns:
        ServiceConfig holding the catalog and the optional port.
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as error:
        raise ConfigError(f"Couldn't read {path}: {error}") from error

    try:
        config = ServiceConfig.model_validate_json(raw)
    except ValidationError as error:
        raise ConfigError(f"Couldn't parse {path}: {error}") from error

    logging.info(
        f"Loaded {len(config.databases)} database(s) and {len(config.metrics)} metric(s) from {path}"
    )
    return config


# The catalog is loaded once at startup and stored on the app
def get_catalog(request: Request) -> Catalog:
    return request.app.state.catalog


def list_aliases(catalog: Catalog) -> List[str]:
    return list(catalog.databases)


def get_database(catalog: Catalog, alias: str) -> DatabaseDef:
    database = catalog.databases.get(alias)
    if database is None:
        raise NotFound(f"Unknown alias {alias!r}")
    return database


def describe_metrics(catalog: Catalog, alias: str) -> Dict[str, str]:
    """Metric name -> description for everything the alias may run."""
    database = get_database(catalog, alias)

    descriptions = {}
    for name in database.metrics:
        metric = catalog.metrics.get(name)
        # Dangling names are skipped, not reported
        if metric is not None:
            descriptions[name] = metric.description
    return descriptions


def get_metric(catalog: Catalog, alias: str, name: str) -> MetricDef:
    database = get_database(catalog, alias)

    if name not in database.metrics:
        raise NotFound(f"Metric {name!r} is not allowed for {alias!r}")

    metric = catalog.metrics.get(name)
    if metric is None:
        raise NotFound(f"Unknown metric {name!r}")
    return metric
