from typing import Dict, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# =========================
# CATALOG
# =========================
class MetricDef(BaseModel):
    query: str = Field(validation_alias=AliasChoices("query", "Query"))
    description: str = Field(
        default="", validation_alias=AliasChoices("description", "Description")
    )

    model_config = ConfigDict(frozen=True)


class DatabaseDef(BaseModel):
    driver: str = Field(validation_alias=AliasChoices("driver", "Driver"))
    connection_string: str = Field(
        validation_alias=AliasChoices("connection_string", "dns", "Dns", "DSN")
    )
    # Names may point at metrics the catalog does not define
    metrics: Tuple[str, ...] = Field(
        default=(), validation_alias=AliasChoices("metrics", "Metrics")
    )

    model_config = ConfigDict(frozen=True)


class Catalog(BaseModel):
    databases: Dict[str, DatabaseDef] = Field(
        default_factory=dict, validation_alias=AliasChoices("databases", "Databases")
    )
    metrics: Dict[str, MetricDef] = Field(
        default_factory=dict, validation_alias=AliasChoices("metrics", "Metrics")
    )

    model_config = ConfigDict(frozen=True)


# =========================
# CONFIG FILE
# =========================
class ServiceConfig(Catalog):
    """
    Shape of config.json: the catalog plus the port to listen on.
    """

    port: Optional[int] = Field(default=None, validation_alias=AliasChoices("port", "Port"))

    @property
    def catalog(self) -> Catalog:
        return Catalog(databases=self.databases, metrics=self.metrics)
