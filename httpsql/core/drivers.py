"""
Database backends, selected by the driver name from the catalog.

Every backend provides the same two capabilities: open a connection from a
connection string, and run a statement with positional parameters on it.
The shipped backends go through SQLAlchemy's asyncio engine; new ones are
added with `register_driver` without touching the rest of the service.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from httpsql.core.exceptions import ConnectionRefused

# (column names, raw rows) exactly as the driver reports them
RawResult = Tuple[List[str], List[Sequence[Any]]]


class Connection(Protocol):
    async def ping(self) -> None: ...

    async def query(self, statement: str, params: Sequence[Any]) -> RawResult: ...

    async def close(self) -> None: ...


class Driver(Protocol):
    name: str

    def placeholder(self, position: int) -> str:
        """Positional marker for the 1-based `position`-th bound value."""

    async def open(self, connection_string: str) -> Connection: ...


# =========================
# SQLAlchemy backends
# =========================
class SQLAlchemyConnection:
    """One engine per alias; `ping` is the liveness probe."""

    def __init__(self, engine: AsyncEngine, ping_statement: str = "SELECT 1"):
        self.engine = engine
        self.ping_statement = ping_statement

    async def ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.exec_driver_sql(self.ping_statement)

    async def query(self, statement: str, params: Sequence[Any]) -> RawResult:
        # Commit on success so write metrics stick
        async with self.engine.begin() as conn:
            # Bypass SQLAlchemy's own parameter syntax, the marker is the driver's
            result = await conn.exec_driver_sql(statement, tuple(params) if params else None)

            # INSERT/UPDATE and friends come back without a cursor
            if not result.returns_rows:
                return [], []

            columns = list(result.keys())
            rows = [tuple(row) for row in result.fetchall()]
        return columns, rows

    async def close(self) -> None:
        await self.engine.dispose()


class SQLAlchemyDriver:
    def __init__(
        self,
        name: str,
        dialect: str,
        paramstyle: str = "qmark",
        odbc: bool = False,
        ping_statement: str = "SELECT 1",
    ):
        self.name = name
        self.dialect = dialect
        self.paramstyle = paramstyle
        self.odbc = odbc
        self.ping_statement = ping_statement

    def placeholder(self, position: int) -> str:
        if self.paramstyle == "numeric_dollar":
            return f"${position}"
        if self.paramstyle == "format":
            return "%s"
        return "?"

    def url(self, connection_string: str) -> URL:
        # Full URLs keep everything but the scheme
        if "://" in connection_string:
            return make_url(connection_string).set(drivername=self.dialect)

        if self.odbc:
            return URL.create(self.dialect, query={"odbc_connect": connection_string})

        # Bare strings are file paths (SQLite)
        return URL.create(self.dialect, database=connection_string)

    async def open(self, connection_string: str) -> SQLAlchemyConnection:
        engine = create_async_engine(self.url(connection_string))
        connection = SQLAlchemyConnection(engine, self.ping_statement)

        # Engines connect lazily, make sure this one can actually reach the server
        try:
            await connection.ping()
        except Exception:
            await connection.close()
            raise

        return connection


_DRIVERS: Dict[str, Driver] = {}


def register_driver(driver: Driver, *aliases: str) -> None:
    for name in (driver.name, *aliases):
        _DRIVERS[name] = driver


def get_driver(name: str) -> Driver:
    driver: Optional[Driver] = _DRIVERS.get(name)
    if driver is None:
        raise ConnectionRefused(f"Unknown driver {name!r}")
    return driver


register_driver(SQLAlchemyDriver("postgres", "postgresql+asyncpg", "numeric_dollar"), "postgresql")
register_driver(SQLAlchemyDriver("mysql", "mysql+aiomysql", "format"))
register_driver(SQLAlchemyDriver("sqlite3", "sqlite+aiosqlite"), "sqlite")
register_driver(SQLAlchemyDriver("mssql", "mssql+aioodbc", odbc=True), "sqlserver")
register_driver(SQLAlchemyDriver("odbc", "mssql+aioodbc", odbc=True))
