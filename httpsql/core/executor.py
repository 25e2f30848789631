import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from httpsql.core.database import ConnectionHandle
from httpsql.core.exceptions import SQLError


@dataclass
class ResultSet:
    columns: List[str] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)


def decode_value(value: Any) -> Any:
    # Binary columns come back as text, everything else untouched
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return value


async def run(handle: ConnectionHandle, query: str, params: Sequence[Any]) -> ResultSet:
    """
    Execute a built statement and materialize every row.

    Raises SQLError (with the statement and parameters attached) when the
    driver rejects the query; no partial rows are returned in that case.
    """
    try:
        columns, raw_rows = await handle.connection.query(query, params)
    except Exception as error:
        logging.debug(f"{handle.alias}: query failed: {error}")
        raise SQLError(str(error), query=query, params=list(params)) from error

    rows = []
    for raw_row in raw_rows:
        rows.append(
            {column: decode_value(value) for column, value in zip(columns, raw_row)}
        )

    return ResultSet(columns=list(columns), rows=rows)
