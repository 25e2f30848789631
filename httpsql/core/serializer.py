import json
from typing import Any, Mapping, Optional

from fastapi.encoders import jsonable_encoder

from httpsql.core.exceptions import SerializationError
from httpsql.core.executor import ResultSet

JSON_MEDIA_TYPE = "application/json"
TEXT_MEDIA_TYPE = "text/plain; charset=utf-8"


def wants_text(flags: Mapping[str, Any], accept: Optional[str]) -> bool:
    """
    ?text beats ?json; without either flag the Accept header decides.
    """
    if "text" in flags:
        return True
    if "json" in flags:
        return False
    return (accept or "").startswith("text")


def format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_text(result: ResultSet) -> bytes:
    lines = [
        ";".join(format_value(row.get(column)) for column in result.columns)
        for row in result.rows
    ]
    return "\n".join(lines).encode("utf-8")


def render_json(result: ResultSet) -> bytes:
    try:
        content = jsonable_encoder(result.rows)
        body = json.dumps(
            content, ensure_ascii=False, allow_nan=False, separators=(",", ":")
        )
    except (TypeError, ValueError) as error:
        raise SerializationError(str(error)) from error
    return body.encode("utf-8")


def render(result: ResultSet, text: bool) -> bytes:
    if text:
        return render_text(result)
    return render_json(result)
