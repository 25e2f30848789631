from typing import Any, List, Optional

from fastapi import status


class HttpSQLError(Exception):
    """Base error; `code` is what the caller sees in the response body."""

    code = "INTERNAL_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.code)


class ConfigError(HttpSQLError):
    code = "CONFIG_ERROR"


class BadRequest(HttpSQLError):
    code = "BAD_REQUEST"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(HttpSQLError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class ConnectionRefused(HttpSQLError):
    code = "ECONNREFUSED"


class SQLError(HttpSQLError):
    code = "SQL_ERROR"

    def __init__(self, message: str, query: str, params: List[Any]):
        super().__init__(message)
        self.query = query
        self.params = params


class SerializationError(HttpSQLError):
    code = "SERIALIZATION_ERROR"
