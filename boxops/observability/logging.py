"""
Structured logging for the dashboard service and CLI.

JSON lines when stderr is not a terminal (service deployments), a short
human format otherwise. Both include the current request ID.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from .context import REQUEST_ID_HEADER, RequestContext, generate_request_id, get_request_id

# LogRecord attributes that are not user-supplied extra= fields
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line:

        {"timestamp": "2025-03-03T08:15:00.123Z", "level": "INFO",
         "logger": "boxops.snapshot", "message": "...", "request_id": "dash-..."}

    Fields passed via ``extra=`` are added at the top level.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3]
            + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = get_request_id()
        if request_id:
            entry["request_id"] = request_id
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                entry[key] = value
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        request_id = get_request_id()
        rid = f"[{request_id[:13]}] " if request_id else ""
        line = f"{timestamp} {record.levelname:<7} {record.name}: {rid}{record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(level: str = "INFO", json_format: bool | None = None) -> None:
    """
    Install one stderr handler on the root logger.

    Args:
        level: Log level name; unknown names fall back to INFO
        json_format: Force JSON on/off. None picks JSON when stderr is not a TTY.
    """
    if json_format is None:
        json_format = not sys.stderr.isatty()

    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_format else HumanFormatter())
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class CorrelationIdMiddleware:
    """
    ASGI middleware binding a request ID to every HTTP request.

    Honours an incoming X-Request-ID header and echoes the ID back on the
    response.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = None
        wanted = REQUEST_ID_HEADER.lower().encode("latin-1")
        for key, value in scope.get("headers", []):
            if key.lower() == wanted:
                request_id = value.decode("latin-1").strip() or None
                break
        request_id = request_id or generate_request_id()

        async def send_with_id(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((wanted, request_id.encode("latin-1")))
                message = {**message, "headers": headers}
            await send(message)

        with RequestContext(request_id=request_id):
            await self.app(scope, receive, send_with_id)
