from __future__ import annotations

import contextvars
import json
import logging
import os
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

ROOT_LOGGER = "field_timesheets"

# Context fields stamped onto every event: the HTTP request and the pipeline run.
_CONTEXT: dict[str, contextvars.ContextVar[str | None]] = {
    "request_id": contextvars.ContextVar("request_id", default=None),
    "run_id": contextvars.ContextVar("timesheet_run_id", default=None),
}

_configured = False


class JsonFormatter(logging.Formatter):
    """One JSON object per line with the event name and its fields at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "ts": stamp.strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "event": getattr(record, "event", None) or record.getMessage(),
        }
        payload.update(getattr(record, "fields", None) or {})
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=True)


def configure_logging() -> None:
    global _configured  # noqa: PLW0603
    if _configured:
        return
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    root.handlers = [handler]
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)


@contextmanager
def bind_context(**values: str | None) -> Iterator[None]:
    tokens = [(_CONTEXT[k], _CONTEXT[k].set(v)) for k, v in values.items()]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


@contextmanager
def timesheet_run(run_id: str | None = None) -> Iterator[str]:
    """Tag every event logged inside the block with one pipeline run id."""
    run_id = run_id or uuid.uuid4().hex[:12]
    with bind_context(run_id=run_id):
        yield run_id


def _event_fields(fields: dict[str, Any]) -> dict[str, Any]:
    bound = {k: var.get() for k, var in _CONTEXT.items()}
    return {k: v for k, v in {**bound, **fields}.items() if v is not None}


def log_event(
    logger: logging.Logger, event: str, *, level: int = logging.INFO, **fields: Any
) -> None:
    logger.log(level, event, extra={"event": event, "fields": _event_fields(fields)})


def log_exception(logger: logging.Logger, event: str, **fields: Any) -> None:
    logger.exception(event, extra={"event": event, "fields": _event_fields(fields)})


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Echo or mint `x-request-id` and log one `http.request` event per call."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        logger = get_logger(__name__)
        start = time.monotonic()
        with bind_context(request_id=request_id):
            try:
                response = await call_next(request)
            except Exception:
                log_exception(
                    logger,
                    "http.request.error",
                    method=request.method,
                    path=request.url.path,
                    duration_ms=monotonic_ms(start),
                )
                raise
            response.headers["x-request-id"] = request_id
            log_event(
                logger,
                "http.request",
                level=logging.DEBUG,
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=monotonic_ms(start),
            )
            return response


def monotonic_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
