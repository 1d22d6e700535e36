"""Default middlewares: request/response logging and trailing-slash stripping."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Union

from .messages import Request

logger = logging.getLogger("fuego")

Handler = Callable[[Request, Any], None]


def default_request_id() -> str:
    """Generate a random UUID used as request ID when the client sent none."""
    return str(uuid.uuid4())


@dataclass
class LoggingConfig:
    """Configuration of the default logging middleware."""

    request_id_func: Callable[[], str] = default_request_id
    disable_request: bool = False
    disable_response: bool = False

    def disabled(self) -> bool:
        return self.disable_request and self.disable_response


class ResponseWriter:
    """Wraps a response to capture the status code actually written."""

    def __init__(self, wrapped: Any) -> None:
        self.wrapped = wrapped
        self.status = 0
        self.wrote_header = False

    @property
    def headers(self) -> Any:
        return self.wrapped.headers

    def write_header(self, code: int) -> None:
        if self.wrote_header:
            return
        self.status = code
        self.wrapped.write_header(code)
        self.wrote_header = True

    def write(self, data: Union[bytes, str]) -> int:
        if not self.wrote_header:
            self.write_header(200)
        return self.wrapped.write(data)

    def flush(self) -> None:
        flusher = getattr(self.wrapped, "flush", None)
        if not callable(flusher):
            logger.warning("Flush not implemented, skipping")
            return
        flusher()


def _log_request(request_id: str, request: Request) -> None:
    logger.debug(
        "incoming request method=%s path=%s request_id=%s remote_addr=%s user_agent=%s",
        request.method,
        request.path,
        request_id,
        request.remote_addr,
        request.user_agent(),
    )


def _log_response(request: Request, writer: ResponseWriter, request_id: str, duration_ms: int) -> None:
    logger.info(
        "outgoing response status_code=%s method=%s path=%s duration_ms=%s request_id=%s remote_addr=%s",
        writer.status,
        request.method,
        request.path,
        duration_ms,
        request_id,
        request.remote_addr,
    )


@dataclass
class DefaultLogger:
    """Logs incoming requests (debug) and outgoing responses (info)."""

    config: LoggingConfig = field(default_factory=LoggingConfig)

    def middleware(self, next_handler: Handler) -> Handler:
        def handler(request: Request, response: Any) -> None:
            start = time.perf_counter()
            request_id = request.headers.get("X-Request-ID")
            if not request_id:
                request_id = self.config.request_id_func()
            response.headers.set("X-Request-ID", request_id)

            wrapped = ResponseWriter(response)
            if not self.config.disable_request:
                _log_request(request_id, request)

            next_handler(request, wrapped)

            if not self.config.disable_response:
                duration_ms = int((time.perf_counter() - start) * 1000)
                _log_response(request, wrapped, request_id, duration_ms)

        return handler


def strip_trailing_slash_middleware(next_handler: Handler) -> Handler:
    """Remove trailing slashes from the request path before handling."""

    def handler(request: Request, response: Any) -> None:
        if len(request.path) > 1:
            request.path = request.path.rstrip("/")
        next_handler(request, response)

    return handler