"""HTTP error types and the default error handling logic."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Callable, Iterator, Optional

logger = logging.getLogger("fuego")


def status_text(code: int) -> str:
    """Return the standard reason phrase for a status code, or '' if unknown."""
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return ""


@dataclass
class ErrorItem:
    """One item of the detailed error list of an HTTP error."""

    name: str
    reason: str
    more: dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class HTTPError(Exception):
    """Error response used by the serialization part of the framework."""

    err: Optional[BaseException] = None
    type: str = ""
    title: str = ""
    status: int = 0
    detail: str = ""
    instance: str = ""
    errors: list[ErrorItem] = field(default_factory=list)

    @property
    def status_code(self) -> int:
        return self.status or HTTPStatus.INTERNAL_SERVER_ERROR

    def public_error(self) -> str:
        """Human readable message without the underlying error."""
        code = self.status_code
        title = self.title or status_text(code) or "HTTP Error"
        msg = f"{code} {title}"
        if self.detail:
            msg += f" ({self.detail})"
        return msg

    def detail_msg(self) -> str:
        return self.detail

    def __str__(self) -> str:
        msg = self.public_error()
        if self.err is not None:
            msg += f": {self.err}"
        return msg


class BadRequestError(HTTPError):
    """Error answered with a 400 status code."""

    @property
    def status_code(self) -> int:
        return HTTPStatus.BAD_REQUEST


class NotFoundError(HTTPError):
    """Error answered with a 404 status code."""

    @property
    def status_code(self) -> int:
        return HTTPStatus.NOT_FOUND


class UnauthorizedError(HTTPError):
    """Error answered with a 401 status code."""

    @property
    def status_code(self) -> int:
        return HTTPStatus.UNAUTHORIZED


class ForbiddenError(HTTPError):
    """Error answered with a 403 status code."""

    @property
    def status_code(self) -> int:
        return HTTPStatus.FORBIDDEN


class ConflictError(HTTPError):
    """Error answered with a 409 status code."""

    @property
    def status_code(self) -> int:
        return HTTPStatus.CONFLICT


class NotAcceptableError(HTTPError):
    """Error answered with a 406 status code."""

    @property
    def status_code(self) -> int:
        return HTTPStatus.NOT_ACCEPTABLE


class InternalServerError(HTTPError):
    """Error answered with a 500 status code unless a status is given."""


def _unwrap(err: BaseException) -> Optional[BaseException]:
    unwrap = getattr(err, "unwrap", None)
    if callable(unwrap):
        return unwrap()
    if isinstance(err, HTTPError):
        return err.err
    return err.__cause__


def _chain(err: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: Optional[BaseException] = err
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = _unwrap(current)


def _find(err: BaseException, predicate: Callable[[BaseException], bool]) -> Optional[BaseException]:
    return next((e for e in _chain(err) if predicate(e)), None)


def _has_status(e: BaseException) -> bool:
    return hasattr(e, "status_code")


def error_handler(err: BaseException) -> BaseException:
    """Default error handler: coerce status-carrying errors into HTTPError."""
    if _find(err, lambda e: isinstance(e, HTTPError) or _has_status(e)) is not None:
        return handle_http_error(err)
    logger.error("Error in controller: %s", err)
    return err


def handle_http_error(err: BaseException) -> HTTPError:
    """Turn any error into a plain HTTPError."""
    info = _find(err, lambda e: isinstance(e, HTTPError))
    if isinstance(info, HTTPError):
        response = HTTPError(
            err=info.err,
            type=info.type,
            title=info.title,
            status=info.status,
            detail=info.detail,
            instance=info.instance,
            errors=list(info.errors),
        )
    else:
        response = HTTPError(err=err)

    with_status = _find(err, _has_status)
    if with_status is not None:
        response.status = int(getattr(with_status, "status_code"))

    with_detail = _find(err, lambda e: callable(getattr(e, "detail_msg", None)))
    if with_detail is not None:
        response.detail = getattr(with_detail, "detail_msg")()

    if not response.title:
        response.title = status_text(response.status)

    logger.error(
        "Error %s status=%s detail=%s error=%s",
        response.title,
        response.status_code,
        response.detail_msg(),
        response.err,
    )
    return response