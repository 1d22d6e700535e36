"""Per-request context handed to controllers."""

from __future__ import annotations

import posixpath
import re
import time
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol
from urllib.parse import urlsplit

from .deserialization import (
    ReadOptions,
    convert_sql_null_bool,
    read_json,
    read_string,
    read_url_encoded,
    read_xml,
    read_yaml,
)
from .errors import status_text
from .messages import Cookie, Request, Response

_INT = re.compile(r"[+-]?[0-9]+")
_INT_MIN, _INT_MAX = -(2**63), 2**63 - 1
_YAML_TYPES = ("application/x-yaml", "text/yaml; charset=utf-8", "application/yaml")
_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


@dataclass
class BaseRoute:
    """Route information a context needs: parameter defaults and default status."""

    params: dict[str, Any] = field(default_factory=dict)
    default_status_code: int = 0


@dataclass(eq=False)
class PathParamNotFoundError(LookupError):
    """A requested parameter is missing from the request."""

    param_name: str

    def __str__(self) -> str:
        return f"param {self.param_name} not found"

    @property
    def status_code(self) -> int:
        return 404


@dataclass(eq=False)
class PathParamInvalidTypeError(ValueError):
    """A parameter is present but cannot be read as the expected type."""

    err: Optional[BaseException]
    param_name: str
    param_value: str
    expected_type: str

    def __str__(self) -> str:
        return (
            f"param {self.param_name}={self.param_value} "
            f"is not of type {self.expected_type}: {self.err}"
        )

    @property
    def status_code(self) -> int:
        return 422

    def unwrap(self) -> Optional[BaseException]:
        return self.err


class _QueryParamNotFoundError(PathParamNotFoundError):
    """A query parameter is missing."""


class _QueryParamInvalidTypeError(PathParamInvalidTypeError):
    """A query parameter has the wrong type."""


class _HasPathParam(Protocol):
    def path_param(self, name: str) -> str: ...


def _parse_int(text: str) -> int:
    if not _INT.fullmatch(text):
        raise ValueError(f"invalid syntax: {text!r}")
    value = int(text)
    if not _INT_MIN <= value <= _INT_MAX:
        raise ValueError(f"value out of range: {text!r}")
    return value


def path_param_int_err(ctx: _HasPathParam, name: str) -> int:
    """Read a path parameter as an int, raising when missing or invalid."""
    param = ctx.path_param(name)
    if param == "":
        raise PathParamNotFoundError(param_name=name)
    try:
        return _parse_int(param)
    except ValueError as exc:
        raise PathParamInvalidTypeError(
            err=exc, param_name=name, param_value=param, expected_type="int"
        ) from exc


def _resolve_location(request: Request, url: str) -> str:
    if urlsplit(url).scheme or url.startswith("/"):
        return url
    base = request.path.rsplit("/", 1)[0] + "/"
    trailing = url.endswith("/")
    resolved = posixpath.normpath(base + url)
    if trailing and not resolved.endswith("/"):
        resolved += "/"
    return resolved


def _html_escape(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&#34;")
        .replace("'", "&#39;")
    )


class Context:
    """Request context: body decoding, parameters, headers, cookies and status."""

    def __init__(
        self,
        request: Request,
        response: Optional[Response] = None,
        *,
        body_type: Any = Any,
        route: Optional[BaseRoute] = None,
        options: Optional[ReadOptions] = None,
    ) -> None:
        self.request = request
        self.response = response if response is not None else Response()
        self.body_type = body_type
        self.route = route if route is not None else BaseRoute()
        self.options = options if options is not None else ReadOptions()
        self._query = request.query()
        self._body: Any = None
        self._has_body = False

    @property
    def context(self) -> dict[str, Any]:
        """The request-scoped context values."""
        return self.request.context

    @property
    def default_status_code(self) -> int:
        return self.route.default_status_code

    # Body

    def body(self) -> Any:
        """Decode the body according to Content-Type (JSON by default); cached once read."""
        if self._has_body:
            return self._body
        start = time.perf_counter()
        try:
            value = self._decode_body()
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self.response.headers.add(
                "Server-Timing",
                f'deserialize;desc="controller > deserialize";dur={elapsed_ms:.3f}',
            )
        self._body = value
        self._has_body = True
        return value

    def must_body(self) -> Any:
        """Like body, for callers that let decoding errors propagate."""
        return self.body()

    def _decode_body(self) -> Any:
        content_type = self.request.headers.get("Content-Type")
        stream = self.request.body
        ctx = self.request.context
        if content_type == "text/plain":
            string_type = (
                self.body_type
                if isinstance(self.body_type, type) and issubclass(self.body_type, str)
                else str
            )
            return read_string(stream, string_type, self.options, ctx)
        if content_type in _FORM_TYPES:
            return read_url_encoded(self.request, self.body_type, self.options, ctx)
        if content_type == "application/xml":
            return read_xml(stream, self.body_type, self.options, ctx)
        if content_type in _YAML_TYPES:
            return read_yaml(stream, self.body_type, self.options, ctx)
        if content_type == "application/octet-stream":
            return self._read_bytes()
        return read_json(stream, self.body_type, self.options, ctx)

    def _read_bytes(self) -> Any:
        limit = self.options.max_body_size
        data = self.request.body.read(limit + 1) if limit else self.request.body.read()
        if isinstance(data, str):
            data = data.encode()
        if limit and len(data) > limit:
            raise OSError("request body too large")
        tp = self.body_type
        if tp is Any or tp is object or tp is None:
            return bytes(data)
        if isinstance(tp, type) and issubclass(tp, (bytes, bytearray)):
            return tp(data)
        name = getattr(tp, "__name__", repr(tp))
        raise TypeError(
            f"could not convert bytes to {name}. "
            "To read binary data from the request, use bytes as the body type"
        )

    # Path parameters

    def path_param(self, name: str) -> str:
        return self.request.path_values.get(name, "")

    def path_param_int(self, name: str) -> int:
        """Path parameter as int, or 0 when missing or invalid."""
        try:
            return path_param_int_err(self, name)
        except (PathParamNotFoundError, PathParamInvalidTypeError):
            return 0

    def path_param_int_err(self, name: str) -> int:
        return path_param_int_err(self, name)

    # Query parameters

    def _default(self, name: str) -> Any:
        return self.route.params.get(name)

    def query_param(self, name: str) -> str:
        """First value of a query parameter, or its declared default, or ''."""
        values = self._query.get(name)
        if values:
            return values[0]
        default = self._default(name)
        return default if isinstance(default, str) else ""

    def query_param_arr(self, name: str) -> list[str]:
        return list(self._query.get(name, []))

    def query_param_int_err(self, name: str) -> int:
        values = self._query.get(name)
        if not values:
            default = self._default(name)
            if isinstance(default, int) and not isinstance(default, bool):
                return default
            raise _QueryParamNotFoundError(param_name=name)
        param = values[0]
        try:
            return _parse_int(param)
        except ValueError as exc:
            raise _QueryParamInvalidTypeError(
                err=exc, param_name=name, param_value=param, expected_type="int"
            ) from exc

    def query_param_int(self, name: str) -> int:
        """Query parameter as int, or the declared default, or 0."""
        try:
            return self.query_param_int_err(name)
        except (PathParamNotFoundError, PathParamInvalidTypeError):
            default = self._default(name)
            if isinstance(default, int) and not isinstance(default, bool):
                return default
            return 0

    def query_param_bool_err(self, name: str) -> bool:
        values = self._query.get(name)
        if not values:
            default = self._default(name)
            if isinstance(default, bool):
                return default
            raise _QueryParamNotFoundError(param_name=name)
        param = values[0]
        parsed = convert_sql_null_bool(param)
        if parsed is None:
            exc = ValueError(f"invalid syntax: {param!r}")
            raise _QueryParamInvalidTypeError(
                err=exc, param_name=name, param_value=param, expected_type="bool"
            )
        return parsed.value

    def query_param_bool(self, name: str) -> bool:
        """Query parameter as bool, or the declared default, or False."""
        try:
            return self.query_param_bool_err(name)
        except (PathParamNotFoundError, PathParamInvalidTypeError):
            default = self._default(name)
            return default if isinstance(default, bool) else False

    def query_params(self) -> dict[str, list[str]]:
        return {key: list(values) for key, values in self._query.items()}

    # Languages

    def main_locale(self) -> str:
        """First locale of Accept-Language, e.g. 'en-US'."""
        return self.request.headers.get("Accept-Language").split(",")[0]

    def main_lang(self) -> str:
        """First language of Accept-Language, e.g. 'en'."""
        return self.main_locale().split("-")[0]

    # Cookies and headers

    def cookie(self, name: str) -> Cookie:
        return self.request.cookie(name)

    def has_cookie(self, name: str) -> bool:
        try:
            self.cookie(name)
        except KeyError:
            return False
        return True

    def set_cookie(self, cookie: Cookie) -> None:
        self.response.set_cookie(cookie)

    def header(self, key: str) -> str:
        return self.request.headers.get(key)

    def has_header(self, key: str) -> bool:
        return self.header(key) != ""

    def set_header(self, key: str, value: str) -> None:
        self.response.headers.set(key, value)

    # Status

    def set_status(self, code: int) -> None:
        self.response.write_header(code)

    def set_default_status_code(self) -> None:
        if self.route.default_status_code:
            self.set_status(self.route.default_status_code)

    def redirect(self, code: int, url: str) -> None:
        """Redirect to ``url`` with status ``code``."""
        location = _resolve_location(self.request, url)
        headers = self.response.headers
        had_content_type = "Content-Type" in headers
        headers.set("Location", location)
        method = self.request.method
        if not had_content_type and method in ("GET", "HEAD"):
            headers.set("Content-Type", "text/html; charset=utf-8")
        self.response.write_header(code)
        if not had_content_type and method == "GET":
            self.response.write(
                f'<a href="{_html_escape(location)}">{status_text(code)}</a>.\n\n'
            )
        return None