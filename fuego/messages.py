"""Minimal HTTP request and response objects."""

from __future__ import annotations

import io
import re
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Iterator, Optional, Union
from urllib.parse import unquote_plus

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _parse_query(raw: str, strict: bool) -> dict[str, list[str]]:
    values: dict[str, list[str]] = {}
    for part in raw.split("&"):
        if not part:
            continue
        if ";" in part:
            if strict:
                raise ValueError("invalid semicolon separator in query")
            continue
        if _BAD_ESCAPE.search(part):
            if strict:
                raise ValueError(f"invalid URL escape in {part!r}")
            continue
        key, _, value = part.partition("=")
        values.setdefault(unquote_plus(key), []).append(unquote_plus(value))
    return values


class Headers:
    """Case-insensitive multi-valued header map."""

    def __init__(self, items: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, tuple[str, list[str]]] = {}
        for name, value in (items or {}).items():
            self.add(name, value)

    def get(self, name: str, default: str = "") -> str:
        values = self.get_all(name)
        return values[0] if values else default

    def get_all(self, name: str) -> list[str]:
        entry = self._data.get(name.lower())
        return list(entry[1]) if entry else []

    def set(self, name: str, value: str) -> None:
        self._data[name.lower()] = (name, [value])

    def add(self, name: str, value: str) -> None:
        entry = self._data.setdefault(name.lower(), (name, []))
        entry[1].append(value)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._data

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._data.values())

    def items(self) -> Iterator[tuple[str, str]]:
        for name, values in self._data.values():
            for value in values:
                yield name, value


class CookieNotFoundError(KeyError):
    """Raised when the request carries no cookie of the given name."""


@dataclass
class Cookie:
    name: str
    value: str = ""
    path: str = ""
    domain: str = ""
    max_age: int = 0
    secure: bool = False
    http_only: bool = False
    same_site: str = ""

    def to_header(self) -> str:
        """Render the cookie as a Set-Cookie header value."""
        parts = [f"{self.name}={self.value}"]
        if self.path:
            parts.append(f"Path={self.path}")
        if self.domain:
            parts.append(f"Domain={self.domain}")
        if self.max_age > 0:
            parts.append(f"Max-Age={self.max_age}")
        elif self.max_age < 0:
            parts.append("Max-Age=0")
        if self.http_only:
            parts.append("HttpOnly")
        if self.secure:
            parts.append("Secure")
        if self.same_site:
            parts.append(f"SameSite={self.same_site}")
        return "; ".join(parts)


@dataclass
class Request:
    """An incoming HTTP request."""

    method: str = "GET"
    target: str = "/"
    headers: Headers = field(default_factory=Headers)
    body: Union[bytes, str, BinaryIO, None] = b""
    remote_addr: str = ""
    path_values: dict[str, str] = field(default_factory=dict)
    context: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.headers, dict):
            self.headers = Headers(self.headers)
        if self.body is None:
            self.body = b""
        if isinstance(self.body, str):
            self.body = self.body.encode()
        if isinstance(self.body, bytes):
            self.body = io.BytesIO(self.body)
        path, _, self.raw_query = self.target.partition("?")
        self.path = path.split("#", 1)[0] or "/"
        self._form: Optional[dict[str, list[str]]] = None

    def query(self) -> dict[str, list[str]]:
        """Query string values; malformed pairs are dropped."""
        return _parse_query(self.raw_query, strict=False)

    def form(self) -> dict[str, list[str]]:
        """Values of an url-encoded body; raises ValueError on malformed input."""
        if self._form is None:
            _parse_query(self.raw_query, strict=True)
            form: dict[str, list[str]] = {}
            media = self.headers.get("Content-Type").split(";")[0].strip().lower()
            if self.method in ("POST", "PUT", "PATCH") and media == "application/x-www-form-urlencoded":
                raw = self.body.read()
                text = raw.decode() if isinstance(raw, bytes) else raw
                form = _parse_query(text, strict=True)
            self._form = form
        return self._form

    def cookie(self, name: str) -> Cookie:
        for header in self.headers.get_all("Cookie"):
            for pair in header.split(";"):
                key, sep, value = pair.strip().partition("=")
                if sep and key == name:
                    return Cookie(name=key, value=value.strip('"'))
        raise CookieNotFoundError(name)

    def user_agent(self) -> str:
        return self.headers.get("User-Agent")


class Response:
    """An outgoing HTTP response buffered in memory."""

    def __init__(self) -> None:
        self.headers = Headers()
        self.status_code = 200
        self.wrote_header = False
        self.flushed = False
        self._buffer = io.BytesIO()

    def write_header(self, code: int) -> None:
        if self.wrote_header:
            return
        self.status_code = code
        self.wrote_header = True

    def write(self, data: Union[bytes, str]) -> int:
        if not self.wrote_header:
            self.write_header(200)
        if isinstance(data, str):
            data = data.encode()
        return self._buffer.write(data)

    def flush(self) -> None:
        self.flushed = True

    def set_cookie(self, cookie: Cookie) -> None:
        self.headers.add("Set-Cookie", cookie.to_header())

    @property
    def body(self) -> bytes:
        return self._buffer.getvalue()

    @property
    def text(self) -> str:
        return self.body.decode()