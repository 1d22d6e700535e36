"""Request body decoding for JSON, XML, YAML, strings and HTML forms.

Bodies are decoded into the requested type, transformed when they
provide ``in_transform`` and validated when they provide ``validate``.
"""

from __future__ import annotations

import dataclasses
import inspect
import json
import logging
import re
import types
import typing
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Union, runtime_checkable

import yaml

from .errors import BadRequestError, ErrorItem
from .messages import Request

logger = logging.getLogger("fuego")

MAX_BODY_SIZE = 1048576


@dataclass
class ReadOptions:
    """Options for reading a request body."""

    max_body_size: int = 0
    disallow_unknown_fields: bool = False
    log_body: bool = False


DEFAULT_READ_OPTIONS = ReadOptions(max_body_size=MAX_BODY_SIZE, disallow_unknown_fields=True)


@runtime_checkable
class InTransformer(Protocol):
    """A body that can transform itself after decoding."""

    def in_transform(self, context: Any) -> Any:
        """Transform in place, or return a replacement value."""


@dataclass
class NullString:
    value: str = ""
    valid: bool = False


@dataclass
class NullBool:
    value: bool = False
    valid: bool = False


_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}
_INT = re.compile(r"[+-]?\d+")

_BUILTIN_TYPES: dict[str, Any] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "bytes": bytes,
    "list": list,
    "dict": dict,
    "Any": Any,
    "object": object,
    "NullString": NullString,
    "NullBool": NullBool,
}


class _DecodeError(ValueError):
    pass


def _parse_bool(text: str) -> bool:
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise _DecodeError(f"cannot parse {text!r} as bool")


def convert_sql_null_string(value: str) -> NullString:
    return NullString(value, True)


def convert_sql_null_bool(value: str) -> Optional[NullBool]:
    """Parse a form value into a NullBool, or None if it is not a bool."""
    try:
        return NullBool(_parse_bool(value), True)
    except _DecodeError:
        return None


def _is_any(tp: Any) -> bool:
    return tp is None or tp is Any or tp is object


def _is_union(tp: Any) -> bool:
    origin = typing.get_origin(tp)
    return origin is Union or (hasattr(types, "UnionType") and origin is types.UnionType)


def _resolve(annotation: Any, namespace: dict[str, Any]) -> Any:
    """Resolve a string annotation for the simple forms used by body types."""
    if not isinstance(annotation, str):
        return annotation
    text = annotation.strip()
    if text.endswith("| None"):
        return Optional[_resolve(text[: -len("| None")], namespace)]
    if text.startswith("Optional[") and text.endswith("]"):
        return Optional[_resolve(text[len("Optional["):-1], namespace)]
    if text.startswith(("list[", "List[")) and text.endswith("]"):
        return list[_resolve(text[text.index("[") + 1:-1], namespace)]
    if text.startswith(("dict[", "Dict[")) and text.endswith("]"):
        inner = text[text.index("[") + 1:-1]
        key, _, value = inner.partition(",")
        return dict[_resolve(key, namespace), _resolve(value, namespace)]
    if text in _BUILTIN_TYPES:
        return _BUILTIN_TYPES[text]
    found = namespace.get(text)
    return found if found is not None else Any


def _hints(tp: type) -> dict[str, Any]:
    module = inspect.getmodule(tp)
    namespace = dict(vars(module)) if module is not None else {}
    return {f.name: _resolve(f.type, namespace) for f in dataclasses.fields(tp)}


def _alias(f: dataclasses.Field) -> str:
    return f.metadata.get("alias", f.name)


def _zero(tp: Any) -> Any:
    if _is_any(tp) or _is_union(tp):
        return None
    origin = typing.get_origin(tp) or tp
    if isinstance(origin, type):
        if issubclass(origin, bool):
            return False
        if issubclass(origin, (str, int, float, bytes, list, dict)):
            return origin()
        if dataclasses.is_dataclass(origin):
            return _build(origin, {}, strict=False, text=False)
    return None


def _build(tp: type, data: Any, *, strict: bool, text: bool) -> Any:
    if not isinstance(data, dict):
        raise _DecodeError(f"cannot decode {type(data).__name__} into {tp.__name__}")
    hints = _hints(tp)
    init_fields = [f for f in dataclasses.fields(tp) if f.init]
    known = {_alias(f) for f in init_fields}
    if strict:
        unknown = [k for k in data if k not in known]
        if unknown:
            raise _DecodeError(f"unknown field {unknown[0]!r}")
    kwargs = {}
    for f in init_fields:
        key = _alias(f)
        hint = hints.get(f.name, Any)
        if key in data:
            kwargs[f.name] = _convert(data[key], hint, strict=strict, text=text)
        elif f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            kwargs[f.name] = _zero(hint)
    return tp(**kwargs)


def _convert(value: Any, tp: Any, *, strict: bool, text: bool) -> Any:
    if _is_any(tp):
        return value
    if _is_union(tp):
        args = typing.get_args(tp)
        if value is None and type(None) in args:
            return None
        for arg in (a for a in args if a is not type(None)):
            try:
                return _convert(value, arg, strict=strict, text=text)
            except _DecodeError:
                continue
        raise _DecodeError(f"cannot decode {value!r} into {tp}")
    if tp is NullString:
        if value is None:
            return NullString()
        if isinstance(value, str):
            return convert_sql_null_string(value)
        raise _DecodeError(f"cannot decode {value!r} into NullString")
    if tp is NullBool:
        if value is None:
            return NullBool()
        if isinstance(value, bool):
            return NullBool(value, True)
        converted = convert_sql_null_bool(str(value))
        if converted is None:
            raise _DecodeError(f"cannot decode {value!r} into NullBool")
        return converted
    origin = typing.get_origin(tp) or tp
    args = typing.get_args(tp)
    if dataclasses.is_dataclass(origin):
        return _build(origin, value, strict=strict, text=text)
    if origin is list:
        if not isinstance(value, list):
            raise _DecodeError(f"cannot decode {value!r} into a list")
        item = args[0] if args else Any
        return [_convert(v, item, strict=strict, text=text) for v in value]
    if origin is dict:
        if not isinstance(value, dict):
            raise _DecodeError(f"cannot decode {value!r} into a mapping")
        item = args[1] if len(args) > 1 else Any
        return {k: _convert(v, item, strict=strict, text=text) for k, v in value.items()}
    if not isinstance(origin, type):
        return value
    if issubclass(origin, bool):
        if text and isinstance(value, str):
            return _parse_bool(value)
        if isinstance(value, bool):
            return value
    elif issubclass(origin, int):
        if text and isinstance(value, str):
            if not _INT.fullmatch(value):
                raise _DecodeError(f"cannot parse {value!r} as int")
            return origin(int(value))
        if isinstance(value, int) and not isinstance(value, bool):
            return origin(value)
    elif issubclass(origin, float):
        if text and isinstance(value, str):
            try:
                return origin(value)
            except ValueError as exc:
                raise _DecodeError(f"cannot parse {value!r} as float") from exc
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return origin(value)
    elif issubclass(origin, str):
        if isinstance(value, str):
            return origin(value)
    elif issubclass(origin, bytes):
        if isinstance(value, str):
            return origin(value.encode())
        if isinstance(value, bytes):
            return origin(value)
    elif isinstance(value, origin):
        return value
    raise _DecodeError(f"cannot decode {value!r} into {origin.__name__}")


def _read_all(source: Any, options: ReadOptions) -> bytes:
    if isinstance(source, str):
        data = source.encode()
    elif isinstance(source, bytes):
        data = source
    else:
        limit = options.max_body_size
        chunk = source.read(limit + 1) if limit else source.read()
        data = chunk.encode() if isinstance(chunk, str) else bytes(chunk or b"")
    if options.max_body_size and len(data) > options.max_body_size:
        raise OSError("request body too large")
    return data


def _decoding_failed(err: Exception) -> BadRequestError:
    return BadRequestError(
        title="Decoding Failed", err=err, detail=f"cannot decode request body: {err}"
    )


def _options(options: Optional[ReadOptions]) -> ReadOptions:
    return options if options is not None else DEFAULT_READ_OPTIONS


def transform(body: Any, context: Any = None) -> Any:
    """Apply the body's in_transform, if it has one."""
    in_transform = getattr(body, "in_transform", None)
    if not callable(in_transform):
        return body
    try:
        replacement = in_transform(context)
    except Exception as exc:
        raise BadRequestError(
            title="Transformation Failed",
            err=exc,
            detail=f"cannot transform request body: {exc}",
            errors=[ErrorItem(name="transformation", reason="transformation failed")],
        ) from exc
    if replacement is not None:
        body = replacement
    logger.debug("InTransformed body: %r", body)
    return body


def _transform_and_validate(body: Any, context: Any = None) -> Any:
    body = transform(body, context)
    validate = getattr(body, "validate", None)
    if callable(validate):
        try:
            validate()
        except BadRequestError:
            raise
        except Exception as exc:
            raise BadRequestError(title="Validation Error", err=exc, detail=str(exc)) from exc
    return body


def _finish(decode, source: Any, body_type: Any, options: ReadOptions, context: Any) -> Any:
    try:
        raw = _read_all(source, options)
        body = decode(raw)
    except BadRequestError:
        raise
    except Exception as exc:
        raise _decoding_failed(exc) from exc
    logger.debug("Decoded body: %r", body)
    return _transform_and_validate(body, context)


def read_json(source: Any, body_type: Any = None, options: Optional[ReadOptions] = None, context: Any = None) -> Any:
    """Read a JSON body into ``body_type``; an empty body gives its zero value."""
    opts = _options(options)

    def decode(raw: bytes) -> Any:
        text = raw.decode().lstrip()
        if not text:
            return _zero(body_type)
        value, _ = json.JSONDecoder().raw_decode(text)
        return _convert(value, body_type, strict=opts.disallow_unknown_fields, text=False)

    return _finish(decode, source, body_type, opts, context)


def read_yaml(source: Any, body_type: Any = None, options: Optional[ReadOptions] = None, context: Any = None) -> Any:
    """Read a YAML body into ``body_type``."""
    opts = _options(options)

    def decode(raw: bytes) -> Any:
        value = yaml.safe_load(raw.decode())
        if value is None:
            return _zero(body_type)
        return _convert(value, body_type, strict=opts.disallow_unknown_fields, text=False)

    return _finish(decode, source, body_type, opts, context)


def _element_to_value(element: ET.Element) -> Any:
    children = list(element)
    if not children:
        return element.text or ""
    mapping: dict[str, Any] = {}
    for child in children:
        value = _element_to_value(child)
        if child.tag in mapping:
            existing = mapping[child.tag]
            mapping[child.tag] = existing + [value] if isinstance(existing, list) else [existing, value]
        else:
            mapping[child.tag] = value
    return mapping


def read_xml(source: Any, body_type: Any = None, options: Optional[ReadOptions] = None, context: Any = None) -> Any:
    """Read an XML body; a dataclass expects a root named after it or its ``xml_name``."""
    opts = _options(options)

    def decode(raw: bytes) -> Any:
        if not raw.strip():
            return _zero(body_type)
        root = ET.fromstring(raw)
        if dataclasses.is_dataclass(body_type):
            expected = getattr(body_type, "xml_name", body_type.__name__)
            if root.tag != expected:
                raise _DecodeError(f"expected element type <{expected}> but have <{root.tag}>")
        return _convert(_element_to_value(root), body_type, strict=False, text=True)

    return _finish(decode, source, body_type, opts, context)


def read_string(source: Any, body_type: Any = str, options: Optional[ReadOptions] = None, context: Any = None) -> Any:
    """Read the whole body as a string of type ``body_type``."""
    opts = _options(options)
    try:
        raw = _read_all(source, opts)
    except Exception as exc:
        raise BadRequestError(err=exc, detail=f"cannot read request body: {exc}") from exc
    body = (body_type or str)(raw.decode())
    logger.debug("Read body: %r", body)
    return transform(body, context)


def read_url_encoded(request: Request, body_type: Any, options: Optional[ReadOptions] = None, context: Any = None) -> Any:
    """Read an HTML form body into a dataclass."""
    opts = _options(options)
    try:
        form = request.form()
    except ValueError as exc:
        raise ValueError(f"cannot parse form: {exc}") from exc
    try:
        if not dataclasses.is_dataclass(body_type):
            raise _DecodeError("form bodies decode into dataclasses only")
        field_hints = _hints(body_type)
        hints = {_alias(f): field_hints.get(f.name, Any) for f in dataclasses.fields(body_type)}
        data = {
            key: values if typing.get_origin(hints.get(key)) is list else values[-1]
            for key, values in form.items()
        }
        body = _build(body_type, data, strict=opts.disallow_unknown_fields, text=True)
    except _DecodeError as exc:
        raise BadRequestError(
            detail=f"cannot decode x-www-form-urlencoded request body: {exc}",
            err=exc,
            errors=[
                ErrorItem(
                    name="form",
                    reason="check that the form is valid, and that the content-type is correct",
                )
            ],
        ) from exc
    logger.debug("Decoded body: %r", body)
    return _transform_and_validate(body, context if context is not None else request.context)