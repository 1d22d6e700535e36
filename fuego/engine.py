"""The engine: error handling, OpenAPI configuration and spec output."""

from __future__ import annotations

import dataclasses
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, Union

from .errors import error_handler as default_error_handler

logger = logging.getLogger("fuego")

ErrorHandler = Callable[[BaseException], Optional[BaseException]]
EngineOption = Callable[["Engine"], None]

_SPEC_URL = re.compile(r"^/[/a-zA-Z0-9\-_]+\.json$")
_SWAGGER_URL = re.compile(r"^/[/a-zA-Z0-9\-_]+[a-zA-Z0-9\-_]$")


def _valid_spec_url(url: str) -> bool:
    return bool(_SPEC_URL.match(url))


def _valid_swagger_url(url: str) -> bool:
    return bool(_SWAGGER_URL.match(url))


@dataclass
class MiddlewareConfig:
    """How middlewares are shown in the OpenAPI description."""

    disable_middleware_section: bool = False
    max_number_of_middlewares: int = 0
    short_middlewares_paths: bool = False


@dataclass
class OpenAPIConfig:
    """OpenAPI generation and serving settings; empty values mean 'keep the default'."""

    json_file_path: str = ""
    disabled: bool = False
    disable_messages: bool = False
    disable_local_save: bool = False
    disable_default_server: bool = False
    pretty_format_json: bool = False
    spec_url: str = ""
    ui_handler: Optional[Callable[[str], Any]] = None
    swagger_url: str = ""
    disable_swagger_ui: bool = False
    middleware_config: MiddlewareConfig = field(default_factory=MiddlewareConfig)


def _default_openapi_config() -> OpenAPIConfig:
    return OpenAPIConfig(
        json_file_path="doc/openapi.json",
        spec_url="/swagger/openapi.json",
        swagger_url="/swagger",
        middleware_config=MiddlewareConfig(max_number_of_middlewares=6),
    )


class Engine:
    """Holds the OpenAPI configuration and the error handler."""

    def __init__(self, *args: EngineOption) -> None:
        self.openapi_config = _default_openapi_config()
        self.error_handler: ErrorHandler = default_error_handler
        self.request_content_types: Optional[list[str]] = None
        for option in args:
            option(self)

    def marshal_spec(self, spec: Any) -> bytes:
        """Serialize the spec to JSON, indented with tabs when pretty printing."""
        if self.openapi_config.pretty_format_json:
            return json.dumps(spec, indent="\t").encode()
        return json.dumps(spec, separators=(",", ":")).encode()

    def save_openapi_to_file(self, path: Union[str, Path], spec_bytes: bytes) -> None:
        """Write the JSON spec to ``path``, creating its directory."""
        target = Path(path)
        try:
            target.parent.mkdir(mode=0o750, parents=True, exist_ok=True)
        except OSError as exc:
            raise OSError(f"error creating docs directory: {exc}") from exc
        try:
            with target.open("wb") as f:
                f.write(spec_bytes)
        except OSError as exc:
            raise OSError(f"error writing file: {exc}") from exc
        self._print_openapi_message(f"JSON file: {target}")

    def output_openapi_spec(self, spec: Any) -> Any:
        """Marshal the spec and save it locally unless disabled; returns the spec."""
        try:
            spec_bytes = self.marshal_spec(spec)
        except (TypeError, ValueError) as exc:
            logger.error("Error marshaling spec to JSON: %s", exc)
            spec_bytes = b""

        if not self.openapi_config.disable_local_save:
            try:
                self.save_openapi_to_file(self.openapi_config.json_file_path, spec_bytes)
            except OSError as exc:
                logger.error(
                    "Error saving spec to local path %s: %s",
                    self.openapi_config.json_file_path,
                    exc,
                )
        return spec

    def _print_openapi_message(self, msg: str) -> None:
        if not self.openapi_config.disable_messages:
            logger.info(msg)


def with_request_content_type(*args: str) -> EngineOption:
    """Set the request content types the engine accepts."""

    def option(engine: Engine) -> None:
        engine.request_content_types = list(args)

    return option


def with_middleware_config(cfg: MiddlewareConfig) -> EngineOption:
    def option(engine: Engine) -> None:
        current = engine.openapi_config.middleware_config
        current.disable_middleware_section = cfg.disable_middleware_section
        current.short_middlewares_paths = cfg.short_middlewares_paths
        if cfg.max_number_of_middlewares != 0:
            current.max_number_of_middlewares = cfg.max_number_of_middlewares

    return option


def with_openapi_config(config: OpenAPIConfig) -> EngineOption:
    def option(engine: Engine) -> None:
        current = engine.openapi_config
        if config.json_file_path:
            current.json_file_path = config.json_file_path
        if config.spec_url:
            current.spec_url = config.spec_url
        if config.swagger_url:
            current.swagger_url = config.swagger_url
        if config.ui_handler is not None:
            current.ui_handler = config.ui_handler

        current.disabled = config.disabled
        current.disable_local_save = config.disable_local_save
        current.disable_default_server = config.disable_default_server
        current.pretty_format_json = config.pretty_format_json
        current.disable_swagger_ui = config.disable_swagger_ui

        if not _valid_spec_url(current.spec_url):
            logger.error("Error serving OpenAPI JSON spec. Spec URL is not valid: %s", current.spec_url)
            return
        if not _valid_swagger_url(current.swagger_url):
            logger.error("Error serving Swagger UI. Swagger URL is not valid: %s", current.swagger_url)
            return

        with_middleware_config(dataclasses.replace(config.middleware_config))(engine)

    return option


def with_error_handler(error_handler: Optional[ErrorHandler]) -> EngineOption:
    """Use a custom error handler; None is rejected."""

    def option(engine: Engine) -> None:
        if error_handler is None:
            raise ValueError("errorHandler cannot be nil")
        engine.error_handler = error_handler

    return option


def disable_error_handler() -> EngineOption:
    """Replace the error handler with a pass-through."""

    def option(engine: Engine) -> None:
        engine.error_handler = lambda err: err

    return option