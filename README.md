# fuego

Building blocks for HTTP handlers in Python.

- **Request and response objects** (`fuego.messages`). The module has `Request`, `Response`,
  `Headers` (a case-insensitive map that can hold several values per name) and `Cookie`.
  `Request.query()` parses the query string. `Request.form()` parses URL-encoded bodies.
  `Response` keeps what is written to it in memory, and you read it back from `body` and `text`.
- **Request contexts** (`fuego.context.Context`). A context wraps a `Request` and a `Response`.
  It gives access to path parameters (`path_param`, `path_param_int`, `path_param_int_err`) and
  query parameters (`query_param`, `query_param_int`, `query_param_bool`, `query_param_arr` and
  their `_err` variants). Query defaults come from a `BaseRoute`. A context also handles headers,
  cookies, `main_lang` / `main_locale`, `set_status`, `redirect`, and a `body()` that is read once
  and then cached. `body()` picks the decoder from `Content-Type` and falls back to JSON.
- **Body deserialization** (`fuego.deserialization`). `read_json`, `read_yaml`, `read_xml`,
  `read_string` and `read_url_encoded` decode into a dataclass, a list, a dict or a plain type.
  Their behaviour is set by `ReadOptions`. After decoding, a body's `in_transform(context)` runs
  (see `InTransformer`) and then its `validate()`, if it has them.
- **Problem-style HTTP errors** (`fuego.errors`). `HTTPError` has the subclasses
  `BadRequestError`, `NotFoundError`, `UnauthorizedError`, `ForbiddenError`, `ConflictError`,
  `NotAcceptableError` and `InternalServerError`. `error_handler` and `handle_http_error` turn
  errors that carry a status into a plain `HTTPError`.
- **Middlewares** (`fuego.middlewares`). `DefaultLogger(config).middleware(handler)` logs each
  request and response and sets the `X-Request-ID` header. `strip_trailing_slash_middleware`
  removes trailing slashes from the request path. A handler is any callable
  `handler(request, response)`.
- **Engine** (`fuego.engine.Engine`). The engine holds the error handler, the accepted request
  content types and the OpenAPI output settings. You configure it with `with_error_handler`,
  `disable_error_handler`, `with_request_content_type`, `with_openapi_config` and
  `with_middleware_config`. `output_openapi_spec(spec)` writes a spec, given as a JSON-serializable
  object, to `json_file_path`.

## Installation

```
pip install .
pip install ".[test]"   # with the test dependencies
```

## Errors

```python
from fuego.errors import NotFoundError, error_handler

err = NotFoundError(title="Book not found", detail="no book with id 42")
print(err)                     # 404 Book not found (no book with id 42)
response = error_handler(err)  # an HTTPError with status 404
```

## Reading bodies

```python
import io
from dataclasses import dataclass
from fuego.deserialization import read_json

@dataclass
class Book:
    title: str = ""
    pages: int = 0

book = read_json(io.StringIO('{"title": "Dune", "pages": 412}'), Book)
```

By default, an unknown field or malformed input raises `BadRequestError`.

## Contexts

```python
from fuego.context import Context
from fuego.messages import Request

request = Request(target="/books/7?limit=10", path_values={"id": "7"})
ctx = Context(request)
ctx.path_param_int("id")      # 7
ctx.query_param_int("limit")  # 10
```

## Engine

```python
from fuego.engine import Engine, with_error_handler
from fuego.errors import handle_http_error

engine = Engine(with_error_handler(handle_http_error))
```

## Scaffolding command

The `fuego` command writes starter Python files for a new domain entity under
`./domains/<name>/`. The files are rendered from the templates in `fuego.cli.templates`.

```
fuego controller books
fuego controller books --with-service
fuego service books
```

- `controller` (alias `c`) writes `books.py` and `books_controller.py`.
- `--with-service` also writes `books_service.py`.
- `service` (alias `s`) writes `books.py` and `books_service.py`.
- With no subcommand, `fuego` prints a short banner.

## What this package does not do

There is no server, router or route registration here. Nothing listens on a socket or matches
URLs to handlers. You build a `Request` yourself, including its `path_values`, and pass it to a
`Context` or to a middleware. The package does not generate an OpenAPI description from
handlers, and it does not serve a Swagger UI. The engine only stores those settings and writes
out a spec that you hand to it. Template rendering and response serialization are not
provided either.

## Running the tests

```
pytest
```