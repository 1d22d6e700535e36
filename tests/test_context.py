from dataclasses import dataclass, field
from typing import Any

import pytest

from fuego.context import (
    BaseRoute,
    Context,
    PathParamInvalidTypeError,
    PathParamNotFoundError,
    path_param_int_err,
)
from fuego.deserialization import ReadOptions
from fuego.errors import BadRequestError
from fuego.messages import Cookie, Request, Response


@dataclass
class SampleStruct:
    name: str = ""
    age: int = 0


@dataclass
class XmlStruct:
    xml_name = "TestStruct"
    name: str = field(default="", metadata={"alias": "Name"})
    age: int = field(default=0, metadata={"alias": "Age"})


@dataclass
class ValidatedStruct:
    name: str = ""
    age: int = 0

    def validate(self):
        if not 3 <= len(self.name) <= 10:
            raise ValueError("name length must be between 3 and 10")
        if self.age < 18:
            raise ValueError("age must be at least 18")


@dataclass
class TransformedStruct:
    name: str = ""
    age: int = 0

    def in_transform(self, context):
        self.name = "transformed " + self.name
        self.age *= 2


@dataclass
class FailingTransformStruct:
    name: str = ""
    age: int = 0

    def in_transform(self, context):
        raise RuntimeError("error")


def make_ctx(body=b"", content_type=None, body_type=Any, options=None, **request_kwargs):
    headers = {"Content-Type": content_type} if content_type else {}
    request = Request(target="http://example.com/foo", body=body, headers=headers, **request_kwargs)
    return Context(request, Response(), body_type=body_type, options=options or ReadOptions())


JSON_BODY = b'{"name":"John","age":30}'


# Path params


def path_ctx(values):
    return Context(Request(target="/foo/x", path_values=values), Response())


def test_path_param_read():
    assert path_ctx({"id": "123"}).path_param("id") == "123"


def test_path_param_missing_is_empty():
    assert path_ctx({}).path_param("id") == ""


def test_path_param_int():
    assert path_ctx({"id": "123"}).path_param_int("id") == 123


def test_path_param_int_non_int_defaults_to_zero():
    assert path_ctx({"id": "abc"}).path_param_int("id") == 0


def test_path_param_int_missing_defaults_to_zero():
    assert path_ctx({}).path_param_int("id") == 0


def test_path_param_int_err_invalid():
    with pytest.raises(PathParamInvalidTypeError) as info:
        path_ctx({"id": "abc"}).path_param_int_err("id")
    assert info.value.status_code == 422
    assert "param id=abc is not of type int" in str(info.value)


def test_path_param_int_err_missing():
    with pytest.raises(PathParamNotFoundError) as info:
        path_param_int_err(path_ctx({}), "id")
    assert info.value.status_code == 404
    assert str(info.value) == "param id not found"


def test_path_param_int_err_negative():
    assert path_ctx({"id": "-7"}).path_param_int_err("id") == -7


# Query params


@pytest.fixture
def query_ctx():
    request = Request(
        target="http://example.com/foo/123?id=456&other=hello&boo=true&name=jhon&name=doe"
    )
    return Context(request, Response())


def test_query_param_string(query_ctx):
    assert query_ctx.query_param("other") == "hello"
    assert query_ctx.query_param("notfound") == ""


def test_query_param_int(query_ctx):
    assert query_ctx.query_param("id") == "456"
    assert query_ctx.query_param_int("id") == 456
    assert query_ctx.query_param_int("notfound") == 0
    assert query_ctx.query_param_int("other") == 0
    assert query_ctx.query_param_int_err("id") == 456


def test_query_param_int_err_not_found(query_ctx):
    with pytest.raises(PathParamNotFoundError) as info:
        query_ctx.query_param_int_err("notfound")
    assert str(info.value) == "param notfound not found"


def test_query_param_int_err_invalid(query_ctx):
    with pytest.raises(PathParamInvalidTypeError) as info:
        query_ctx.query_param_int_err("other")
    assert "param other=hello is not of type int" in str(info.value)


def test_query_param_bool(query_ctx):
    assert query_ctx.query_param("boo") == "true"
    assert query_ctx.query_param_bool("boo") is True
    assert query_ctx.query_param_bool("notfound") is False
    assert query_ctx.query_param_bool_err("boo") is True


def test_query_param_bool_err_errors(query_ctx):
    with pytest.raises(PathParamNotFoundError):
        query_ctx.query_param_bool_err("notfound")
    with pytest.raises(PathParamInvalidTypeError):
        query_ctx.query_param_bool_err("other")


def test_query_param_arr(query_ctx):
    assert query_ctx.query_param_arr("name") == ["jhon", "doe"]
    assert query_ctx.query_param_arr("notfound") == []


def test_query_params():
    ctx = Context(Request(target="http://example.com/foo/123?id=456&other=hello"), Response())
    params = ctx.query_params()
    assert params["id"] == ["456"]
    assert params["other"] == ["hello"]
    assert params.get("notfound", []) == []


def test_query_param_defaults_from_route():
    route = BaseRoute(params={"name": "hey", "age": 18, "is_ok": True})
    ctx = Context(Request(target="/test"), Response(), route=route)
    result = ctx.query_param("name") + str(ctx.query_param_int("age")) + str(ctx.query_param_bool("is_ok"))
    assert result == "hey18True"


# Body


def test_body_json_default_content_type():
    body = make_ctx(JSON_BODY, body_type=SampleStruct).body()
    assert body == SampleStruct("John", 30)


def test_body_json_with_content_type():
    body = make_ctx(JSON_BODY, "application/json", body_type=SampleStruct).body()
    assert body == SampleStruct("John", 30)


def test_body_read_twice_is_cached():
    ctx = make_ctx(JSON_BODY, body_type=SampleStruct)
    first = ctx.body()
    second = ctx.body()
    assert first == SampleStruct("John", 30)
    assert second == SampleStruct("John", 30)


def test_body_valid_validation():
    body = make_ctx(JSON_BODY, body_type=ValidatedStruct).body()
    assert body == ValidatedStruct("John", 30)


def test_body_invalid_validation():
    ctx = make_ctx(b'{"name":"VeryLongName","age":12}', body_type=ValidatedStruct)
    with pytest.raises(BadRequestError):
        ctx.body()


def test_body_transform():
    body = make_ctx(JSON_BODY, body_type=TransformedStruct).body()
    assert body.name == "transformed John"
    assert body.age == 60


def test_body_transform_error():
    with pytest.raises(BadRequestError) as info:
        make_ctx(JSON_BODY, body_type=FailingTransformStruct).body()
    assert info.value.title == "Transformation Failed"


def test_body_bytes():
    body = make_ctx(b"image", "application/octet-stream", body_type=bytes).body()
    assert body == b"image"


def test_body_bytes_wrong_type():
    with pytest.raises(TypeError, match="use bytes as the body type"):
        make_ctx(b"image", "application/octet-stream", body_type=dict).body()


def test_body_xml():
    xml = b"\n<TestStruct>\n\t<Name>John</Name>\n\t<Age>30</Age>\n</TestStruct>\n"
    body = make_ctx(xml, "application/xml", body_type=XmlStruct).body()
    assert body.name == "John"
    assert body.age == 30


def test_body_yaml():
    body = make_ctx(b"\nname: John\nage: 30\n", "application/x-yaml", body_type=SampleStruct).body()
    assert body == SampleStruct("John", 30)


def test_body_restricted_size():
    ctx = make_ctx(JSON_BODY, body_type=FailingTransformStruct, options=ReadOptions(max_body_size=1))
    with pytest.raises(BadRequestError):
        ctx.body()


def test_body_string():
    body = make_ctx(b"Hello World", "text/plain", body_type=str).body()
    assert body == "Hello World"


def test_body_form_on_get_gives_empty_struct():
    ctx = make_ctx(b"Hello Fuzz", "application/x-www-form-urlencoded", body_type=SampleStruct)
    assert ctx.body() == SampleStruct()


def test_body_sets_server_timing():
    ctx = make_ctx(JSON_BODY, body_type=SampleStruct)
    ctx.body()
    assert ctx.response.headers.get("Server-Timing").startswith("deserialize;")


def test_must_body():
    assert make_ctx(JSON_BODY, body_type=SampleStruct).must_body() == SampleStruct("John", 30)


def test_must_body_invalid():
    ctx = make_ctx(b'{"name":"VeryLongName","age":12}', body_type=ValidatedStruct)
    with pytest.raises(BadRequestError):
        ctx.must_body()


def test_no_body_type_gives_mapping():
    assert make_ctx(JSON_BODY).body() == {"name": "John", "age": 30.0}


def test_no_body_type_invalid_json():
    with pytest.raises(BadRequestError):
        make_ctx(b'{"name":"John","age":30').must_body()


# Languages, headers, cookies, status


def test_main_lang():
    request = Request(headers={"Accept-Language": "fr-CH, fr;q=0.9, en;q=0.8, de;q=0.7, *;q=0.5"})
    ctx = Context(request, Response())
    assert ctx.main_lang() == "fr"
    assert ctx.main_locale() == "fr-CH"


def test_headers():
    ctx = Context(Request(headers={"X-Thing": "yes"}), Response())
    assert ctx.header("x-thing") == "yes"
    assert ctx.has_header("X-Thing") is True
    assert ctx.has_header("X-Other") is False
    ctx.set_header("X-Out", "1")
    assert ctx.response.headers.get("X-Out") == "1"


def test_cookies():
    ctx = Context(Request(headers={"Cookie": "session=token"}), Response())
    assert ctx.cookie("session").value == "token"
    assert ctx.has_cookie("session") is True
    assert ctx.has_cookie("missing") is False
    with pytest.raises(KeyError):
        ctx.cookie("missing")
    ctx.set_cookie(Cookie(name="session", value="token"))
    assert ctx.response.headers.get_all("Set-Cookie") == ["session=token"]


def test_set_status():
    ctx = Context(Request(), Response())
    ctx.set_status(418)
    assert ctx.response.status_code == 418


def test_set_default_status_code():
    ctx = Context(Request(), Response(), route=BaseRoute(default_status_code=201))
    ctx.set_default_status_code()
    assert ctx.response.status_code == 201


def test_redirect():
    ctx = Context(Request(target="/"), Response())
    assert ctx.redirect(301, "/foo") is None
    assert ctx.response.status_code == 301
    assert ctx.response.headers.get("Location") == "/foo"
    assert ctx.response.text == '<a href="/foo">Moved Permanently</a>.\n\n'


def test_redirect_relative():
    ctx = Context(Request(target="/a/b"), Response())
    ctx.redirect(302, "c")
    assert ctx.response.headers.get("Location") == "/a/c"
    assert ctx.response.status_code == 302