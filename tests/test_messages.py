import pytest

from fuego.messages import Cookie, CookieNotFoundError, Headers, Request, Response


def test_headers_are_case_insensitive():
    headers = Headers()
    headers.set("Content-Type", "text/plain")
    assert headers.get("content-type") == "text/plain"
    assert "CONTENT-TYPE" in headers


def test_headers_add_and_set():
    headers = Headers()
    headers.add("X-A", "1")
    headers.add("x-a", "2")
    assert headers.get_all("X-A") == ["1", "2"]
    headers.set("X-A", "3")
    assert headers.get_all("x-a") == ["3"]
    assert headers.get("missing", "fallback") == "fallback"


def test_cookie_header_starts_with_pair():
    cookie = Cookie(name="session", value="token", path="/", http_only=True)
    header = cookie.to_header()
    assert header.split("; ")[0] == "session=token"
    assert "HttpOnly" in header.split("; ")


def test_request_cookie_round_trip():
    request = Request(headers={"Cookie": "a=1; session=token"})
    assert request.cookie("session").value == "token"
    with pytest.raises(CookieNotFoundError):
        request.cookie("absent")


def test_request_query_values():
    request = Request(target="/foo/123?id=456&name=jhon&name=doe")
    assert request.path == "/foo/123"
    query = request.query()
    assert query["id"] == ["456"]
    assert query["name"] == ["jhon", "doe"]


def test_request_form_parses_body():
    request = Request(
        method="POST",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        body="A=a&B=1",
    )
    assert request.form() == {"A": ["a"], "B": ["1"]}


def test_request_form_rejects_semicolons():
    request = Request(method="POST", target="/?;invalid;")
    with pytest.raises(ValueError):
        request.form()


def test_user_agent():
    assert Request(headers={"User-Agent": "agent"}).user_agent() == "agent"


def test_response_write_sets_implicit_status():
    response = Response()
    response.write(b"hello")
    assert response.wrote_header
    assert response.body == b"hello"


def test_response_write_header_only_once():
    response = Response()
    response.write_header(404)
    response.write_header(201)
    response.write("x")
    assert response.status_code == 404


def test_response_set_cookie():
    response = Response()
    cookie = Cookie(name="a", value="b")
    response.set_cookie(cookie)
    assert response.headers.get_all("Set-Cookie") == [cookie.to_header()]