import io
import json

import jwt
import pytest
from PIL import Image

from chatplus.config import AppConfig, Session
from chatplus.server import (
    AppServer,
    AuthError,
    ThumbnailArgs,
    cors_headers,
    is_public_path,
    parse_thumbnail_args,
    render_thumbnail,
    token_location,
    trim_json_strings,
    trim_query_params,
    verify_token,
)
from chatplus.web import BizCode

SECRET_KEY = "secret"
OTHER_KEY = "placeholder"


def make_token(claims, key=SECRET_KEY):
    return jwt.encode(claims, key, algorithm="HS256")


def make_server():
    return AppServer(AppConfig(session=Session(secret_key=SECRET_KEY)))


@pytest.mark.parametrize(
    "path",
    ["/api/user/login", "/api/admin/config/get", "/api/sms/code", "/static/a.png", "/api/testing"],
)
def test_public_paths(path):
    assert is_public_path(path) is True


@pytest.mark.parametrize("path", ["/api/user/profile", "/api/admin/user/list", "/api/chat/new"])
def test_private_paths(path):
    assert is_public_path(path) is False


def test_token_location():
    assert token_location("/api/admin/user/list") == ("header", "Admin-Authorization")
    assert token_location("/api/chat/new") == ("query", "token")
    assert token_location("/api/user/profile") == ("header", "Authorization")


def test_cors_headers():
    assert cors_headers("") == {}
    headers = cors_headers("http://localhost")
    assert headers["Access-Control-Allow-Origin"] == "http://localhost"
    assert headers["Access-Control-Max-Age"] == "172800"
    assert headers["Access-Control-Allow-Credentials"] == "true"


def test_verify_token_ok():
    claims = {"user_id": 7}
    signed = make_token(claims)
    assert verify_token(signed, SECRET_KEY, {"users/7"}) == 7


def test_verify_token_not_in_store():
    claims = {"user_id": 7}
    signed = make_token(claims)
    with pytest.raises(AuthError) as info:
        verify_token(signed, SECRET_KEY, {"users/8"})
    assert info.value.code == BizCode.NOT_AUTHORIZED
    assert info.value.message == "Token is not found in redis"


def test_verify_token_expired_claim():
    claims = {"user_id": 7, "expired": 1000}
    signed = make_token(claims)
    with pytest.raises(AuthError) as info:
        verify_token(signed, SECRET_KEY, {"users/7"}, now=2000)
    assert info.value.message == "Token is expired"
    assert verify_token(signed, SECRET_KEY, {"users/7"}, now=500) == 7


def test_verify_token_wrong_key():
    claims = {"user_id": 7}
    signed = make_token(claims, key=OTHER_KEY)
    with pytest.raises(AuthError) as info:
        verify_token(signed, SECRET_KEY, {"users/7"})
    assert info.value.message.startswith("Error with parse auth token")


def test_trim_json_strings():
    data = {"a": " x ", "b": [" y", {"c": "z "}], "n": 3}
    assert trim_json_strings(data) == {"a": "x", "b": ["y", {"c": "z"}], "n": 3}
    assert data["a"] == " x "


def test_trim_query_params():
    result = trim_query_params({"b": [" 1 "], "a": " 2"})
    assert result == {"a": ["2"], "b": ["1"]}
    assert list(result) == ["a", "b"]


def test_parse_thumbnail_args():
    args = parse_thumbnail_args("/static/img/a.png?imageView2/1/w/480/h/600/q/75")
    assert args == ThumbnailArgs(path="static/img/a.png", width=480, height=600, quality=75)


def test_parse_thumbnail_args_none_and_invalid():
    assert parse_thumbnail_args("/static/a.png") is None
    assert parse_thumbnail_args("/api/a?imageView2/1/w/1/h/1/q/1") is None
    with pytest.raises(ValueError, match="invalid thumb args"):
        parse_thumbnail_args("/static/a.png?imageView2/1/w/480")


def _write_image(path, size):
    Image.new("RGB", size, (200, 10, 10)).save(path, format="PNG")


def test_render_thumbnail_fixed_width(tmp_path):
    path = tmp_path / "a.png"
    _write_image(path, (100, 50))
    data = render_thumbnail(str(path), ThumbnailArgs(path=str(path), width=40, height=0))
    assert data[:2] == b"\xff\xd8"
    with Image.open(io.BytesIO(data)) as out:
        assert out.width == 40
        assert out.width == 2 * out.height


def test_render_thumbnail_box_keeps_aspect(tmp_path):
    path = tmp_path / "a.png"
    _write_image(path, (100, 50))
    data = render_thumbnail(str(path), ThumbnailArgs(path=str(path), width=40, height=40))
    with Image.open(io.BytesIO(data)) as out:
        assert out.width <= 40 and out.height <= 40
        assert out.width == 2 * out.height


def test_render_thumbnail_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        render_thumbnail(str(tmp_path / "missing.png"), ThumbnailArgs(path="x"))
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"not an image")
    with pytest.raises(ValueError):
        render_thumbnail(str(bad), ThumbnailArgs(path="x"))


def test_load_configs():
    server = make_server()
    server.load_configs(
        json.dumps({"enable_context": True, "context_deep": 4}),
        json.dumps({"title": "Chat", "register_ways": ["mobile"]}),
    )
    assert server.chat_config.enable_context is True
    assert server.chat_config.context_deep == 4
    assert server.sys_config.title == "Chat"
    assert server.sys_config.register_ways == ["mobile"]


def test_load_configs_bad_json():
    with pytest.raises(json.JSONDecodeError):
        make_server().load_configs("{", "{}")


def test_authorize_public_and_missing():
    server = make_server()
    assert server.authorize("/api/user/login", {}, {}, set()) is None
    with pytest.raises(AuthError) as info:
        server.authorize("/api/user/profile", {}, {}, set())
    assert info.value.code == BizCode.FAILED


def test_authorize_header_and_query():
    server = make_server()
    claims = {"user_id": 3}
    signed = make_token(claims)
    store = {"users/3"}
    assert server.authorize("/api/user/profile", {"authorization": signed}, {}, store) == 3
    assert server.authorize("/api/admin/list", {"Admin-Authorization": signed}, {}, store) == 3
    assert server.authorize("/api/chat/new", {}, {"token": [signed]}, store) == 3
    with pytest.raises(AuthError):
        server.authorize("/api/admin/list", {"Authorization": signed}, {}, store)