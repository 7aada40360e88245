"""Request handling for the chat application: auth, CORS, input trimming and thumbnails."""

from __future__ import annotations

import io
import json
import time
from collections.abc import Container, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote, urlsplit

import jwt
from PIL import Image, UnidentifiedImageError

from .chat import ChatSession
from .client import WsClient
from .config import (
    ADMIN_AUTH_HEADER,
    USER_AUTH_HEADER,
    AppConfig,
    ChatConfig,
    SystemConfig,
)
from .locked_map import LockedMap
from .web import BizCode

_PUBLIC_PATHS = frozenset(
    {
        "/api/user/login",
        "/api/user/resetPass",
        "/api/admin/login",
        "/api/user/register",
        "/api/chat/history",
        "/api/chat/detail",
        "/api/role/list",
        "/api/mj/jobs",
        "/api/mj/client",
        "/api/mj/notify",
        "/api/invite/hits",
        "/api/sd/jobs",
        "/api/admin/config/get",
    }
)

_PUBLIC_PREFIXES = (
    "/api/test",
    "/api/function/",
    "/api/sms/",
    "/api/captcha/",
    "/api/payment/",
    "/static/",
)

_HMAC_ALGORITHMS = ["HS256", "HS384", "HS512"]

_THUMB_MARKER = "imageView2"
_DEFAULT_QUALITY = 75

MISSING_AUTH_MSG = "You should put Authorization in request headers"


class AuthError(Exception):
    """A request failed authorisation; code says which envelope code to reply with."""

    def __init__(self, message: str, code: BizCode = BizCode.NOT_AUTHORIZED) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


@dataclass(frozen=True)
class ThumbnailArgs:
    """Where to find an image and how to shrink it."""

    path: str
    width: int = 0
    height: int = 0
    quality: int = _DEFAULT_QUALITY


def is_public_path(path: str) -> bool:
    """Return True when the path needs no login."""
    return path in _PUBLIC_PATHS or path.startswith(_PUBLIC_PREFIXES)


def token_location(path: str) -> tuple[str, str]:
    """Return ("header" | "query", name) telling where the path carries its token."""
    if "/api/admin/" in path:
        return "header", ADMIN_AUTH_HEADER
    if path == "/api/chat/new":
        return "query", "token"
    return "header", USER_AUTH_HEADER


def cors_headers(origin: str) -> dict[str, str]:
    """Return the cross-origin response headers for a request origin."""
    if not origin:
        return {}
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": "POST, GET, OPTIONS, PUT, DELETE, UPDATE",
        "Access-Control-Allow-Headers": (
            "Authorization, Content-Length, Content-Type, Chat-Token, Admin-Authorization"
        ),
        "Access-Control-Expose-Headers": (
            "Content-Length, Access-Control-Allow-Origin, Access-Control-Allow-Headers"
        ),
        "Access-Control-Max-Age": "172800",
        "Access-Control-Allow-Credentials": "true",
    }


def _int_value(value: Any, default: int = 0) -> int:
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else default
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def _format_id(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def verify_token(
    token: str,
    secret_key: str,
    session_store: Container[str],
    now: int | None = None,
) -> Any:
    """Check an HMAC-signed token and its login record; return the user id it names."""
    try:
        claims = jwt.decode(token, secret_key, algorithms=_HMAC_ALGORITHMS)
    except jwt.InvalidTokenError as exc:
        raise AuthError(f"Error with parse auth token: {exc}") from exc
    if not isinstance(claims, Mapping):
        raise AuthError("Token is invalid")

    current = int(time.time()) if now is None else now
    expires = _int_value(claims.get("expired"))
    if 0 < expires < current:
        raise AuthError("Token is expired")

    user_id = claims.get("user_id")
    if f"users/{_format_id(user_id)}" not in session_store:
        raise AuthError("Token is not found in redis")
    return user_id


def trim_json_strings(data: Any) -> Any:
    """Return a copy of decoded JSON with every string stripped of surrounding space."""
    if isinstance(data, str):
        return data.strip()
    if isinstance(data, Mapping):
        return {key: trim_json_strings(value) for key, value in data.items()}
    if isinstance(data, list):
        return [trim_json_strings(item) for item in data]
    return data


def trim_query_params(params: Mapping[str, str | list[str]]) -> dict[str, list[str]]:
    """Return query parameters with stripped values, keys in sorted order."""
    trimmed: dict[str, list[str]] = {}
    for key in sorted(params):
        values = params[key]
        if isinstance(values, str):
            values = [values]
        trimmed[key] = [value.strip() for value in values]
    return trimmed


def parse_thumbnail_args(url: str) -> ThumbnailArgs | None:
    """Read thumbnail arguments from a static URL; None when it asks for no thumbnail."""
    if not (url.startswith("/static/") and f"?{_THUMB_MARKER}" in url):
        return None
    pieces = url.split(_THUMB_MARKER)
    tail = pieces[1] + (_THUMB_MARKER if len(pieces) > 2 else "")
    size = tail.split("/")
    if len(size) != 8:
        raise ValueError("invalid thumb args")
    path = unquote(urlsplit(url).path).lstrip("/")
    return ThumbnailArgs(
        path=path,
        width=_int_value(size[3]),
        height=_int_value(size[5]),
        quality=_int_value(size[7], _DEFAULT_QUALITY),
    )


def _scaled_size(orig_w: int, orig_h: int, width: int, height: int) -> tuple[int, int]:
    if width == 0 and height == 0:
        return orig_w, orig_h
    if width == 0:
        scale = orig_h / height
        return max(1, int(0.7 + orig_w / scale)), height
    if height == 0:
        scale = orig_w / width
        return width, max(1, int(0.7 + orig_h / scale))
    return width, height


def _thumbnail_size(orig_w: int, orig_h: int, max_w: int, max_h: int) -> tuple[int, int]:
    new_w, new_h = orig_w, orig_h
    if max_w >= new_w and max_h >= new_h:
        return new_w, new_h
    if new_w > max_w:
        new_h = max(1, new_h * max_w // new_w)
        new_w = max_w
    if new_h > max_h:
        new_w = max(1, new_w * max_h // new_h)
        new_h = max_h
    return new_w, new_h


def render_thumbnail(file_path: str, args: ThumbnailArgs) -> bytes:
    """Shrink an image file as the arguments ask and return it as JPEG bytes."""
    try:
        with Image.open(file_path) as source:
            source.load()
            image = source.copy()
    except FileNotFoundError as exc:
        raise FileNotFoundError("Image not found") from exc
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError("Error decoding image") from exc

    if args.width == 0 or args.height == 0:
        size = _scaled_size(image.width, image.height, args.width, args.height)
    else:
        size = _thumbnail_size(image.width, image.height, args.width, args.height)
    if size != image.size:
        image = image.resize(size, Image.Resampling.LANCZOS)
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")

    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=min(100, max(1, args.quality)))
    return buffer.getvalue()


def _header(headers: Mapping[str, str], name: str) -> str:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return ""


def _query_value(query: Mapping[str, str | list[str]], name: str) -> str:
    value = query.get(name, "")
    if isinstance(value, list):
        return value[0] if value else ""
    return value


@dataclass
class AppServer:
    """Shared state of the running application."""

    config: AppConfig
    debug: bool = False
    chat_config: ChatConfig | None = None
    sys_config: SystemConfig | None = None
    chat_contexts: LockedMap[str, list[Any]] = field(default_factory=LockedMap)
    chat_session: LockedMap[str, ChatSession] = field(default_factory=LockedMap)
    chat_clients: LockedMap[str, WsClient] = field(default_factory=LockedMap)
    req_cancel_func: LockedMap[str, Any] = field(default_factory=LockedMap)

    def __init__(self, config: AppConfig, debug: bool = False) -> None:
        self.config = config
        self.debug = debug
        self.chat_config = None
        self.sys_config = None
        self.chat_contexts = LockedMap()
        self.chat_session = LockedMap()
        self.chat_clients = LockedMap()
        self.req_cancel_func = LockedMap()

    def load_configs(self, chat_config_json: str, system_config_json: str) -> None:
        """Decode the stored chat and system configs and cache them."""
        self.chat_config = ChatConfig.from_dict(json.loads(chat_config_json))
        self.sys_config = SystemConfig.from_dict(json.loads(system_config_json))

    def authorize(
        self,
        path: str,
        headers: Mapping[str, str],
        query: Mapping[str, str | list[str]],
        session_store: Container[str],
    ) -> Any:
        """Return the logged-in user id, or None for a public path; raise AuthError otherwise."""
        if is_public_path(path):
            return None
        source, name = token_location(path)
        in_query = source == "query"
        if in_query:
            credential = _query_value(query, name)
        else:
            credential = _header(headers, name)
        if not credential:
            raise AuthError(MISSING_AUTH_MSG, BizCode.FAILED)
        return verify_token(credential, self.config.session.secret_key, session_store)