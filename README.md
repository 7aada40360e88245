# chatplus

Building blocks for a chat service that fronts several AI model platforms
(OpenAI, Azure, ChatGLM, Baidu, XunFei, QWen) and streams replies to
browsers over websockets.

## Modules

- `chatplus.config` — the application configuration (`AppConfig` and its
  parts: `Session`, `RedisConfig`, `Manager`, `OSSConfig`, `SMSConfig`,
  `SmtpConfig`, payment settings `AlipayConfig`, `HuPiPayConfig`,
  `JPayConfig`, drawing services `MidJourneyConfig`,
  `MidJourneyPlusConfig`, `StableDiffusionConfig`, and `XXLConfig`), the
  `Platform` enum, and the stored chat and system settings `ChatConfig`
  and `SystemConfig`. `AppConfig.from_dict`, `ChatConfig.from_dict` and
  `SystemConfig.from_dict` build these from decoded TOML or JSON, matching
  keys without regard to case or underscores and raising `TypeError` for a
  value of the wrong type; `ChatConfig.to_dict` and `SystemConfig.to_dict`
  go the other way. `RedisConfig.url()` gives `host:port`.
- `chatplus.chat` — request and response shapes for model APIs
  (`ApiRequest.to_dict`, which leaves out empty optional fields;
  `ApiResponse.from_dict` with `ChoiceItem`, `Delta`, `ToolCall`,
  `FunctionCall`), `Message`, `ChatModel`, `ChatSession`, the
  function-calling schema `Function` / `Parameters` / `Property`, and
  `get_model_max_token`, which gives the context size of a known model and
  4096 for any other.
- `chatplus.web` — the `BizVo` response envelope with its `BizCode` values
  (`SUCCESS` 0, `FAILED` 1, `NOT_AUTHORIZED` 400), `WsMessage` with
  `WsMsgType`, `OrderStatus` and `OrderRemark`, and the drawing task records
  `MjTask`, `SdTask` and `SdTaskParams` with their `TaskType`.
- `chatplus.locked_map` — `LockedMap`, a dictionary guarded by a lock.
- `chatplus.client` — `WsClient`, which wraps any connection object with
  `send`, `recv` and `close` methods, serialises writes, sends `send` data
  as bytes and `send_json` data as a JSON text line, and raises
  `ConnectionClosedError` once `close()` has been called.
- `chatplus.server` — the rules applied to each request: `is_public_path`,
  `token_location`, `cors_headers`, `verify_token`, `trim_query_params`,
  `trim_json_strings`, `parse_thumbnail_args` and `render_thumbnail`, plus
  `AppServer`, which holds the configuration and the shared session,
  client and context maps.

## Examples

```python
from chatplus.chat import get_model_max_token

get_model_max_token("gpt-4")          # 8192
get_model_max_token("unknown-model")  # 4096
```

```python
from chatplus.locked_map import LockedMap

sessions = LockedMap()
sessions.put("abc", "session data")
sessions.has("abc")      # True
sessions.get("abc")      # "session data"
sessions.delete("abc")
sessions.to_list()       # []
```

```python
from chatplus.server import is_public_path, trim_json_strings

is_public_path("/api/user/login")   # True
is_public_path("/api/chat/list")    # False

trim_json_strings({"name": "  alice  ", "tags": [" a ", {"x": " y "}]})
# {"name": "alice", "tags": ["a", {"x": "y"}]}
```

## Authorisation

Outside the public paths, a request must carry an HMAC-signed JWT: admin
API calls (`/api/admin/...`) in the `Admin-Authorization` header,
`/api/chat/new` in the `token` query parameter, and everything else in the
`Authorization` header. `AppServer.authorize(path, headers, query,
session_store)` returns `None` for a public path and otherwise the
token's `user_id` claim. It raises `AuthError` with code `FAILED` when no
token is given, and with code `NOT_AUTHORIZED` when the token does not
verify, its `expired` claim lies in the past, or `users/<user_id>` is not
in `session_store` (any container supporting `in`).

## Thumbnails

`parse_thumbnail_args` reads a URL such as
`/static/img.png?imageView2/1/w/200/h/100/q/80` into a `ThumbnailArgs`
(path, width, height, quality — quality defaults to 75). It returns `None`
for a URL that asks for no thumbnail and raises `ValueError` when the
arguments are malformed. `render_thumbnail` resizes the file with Lanczos
resampling — to fit within both bounds when both are given, otherwise to
the one given with the aspect ratio kept — and returns JPEG bytes; it
raises `FileNotFoundError` for a missing file and `ValueError` for one it
cannot decode.

## What this package does not do

It does not run an HTTP or websocket server, talk to a database or Redis,
or call any model API. `AppServer.load_configs` takes the chat and system
settings as JSON strings, and the session store is whatever container the
caller passes in; wiring these functions into a web framework is left to
the application.

## Running the tests

Install the `test` extra and run `pytest` from the project directory.