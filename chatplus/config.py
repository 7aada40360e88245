"""Application, chat and system configuration models."""

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, get_args, get_origin

LOGIN_USER_ID = "LOGIN_USER_ID"
LOGIN_USER_CACHE = "LOGIN_USER_CACHE"

USER_AUTH_HEADER = "Authorization"
ADMIN_AUTH_HEADER = "Admin-Authorization"
CHAT_TOKEN_HEADER = "Chat-Token"


def _normalise(name: str) -> str:
    return name.replace("_", "").lower()


def _convert(value: Any, kind: Any, name: str) -> Any:
    origin = get_origin(kind)
    if isinstance(kind, type) and is_dataclass(kind):
        return _load(kind, value)
    if origin is list:
        (item_kind,) = get_args(kind)
        if not isinstance(value, list):
            raise TypeError(f"{name}: expected a list, got {type(value).__name__}")
        return [_convert(item, item_kind, name) for item in value]
    if origin is dict:
        key_kind, value_kind = get_args(kind)
        if not isinstance(value, Mapping):
            raise TypeError(f"{name}: expected a table, got {type(value).__name__}")
        return {
            _convert(k, key_kind, name): _convert(v, value_kind, name)
            for k, v in value.items()
        }
    if isinstance(kind, type) and issubclass(kind, Enum):
        return kind(value)
    if kind is bool:
        ok = isinstance(value, bool)
    elif kind is int:
        ok = isinstance(value, int) and not isinstance(value, bool)
    elif kind is float:
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    elif kind is str:
        ok = isinstance(value, str)
    else:
        return value
    if not ok:
        raise TypeError(f"{name}: expected {kind.__name__}, got {type(value).__name__}")
    return float(value) if kind is float else value


def _load(cls: type, data: Any) -> Any:
    """Build a dataclass from a mapping, matching keys case-insensitively."""
    if not isinstance(data, Mapping):
        raise TypeError(f"{cls.__name__}: expected a table, got {type(data).__name__}")
    by_key = {_normalise(str(key)): value for key, value in data.items()}
    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        if f.metadata.get("skip"):
            continue
        value = by_key.get(_normalise(f.name))
        if value is None:
            continue
        kwargs[f.name] = _convert(value, f.type, f.name)
    return cls(**kwargs)


class Platform(str, Enum):
    OPENAI = "OpenAI"
    AZURE = "Azure"
    CHATGLM = "ChatGLM"
    BAIDU = "Baidu"
    XUNFEI = "XunFei"
    QWEN = "QWen"


@dataclass
class Session:
    secret_key: str = ""
    max_age: int = 0


@dataclass
class RedisConfig:
    host: str = ""
    port: int = 0
    password: str = ""
    db: int = 0

    def url(self) -> str:
        """Return the host:port address."""
        return f"{self.host}:{self.port}"


@dataclass
class Manager:
    username: str = ""
    password: str = ""


@dataclass
class SmtpConfig:
    host: str = ""
    port: int = 0
    app_name: str = ""
    from_: str = ""
    password: str = ""


@dataclass
class ChatPlusApiConfig:
    api_url: str = ""
    app_id: str = ""
    token: str = ""


@dataclass
class MidJourneyConfig:
    enabled: bool = False
    user_token: str = ""
    bot_token: str = ""
    guild_id: str = ""
    chanel_id: str = ""
    use_cdn: bool = False
    discord_api: str = ""
    discord_gateway: str = ""


@dataclass
class StableDiffusionConfig:
    enabled: bool = False
    api_url: str = ""
    api_key: str = ""
    txt2img_json_path: str = ""


@dataclass
class MidJourneyPlusConfig:
    enabled: bool = False
    api_url: str = ""
    api_key: str = ""
    notify_url: str = ""


@dataclass
class AlipayConfig:
    enabled: bool = False
    sand_box: bool = False
    app_id: str = ""
    user_id: str = ""
    private_key: str = ""
    public_key: str = ""
    alipay_public_key: str = ""
    root_cert: str = ""
    notify_url: str = ""


@dataclass
class HuPiPayConfig:
    enabled: bool = False
    name: str = ""
    app_id: str = ""
    app_secret: str = ""
    api_url: str = ""
    notify_url: str = ""


@dataclass
class JPayConfig:
    enabled: bool = False
    name: str = ""
    app_id: str = ""
    private_key: str = ""
    api_url: str = ""
    notify_url: str = ""


@dataclass
class XXLConfig:
    enabled: bool = False
    server_addr: str = ""
    executor_ip: str = ""
    executor_port: str = ""
    access_token: str = ""
    registry_key: str = ""


@dataclass
class LocalStorageConfig:
    base_path: str = ""
    base_url: str = ""


@dataclass
class MiniOssConfig:
    endpoint: str = ""
    access_key: str = ""
    access_secret: str = ""
    bucket: str = ""
    sub_dir: str = ""
    use_ssl: bool = False
    domain: str = ""


@dataclass
class QiNiuOssConfig:
    zone: str = ""
    access_key: str = ""
    access_secret: str = ""
    bucket: str = ""
    sub_dir: str = ""
    domain: str = ""


@dataclass
class AliYunOssConfig:
    endpoint: str = ""
    access_key: str = ""
    access_secret: str = ""
    bucket: str = ""
    sub_dir: str = ""
    domain: str = ""


@dataclass
class OSSConfig:
    active: str = ""
    local: LocalStorageConfig = field(default_factory=LocalStorageConfig)
    minio: MiniOssConfig = field(default_factory=MiniOssConfig)
    qi_niu: QiNiuOssConfig = field(default_factory=QiNiuOssConfig)
    ali_yun: AliYunOssConfig = field(default_factory=AliYunOssConfig)


@dataclass
class SmsConfigAli:
    access_key: str = ""
    access_secret: str = ""
    product: str = ""
    domain: str = ""
    sign: str = ""
    code_temp_id: str = ""


@dataclass
class SmsConfigBao:
    username: str = ""
    password: str = ""
    domain: str = ""
    sign: str = ""
    code_template: str = ""


@dataclass
class SMSConfig:
    active: str = ""
    ali: SmsConfigAli = field(default_factory=SmsConfigAli)
    bao: SmsConfigBao = field(default_factory=SmsConfigBao)


@dataclass
class AppConfig:
    path: str = field(default="", metadata={"skip": True})
    listen: str = ""
    session: Session = field(default_factory=Session)
    proxy_url: str = ""
    mysql_dns: str = ""
    manager: Manager = field(default_factory=Manager)
    static_dir: str = ""
    static_url: str = ""
    redis: RedisConfig = field(default_factory=RedisConfig)
    api_config: ChatPlusApiConfig = field(default_factory=ChatPlusApiConfig)
    sms: SMSConfig = field(default_factory=SMSConfig)
    oss: OSSConfig = field(default_factory=OSSConfig)
    mj_configs: list[MidJourneyConfig] = field(default_factory=list)
    mj_plus_configs: list[MidJourneyPlusConfig] = field(default_factory=list)
    img_cdn_url: str = ""
    we_chat_bot: bool = False
    sd_configs: list[StableDiffusionConfig] = field(default_factory=list)
    xxl_config: XXLConfig = field(default_factory=XXLConfig)
    alipay_config: AlipayConfig = field(default_factory=AlipayConfig)
    hu_pi_pay_config: HuPiPayConfig = field(default_factory=HuPiPayConfig)
    smtp_config: SmtpConfig = field(default_factory=SmtpConfig)
    j_pay_config: JPayConfig = field(default_factory=JPayConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AppConfig":
        """Build the config from a parsed TOML document; the path is never read."""
        return _load(cls, data)


@dataclass
class ModelAPIConfig:
    temperature: float = 0.0
    max_tokens: int = 0


@dataclass
class ChatConfig:
    open_ai: ModelAPIConfig = field(default_factory=ModelAPIConfig)
    azure: ModelAPIConfig = field(default_factory=ModelAPIConfig)
    chat_gml: ModelAPIConfig = field(default_factory=ModelAPIConfig)
    baidu: ModelAPIConfig = field(default_factory=ModelAPIConfig)
    xun_fei: ModelAPIConfig = field(default_factory=ModelAPIConfig)
    enable_context: bool = False
    enable_history: bool = False
    context_deep: int = 0
    dall_img_num: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChatConfig":
        """Build the chat config from decoded JSON."""
        return _load(cls, data)

    def to_dict(self) -> dict[str, Any]:
        """Return the chat config as a JSON-ready dict."""
        return asdict(self)


@dataclass
class UserChatConfig:
    api_keys: dict[Platform, str] = field(default_factory=dict)


@dataclass
class InviteReward:
    chat_calls: int = 0
    img_calls: int = 0


@dataclass
class SystemConfig:
    title: str = ""
    admin_title: str = ""
    init_chat_calls: int = 0
    init_img_calls: int = 0
    vip_month_calls: int = 0
    vip_month_img_calls: int = 0
    register_ways: list[str] = field(default_factory=list)
    enabled_register: bool = False
    reward_img: str = ""
    enabled_reward: bool = False
    chat_call_price: float = 0.0
    img_call_price: float = 0.0
    order_pay_timeout: int = 0
    default_models: list[str] = field(default_factory=list)
    order_pay_info_text: str = ""
    invite_chat_calls: int = 0
    invite_img_calls: int = 0
    wechat_card_url: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SystemConfig":
        """Build the system config from decoded JSON."""
        return _load(cls, data)

    def to_dict(self) -> dict[str, Any]:
        """Return the system config as a JSON-ready dict."""
        return asdict(self)