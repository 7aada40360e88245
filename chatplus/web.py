"""Response envelopes, websocket messages, orders and drawing tasks."""

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from enum import Enum, IntEnum
from typing import Any

OK_MSG = "Success"
ERROR_MSG = "系统开小差了"
INVALID_ARGS = "非法参数或参数解析失败"
NO_DATA = "No Data"


class BizCode(IntEnum):
    SUCCESS = 0
    FAILED = 1
    NOT_AUTHORIZED = 400


class WsMsgType(str, Enum):
    START = "start"
    MIDDLE = "middle"
    END = "end"
    MJ_IMG = "mj"


class OrderStatus(IntEnum):
    NOT_PAID = 0
    SCANNED = 1
    PAID_SUCCESS = 2


class TaskType(str, Enum):
    IMAGE = "image"
    UPSCALE = "upscale"
    VARIATION = "variation"

    def __str__(self) -> str:
        return self.value


def _convert(name: str, value: Any, kind: Any) -> Any:
    if isinstance(kind, type) and is_dataclass(kind):
        return _load(kind, value)
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
    if not isinstance(data, Mapping):
        raise TypeError(f"{cls.__name__}: expected an object, got {type(data).__name__}")
    kwargs = {}
    for f in fields(cls):
        value = data.get(f.name)
        if value is not None:
            kwargs[f.name] = _convert(f.name, value, f.type)
    return cls(**kwargs)


@dataclass
class BizVo:
    code: BizCode = BizCode.SUCCESS
    page: int = 0
    page_size: int = 0
    total: int = 0
    message: str = ""
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Return the envelope, leaving out empty optional fields."""
        out: dict[str, Any] = {"code": int(self.code)}
        for key in ("page", "page_size", "total", "message"):
            value = getattr(self, key)
            if value:
                out[key] = value
        if self.data is not None:
            out["data"] = self.data
        return out


@dataclass
class WsMessage:
    type: WsMsgType = WsMsgType.START
    content: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "content": self.content}


@dataclass
class OrderRemark:
    days: int = 0
    calls: int = 0
    img_calls: int = 0
    name: str = ""
    price: float = 0.0
    discount: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OrderRemark":
        return _load(cls, data)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class MjTask:
    id: int = 0
    channel_id: str = ""
    session_id: str = ""
    type: TaskType = TaskType.IMAGE
    user_id: int = 0
    prompt: str = ""
    index: int = 0
    message_id: str = ""
    message_hash: str = ""
    retry_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Return the task, leaving out empty optional fields."""
        out: dict[str, Any] = {
            "id": self.id,
            "channel_id": self.channel_id,
            "session_id": self.session_id,
            "type": self.type.value,
            "user_id": self.user_id,
        }
        for key in ("prompt", "index", "message_id", "message_hash"):
            value = getattr(self, key)
            if value:
                out[key] = value
        out["retry_count"] = self.retry_count
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MjTask":
        return _load(cls, data)


@dataclass
class SdTaskParams:
    task_id: str = ""
    prompt: str = ""
    negative_prompt: str = ""
    steps: int = 0
    sampler: str = ""
    face_fix: bool = False
    cfg_scale: float = 0.0
    seed: int = 0
    height: int = 0
    width: int = 0
    hd_fix: bool = False
    hd_redraw_rate: float = 0.0
    hd_scale: int = 0
    hd_scale_alg: str = ""
    hd_steps: int = 0


@dataclass
class SdTask:
    id: int = 0
    session_id: str = ""
    type: TaskType = TaskType.IMAGE
    user_id: int = 0
    prompt: str = ""
    params: SdTaskParams = field(default_factory=SdTaskParams)
    retry_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Return the task, leaving out an empty prompt."""
        out: dict[str, Any] = {
            "id": self.id,
            "session_id": self.session_id,
            "type": self.type.value,
            "user_id": self.user_id,
        }
        if self.prompt:
            out["prompt"] = self.prompt
        out["params"] = asdict(self.params)
        out["retry_count"] = self.retry_count
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SdTask":
        return _load(cls, data)