"""Chat API request/response models and tool definitions."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any

from .config import Platform

PROMPT_MSG = "prompt"
REPLY_MSG = "reply"

DEFAULT_MAX_TOKENS = 4096

MODEL_TO_TOKENS: dict[str, int] = {
    "gpt-3.5-turbo": 4096,
    "gpt-3.5-turbo-16k": 16384,
    "gpt-4": 8192,
    "gpt-4-32k": 32768,
    "chatglm_pro": 32768,
    "chatglm_std": 16384,
    "chatglm_lite": 4096,
    "ernie_bot_turbo": 8192,
    "general": 8192,
    "general2": 8192,
    "general3": 8192,
}


def get_model_max_token(model: str) -> int:
    """Return the context size of a model, falling back to 4096."""
    return MODEL_TO_TOKENS.get(model, DEFAULT_MAX_TOKENS)


def _mapping(value: Any, what: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise TypeError(f"{what} must be an object, got {type(value).__name__}")
    return value


def _sequence(value: Any, what: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"{what} must be an array, got {type(value).__name__}")
    return value


def _plain(item: Any) -> Any:
    return asdict(item) if is_dataclass(item) and not isinstance(item, type) else item


@dataclass
class Message:
    role: str = ""
    content: str = ""


@dataclass
class FunctionCall:
    name: str = ""
    arguments: str = ""


@dataclass
class ToolCall:
    type: str = ""
    function: FunctionCall = field(default_factory=FunctionCall)


@dataclass
class Delta:
    role: str = ""
    name: str = ""
    content: Any = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    function_call: FunctionCall = field(default_factory=FunctionCall)


@dataclass
class ChoiceItem:
    delta: Delta = field(default_factory=Delta)
    finish_reason: str = ""


def _function_call(data: Any) -> FunctionCall:
    data = _mapping(data, "function")
    return FunctionCall(
        name=data.get("name") or "", arguments=data.get("arguments") or ""
    )


def _tool_call(data: Any) -> ToolCall:
    data = _mapping(data, "tool call")
    return ToolCall(
        type=data.get("type") or "", function=_function_call(data.get("function"))
    )


def _delta(data: Any) -> Delta:
    data = _mapping(data, "delta")
    return Delta(
        role=data.get("role") or "",
        name=data.get("name") or "",
        content=data.get("content"),
        tool_calls=[_tool_call(item) for item in _sequence(data.get("tool_calls"), "tool_calls")],
        function_call=_function_call(data.get("function_call")),
    )


def _choice(data: Any) -> ChoiceItem:
    data = _mapping(data, "choice")
    return ChoiceItem(
        delta=_delta(data.get("delta")), finish_reason=data.get("finish_reason") or ""
    )


@dataclass
class ApiResponse:
    choices: list[ChoiceItem] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ApiResponse:
        """Build a response from a decoded JSON chunk."""
        data = _mapping(data, "response")
        return cls(choices=[_choice(item) for item in _sequence(data.get("choices"), "choices")])


@dataclass
class ApiRequest:
    model: str = ""
    temperature: float = 0.0
    max_tokens: int = 0
    stream: bool = False
    messages: list[Any] = field(default_factory=list)
    prompt: list[Any] = field(default_factory=list)
    tools: list[Any] = field(default_factory=list)
    functions: list[Any] = field(default_factory=list)
    tool_choice: str = ""
    input: dict[str, Any] = field(default_factory=dict)
    parameters: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body, leaving out empty optional fields."""
        out: dict[str, Any] = {}
        if self.model:
            out["model"] = self.model
        out["temperature"] = self.temperature
        if self.max_tokens:
            out["max_tokens"] = self.max_tokens
        out["stream"] = self.stream
        for key in ("messages", "prompt", "tools", "functions"):
            items = getattr(self, key)
            if items:
                out[key] = [_plain(item) for item in items]
        if self.tool_choice:
            out["tool_choice"] = self.tool_choice
        if self.input:
            out["input"] = dict(self.input)
        if self.parameters:
            out["parameters"] = dict(self.parameters)
        return out


@dataclass
class ChatModel:
    id: int = 0
    platform: Platform | None = None
    value: str = ""
    weight: int = 0


@dataclass
class ChatSession:
    session_id: str = ""
    client_ip: str = ""
    username: str = ""
    user_id: int = 0
    chat_id: str = ""
    model: ChatModel = field(default_factory=ChatModel)

    def to_dict(self) -> dict[str, Any]:
        """Return the session as a JSON-ready dict."""
        return {
            "session_id": self.session_id,
            "client_ip": self.client_ip,
            "username": self.username,
            "user_id": self.user_id,
            "chat_id": self.chat_id,
            "model": {
                "id": self.model.id,
                "platform": self.model.platform.value if self.model.platform else "",
                "value": self.model.value,
                "weight": self.model.weight,
            },
        }


@dataclass
class Property:
    type: str = ""
    description: str = ""


@dataclass
class Parameters:
    type: str = ""
    required: list[str] = field(default_factory=list)
    properties: dict[str, Property] = field(default_factory=dict)


@dataclass
class Function:
    name: str = ""
    description: str = ""
    parameters: Parameters = field(default_factory=Parameters)

    def to_dict(self) -> dict[str, Any]:
        """Return the function definition as a JSON-ready dict."""
        return asdict(self)