"""Conversation message models and conversion to the litellm wire shape.

Message content is either plain text or a list of typed parts. Parts are
discriminated by their ``type`` field: ``text`` and ``tool_result`` get
dedicated models, every other part type (images, audio, ...) is carried
through untouched as ``OtherPart``.
"""

import json
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Tag, TypeAdapter, ValidationError

from relaybot.utils.log import get_logger

logger = get_logger()

MessageRole = Literal["system", "user", "assistant", "tool", "function"]
_ROLES = ("system", "user", "assistant", "tool", "function")


class TextPart(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["text"] = "text"
    text: str


class ToolResultPart(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: Optional[str] = None
    content: Any = None
    is_error: Optional[bool] = None


class OtherPart(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str


def _part_kind(value: Any) -> str:
    kind = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    if kind in ("text", "tool_result"):
        return kind
    return "other"


ContentPart = Annotated[
    Union[
        Annotated[TextPart, Tag("text")],
        Annotated[ToolResultPart, Tag("tool_result")],
        Annotated[OtherPart, Tag("other")],
    ],
    Discriminator(_part_kind),
]
MessageBody = Union[str, List[ContentPart]]


class FunctionCall(BaseModel):
    name: str
    arguments: str = ""


class WireToolCall(BaseModel):
    id: str
    type: Literal["function"] = "function"
    function: FunctionCall


class ConversationMessage(BaseModel):
    """One chat message in the OpenAI-style shape litellm accepts."""

    model_config = ConfigDict(extra="allow")

    role: MessageRole
    content: Optional[MessageBody] = None
    name: Optional[str] = None
    tool_call_id: Optional[str] = None
    tool_calls: Optional[List[WireToolCall]] = None
    function_call: Optional[FunctionCall] = None

    def to_wire(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_none=True)
        data.setdefault("content", None)
        return data


class ToolFunction(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    description: Optional[str] = None
    parameters: Optional[Dict[str, Any]] = None


class ToolDefinition(BaseModel):
    """OpenAI function-tool definition."""

    model_config = ConfigDict(extra="allow")

    type: Literal["function"] = "function"
    function: ToolFunction


_PARTS_ADAPTER: TypeAdapter[List[ContentPart]] = TypeAdapter(List[ContentPart])
_TOOL_CALLS_ADAPTER: TypeAdapter[List[WireToolCall]] = TypeAdapter(List[WireToolCall])


def _map_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Build a wire message field by field, dropping only the fields that fail to parse."""
    role = fields.get("role")
    message: Dict[str, Any] = {"role": role if role in _ROLES else "user", "content": None}

    content = fields.get("content")
    if isinstance(content, str):
        message["content"] = content
    elif isinstance(content, list):
        try:
            parts = _PARTS_ADAPTER.validate_python(content)
        except ValidationError as exc:
            logger.debug(
                "[messages] Dropping unparseable content parts",
                extra={"role": message["role"], "error_count": exc.error_count()},
            )
        else:
            message["content"] = [part.model_dump(exclude_none=True) for part in parts]

    for key in ("name", "tool_call_id"):
        value = fields.get(key)
        if isinstance(value, str):
            message[key] = value

    raw_tool_calls = fields.get("tool_calls")
    if raw_tool_calls is not None:
        try:
            tool_calls = _TOOL_CALLS_ADAPTER.validate_python(raw_tool_calls)
        except ValidationError:
            logger.debug(
                "[messages] Dropping unparseable tool_calls",
                extra={"role": message["role"]},
            )
        else:
            message["tool_calls"] = [call.model_dump() for call in tool_calls]

    raw_function_call = fields.get("function_call")
    if raw_function_call is not None:
        try:
            message["function_call"] = FunctionCall.model_validate(raw_function_call).model_dump()
        except ValidationError:
            logger.debug(
                "[messages] Dropping unparseable function_call",
                extra={"role": message["role"]},
            )

    return message


def to_wire_message(raw: Union[ConversationMessage, Mapping[str, Any], Any]) -> Dict[str, Any]:
    """Convert a caller message into the wire dict sent to litellm."""
    if isinstance(raw, ConversationMessage):
        return raw.to_wire()
    if not isinstance(raw, Mapping):
        return _map_fields({})
    try:
        return ConversationMessage.model_validate(raw).to_wire()
    except ValidationError:
        return _map_fields(raw)


def parse_tool_definitions(tools: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep only well-formed function tool definitions."""
    parsed: List[Dict[str, Any]] = []
    for item in tools:
        try:
            ToolDefinition.model_validate(item)
        except ValidationError:
            logger.debug(
                "[messages] Skipping malformed tool definition",
                extra={"preview": str(item)[:200]},
            )
            continue
        parsed.append(item)
    return parsed


def _field(obj: Any, key: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def content_to_text(content: Any) -> Optional[str]:
    """Flatten reply content to text; parts other than text and tool results are skipped."""
    if content is None:
        return None
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return None

    chunks: List[str] = []
    for part in content:
        kind = _part_kind(part)
        if kind == "text":
            text = _field(part, "text")
            if isinstance(text, str):
                chunks.append(text)
        elif kind == "tool_result":
            result = _field(part, "content")
            if isinstance(result, str):
                chunks.append(result)
            elif result is not None:
                chunks.append(json.dumps(result, ensure_ascii=False, default=str))
    return "\n".join(chunks)
