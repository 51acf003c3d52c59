"""Interpreter that classifies model replies as final answers or function calls."""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from pydantic import ValidationError

from ..client.errors import MalformedReplyError, NoResponseError
from ..client.turn import CallConvention, Usage
from ..client.wire import ChatCompletionResponse

if TYPE_CHECKING:
    from ...tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

CALL_FUNCTION_MARKER = "CALL_FUNCTION:"

_MARKER_PATTERN = re.compile(r"^[ \t]*" + re.escape(CALL_FUNCTION_MARKER), re.MULTILINE)

RawArguments = Union[Dict[str, Any], str]


@dataclass(frozen=True)
class InlineMarkerCall:
    """Call signalled with ``CALL_FUNCTION:name:arguments`` in the reply text."""
    tool_name: str
    raw_arguments: RawArguments

    @property
    def convention(self) -> CallConvention:
        return CallConvention.INLINE_MARKER


@dataclass(frozen=True)
class StructuredCall:
    """Call carried in the reply's ``function_call`` field."""
    tool_name: str
    raw_arguments: RawArguments

    @property
    def convention(self) -> CallConvention:
        return CallConvention.STRUCTURED


FunctionCallRequest = Union[InlineMarkerCall, StructuredCall]


@dataclass(frozen=True)
class InterpretedReply:
    """A classified model reply."""
    text: str
    call: Optional[FunctionCallRequest] = None
    usage: Usage = field(default_factory=Usage)
    finish_reason: Optional[str] = None

    @property
    def is_function_call(self) -> bool:
        return self.call is not None


def parse_structured_call(function_call: Any) -> StructuredCall:
    """
    Parse a ``function_call`` field into a structured call.

    Args:
        function_call: Value of ``message.function_call``

    Returns:
        Parsed call; arguments are a dict when they are (or contain) a JSON
        object, otherwise the opaque string

    Raises:
        MalformedReplyError: If the field is not an object with a string name
    """
    if not isinstance(function_call, dict):
        raise MalformedReplyError(
            f"function_call must be an object, got {type(function_call).__name__}"
        )

    name = function_call.get("name")
    if not isinstance(name, str) or not name.strip():
        raise MalformedReplyError("function_call is missing a function name")

    arguments = function_call.get("arguments")
    if arguments is None:
        raw_arguments: RawArguments = {}
    elif isinstance(arguments, dict):
        raw_arguments = arguments
    elif isinstance(arguments, str):
        raw_arguments = _decode_object(arguments)
    else:
        raw_arguments = json.dumps(arguments, ensure_ascii=False)

    return StructuredCall(tool_name=name.strip(), raw_arguments=raw_arguments)


def parse_inline_call(text: str) -> Optional[InlineMarkerCall]:
    """
    Find an inline ``CALL_FUNCTION:name:arguments`` call in reply text.

    The marker must open the reply or one of its lines. The first colon after
    the function name separates it from the arguments, so arguments may
    contain colons themselves.
    """
    if not text:
        return None

    match = _MARKER_PATTERN.search(text)
    if not match:
        return None

    remainder = text[match.end():]
    name, _, arguments = remainder.partition(":")
    name = name.strip()
    if not name or any(ch.isspace() for ch in name):
        return None

    return InlineMarkerCall(tool_name=name, raw_arguments=arguments.strip())


def _decode_object(raw: str) -> RawArguments:
    stripped = raw.strip()
    if stripped.startswith("{"):
        try:
            decoded = json.loads(stripped)
        except json.JSONDecodeError:
            return raw
        if isinstance(decoded, dict):
            return decoded
    return raw


def interpret_reply(
    response: Dict[str, Any],
    registry: Optional["ToolRegistry"] = None,
) -> InterpretedReply:
    """
    Classify a chat-completion reply.

    The structured ``function_call`` field is checked first; only when it is
    absent is the text scanned for the inline marker. A call naming a tool
    the registry does not hold is treated as a final answer.

    Args:
        response: Decoded JSON reply
        registry: Registered tools; without one every reply is final

    Returns:
        Interpreted reply

    Raises:
        NoResponseError: If the reply has no choices or an invalid shape
        MalformedReplyError: If a structured call cannot be read
    """
    try:
        parsed = ChatCompletionResponse.model_validate(response)
    except ValidationError as e:
        raise NoResponseError(f"Unreadable model reply: {e.error_count()} validation error(s)", original_error=e)

    if not parsed.choices:
        raise NoResponseError()

    choice = parsed.choices[0]
    text = choice.message.content or ""
    usage = Usage(
        input_token_count=parsed.usage.prompt_tokens if parsed.usage else None,
        output_token_count=parsed.usage.completion_tokens if parsed.usage else None,
        total_token_count=parsed.usage.total_tokens if parsed.usage else None,
    )

    call: Optional[FunctionCallRequest] = None
    if choice.message.function_call is not None:
        call = parse_structured_call(choice.message.function_call)
    else:
        call = parse_inline_call(text)

    if call is not None and (registry is None or not registry.has_tool(call.tool_name)):
        logger.debug(f"Ignoring call to unknown tool '{call.tool_name}'")
        call = None

    return InterpretedReply(text=text, call=call, usage=usage, finish_reason=choice.finish_reason)
