"""Builds chat-completion requests from a conversation and the registered tools."""

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence

from .function_parser import CALL_FUNCTION_MARKER
from .result_processor import call_record_text, tool_result_text
from .schema_generator import generate_all_function_schemas, is_parameter_required, parameter_json_type
from ..client.turn import CallConvention, Message, MessageRole
from ..client.wire import ChatCompletionRequest, WireFunction, WireFunctionCall, WireMessage

if TYPE_CHECKING:
    from ...tools.registry import ToolRegistry
    from ...tools.types import ToolDescriptor

logger = logging.getLogger(__name__)

CALL_INSTRUCTION = (
    f"When you need to call a function, respond with: {CALL_FUNCTION_MARKER}function_name:arguments"
)


def describe_parameters(descriptor: "ToolDescriptor") -> str:
    """One-line parameter summary used in the inline tool catalogue."""
    parts = []
    for param in descriptor.effective_parameters:
        detail = parameter_json_type(param)
        if is_parameter_required(param):
            detail += ", required"
        elif param.has_default:
            detail += f", default: {param.default}"
        else:
            detail += ", optional"
        text = f"{param.name} ({detail})"
        if param.description:
            text += f" - {param.description}"
        parts.append(text)
    return "; ".join(parts)


def build_tool_catalogue(registry: "ToolRegistry") -> str:
    """
    Describe the registered tools for the inline-marker convention.

    Args:
        registry: Registered tools

    Returns:
        Catalogue text ending with the call instruction
    """
    lines = ["You have access to the following functions:"]
    for descriptor in registry.get_all_tools():
        lines.append(f"Function: {descriptor.name}")
        lines.append(f"Description: {descriptor.description}")
        lines.append(f"Parameters: {describe_parameters(descriptor)}")
        lines.append("")
    lines.append(CALL_INSTRUCTION)
    return "\n".join(lines)


class RequestBuilder:
    """Produces one wire request per conversation round-trip."""

    def __init__(
        self,
        model: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        convention: CallConvention = CallConvention.INLINE_MARKER,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.convention = convention

    def build(
        self,
        messages: Sequence[Message],
        registry: Optional["ToolRegistry"] = None,
    ) -> ChatCompletionRequest:
        """
        Build the request for the current conversation state.

        Args:
            messages: Conversation so far, in order
            registry: Tools to offer; ``None`` or empty means a plain completion

        Returns:
            Wire request
        """
        with_tools = registry is not None and len(registry) > 0
        structured = with_tools and self.convention == CallConvention.STRUCTURED

        wire_messages = [self._to_wire(message, structured) for message in messages]
        functions = None
        function_call = None

        if structured:
            functions = [WireFunction(**schema) for schema in generate_all_function_schemas(registry)]
            function_call = "auto"
        elif with_tools:
            wire_messages = self._with_catalogue(wire_messages, build_tool_catalogue(registry))

        request = ChatCompletionRequest(
            model=self.model,
            messages=wire_messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            functions=functions,
            function_call=function_call,
        )
        logger.debug(
            f"Built request: {len(wire_messages)} messages, "
            f"{len(functions) if functions else 0} functions, convention={self.convention.value}"
        )
        return request

    @staticmethod
    def _to_wire(message: Message, structured: bool) -> WireMessage:
        if message.role == MessageRole.TOOL:
            if structured:
                return WireMessage(role="function", content=message.text, name=message.name)
            return WireMessage(role="user", content=tool_result_text(message.text))

        if message.function_call is not None:
            call = message.function_call
            if structured:
                return WireMessage(
                    role="assistant",
                    content=message.text,
                    function_call=WireFunctionCall(name=call.name, arguments=call.arguments),
                )
            return WireMessage(role="assistant", content=call_record_text(call.name, call.arguments))

        return WireMessage(role=message.role.value, content=message.text)

    @staticmethod
    def _with_catalogue(wire_messages: List[WireMessage], catalogue: str) -> List[WireMessage]:
        for index, wire_message in enumerate(wire_messages):
            if wire_message.role == "system":
                updated = wire_message.model_copy(
                    update={"content": f"{wire_message.content}\n\n{catalogue}" if wire_message.content else catalogue}
                )
                return wire_messages[:index] + [updated] + wire_messages[index + 1:]
        return [WireMessage(role="system", content=catalogue)] + wire_messages
