"""
Conversation message types for toolchat.

Messages are immutable once created; a session only ever appends them.
"""

from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(Enum):
    """Message roles in a conversation."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class CallConvention(Enum):
    """Wire-level pattern used to signal a function-call request."""
    INLINE_MARKER = "inline_marker"
    STRUCTURED = "structured"


class FunctionCallAnnotation(BaseModel):
    """Structured record of a function call attached to an assistant message."""
    model_config = ConfigDict(frozen=True)

    name: str
    arguments: Union[Dict[str, Any], str] = Field(default_factory=dict)
    convention: CallConvention = CallConvention.STRUCTURED


class Usage(BaseModel):
    """Token usage reported for one request."""
    model_config = ConfigDict(frozen=True)

    input_token_count: Optional[int] = None
    output_token_count: Optional[int] = None
    total_token_count: Optional[int] = None


class Message(BaseModel):
    """A message in a conversation."""
    model_config = ConfigDict(frozen=True)

    role: MessageRole
    text: str = ""
    function_call: Optional[FunctionCallAnnotation] = None
    name: Optional[str] = Field(default=None, description="Tool name for tool results")

    @classmethod
    def system(cls, text: str) -> "Message":
        return cls(role=MessageRole.SYSTEM, text=text)

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(role=MessageRole.USER, text=text)

    @classmethod
    def assistant(cls, text: str) -> "Message":
        return cls(role=MessageRole.ASSISTANT, text=text)

    @classmethod
    def function_call_record(
        cls,
        name: str,
        arguments: Union[Dict[str, Any], str],
        convention: CallConvention,
        text: str = "",
    ) -> "Message":
        """Create the assistant message recording a function call."""
        return cls(
            role=MessageRole.ASSISTANT,
            text=text,
            function_call=FunctionCallAnnotation(name=name, arguments=arguments, convention=convention),
        )

    @classmethod
    def tool_result(cls, name: str, text: str) -> "Message":
        """Create a tool result message."""
        return cls(role=MessageRole.TOOL, text=text, name=name)

    @property
    def is_function_call(self) -> bool:
        return self.function_call is not None
