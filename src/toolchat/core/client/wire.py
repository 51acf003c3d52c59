"""Chat-completion wire format (OpenAI-shaped, as served by GigaChat)."""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class WireFunctionCall(BaseModel):
    """Function call carried on an outgoing assistant message."""
    name: str
    arguments: Union[Dict[str, Any], str] = Field(default_factory=dict)


class WireMessage(BaseModel):
    """Outgoing message."""
    role: str
    content: str = ""
    function_call: Optional[WireFunctionCall] = None
    name: Optional[str] = None


class WireFunction(BaseModel):
    """Function declaration offered to the model."""
    name: str
    description: str = ""
    parameters: Dict[str, Any]


class ChatCompletionRequest(BaseModel):
    """Outgoing chat-completion request."""
    model: str
    messages: List[WireMessage]
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    functions: Optional[List[WireFunction]] = None
    function_call: Optional[Union[str, Dict[str, str]]] = None

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready payload without unset optional fields."""
        return self.model_dump(exclude_none=True)


class ReplyMessage(BaseModel):
    """Message inside a reply choice.

    ``function_call`` is left untyped so malformed calls can be reported
    precisely by the interpreter.
    """
    model_config = ConfigDict(extra="allow")

    role: Optional[str] = None
    content: Optional[str] = None
    function_call: Optional[Any] = None


class ReplyChoice(BaseModel):
    model_config = ConfigDict(extra="allow")

    index: int = 0
    message: ReplyMessage
    finish_reason: Optional[str] = None


class ReplyUsage(BaseModel):
    model_config = ConfigDict(extra="allow")

    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class ChatCompletionResponse(BaseModel):
    """Incoming chat-completion reply."""
    model_config = ConfigDict(extra="allow")

    choices: List[ReplyChoice] = Field(default_factory=list)
    usage: Optional[ReplyUsage] = None
