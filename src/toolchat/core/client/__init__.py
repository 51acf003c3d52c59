"""
Client layer for toolchat.

Wire models, authentication, transport, streaming and error types. The
high-level ``ChatClient`` lives in ``toolchat.core.client.chat_client``.
"""

from .errors import (
    ToolChatError,
    AuthenticationError,
    ConfigurationError,
    TransportError,
    NetworkError,
    TimeoutError,
    NoResponseError,
    MalformedReplyError,
    RequestCancelledError,
    classify_error,
    create_user_friendly_message,
)
from .turn import (
    CallConvention,
    FunctionCallAnnotation,
    Message,
    MessageRole,
    Usage,
)
from .wire import ChatCompletionRequest, ChatCompletionResponse
from .auth import AuthProvider, OAuthTokenProvider, StaticTokenProvider
from .transport import HttpxTransport, Transport
from .streaming import (
    StreamEvent,
    StreamingEvent,
    ContentStreamEvent,
    FinishedStreamEvent,
    UserCancelledEvent,
    split_into_chunks,
    stream_events,
    stream_text,
)
from .structured import (
    StructuredResponse,
    clean_json_string,
    extract_json_from_response,
    parse_structured_response,
)

__all__ = [
    # Errors
    "ToolChatError",
    "AuthenticationError",
    "ConfigurationError",
    "TransportError",
    "NetworkError",
    "TimeoutError",
    "NoResponseError",
    "MalformedReplyError",
    "RequestCancelledError",
    "classify_error",
    "create_user_friendly_message",
    # Messages
    "CallConvention",
    "FunctionCallAnnotation",
    "Message",
    "MessageRole",
    "Usage",
    # Wire
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    # Auth and transport
    "AuthProvider",
    "OAuthTokenProvider",
    "StaticTokenProvider",
    "HttpxTransport",
    "Transport",
    # Streaming
    "StreamEvent",
    "StreamingEvent",
    "ContentStreamEvent",
    "FinishedStreamEvent",
    "UserCancelledEvent",
    "split_into_chunks",
    "stream_events",
    "stream_text",
    # Structured output
    "StructuredResponse",
    "clean_json_string",
    "extract_json_from_response",
    "parse_structured_response",
]
