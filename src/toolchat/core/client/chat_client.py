"""
Main chat client for toolchat.

Coordinates authentication, transport, the function-calling loop, simulated
streaming and structured output behind one object.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator, Dict, List, Optional, Sequence, Type, Union

from .auth import AuthProvider, OAuthTokenProvider, StaticTokenProvider
from .errors import ConfigurationError, RequestCancelledError, classify_error
from .streaming import StreamingEvent, stream_events, stream_text
from .structured import ModelT, StructuredResponse, json_instruction, parse_structured_response
from .transport import HttpxTransport, Transport
from .turn import Message, Usage
from ..function_calling.conversation_orchestrator import ConversationOrchestrator, ConversationResult
from ..function_calling.request_builder import RequestBuilder
from ..function_calling.session import ConversationSession
from ..function_calling.tool_executor import ToolExecutionResult
from ...config.settings import ToolChatSettings, get_settings
from ...tools.registry import ToolRegistry
from ...tools.types import ToolDescriptor

logger = logging.getLogger(__name__)

MessagesInput = Union[str, Message, Sequence[Message]]
ToolsInput = Union[ToolRegistry, Sequence[ToolDescriptor], None]


@dataclass
class ChatResponse:
    """Answer returned by the chat client."""
    text: str
    usage: Usage = field(default_factory=Usage)
    function_calls_made: int = 0
    messages: List[Message] = field(default_factory=list)
    tool_results: List[ToolExecutionResult] = field(default_factory=list)
    finish_reason: Optional[str] = None

    @classmethod
    def from_result(cls, result: ConversationResult) -> "ChatResponse":
        return cls(
            text=result.text,
            usage=result.usage,
            function_calls_made=result.function_calls_made,
            messages=result.messages,
            tool_results=result.tool_results,
            finish_reason=result.finish_reason,
        )


def _as_messages(messages: MessagesInput) -> List[Message]:
    if isinstance(messages, str):
        return [Message.user(messages)]
    if isinstance(messages, Message):
        return [messages]
    return list(messages)


def _as_registry(tools: ToolsInput) -> Optional[ToolRegistry]:
    if tools is None or isinstance(tools, ToolRegistry):
        return tools
    return ToolRegistry(list(tools))


class ChatClient:
    """
    Chat client with tool calling.

    Usage::

        async with ChatClient(settings) as client:
            response = await client.get_response("What's the weather in Paris?", tools=registry)
    """

    def __init__(
        self,
        settings: Optional[ToolChatSettings] = None,
        transport: Optional[Transport] = None,
        auth_provider: Optional[AuthProvider] = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Configuration; loaded from the environment when omitted
            transport: Ready transport; skips authentication when given
            auth_provider: Token provider; chosen from settings when omitted
        """
        self.settings = settings or get_settings()
        self._transport = transport
        self._auth_provider = auth_provider
        self._owns_transport = transport is None
        self._initialized = transport is not None

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def _select_auth_provider(self) -> AuthProvider:
        if self._auth_provider is not None:
            return self._auth_provider
        if self.settings.access_token:
            return StaticTokenProvider(self.settings.access_token)
        if self.settings.credentials:
            return OAuthTokenProvider(
                auth_url=self.settings.auth_url,
                scope=self.settings.scope,
                timeout=self.settings.timeout,
                verify_ssl=self.settings.verify_ssl,
            )
        raise ConfigurationError(
            "No credentials configured. Set TOOLCHAT_CREDENTIALS or TOOLCHAT_ACCESS_TOKEN.",
            config_field="credentials",
        )

    async def initialize(self) -> None:
        """Obtain the bearer token once and create the transport."""
        if self._initialized:
            return

        try:
            provider = self._select_auth_provider()
            token = await provider.get_token(self.settings.credentials)
        except Exception as e:
            error = classify_error(e)
            logger.error(f"Failed to initialize chat client: {error}")
            raise error

        self._transport = HttpxTransport(
            token=token,
            base_url=self.settings.base_url,
            timeout=self.settings.timeout,
            verify_ssl=self.settings.verify_ssl,
        )
        self._initialized = True
        logger.info(f"Initialized chat client for model {self.settings.model} at {self.settings.base_url}")

    async def aclose(self) -> None:
        if self._owns_transport and isinstance(self._transport, HttpxTransport):
            await self._transport.aclose()
        if self._owns_transport:
            self._transport = None
            self._initialized = False

    async def __aenter__(self) -> "ChatClient":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def create_session(
        self,
        messages: MessagesInput = (),
        system_prompt: Optional[str] = None,
        max_function_calls: Optional[int] = None,
    ) -> ConversationSession:
        """Start a session bounded by the configured function-call limit."""
        return ConversationSession.create(
            system_prompt=system_prompt,
            messages=_as_messages(messages),
            max_function_calls=(
                self.settings.max_function_calls if max_function_calls is None else max_function_calls
            ),
        )

    def _orchestrator(self, registry: Optional[ToolRegistry], on_tool_result=None) -> ConversationOrchestrator:
        builder = RequestBuilder(
            model=self.settings.model,
            temperature=self.settings.temperature,
            max_tokens=self.settings.max_tokens,
            convention=self.settings.call_convention,
        )
        return ConversationOrchestrator(
            transport=self._transport,
            registry=registry,
            request_builder=builder,
            on_tool_result=on_tool_result,
        )

    async def get_response(
        self,
        messages: MessagesInput,
        tools: ToolsInput = None,
        abort_signal: Optional[asyncio.Event] = None,
        session: Optional[ConversationSession] = None,
        on_tool_result=None,
    ) -> ChatResponse:
        """
        Get the model's answer, running tools it asks for.

        Without tools a single request is made. With tools the conversation
        loop runs until a final answer or the function-call limit.

        Args:
            messages: A user prompt or a message sequence
            tools: Registry or descriptors the model may call
            abort_signal: Setting it cancels the outstanding request
            session: Existing session to continue; ``messages`` are appended
            on_tool_result: Called after every tool invocation

        Returns:
            Final answer with usage of the last request

        Raises:
            RequestCancelledError: If cancelled through ``abort_signal``
            ToolChatError: On authentication, transport or reply failures
        """
        await self.initialize()

        if session is None:
            session = self.create_session(messages)
        else:
            for message in _as_messages(messages):
                session.append(message)

        orchestrator = self._orchestrator(_as_registry(tools), on_tool_result)
        try:
            result = await orchestrator.run(session, abort_signal=abort_signal)
        except RequestCancelledError:
            raise
        except Exception as e:
            error = classify_error(e)
            logger.error(f"Chat request failed: {error}")
            raise error

        return ChatResponse.from_result(result)

    async def get_streaming_response(
        self,
        messages: MessagesInput,
        tools: ToolsInput = None,
        abort_signal: Optional[asyncio.Event] = None,
        session: Optional[ConversationSession] = None,
    ) -> AsyncGenerator[str, None]:
        """Get the final answer, then emit it in chunks."""
        response = await self.get_response(messages, tools, abort_signal, session)
        async for chunk in stream_text(
            response.text,
            chunk_size=self.settings.stream_chunk_size,
            delay=self.settings.stream_chunk_delay,
            abort_signal=abort_signal,
        ):
            yield chunk

    async def get_streaming_events(
        self,
        messages: MessagesInput,
        tools: ToolsInput = None,
        abort_signal: Optional[asyncio.Event] = None,
        session: Optional[ConversationSession] = None,
        on_tool_result=None,
    ) -> AsyncGenerator[StreamingEvent, None]:
        """Like ``get_streaming_response`` but yields typed events with a terminal event."""
        response = await self.get_response(messages, tools, abort_signal, session, on_tool_result)
        metadata: Dict[str, Any] = {
            "usage": response.usage.model_dump(),
            "function_calls_made": response.function_calls_made,
            "finish_reason": response.finish_reason,
        }
        async for event in stream_events(
            response.text,
            chunk_size=self.settings.stream_chunk_size,
            delay=self.settings.stream_chunk_delay,
            abort_signal=abort_signal,
            metadata=metadata,
        ):
            yield event

    async def get_structured_response(
        self,
        messages: MessagesInput,
        model_type: Type[ModelT],
        abort_signal: Optional[asyncio.Event] = None,
    ) -> StructuredResponse[ModelT]:
        """
        Ask for JSON matching ``model_type`` and validate the answer.

        Args:
            messages: A user prompt or a message sequence
            model_type: Pydantic model describing the expected object
            abort_signal: Setting it cancels the outstanding request

        Returns:
            Structured response; ``result`` is None if validation failed
        """
        request_messages = [Message.system(json_instruction(model_type))] + _as_messages(messages)
        response = await self.get_response(request_messages, abort_signal=abort_signal)
        return parse_structured_response(response.text, model_type)
