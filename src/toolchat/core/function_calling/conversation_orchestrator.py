"""Orchestrator for the tool-augmented conversation loop."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from .argument_coercer import ArgumentCoercer
from .function_parser import InterpretedReply, interpret_reply
from .request_builder import RequestBuilder
from .session import ConversationSession
from .tool_executor import ToolExecutionResult, ToolInvoker
from ..client.errors import RequestCancelledError
from ..client.turn import Message, Usage

if TYPE_CHECKING:
    from ..client.transport import Transport
    from ...tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class LoopState(Enum):
    """States of the conversation loop."""
    DRAFTING = "drafting"
    AWAITING_REPLY = "awaiting_reply"
    INTERPRETING = "interpreting"
    INVOKING = "invoking"
    DONE = "done"


@dataclass
class ConversationResult:
    """Final outcome of one run of the loop."""
    text: str
    usage: Usage = field(default_factory=Usage)
    function_calls_made: int = 0
    tool_results: List[ToolExecutionResult] = field(default_factory=list)
    finish_reason: Optional[str] = None
    messages: List[Message] = field(default_factory=list)


class ConversationOrchestrator:
    """Drives request, interpretation and tool invocation until a final answer."""

    def __init__(
        self,
        transport: "Transport",
        registry: Optional["ToolRegistry"],
        request_builder: RequestBuilder,
        coercer: Optional[ArgumentCoercer] = None,
        invoker: Optional[ToolInvoker] = None,
        on_tool_result: Optional[Callable[[ToolExecutionResult], None]] = None,
    ):
        """
        Initialize conversation orchestrator.

        Args:
            transport: Sends one request payload and returns the decoded reply
            registry: Tools the model may call; ``None`` for plain completion
            request_builder: Builds the wire request for each round-trip
            coercer: Maps raw call arguments onto declared parameters
            invoker: Runs tools
            on_tool_result: Called after every tool invocation
        """
        self.transport = transport
        self.registry = registry
        self.request_builder = request_builder
        self.coercer = coercer or ArgumentCoercer()
        self.invoker = invoker or ToolInvoker()
        self.on_tool_result = on_tool_result
        self._state = LoopState.DONE

    @property
    def state(self) -> LoopState:
        return self._state

    def _transition(self, state: LoopState) -> None:
        logger.debug(f"Loop state: {self._state.value} -> {state.value}")
        self._state = state

    async def run(
        self,
        session: ConversationSession,
        abort_signal: Optional[asyncio.Event] = None,
    ) -> ConversationResult:
        """
        Run the loop until the model gives a final answer or the bound is hit.

        Each iteration sends exactly one request. A detected call is invoked
        only while the session's invocation counter is below its bound and the
        tool is registered; otherwise the reply text is final.

        Args:
            session: Conversation to continue; mutated in place
            abort_signal: Setting it abandons the outstanding request

        Returns:
            Final text with usage of the last request

        Raises:
            RequestCancelledError: If the abort signal is set while waiting
            TransportError: If the endpoint rejects a request
            NoResponseError: If a reply has no usable content
        """
        tool_results: List[ToolExecutionResult] = []

        while True:
            self._transition(LoopState.DRAFTING)
            request = self.request_builder.build(session.messages, self.registry)

            self._transition(LoopState.AWAITING_REPLY)
            response = await self._send(request.to_payload(), abort_signal)

            self._transition(LoopState.INTERPRETING)
            reply = interpret_reply(response, self.registry)
            session.record_usage(reply.usage)

            if reply.call is None:
                return self._finish(session, reply, tool_results)

            if not session.can_invoke():
                logger.warning(
                    f"Function call limit of {session.max_function_calls} reached; "
                    f"returning the last reply as final"
                )
                return self._finish(session, reply, tool_results)

            self._transition(LoopState.INVOKING)
            result = await self._invoke(session, reply)
            tool_results.append(result)
            if self.on_tool_result:
                self.on_tool_result(result)

    async def _invoke(self, session: ConversationSession, reply: InterpretedReply) -> ToolExecutionResult:
        call = reply.call
        descriptor = self.registry.get(call.tool_name)
        coerced = self.coercer.coerce(call, descriptor)

        session.append(Message.function_call_record(
            name=call.tool_name,
            arguments=call.raw_arguments,
            convention=call.convention,
            text=reply.text,
        ))
        result = await self.invoker.invoke(descriptor, coerced)
        session.append(Message.tool_result(call.tool_name, result.output))
        session.record_invocation()

        logger.info(
            f"Function call {session.function_call_count}/{session.max_function_calls}: "
            f"{call.tool_name} ({'ok' if result.success else 'failed'})"
        )
        return result

    def _finish(
        self,
        session: ConversationSession,
        reply: InterpretedReply,
        tool_results: List[ToolExecutionResult],
    ) -> ConversationResult:
        self._transition(LoopState.DONE)
        session.append(Message.assistant(reply.text))
        logger.info(f"Conversation loop finished after {len(tool_results)} function call(s)")
        return ConversationResult(
            text=reply.text,
            usage=session.usage,
            function_calls_made=len(tool_results),
            tool_results=tool_results,
            finish_reason=reply.finish_reason,
            messages=list(session.messages),
        )

    async def _send(self, payload: Dict[str, Any], abort_signal: Optional[asyncio.Event]) -> Dict[str, Any]:
        if abort_signal is None:
            return await self.transport.send(payload)

        if abort_signal.is_set():
            raise RequestCancelledError()

        send_task = asyncio.ensure_future(self.transport.send(payload))
        abort_task = asyncio.ensure_future(abort_signal.wait())
        try:
            done, _ = await asyncio.wait({send_task, abort_task}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            send_task.cancel()
            raise
        finally:
            abort_task.cancel()

        if send_task not in done:
            send_task.cancel()
            try:
                await send_task
            except asyncio.CancelledError:
                pass
            logger.info("Request abandoned on abort signal")
            raise RequestCancelledError()

        return send_task.result()
