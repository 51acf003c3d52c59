"""Tests for the conversation loop and sessions."""

import asyncio
from typing import Any, Dict, List

import pytest

from toolchat.core.client.errors import NoResponseError, RequestCancelledError, TransportError
from toolchat.core.client.turn import CallConvention, Message, MessageRole, Usage
from toolchat.core.function_calling.conversation_orchestrator import (
    ConversationOrchestrator,
    LoopState,
)
from toolchat.core.function_calling.request_builder import RequestBuilder
from toolchat.core.function_calling.session import ConversationSession, SessionStore
from toolchat.tools.registry import ToolRegistry


def text_reply(content: str, total_tokens: int = 10) -> Dict[str, Any]:
    return {
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": total_tokens - 2, "completion_tokens": 2, "total_tokens": total_tokens},
    }


def structured_reply(name: str, arguments: Any) -> Dict[str, Any]:
    return {
        "choices": [{
            "index": 0,
            "message": {"role": "assistant", "content": "", "function_call": {"name": name, "arguments": arguments}},
            "finish_reason": "function_call",
        }],
    }


class ScriptedTransport:
    """Returns canned replies in order and records every payload."""

    def __init__(self, replies: List[Dict[str, Any]]):
        self.replies = list(replies)
        self.payloads: List[Dict[str, Any]] = []

    async def send(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.payloads.append(payload)
        if not self.replies:
            raise AssertionError("No scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class RepeatingTransport:
    """Always returns the same reply."""

    def __init__(self, reply: Dict[str, Any]):
        self.reply = reply
        self.calls = 0

    async def send(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls += 1
        return self.reply


class HangingTransport:
    """Never answers until cancelled."""

    def __init__(self):
        self.started = asyncio.Event()
        self.cancelled = False

    async def send(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.started.set()
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return {}


@pytest.fixture
def calls():
    return []


@pytest.fixture
def registry(calls):
    registry = ToolRegistry()

    @registry.tool(description="Get the current weather")
    def get_weather(location: str, unit: str = "celsius") -> str:
        calls.append(("get_weather", location, unit))
        return f"{location}: 18 {unit}"

    @registry.tool(description="Always fails")
    def broken(value: str) -> str:
        calls.append(("broken", value))
        raise RuntimeError("boom")

    return registry


def make_orchestrator(transport, registry, convention=CallConvention.INLINE_MARKER, **kwargs):
    return ConversationOrchestrator(
        transport=transport,
        registry=registry,
        request_builder=RequestBuilder("GigaChat", convention=convention),
        **kwargs,
    )


def make_session(max_function_calls: int = 5) -> ConversationSession:
    return ConversationSession.create(
        system_prompt="You are helpful.",
        messages=[Message.user("Weather in Paris?")],
        max_function_calls=max_function_calls,
    )


class TestConversationOrchestrator:

    @pytest.mark.asyncio
    async def test_final_answer_without_calls(self, registry, calls):
        transport = ScriptedTransport([text_reply("Hello!")])
        orchestrator = make_orchestrator(transport, registry)
        session = make_session()

        result = await orchestrator.run(session)

        assert result.text == "Hello!"
        assert result.function_calls_made == 0
        assert result.finish_reason == "stop"
        assert len(transport.payloads) == 1
        assert session.messages[-1].role == MessageRole.ASSISTANT
        assert session.messages[-1].text == "Hello!"
        assert orchestrator.state == LoopState.DONE
        assert calls == []

    @pytest.mark.asyncio
    async def test_inline_call_then_answer(self, registry, calls):
        transport = ScriptedTransport([
            text_reply("CALL_FUNCTION:get_weather:Paris", total_tokens=30),
            text_reply("It is 18 degrees in Paris.", total_tokens=50),
        ])
        orchestrator = make_orchestrator(transport, registry)
        session = make_session()

        result = await orchestrator.run(session)

        assert calls == [("get_weather", "Paris", "celsius")]
        assert result.text == "It is 18 degrees in Paris."
        assert result.function_calls_made == 1
        assert result.tool_results[0].output == "Paris: 18 celsius"
        # Usage is that of the last request only
        assert result.usage.total_token_count == 50
        assert [u.total_token_count for u in session.turn_usages] == [30, 50]

        second_request = transport.payloads[1]["messages"]
        assert second_request[-2] == {
            "role": "assistant",
            "content": "Calling function get_weather with arguments: Paris",
        }
        assert second_request[-1] == {"role": "user", "content": "Function result: Paris: 18 celsius"}

    @pytest.mark.asyncio
    async def test_structured_call(self, registry, calls):
        transport = ScriptedTransport([
            structured_reply("get_weather", {"location": "Oslo", "unit": "fahrenheit"}),
            text_reply("Done"),
        ])
        orchestrator = make_orchestrator(transport, registry, convention=CallConvention.STRUCTURED)
        session = make_session()

        result = await orchestrator.run(session)

        assert calls == [("get_weather", "Oslo", "fahrenheit")]
        assert result.text == "Done"
        assert transport.payloads[0]["function_call"] == "auto"
        assert transport.payloads[1]["messages"][-1] == {
            "role": "function",
            "content": "Oslo: 18 fahrenheit",
            "name": "get_weather",
        }

        record = session.messages[-3]
        assert record.is_function_call
        assert record.function_call.convention == CallConvention.STRUCTURED

    @pytest.mark.asyncio
    async def test_failing_tool_reported_and_loop_continues(self, registry, calls):
        transport = ScriptedTransport([
            text_reply("CALL_FUNCTION:broken:x"),
            text_reply("Sorry, the tool failed."),
        ])
        orchestrator = make_orchestrator(transport, registry)
        session = make_session()

        result = await orchestrator.run(session)

        assert result.text == "Sorry, the tool failed."
        assert result.tool_results[0].success is False
        tool_message = session.messages_with_role(MessageRole.TOOL)[0]
        assert tool_message.text.startswith("Error executing function:")
        assert tool_message.text == "Error executing function: boom"

    @pytest.mark.asyncio
    async def test_bound_of_two(self, registry, calls):
        transport = ScriptedTransport([text_reply(f"CALL_FUNCTION:get_weather:City{i}") for i in range(3)])
        orchestrator = make_orchestrator(transport, registry)
        session = make_session(max_function_calls=2)

        result = await orchestrator.run(session)

        assert len(calls) == 2
        assert result.function_calls_made == 2
        assert result.text == "CALL_FUNCTION:get_weather:City2"
        assert len(transport.payloads) == 3
        assert transport.replies == []

    @pytest.mark.asyncio
    async def test_default_bound_never_exceeded(self, registry, calls):
        transport = RepeatingTransport(text_reply("CALL_FUNCTION:get_weather:Paris"))
        orchestrator = make_orchestrator(transport, registry)
        session = make_session()

        result = await orchestrator.run(session)

        assert session.max_function_calls == 5
        assert len(calls) == 5
        assert result.function_calls_made == 5
        assert transport.calls == 6

    @pytest.mark.asyncio
    async def test_zero_bound_returns_first_reply(self, registry, calls):
        transport = ScriptedTransport([text_reply("CALL_FUNCTION:get_weather:Paris")])
        result = await make_orchestrator(transport, registry).run(make_session(max_function_calls=0))

        assert calls == []
        assert result.text == "CALL_FUNCTION:get_weather:Paris"

    @pytest.mark.asyncio
    async def test_unknown_tool_is_final(self, registry, calls):
        transport = ScriptedTransport([text_reply("CALL_FUNCTION:teleport:Mars")])
        result = await make_orchestrator(transport, registry).run(make_session())

        assert calls == []
        assert result.text == "CALL_FUNCTION:teleport:Mars"

    @pytest.mark.asyncio
    async def test_without_registry_single_request(self, calls):
        transport = ScriptedTransport([text_reply("CALL_FUNCTION:get_weather:Paris")])
        result = await make_orchestrator(transport, None).run(make_session())

        assert result.function_calls_made == 0
        assert "functions" not in transport.payloads[0]

    @pytest.mark.asyncio
    async def test_tool_result_callback(self, registry):
        seen = []
        transport = ScriptedTransport([text_reply("CALL_FUNCTION:get_weather:Paris"), text_reply("ok")])
        orchestrator = make_orchestrator(transport, registry, on_tool_result=seen.append)

        await orchestrator.run(make_session())

        assert [r.tool_name for r in seen] == ["get_weather"]

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, registry):
        transport = ScriptedTransport([TransportError(500, "internal")])
        with pytest.raises(TransportError) as exc_info:
            await make_orchestrator(transport, registry).run(make_session())
        assert exc_info.value.status == 500
        assert exc_info.value.body == "internal"

    @pytest.mark.asyncio
    async def test_empty_reply_raises(self, registry):
        transport = ScriptedTransport([{"choices": []}])
        with pytest.raises(NoResponseError):
            await make_orchestrator(transport, registry).run(make_session())

    @pytest.mark.asyncio
    async def test_abort_while_awaiting_reply(self, registry):
        transport = HangingTransport()
        orchestrator = make_orchestrator(transport, registry)
        abort_signal = asyncio.Event()
        session = make_session()
        message_count = len(session.messages)

        async def abort_when_started():
            await transport.started.wait()
            assert orchestrator.state == LoopState.AWAITING_REPLY
            abort_signal.set()

        aborter = asyncio.create_task(abort_when_started())
        with pytest.raises(RequestCancelledError):
            await orchestrator.run(session, abort_signal=abort_signal)
        await aborter

        assert transport.cancelled is True
        assert len(session.messages) == message_count

    @pytest.mark.asyncio
    async def test_abort_already_set(self, registry):
        transport = ScriptedTransport([text_reply("never")])
        abort_signal = asyncio.Event()
        abort_signal.set()

        with pytest.raises(RequestCancelledError):
            await make_orchestrator(transport, registry).run(make_session(), abort_signal=abort_signal)
        assert transport.payloads == []

    @pytest.mark.asyncio
    async def test_abort_signal_unused_when_not_set(self, registry):
        transport = ScriptedTransport([text_reply("fine")])
        result = await make_orchestrator(transport, registry).run(make_session(), abort_signal=asyncio.Event())
        assert result.text == "fine"


class TestConversationSession:

    def test_create(self):
        session = ConversationSession.create(system_prompt="sys", messages=[Message.user("hi")])
        assert [m.role for m in session.messages] == [MessageRole.SYSTEM, MessageRole.USER]
        assert session.max_function_calls == 5
        assert session.function_call_count == 0
        assert session.session_id

    def test_invocation_bound(self):
        session = ConversationSession(max_function_calls=1)
        assert session.can_invoke()
        session.record_invocation()
        assert not session.can_invoke()

    def test_reset_invocation_budget(self):
        session = ConversationSession(max_function_calls=1)
        session.record_invocation()
        assert not session.can_invoke()

        session.reset_invocation_budget()
        assert session.function_call_count == 0
        assert session.can_invoke()

    def test_negative_bound_rejected(self):
        with pytest.raises(ValueError):
            ConversationSession(max_function_calls=-1)

    def test_record_usage_keeps_last_and_history(self):
        session = ConversationSession()
        session.record_usage(Usage(total_token_count=5))
        session.record_usage(Usage(total_token_count=7))
        assert session.usage.total_token_count == 7
        assert len(session.turn_usages) == 2


class TestSessionStore:

    def test_create_get_drop(self):
        store = SessionStore()
        session = store.create("sys")

        assert session.session_id in store
        assert store.get(session.session_id) is session
        assert len(store) == 1
        assert store.drop(session.session_id) is True
        assert store.drop(session.session_id) is False
        assert store.get(session.session_id) is None

    def test_explicit_id_must_be_unique(self):
        store = SessionStore()
        store.create(session_id="abc")
        with pytest.raises(ValueError):
            store.create(session_id="abc")

    def test_stores_are_independent(self):
        first, second = SessionStore(), SessionStore()
        session = first.create()
        assert session.session_id not in second
