"""Tests for request building under both call conventions."""

import pytest

from toolchat.core.client.turn import CallConvention, Message
from toolchat.core.function_calling.request_builder import RequestBuilder, build_tool_catalogue
from toolchat.tools.registry import ToolRegistry
from toolchat.tools.types import ToolDescriptor, ToolParameter


@pytest.fixture
def registry():
    return ToolRegistry([
        ToolDescriptor(
            name="get_weather",
            description="Get the current weather",
            function=lambda location, unit="celsius": location,
            parameters=(
                ToolParameter("location", str, "City name"),
                ToolParameter("unit", str, default="celsius"),
            ),
        ),
    ])


@pytest.fixture
def conversation():
    return [
        Message.system("You are helpful."),
        Message.user("Weather in Paris?"),
        Message.function_call_record("get_weather", {"location": "Paris"}, CallConvention.STRUCTURED),
        Message.tool_result("get_weather", "20C and sunny"),
    ]


class TestStructuredConvention:

    @pytest.fixture
    def builder(self):
        return RequestBuilder("GigaChat", temperature=0.7, max_tokens=1024, convention=CallConvention.STRUCTURED)

    def test_functions_offered(self, builder, registry):
        payload = builder.build([Message.user("hi")], registry).to_payload()

        assert payload["model"] == "GigaChat"
        assert payload["temperature"] == 0.7
        assert payload["max_tokens"] == 1024
        assert payload["function_call"] == "auto"
        assert payload["functions"] == [{
            "name": "get_weather",
            "description": "Get the current weather",
            "parameters": {
                "type": "object",
                "properties": {
                    "location": {"type": "string", "description": "City name"},
                    "unit": {"type": "string"},
                },
                "required": ["location"],
            },
        }]

    def test_call_records_and_results(self, builder, registry, conversation):
        messages = builder.build(conversation, registry).to_payload()["messages"]

        assert messages[0] == {"role": "system", "content": "You are helpful."}
        assert messages[1] == {"role": "user", "content": "Weather in Paris?"}
        assert messages[2] == {
            "role": "assistant",
            "content": "",
            "function_call": {"name": "get_weather", "arguments": {"location": "Paris"}},
        }
        assert messages[3] == {"role": "function", "content": "20C and sunny", "name": "get_weather"}


class TestInlineConvention:

    @pytest.fixture
    def builder(self):
        return RequestBuilder("GigaChat", convention=CallConvention.INLINE_MARKER)

    def test_no_functions_field(self, builder, registry):
        payload = builder.build([Message.user("hi")], registry).to_payload()
        assert "functions" not in payload
        assert "function_call" not in payload
        assert "temperature" not in payload

    def test_catalogue_appended_to_system_message(self, builder, registry, conversation):
        messages = builder.build(conversation, registry).to_payload()["messages"]

        system = messages[0]["content"]
        assert system.startswith("You are helpful.\n\nYou have access to the following functions:")
        assert "Function: get_weather" in system
        assert "Description: Get the current weather" in system
        assert system.endswith(
            "When you need to call a function, respond with: CALL_FUNCTION:function_name:arguments"
        )
        assert len(messages) == len(conversation)

    def test_catalogue_prepended_without_system_message(self, builder, registry):
        messages = builder.build([Message.user("hi")], registry).to_payload()["messages"]
        assert messages[0]["role"] == "system"
        assert "Function: get_weather" in messages[0]["content"]
        assert messages[1] == {"role": "user", "content": "hi"}

    def test_call_records_and_results_as_text(self, builder, registry, conversation):
        messages = builder.build(conversation, registry).to_payload()["messages"]

        assert messages[2] == {
            "role": "assistant",
            "content": 'Calling function get_weather with arguments: {"location": "Paris"}',
        }
        assert messages[3] == {"role": "user", "content": "Function result: 20C and sunny"}

    def test_conversation_not_mutated(self, builder, registry, conversation):
        builder.build(conversation, registry)
        assert conversation[0].text == "You are helpful."

    def test_parameter_summary(self, registry):
        catalogue = build_tool_catalogue(registry)
        assert "Parameters: location (string, required) - City name; unit (string, default: celsius)" in catalogue


class TestPlainCompletion:

    @pytest.mark.parametrize("tools", [None, ToolRegistry()])
    def test_without_tools(self, tools):
        builder = RequestBuilder("GigaChat", convention=CallConvention.STRUCTURED)
        payload = builder.build([Message.system("sys"), Message.user("hi")], tools).to_payload()

        assert "functions" not in payload
        assert payload["messages"] == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "hi"},
        ]
