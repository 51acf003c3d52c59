"""Tests for structured JSON output parsing."""

from typing import List

import pytest
from pydantic import BaseModel

from toolchat.core.client.structured import (
    clean_json_string,
    extract_json_from_response,
    json_instruction,
    parse_structured_response,
    strip_line_comment,
)


class Trail(BaseModel):
    name: str
    length_km: float
    tags: List[str] = []


class TestCleaning:

    def test_comment_outside_string_removed(self):
        assert strip_line_comment('"a": 1, // the answer') == '"a": 1,'

    def test_comment_marker_inside_string_kept(self):
        line = '"url": "https://example.com/path"'
        assert strip_line_comment(line) == line

    def test_escaped_quote_inside_string(self):
        line = r'"q": "say \"hi\" // not a comment"'
        assert strip_line_comment(line) == line

    def test_trailing_commas_and_blank_lines(self):
        text = '{\n  "a": [1, 2,],\n\n  "b": 3,\n}'
        assert clean_json_string(text) == '{\n  "a": [1, 2],\n  "b": 3\n}'


class TestExtraction:

    def test_fenced_block_wins(self):
        content = 'Here you go {"ignored": true}\n```json\n{"name": "Ridge"}\n```\nEnjoy!'
        assert extract_json_from_response(content) == '{"name": "Ridge"}'

    def test_fence_is_case_insensitive(self):
        assert extract_json_from_response('```JSON\n{"a": 1}\n```') == '{"a": 1}'

    def test_outermost_braces(self):
        content = 'Result: {"a": {"b": 1}} done'
        assert extract_json_from_response(content) == '{"a": {"b": 1}}'

    def test_no_json_returns_content(self):
        assert extract_json_from_response("no json here") == "no json here"


class TestParseStructuredResponse:

    def test_valid_with_comments(self):
        text = """Sure!
```json
{
  "name": "Lake Loop", // popular
  "length_km": 4.5,
  "tags": ["easy", "lake",],
}
```"""
        response = parse_structured_response(text, Trail)

        assert response.is_valid
        assert response.result == Trail(name="Lake Loop", length_km=4.5, tags=["easy", "lake"])
        assert response.text == text
        assert response.error is None

    def test_schema_mismatch(self):
        response = parse_structured_response('{"name": "Ridge"}', Trail)
        assert not response.is_valid
        assert response.result is None
        assert "length_km" in response.error

    @pytest.mark.parametrize("text", ["", "not json at all", "{broken"])
    def test_unparseable_text(self, text):
        response = parse_structured_response(text, Trail)
        assert response.result is None
        assert response.text == text

    def test_instruction_embeds_schema(self):
        instruction = json_instruction(Trail)
        assert instruction.startswith("Respond only with a JSON object")
        assert '"length_km"' in instruction
