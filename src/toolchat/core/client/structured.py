"""Structured (JSON) output: extract, clean and validate JSON from model text."""

import json
import logging
import re
from dataclasses import dataclass
from typing import Generic, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCE_OPEN = "```json"
_FENCE_CLOSE = "```"
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


@dataclass
class StructuredResponse(Generic[ModelT]):
    """Parsed structured reply; ``result`` is None when the text did not validate."""
    text: str
    result: Optional[ModelT] = None
    error: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.result is not None


def strip_line_comment(line: str) -> str:
    """Remove a ``//`` comment that starts outside a JSON string."""
    in_string = False
    escape_next = False
    for i, ch in enumerate(line):
        if escape_next:
            escape_next = False
            continue
        if ch == "\\":
            escape_next = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if not in_string and line.startswith("//", i):
            return line[:i].rstrip()
    return line


def clean_json_string(json_text: str) -> str:
    """
    Make near-JSON parseable.

    Drops ``//`` comments outside strings, blank lines, and trailing commas
    before a closing brace or bracket.
    """
    lines = [strip_line_comment(line) for line in json_text.split("\n")]
    cleaned = "\n".join(line for line in lines if line.strip())
    return _TRAILING_COMMA.sub(r"\1", cleaned)


def extract_json_from_response(content: str) -> str:
    """
    Pull the JSON part out of a model reply.

    A fenced ``json`` block wins; otherwise the text between the first ``{``
    and the last ``}``. Without either, the content is returned unchanged.
    """
    start = content.lower().find(_FENCE_OPEN)
    if start != -1:
        start += len(_FENCE_OPEN)
        end = content.find(_FENCE_CLOSE, start)
        if end != -1:
            return clean_json_string(content[start:end].strip())

    open_brace = content.find("{")
    close_brace = content.rfind("}")
    if open_brace != -1 and close_brace > open_brace:
        return clean_json_string(content[open_brace:close_brace + 1].strip())

    return content


def json_instruction(model_type: Type[BaseModel]) -> str:
    """System instruction asking for JSON matching ``model_type``."""
    schema = json.dumps(model_type.model_json_schema(), ensure_ascii=False)
    return (
        "Respond only with a JSON object that matches this JSON schema, "
        f"without comments or extra text:\n{schema}"
    )


def parse_structured_response(text: str, model_type: Type[ModelT]) -> StructuredResponse[ModelT]:
    """
    Validate the JSON found in ``text`` against ``model_type``.

    Args:
        text: Raw model reply
        model_type: Pydantic model to validate against

    Returns:
        Response with ``result`` set on success, the raw text always kept
    """
    json_text = extract_json_from_response(text)
    try:
        result = model_type.model_validate_json(json_text)
    except ValidationError as e:
        logger.warning(f"Structured reply did not match {model_type.__name__}: {e.error_count()} error(s)")
        return StructuredResponse(text=text, error=str(e))
    return StructuredResponse(text=text, result=result)
