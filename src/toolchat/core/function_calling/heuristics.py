"""
Heuristic mapping of under-specified tool arguments.

Models sometimes answer a multi-parameter function with a single free-text
``input`` value ("100 usd to eur"). The mapper spreads that text over the
declared parameters deterministically. Values it fills in are reported as
inferred so callers can tell them apart from genuine arguments.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Set, Tuple

from .conversion import convert_text_value, parse_number
from .schema_generator import NUMERIC_TYPES, STRING, parameter_json_type
from ...tools.types import ToolDescriptor

logger = logging.getLogger(__name__)

_TOKEN_SPLIT = re.compile(r"[\s,]+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

DEFAULT_PLACEHOLDER_RULES: Tuple[Tuple[str, str], ...] = (
    ("from", "USD"),
    ("to", "EUR"),
    ("currency", "USD"),
    ("location", "Moscow"),
    ("city", "Moscow"),
    ("place", "Moscow"),
    ("unit", "celsius"),
)


def split_parameter_name(name: str) -> List[str]:
    """Split a camelCase or snake_case parameter name into lowercase words."""
    words = []
    for chunk in re.split(r"[_\-\s]+", name):
        words.extend(part.lower() for part in _CAMEL_BOUNDARY.split(chunk) if part)
    return words


@dataclass(frozen=True)
class PlaceholderPolicy:
    """
    Keyword rules that supply stand-in values for unfilled string parameters.

    Rules are checked in order; the first keyword found among the words of a
    parameter name wins.
    """
    rules: Tuple[Tuple[str, str], ...] = DEFAULT_PLACEHOLDER_RULES

    def placeholder_for(self, parameter_name: str) -> Optional[str]:
        words = split_parameter_name(parameter_name)
        for keyword, value in self.rules:
            if keyword in words:
                return value
        return None

    def with_rule(self, keyword: str, value: str) -> "PlaceholderPolicy":
        """Return a copy with ``keyword`` taking precedence over existing rules."""
        return PlaceholderPolicy(rules=((keyword.lower(), value),) + self.rules)


@dataclass
class HeuristicMapping:
    """Result of spreading free text over a descriptor's parameters."""
    values: Dict[str, Any] = field(default_factory=dict)
    inferred: Set[str] = field(default_factory=set)
    defaulted: Set[str] = field(default_factory=set)


class ArgumentHeuristic(Protocol):
    """Replaceable strategy for under-specified calls."""

    def map(self, text: str, descriptor: ToolDescriptor) -> HeuristicMapping:
        ...


class HeuristicArgumentMapper:
    """Default heuristic: defaults, then the first number, then placeholders."""

    def __init__(self, policy: Optional[PlaceholderPolicy] = None):
        self.policy = policy or PlaceholderPolicy()

    def map(self, text: str, descriptor: ToolDescriptor) -> HeuristicMapping:
        """
        Spread ``text`` over the descriptor's parameters.

        Args:
            text: The free-text argument value
            descriptor: Target tool

        Returns:
            Mapping of filled values with inferred and defaulted names
        """
        mapping = HeuristicMapping()
        parameters = descriptor.effective_parameters

        if len(parameters) == 1:
            param = parameters[0]
            mapping.values[param.name] = convert_text_value(text, parameter_json_type(param))
            return mapping

        tokens = [token for token in _TOKEN_SPLIT.split(text.strip()) if token]

        for param in parameters:
            if param.has_default:
                mapping.values[param.name] = param.default
                mapping.defaulted.add(param.name)

        first_number = next(
            (number for number in (parse_number(token) for token in tokens) if number is not None),
            None,
        )
        if first_number is not None:
            for param in parameters:
                if parameter_json_type(param) in NUMERIC_TYPES:
                    mapping.values[param.name] = first_number
                    mapping.defaulted.discard(param.name)
                    mapping.inferred.add(param.name)
                    break

        for param in parameters:
            if param.name in mapping.values or parameter_json_type(param) != STRING:
                continue
            placeholder = self.policy.placeholder_for(param.name)
            if placeholder is not None:
                mapping.values[param.name] = placeholder
                mapping.inferred.add(param.name)

        if mapping.inferred:
            logger.debug(
                f"Heuristic mapping for '{descriptor.name}' inferred {sorted(mapping.inferred)} from {text!r}"
            )
        return mapping
