"""
Argument coercion: turn a model's raw call arguments into typed call values.

Raw arguments arrive either as a JSON object or as an opaque string. They are
resolved in a fixed priority order:

1. a JSON object (or a string holding one) is copied key by key;
2. an object whose only key is ``input`` is treated as under-specified and
   handed to the heuristic mapper;
3. any other string is split on commas and assigned positionally;
4. every parameter still missing falls back to its declared default.

Coercion never raises. Whatever is still missing afterwards is reported by
the tool invoker.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Union

from .conversion import convert_json_value
from .function_parser import FunctionCallRequest
from .heuristics import ArgumentHeuristic, HeuristicArgumentMapper
from .schema_generator import is_parameter_required, parameter_json_type
from ...tools.types import FALLBACK_PARAMETER_NAME, ToolDescriptor

logger = logging.getLogger(__name__)

_QUOTE_CHARS = "\"'`"


@dataclass
class CoercedArguments:
    """Typed arguments ready for invocation."""
    values: Dict[str, Any] = field(default_factory=dict)
    defaulted: Set[str] = field(default_factory=set)
    inferred: Set[str] = field(default_factory=set)

    def missing_required(self, descriptor: ToolDescriptor) -> List[str]:
        """Names of required parameters that received no value."""
        return [
            param.name
            for param in descriptor.effective_parameters
            if is_parameter_required(param) and param.name not in self.values
        ]

    def as_kwargs(self, descriptor: ToolDescriptor) -> Dict[str, Any]:
        """Keyword arguments for the call, with ``None`` for absent nullable parameters."""
        kwargs = dict(self.values)
        for param in descriptor.effective_parameters:
            if param.name not in kwargs and not param.has_default and not is_parameter_required(param):
                kwargs[param.name] = None
        return kwargs


class ArgumentCoercer:
    """Maps raw call arguments onto a tool's declared parameters."""

    def __init__(self, heuristic: Optional[ArgumentHeuristic] = None):
        """
        Args:
            heuristic: Strategy for under-specified ``{"input": ...}`` calls
        """
        self.heuristic = heuristic or HeuristicArgumentMapper()

    def coerce(self, request: FunctionCallRequest, descriptor: ToolDescriptor) -> CoercedArguments:
        """Coerce the raw arguments of a detected call."""
        return self.coerce_raw(request.raw_arguments, descriptor)

    def coerce_raw(self, raw: Union[Dict[str, Any], str, None], descriptor: ToolDescriptor) -> CoercedArguments:
        """
        Coerce raw arguments for ``descriptor``.

        Args:
            raw: Argument object or opaque string
            descriptor: Target tool

        Returns:
            Coerced arguments; never raises
        """
        result = CoercedArguments()
        obj = self._as_object(raw)

        if obj is not None:
            if self._is_under_specified(obj, descriptor):
                self._apply_heuristic(obj[FALLBACK_PARAMETER_NAME], descriptor, result)
            else:
                self._copy_object(obj, descriptor, result)
        elif isinstance(raw, str) and not raw.strip().startswith("{"):
            self._assign_positional(raw, descriptor, result)
        elif isinstance(raw, str):
            logger.debug(f"Unreadable JSON arguments for '{descriptor.name}': {raw!r}")

        self._backfill_defaults(descriptor, result)
        return result

    @staticmethod
    def _as_object(raw: Union[Dict[str, Any], str, None]) -> Optional[Dict[str, Any]]:
        if isinstance(raw, dict):
            return raw
        if isinstance(raw, str) and raw.strip().startswith("{"):
            try:
                decoded = json.loads(raw)
            except json.JSONDecodeError:
                return None
            if isinstance(decoded, dict):
                return decoded
        return None

    @staticmethod
    def _is_under_specified(obj: Dict[str, Any], descriptor: ToolDescriptor) -> bool:
        return (
            list(obj.keys()) == [FALLBACK_PARAMETER_NAME]
            and descriptor.get_parameter(FALLBACK_PARAMETER_NAME) is None
        )

    def _apply_heuristic(self, value: Any, descriptor: ToolDescriptor, result: CoercedArguments) -> None:
        text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
        mapping = self.heuristic.map(text, descriptor)
        result.values.update(mapping.values)
        result.inferred.update(mapping.inferred)
        result.defaulted.update(mapping.defaulted)

    @staticmethod
    def _copy_object(obj: Dict[str, Any], descriptor: ToolDescriptor, result: CoercedArguments) -> None:
        for key, value in obj.items():
            param = descriptor.get_parameter(key)
            if param is None:
                logger.debug(f"Dropping unknown argument '{key}' for '{descriptor.name}'")
                continue
            result.values[key] = convert_json_value(value, parameter_json_type(param))

    @staticmethod
    def _assign_positional(raw: str, descriptor: ToolDescriptor, result: CoercedArguments) -> None:
        if not raw.strip():
            return

        parts = [part.strip().strip(_QUOTE_CHARS).strip() for part in raw.split(",")]
        parameters = descriptor.effective_parameters
        if len(parts) > len(parameters):
            logger.debug(f"Dropping {len(parts) - len(parameters)} surplus argument(s) for '{descriptor.name}'")

        for param, part in zip(parameters, parts):
            if not part:
                continue
            result.values[param.name] = convert_json_value(part, parameter_json_type(param))

    @staticmethod
    def _backfill_defaults(descriptor: ToolDescriptor, result: CoercedArguments) -> None:
        for param in descriptor.effective_parameters:
            if param.name not in result.values and param.has_default:
                result.values[param.name] = param.default
                result.defaulted.add(param.name)
