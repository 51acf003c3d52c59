"""Tool descriptor types: statically declared parameters for callable tools."""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class _NoDefault:
    """Sentinel type for parameters declared without a default value."""

    _instance: Optional["_NoDefault"] = None

    def __new__(cls) -> "_NoDefault":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_DEFAULT"

    def __bool__(self) -> bool:
        return False


NO_DEFAULT: Any = _NoDefault()

# Parameter name used when a tool's parameters cannot be described.
FALLBACK_PARAMETER_NAME = "input"


@dataclass(frozen=True)
class ToolParameter:
    """A single declared parameter of a tool.

    ``type`` may be a Python type (``str``, ``int``, an ``Enum`` subclass...),
    a typing construct (``Optional[int]``, ``List[str]``, ``Literal[...]``)
    or a type name such as ``"integer"``.
    """
    name: str
    type: Any = str
    description: Optional[str] = None
    default: Any = NO_DEFAULT
    nullable: bool = False
    enum_values: Optional[Tuple[Any, ...]] = None

    def __post_init__(self) -> None:
        if self.enum_values is not None and not isinstance(self.enum_values, tuple):
            object.__setattr__(self, "enum_values", tuple(self.enum_values))

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT


@dataclass(frozen=True)
class ToolDescriptor:
    """
    Immutable description of a callable tool.

    ``parameters`` is ``None`` when parameter metadata is unavailable; such
    tools are exposed with a single generic ``input`` string parameter.
    """
    name: str
    description: str
    function: Callable[..., Any] = field(compare=False)
    parameters: Optional[Tuple[ToolParameter, ...]] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Tool name must not be empty")
        if self.parameters is not None:
            params = tuple(self.parameters)
            names = [p.name for p in params]
            if len(names) != len(set(names)):
                raise ValueError(f"Duplicate parameter names in tool '{self.name}': {names}")
            object.__setattr__(self, "parameters", params)

    @property
    def is_described(self) -> bool:
        """Whether the tool carries real parameter metadata."""
        return self.parameters is not None

    @property
    def effective_parameters(self) -> Tuple[ToolParameter, ...]:
        """Declared parameters, or the generic ``input`` fallback."""
        if self.parameters is None:
            return (ToolParameter(name=FALLBACK_PARAMETER_NAME, type=str),)
        return self.parameters

    @property
    def parameter_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.effective_parameters)

    def get_parameter(self, name: str) -> Optional[ToolParameter]:
        for param in self.effective_parameters:
            if param.name == name:
                return param
        return None

    @classmethod
    def from_function(
        cls,
        function: Callable[..., Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        parameter_descriptions: Optional[Dict[str, str]] = None,
    ) -> "ToolDescriptor":
        """
        Build a descriptor from a function signature, once, at registration time.

        Args:
            function: Callable to expose as a tool
            name: Tool name (defaults to the function's ``__name__``)
            description: Tool description (defaults to the first docstring line)
            parameter_descriptions: Optional per-parameter descriptions

        Returns:
            Descriptor whose parameters mirror the signature, or an undescribed
            descriptor if the signature cannot be read.
        """
        tool_name = name or getattr(function, "__name__", None) or ""
        if description is None:
            doc = inspect.getdoc(function) or ""
            description = doc.splitlines()[0] if doc else ""

        try:
            signature = inspect.signature(function)
        except (TypeError, ValueError) as e:
            logger.debug(f"No signature available for tool '{tool_name}': {e}")
            return cls(name=tool_name, description=description, function=function)

        descriptions = parameter_descriptions or {}
        parameters = []
        for param in signature.parameters.values():
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue
            default = NO_DEFAULT if param.default is inspect.Parameter.empty else param.default
            annotation = param.annotation
            if annotation is inspect.Parameter.empty:
                # Unannotated parameters take the type of their default.
                annotation = str if default is NO_DEFAULT or default is None else type(default)
            parameters.append(ToolParameter(
                name=param.name,
                type=annotation,
                description=descriptions.get(param.name),
                default=default,
            ))

        return cls(
            name=tool_name,
            description=description,
            function=function,
            parameters=tuple(parameters),
        )

