"""
Tool registry for toolchat.

Maps tool names to immutable descriptors and caches the parameter schema
derived from each descriptor.
"""

import copy
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from .types import ToolDescriptor, ToolParameter

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registry of callable tools keyed by unique name."""

    def __init__(self, tools: Optional[Sequence[ToolDescriptor]] = None):
        """
        Initialize the tool registry.

        Args:
            tools: Optional descriptors to register immediately
        """
        self._tools: Dict[str, ToolDescriptor] = {}
        self._schemas: Dict[str, Dict[str, Any]] = {}

        for descriptor in tools or ():
            self.register(descriptor)

    def register(self, descriptor: ToolDescriptor, force: bool = False) -> bool:
        """Register a tool descriptor.

        Args:
            descriptor: Descriptor to register
            force: Replace an existing tool with the same name

        Returns:
            True if the tool was registered
        """
        if not force and descriptor.name in self._tools:
            logger.warning(f"Tool '{descriptor.name}' already registered. Use force=True to override.")
            return False

        self._tools[descriptor.name] = descriptor
        self._schemas.pop(descriptor.name, None)

        if not descriptor.is_described:
            logger.warning(
                f"Tool '{descriptor.name}' has no parameter metadata; "
                f"exposing a single generic 'input' parameter"
            )

        logger.info(f"Registered tool: {descriptor.name}")
        return True

    def register_function(
        self,
        function: Callable[..., Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        parameters: Optional[Sequence[ToolParameter]] = None,
    ) -> ToolDescriptor:
        """Register a plain callable.

        When ``parameters`` is omitted they are derived once from the
        function signature.

        Returns:
            The registered descriptor
        """
        if parameters is None:
            descriptor = ToolDescriptor.from_function(function, name=name, description=description)
        else:
            descriptor = ToolDescriptor(
                name=name or function.__name__,
                description=description or "",
                function=function,
                parameters=tuple(parameters),
            )

        if not self.register(descriptor):
            raise ValueError(f"Tool '{descriptor.name}' is already registered")
        return descriptor

    def tool(
        self,
        name: Optional[str] = None,
        description: Optional[str] = None,
        parameters: Optional[Sequence[ToolParameter]] = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of :meth:`register_function`."""
        def decorator(function: Callable[..., Any]) -> Callable[..., Any]:
            self.register_function(function, name=name, description=description, parameters=parameters)
            return function
        return decorator

    def unregister(self, name: str) -> bool:
        if name in self._tools:
            del self._tools[name]
            self._schemas.pop(name, None)
            logger.info(f"Unregistered tool: {name}")
            return True
        return False

    def get(self, name: str) -> Optional[ToolDescriptor]:
        """Get a descriptor by name, or None if not registered."""
        return self._tools.get(name)

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __bool__(self) -> bool:
        return bool(self._tools)

    def get_all_tools(self) -> List[ToolDescriptor]:
        return list(self._tools.values())

    def get_tool_names(self) -> List[str]:
        return list(self._tools.keys())

    def get_parameter_schema(self, name: str) -> Dict[str, Any]:
        """
        Get the cached parameter schema for a tool.

        The schema is derived once per descriptor; callers receive a copy so
        the cached view is never edited.

        Args:
            name: Tool name

        Returns:
            Parameter schema object

        Raises:
            KeyError: If the tool is not registered
        """
        from ..core.function_calling.schema_generator import generate_parameter_schema

        descriptor = self._tools[name]
        if name not in self._schemas:
            self._schemas[name] = generate_parameter_schema(descriptor)
            logger.debug(f"Generated parameter schema for tool '{name}'")
        return copy.deepcopy(self._schemas[name])

    def get_function_schema(self, name: str) -> Dict[str, Any]:
        """
        Function schema (name, description, parameters) for a tool.

        Raises:
            KeyError: If the tool is not registered
            ValueError: If the tool's declarations give an unusable schema
        """
        from ..core.function_calling.schema_generator import schema_problems

        descriptor = self._tools[name]
        schema = {
            "name": descriptor.name,
            "description": descriptor.description,
            "parameters": self.get_parameter_schema(name),
        }
        problems = schema_problems(schema)
        if problems:
            logger.error(f"Invalid schema for tool '{name}': {'; '.join(problems)}")
            raise ValueError(f"Invalid schema for tool '{name}': {'; '.join(problems)}")
        return schema

    def clear(self) -> int:
        count = len(self._tools)
        self._tools.clear()
        self._schemas.clear()
        return count

    def get_stats(self) -> Dict[str, Any]:
        """Get registry statistics."""
        return {
            "total_tools": len(self._tools),
            "undescribed_tools": [n for n, d in self._tools.items() if not d.is_described],
            "cached_schemas": len(self._schemas),
        }
