"""
Tools package for toolchat.

Tool descriptors, the tool registry and the demo tools used by the CLI.
"""

from .types import NO_DEFAULT, ToolDescriptor, ToolParameter
from .registry import ToolRegistry

__all__ = ["NO_DEFAULT", "ToolDescriptor", "ToolParameter", "ToolRegistry", "demo"]
