"""
Core components for toolchat.

The chat client and the function-calling conversation loop.
"""

__all__ = ["client", "function_calling"]
