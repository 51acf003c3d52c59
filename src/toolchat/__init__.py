"""
toolchat - a chat-completion client with function calling.

This package lets a GigaChat-compatible model call Python functions in the
middle of a conversation.
"""

__version__ = "0.1.0"
__author__ = "toolchat contributors"
__license__ = "Apache-2.0"

from typing import Final

# Package metadata
VERSION: Final[str] = __version__
PACKAGE_NAME: Final[str] = "toolchat"
USER_AGENT: Final[str] = f"{PACKAGE_NAME}/{VERSION}"

# Re-export commonly used items
__all__ = [
    "__version__",
    "VERSION",
    "PACKAGE_NAME",
    "USER_AGENT",
]
