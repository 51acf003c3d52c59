"""
Configuration package for toolchat.

Settings are read from TOOLCHAT_* environment variables and a .env file.
"""

__all__ = ["settings"]
