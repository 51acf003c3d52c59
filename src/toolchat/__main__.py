"""
Entry point for running toolchat as a module.

This allows users to run the CLI using:
    python -m toolchat [command] [options]
"""

from toolchat.cli.app import main

if __name__ == "__main__":
    main()
