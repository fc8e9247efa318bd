"""
Convenience entry point for running slotsearch as a module.

Usage: python -m slotsearch [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
