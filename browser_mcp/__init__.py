"""Playwright browser automation MCP server with a lifecycle watchdog."""

from __future__ import annotations

__all__ = [
    '__version__',
]

__version__ = '0.1.0'
