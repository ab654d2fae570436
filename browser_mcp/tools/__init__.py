"""Tool definitions, grouped by mode."""

from __future__ import annotations

from browser_mcp.tools.base import Content, Resource, Tool, text

__all__ = [
    'Content',
    'Resource',
    'Tool',
    'text',
]
