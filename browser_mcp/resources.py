"""Resources exposed in every mode."""

from __future__ import annotations

__all__ = [
    'console',
]

import typing

from browser_mcp.tools.base import Resource

if typing.TYPE_CHECKING:
    from browser_mcp.provider import CapabilityProvider


async def _read_console(provider: CapabilityProvider) -> str:
    return '\n'.join(message.render() for message in provider.console_messages())


console = Resource(
    uri='browser://console',
    name='Page console',
    description='Console messages emitted by the current page',
    mime_type='text/plain',
    read=_read_console,
)
