"""Tools shared by both modes.

Navigation tools exist in both registries but are parameterized by mode:
snapshot mode answers with an accessibility snapshot, vision mode with a
screenshot.
"""

from __future__ import annotations

__all__ = [
    'navigate',
    'go_back',
    'go_forward',
    'press_key',
    'wait',
    'save_as_pdf',
    'close',
    'MAX_WAIT_SECONDS',
]

import asyncio
import contextlib
import datetime
import typing

import mcp.types
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from browser_mcp.models import NavigateArguments, NoArguments, PressKeyArguments, WaitArguments
from browser_mcp.tools.base import Content, Tool, text
from browser_mcp.tools.snapshot import capture_snapshot
from browser_mcp.tools.vision import capture_screenshot

if typing.TYPE_CHECKING:
    from browser_mcp.provider import CapabilityProvider

MAX_WAIT_SECONDS = 10.0

# Navigation waits for DOMContentLoaded, then gives 'load' this long (ms)
LOAD_GRACE_MS = 5000


async def _page_state(page: Page, snapshot: bool, message: str) -> list[Content]:
    if snapshot:
        return await capture_snapshot(page)
    return [*text(message), await capture_screenshot(page)]


async def _settle(page: Page) -> None:
    # Slow subresources must not fail the navigation
    with contextlib.suppress(PlaywrightTimeoutError):
        await page.wait_for_load_state('load', timeout=LOAD_GRACE_MS)


def navigate(snapshot: bool) -> Tool:
    async def action(provider: CapabilityProvider, args: NavigateArguments) -> list[Content]:
        page = await provider.page()
        await page.goto(args.url, wait_until='domcontentloaded')
        await _settle(page)
        return await _page_state(page, snapshot, f'Navigated to {page.url}')

    return Tool(
        name='browser_navigate',
        description='Navigate to a URL',
        arguments=NavigateArguments,
        action=action,
        annotations=mcp.types.ToolAnnotations(
            title='Navigate to URL', destructiveHint=False, idempotentHint=True, openWorldHint=True
        ),
    )


def go_back(snapshot: bool) -> Tool:
    async def action(provider: CapabilityProvider, args: NoArguments) -> list[Content]:
        page = await provider.page()
        await page.go_back()
        await _settle(page)
        return await _page_state(page, snapshot, f'Navigated back to {page.url}')

    return Tool(
        name='browser_go_back',
        description='Go back to the previous page',
        arguments=NoArguments,
        action=action,
        annotations=mcp.types.ToolAnnotations(title='Go Back', destructiveHint=False, openWorldHint=True),
    )


def go_forward(snapshot: bool) -> Tool:
    async def action(provider: CapabilityProvider, args: NoArguments) -> list[Content]:
        page = await provider.page()
        await page.go_forward()
        await _settle(page)
        return await _page_state(page, snapshot, f'Navigated forward to {page.url}')

    return Tool(
        name='browser_go_forward',
        description='Go forward to the next page',
        arguments=NoArguments,
        action=action,
        annotations=mcp.types.ToolAnnotations(title='Go Forward', destructiveHint=False, openWorldHint=True),
    )


async def _press_key(provider: CapabilityProvider, args: PressKeyArguments) -> list[Content]:
    page = await provider.page()
    await page.keyboard.press(args.key)
    return text(f'Pressed key {args.key}')


async def _wait(provider: CapabilityProvider, args: WaitArguments) -> list[Content]:
    seconds = min(args.time, MAX_WAIT_SECONDS)
    await asyncio.sleep(seconds)
    return text(f'Waited for {seconds:g} seconds')


async def _save_as_pdf(provider: CapabilityProvider, args: NoArguments) -> list[Content]:
    page = await provider.page()
    timestamp = datetime.datetime.now(datetime.UTC).strftime('%Y%m%d_%H%M%S_%f')
    path = provider.output_dir / f'page-{timestamp}.pdf'
    await page.pdf(path=path)
    return text(f'Saved as {path}')


async def _close(provider: CapabilityProvider, args: NoArguments) -> list[Content]:
    await provider.close()
    return text('Page closed')


press_key = Tool(
    name='browser_press_key',
    description='Press a key on the keyboard',
    arguments=PressKeyArguments,
    action=_press_key,
    annotations=mcp.types.ToolAnnotations(title='Press Keyboard Key', destructiveHint=False, idempotentHint=False),
)

wait = Tool(
    name='browser_wait',
    description=f'Wait for a specified time in seconds (at most {MAX_WAIT_SECONDS:g})',
    arguments=WaitArguments,
    action=_wait,
    annotations=mcp.types.ToolAnnotations(title='Wait', readOnlyHint=True, idempotentHint=True),
)

save_as_pdf = Tool(
    name='browser_save_as_pdf',
    description='Save page as PDF',
    arguments=NoArguments,
    action=_save_as_pdf,
    annotations=mcp.types.ToolAnnotations(title='Save as PDF', readOnlyHint=True, openWorldHint=False),
)

close = Tool(
    name='browser_close',
    description='Close the page',
    arguments=NoArguments,
    action=_close,
    annotations=mcp.types.ToolAnnotations(title='Close Browser', destructiveHint=True, idempotentHint=True),
)
