"""Screenshot (vision) tools, addressed by viewport coordinates."""

from __future__ import annotations

__all__ = [
    'capture_screenshot',
    'screenshot',
    'move_mouse',
    'click',
    'drag',
    'type_text',
]

import base64
import typing

import mcp.types
from playwright.async_api import Page

from browser_mcp.models import DragArguments, MouseArguments, NoArguments, TypeTextArguments
from browser_mcp.tools.base import Content, Tool, text

if typing.TYPE_CHECKING:
    from browser_mcp.provider import CapabilityProvider

SCREENSHOT_QUALITY = 50


async def capture_screenshot(page: Page) -> mcp.types.ImageContent:
    data = await page.screenshot(type='jpeg', quality=SCREENSHOT_QUALITY)
    return mcp.types.ImageContent(type='image', data=base64.b64encode(data).decode('ascii'), mimeType='image/jpeg')


async def _screenshot(provider: CapabilityProvider, args: NoArguments) -> list[Content]:
    return [await capture_screenshot(await provider.page())]


async def _move_mouse(provider: CapabilityProvider, args: MouseArguments) -> list[Content]:
    page = await provider.page()
    await page.mouse.move(args.x, args.y)
    return text(f'Moved mouse to ({args.x}, {args.y})')


async def _click(provider: CapabilityProvider, args: MouseArguments) -> list[Content]:
    page = await provider.page()
    await page.mouse.move(args.x, args.y)
    await page.mouse.down()
    await page.mouse.up()
    return text(f'Clicked mouse at ({args.x}, {args.y})')


async def _drag(provider: CapabilityProvider, args: DragArguments) -> list[Content]:
    page = await provider.page()
    await page.mouse.move(args.startX, args.startY)
    await page.mouse.down()
    await page.mouse.move(args.endX, args.endY)
    await page.mouse.up()
    return text(f'Dragged mouse from ({args.startX}, {args.startY}) to ({args.endX}, {args.endY})')


async def _type(provider: CapabilityProvider, args: TypeTextArguments) -> list[Content]:
    page = await provider.page()
    await page.keyboard.type(args.text)
    if args.submit:
        await page.keyboard.press('Enter')
    return text(f'Typed text "{args.text}"' + (' and submitted' if args.submit else ''))


screenshot = Tool(
    name='browser_screenshot',
    description='Take a screenshot of the current page',
    arguments=NoArguments,
    action=_screenshot,
    annotations=mcp.types.ToolAnnotations(title='Take Screenshot', readOnlyHint=True, openWorldHint=True),
)

move_mouse = Tool(
    name='browser_move_mouse',
    description='Move mouse to a given position',
    arguments=MouseArguments,
    action=_move_mouse,
    annotations=mcp.types.ToolAnnotations(title='Move Mouse', readOnlyHint=True, openWorldHint=True),
)

click = Tool(
    name='browser_click',
    description='Click left mouse button at a given position',
    arguments=MouseArguments,
    action=_click,
    annotations=mcp.types.ToolAnnotations(
        title='Click Position', destructiveHint=False, idempotentHint=False, openWorldHint=True
    ),
)

drag = Tool(
    name='browser_drag',
    description='Drag left mouse button from one position to another',
    arguments=DragArguments,
    action=_drag,
    annotations=mcp.types.ToolAnnotations(
        title='Drag Mouse', destructiveHint=False, idempotentHint=False, openWorldHint=True
    ),
)

type_text = Tool(
    name='browser_type',
    description='Type text at the current keyboard focus',
    arguments=TypeTextArguments,
    action=_type,
    annotations=mcp.types.ToolAnnotations(
        title='Type Text', destructiveHint=False, idempotentHint=False, openWorldHint=True
    ),
)
