"""Accessibility-snapshot tools.

Interaction is addressed by element refs. A snapshot tags every visible
interactive element with a ``data-mcp-ref`` attribute and lists the refs
next to the page's ARIA tree; ref-based tools resolve that attribute.
"""

from __future__ import annotations

__all__ = [
    'REF_ATTRIBUTE',
    'capture_snapshot',
    'snapshot',
    'click',
    'hover',
    'type_text',
]

import typing

import mcp.types
import yaml
from playwright.async_api import Locator, Page

from browser_mcp.models import ElementArguments, NoArguments, TypeElementArguments
from browser_mcp.tools.base import Content, Tool, text

if typing.TYPE_CHECKING:
    from browser_mcp.provider import CapabilityProvider

REF_ATTRIBUTE = 'data-mcp-ref'

_TAG_REFS_SCRIPT = """(attr) => {
    const results = [];
    const selectors = 'a[href], button, input, select, textarea, summary, [role], [tabindex], [contenteditable="true"]';
    document.querySelectorAll(`[${attr}]`).forEach((el) => el.removeAttribute(attr));

    let counter = 0;
    document.querySelectorAll(selectors).forEach((el) => {
        const style = window.getComputedStyle(el);
        if (style.display === 'none' || style.visibility === 'hidden') return;
        const rect = el.getBoundingClientRect();
        if (rect.width === 0 && rect.height === 0) return;

        const ref = `e${++counter}`;
        el.setAttribute(attr, ref);

        const label = el.getAttribute('aria-label') || el.getAttribute('placeholder') || el.getAttribute('title');
        const name = (label || el.innerText || el.value || '').trim().replace(/\\s+/g, ' ');
        results.push({
            ref: ref,
            role: el.getAttribute('role') || el.tagName.toLowerCase(),
            name: name.substring(0, 100),
        });
    });
    return results;
}"""


def _remove_url_fields(node: typing.Any) -> typing.Any:
    """Recursively remove /url fields and empty containers from the ARIA YAML tree."""
    if isinstance(node, dict):
        filtered = {k: _remove_url_fields(v) for k, v in node.items() if k != '/url'}
        filtered = {k: v for k, v in filtered.items() if v not in (None, [], {})}
        return filtered if filtered else None
    elif isinstance(node, list):
        items = [_remove_url_fields(item) for item in node]
        items = [item for item in items if item not in (None, [], {})]
        return items if items else None
    else:
        return node


async def capture_snapshot(page: Page) -> list[Content]:
    """Render URL, title, ARIA tree and element refs of the page as one text block."""
    refs = await page.evaluate(_TAG_REFS_SCRIPT, REF_ATTRIBUTE)
    aria_yaml = await page.locator('body').aria_snapshot()

    # Filter /url fields (saves ~25-30% tokens)
    tree = _remove_url_fields(yaml.safe_load(aria_yaml))
    aria_yaml = yaml.dump(tree, default_flow_style=False, sort_keys=False) if tree else ''

    lines = [
        f'- Page URL: {page.url}',
        f'- Page Title: {await page.title()}',
        '- Page Snapshot',
        '```yaml',
        aria_yaml.rstrip(),
        '```',
        '- Element refs',
    ]
    lines.extend(f'  - [ref={r["ref"]}] {r["role"]} "{r["name"]}"' for r in refs)
    return text('\n'.join(lines))


def _locate(page: Page, ref: str) -> Locator:
    return page.locator(f'[{REF_ATTRIBUTE}="{ref}"]')


async def _snapshot(provider: CapabilityProvider, args: NoArguments) -> list[Content]:
    return await capture_snapshot(await provider.page())


async def _click(provider: CapabilityProvider, args: ElementArguments) -> list[Content]:
    page = await provider.page()
    await _locate(page, args.ref).click()
    await page.wait_for_load_state()
    return await capture_snapshot(page)


async def _hover(provider: CapabilityProvider, args: ElementArguments) -> list[Content]:
    page = await provider.page()
    await _locate(page, args.ref).hover()
    return await capture_snapshot(page)


async def _type(provider: CapabilityProvider, args: TypeElementArguments) -> list[Content]:
    page = await provider.page()
    locator = _locate(page, args.ref)
    await locator.fill(args.text)
    if args.submit:
        await locator.press('Enter')
        await page.wait_for_load_state()
    return await capture_snapshot(page)


snapshot = Tool(
    name='browser_snapshot',
    description='Capture accessibility snapshot of the current page, this is better than screenshot',
    arguments=NoArguments,
    action=_snapshot,
    annotations=mcp.types.ToolAnnotations(title='Page Snapshot', readOnlyHint=True, openWorldHint=True),
)

click = Tool(
    name='browser_click',
    description='Perform click on a web page',
    arguments=ElementArguments,
    action=_click,
    annotations=mcp.types.ToolAnnotations(
        title='Click Element', destructiveHint=False, idempotentHint=False, openWorldHint=True
    ),
)

hover = Tool(
    name='browser_hover',
    description='Hover over element on page',
    arguments=ElementArguments,
    action=_hover,
    annotations=mcp.types.ToolAnnotations(title='Hover Element', readOnlyHint=True, openWorldHint=True),
)

type_text = Tool(
    name='browser_type',
    description='Type text into editable element',
    arguments=TypeElementArguments,
    action=_type,
    annotations=mcp.types.ToolAnnotations(
        title='Type Into Element', destructiveHint=False, idempotentHint=False, openWorldHint=True
    ),
)
