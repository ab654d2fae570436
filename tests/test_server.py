"""Tests for SessionServer dispatch and stop() idempotence."""

from __future__ import annotations

import asyncio
import base64
import pathlib

import mcp.types
import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from browser_mcp.errors import (
    ResourceNotFoundError,
    TeardownError,
    ToolArgumentsError,
    ToolExecutionError,
    ToolNotFoundError,
)
from browser_mcp.models import ConsoleMessage, LaunchOptions
from browser_mcp.registry import build_registry
from browser_mcp.server import SessionServer
from tests.fakes import FakePage, FakeProvider


def _text(result: list[mcp.types.TextContent | mcp.types.ImageContent]) -> str:
    assert len(result) == 1
    block = result[0]
    assert isinstance(block, mcp.types.TextContent)
    return block.text


class TestDispatch:
    """Verify lookup, validation and execution failure modes stay per-request."""

    async def test_common_tool_runs(self, snapshot_server: SessionServer) -> None:
        result = await snapshot_server.call_tool('browser_wait', {'time': 0})
        assert _text(result) == 'Waited for 0 seconds'

    async def test_unknown_tool_leaves_server_running(self, snapshot_server: SessionServer) -> None:
        with pytest.raises(ToolNotFoundError, match='Tool not found: browser_screenshot'):
            await snapshot_server.call_tool('browser_screenshot', {})

        result = await snapshot_server.call_tool('browser_wait', {'time': 0})
        assert _text(result).startswith('Waited')

    async def test_invalid_arguments_do_not_invoke_action(
        self, vision_server: SessionServer, provider: FakeProvider
    ) -> None:
        with pytest.raises(ToolArgumentsError, match='browser_move_mouse') as exc_info:
            await vision_server.call_tool('browser_move_mouse', {'x': 'left'})
        assert 'x' in str(exc_info.value)
        assert provider.page_calls == 0

    async def test_unknown_argument_rejected(self, snapshot_server: SessionServer) -> None:
        with pytest.raises(ToolArgumentsError):
            await snapshot_server.call_tool('browser_wait', {'time': 0, 'extra': True})

    async def test_missing_arguments_treated_as_empty(self, snapshot_server: SessionServer) -> None:
        with pytest.raises(ToolArgumentsError, match='time'):
            await snapshot_server.call_tool('browser_wait', None)

    async def test_execution_failure_is_per_request(self, tmp_path: pathlib.Path) -> None:
        provider = FakeProvider(tmp_path, page_error=RuntimeError('browser crashed'))
        server = SessionServer(build_registry(vision=False), LaunchOptions(), provider=provider)

        with pytest.raises(ToolExecutionError, match='browser_snapshot failed: RuntimeError: browser crashed'):
            await server.call_tool('browser_snapshot', {})

        provider.page_error = None
        result = await server.call_tool('browser_press_key', {'key': 'Enter'})
        assert _text(result) == 'Pressed key Enter'

    async def test_dispatch_signals_activity(self, snapshot_server: SessionServer) -> None:
        touches: list[None] = []
        snapshot_server.add_activity_listener(lambda: touches.append(None))

        await snapshot_server.call_tool('browser_wait', {'time': 0})
        assert len(touches) >= 1

        before = len(touches)
        with pytest.raises(ToolNotFoundError):
            await snapshot_server.call_tool('nope', {})
        assert len(touches) > before

    def test_list_tools_in_declaration_order(self, vision_server: SessionServer) -> None:
        assert [t.name for t in vision_server.list_tools()] == vision_server.registry.tool_names


class TestTools:
    """Exercise tool actions against the fake page."""

    async def test_vision_click(self, vision_server: SessionServer, provider: FakeProvider) -> None:
        result = await vision_server.call_tool('browser_click', {'x': 10, 'y': 20})
        assert _text(result) == 'Clicked mouse at (10.0, 20.0)'
        assert provider.fake_page.calls == [('mouse.move', 10.0, 20.0), ('mouse.down',), ('mouse.up',)]

    async def test_vision_drag(self, vision_server: SessionServer, provider: FakeProvider) -> None:
        await vision_server.call_tool('browser_drag', {'startX': 1, 'startY': 2, 'endX': 3, 'endY': 4})
        assert provider.fake_page.calls == [
            ('mouse.move', 1.0, 2.0),
            ('mouse.down',),
            ('mouse.move', 3.0, 4.0),
            ('mouse.up',),
        ]

    async def test_vision_type_and_submit(self, vision_server: SessionServer, provider: FakeProvider) -> None:
        result = await vision_server.call_tool('browser_type', {'text': 'hello', 'submit': True})
        assert _text(result) == 'Typed text "hello" and submitted'
        assert provider.fake_page.calls == [('keyboard.type', 'hello'), ('keyboard.press', 'Enter')]

    async def test_wait_is_capped(self, snapshot_server: SessionServer, monkeypatch: pytest.MonkeyPatch) -> None:
        slept: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            slept.append(seconds)

        monkeypatch.setattr('browser_mcp.tools.common.asyncio.sleep', fake_sleep)
        result = await snapshot_server.call_tool('browser_wait', {'time': 60})
        assert slept == [10.0]
        assert _text(result) == 'Waited for 10 seconds'

    async def test_close_releases_browser_but_not_server(
        self, snapshot_server: SessionServer, provider: FakeProvider
    ) -> None:
        result = await snapshot_server.call_tool('browser_close', {})
        assert _text(result) == 'Page closed'
        assert provider.close_calls == 1
        assert provider.cleanup_calls == 0
        assert not snapshot_server.stopping


ARIA_YAML = """\
- heading "Example Domain" [level=1]
- link "More information":
  - /url: https://www.iana.org/domains/example
  - img "info"
- button "Search"
"""

REFS = [
    {'ref': 'e1', 'role': 'a', 'name': 'More information'},
    {'ref': 'e2', 'role': 'button', 'name': 'Search'},
]


@pytest.fixture
def page(provider: FakeProvider) -> FakePage:
    page = provider.fake_page
    page.aria_yaml = ARIA_YAML
    page.refs = REFS
    page.page_title = 'Example Domain'
    return page


class TestModeTools:
    """Tools whose result shape depends on the registry mode."""

    async def test_vision_navigate_returns_text_and_screenshot(
        self, vision_server: SessionServer, page: FakePage
    ) -> None:
        result = await vision_server.call_tool('browser_navigate', {'url': 'https://example.com/'})

        text_block, image_block = result
        assert isinstance(text_block, mcp.types.TextContent)
        assert text_block.text == 'Navigated to https://example.com/'
        assert isinstance(image_block, mcp.types.ImageContent)
        assert image_block.mimeType == 'image/jpeg'
        assert base64.b64decode(image_block.data) == page.screenshot_bytes
        assert ('goto', 'https://example.com/', 'domcontentloaded') in page.calls
        assert ('screenshot', 'jpeg', 50) in page.calls

    async def test_snapshot_navigate_returns_filtered_snapshot(
        self, snapshot_server: SessionServer, page: FakePage
    ) -> None:
        snapshot = _text(await snapshot_server.call_tool('browser_navigate', {'url': 'https://example.com/'}))

        assert snapshot.startswith('- Page URL: https://example.com/\n- Page Title: Example Domain\n')
        assert 'heading "Example Domain"' in snapshot
        assert 'img "info"' in snapshot
        assert '/url' not in snapshot
        assert 'iana.org' not in snapshot
        assert '  - [ref=e1] a "More information"' in snapshot
        assert '  - [ref=e2] button "Search"' in snapshot
        assert not any(call[0] == 'screenshot' for call in page.calls)

    @pytest.mark.parametrize('name, call', [('browser_go_back', 'go_back'), ('browser_go_forward', 'go_forward')])
    async def test_history_follows_mode(
        self, vision_server: SessionServer, snapshot_server: SessionServer, page: FakePage, name: str, call: str
    ) -> None:
        vision_result = await vision_server.call_tool(name, {})
        assert [block.type for block in vision_result] == ['text', 'image']

        snapshot_result = await snapshot_server.call_tool(name, {})
        assert 'Page Snapshot' in _text(snapshot_result)
        assert page.calls.count((call,)) == 2

    async def test_slow_load_does_not_fail_navigation(self, vision_server: SessionServer, page: FakePage) -> None:
        page.load_error = PlaywrightTimeoutError('Timeout 5000ms exceeded')
        result = await vision_server.call_tool('browser_navigate', {'url': 'https://example.com/'})
        assert len(result) == 2

    async def test_snapshot_click_targets_ref(self, snapshot_server: SessionServer, page: FakePage) -> None:
        result = await snapshot_server.call_tool('browser_click', {'element': 'Search button', 'ref': 'e2'})

        assert ('locator.click', '[data-mcp-ref="e2"]') in page.calls
        assert 'Page Snapshot' in _text(result)

    async def test_snapshot_hover_targets_ref(self, snapshot_server: SessionServer, page: FakePage) -> None:
        await snapshot_server.call_tool('browser_hover', {'element': 'More link', 'ref': 'e1'})
        assert ('locator.hover', '[data-mcp-ref="e1"]') in page.calls

    async def test_snapshot_type_fills_and_submits(self, snapshot_server: SessionServer, page: FakePage) -> None:
        await snapshot_server.call_tool(
            'browser_type', {'element': 'Search box', 'ref': 'e3', 'text': 'playwright', 'submit': True}
        )
        selector = '[data-mcp-ref="e3"]'
        fill = page.calls.index(('locator.fill', selector, 'playwright'))
        press = page.calls.index(('locator.press', selector, 'Enter'))
        assert fill < press

    async def test_snapshot_tags_refs_before_reading_tree(
        self, snapshot_server: SessionServer, page: FakePage
    ) -> None:
        await snapshot_server.call_tool('browser_snapshot', {})
        assert page.calls == [('evaluate', 'data-mcp-ref')]

    async def test_save_as_pdf_writes_to_output_dir(
        self, snapshot_server: SessionServer, provider: FakeProvider, page: FakePage
    ) -> None:
        message = _text(await snapshot_server.call_tool('browser_save_as_pdf', {}))

        [pdf] = list(provider.output_dir.glob('page-*.pdf'))
        assert message == f'Saved as {pdf}'
        assert pdf.read_bytes().startswith(b'%PDF')


class TestResources:
    async def test_console_resource(self, snapshot_server: SessionServer, provider: FakeProvider) -> None:
        provider.messages = [
            ConsoleMessage(type='log', text='ready'),
            ConsoleMessage(type='error', text='oops'),
        ]
        contents = await snapshot_server.read_resource('browser://console')
        assert contents.content == '[log] ready\n[error] oops'
        assert contents.mime_type == 'text/plain'

    async def test_unknown_resource(self, snapshot_server: SessionServer) -> None:
        with pytest.raises(ResourceNotFoundError, match='browser://cookies'):
            await snapshot_server.read_resource('browser://cookies')

    def test_list_resources(self, snapshot_server: SessionServer) -> None:
        [resource] = snapshot_server.list_resources()
        assert str(resource.uri) == 'browser://console'
        assert resource.mimeType == 'text/plain'


class TestStop:
    """Verify stop() runs exactly one teardown."""

    async def test_sequential_stop_is_idempotent(self, snapshot_server: SessionServer, provider: FakeProvider) -> None:
        await snapshot_server.stop()
        await snapshot_server.stop()
        assert provider.close_calls == 1
        assert provider.cleanup_calls == 1
        assert snapshot_server.stopping

    async def test_overlapping_stop_single_teardown(
        self, snapshot_server: SessionServer, provider: FakeProvider
    ) -> None:
        await asyncio.gather(snapshot_server.stop(), snapshot_server.stop(), snapshot_server.stop())
        assert provider.close_calls == 1
        assert provider.cleanup_calls == 1

    async def test_teardown_failure_reported_once(self, tmp_path: pathlib.Path) -> None:
        provider = FakeProvider(tmp_path, close_error=RuntimeError('driver gone'))
        server = SessionServer(build_registry(vision=False), LaunchOptions(), provider=provider)

        with pytest.raises(TeardownError, match='driver gone'):
            await server.stop()

        await server.stop()
        assert provider.close_calls == 1
        assert provider.cleanup_calls == 1

    async def test_cancelled_caller_does_not_abort_teardown(
        self, snapshot_server: SessionServer, provider: FakeProvider
    ) -> None:
        caller = asyncio.create_task(snapshot_server.stop())
        await asyncio.sleep(0)
        caller.cancel()
        await asyncio.gather(caller, return_exceptions=True)
        assert caller.cancelled()

        await snapshot_server.stop()
        assert provider.closed
        assert provider.close_calls == 1
        assert provider.cleanup_calls == 1

    async def test_overlapping_stop_with_failure(self, tmp_path: pathlib.Path) -> None:
        provider = FakeProvider(tmp_path, close_error=RuntimeError('driver gone'))
        server = SessionServer(build_registry(vision=False), LaunchOptions(), provider=provider)

        first, second = await asyncio.gather(server.stop(), server.stop(), return_exceptions=True)
        assert isinstance(first, TeardownError)
        assert second is None
        assert provider.close_calls == 1
