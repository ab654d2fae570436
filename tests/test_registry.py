"""Tests for mode-selected registry construction."""

from __future__ import annotations

import pytest

from browser_mcp.models import NoArguments
from browser_mcp.registry import COMMON_TOOLS, Registry, build_registry
from browser_mcp.tools.base import Tool, text

COMMON_NAMES = ['browser_press_key', 'browser_wait', 'browser_save_as_pdf', 'browser_close']

SNAPSHOT_NAMES = [
    'browser_navigate',
    'browser_go_back',
    'browser_go_forward',
    'browser_snapshot',
    'browser_click',
    'browser_hover',
    'browser_type',
    *COMMON_NAMES,
]

VISION_NAMES = [
    'browser_navigate',
    'browser_go_back',
    'browser_go_forward',
    'browser_screenshot',
    'browser_move_mouse',
    'browser_click',
    'browser_drag',
    'browser_type',
    *COMMON_NAMES,
]


async def _noop(provider: object, args: object) -> list[object]:
    return text('ok')  # type: ignore[return-value]


class TestBuildRegistry:
    """Verify tool sets, ordering and mode separation."""

    @pytest.mark.parametrize(
        'vision, mode, expected',
        [
            (False, 'snapshot', SNAPSHOT_NAMES),
            (True, 'vision', VISION_NAMES),
        ],
    )
    def test_declared_order(self, vision: bool, mode: str, expected: list[str]) -> None:
        registry = build_registry(vision=vision)
        assert registry.mode == mode
        assert registry.tool_names == expected

    @pytest.mark.parametrize('vision', [False, True])
    def test_names_unique(self, vision: bool) -> None:
        names = build_registry(vision=vision).tool_names
        assert len(names) == len(set(names))

    def test_mode_specific_tools_disjoint(self) -> None:
        snapshot = set(build_registry(vision=False).tool_names) - set(COMMON_NAMES)
        vision = set(build_registry(vision=True).tool_names) - set(COMMON_NAMES)
        assert snapshot - vision == {'browser_snapshot', 'browser_hover'}
        assert vision - snapshot == {'browser_screenshot', 'browser_move_mouse', 'browser_drag'}

    def test_common_tools_shared(self) -> None:
        snapshot = build_registry(vision=False)
        vision = build_registry(vision=True)
        assert snapshot.tools[-len(COMMON_TOOLS) :] == COMMON_TOOLS
        assert vision.tools[-len(COMMON_TOOLS) :] == COMMON_TOOLS
        for tool in COMMON_TOOLS:
            assert snapshot.tool(tool.name) is vision.tool(tool.name)

    def test_shared_names_parameterized_per_mode(self) -> None:
        """Click and type exist in both modes with different argument schemas."""
        snapshot = build_registry(vision=False)
        vision = build_registry(vision=True)
        for name in ('browser_click', 'browser_type'):
            snapshot_props = snapshot.tool(name).input_schema()['properties']  # type: ignore[union-attr]
            vision_props = vision.tool(name).input_schema()['properties']  # type: ignore[union-attr]
            assert 'ref' in snapshot_props
            assert 'ref' not in vision_props
        assert 'x' in vision.tool('browser_click').input_schema()['properties']  # type: ignore[union-attr]

    def test_navigation_tools_rebuilt_per_mode(self) -> None:
        snapshot = build_registry(vision=False).tool('browser_navigate')
        vision = build_registry(vision=True).tool('browser_navigate')
        assert snapshot is not None and vision is not None
        assert snapshot.action is not vision.action
        assert snapshot.input_schema() == vision.input_schema()

    def test_console_resource_in_both_modes(self) -> None:
        for vision in (False, True):
            registry = build_registry(vision=vision)
            assert [r.uri for r in registry.resources] == ['browser://console']
            assert registry.resource('browser://console') is not None

    def test_repeatable(self) -> None:
        assert build_registry(vision=False).tool_names == build_registry(vision=False).tool_names


class TestRegistry:
    """Verify lookup and uniqueness enforcement."""

    def test_unknown_tool_is_none(self) -> None:
        registry = build_registry(vision=False)
        assert registry.tool('browser_screenshot') is None
        assert registry.resource('browser://nope') is None

    def test_duplicate_tool_name_rejected(self) -> None:
        tool = Tool(name='dup', description='', arguments=NoArguments, action=_noop)
        with pytest.raises(ValueError, match='Duplicate tool name: dup'):
            Registry(mode='snapshot', tools=(tool, tool), resources=())

    def test_tools_render_as_mcp(self) -> None:
        rendered = [tool.to_mcp() for tool in build_registry(vision=True).tools]
        assert [t.name for t in rendered] == VISION_NAMES
        assert all(t.inputSchema['type'] == 'object' for t in rendered)
        assert all(t.annotations is not None for t in rendered)
