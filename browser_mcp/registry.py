"""Mode-selected tool and resource registry.

Exactly one registry is active per process, selected once at startup by
``build_registry(vision)``. Both modes share the common tool set; the
navigation tools are rebuilt per mode.
"""

from __future__ import annotations

__all__ = [
    'Registry',
    'build_registry',
    'COMMON_TOOLS',
    'RESOURCES',
]

import dataclasses
from collections.abc import Callable, Sequence

from browser_mcp import resources
from browser_mcp.models import Mode
from browser_mcp.tools import common, snapshot
from browser_mcp.tools import vision as vision_tools
from browser_mcp.tools.base import Resource, Tool

COMMON_TOOLS: tuple[Tool, ...] = (
    common.press_key,
    common.wait,
    common.save_as_pdf,
    common.close,
)

RESOURCES: tuple[Resource, ...] = (resources.console,)


@dataclasses.dataclass(frozen=True, slots=True)
class Registry:
    """Ordered tools and resources for one mode. Immutable once built."""

    mode: Mode
    tools: tuple[Tool, ...]
    resources: tuple[Resource, ...]
    _tools_by_name: dict[str, Tool] = dataclasses.field(init=False, repr=False, compare=False)
    _resources_by_uri: dict[str, Resource] = dataclasses.field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        tools_by_name = _index(self.tools, lambda t: t.name, 'tool name')
        resources_by_uri = _index(self.resources, lambda r: r.uri, 'resource URI')
        # Frozen dataclass: bypass __setattr__ for derived lookup tables
        object.__setattr__(self, '_tools_by_name', tools_by_name)
        object.__setattr__(self, '_resources_by_uri', resources_by_uri)

    def tool(self, name: str) -> Tool | None:
        return self._tools_by_name.get(name)

    def resource(self, uri: str) -> Resource | None:
        return self._resources_by_uri.get(uri)

    @property
    def tool_names(self) -> list[str]:
        return [t.name for t in self.tools]


def _index[T](items: Sequence[T], key: Callable[[T], str], label: str) -> dict[str, T]:
    index: dict[str, T] = {}
    for item in items:
        k = key(item)
        if k in index:
            raise ValueError(f'Duplicate {label}: {k}')
        index[k] = item
    return index


def build_registry(vision: bool) -> Registry:
    """Build the registry for one mode. Pure function of the flag."""
    if vision:
        mode_tools: tuple[Tool, ...] = (
            common.navigate(snapshot=False),
            common.go_back(snapshot=False),
            common.go_forward(snapshot=False),
            vision_tools.screenshot,
            vision_tools.move_mouse,
            vision_tools.click,
            vision_tools.drag,
            vision_tools.type_text,
        )
    else:
        mode_tools = (
            common.navigate(snapshot=True),
            common.go_back(snapshot=True),
            common.go_forward(snapshot=True),
            snapshot.snapshot,
            snapshot.click,
            snapshot.hover,
            snapshot.type_text,
        )

    return Registry(
        mode='vision' if vision else 'snapshot',
        tools=mode_tools + COMMON_TOOLS,
        resources=RESOURCES,
    )
