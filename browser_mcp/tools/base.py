"""Tool and Resource definitions.

A Tool pairs a name and a pydantic argument model with an action coroutine.
Actions receive the capability provider at call time, so definitions are
static and can be shared between registries.
"""

from __future__ import annotations

__all__ = [
    'Content',
    'Tool',
    'ToolAction',
    'Resource',
    'ResourceReader',
    'text',
]

import dataclasses
import typing
from collections.abc import Awaitable, Callable

import mcp.types

from browser_mcp.models import ToolArguments

if typing.TYPE_CHECKING:
    from browser_mcp.provider import CapabilityProvider

type Content = mcp.types.TextContent | mcp.types.ImageContent
type ToolAction = Callable[[CapabilityProvider, typing.Any], Awaitable[list[Content]]]
type ResourceReader = Callable[[CapabilityProvider], Awaitable[str]]


@dataclasses.dataclass(frozen=True, slots=True)
class Tool:
    """A named, schema-described operation bound to the capability provider."""

    name: str
    description: str
    arguments: type[ToolArguments]
    action: ToolAction
    annotations: mcp.types.ToolAnnotations | None = None

    def input_schema(self) -> dict[str, typing.Any]:
        return self.arguments.model_json_schema()

    def to_mcp(self) -> mcp.types.Tool:
        return mcp.types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_schema(),
            annotations=self.annotations,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class Resource:
    """A named data source read on demand."""

    uri: str
    name: str
    description: str
    mime_type: str
    read: ResourceReader

    def to_mcp(self) -> mcp.types.Resource:
        return mcp.types.Resource(
            uri=self.uri,  # type: ignore[arg-type]  # pydantic coerces str to AnyUrl
            name=self.name,
            description=self.description,
            mimeType=self.mime_type,
        )


def text(value: str) -> list[Content]:
    """Single text block result."""
    return [mcp.types.TextContent(type='text', text=value)]
