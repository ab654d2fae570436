"""Pydantic models for the browser MCP server."""

from __future__ import annotations

import logging
import typing

import pydantic

__all__ = [
    'StrictModel',
    'Mode',
    'LaunchOptions',
    'ServerConfig',
    'ConsoleMessage',
    'ToolArguments',
    'NavigateArguments',
    'NoArguments',
    'ElementArguments',
    'TypeElementArguments',
    'MouseArguments',
    'DragArguments',
    'TypeTextArguments',
    'PressKeyArguments',
    'WaitArguments',
    'DEFAULT_MAX_LIFETIME',
    'DEFAULT_IDLE_TIMEOUT',
    'DEFAULT_FORCE_EXIT_TIMEOUT',
]

type Mode = typing.Literal['snapshot', 'vision']

DEFAULT_MAX_LIFETIME = 60
DEFAULT_IDLE_TIMEOUT = 30
DEFAULT_FORCE_EXIT_TIMEOUT = 15.0


class StrictModel(pydantic.BaseModel):
    """Base model with strict validation - no extra fields, immutable after creation."""

    model_config = pydantic.ConfigDict(
        extra='forbid',
        strict=True,
        frozen=True,
    )


class LaunchOptions(StrictModel):
    """Browser launch options handed to the capability provider."""

    headless: bool = False


class ServerConfig(StrictModel):
    """Process configuration, built once by the entry point."""

    launch: LaunchOptions
    vision: bool = False

    # Watchdog (seconds)
    max_lifetime: pydantic.PositiveInt = DEFAULT_MAX_LIFETIME
    idle_timeout: pydantic.PositiveInt = DEFAULT_IDLE_TIMEOUT
    force_exit_timeout: pydantic.PositiveFloat = DEFAULT_FORCE_EXIT_TIMEOUT

    log_level: str = 'INFO'

    @pydantic.field_validator('log_level')
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f'Unknown log level: {value}')
        return level

    @property
    def mode(self) -> Mode:
        return 'vision' if self.vision else 'snapshot'


class ConsoleMessage(StrictModel):
    """A console message emitted by the current page."""

    type: str
    text: str

    def render(self) -> str:
        return f'[{self.type}] {self.text}'


# Tool arguments
#
# Arguments arrive as JSON from the client, so these models are lax about
# numeric coercion (int for float) but still reject unknown fields.


class ToolArguments(pydantic.BaseModel):
    """Base for tool argument models. The JSON schema is the tool's input schema."""

    model_config = pydantic.ConfigDict(extra='forbid', frozen=True)


class NoArguments(ToolArguments):
    pass


class NavigateArguments(ToolArguments):
    url: str = pydantic.Field(description='The URL to navigate to')


class ElementArguments(ToolArguments):
    element: str = pydantic.Field(
        description='Human-readable element description used to obtain permission to interact with the element'
    )
    ref: str = pydantic.Field(description='Exact target element reference from the page snapshot')


class TypeElementArguments(ElementArguments):
    text: str = pydantic.Field(description='Text to type into the element')
    submit: bool = pydantic.Field(description='Whether to submit entered text (press Enter after)')


class MouseArguments(ToolArguments):
    x: float = pydantic.Field(description='X coordinate')
    y: float = pydantic.Field(description='Y coordinate')


class DragArguments(ToolArguments):
    startX: float = pydantic.Field(description='Start X coordinate')
    startY: float = pydantic.Field(description='Start Y coordinate')
    endX: float = pydantic.Field(description='End X coordinate')
    endY: float = pydantic.Field(description='End Y coordinate')


class TypeTextArguments(ToolArguments):
    text: str = pydantic.Field(description='Text to type')
    submit: bool = pydantic.Field(description='Whether to submit entered text (press Enter after)')


class PressKeyArguments(ToolArguments):
    key: str = pydantic.Field(
        description='Name of the key to press or a character to generate, such as `ArrowLeft` or `a`'
    )


class WaitArguments(ToolArguments):
    time: float = pydantic.Field(ge=0, description='Time to wait in seconds (capped at 10)')
