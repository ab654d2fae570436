"""Shared fixtures for server and tool tests."""

from __future__ import annotations

import pathlib

import pytest

from browser_mcp.models import LaunchOptions
from browser_mcp.registry import build_registry
from browser_mcp.server import SessionServer
from tests.fakes import FakeProvider


@pytest.fixture
def provider(tmp_path: pathlib.Path) -> FakeProvider:
    return FakeProvider(tmp_path)


@pytest.fixture
def snapshot_server(provider: FakeProvider) -> SessionServer:
    return SessionServer(build_registry(vision=False), LaunchOptions(), provider=provider)


@pytest.fixture
def vision_server(provider: FakeProvider) -> SessionServer:
    return SessionServer(build_registry(vision=True), LaunchOptions(), provider=provider)
