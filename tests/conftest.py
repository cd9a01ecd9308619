"""Pytest configuration for steampipe-publisher tests."""

import pytest

from steampipe_publisher.config import settings
from steampipe_publisher.tools.locator import SDK_TOOL_RELATIVE, ToolLocator
from tests.fixtures.runners import StubRunner


@pytest.fixture
def manifest_dir(tmp_path, monkeypatch):
    """Route generated manifests into a per-test directory."""
    path = tmp_path / "manifests"
    monkeypatch.setattr(settings, "manifest_dir", str(path))
    return path


@pytest.fixture
def empty_locator(tmp_path):
    """Locator that cannot see any home, system or PATH install."""
    home = tmp_path / "home"
    home.mkdir()
    return ToolLocator(home=home, system_candidates=(), path_lookup=lambda name: None)


@pytest.fixture
def sdk_folder(tmp_path):
    """A Steamworks SDK layout with a fake steamcmd.sh."""
    sdk = tmp_path / "steamworks_sdk"
    tool = sdk / SDK_TOOL_RELATIVE
    tool.parent.mkdir(parents=True)
    tool.write_text("#!/bin/sh\n")
    tool.chmod(0o755)
    return sdk


@pytest.fixture
def stub_runner():
    return StubRunner()
