"""Configuration fixtures for testing."""

import pytest

from mcp_toolkit.authorization import PathAuthorizer
from mcp_toolkit.config.schema import ToolkitSettings


@pytest.fixture
def workspace(tmp_path):
    """Create the allowed directory for each test.

    Returns:
        Path: tmp_path / "workspace"
    """
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return workspace


@pytest.fixture
def outside_dir(tmp_path):
    """Directory next to the workspace that is never allowed."""
    outside = tmp_path / "outside"
    outside.mkdir()
    return outside


@pytest.fixture
def toolkit_settings(workspace, tmp_path):
    """Settings allowing only the workspace, logging under tmp_path."""
    return ToolkitSettings(
        allowed_directories=[str(workspace)],
        log_path=str(tmp_path / "logs"),
    )


@pytest.fixture
def authorizer(toolkit_settings):
    """PathAuthorizer built from toolkit_settings."""
    return PathAuthorizer(toolkit_settings.allowed_directories)
