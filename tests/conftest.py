"""Shared test fixtures for all tests.

This file imports and re-exports fixtures from the fixtures/ module so
they are discovered by pytest for every test package.
"""

# Import all fixtures from organized modules
from tests.fixtures.config import (  # noqa: F401
    authorizer,
    outside_dir,
    toolkit_settings,
    workspace,
)
from tests.fixtures.git import bare_remote, git_repo  # noqa: F401
