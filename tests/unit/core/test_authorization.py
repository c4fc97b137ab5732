"""Unit tests for mcp_toolkit.authorization."""

import os

import pytest

from mcp_toolkit.authorization import PathAuthorizer, normalize_path
from mcp_toolkit.exceptions import AccessDeniedError


@pytest.mark.unit
class TestNormalizePath:
    """Tests for lexical path normalization."""

    def test_collapses_dot_segments(self, tmp_path):
        path = f"{tmp_path}{os.sep}a{os.sep}..{os.sep}b{os.sep}.{os.sep}c.txt"
        assert normalize_path(path) == str(tmp_path / "b" / "c.txt")

    def test_relative_path_joins_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert normalize_path("file.txt") == os.path.join(os.getcwd(), "file.txt")

    def test_expands_home(self):
        assert normalize_path("~") == os.path.expanduser("~")


@pytest.mark.unit
class TestPathAuthorizer:
    """Tests for the allow-list gate."""

    def test_path_inside_allowed_directory(self, workspace):
        authorizer = PathAuthorizer([workspace])
        target = workspace / "sub" / "file.txt"

        assert authorizer.is_allowed(target)
        assert authorizer.validate(str(target)) == str(target)

    def test_allowed_directory_itself_is_allowed(self, workspace):
        authorizer = PathAuthorizer([workspace])
        assert authorizer.validate(str(workspace)) == str(workspace)

    def test_dot_dot_escape_is_denied(self, workspace):
        authorizer = PathAuthorizer([workspace])
        escape = f"{workspace}{os.sep}..{os.sep}outside{os.sep}x.txt"

        with pytest.raises(AccessDeniedError) as exc_info:
            authorizer.validate(escape)

        assert "Access denied - path outside allowed directories" in str(exc_info.value)
        assert exc_info.value.path == normalize_path(escape)

    def test_dot_dot_inside_allowed_directory_is_normalized(self, workspace):
        authorizer = PathAuthorizer([workspace])
        path = f"{workspace}{os.sep}sub{os.sep}..{os.sep}file.txt"

        assert authorizer.validate(path) == str(workspace / "file.txt")

    def test_sibling_with_shared_prefix_denied_by_default(self, tmp_path):
        allowed = tmp_path / "data"
        sibling = tmp_path / "database" / "x.txt"
        authorizer = PathAuthorizer([allowed])

        assert not authorizer.is_allowed(sibling)
        with pytest.raises(AccessDeniedError):
            authorizer.validate(str(sibling))

    def test_sibling_with_shared_prefix_allowed_without_boundary(self, tmp_path):
        allowed = tmp_path / "data"
        sibling = tmp_path / "database" / "x.txt"
        authorizer = PathAuthorizer([allowed], enforce_boundary=False)

        assert authorizer.is_allowed(sibling)

    def test_empty_allow_list_denies_everything(self, tmp_path, caplog):
        authorizer = PathAuthorizer([])

        assert authorizer.allowed_directories == ()
        assert not authorizer.is_allowed(tmp_path)
        with pytest.raises(AccessDeniedError):
            authorizer.validate(str(tmp_path))

    def test_duplicates_removed_in_order(self, tmp_path):
        first = tmp_path / "a"
        second = tmp_path / "b"
        authorizer = PathAuthorizer([first, second, f"{first}{os.sep}.", first])

        assert authorizer.allowed_directories == (str(first), str(second))

    def test_any_allowed_directory_matches(self, tmp_path):
        first = tmp_path / "a"
        second = tmp_path / "b"
        authorizer = PathAuthorizer([first, second])

        assert authorizer.is_allowed(second / "file.txt")

    def test_denial_is_logged(self, workspace, outside_dir, caplog):
        authorizer = PathAuthorizer([workspace])

        with caplog.at_level("WARNING", logger="mcp_toolkit.authorization"):
            with pytest.raises(AccessDeniedError):
                authorizer.validate(str(outside_dir / "secret.txt"))

        assert "Path outside allowed directories" in caplog.text
