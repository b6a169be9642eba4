"""Tests for path and formatting helpers."""

from pathlib import Path

import pytest

from safety_net.utils import (
    TRUNCATE_SUFFIX,
    is_dangerous_path,
    is_system_path,
    is_under_safe_root,
    normalize_path,
    truncate_command,
)


class TestNormalizePath:
    """Tests for normalize_path()."""

    def test_relative_to_cwd(self):
        """Test relative paths resolve against cwd."""
        assert normalize_path("./build/../dist", "/work") == "/work/dist"

    def test_home_expansion(self):
        """Test ~ expands to the home directory."""
        assert normalize_path("~/x") == str(Path.home() / "x")

    def test_absolute_ignores_cwd(self):
        """Test absolute paths are only normalized."""
        assert normalize_path("/usr//local/", "/work") == "/usr/local"


class TestDangerousPaths:
    """Tests for is_dangerous_path() and is_system_path()."""

    @pytest.mark.parametrize("path", ["/", "/*", "~", "~/", "$HOME", "${HOME}/", ".", "..", "/usr/..", ""])
    def test_dangerous(self, path: str):
        """Test catastrophic targets."""
        assert is_dangerous_path(path, "/work")

    def test_home_by_path(self):
        """Test the literal home directory."""
        assert is_dangerous_path(str(Path.home()))

    def test_cwd_relative_escape(self):
        """Test climbing to / through cwd."""
        assert is_dangerous_path("../..", "/work")

    @pytest.mark.parametrize("path", ["./build", "node_modules", "/tmp/cache", "~/project/dist"])
    def test_not_dangerous(self, path: str):
        """Test ordinary targets."""
        assert not is_dangerous_path(path, "/work")

    def test_system_paths(self):
        """Test operating-system directories."""
        assert is_system_path("/etc/nginx")
        assert is_system_path("/usr")
        assert not is_system_path("/usrlocal")
        assert not is_system_path("/home/me")


class TestSafeRoots:
    """Tests for is_under_safe_root()."""

    def test_inside_root(self):
        """Test the root itself and paths below it."""
        assert is_under_safe_root("/tmp", ["/tmp"])
        assert is_under_safe_root("/tmp/a/b", ["/tmp"])
        assert is_under_safe_root("cache", ["/work"], cwd="/work")

    def test_outside_root(self):
        """Test prefix look-alikes and traversal."""
        assert not is_under_safe_root("/tmpfoo", ["/tmp"])
        assert not is_under_safe_root("/tmp/../etc", ["/tmp"])


class TestTruncate:
    """Tests for truncate_command()."""

    def test_short_unchanged(self):
        """Test short commands are returned as-is."""
        assert truncate_command("ls") == "ls"

    def test_long_marked(self):
        """Test the cut is marked."""
        truncated = truncate_command("x" * 50, max_length=10)

        assert truncated == "x" * 10 + TRUNCATE_SUFFIX
