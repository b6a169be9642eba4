"""Tests for the safety-net command-line entry point."""

import io
import json

import pytest

from safety_net import __version__, cli
from safety_net.errors import ConfigurationError


@pytest.fixture
def streams(monkeypatch):
    """Replace the process streams with in-memory buffers."""
    stdin, stdout, stderr = io.StringIO(), io.StringIO(), io.StringIO()
    monkeypatch.setattr("sys.stdin", stdin)
    monkeypatch.setattr("sys.stdout", stdout)
    monkeypatch.setattr("sys.stderr", stderr)
    return stdin, stdout, stderr


class TestAnalyzeCommand:
    """Tests for analyzing command words given as arguments."""

    def test_denied_command(self, streams):
        """Test a denied command exits 1 and prints the result."""
        _, stdout, _ = streams

        assert cli.main(["git", "push", "--force"]) == 1

        result = json.loads(stdout.getvalue())
        assert result["decision"] == "deny"
        assert result["command"] == "git push --force"
        assert result["segments"][0]["rule_id"] == "git-push-force"

    def test_allowed_command(self, streams):
        """Test allow and warn exit 0."""
        _, stdout, _ = streams

        assert cli.main(["ls", "-la"]) == 0
        assert json.loads(stdout.getvalue())["decision"] == "allow"

    def test_strict_flag(self, streams):
        """Test --strict turns unparseable warnings into denials."""
        _, stdout, _ = streams

        assert cli.main(["--strict", "cat", "<<EOF"]) == 1
        assert json.loads(stdout.getvalue())["unparseable"] is True

    def test_paranoid_flag(self, streams):
        """Test --paranoid escalates warnings."""
        assert cli.main(["kubectl", "delete", "pod", "web"]) == 0
        assert cli.main(["--paranoid", "kubectl", "delete", "pod", "web"]) == 1

    def test_configuration_error(self, streams, monkeypatch):
        """Test configuration errors exit 2."""
        _, _, stderr = streams

        def broken(*args, **kwargs):
            raise ConfigurationError("max_segments must be positive")

        monkeypatch.setattr(cli, "analyze_command", broken)

        assert cli.main(["ls"]) == 2
        assert "[safety-net] Error: max_segments must be positive" in stderr.getvalue()


class TestHookMode:
    """Tests for reading a hook payload from stdin."""

    def test_reads_stdin(self, streams):
        """Test no command words means hook mode."""
        stdin, stdout, _ = streams
        stdin.write(json.dumps({"tool_name": "Bash", "tool_input": {"command": "rm -rf /"}}))
        stdin.seek(0)

        assert cli.main([]) == 0
        response = json.loads(stdout.getvalue())
        assert response["hookSpecificOutput"]["permissionDecision"] == "deny"

    def test_bad_payload(self, streams):
        """Test invalid JSON exits 2."""
        stdin, _, stderr = streams
        stdin.write("{oops")
        stdin.seek(0)

        assert cli.main([]) == 2
        assert "[safety-net] Error:" in stderr.getvalue()


class TestVersion:
    """Tests for --version."""

    def test_version(self, streams):
        """Test the version string."""
        _, stdout, _ = streams

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--version"])

        assert exc_info.value.code == 0
        assert stdout.getvalue().strip() == f"safety-net {__version__}"
