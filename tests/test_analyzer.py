"""Tests for the command analysis pipeline."""

import shlex

import pytest

from safety_net import analyze_command
from safety_net.analyzer import analyze_nested, group_body
from safety_net.errors import ConfigurationError
from safety_net.models import Confidence, Decision
from safety_net.shell.models import ExtractedKind
from safety_net.utils import TRUNCATE_SUFFIX


def nest(command: str, levels: int) -> str:
    """Wrap a command in ``bash -c`` the given number of times."""
    for _ in range(levels):
        command = f"bash -c {shlex.quote(command)}"
    return command


class TestAnalyzeCommand:
    """End-to-end decisions for representative commands."""

    @pytest.mark.parametrize(
        ("command", "expected"),
        [
            ("rm -rf /", Decision.DENY),
            ("rm -rf ./build", Decision.WARN),
            ("git push --force", Decision.DENY),
            ("git push --force-with-lease", Decision.ALLOW),
            ("aws ec2 describe-instances", Decision.ALLOW),
            ("aws ec2 terminate-instances --instance-ids i-1", Decision.DENY),
            ("ls -la && git status", Decision.ALLOW),
            ("npm test || rm -rf /", Decision.DENY),
        ],
    )
    def test_decisions(self, config, command: str, expected: Decision):
        """Test the final decision."""
        assert analyze_command(command, config()).decision is expected

    def test_safe_command_result(self, config):
        """Test the shape of an allow result."""
        result = analyze_command("echo $(date)", config())

        assert result.decision is Decision.ALLOW
        assert result.unparseable is False
        assert result.segment_verdicts == []
        assert result.reason == "Command appears safe."
        assert result.original_command == "echo $(date)"
        assert result.truncated_command == "echo $(date)"

    def test_deny_result(self, config):
        """Test the verdict list and composed reason of a deny."""
        result = analyze_command("git status && git reset --hard", config())

        assert [v.rule_id for v in result.segment_verdicts] == ["git-reset-hard"]
        assert result.reason.startswith("🚫 git reset --hard")

    def test_every_issue_is_reported(self, config):
        """Test each non-allow segment contributes a reason line."""
        result = analyze_command("rm -rf ./build; git push --force", config())

        assert result.decision is Decision.DENY
        assert len(result.segment_verdicts) == 2
        lines = result.reason.split("\n")
        assert lines[0].startswith("⚠️")
        assert lines[1].startswith("🚫")

    @pytest.mark.parametrize(
        ("left", "right"),
        [
            ("git status", "rm -rf ./build"),
            ("rm -rf ./build", "git push --force"),
            ("ls", "echo ok"),
            ("cat <<EOF", "git rebase main"),
        ],
    )
    def test_halves_combine(self, config, left: str, right: str):
        """Test the whole command decides like its most severe half."""
        cfg = config()
        whole = analyze_command(f"{left} && {right}", cfg).decision
        halves = max(analyze_command(left, cfg).decision, analyze_command(right, cfg).decision)

        assert whole is halves

    @pytest.mark.parametrize(
        "command",
        ["echo ok\nrm -rf /", "echo ok\r\ngit push --force", "ls\n\ngit reset --hard\n"],
    )
    def test_multiline_commands(self, config, command: str):
        """Test every line of a multi-line command is analyzed."""
        assert analyze_command(command, config()).decision is Decision.DENY

    @pytest.mark.parametrize(
        "command",
        [
            "sudo FOO=1 rm -rf /",
            "sudo -E HOME=/ rm -rf /",
            "sudo FOO=1 git push --force",
            "nohup FOO=1 rm -rf /",
            "sudo FOO=1 bash -c 'rm -rf /'",
        ],
    )
    def test_assignments_behind_wrappers(self, config, command: str):
        """Test VAR=value after sudo or nohup does not hide the command."""
        assert analyze_command(command, config()).decision is Decision.DENY

    def test_quoted_operators_are_not_commands(self, config):
        """Test text inside quotes is not analyzed as a command."""
        assert analyze_command('echo "a && rm -rf /"', config()).decision is Decision.ALLOW
        assert analyze_command("git commit -m 'rm -rf /'", config()).decision is Decision.ALLOW

    def test_long_command_is_truncated(self, config):
        """Test truncated_command for long input."""
        result = analyze_command("echo " + "x" * 300, config())

        assert result.truncated_command.endswith(TRUNCATE_SUFFIX)
        assert len(result.original_command) == 305

    def test_never_raises_on_malformed_input(self, config):
        """Test unbalanced quotes and brackets."""
        for command in ["echo 'unterminated", "((((", "}}}", "`", "", "   ", "&&"]:
            result = analyze_command(command, config())
            assert result.decision in (Decision.ALLOW, Decision.WARN, Decision.DENY)


class TestUnparseableConstructs:
    """Commands the analyzer cannot fully follow."""

    def test_heredoc_warns(self, config):
        """Test a heredoc is warned about."""
        result = analyze_command("cat <<EOF\nhello\nEOF", config())

        assert result.decision is Decision.WARN
        assert result.unparseable is True
        assert result.segment_verdicts[-1].rule_id == "unparseable-construct"
        assert result.segment_verdicts[-1].confidence is Confidence.LOW

    def test_heredoc_strict_denies(self, config):
        """Test strict mode denies unparseable commands."""
        assert analyze_command("cat <<EOF", config(strict=True)).decision is Decision.DENY

    def test_whitelisted_heredoc(self, config):
        """Test the commit-message idiom."""
        command = "git commit -m \"$(cat <<'EOF'\nFix the thing\nEOF\n)\""

        assert analyze_command(command, config(strict=True)).decision is Decision.ALLOW

    def test_deny_wins_over_unparseable(self, config):
        """Test a real deny is kept alongside the unparseable warning."""
        result = analyze_command("echo $((1+1)) && rm -rf /", config())

        assert result.decision is Decision.DENY
        assert result.unparseable is True


class TestNestedCommands:
    """Commands embedded in shells, batch runners and find."""

    def test_bash_dash_c(self, config):
        """Test bash -c content is analyzed and labelled."""
        result = analyze_command('bash -c "rm -rf /"', config())

        assert result.decision is Decision.DENY
        assert "[via bash -c]" in result.reason

    def test_sudo_shell(self, config):
        """Test wrappers in front of the shell."""
        result = analyze_command("sudo sh -c 'git push --force'", config())

        assert result.decision is Decision.DENY
        assert "[via sh -c]" in result.reason

    def test_compound_nested_command(self, config):
        """Test nested shell text is split into its own segments."""
        result = analyze_command("bash -c 'cd /tmp && git reset --hard'", config())

        assert result.decision is Decision.DENY

    def test_find_exec(self, config):
        """Test find -exec bodies."""
        result = analyze_command(r"find . -name '*.bak' -exec rm -rf / \;", config())

        assert result.decision is Decision.DENY
        assert "[via find -exec]" in result.reason

    def test_xargs(self, config):
        """Test xargs in a pipeline."""
        result = analyze_command("ls | xargs rm -rf", config())

        assert result.decision is Decision.WARN
        assert any(v.rule_id == "xargs-rm-rf" for v in result.segment_verdicts)

    def test_subshell_group(self, config):
        """Test a parenthesized group body is analyzed."""
        result = analyze_command("(cd / && rm -rf /)", config())

        assert result.decision is Decision.DENY
        assert "[via subshell]" in result.reason

    def test_brace_group_with_redirect(self, config):
        """Test a brace group followed by a redirect."""
        result = analyze_command("{ git stash clear; } > /dev/null 2>&1", config())

        assert result.decision is Decision.DENY
        assert "[via group]" in result.reason

    def test_group_with_safe_body(self, config):
        """Test harmless groups."""
        result = analyze_command("(echo a; echo b) && echo c", config())

        assert result.decision is Decision.ALLOW

    def test_depth_bound(self, config):
        """Test nesting deeper than max_recursion_depth is not followed."""
        command = nest("rm -rf /", 2)

        assert analyze_command(command, config(max_recursion_depth=1)).decision is Decision.ALLOW
        assert analyze_command(command, config(max_recursion_depth=2)).decision is Decision.DENY

    def test_depth_zero_disables_nesting(self, config):
        """Test max_recursion_depth=0."""
        assert analyze_command('bash -c "rm -rf /"', config(max_recursion_depth=0)).decision is Decision.ALLOW

    def test_deep_nesting_terminates(self, config):
        """Test very deep nesting finishes under the default bound."""
        command = nest("rm -rf /", 10)

        assert analyze_command(command, config()).decision is Decision.ALLOW
        assert analyze_command(command, config(max_recursion_depth=10)).decision is Decision.DENY

    def test_analyze_nested_directly(self, config):
        """Test analyze_nested returns annotated non-allow verdicts."""
        verdicts = analyze_nested("bash -c 'echo ok; git clean -fd'", config())

        assert len(verdicts) == 1
        assert verdicts[0].reason.startswith("[via bash -c] ")
        assert verdicts[0].rule_id == "git-clean-force"


class TestGroupBody:
    """Tests for group_body()."""

    def test_subshell(self):
        """Test ( ... ) bodies."""
        extracted = group_body("(cd /tmp; make)")

        assert extracted.text == "cd /tmp; make"
        assert extracted.wrapper_label == "subshell"
        assert extracted.kind is ExtractedKind.SHELL

    def test_nested_parentheses_and_quotes(self):
        """Test the matching close is found past nested and quoted parens."""
        extracted = group_body("(echo ')' $(date)) > log")

        assert extracted.text == "echo ')' $(date)"

    def test_not_a_group(self):
        """Test segments that do not start a group."""
        assert group_body("echo (x)") is None
        assert group_body("()") is None
        assert group_body("(unclosed") is None
        assert group_body("") is None


class TestModes:
    """Mode overrides applied after aggregation."""

    def test_warn_only(self, config):
        """Test warn_only downgrades deny."""
        result = analyze_command("rm -rf /", config(warn_only=True))

        assert result.decision is Decision.WARN
        assert result.segment_verdicts[0].decision is Decision.DENY

    def test_bypass(self, config):
        """Test bypass allows but keeps the verdicts."""
        result = analyze_command("rm -rf /", config(bypass=True))

        assert result.decision is Decision.ALLOW
        assert result.segment_verdicts

    def test_paranoid(self, config):
        """Test paranoid mode escalates warnings."""
        assert analyze_command("git rebase main", config()).decision is Decision.WARN
        assert analyze_command("kubectl delete pod web", config(paranoid=True)).decision is Decision.DENY

    def test_too_many_segments(self, config):
        """Test analysis stops at max_segments."""
        command = "echo a; echo b; rm -rf /"

        result = analyze_command(command, config(max_segments=2))
        assert result.decision is Decision.WARN
        assert result.segment_verdicts[-1].rule_id == "too-many-segments"

        assert analyze_command(command, config(max_segments=2, strict=True)).decision is Decision.DENY
        assert analyze_command(command, config(max_segments=3)).decision is Decision.DENY

    def test_overrides_without_config(self, monkeypatch):
        """Test keyword overrides load a fresh config."""
        assert analyze_command("cat <<EOF", strict=True).decision is Decision.DENY
        monkeypatch.setenv("SAFETY_NET_STRICT", "1")
        assert analyze_command("cat <<EOF").decision is Decision.DENY

    def test_overrides_with_config(self, config):
        """Test keyword overrides replace fields of a given config."""
        result = analyze_command("rm -rf /", config(), bypass=True)

        assert result.decision is Decision.ALLOW

    def test_unknown_override(self):
        """Test unknown settings are rejected."""
        with pytest.raises(ConfigurationError):
            analyze_command("ls", stricter=True)
