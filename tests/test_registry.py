"""Tests for the rule registry and dispatch."""

import pytest

from safety_net.config import AnalyzerConfig
from safety_net.models import Confidence, Decision, Verdict
from safety_net.rules import dispatch, get_registry
from safety_net.rules.registry import RuleRegistry


def _deny(text: str, config: AnalyzerConfig) -> Verdict:
    return Verdict(decision=Decision.DENY, rule_id="test-deny", category="git", reason="denied")


def _warn(text: str, config: AnalyzerConfig) -> Verdict:
    return Verdict(decision=Decision.WARN, rule_id="test-warn", category="rm", reason="warned")


def _allow(text: str, config: AnalyzerConfig) -> Verdict:
    return Verdict.allow()


def _boom(text: str, config: AnalyzerConfig) -> Verdict:
    raise RuntimeError("provider bug")


class TestRuleRegistry:
    """Tests for RuleRegistry."""

    @pytest.fixture
    def registry(self) -> RuleRegistry:
        return RuleRegistry()

    def test_register_decorator(self, registry: RuleRegistry):
        """Test registering with the decorator form."""

        @registry.register(category="git", commands=("git",))
        def analyze_thing(text, config):
            """Analyze a thing."""
            return Verdict.allow()

        definition = registry.get("analyze_thing")
        assert definition is not None
        assert definition.category == "git"
        assert definition.description == "Analyze a thing."
        assert "analyze_thing" in registry
        assert len(registry) == 1

    def test_register_direct(self, registry: RuleRegistry):
        """Test registering with a direct call."""
        registry.register(_deny, category="git", commands=("git",), name="deny-git")

        assert registry.get("deny-git").func is _deny
        assert registry.commands() == {"git"}

    def test_unknown_category_rejected(self, registry: RuleRegistry):
        """Test categories must be known."""
        with pytest.raises(ValueError, match="Unknown rule category"):
            registry.register(_deny, category="nope", commands=("x",))

    def test_prefix_match(self, registry: RuleRegistry):
        """Test providers triggered by a command-name prefix."""
        registry.register(_deny, category="system", prefixes=("mkfs.",))

        assert [r.name for r in registry.providers_for("mkfs.ext4")] == ["_deny"]
        assert registry.providers_for("mkfs") == []

    def test_first_non_allow_wins(self, registry: RuleRegistry):
        """Test dispatch returns the first non-allow verdict in registration order."""
        registry.register(_allow, category="git", commands=("tool",))
        registry.register(_warn, category="rm", commands=("tool",))
        registry.register(_deny, category="git", commands=("tool",), name="later")

        verdict = registry.dispatch("tool run", AnalyzerConfig())

        assert verdict.rule_id == "test-warn"

    def test_disabled_category_skipped(self, registry: RuleRegistry):
        """Test providers of a disabled category are not run."""
        registry.register(_warn, category="rm", commands=("tool",))
        registry.register(_deny, category="git", commands=("tool",))

        verdict = registry.dispatch("tool", AnalyzerConfig(disabled_categories=frozenset({"rm"})))

        assert verdict.rule_id == "test-deny"

    def test_failing_provider_is_allow_low(self, registry: RuleRegistry):
        """Test a provider exception becomes allow with low confidence."""
        registry.register(_boom, category="git", commands=("tool",))

        verdict = registry.dispatch("tool", AnalyzerConfig())

        assert verdict.is_allow
        assert verdict.confidence is Confidence.LOW

    def test_unknown_command(self, registry: RuleRegistry):
        """Test commands with no provider are allowed."""
        registry.register(_deny, category="git", commands=("git",))

        assert registry.dispatch("ls -la", AnalyzerConfig()).is_allow
        assert registry.dispatch("", AnalyzerConfig()).is_allow

    def test_dispatch_uses_effective_command(self, registry: RuleRegistry):
        """Test wrappers are stripped before lookup."""
        registry.register(_deny, category="git", commands=("git",))

        assert registry.dispatch("sudo env A=1 /usr/bin/git push", AnalyzerConfig()).rule_id == "test-deny"


class TestDefaultRegistry:
    """Tests for the built-in providers."""

    def test_every_category_registered(self):
        """Test each rule category has a provider."""
        categories = {r.category for r in get_registry().list_rules()}

        assert categories == {
            "git", "rm", "aws", "pulumi", "stripe", "kubernetes", "terraform",
            "gcloud", "azure", "database", "docker", "github", "system", "api",
        }

    def test_trigger_commands(self):
        """Test a sample of trigger command names."""
        commands = get_registry().commands()

        for name in ("git", "rm", "find", "aws", "kubectl", "helm", "terraform", "tofu",
                     "gcloud", "gsutil", "az", "psql", "docker", "gh", "curl", "dd"):
            assert name in commands

    def test_dispatch_helper(self, config):
        """Test the package-level dispatch uses the default registry."""
        assert dispatch("git reset --hard", config()).decision is Decision.DENY
        assert dispatch("echo hello", config()).is_allow
