"""Rule provider registry and dispatch.

Provides:
- RuleDefinition: Metadata for one rule provider
- RuleRegistry: Static command-name -> provider table
- register_rule: Decorator registering a provider with the default registry
- dispatch: Run the matching providers for one segment

A provider is a plain function ``(text, config) -> Verdict``. Providers
are keyed by trigger command names (and name prefixes, for families
like ``mkfs.ext4``); adding a vendor means registering a provider, not
changing the dispatcher.
"""

from dataclasses import dataclass, field
from typing import Callable

from safety_net.config import RULE_CATEGORIES, AnalyzerConfig
from safety_net.logging import Loggers
from safety_net.models import Confidence, Verdict
from safety_net.shell.wrappers import get_effective_command

RuleProvider = Callable[[str, AnalyzerConfig], Verdict]


@dataclass
class RuleDefinition:
    """Metadata for a registered rule provider.

    Attributes:
        name: Provider name (defaults to function name)
        category: Rule category, matching a SAFETY_NET_DISABLE_* switch
        func: The provider function
        commands: Exact command names that trigger the provider
        prefixes: Command-name prefixes that trigger the provider
        description: Human-readable description
    """

    name: str
    category: str
    func: RuleProvider
    commands: frozenset[str] = field(default_factory=frozenset)
    prefixes: tuple[str, ...] = ()
    description: str = ""

    def matches(self, command_name: str) -> bool:
        return command_name in self.commands or any(
            command_name.startswith(p) for p in self.prefixes
        )


class RuleRegistry:
    """Registry mapping command names to rule providers."""

    def __init__(self):
        self._rules: dict[str, RuleDefinition] = {}
        self._by_command: dict[str, list[RuleDefinition]] = {}

    def register(
        self,
        func: RuleProvider | None = None,
        *,
        category: str,
        commands: tuple[str, ...] | list[str] = (),
        prefixes: tuple[str, ...] = (),
        name: str | None = None,
        description: str | None = None,
    ) -> Callable[..., RuleProvider]:
        """Register a rule provider.

        Can be used as a decorator:
            @registry.register(category="git", commands=("git",))
            def analyze_git(text, config) -> Verdict:
                ...

        Or called directly:
            registry.register(analyze_git, category="git", commands=("git",))
        """
        if category not in RULE_CATEGORIES:
            raise ValueError(f"Unknown rule category: {category}")

        def decorator(f: RuleProvider) -> RuleProvider:
            rule_name = name or f.__name__
            definition = RuleDefinition(
                name=rule_name,
                category=category,
                func=f,
                commands=frozenset(commands),
                prefixes=tuple(prefixes),
                description=description or (f.__doc__ or "").split("\n")[0].strip(),
            )
            self._rules[rule_name] = definition
            for command in definition.commands:
                self._by_command.setdefault(command, []).append(definition)
            return f

        if func is not None:
            return decorator(func)
        return decorator

    def get(self, name: str) -> RuleDefinition | None:
        """Get a provider definition by name."""
        return self._rules.get(name)

    def providers_for(self, command_name: str) -> list[RuleDefinition]:
        """Providers triggered by a command name, in registration order."""
        exact = self._by_command.get(command_name, [])
        by_prefix = [
            r for r in self._rules.values()
            if r.prefixes and r not in exact and r.matches(command_name)
        ]
        return [*exact, *by_prefix]

    def list_rules(self) -> list[RuleDefinition]:
        """List all registered providers."""
        return list(self._rules.values())

    def commands(self) -> set[str]:
        """All exact trigger command names."""
        return set(self._by_command)

    def dispatch(self, text: str, config: AnalyzerConfig) -> Verdict:
        """Classify one command segment.

        Returns the first non-allow verdict from the providers registered
        for the segment's effective command, or allow. Providers of a
        disabled category are skipped. A provider that raises is logged
        and treated as allow with low confidence.

        Args:
            text: Command segment text.
            config: Analyzer configuration.

        Returns:
            Verdict for the segment.
        """
        command_name = get_effective_command(text).command_name
        if not command_name:
            return Verdict.allow()

        for rule in self.providers_for(command_name):
            if config.is_disabled(rule.category):
                continue
            try:
                verdict = rule.func(text, config)
            except Exception as e:
                Loggers.rules().warning(
                    "rule_provider_failed",
                    provider=rule.name,
                    command=command_name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                verdict = Verdict.allow(confidence=Confidence.LOW)
            if not verdict.is_allow:
                return verdict

        return Verdict.allow()

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, name: str) -> bool:
        return name in self._rules


# Global registry instance
_default_registry = RuleRegistry()


def get_registry() -> RuleRegistry:
    """Get the default rule registry (populated by importing safety_net.rules)."""
    return _default_registry


def register_rule(
    func: RuleProvider | None = None,
    *,
    category: str,
    commands: tuple[str, ...] | list[str] = (),
    prefixes: tuple[str, ...] = (),
    name: str | None = None,
    description: str | None = None,
) -> Callable[..., RuleProvider]:
    """Register a rule provider with the default registry.

    Decorator for registering providers:
        @register_rule(category="aws", commands=("aws",))
        def analyze_aws(text: str, config: AnalyzerConfig) -> Verdict:
            '''Classify AWS CLI commands by verb.'''
            ...
    """
    return _default_registry.register(
        func,
        category=category,
        commands=commands,
        prefixes=prefixes,
        name=name,
        description=description,
    )
