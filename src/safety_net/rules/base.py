"""Helpers shared by rule providers."""

from safety_net.config import AnalyzerConfig
from safety_net.models import Confidence, Decision, Verdict
from safety_net.shell.models import StrippedCommand, TokenKind
from safety_net.shell.wrappers import get_effective_command


def parse(text: str) -> StrippedCommand:
    """Tokenize a segment and strip its wrappers."""
    return get_effective_command(text)


def flag(
    decision: Decision,
    rule_id: str,
    category: str,
    reason: str,
    fragments: list[str] | None = None,
    confidence: Confidence = Confidence.HIGH,
) -> Verdict:
    """Build a non-allow verdict."""
    return Verdict(
        decision=decision,
        rule_id=rule_id,
        category=category,
        reason=reason,
        matched_fragments=[f for f in (fragments or []) if f],
        confidence=confidence,
    )


def escalated(config: AnalyzerConfig, category: str | None = None) -> Decision:
    """WARN normally, DENY in paranoid mode."""
    return Decision.DENY if config.is_paranoid(category) else Decision.WARN


def has_any(args: list[str], flags: tuple[str, ...] | set[str] | frozenset[str]) -> bool:
    """Check whether any argument is one of the given flags."""
    return any(arg in flags for arg in args)


def has_prefixed(args: list[str], prefixes: tuple[str, ...]) -> bool:
    """Check for ``--flag`` or ``--flag=value`` style arguments."""
    return any(arg == p or arg.startswith(p + "=") for arg in args for p in prefixes)


def short_flags(args: list[str]) -> set[str]:
    """Individual letters of short-flag clusters (``-rf`` -> {"r", "f"})."""
    letters: set[str] = set()
    for arg in args:
        if arg.startswith("-") and not arg.startswith("--") and len(arg) > 1:
            letters.update(arg[1:])
    return letters


def positionals(args: list[str]) -> list[str]:
    """Arguments that are not options."""
    return [arg for arg in args if not arg.startswith("-")]


def option_value(args: list[str], names: tuple[str, ...]) -> str | None:
    """Value of the first ``-x VALUE``, ``--name VALUE`` or ``--name=VALUE``."""
    for i, arg in enumerate(args):
        for name in names:
            if arg == name and i + 1 < len(args):
                return args[i + 1]
            if name.startswith("--") and arg.startswith(name + "="):
                return arg[len(name) + 1:]
    return None


def command_path(args: list[str]) -> list[str]:
    """Leading non-option words, e.g. ["compute", "instances", "delete", "vm-1"]."""
    path = []
    for arg in args:
        if arg.startswith("-"):
            break
        path.append(arg)
    return path


def path_matches(path: list[str], pattern: str) -> bool:
    """Whether ``path`` begins with the space-separated words of ``pattern``."""
    words = pattern.split()
    return path[:len(words)] == words


def redirects_input(command: StrippedCommand) -> bool:
    """Whether the command reads stdin from a file or heredoc (``< file``, ``<<EOF``)."""
    return any(t.kind is TokenKind.REDIRECT and "<" in t.text for t in command.tokens)
