"""Merge segment verdicts into one decision and reason."""

from safety_net.config import AnalyzerConfig
from safety_net.models import Decision, Verdict

SAFE_MESSAGE = "Command appears safe."
INCOMPLETE_MESSAGE = "Unable to fully analyze command."

_MARKERS = {Decision.DENY: "🚫", Decision.WARN: "⚠️"}


def aggregate_decisions(verdicts: list[Verdict], unparseable: bool, config: AnalyzerConfig) -> Decision:
    """Apply severity precedence, then the warn-only and bypass overrides.

    Precedence:
    1. any deny
    2. strict mode with unparseable constructs -> deny
    3. any warn
    4. unparseable constructs -> warn
    5. allow
    """
    decisions = {v.decision for v in verdicts}

    if Decision.DENY in decisions:
        decision = Decision.DENY
    elif config.strict and unparseable:
        decision = Decision.DENY
    elif Decision.WARN in decisions:
        decision = Decision.WARN
    elif unparseable:
        decision = Decision.WARN
    else:
        decision = Decision.ALLOW

    if config.warn_only and decision is Decision.DENY:
        decision = Decision.WARN
    # Bypass is meant to be paired with audit logging by the caller
    if config.bypass:
        decision = Decision.ALLOW
    return decision


def build_reason(verdicts: list[Verdict], decision: Decision) -> str:
    """One marker-prefixed line per non-allow verdict, in discovery order."""
    issues = [v for v in verdicts if not v.is_allow]
    if not issues:
        return SAFE_MESSAGE if decision is Decision.ALLOW else INCOMPLETE_MESSAGE

    return "\n".join(
        f"{_MARKERS[v.decision]} {v.reason or v.rule_id or 'Unknown issue'}" for v in issues
    )
