"""Data models for command analysis results.

Provides the decision enum, per-segment verdicts, and the final
analysis result returned by ``analyze_command``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Decision(Enum):
    """Classification of a command, ordered allow < warn < deny."""

    ALLOW = "allow"
    WARN = "warn"
    DENY = "deny"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Decision):
            return NotImplemented
        return self.severity < other.severity

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Decision):
            return NotImplemented
        return self.severity <= other.severity

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Decision):
            return NotImplemented
        return self.severity > other.severity

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Decision):
            return NotImplemented
        return self.severity >= other.severity


_SEVERITY = {Decision.ALLOW: 0, Decision.WARN: 1, Decision.DENY: 2}


class Confidence(Enum):
    """How sure a rule is about its verdict."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class Verdict:
    """Classification of one segment or nested command.

    Allow verdicts normally carry no rule metadata.

    Attributes:
        decision: allow, warn or deny.
        rule_id: Stable kebab-case identifier of the rule that fired.
        category: Rule category (matches the disable flag name).
        reason: Human-readable explanation.
        matched_fragments: Command fragments that triggered the rule.
        confidence: How sure the rule is.
    """

    decision: Decision
    rule_id: str | None = None
    category: str | None = None
    reason: str | None = None
    matched_fragments: list[str] = field(default_factory=list)
    confidence: Confidence = Confidence.HIGH

    @classmethod
    def allow(cls, confidence: Confidence = Confidence.HIGH) -> "Verdict":
        """Create an allow verdict."""
        return cls(decision=Decision.ALLOW, confidence=confidence)

    @property
    def is_allow(self) -> bool:
        return self.decision is Decision.ALLOW

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: dict[str, Any] = {
            "decision": self.decision.value,
            "confidence": self.confidence.value,
        }
        if self.rule_id:
            data["rule_id"] = self.rule_id
        if self.category:
            data["category"] = self.category
        if self.reason:
            data["reason"] = self.reason
        if self.matched_fragments:
            data["matched_fragments"] = list(self.matched_fragments)
        return data


@dataclass
class AnalysisResult:
    """Final outcome of analyzing a full command string.

    Attributes:
        decision: Aggregated decision after mode overrides.
        segment_verdicts: Every non-allow verdict, in discovery order.
        reason: Composed human-readable reason.
        original_command: The command as received.
        truncated_command: Shortened command for display and logs.
        unparseable: Whether unparseable constructs were detected.
    """

    decision: Decision
    segment_verdicts: list[Verdict]
    reason: str
    original_command: str
    truncated_command: str | None = None
    unparseable: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: dict[str, Any] = {
            "decision": self.decision.value,
            "reason": self.reason,
            "command": self.original_command,
            "segments": [v.to_dict() for v in self.segment_verdicts],
            "unparseable": self.unparseable,
        }
        if self.truncated_command is not None:
            data["truncated_command"] = self.truncated_command
        return data
