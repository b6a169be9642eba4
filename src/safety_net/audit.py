"""Audit logging for warn and deny decisions.

- One JSONL file per session under the audit directory
- Secrets are redacted before anything touches disk
- Writes run on a background worker; failures are logged, never raised
"""

import json
import os
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Iterator

from safety_net.config import load_settings
from safety_net.logging import Loggers
from safety_net.models import AnalysisResult, Decision
from safety_net.utils import redact_secrets, sanitize_filename

logger = Loggers.audit()

# Single worker keeps lines from one process in submission order
_audit_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="safety-net-audit")
_pending: set[Future] = set()
_pending_lock = Lock()


@dataclass
class AuditEntry:
    """A single audit log entry for one analyzed command.

    Attributes:
        timestamp: When the decision was made (ISO format, UTC).
        decision: Final decision value.
        reason: Composed reason shown to the user.
        command: Full command with secrets redacted.
        session_id: Host session identifier, if known.
        cwd: Working directory of the analyzed command.
        truncated_command: Shortened command with secrets redacted.
        segments: Non-allow verdicts as dictionaries.
    """

    timestamp: str
    decision: str
    reason: str
    command: str
    session_id: str | None = None
    cwd: str | None = None
    truncated_command: str | None = None
    segments: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {k: v for k, v in asdict(self).items() if v is not None and v != []}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuditEntry":
        """Create from dictionary."""
        return cls(
            timestamp=data.get("timestamp", ""),
            decision=data.get("decision", ""),
            reason=data.get("reason", ""),
            command=data.get("command", ""),
            session_id=data.get("session_id"),
            cwd=data.get("cwd"),
            truncated_command=data.get("truncated_command"),
            segments=data.get("segments", []),
        )

    @classmethod
    def from_result(
        cls,
        result: AnalysisResult,
        session_id: str | None = None,
        cwd: str | None = None,
    ) -> "AuditEntry":
        """Build a redacted entry from an analysis result."""
        segments = []
        for verdict in result.segment_verdicts:
            data = verdict.to_dict()
            if "matched_fragments" in data:
                data["matched_fragments"] = [redact_secrets(f) for f in data["matched_fragments"]]
            segments.append(data)

        return cls(
            timestamp=datetime.now(timezone.utc).isoformat(),
            decision=result.decision.value,
            reason=result.reason,
            command=redact_secrets(result.original_command),
            session_id=session_id,
            cwd=cwd,
            truncated_command=(
                redact_secrets(result.truncated_command) if result.truncated_command else None
            ),
            segments=segments,
        )


def _has_findings(result: AnalysisResult) -> bool:
    # Bypassed commands are allowed but keep their verdicts
    return result.decision is not Decision.ALLOW or bool(result.segment_verdicts)


class AuditLogger:
    """Writes flagged analysis results to per-session JSONL files."""

    def __init__(self, audit_dir: str | Path, enabled: bool = True):
        """Initialize the audit logger.

        Args:
            audit_dir: Directory holding ``{session}.jsonl`` files.
            enabled: When False, ``log`` is a no-op.
        """
        self.audit_dir = Path(audit_dir).expanduser()
        self.enabled = enabled

    @classmethod
    def from_settings(cls) -> "AuditLogger":
        """Create a logger from the current environment settings."""
        settings = load_settings()
        return cls(settings.audit_dir, enabled=settings.audit_enabled)

    def get_log_path(self, session_id: str | None) -> Path:
        """Log file for a session; ``unknown.jsonl`` without one."""
        name = sanitize_filename(session_id) if session_id else "unknown"
        return self.audit_dir / f"{name}.jsonl"

    def _ensure_audit_dir(self) -> None:
        self.audit_dir.mkdir(mode=0o700, parents=True, exist_ok=True)

    def log(
        self,
        result: AnalysisResult,
        session_id: str | None = None,
        cwd: str | None = None,
    ) -> AuditEntry | None:
        """Append one entry for a warn, deny or bypassed result.

        Args:
            result: The analysis result.
            session_id: Host session identifier.
            cwd: Working directory of the command.

        Returns:
            The written entry, or None if nothing was written.
        """
        if not self.enabled or not _has_findings(result):
            return None

        try:
            entry = AuditEntry.from_result(result, session_id=session_id, cwd=cwd)
            line = json.dumps(entry.to_dict(), ensure_ascii=False) + "\n"
            self._ensure_audit_dir()
            log_file = self.get_log_path(session_id)
            fd = os.open(log_file, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o600)
            with os.fdopen(fd, "a", encoding="utf-8") as f:
                f.write(line)
        except (OSError, TypeError, ValueError) as e:
            logger.error(
                "audit_write_failed",
                session_id=session_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        logger.debug("audit_written", session_id=session_id, decision=entry.decision)
        return entry

    def read_session(self, session_id: str | None) -> Iterator[AuditEntry]:
        """Iterate the entries recorded for a session.

        Malformed lines are skipped.
        """
        log_file = self.get_log_path(session_id)
        if not log_file.exists():
            return

        with open(log_file, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    yield AuditEntry.from_dict(json.loads(line))
                except json.JSONDecodeError:
                    continue


def _write(audit_logger: AuditLogger, result: AnalysisResult, session_id: str | None, cwd: str | None) -> None:
    try:
        audit_logger.log(result, session_id=session_id, cwd=cwd)
    except Exception as e:
        # Background writes must never surface to the caller
        logger.error("audit_task_failed", error=str(e), error_type=type(e).__name__)


def audit_async(
    result: AnalysisResult,
    session_id: str | None = None,
    cwd: str | None = None,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Queue an audit write and return immediately.

    Args:
        result: The analysis result.
        session_id: Host session identifier.
        cwd: Working directory of the command.
        audit_logger: Logger to use (default: built from settings).
    """
    if not _has_findings(result):
        return
    audit_logger = audit_logger or AuditLogger.from_settings()
    if not audit_logger.enabled:
        return

    future = _audit_executor.submit(_write, audit_logger, result, session_id, cwd)
    with _pending_lock:
        _pending.add(future)
    future.add_done_callback(_discard)


def _discard(future: Future) -> None:
    with _pending_lock:
        _pending.discard(future)


def flush_audit(timeout: float | None = 5.0) -> None:
    """Wait for queued audit writes (used on CLI exit and in tests)."""
    with _pending_lock:
        pending = list(_pending)
    if pending:
        wait(pending, timeout=timeout)
