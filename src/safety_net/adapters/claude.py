"""PreToolUse hook adapter for Claude Code.

Reads the hook payload from stdin and writes the permission decision
to stdout:
- deny  -> permissionDecision "deny" with a blocking explanation
- warn  -> permissionDecision "ask" plus a system message
- allow -> permissionDecision "allow"
"""

import json
from typing import Any, TextIO

from pydantic import BaseModel, ConfigDict, ValidationError

from safety_net.analyzer import analyze_command
from safety_net.audit import audit_async
from safety_net.errors import HookInputError
from safety_net.logging import Loggers, bind_context, clear_context
from safety_net.models import AnalysisResult, Decision

logger = Loggers.adapters()

HOOK_EVENT = "PreToolUse"
SHELL_TOOL = "Bash"
BLOCKED_PREFIX = "BLOCKED by Safety Net\n\n"
WARNING_PREFIX = "⚠️ Safety Net Warning:\n"


class ClaudeHookInput(BaseModel):
    """The fields of a PreToolUse payload this adapter reads."""

    model_config = ConfigDict(extra="ignore")

    tool_name: str = ""
    tool_input: dict[str, Any] = {}
    session_id: str | None = None
    cwd: str | None = None


def _response(decision: str, reason: str | None = None) -> dict[str, Any]:
    output: dict[str, Any] = {
        "hookEventName": HOOK_EVENT,
        "permissionDecision": decision,
    }
    if reason is not None:
        output["permissionDecisionReason"] = reason
    return {"hookSpecificOutput": output}


def allow_response() -> dict[str, Any]:
    return _response("allow")


def map_decision(result: AnalysisResult) -> dict[str, Any]:
    """Map an analysis result to the hook response."""
    if result.decision is Decision.DENY:
        return _response("deny", BLOCKED_PREFIX + result.reason)
    if result.decision is Decision.WARN:
        response = _response("ask", result.reason)
        response["systemMessage"] = WARNING_PREFIX + result.reason
        return response
    return allow_response()


def process_claude_hook(payload: dict[str, Any]) -> dict[str, Any]:
    """Analyze the command in a PreToolUse payload.

    Non-Bash tools and payloads without a command string are allowed.
    The result is queued for the audit log.

    Args:
        payload: Decoded hook JSON.

    Returns:
        Hook response dictionary.

    Raises:
        HookInputError: If the payload does not have the hook's shape.
    """
    try:
        hook = ClaudeHookInput.model_validate(payload)
    except ValidationError as e:
        raise HookInputError(
            "Invalid hook payload",
            details={"errors": e.errors(include_url=False, include_input=False)},
        ) from e

    if hook.tool_name != SHELL_TOOL:
        return allow_response()

    command = hook.tool_input.get("command")
    if not command or not isinstance(command, str):
        return allow_response()

    bind_context(session_id=hook.session_id, cwd=hook.cwd)
    try:
        result = analyze_command(command, cwd=hook.cwd)
        audit_async(result, session_id=hook.session_id, cwd=hook.cwd)
        logger.debug("hook_processed", decision=result.decision.value)
    finally:
        clear_context()
    return map_decision(result)


def run_claude_hook(stdin: TextIO, stdout: TextIO, stderr: TextIO) -> int:
    """Read a hook payload from ``stdin`` and write the response to ``stdout``.

    Empty input is allowed. Undecodable input is reported on ``stderr``.

    Returns:
        Process exit code: 0 on success, 2 for invalid input (a blocking
        error for the host).
    """
    raw = stdin.read()
    if not raw.strip():
        stdout.write(json.dumps(allow_response()) + "\n")
        return 0

    try:
        payload = json.loads(raw)
        if not isinstance(payload, dict):
            raise HookInputError("Hook payload must be a JSON object")
        response = process_claude_hook(payload)
    except (json.JSONDecodeError, HookInputError) as e:
        logger.error("hook_input_invalid", error=str(e), error_type=type(e).__name__)
        stderr.write(f"[safety-net] Error: {e}\n")
        return 2

    stdout.write(json.dumps(response, ensure_ascii=False) + "\n")
    return 0
