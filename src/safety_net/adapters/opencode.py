"""OpenCode plugin adapter.

``permission_ask`` is the primary hook: it sets the permission status
for bash requests. ``tool_execute_before`` covers tools that skip the
permission system; OpenCode has no "ask" state there, so a deny is
reported by raising ``BlockedCommandError``.
"""

from typing import Any

from safety_net.analyzer import analyze_command
from safety_net.audit import audit_async
from safety_net.errors import BlockedCommandError
from safety_net.logging import Loggers, bind_context, clear_context
from safety_net.models import Decision

logger = Loggers.adapters()

SHELL_TOOLS = ("bash", "shell")

_STATUS = {
    Decision.DENY: "deny",
    Decision.WARN: "ask",
    Decision.ALLOW: "allow",
}


class OpenCodePlugin:
    """Safety net hooks for one OpenCode project directory."""

    def __init__(self, directory: str | None = None):
        """Initialize the plugin.

        Args:
            directory: Project directory, used as the analysis cwd.
        """
        self.directory = directory

    def permission_ask(self, permission: dict[str, Any], output: dict[str, Any]) -> None:
        """Set ``output["status"]`` for a bash permission request.

        Args:
            permission: Request with ``type``, ``pattern`` (the command)
                and optional ``sessionID``.
            output: Mutable response; receives allow, ask or deny.
        """
        if permission.get("type") != "bash":
            return
        command = permission.get("pattern")
        if not command or not isinstance(command, str):
            return

        session_id = permission.get("sessionID")
        bind_context(session_id=session_id, cwd=self.directory)
        try:
            result = analyze_command(command, cwd=self.directory)
            audit_async(result, session_id=session_id, cwd=self.directory)
            output["status"] = _STATUS[result.decision]
            logger.debug("permission_decided", status=output["status"])
        finally:
            clear_context()

    def tool_execute_before(self, tool_input: dict[str, Any], output: dict[str, Any]) -> None:
        """Block a shell tool call whose command is denied.

        Args:
            tool_input: Tool descriptor with a ``tool`` name.
            output: Tool call with ``args.command``.

        Raises:
            BlockedCommandError: If the command is denied.
        """
        if tool_input.get("tool") not in SHELL_TOOLS:
            return
        command = (output.get("args") or {}).get("command")
        if not command or not isinstance(command, str):
            return

        bind_context(cwd=self.directory)
        try:
            result = analyze_command(command, cwd=self.directory)
            audit_async(result, cwd=self.directory)
        finally:
            clear_context()
        if result.decision is Decision.DENY:
            raise BlockedCommandError(result.reason, command=result.truncated_command)
