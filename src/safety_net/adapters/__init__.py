"""Host adapters that turn analysis results into host responses.

- claude: PreToolUse hook (allow / ask / deny JSON on stdout)
- opencode: plugin hooks (permission status, or raise to block)
"""

from safety_net.adapters.claude import ClaudeHookInput, process_claude_hook, run_claude_hook
from safety_net.adapters.opencode import OpenCodePlugin

__all__ = [
    "ClaudeHookInput",
    "OpenCodePlugin",
    "process_claude_hook",
    "run_claude_hook",
]
