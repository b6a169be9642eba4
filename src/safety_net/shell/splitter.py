"""Compound command splitter.

Splits a command string into top-level segments at the control
operators ``&&``, ``||``, ``;``, ``|``, ``|&`` and ``&``, and at
unquoted newlines. Quoted text and parenthesized or braced groups are
copied verbatim, so subshell and group bodies stay opaque to the split.
"""

from safety_net.shell.models import CommandSegment

TWO_CHAR_OPERATORS = ("&&", "||")
ONE_CHAR_OPERATORS = (";", "|", "&")


class CommandSplitter:
    """Splits compound commands into ordered ``CommandSegment`` objects."""

    def split(self, command: str) -> list[CommandSegment]:
        """Split a command at top-level control operators.

        Args:
            command: The full, unsplit command string.

        Returns:
            Non-empty, trimmed segments in source order.
        """
        segments: list[CommandSegment] = []
        current: list[str] = []
        pending_operator: str | None = None

        in_single = False
        in_double = False
        in_backtick = False
        escape_next = False
        paren_depth = 0
        brace_depth = 0

        def push(operator: str | None) -> None:
            nonlocal pending_operator
            text = "".join(current).strip()
            current.clear()
            if text:
                preceding = pending_operator if segments else None
                segments.append(CommandSegment(text=text, preceding_operator=preceding))
                pending_operator = operator
            elif segments and operator is not None:
                # Empty segment: keep the operator that follows the last real one
                pending_operator = operator

        i = 0
        length = len(command)
        while i < length:
            char = command[i]
            next_char = command[i + 1] if i + 1 < length else ""

            if escape_next:
                current.append(char)
                escape_next = False
                i += 1
                continue

            if char == "\\" and not in_single:
                escape_next = True
                current.append(char)
                i += 1
                continue

            if char == "'" and not in_double and not in_backtick:
                in_single = not in_single
            elif char == '"' and not in_single and not in_backtick:
                in_double = not in_double
            elif char == "`" and not in_single:
                in_backtick = not in_backtick
            elif in_single or in_double or in_backtick:
                pass
            elif char == "(":
                paren_depth += 1
            elif char == "{":
                brace_depth += 1
            elif char == ")":
                paren_depth = max(0, paren_depth - 1)
            elif char == "}":
                brace_depth = max(0, brace_depth - 1)
            elif paren_depth > 0 or brace_depth > 0:
                pass
            elif char + next_char in TWO_CHAR_OPERATORS:
                push(char + next_char)
                i += 2
                continue
            elif char + next_char == "|&":
                # Pipes stderr too; still a pipe
                push("|")
                i += 2
                continue
            elif char == "\n" or (char == "\r" and next_char == "\n"):
                push(";")
                i += 2 if char == "\r" else 1
                continue
            elif char in ONE_CHAR_OPERATORS and not self._is_redirect_ampersand(command, i):
                push(char)
                i += 1
                continue

            current.append(char)
            i += 1

        push(None)
        return segments

    @staticmethod
    def _is_redirect_ampersand(command: str, index: int) -> bool:
        """``&`` inside ``2>&1``, ``<&0`` or ``&>file`` belongs to the redirect."""
        if command[index] != "&":
            return False
        prev_char = command[index - 1] if index > 0 else ""
        next_char = command[index + 1] if index + 1 < len(command) else ""
        return prev_char in ("<", ">") or next_char == ">"


_default_splitter = CommandSplitter()


def split_command(command: str) -> list[CommandSegment]:
    """Split a command with the shared splitter."""
    return _default_splitter.split(command)
