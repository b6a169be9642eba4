"""Command tokenizer for single command segments.

Lexical analysis:
- Single-pass scan honoring single quotes, double quotes and backslashes
- Redirect operators emitted as their own tokens
- VAR=value words in command-name position tagged as assignments

Malformed input never raises: an unterminated quote runs to the end of
the string and the partial token is kept.
"""

import re

from safety_net.shell.models import Token, TokenKind


class CommandTokenizer:
    """Tokenizes one command segment into typed tokens."""

    ASSIGNMENT_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*=")
    REDIRECT_CHARS = "<>"

    def tokenize(self, command: str) -> list[Token]:
        """Split a command segment into word, assignment and redirect tokens.

        Args:
            command: A single command segment (no top-level operators).

        Returns:
            Tokens in source order.
        """
        tokens: list[Token] = []
        current: list[str] = []
        quoted = False
        in_single = False
        in_double = False
        escape_next = False
        # Assignments are only recognized before the first word
        expect_command = True

        def flush() -> None:
            nonlocal quoted, expect_command
            # A quoted empty string ("") is still an argument
            if current or quoted:
                text = "".join(current)
                if expect_command and self.ASSIGNMENT_PATTERN.match(text):
                    kind = TokenKind.ASSIGNMENT
                else:
                    kind = TokenKind.WORD
                    expect_command = False
                tokens.append(Token(kind=kind, text=text, is_quoted=quoted))
                current.clear()
            quoted = False

        i = 0
        length = len(command)
        while i < length:
            char = command[i]

            if escape_next:
                current.append(char)
                escape_next = False
                i += 1
                continue

            if char == "\\" and not in_single:
                escape_next = True
                i += 1
                continue

            if char == "'" and not in_double:
                in_single = not in_single
                quoted = True
                i += 1
                continue

            if char == '"' and not in_single:
                in_double = not in_double
                quoted = True
                i += 1
                continue

            if in_single or in_double:
                current.append(char)
                i += 1
                continue

            if char.isspace():
                flush()
                i += 1
                continue

            if char in self.REDIRECT_CHARS:
                # File descriptor prefix: 2>, 1>>
                if current and not quoted and "".join(current).isdigit():
                    op = [*current, char]
                    current.clear()
                else:
                    flush()
                    op = [char]
                i += 1
                while i < length and (command[i] in self.REDIRECT_CHARS or command[i].isdigit()):
                    op.append(command[i])
                    i += 1
                if i < length and command[i] == "&":
                    op.append("&")
                    i += 1
                    if i < length and command[i].isdigit():
                        op.append(command[i])
                        i += 1
                tokens.append(Token(kind=TokenKind.REDIRECT, text="".join(op)))
                continue

            current.append(char)
            i += 1

        flush()
        return tokens


_default_tokenizer = CommandTokenizer()


def tokenize(command: str) -> list[Token]:
    """Tokenize a command segment with the shared tokenizer."""
    return _default_tokenizer.tokenize(command)


def extract_words(tokens: list[Token]) -> list[str]:
    """Word token texts, dropping assignments and redirects."""
    return [t.text for t in tokens if t.kind is TokenKind.WORD]


def extract_assignments(tokens: list[Token]) -> dict[str, str]:
    """Map of VAR=value assignment tokens."""
    env: dict[str, str] = {}
    for token in tokens:
        if token.kind is TokenKind.ASSIGNMENT:
            name, _, value = token.text.partition("=")
            env[name] = value
    return env
