"""Data models for shell syntax analysis.

Provides the token, segment, and nested-command types produced by the
tokenizer, splitter, and wrapper extractor.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from enum import Enum


class TokenKind(Enum):
    """Lexical category of a token."""

    WORD = "word"
    ASSIGNMENT = "assignment"  # VAR=value in command-name position
    REDIRECT = "redirect"  # >, >>, 2>, >&1, <<<, ...


class ExtractedKind(Enum):
    """Shape of an embedded command. Only SHELL is re-analyzed recursively."""

    SHELL = "shell"
    INTERPRETER = "interpreter"
    XARGS_LIKE = "xargs-like"
    FIND_EXEC = "find-exec"


@dataclass(frozen=True)
class Token:
    """A single lexical token, in source order."""

    kind: TokenKind
    text: str
    is_quoted: bool = False


@dataclass(frozen=True)
class CommandSegment:
    """A top-level slice of a compound command.

    ``preceding_operator`` is the control operator that joined this
    segment to the previous one (``&&``, ``||``, ``;``, ``|`` or ``&``);
    the first segment has none.
    """

    text: str
    preceding_operator: str | None = None


@dataclass(frozen=True)
class ExtractedCommand:
    """A command string embedded in another command's arguments."""

    text: str
    wrapper_label: str  # e.g. "bash -c", "find -exec"
    kind: ExtractedKind


@dataclass
class StrippedCommand:
    """Result of removing wrapper prefixes from a token list.

    Attributes:
        tokens: Remaining tokens, starting at the effective command.
        stripped_prefixes: Wrapper commands that were removed.
        env_assignments: Leading VAR=value assignments.
    """

    tokens: list[Token]
    stripped_prefixes: list[str] = field(default_factory=list)
    env_assignments: dict[str, str] = field(default_factory=dict)

    @property
    def words(self) -> list[str]:
        return [t.text for t in self.tokens if t.kind is TokenKind.WORD]

    @property
    def command_name(self) -> str:
        """Effective command name without its directory (``/bin/rm`` -> ``rm``)."""
        words = self.words
        return posixpath.basename(words[0]) if words else ""

    @property
    def args(self) -> list[str]:
        return self.words[1:]
