"""Wrapper stripping and nested command extraction.

Wrapper stripping removes prefixes that do not change what a command
does (sudo, env, nohup, timeout, ...) to find the effective command.
Nested extraction finds command strings embedded in the arguments of
shells (``bash -c``), interpreters (``python -c``), batch runners
(``xargs``, ``parallel``) and ``find -exec``.
"""

import posixpath
import re

from safety_net.shell.models import (
    ExtractedCommand,
    ExtractedKind,
    StrippedCommand,
    Token,
    TokenKind,
)
from safety_net.shell.tokenizer import CommandTokenizer, extract_words

# Prefix commands stripped to reach the effective command, mapped to
# their options that consume a separate value
STRIP_PREFIXES: dict[str, frozenset[str]] = {
    "sudo": frozenset({
        "-u", "-g", "-h", "-p", "-C", "-D", "-r", "-t", "-U",
        "--user", "--group", "--host", "--prompt", "--close-from",
        "--chdir", "--role", "--type", "--other-user",
    }),
    "doas": frozenset({"-u", "-C"}),
    "env": frozenset({"-u", "--unset", "-C", "--chdir", "-P", "-S", "--split-string"}),
    "command": frozenset(),
    "builtin": frozenset(),
    "exec": frozenset({"-a"}),
    "nohup": frozenset(),
    "nice": frozenset({"-n", "--adjustment"}),
    "ionice": frozenset({"-c", "-n", "-p", "--class", "--classdata", "--pid"}),
    "time": frozenset({"-o", "-f", "--output", "--format"}),
    "strace": frozenset({"-o", "-e", "-p", "-s", "-u", "-E"}),
    "ltrace": frozenset({"-o", "-e", "-p", "-s", "-u"}),
}

# Prefixes that take positional arguments before the command
POSITIONAL_PREFIXES: dict[str, tuple[int, frozenset[str]]] = {
    "timeout": (1, frozenset({"-s", "--signal", "-k", "--kill-after"})),
}

# Shells that run a command string; any short-flag cluster containing
# one of these letters takes the command as its next argument
SHELL_WRAPPERS: dict[str, str] = {
    "sh": "c",
    "bash": "c",
    "zsh": "c",
    "dash": "c",
    "ksh": "c",
    "fish": "c",
}

INTERPRETER_WRAPPERS: dict[str, frozenset[str]] = {
    "python": frozenset({"-c"}),
    "python3": frozenset({"-c"}),
    "node": frozenset({"-e", "--eval", "-p", "--print"}),
    "ruby": frozenset({"-e"}),
    "perl": frozenset({"-e", "-E"}),
    "php": frozenset({"-r"}),
}

XARGS_VALUE_OPTIONS = frozenset({
    "-I", "-n", "-P", "-L", "-s", "-d", "-E", "-a",
    "--max-args", "--max-procs", "--max-lines", "--max-chars",
    "--delimiter", "--eof", "--arg-file", "--replace",
})

PARALLEL_VALUE_OPTIONS = frozenset({"-j", "--jobs", "-S", "--sshlogin"})

PARALLEL_SEPARATORS = frozenset({":::", "::::", ":::+", "::::+"})

FIND_EXEC_FLAGS = frozenset({"-exec", "-execdir", "-ok", "-okdir"})

FIND_EXEC_TERMINATORS = frozenset({";", "\\;", "+"})

_PYTHON_VERSIONED = re.compile(r"^python\d+(\.\d+)*$")

_tokenizer = CommandTokenizer()


def command_basename(word: str) -> str:
    """Normalize a command word for lookup: ``/usr/bin/Sudo`` -> ``sudo``."""
    return posixpath.basename(word).lower()


def _skip_options(words: list[str], start: int, value_options: frozenset[str]) -> int:
    """Index of the first word after a run of options.

    ``--`` ends the run and is consumed.
    """
    i = start
    while i < len(words):
        word = words[i]
        if word == "--":
            return i + 1
        if not word.startswith("-") or word == "-":
            return i
        i += 2 if word in value_options else 1
    return i


def strip_wrappers(tokens: list[Token]) -> StrippedCommand:
    """Strip assignments and wrapper prefixes from a token list.

    Args:
        tokens: Tokens of one command segment.

    Returns:
        StrippedCommand whose first word is the effective command.
    """
    result = StrippedCommand(tokens=[])
    idx = 0

    while idx < len(tokens) and tokens[idx].kind is TokenKind.ASSIGNMENT:
        name, _, value = tokens[idx].text.partition("=")
        result.env_assignments[name] = value
        idx += 1

    while idx < len(tokens):
        token = tokens[idx]
        if token.kind is TokenKind.REDIRECT:
            idx += 1
            continue
        if token.kind is not TokenKind.WORD:
            break

        name = command_basename(token.text)

        if name in STRIP_PREFIXES:
            result.stripped_prefixes.append(token.text)
            idx = _skip_prefix_options(tokens, idx + 1, STRIP_PREFIXES[name])
            # sudo FOO=1 rm: the tokenizer only tags assignments before the first word
            idx = _skip_env_assignments(tokens, idx, result.env_assignments)
            continue

        if name in POSITIONAL_PREFIXES:
            count, value_options = POSITIONAL_PREFIXES[name]
            result.stripped_prefixes.append(token.text)
            idx = _skip_prefix_options(tokens, idx + 1, value_options)
            for _ in range(count):
                if idx < len(tokens) and not tokens[idx].text.startswith("-"):
                    idx += 1
            idx = _skip_env_assignments(tokens, idx, result.env_assignments)
            continue

        break

    result.tokens = list(tokens[idx:])
    return result


def _skip_prefix_options(tokens: list[Token], start: int, value_options: frozenset[str]) -> int:
    return min(_skip_options([t.text for t in tokens], start, value_options), len(tokens))


def _skip_env_assignments(tokens: list[Token], start: int, env: dict[str, str]) -> int:
    i = start
    while i < len(tokens) and CommandTokenizer.ASSIGNMENT_PATTERN.match(tokens[i].text):
        name, _, value = tokens[i].text.partition("=")
        env[name] = value
        i += 1
    return i


def _is_interpreter(name: str) -> str | None:
    if name in INTERPRETER_WRAPPERS:
        return name
    if _PYTHON_VERSIONED.match(name):
        return "python3"
    return None


def _shell_flag(word: str, letter: str) -> bool:
    """Short-flag cluster such as -c, -lc or -ec containing the command letter."""
    return (
        word.startswith("-")
        and not word.startswith("--")
        and len(word) > 1
        and word[1:].isalpha()
        and letter in word[1:]
    )


def extract_nested_commands(tokens: list[Token]) -> list[ExtractedCommand]:
    """Extract command strings embedded in wrapper arguments.

    Wrapper prefixes are stripped first, so ``sudo bash -c '...'`` is
    recognized the same way as ``bash -c '...'``.

    Args:
        tokens: Tokens of one command segment.

    Returns:
        Extracted commands in the order their flags appear.
    """
    stripped = strip_wrappers(tokens)
    words = stripped.words
    extracted: list[ExtractedCommand] = []

    if len(words) < 2:
        return extracted

    raw_cmd = words[0]
    cmd = command_basename(raw_cmd)

    if cmd in SHELL_WRAPPERS:
        letter = SHELL_WRAPPERS[cmd]
        for i in range(1, len(words) - 1):
            if _shell_flag(words[i], letter):
                extracted.append(ExtractedCommand(
                    text=words[i + 1],
                    wrapper_label=f"{cmd} {words[i]}",
                    kind=ExtractedKind.SHELL,
                ))

    interpreter = _is_interpreter(cmd)
    if interpreter:
        flags = INTERPRETER_WRAPPERS[interpreter]
        for i in range(1, len(words) - 1):
            if words[i] in flags:
                extracted.append(ExtractedCommand(
                    text=words[i + 1],
                    wrapper_label=f"{cmd} {words[i]}",
                    kind=ExtractedKind.INTERPRETER,
                ))

    if cmd == "xargs":
        start = _skip_options(words, 1, XARGS_VALUE_OPTIONS)
        if start < len(words):
            extracted.append(ExtractedCommand(
                text=" ".join(words[start:]),
                wrapper_label="xargs",
                kind=ExtractedKind.XARGS_LIKE,
            ))

    if cmd == "parallel":
        start = _skip_options(words, 1, PARALLEL_VALUE_OPTIONS)
        end = len(words)
        for i in range(start, len(words)):
            if words[i] in PARALLEL_SEPARATORS:
                end = i
                break
        if start < end:
            extracted.append(ExtractedCommand(
                text=" ".join(words[start:end]),
                wrapper_label="parallel",
                kind=ExtractedKind.XARGS_LIKE,
            ))

    if cmd == "find":
        i = 1
        while i < len(words):
            flag = words[i]
            if flag not in FIND_EXEC_FLAGS:
                i += 1
                continue
            body: list[str] = []
            j = i + 1
            while j < len(words) and words[j] not in FIND_EXEC_TERMINATORS:
                if words[j] != "{}":
                    body.append(words[j])
                j += 1
            if body:
                extracted.append(ExtractedCommand(
                    text=" ".join(body),
                    wrapper_label=f"find {flag}",
                    kind=ExtractedKind.FIND_EXEC,
                ))
            i = j + 1

    return extracted


def get_effective_command(command: str) -> StrippedCommand:
    """Tokenize a segment and strip its wrappers.

    Args:
        command: A single command segment.

    Returns:
        StrippedCommand; ``command_name`` is the name used for dispatch.
    """
    return strip_wrappers(_tokenizer.tokenize(command))


def command_words(command: str) -> list[str]:
    """Words of a segment after wrapper stripping, redirects and assignments removed."""
    return extract_words(get_effective_command(command).tokens)
