"""Shell syntax analysis for command classification.

Text-only analysis layers, applied without a live shell:
- Compound splitting at top-level control operators
- Detection of constructs that cannot be analyzed (heredocs, <(...), $((...)))
- Tokenization into words, assignments and redirects
- Wrapper stripping and nested command extraction
"""

from safety_net.shell.constructs import (
    ConstructDetector,
    ConstructScan,
    has_unparseable_constructs,
)
from safety_net.shell.models import (
    CommandSegment,
    ExtractedCommand,
    ExtractedKind,
    StrippedCommand,
    Token,
    TokenKind,
)
from safety_net.shell.splitter import CommandSplitter, split_command
from safety_net.shell.tokenizer import (
    CommandTokenizer,
    extract_assignments,
    extract_words,
    tokenize,
)
from safety_net.shell.wrappers import (
    command_basename,
    command_words,
    extract_nested_commands,
    get_effective_command,
    strip_wrappers,
)

__all__ = [
    "CommandSegment",
    "CommandSplitter",
    "CommandTokenizer",
    "ConstructDetector",
    "ConstructScan",
    "ExtractedCommand",
    "ExtractedKind",
    "StrippedCommand",
    "Token",
    "TokenKind",
    "command_basename",
    "command_words",
    "extract_assignments",
    "extract_nested_commands",
    "extract_words",
    "get_effective_command",
    "has_unparseable_constructs",
    "split_command",
    "strip_wrappers",
    "tokenize",
]
