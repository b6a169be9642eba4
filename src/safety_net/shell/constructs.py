"""Detection of shell constructs that cannot be analyzed from text alone.

Flags heredocs, process substitution and arithmetic expansion in the
raw, unsplit command. Two heredoc idioms are treated as literal-string
authoring and not flagged:
- ``$(cat <<EOF ... EOF)`` building a multi-line string
- ``tool --stdin <<EOF`` feeding a script body to a stdin-reading flag

The scan covers the whole raw text, heredoc bodies included, so a body
containing ``--stdin <<`` also clears the heredoc flag.
"""

import re
from dataclasses import dataclass, field


@dataclass
class ConstructScan:
    """Result of scanning a command for unparseable constructs.

    Attributes:
        constructs: Names of the constructs found, in check order.
        whitelisted: Heredoc idioms that suppressed the heredoc flag.
    """

    constructs: list[str] = field(default_factory=list)
    whitelisted: list[str] = field(default_factory=list)

    @property
    def unparseable(self) -> bool:
        return len(self.constructs) > 0


class ConstructDetector:
    """Scans raw command text for unparseable constructs."""

    HEREDOC_PATTERN = re.compile(r"<<-?['\"]?\w+")
    CAT_HEREDOC_PATTERN = re.compile(r"\$\(cat\s+<<")
    STDIN_HEREDOC_PATTERN = re.compile(r"--stdin\s+<<")
    # Only <( : >( shows up in text like Array<T>() too often
    PROCESS_SUBSTITUTION_PATTERN = re.compile(r"<\(")
    ARITHMETIC_PATTERN = re.compile(r"\$\(\(")

    def scan(self, command: str) -> ConstructScan:
        """Scan a command for unparseable constructs.

        Args:
            command: The original, unsplit command string.

        Returns:
            ConstructScan listing what was found.
        """
        result = ConstructScan()

        if self.HEREDOC_PATTERN.search(command):
            if self.CAT_HEREDOC_PATTERN.search(command):
                result.whitelisted.append("cat-heredoc")
            if self.STDIN_HEREDOC_PATTERN.search(command):
                result.whitelisted.append("stdin-heredoc")
            if not result.whitelisted:
                result.constructs.append("heredoc")

        if self.PROCESS_SUBSTITUTION_PATTERN.search(command):
            result.constructs.append("process-substitution")

        if self.ARITHMETIC_PATTERN.search(command):
            result.constructs.append("arithmetic-expansion")

        return result


_default_detector = ConstructDetector()


def has_unparseable_constructs(command: str) -> bool:
    """Check whether a command contains constructs the analyzer cannot follow."""
    return _default_detector.scan(command).unparseable
