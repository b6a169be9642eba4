"""Path, redaction and formatting helpers shared by rules and the audit sink."""

import posixpath
import re
from pathlib import Path

TRUNCATE_LENGTH = 200
TRUNCATE_SUFFIX = "... [truncated]"

# Prefixes treated as operating-system directories for rm -rf
SYSTEM_PATH_PREFIXES = (
    "/bin",
    "/sbin",
    "/usr",
    "/etc",
    "/var",
    "/lib",
    "/boot",
    "/dev",
    "/proc",
    "/sys",
    "/root",
    "/System",  # macOS
    "/Library",  # macOS
    "/Applications",  # macOS
    "/Windows",
    "/Program Files",  # Windows via WSL
)

SECRET_PATTERNS = [
    # API keys and tokens
    re.compile(r"(?:api[_-]?key|apikey|api[_-]?token)\s*[=:]\s*[\"']?([A-Za-z0-9_-]{16,})[\"']?", re.IGNORECASE),
    re.compile(r"(?:auth[_-]?token|access[_-]?token|bearer)\s*[=:]\s*[\"']?([A-Za-z0-9_-]{16,})[\"']?", re.IGNORECASE),
    # AWS credentials
    re.compile(r"(?:aws[_-]?(?:access[_-]?key|secret|session))\s*[=:]\s*[\"']?([A-Za-z0-9/+=]{16,})[\"']?", re.IGNORECASE),
    re.compile(r"AKIA[A-Z0-9]{16}"),
    # GitHub tokens
    re.compile(r"gh[pousr]_[A-Za-z0-9_]{36,}"),
    re.compile(r"github[_-]?(?:token|pat)\s*[=:]\s*[\"']?([A-Za-z0-9_-]{36,})[\"']?", re.IGNORECASE),
    # Generic passwords
    re.compile(r"(?:password|passwd|pwd|secret)\s*[=:]\s*[\"']?([^\s\"']{8,})[\"']?", re.IGNORECASE),
    # Private keys
    re.compile(r"-----BEGIN (?:RSA |DSA |EC |OPENSSH )?PRIVATE KEY-----"),
]

_UNSAFE_FILENAME_CHARS = re.compile(r"[/\\:*?\"<>|]")


def home_dir() -> str:
    return str(Path.home())


def normalize_path(path: str, cwd: str | None = None) -> str:
    """Expand ``~``, resolve against ``cwd`` and normalize a path string.

    No filesystem access: symlinks are not followed.
    """
    if path.startswith("~"):
        path = home_dir() + path[1:]
    if cwd and not path.startswith("/"):
        path = posixpath.join(cwd, path)
    return posixpath.normpath(path) if path else path


def is_under_safe_root(path: str, safe_roots: tuple[str, ...] | list[str], cwd: str | None = None) -> bool:
    """Check whether a path is one of the safe roots or inside one."""
    normalized = normalize_path(path, cwd)
    for root in safe_roots:
        normalized_root = normalize_path(root, cwd)
        if normalized == normalized_root or normalized.startswith(normalized_root.rstrip("/") + "/"):
            return True
    return False


def is_dangerous_path(path: str, cwd: str | None = None) -> bool:
    """Check for catastrophic deletion targets: /, home, ., .., ~ and $HOME."""
    if not path or path.startswith("-"):
        return True
    if path in ("~", "~/", "~/*", "$HOME", "${HOME}", "$HOME/", "${HOME}/", "$HOME/*", "/*"):
        return True

    home = home_dir()
    catastrophic = {"/", home, ".", ".."}
    if path in catastrophic:
        return True

    normalized = normalize_path(path, cwd)
    if normalized in {"/", home}:
        return True
    # "." and ".." without a cwd normalize to themselves
    return normalized in {".", ".."}


def is_system_path(path: str) -> bool:
    """Check whether a path lies under an operating-system directory."""
    normalized = normalize_path(path)
    return any(
        normalized == prefix or normalized.startswith(prefix + "/")
        for prefix in SYSTEM_PATH_PREFIXES
    )


def redact_secrets(text: str) -> str:
    """Replace likely credentials with a short prefix and ``[REDACTED]``."""

    def _mask(match: re.Match) -> str:
        secret = match.group(0)
        visible = min(4, len(secret) // 4)
        return f"{secret[:visible]}[REDACTED]"

    for pattern in SECRET_PATTERNS:
        text = pattern.sub(_mask, text)
    return text


def truncate_command(command: str, max_length: int = TRUNCATE_LENGTH) -> str:
    """Shorten a command for display, marking the cut."""
    if len(command) <= max_length:
        return command
    return command[:max_length] + TRUNCATE_SUFFIX


def sanitize_filename(name: str, max_length: int = 100) -> str:
    """Make a session identifier safe to use as a file name."""
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", name)
    return cleaned.replace("..", "_")[:max_length]
