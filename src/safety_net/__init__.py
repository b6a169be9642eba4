"""Safety Net: destructive shell command detection for AI coding agents.

Example:
    from safety_net import analyze_command

    result = analyze_command("rm -rf /")
    result.decision  # Decision.DENY
"""

__version__ = "0.1.0"

from safety_net.analyzer import analyze_command  # noqa: E402
from safety_net.config import AnalyzerConfig, load_config  # noqa: E402
from safety_net.errors import (  # noqa: E402
    BlockedCommandError,
    ConfigurationError,
    HookInputError,
    SafetyNetError,
)
from safety_net.models import AnalysisResult, Confidence, Decision, Verdict  # noqa: E402

__all__ = [
    "AnalysisResult",
    "AnalyzerConfig",
    "BlockedCommandError",
    "Confidence",
    "ConfigurationError",
    "Decision",
    "HookInputError",
    "SafetyNetError",
    "Verdict",
    "__version__",
    "analyze_command",
    "load_config",
]
