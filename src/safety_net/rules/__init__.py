"""Rule providers for destructive command detection.

Provides:
- RuleRegistry / register_rule: the static command-name -> provider table
- dispatch: classify one segment with the default registry

Importing this package registers every built-in provider:
    git, rm (filesystem), aws, pulumi, stripe, system, api (curl),
    kubernetes, terraform, gcloud, azure, database, docker, github
"""

from safety_net.config import AnalyzerConfig
from safety_net.models import Verdict
from safety_net.rules.registry import (
    RuleDefinition,
    RuleProvider,
    RuleRegistry,
    get_registry,
    register_rule,
)

# Registration order is dispatch order for commands shared by providers
from safety_net.rules import git  # noqa: F401, E402
from safety_net.rules import filesystem  # noqa: F401, E402
from safety_net.rules import aws  # noqa: F401, E402
from safety_net.rules import pulumi  # noqa: F401, E402
from safety_net.rules import stripe  # noqa: F401, E402
from safety_net.rules import system  # noqa: F401, E402
from safety_net.rules import api  # noqa: F401, E402
from safety_net.rules import kubernetes  # noqa: F401, E402
from safety_net.rules import terraform  # noqa: F401, E402
from safety_net.rules import gcloud  # noqa: F401, E402
from safety_net.rules import azure  # noqa: F401, E402
from safety_net.rules import database  # noqa: F401, E402
from safety_net.rules import docker  # noqa: F401, E402
from safety_net.rules import github  # noqa: F401, E402


def dispatch(text: str, config: AnalyzerConfig) -> Verdict:
    """Classify one command segment with the default registry."""
    return get_registry().dispatch(text, config)


__all__ = [
    "RuleDefinition",
    "RuleProvider",
    "RuleRegistry",
    "dispatch",
    "get_registry",
    "register_rule",
]
