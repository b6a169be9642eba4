"""Kubernetes rules for kubectl and helm."""

from safety_net.config import AnalyzerConfig
from safety_net.models import Confidence, Decision, Verdict
from safety_net.rules.base import escalated, flag, option_value, parse
from safety_net.rules.registry import register_rule

CATEGORY = "kubernetes"

CRITICAL_NAMESPACES = frozenset({"kube-system", "kube-public", "kube-node-lease", "default"})

NAMESPACE_RESOURCES = frozenset({"namespace", "namespaces", "ns"})

CRITICAL_RESOURCES = frozenset({
    "node", "nodes",
    "persistentvolume", "persistentvolumes", "pv",
    "persistentvolumeclaim", "persistentvolumeclaims", "pvc",
    "secret", "secrets",
    "configmap", "configmaps", "cm",
})

# kubectl options that may appear before the subcommand
GLOBAL_VALUE_OPTIONS = frozenset({
    "-n", "--namespace", "--context", "--cluster", "--kubeconfig", "--user", "-s", "--server",
})


def has_dry_run(args: list[str]) -> bool:
    return any(a == "--dry-run" or a.startswith("--dry-run=") or a == "--server-dry-run" for a in args)


def _split_subcommand(args: list[str]) -> tuple[str | None, list[str]]:
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in GLOBAL_VALUE_OPTIONS:
            i += 2
        elif arg.startswith("-"):
            i += 1
        else:
            return arg, args[:i] + args[i + 1:]
    return None, args


def _delete(args: list[str], config: AnalyzerConfig) -> Verdict:
    if has_dry_run(args):
        return Verdict.allow()

    if "--all-namespaces" in args or "-A" in args:
        return flag(
            Decision.DENY,
            "kubectl-delete-all-namespaces",
            CATEGORY,
            "kubectl delete across all namespaces can wipe out the whole cluster.",
            ["kubectl", "delete", "--all-namespaces"],
        )

    # Positional words other than option values: resource type, then names
    resources: list[str] = []
    skip = False
    for arg in args:
        if skip:
            skip = False
            continue
        if arg in GLOBAL_VALUE_OPTIONS or arg in ("-l", "--selector", "-f", "--filename", "--grace-period"):
            skip = True
            continue
        if arg.startswith("-") or "/" in arg or "=" in arg:
            continue
        resources.append(arg)
    first = resources[0].lower() if resources else None

    if first in NAMESPACE_RESOURCES:
        name = resources[1] if len(resources) > 1 else None
        if name in CRITICAL_NAMESPACES:
            return flag(
                Decision.DENY,
                "kubectl-delete-critical-namespace",
                CATEGORY,
                f"kubectl delete namespace '{name}' removes a critical system namespace.",
                ["kubectl", "delete", "namespace", name],
            )
        return flag(
            Decision.DENY,
            "kubectl-delete-namespace",
            CATEGORY,
            "kubectl delete namespace removes every resource inside it.",
            ["kubectl", "delete", "namespace", name or ""],
        )

    if "--all" in args:
        return flag(
            Decision.DENY,
            "kubectl-delete-all",
            CATEGORY,
            "kubectl delete --all removes every resource of that type.",
            ["kubectl", "delete", "--all"],
        )

    grace = option_value(args, ("--grace-period",))
    if "--force" in args and grace == "0":
        return flag(
            Decision.DENY,
            "kubectl-delete-force-immediate",
            CATEGORY,
            "kubectl delete --force --grace-period=0 skips graceful termination.",
            ["kubectl", "delete", "--force", "--grace-period=0"],
        )

    if first in CRITICAL_RESOURCES:
        return flag(
            escalated(config),
            f"kubectl-delete-{first}",
            CATEGORY,
            f"kubectl delete {first} removes a critical resource.",
            ["kubectl", "delete", first],
        )

    return flag(
        escalated(config),
        "kubectl-delete",
        CATEGORY,
        "kubectl delete removes cluster resources.",
        ["kubectl", "delete"],
        Confidence.MEDIUM,
    )


def _drain(args: list[str], config: AnalyzerConfig) -> Verdict:
    if has_dry_run(args):
        return Verdict.allow()
    if "--delete-local-data" in args or "--delete-emptydir-data" in args:
        return flag(
            Decision.DENY,
            "kubectl-drain-delete-data",
            CATEGORY,
            "kubectl drain with --delete-emptydir-data destroys pod-local data.",
            ["kubectl", "drain", "--delete-emptydir-data"],
        )
    if "--force" in args:
        return flag(
            Decision.DENY,
            "kubectl-drain-force",
            CATEGORY,
            "kubectl drain --force deletes pods not managed by a controller.",
            ["kubectl", "drain", "--force"],
        )
    return flag(
        escalated(config),
        "kubectl-drain",
        CATEGORY,
        "kubectl drain evicts all pods from a node.",
        ["kubectl", "drain"],
    )


def _kubectl(args: list[str], config: AnalyzerConfig) -> Verdict:
    subcommand, rest = _split_subcommand(args)

    if "-k" in rest or "--kustomize" in rest:
        if subcommand == "delete" and not has_dry_run(rest):
            return flag(
                Decision.DENY,
                "kubectl-delete-kustomize",
                CATEGORY,
                "kubectl delete -k removes all resources defined in kustomization.",
                ["kubectl", "delete", "-k"],
            )
        return Verdict.allow()

    if subcommand == "delete":
        return _delete(rest, config)
    if subcommand == "drain":
        return _drain(rest, config)
    if subcommand == "cordon":
        return flag(
            escalated(config),
            "kubectl-cordon",
            CATEGORY,
            "kubectl cordon stops scheduling new pods on a node.",
            ["kubectl", "cordon"],
            Confidence.MEDIUM,
        )
    if subcommand == "taint" and any("NoExecute" in a for a in rest):
        return flag(
            escalated(config),
            "kubectl-taint-noexecute",
            CATEGORY,
            "kubectl taint with NoExecute evicts running pods.",
            ["kubectl", "taint", "NoExecute"],
        )
    if subcommand == "scale" and not has_dry_run(rest):
        if option_value(rest, ("--replicas",)) == "0":
            return flag(
                escalated(config),
                "kubectl-scale-zero",
                CATEGORY,
                "kubectl scale --replicas=0 takes the workload offline.",
                ["kubectl", "scale", "--replicas=0"],
            )
    return Verdict.allow()


def _helm(args: list[str], config: AnalyzerConfig) -> Verdict:
    subcommand = args[0] if args else None
    rest = args[1:]

    if "--dry-run" in rest or any(a.startswith("--dry-run=") for a in rest):
        return Verdict.allow()

    if subcommand in ("uninstall", "delete", "del", "un"):
        return flag(
            escalated(config),
            "helm-uninstall",
            CATEGORY,
            "helm uninstall removes a release and its resources.",
            ["helm", subcommand],
        )
    if subcommand == "rollback":
        return flag(
            escalated(config),
            "helm-rollback",
            CATEGORY,
            "helm rollback replaces the running release with an older revision.",
            ["helm", "rollback"],
            Confidence.MEDIUM,
        )
    if subcommand == "upgrade":
        if "--force" in rest:
            return flag(
                escalated(config),
                "helm-upgrade-force",
                CATEGORY,
                "helm upgrade --force recreates resources, causing downtime.",
                ["helm", "upgrade", "--force"],
            )
        if "--reset-values" in rest:
            return flag(
                escalated(config),
                "helm-upgrade-reset-values",
                CATEGORY,
                "helm upgrade --reset-values discards previously supplied values.",
                ["helm", "upgrade", "--reset-values"],
                Confidence.MEDIUM,
            )
    return Verdict.allow()


@register_rule(category=CATEGORY, commands=("kubectl", "helm"))
def analyze_kubernetes(text: str, config: AnalyzerConfig) -> Verdict:
    """Classify destructive kubectl and helm operations."""
    command = parse(text)
    if command.command_name == "kubectl":
        return _kubectl(command.args, config)
    return _helm(command.args, config)
