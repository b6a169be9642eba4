"""Terraform and OpenTofu rules."""

from safety_net.config import AnalyzerConfig
from safety_net.models import Confidence, Decision, Verdict
from safety_net.rules.base import escalated, flag, has_prefixed, parse
from safety_net.rules.registry import register_rule

CATEGORY = "terraform"


def has_auto_approve(args: list[str]) -> bool:
    return has_prefixed(args, ("-auto-approve", "--auto-approve"))


def has_destroy_flag(args: list[str]) -> bool:
    return has_prefixed(args, ("-destroy", "--destroy"))


def _destroy(tool: str, args: list[str], config: AnalyzerConfig) -> Verdict:
    if has_auto_approve(args):
        return flag(
            Decision.DENY,
            "terraform-destroy-auto-approve",
            CATEGORY,
            f"{tool} destroy -auto-approve destroys ALL infrastructure without confirmation.",
            [tool, "destroy", "-auto-approve"],
        )
    return flag(
        Decision.DENY,
        "terraform-destroy",
        CATEGORY,
        f"{tool} destroy removes ALL managed infrastructure. Use with extreme caution.",
        [tool, "destroy"],
    )


def _apply(tool: str, args: list[str], config: AnalyzerConfig) -> Verdict:
    auto_approve = has_auto_approve(args)
    if has_destroy_flag(args):
        if auto_approve:
            return flag(
                Decision.DENY,
                "terraform-apply-destroy-auto-approve",
                CATEGORY,
                f"{tool} apply -destroy -auto-approve destroys infrastructure without confirmation.",
                [tool, "apply", "-destroy", "-auto-approve"],
            )
        return flag(
            Decision.DENY,
            "terraform-apply-destroy",
            CATEGORY,
            f"{tool} apply -destroy removes all managed infrastructure.",
            [tool, "apply", "-destroy"],
        )
    if auto_approve:
        return flag(
            escalated(config),
            "terraform-apply-auto-approve",
            CATEGORY,
            f"{tool} apply -auto-approve modifies infrastructure without confirmation.",
            [tool, "apply", "-auto-approve"],
        )
    return Verdict.allow()


def _plan(tool: str, args: list[str], config: AnalyzerConfig) -> Verdict:
    if has_destroy_flag(args):
        return flag(
            escalated(config),
            "terraform-plan-destroy",
            CATEGORY,
            f"{tool} plan -destroy shows destruction plan. Be careful not to apply it.",
            [tool, "plan", "-destroy"],
            Confidence.MEDIUM,
        )
    return Verdict.allow()


def _taint(tool: str, args: list[str], config: AnalyzerConfig) -> Verdict:
    return flag(
        escalated(config),
        "terraform-taint",
        CATEGORY,
        f"{tool} taint forces the resource to be destroyed and recreated on next apply.",
        [tool, "taint", *args[:1]],
        Confidence.MEDIUM,
    )


_STATE_REASONS = {
    "rm": "removes resources from state; the real infrastructure becomes unmanaged.",
    "mv": "moves resources in state and can break resource tracking.",
    "replace-provider": "rewrites the provider of every resource in state.",
}


def _state(tool: str, args: list[str], config: AnalyzerConfig) -> Verdict:
    action = args[0] if args else None
    if action not in _STATE_REASONS:
        return Verdict.allow()
    return flag(
        escalated(config),
        f"terraform-state-{action}",
        CATEGORY,
        f"{tool} state {action} {_STATE_REASONS[action]}",
        [tool, "state", action],
    )


def _import(tool: str, args: list[str], config: AnalyzerConfig) -> Verdict:
    return flag(
        escalated(config),
        "terraform-import",
        CATEGORY,
        f"{tool} import brings existing infrastructure under management. Verify the address.",
        [tool, "import"],
        Confidence.MEDIUM,
    )


def _force_unlock(tool: str, args: list[str], config: AnalyzerConfig) -> Verdict:
    return flag(
        Decision.DENY,
        "terraform-force-unlock",
        CATEGORY,
        f"{tool} force-unlock removes the state lock and can corrupt state if another run is active.",
        [tool, "force-unlock"],
    )


def _workspace(tool: str, args: list[str], config: AnalyzerConfig) -> Verdict:
    if args and args[0] == "delete":
        return flag(
            escalated(config),
            "terraform-workspace-delete",
            CATEGORY,
            f"{tool} workspace delete removes the workspace and its state.",
            [tool, "workspace", "delete"],
        )
    return Verdict.allow()


def _refresh(tool: str, args: list[str], config: AnalyzerConfig) -> Verdict:
    if has_auto_approve(args):
        return flag(
            escalated(config),
            "terraform-refresh-auto-approve",
            CATEGORY,
            f"{tool} refresh updates state from infrastructure. Changes may be unexpected.",
            [tool, "refresh"],
            Confidence.MEDIUM,
        )
    return Verdict.allow()


SUBCOMMANDS = {
    "destroy": _destroy,
    "apply": _apply,
    "plan": _plan,
    "taint": _taint,
    "state": _state,
    "import": _import,
    "force-unlock": _force_unlock,
    "workspace": _workspace,
    "refresh": _refresh,
}


@register_rule(category=CATEGORY, commands=("terraform", "tofu"))
def analyze_terraform(text: str, config: AnalyzerConfig) -> Verdict:
    """Classify terraform/tofu subcommands that destroy or detach infrastructure."""
    command = parse(text)
    args = command.args
    # terraform -chdir=infra destroy
    while args and args[0].startswith("-"):
        args = args[1:]
    if not args:
        return Verdict.allow()

    handler = SUBCOMMANDS.get(args[0])
    if handler is None:
        return Verdict.allow()
    return handler(command.command_name, args[1:], config)
