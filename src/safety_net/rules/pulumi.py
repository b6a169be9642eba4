"""Pulumi rules."""

from safety_net.config import AnalyzerConfig
from safety_net.models import Confidence, Decision, Verdict
from safety_net.rules.base import escalated, flag, has_any, parse
from safety_net.rules.registry import register_rule

CATEGORY = "pulumi"

YES_FLAGS = ("--yes", "-y")
FORCE_FLAGS = ("--force", "-f")


def _subcommand(args: list[str]) -> tuple[str | None, list[str]]:
    for i, arg in enumerate(args):
        if not arg.startswith("-"):
            return arg, args[i + 1:]
    return None, []


@register_rule(category=CATEGORY, commands=("pulumi",))
def analyze_pulumi(text: str, config: AnalyzerConfig) -> Verdict:
    """Classify pulumi operations that destroy stacks or skip confirmation."""
    command = parse(text)
    subcommand, args = _subcommand(command.args)
    mutation = escalated(config, CATEGORY)

    if subcommand == "destroy":
        if "--preview" in args:
            return Verdict.allow()
        return flag(
            Decision.DENY,
            "pulumi-destroy",
            CATEGORY,
            "pulumi destroy destroys all resources in the stack.",
            ["pulumi", "destroy"],
        )

    if subcommand == "cancel":
        return flag(
            mutation,
            "pulumi-cancel",
            CATEGORY,
            "pulumi cancel may leave state inconsistent.",
            ["pulumi", "cancel"],
            Confidence.MEDIUM,
        )

    if subcommand == "stack" and args[:1] == ["rm"]:
        if has_any(args, FORCE_FLAGS) or has_any(args, YES_FLAGS):
            return flag(
                Decision.DENY,
                "pulumi-stack-rm-force",
                CATEGORY,
                "pulumi stack rm with --force/--yes removes stack without confirmation.",
                ["pulumi", "stack", "rm"],
            )
        return flag(
            mutation,
            "pulumi-stack-rm",
            CATEGORY,
            "pulumi stack rm removes the stack.",
            ["pulumi", "stack", "rm"],
        )

    if subcommand == "state" and args[:1] == ["delete"]:
        return flag(
            mutation,
            "pulumi-state-delete",
            CATEGORY,
            "pulumi state delete removes resource from state.",
            ["pulumi", "state", "delete"],
        )

    if subcommand in ("up", "update") and has_any(args, YES_FLAGS):
        return flag(
            mutation,
            "pulumi-up-yes",
            CATEGORY,
            "pulumi up --yes deploys changes without interactive confirmation.",
            ["pulumi", subcommand, "--yes"],
        )

    if subcommand == "refresh" and has_any(args, YES_FLAGS):
        return flag(
            mutation,
            "pulumi-refresh-yes",
            CATEGORY,
            "pulumi refresh --yes refreshes state without interactive confirmation.",
            ["pulumi", "refresh", "--yes"],
            Confidence.MEDIUM,
        )

    return Verdict.allow()
