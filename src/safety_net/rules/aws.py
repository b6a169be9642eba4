"""AWS CLI rules based on verb classification.

Instead of maintaining per-service allowlists, subcommands are
classified by their verb prefix:
- read verbs (describe, get, list, head, ...) -> allow
- mutation verbs (create, update, modify, ...) -> warn
- destructive verbs (delete, terminate, purge) -> deny
- unknown verbs -> mutation (never allow on ambiguity)

Bypass flags and paranoid mode escalate mutations to deny; ``--dry-run``
lowers the result by one step.
"""

from safety_net.config import AnalyzerConfig
from safety_net.models import Confidence, Decision, Verdict
from safety_net.rules.base import escalated, flag, parse
from safety_net.rules.registry import register_rule

CATEGORY = "aws"

READ_VERBS = frozenset({"describe", "get", "list", "head", "filter", "query", "scan"})
READ_EXACT = frozenset({"batch-get-item", "transact-get-items"})

MUTATION_VERBS = frozenset({
    # Create/modify
    "create", "put", "update", "modify", "set", "import", "run", "execute",
    "deploy", "invoke", "send", "publish", "start", "stop", "reboot",
    "pause", "resume",
    # Reversible associations
    "attach", "detach", "associate", "disassociate", "enable", "disable",
    "register", "deregister", "authorize", "revoke", "add", "remove",
    "allocate", "release", "grant", "rotate", "reset", "tag", "untag",
    "subscribe", "unsubscribe", "copy", "restore", "request", "accept",
    "reject", "change",
    # Often protective: cancel-key-deletion
    "cancel",
})
MUTATION_EXACT = frozenset({"batch-write-item", "transact-write-items"})

DESTRUCTIVE_VERBS = frozenset({"delete", "terminate", "purge"})
DESTRUCTIVE_EXACT = frozenset({"schedule-key-deletion", "force-delete-stack"})

BYPASS_FLAGS = frozenset({"--skip-final-snapshot", "--force", "--force-delete", "--yes"})

GLOBAL_VALUE_OPTIONS = (
    "--profile",
    "--region",
    "--output",
    "--query",
    "--endpoint-url",
    "--cli-input-json",
    "--cli-input-yaml",
    "--ca-bundle",
    "--cli-connect-timeout",
    "--cli-read-timeout",
    "--color",
)
GLOBAL_FLAG_OPTIONS = frozenset({"--debug", "--no-verify-ssl", "--no-paginate"})

ROUTE53_DELETE_MARKERS = ("DELETE", '"Action":"DELETE"', "'Action':'DELETE'", '"Action": "DELETE"')


def skip_global_options(args: list[str]) -> tuple[str | None, str | None, list[str]]:
    """Return (service, subcommand, remaining args), skipping global options.

    Handles: aws --profile prod --region us-east-1 ec2 describe-instances
    """
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in GLOBAL_VALUE_OPTIONS:
            i += 2
        elif arg in GLOBAL_FLAG_OPTIONS:
            i += 1
        elif arg.startswith("--") and any(arg.startswith(opt + "=") for opt in GLOBAL_VALUE_OPTIONS):
            i += 1
        else:
            break
    service = args[i] if i < len(args) else None
    subcommand = args[i + 1] if i + 1 < len(args) else None
    return service, subcommand, args[i + 2:]


def classify_subcommand(subcommand: str) -> str:
    """Classify as "read", "mutation" or "destructive"; exact names win over verbs."""
    if subcommand in DESTRUCTIVE_EXACT:
        return "destructive"
    if subcommand in MUTATION_EXACT:
        return "mutation"
    if subcommand in READ_EXACT:
        return "read"

    verb = subcommand.split("-")[0] or subcommand
    if verb in DESTRUCTIVE_VERBS:
        return "destructive"
    if verb in READ_VERBS:
        return "read"
    return "mutation"


def s3_direction(args: list[str]) -> str:
    """Direction of s3 cp/sync: download, upload, s3-to-s3 or unknown."""
    paths = [a for a in args if not a.startswith("-")][:2]
    if len(paths) < 2:
        return "unknown"
    source_s3 = paths[0].startswith("s3://")
    dest_s3 = paths[1].startswith("s3://")
    if source_s3 and dest_s3:
        return "s3-to-s3"
    if source_s3:
        return "download"
    if dest_s3:
        return "upload"
    return "unknown"


def has_dry_run(args: list[str]) -> bool:
    dry = "--dry-run" in args or "--dryrun" in args
    no_dry = "--no-dry-run" in args or "--no-dryrun" in args
    return dry and not no_dry


def analyze_s3(subcommand: str, args: list[str], config: AnalyzerConfig) -> Verdict | None:
    """High-level ``aws s3`` commands, which do not follow verb naming."""
    mutation = escalated(config, CATEGORY)

    if subcommand == "ls":
        return Verdict.allow()

    if subcommand in ("cp", "sync"):
        direction = s3_direction(args)
        if direction == "download":
            return Verdict.allow()
        if subcommand == "sync" and "--delete" in args:
            return flag(
                Decision.DENY,
                "aws-s3-sync-delete",
                CATEGORY,
                "aws s3 sync --delete removes objects not present in source.",
                ["aws", "s3", "sync", "--delete"],
            )
        return flag(
            mutation,
            f"aws-s3-{subcommand}",
            CATEGORY,
            f"aws s3 {subcommand} modifies S3 objects.",
            ["aws", "s3", subcommand],
        )

    if subcommand == "rm":
        if "--recursive" in args or "-r" in args:
            return flag(
                Decision.DENY,
                "aws-s3-rm-recursive",
                CATEGORY,
                "aws s3 rm --recursive bulk deletes S3 objects.",
                ["aws", "s3", "rm", "--recursive"],
            )
        return flag(mutation, "aws-s3-rm", CATEGORY, "aws s3 rm deletes S3 objects.", ["aws", "s3", "rm"])

    if subcommand == "rb":
        if "--force" in args:
            return flag(
                Decision.DENY,
                "aws-s3-rb-force",
                CATEGORY,
                "aws s3 rb --force removes bucket and ALL contents.",
                ["aws", "s3", "rb", "--force"],
            )
        return flag(mutation, "aws-s3-rb", CATEGORY, "aws s3 rb removes S3 bucket.", ["aws", "s3", "rb"])

    if subcommand == "mb":
        return flag(mutation, "aws-s3-mb", CATEGORY, "aws s3 mb creates S3 bucket.", ["aws", "s3", "mb"])

    if subcommand == "mv":
        return flag(
            mutation,
            "aws-s3-mv",
            CATEGORY,
            "aws s3 mv moves objects (deletes source after copy).",
            ["aws", "s3", "mv"],
        )

    return None


def _apply_dry_run(verdict: Verdict) -> Verdict:
    """Lower a verdict one step: deny -> warn, warn -> allow."""
    if verdict.decision is Decision.DENY:
        verdict.decision = Decision.WARN
        return verdict
    return Verdict.allow()


@register_rule(category=CATEGORY, commands=("aws",))
def analyze_aws(text: str, config: AnalyzerConfig) -> Verdict:
    """Classify AWS CLI commands by subcommand verb."""
    command = parse(text)
    service, subcommand, args = skip_global_options(command.args)

    # aws, aws help, aws --version
    if not service or not subcommand:
        return Verdict.allow()

    dry_run = has_dry_run(args)

    if service == "s3":
        verdict = analyze_s3(subcommand, args, config)
        if verdict is not None:
            if dry_run and not verdict.is_allow:
                return _apply_dry_run(verdict)
            return verdict

    if service == "route53" and subcommand == "change-resource-record-sets":
        if any(marker in text for marker in ROUTE53_DELETE_MARKERS):
            if dry_run:
                return Verdict.allow()
            return flag(
                escalated(config, CATEGORY),
                "aws-route53-delete-record",
                CATEGORY,
                "aws route53 change-resource-record-sets with DELETE removes DNS records.",
                ["aws", "route53", "change-resource-record-sets", "DELETE"],
                Confidence.MEDIUM,
            )

    verb_class = classify_subcommand(subcommand)
    if verb_class == "read":
        return Verdict.allow()

    if verb_class == "destructive" or any(a in BYPASS_FLAGS for a in args):
        decision = Decision.DENY
    else:
        decision = escalated(config, CATEGORY)

    verdict = flag(
        decision,
        f"aws-{service}-{subcommand}",
        CATEGORY,
        f"aws {service} {subcommand} is a {verb_class} operation.",
        ["aws", service, subcommand],
    )
    return _apply_dry_run(verdict) if dry_run else verdict
