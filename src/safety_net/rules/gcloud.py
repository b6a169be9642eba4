"""Google Cloud rules for gcloud and gsutil."""

from safety_net.config import AnalyzerConfig
from safety_net.models import Confidence, Decision, Verdict
from safety_net.rules.base import command_path, flag, has_any, parse, path_matches
from safety_net.rules.registry import register_rule

CATEGORY = "gcloud"

QUIET_FLAGS = ("--quiet", "-q")
FORCE_FLAGS = ("--force", "-f")
RECURSIVE_FLAGS = ("-r", "-R", "-m")

# Always denied
CATASTROPHIC = {
    "projects delete": "gcloud projects delete removes an ENTIRE project and ALL resources within it.",
    "organizations delete": "gcloud organizations delete removes an organization.",
}

# Warned, or denied with --quiet or in paranoid mode
DESTRUCTIVE = {
    "compute instances delete": "gcloud compute instances delete permanently destroys VM instances.",
    "compute disks delete": "gcloud compute disks delete permanently destroys disks and data.",
    "sql instances delete": "gcloud sql instances delete destroys Cloud SQL instances.",
    "container clusters delete": "gcloud container clusters delete removes GKE clusters.",
    "functions delete": "gcloud functions delete removes Cloud Functions.",
    "pubsub topics delete": "gcloud pubsub topics delete removes Pub/Sub topics.",
    "pubsub subscriptions delete": "gcloud pubsub subscriptions delete removes subscriptions.",
    "firestore databases delete": "gcloud firestore databases delete removes Firestore databases.",
    "spanner instances delete": "gcloud spanner instances delete removes Spanner instances.",
    "spanner databases delete": "gcloud spanner databases delete removes Spanner databases.",
    "run services delete": "gcloud run services delete removes Cloud Run services.",
    "app services delete": "gcloud app services delete removes App Engine services.",
    "secrets delete": "gcloud secrets delete removes secrets from Secret Manager.",
    "kms keys destroy": "gcloud kms keys destroy destroys cryptographic keys.",
    "kms keyrings delete": "gcloud kms keyrings delete removes key rings.",
    "bigtable instances delete": "gcloud bigtable instances delete removes Bigtable instances.",
    "redis instances delete": "gcloud redis instances delete removes Memorystore Redis instances.",
}


def _rule_id(pattern: str) -> str:
    return "gcloud-" + pattern.replace(" ", "-")


def analyze_gcloud_args(args: list[str], config: AnalyzerConfig) -> Verdict:
    quiet = has_any(args, QUIET_FLAGS)
    path = command_path(args)
    joined = " ".join(path)

    for pattern, reason in CATASTROPHIC.items():
        if path_matches(path, pattern):
            if quiet:
                reason += " (--quiet bypasses confirmation)"
            return flag(Decision.DENY, _rule_id(pattern), CATEGORY, reason, ["gcloud", *pattern.split()])

    decision = Decision.DENY if quiet or config.is_paranoid() else Decision.WARN

    for pattern, reason in DESTRUCTIVE.items():
        if path_matches(path, pattern):
            return flag(decision, _rule_id(pattern), CATEGORY, reason, ["gcloud", *pattern.split()])

    if "delete" in path or "destroy" in path:
        return flag(
            decision,
            "gcloud-delete-generic",
            CATEGORY,
            f"gcloud {joined} is a destructive operation.",
            ["gcloud", *path[:3]],
            Confidence.MEDIUM,
        )

    return Verdict.allow()


def analyze_gsutil_args(args: list[str], config: AnalyzerConfig) -> Verdict:
    # gsutil -m rm -r gs://bucket: global -m precedes the subcommand
    while args and args[0].startswith("-"):
        args = args[1:]
    if not args:
        return Verdict.allow()
    subcommand, rest = args[0], args[1:]
    mutation = Decision.DENY if config.is_paranoid() else Decision.WARN

    if subcommand == "rm":
        if has_any(rest, RECURSIVE_FLAGS):
            return flag(
                Decision.DENY,
                "gsutil-rm-recursive",
                CATEGORY,
                "gsutil rm -r recursively deletes objects in GCS (bulk data loss).",
                ["gsutil", "rm", "-r"],
            )
        if has_any(rest, FORCE_FLAGS):
            return flag(
                mutation,
                "gsutil-rm-force",
                CATEGORY,
                "gsutil rm -f ignores errors and continues deleting.",
                ["gsutil", "rm", "-f"],
            )
        return flag(mutation, "gsutil-rm", CATEGORY, "gsutil rm deletes GCS objects.", ["gsutil", "rm"])

    if subcommand == "rb":
        if has_any(rest, FORCE_FLAGS):
            return flag(
                Decision.DENY,
                "gsutil-rb-force",
                CATEGORY,
                "gsutil rb -f removes bucket and ALL contents.",
                ["gsutil", "rb", "-f"],
            )
        return flag(mutation, "gsutil-rb", CATEGORY, "gsutil rb removes GCS bucket.", ["gsutil", "rb"])

    if subcommand == "rsync" and "-d" in rest:
        return flag(
            Decision.DENY,
            "gsutil-rsync-delete",
            CATEGORY,
            "gsutil rsync -d deletes files at destination not present in source.",
            ["gsutil", "rsync", "-d"],
        )

    return Verdict.allow()


@register_rule(category=CATEGORY, commands=("gcloud", "gsutil"))
def analyze_gcloud(text: str, config: AnalyzerConfig) -> Verdict:
    """Classify destructive gcloud and gsutil commands."""
    command = parse(text)
    if not command.args:
        return Verdict.allow()
    if command.command_name == "gsutil":
        return analyze_gsutil_args(command.args, config)
    return analyze_gcloud_args(command.args, config)
