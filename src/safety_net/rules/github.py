"""GitHub CLI (gh) rules."""

import re

from safety_net.config import AnalyzerConfig
from safety_net.models import Confidence, Decision, Verdict
from safety_net.rules.base import escalated, flag, has_any, option_value, parse
from safety_net.rules.registry import register_rule

CATEGORY = "github"

YES_FLAGS = ("--yes", "-y")
DELETE_BRANCH_FLAGS = ("--delete-branch", "-d")

# (group, action) -> (rule_id, reason, confidence); escalated in paranoid mode
SIMPLE_ACTIONS = {
    ("repo", "archive"): ("gh-repo-archive", "gh repo archive makes a repository read-only.", Confidence.HIGH),
    ("repo", "rename"): (
        "gh-repo-rename",
        "gh repo rename changes the repository name (may break links).",
        Confidence.HIGH,
    ),
    ("release", "delete-asset"): (
        "gh-release-delete-asset",
        "gh release delete-asset removes release assets.",
        Confidence.HIGH,
    ),
    ("secret", "delete"): ("gh-secret-delete", "gh secret delete removes repository/org secrets.", Confidence.HIGH),
    ("secret", "remove"): ("gh-secret-delete", "gh secret delete removes repository/org secrets.", Confidence.HIGH),
    ("variable", "delete"): (
        "gh-variable-delete",
        "gh variable delete removes repository/org variables.",
        Confidence.HIGH,
    ),
    ("variable", "remove"): (
        "gh-variable-delete",
        "gh variable delete removes repository/org variables.",
        Confidence.HIGH,
    ),
    ("ssh-key", "delete"): (
        "gh-ssh-key-delete",
        "gh ssh-key delete removes SSH keys from your GitHub account.",
        Confidence.HIGH,
    ),
    ("gpg-key", "delete"): (
        "gh-gpg-key-delete",
        "gh gpg-key delete removes GPG keys from your GitHub account.",
        Confidence.HIGH,
    ),
    ("issue", "delete"): ("gh-issue-delete", "gh issue delete permanently removes an issue.", Confidence.HIGH),
    ("workflow", "disable"): (
        "gh-workflow-disable",
        "gh workflow disable stops a workflow from running.",
        Confidence.HIGH,
    ),
    ("run", "cancel"): ("gh-run-cancel", "gh run cancel terminates a running workflow.", Confidence.MEDIUM),
    ("run", "delete"): ("gh-run-delete", "gh run delete removes workflow run logs.", Confidence.MEDIUM),
}

SENSITIVE_ENDPOINTS = [
    re.compile(r"/repos/[^/]+/[^/]+/delete"),
    re.compile(r"/repos/[^/]+/[^/]+/actions/secrets"),
    re.compile(r"/orgs/[^/]+/actions/secrets"),
    re.compile(r"/repos/[^/]+/[^/]+/hooks"),
    re.compile(r"/repos/[^/]+/[^/]+/keys"),
]


def _api(args: list[str], config: AnalyzerConfig) -> Verdict:
    method = (option_value(args, ("-X", "--method")) or "GET").upper()
    endpoint = next((a for a in args if not a.startswith("-") and "/" in a), None)

    if method == "DELETE":
        return flag(
            escalated(config),
            "gh-api-delete",
            CATEGORY,
            f"gh api DELETE {endpoint or 'endpoint'} is a destructive operation.",
            ["gh", "api", "-X", "DELETE"],
        )
    if method in ("POST", "PUT", "PATCH") and endpoint:
        if any(p.search(endpoint) for p in SENSITIVE_ENDPOINTS):
            return flag(
                escalated(config),
                "gh-api-sensitive",
                CATEGORY,
                f"gh api {method} to sensitive endpoint {endpoint}.",
                ["gh", "api", "-X", method],
                Confidence.MEDIUM,
            )
    return Verdict.allow()


def _pr(action: str | None, args: list[str], config: AnalyzerConfig) -> Verdict:
    delete_branch = has_any(args, DELETE_BRANCH_FLAGS)
    if action == "close" and delete_branch:
        return flag(
            escalated(config),
            "gh-pr-close-delete",
            CATEGORY,
            "gh pr close --delete-branch closes the PR and deletes its branch.",
            ["gh", "pr", "close", "--delete-branch"],
        )
    if action == "merge":
        if "--admin" in args:
            return flag(
                escalated(config),
                "gh-pr-merge-admin",
                CATEGORY,
                "gh pr merge --admin bypasses branch protection rules.",
                ["gh", "pr", "merge", "--admin"],
            )
        if delete_branch:
            return flag(
                Decision.WARN,
                "gh-pr-merge-delete",
                CATEGORY,
                "gh pr merge --delete-branch merges and deletes the source branch.",
                ["gh", "pr", "merge", "--delete-branch"],
                Confidence.MEDIUM,
            )
    return Verdict.allow()


@register_rule(category=CATEGORY, commands=("gh",))
def analyze_github(text: str, config: AnalyzerConfig) -> Verdict:
    """Classify gh commands that delete repositories, releases, secrets and similar."""
    command = parse(text)
    args = command.args
    if not args:
        return Verdict.allow()

    group = args[0]
    action = args[1] if len(args) > 1 else None
    rest = args[2:]

    if group == "api":
        return _api(args[1:], config)
    if group == "pr":
        return _pr(action, rest, config)

    if group == "repo" and action == "delete":
        reason = "gh repo delete permanently removes a GitHub repository."
        if has_any(rest, YES_FLAGS):
            reason += " (--yes bypasses confirmation)"
        return flag(Decision.DENY, "gh-repo-delete", CATEGORY, reason, ["gh", "repo", "delete"])

    if group == "release" and action == "delete":
        return flag(
            Decision.DENY if has_any(rest, YES_FLAGS) or config.is_paranoid() else Decision.WARN,
            "gh-release-delete",
            CATEGORY,
            "gh release delete removes a release and its assets.",
            ["gh", "release", "delete"],
        )

    if group == "issue" and action == "close":
        return flag(
            Decision.WARN,
            "gh-issue-close",
            CATEGORY,
            "gh issue close will close the issue.",
            ["gh", "issue", "close"],
            Confidence.MEDIUM,
        )

    entry = SIMPLE_ACTIONS.get((group, action))
    if entry is None:
        return Verdict.allow()
    rule_id, reason, confidence = entry
    return flag(escalated(config), rule_id, CATEGORY, reason, ["gh", group, action], confidence)
