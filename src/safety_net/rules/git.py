"""Git rules: history rewrites and discarding uncommitted or remote work."""

import re

from safety_net.config import AnalyzerConfig
from safety_net.models import Confidence, Decision, Verdict
from safety_net.rules.base import flag, parse
from safety_net.rules.registry import register_rule

CATEGORY = "git"

SAFETY_FLAGS = ("--dry-run", "-n", "--porcelain", "--help", "-h", "--version")

# Global options before the subcommand that take a value
GLOBAL_VALUE_OPTIONS = ("-C", "-c", "--git-dir", "--work-tree", "--namespace", "--exec-path")

_CLEAN_FORCE = re.compile(r"^-[a-zA-Z]*f")


def split_subcommand(args: list[str]) -> tuple[str | None, list[str]]:
    """Skip git's global options and return (subcommand, arguments)."""
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in GLOBAL_VALUE_OPTIONS:
            i += 2
            continue
        if arg.startswith("-"):
            i += 1
            continue
        return arg, args[i + 1:]
    return None, []


def is_unsafe_force_push(args: list[str]) -> bool:
    """--force / -f without --force-with-lease."""
    force = any(a in ("--force", "-f") or a.startswith("--force=") for a in args)
    force = force or any(a.startswith("+") and len(a) > 1 for a in args)
    lease = any(a == "--force-with-lease" or a.startswith("--force-with-lease=") for a in args)
    return force and not lease


def _check_checkout(args: list[str]) -> Verdict | None:
    dash = "--" in args
    if dash or "-f" in args or "--force" in args:
        return flag(
            Decision.WARN,
            "git-checkout-discard",
            CATEGORY,
            "git checkout can discard uncommitted changes. Use 'git stash' first if needed.",
            ["git", "checkout", "--" if dash else "-f"],
        )
    return None


def _check_reset(args: list[str]) -> Verdict | None:
    for mode in ("--hard", "--merge"):
        if mode in args:
            return flag(
                Decision.DENY,
                "git-reset-hard",
                CATEGORY,
                f"git reset {mode} destroys uncommitted changes permanently.",
                ["git", "reset", mode],
            )
    return None


def _check_clean(args: list[str]) -> Verdict | None:
    if "--force" in args or any(_CLEAN_FORCE.match(a) for a in args):
        return flag(
            Decision.DENY,
            "git-clean-force",
            CATEGORY,
            "git clean -f permanently removes untracked files.",
            ["git", "clean", "-f"],
        )
    return None


def _check_push(args: list[str]) -> Verdict | None:
    if is_unsafe_force_push(args):
        return flag(
            Decision.DENY,
            "git-push-force",
            CATEGORY,
            "git push --force can destroy remote history. Use --force-with-lease instead.",
            ["git", "push", "--force"],
        )
    if "--delete" in args or "-d" in args or any(a.startswith(":") and len(a) > 1 for a in args):
        return flag(
            Decision.WARN,
            "git-push-delete",
            CATEGORY,
            "git push --delete removes a remote branch or tag.",
            ["git", "push", "--delete"],
            Confidence.MEDIUM,
        )
    return None


def _check_branch(args: list[str]) -> Verdict | None:
    force_delete = (
        "-D" in args
        or ("-d" in args and ("-f" in args or "--force" in args))
        or ("--delete" in args and "--force" in args)
    )
    if force_delete:
        return flag(
            Decision.WARN,
            "git-branch-force-delete",
            CATEGORY,
            "git branch -D force-deletes without checking if branch is merged.",
            ["git", "branch", "-D"],
        )
    return None


def _check_stash(args: list[str]) -> Verdict | None:
    if "drop" in args:
        return flag(
            Decision.WARN,
            "git-stash-drop",
            CATEGORY,
            "git stash drop permanently deletes a stashed change.",
            ["git", "stash", "drop"],
        )
    if "clear" in args:
        return flag(
            Decision.DENY,
            "git-stash-clear",
            CATEGORY,
            "git stash clear permanently deletes ALL stashed changes.",
            ["git", "stash", "clear"],
        )
    return None


def _check_restore(args: list[str]) -> Verdict | None:
    staged = "--staged" in args or "-S" in args
    worktree = "--worktree" in args or "-W" in args
    has_path = any(not a.startswith("-") for a in args)
    if (not staged or worktree) and has_path:
        return flag(
            Decision.WARN,
            "git-restore-worktree",
            CATEGORY,
            "git restore discards uncommitted changes to working tree.",
            ["git", "restore"],
            Confidence.MEDIUM,
        )
    return None


def _check_switch(args: list[str]) -> Verdict | None:
    if any(a in ("-f", "--force", "--discard-changes") for a in args):
        return flag(
            Decision.WARN,
            "git-switch-force",
            CATEGORY,
            "git switch -f discards local changes when switching branches.",
            ["git", "switch", "-f"],
        )
    return None


def _check_worktree(args: list[str]) -> Verdict | None:
    if "remove" in args and ("--force" in args or "-f" in args):
        return flag(
            Decision.WARN,
            "git-worktree-remove-force",
            CATEGORY,
            "git worktree remove --force can delete worktree files with uncommitted changes.",
            ["git", "worktree", "remove", "--force"],
        )
    return None


def _check_rebase(args: list[str]) -> Verdict | None:
    if any(a in ("--abort", "--continue", "--skip", "--quit") for a in args):
        return None
    return flag(
        Decision.WARN,
        "git-rebase",
        CATEGORY,
        "git rebase rewrites commit history. Ensure you understand the implications.",
        ["git", "rebase"],
        Confidence.MEDIUM,
    )


def _check_reflog(args: list[str]) -> Verdict | None:
    if "expire" in args or "delete" in args:
        return flag(
            Decision.WARN,
            "git-reflog-expire",
            CATEGORY,
            "git reflog expire can remove recovery data for lost commits.",
            ["git", "reflog", "expire" if "expire" in args else "delete"],
        )
    return None


def _check_gc(args: list[str]) -> Verdict | None:
    if any(a in ("--prune=now", "--prune=all") for a in args):
        return flag(
            Decision.WARN,
            "git-gc-prune",
            CATEGORY,
            "git gc --prune=now immediately removes unreachable objects, reducing recovery options.",
            ["git", "gc", "--prune=now"],
        )
    return None


def _check_filter(subcommand: str) -> Verdict:
    return flag(
        Decision.WARN,
        "git-filter-history",
        CATEGORY,
        f"git {subcommand} rewrites repository history. This is dangerous for shared repositories.",
        ["git", subcommand],
    )


SUBCOMMAND_CHECKS = {
    "checkout": _check_checkout,
    "reset": _check_reset,
    "clean": _check_clean,
    "push": _check_push,
    "branch": _check_branch,
    "stash": _check_stash,
    "restore": _check_restore,
    "switch": _check_switch,
    "worktree": _check_worktree,
    "rebase": _check_rebase,
    "reflog": _check_reflog,
    "gc": _check_gc,
}


@register_rule(category=CATEGORY, commands=("git",))
def analyze_git(text: str, config: AnalyzerConfig) -> Verdict:
    """Classify git subcommands that discard work or rewrite history."""
    command = parse(text)
    subcommand, args = split_subcommand(command.args)
    if subcommand is None:
        return Verdict.allow()

    # Dry runs and informational flags never destroy anything
    if any(a in SAFETY_FLAGS for a in args):
        return Verdict.allow()

    if subcommand in ("filter-repo", "filter-branch"):
        return _check_filter(subcommand)

    check = SUBCOMMAND_CHECKS.get(subcommand)
    if check is None:
        return Verdict.allow()
    return check(args) or Verdict.allow()
