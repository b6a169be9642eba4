"""Filesystem deletion rules: rm -rf, find -delete, xargs/parallel rm, shred."""

from safety_net.config import AnalyzerConfig
from safety_net.models import Confidence, Decision, Verdict
from safety_net.rules.base import escalated, flag, option_value, parse
from safety_net.rules.registry import register_rule
from safety_net.shell.models import ExtractedKind
from safety_net.shell.tokenizer import tokenize
from safety_net.shell.wrappers import extract_nested_commands
from safety_net.utils import is_dangerous_path, is_system_path, is_under_safe_root

CATEGORY = "rm"

INTERACTIVE_FLAGS = ("-i", "-I", "--interactive")

# find -delete is only denied on whole-tree roots; find filters the rest
FIND_CATASTROPHIC_PATHS = ("/", "~", "$HOME", "${HOME}")


def has_recursive_force(args: list[str]) -> bool:
    """Check rm arguments for both recursive and force, in any spelling."""
    recursive = False
    force = False
    for arg in args:
        if arg.startswith("-") and not arg.startswith("--"):
            letters = arg[1:]
            recursive = recursive or "r" in letters or "R" in letters
            force = force or "f" in letters
        else:
            recursive = recursive or arg == "--recursive"
            force = force or arg == "--force"
    return recursive and force


def rm_targets(args: list[str]) -> list[str]:
    """Path arguments of rm; everything after ``--`` is a path."""
    targets = []
    end_of_options = False
    for arg in args:
        if end_of_options:
            targets.append(arg)
        elif arg == "--":
            end_of_options = True
        elif not arg.startswith("-"):
            targets.append(arg)
    return targets


def analyze_rm(args: list[str], config: AnalyzerConfig) -> Verdict:
    """Classify an rm invocation by flags and targets."""
    if any(arg in INTERACTIVE_FLAGS or arg.startswith("--interactive=") for arg in args):
        return Verdict.allow()

    recursive_force = has_recursive_force(args)
    targets = rm_targets(args)

    if "--no-preserve-root" in args:
        return flag(
            Decision.DENY,
            "rm-no-preserve-root",
            CATEGORY,
            "rm --no-preserve-root explicitly bypasses root protection.",
            ["rm", "--no-preserve-root"],
        )

    if recursive_force and not targets:
        return flag(
            Decision.WARN,
            "rm-rf-no-target",
            CATEGORY,
            "rm -rf with no target path specified.",
            ["rm", "-rf"],
            Confidence.MEDIUM,
        )

    for target in targets:
        if is_dangerous_path(target, config.cwd):
            return flag(
                Decision.DENY,
                "rm-catastrophic-target",
                CATEGORY,
                f"rm targeting '{target}' would delete critical files/directories.",
                ["rm", target],
            )

        if recursive_force and is_system_path(target):
            return flag(
                Decision.DENY,
                "rm-system-path",
                CATEGORY,
                f"rm -rf targeting system path '{target}'.",
                ["rm", "-rf", target],
            )

        if recursive_force and config.is_paranoid(CATEGORY):
            if is_under_safe_root(target, config.temp_roots, config.cwd):
                continue
            return flag(
                Decision.DENY,
                "rm-rf-paranoid",
                CATEGORY,
                f"rm -rf '{target}' blocked in paranoid mode.",
                ["rm", "-rf", target],
            )

    if recursive_force:
        return flag(
            Decision.WARN,
            "rm-rf",
            CATEGORY,
            f"rm -rf can permanently delete files. Targets: {', '.join(targets) or '(none)'}",
            ["rm", "-rf", *targets],
            Confidence.MEDIUM,
        )

    return Verdict.allow()


def analyze_find(args: list[str]) -> Verdict:
    """Classify find -delete; find -exec is handled by nested extraction."""
    if "-delete" not in args:
        return Verdict.allow()

    search_path = next((a for a in args if not a.startswith("-")), None)
    if search_path in FIND_CATASTROPHIC_PATHS:
        return flag(
            Decision.DENY,
            "find-delete-dangerous",
            CATEGORY,
            f"find -delete on dangerous path '{search_path}'.",
            ["find", "-delete", search_path],
        )

    return flag(
        Decision.WARN,
        "find-delete",
        CATEGORY,
        "find -delete permanently removes matched files.",
        ["find", "-delete"],
    )


def analyze_batch_runner(runner: str, text: str, config: AnalyzerConfig) -> Verdict:
    """Flag xargs/parallel feeding their input to rm -rf."""
    for nested in extract_nested_commands(tokenize(text)):
        if nested.kind is not ExtractedKind.XARGS_LIKE:
            continue
        inner = parse(nested.text)
        if inner.command_name == "rm" and has_recursive_force(inner.args):
            return flag(
                escalated(config, CATEGORY),
                "xargs-rm-rf",
                CATEGORY,
                "xargs/parallel feeding input to rm -rf is dangerous.",
                [runner, "rm", "-rf"],
            )
    return Verdict.allow()


@register_rule(
    category=CATEGORY,
    commands=("rm", "rmdir", "shred", "truncate", "find", "xargs", "parallel"),
)
def analyze_filesystem(text: str, config: AnalyzerConfig) -> Verdict:
    """Classify filesystem deletion commands."""
    command = parse(text)
    name = command.command_name
    args = command.args

    if name == "rm":
        return analyze_rm(args, config)
    if name == "find":
        return analyze_find(args)
    if name in ("xargs", "parallel"):
        return analyze_batch_runner(name, text, config)
    if name == "shred":
        return flag(
            escalated(config, CATEGORY),
            "shred",
            CATEGORY,
            "shred irrecoverably overwrites file contents.",
            ["shred", *args[-1:]],
        )
    if name == "truncate":
        if "-s0" in args or option_value(args, ("-s", "--size")) == "0":
            return flag(
                Decision.WARN,
                "truncate-zero",
                CATEGORY,
                "truncate -s 0 discards file contents.",
                ["truncate", "-s", "0"],
                Confidence.MEDIUM,
            )
    return Verdict.allow()
