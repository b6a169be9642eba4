"""System rules: process signals, disks, permissions, services and power."""

import re

from safety_net.config import AnalyzerConfig
from safety_net.models import Confidence, Decision, Verdict
from safety_net.rules.base import escalated, flag, has_any, option_value, parse, positionals
from safety_net.rules.registry import register_rule

CATEGORY = "system"

CRITICAL_PIDS = frozenset({"0", "1"})
CRITICAL_PROCESSES = ("init", "systemd", "launchd", "kernel", "kthreadd", "sshd", "dockerd")

CRITICAL_SYSTEM_DIRS = (
    "/", "/bin", "/sbin", "/usr", "/usr/bin", "/usr/sbin", "/etc", "/var",
    "/lib", "/lib64", "/boot", "/root", "/System", "/Library", "/Applications",
)

CRITICAL_SERVICES = (
    "sshd", "ssh", "networking", "network", "NetworkManager",
    "systemd-journald", "systemd-logind", "dbus", "docker", "containerd",
)

BLOCK_DEVICE_PREFIXES = (
    "/dev/sd", "/dev/hd", "/dev/nvme", "/dev/vd", "/dev/xvd", "/dev/disk", "/dev/mmcblk",
)

SIGKILL_NAMES = frozenset({"9", "KILL", "SIGKILL"})

PARTITION_TOOLS = ("fdisk", "parted", "gdisk", "cfdisk")
POWER_COMMANDS = ("reboot", "shutdown", "halt", "poweroff", "init")

_WORLD_WRITABLE_OCTAL = re.compile(r"[0-7]?[67][67][67]")
_WORLD_WRITABLE_SYMBOLIC = re.compile(r"[ao]\+w")


def has_sigkill(args: list[str]) -> bool:
    if any(a in ("-9", "-KILL", "-SIGKILL") for a in args):
        return True
    signal = option_value(args, ("-s", "--signal"))
    return signal is not None and signal.upper() in SIGKILL_NAMES


def signal_targets(args: list[str]) -> list[str]:
    """PIDs (kill) or process names (killall/pkill), skipping option values."""
    targets = []
    skip = False
    for arg in args:
        if skip:
            skip = False
            continue
        if arg in ("-s", "-n"):
            skip = True
            continue
        if not arg.startswith("-"):
            targets.append(arg)
    return targets


def is_critical_path(target: str) -> bool:
    # "/" matches only itself: "//" never prefixes a real path
    return any(target == d or target.startswith(d + "/") for d in CRITICAL_SYSTEM_DIRS)


def _kill(args: list[str], config: AnalyzerConfig) -> Verdict:
    pids = signal_targets(args)
    for pid in pids:
        if pid in CRITICAL_PIDS:
            return flag(
                Decision.DENY,
                "kill-critical-pid",
                CATEGORY,
                f"kill targeting critical PID {pid} (init/kernel).",
                ["kill", pid],
            )
    if has_sigkill(args):
        return flag(
            escalated(config),
            "kill-sigkill",
            CATEGORY,
            "kill -9 (SIGKILL) forcefully terminates without cleanup.",
            ["kill", "-9", *pids],
        )
    return Verdict.allow()


def _killall(tool: str, args: list[str], config: AnalyzerConfig) -> Verdict:
    targets = signal_targets(args)
    for target in targets:
        if any(p in target.lower() for p in CRITICAL_PROCESSES):
            return flag(
                Decision.DENY,
                f"{tool}-critical-process",
                CATEGORY,
                f"{tool} targeting critical process '{target}'.",
                [tool, target],
            )
    if has_sigkill(args):
        return flag(
            escalated(config),
            f"{tool}-sigkill",
            CATEGORY,
            f"{tool} -9 forcefully terminates multiple processes without cleanup.",
            [tool, "-9", *targets],
        )
    if targets:
        return flag(
            Decision.WARN,
            f"{tool}-mass",
            CATEGORY,
            f"{tool} terminates all processes matching '{', '.join(targets)}'.",
            [tool, *targets],
            Confidence.MEDIUM,
        )
    return Verdict.allow()


def _dd(args: list[str], config: AnalyzerConfig) -> Verdict:
    output = next((a[3:] for a in args if a.startswith("of=")), None)
    if not output:
        return Verdict.allow()
    if output.startswith(BLOCK_DEVICE_PREFIXES):
        return flag(
            Decision.DENY,
            "dd-to-device",
            CATEGORY,
            f"dd writing to block device {output} can destroy disk data.",
            ["dd", f"of={output}"],
        )
    if any(output.startswith(d + "/") for d in CRITICAL_SYSTEM_DIRS if d != "/"):
        return flag(
            escalated(config),
            "dd-to-system-path",
            CATEGORY,
            f"dd writing to system path {output} may damage the system.",
            ["dd", f"of={output}"],
        )
    return Verdict.allow()


def _chmod(args: list[str], config: AnalyzerConfig) -> Verdict:
    recursive = has_any(args, ("-R", "--recursive"))
    operands = positionals(args)
    mode = operands[0] if operands else None
    target = operands[1] if len(operands) > 1 else None

    if mode and (_WORLD_WRITABLE_OCTAL.fullmatch(mode) or _WORLD_WRITABLE_SYMBOLIC.search(mode)):
        return flag(
            escalated(config),
            "chmod-world-writable",
            CATEGORY,
            f"chmod {mode} makes files world-writable (security risk).",
            ["chmod", mode],
        )
    if recursive and target and is_critical_path(target):
        return flag(
            Decision.DENY,
            "chmod-recursive-system",
            CATEGORY,
            f"chmod -R on system path {target} can break the system.",
            ["chmod", "-R", target],
        )
    return Verdict.allow()


def _chown(tool: str, args: list[str], config: AnalyzerConfig) -> Verdict:
    recursive = has_any(args, ("-R", "--recursive"))
    operands = positionals(args)
    owner = operands[0] if operands else ""
    target = operands[1] if len(operands) > 1 else None

    if recursive and target and is_critical_path(target):
        return flag(
            Decision.DENY,
            f"{tool}-recursive-system",
            CATEGORY,
            f"{tool} -R on system path {target} can break the system.",
            [tool, "-R", target],
        )
    if target == "/":
        return flag(
            escalated(config),
            f"{tool}-system-path",
            CATEGORY,
            f"{tool} {owner} on {target} affects system file ownership.",
            [tool, owner, target],
        )
    return Verdict.allow()


def _systemctl(args: list[str], config: AnalyzerConfig) -> Verdict:
    operands = positionals(args)
    action = operands[0] if operands else None
    service = operands[1] if len(operands) > 1 else None
    if action not in ("stop", "disable", "mask", "kill"):
        return Verdict.allow()
    if service and any(s in service for s in CRITICAL_SERVICES):
        return flag(
            Decision.DENY,
            f"systemctl-{action}-critical",
            CATEGORY,
            f"systemctl {action} {service} would affect a critical system service.",
            ["systemctl", action, service],
        )
    return flag(
        escalated(config),
        f"systemctl-{action}",
        CATEGORY,
        f"systemctl {action} {service or 'service'} stops or disables a service.",
        ["systemctl", action],
        Confidence.MEDIUM,
    )


def _launchctl(args: list[str], config: AnalyzerConfig) -> Verdict:
    action = args[0] if args else None
    if action in ("unload", "stop", "remove", "bootout"):
        return flag(
            escalated(config),
            f"launchctl-{action}",
            CATEGORY,
            f"launchctl {action} stops or removes a service.",
            ["launchctl", action],
            Confidence.MEDIUM,
        )
    return Verdict.allow()


def _service(args: list[str], config: AnalyzerConfig) -> Verdict:
    if len(args) >= 2 and args[1] in ("stop", "restart"):
        return flag(
            escalated(config),
            f"service-{args[1]}",
            CATEGORY,
            f"service {args[0]} {args[1]} affects a system service.",
            ["service", args[0], args[1]],
            Confidence.MEDIUM,
        )
    return Verdict.allow()


@register_rule(
    category=CATEGORY,
    commands=(
        "kill", "killall", "pkill", "dd", "mkfs", "chmod", "chown", "chgrp",
        "systemctl", "launchctl", "service", *PARTITION_TOOLS, *POWER_COMMANDS,
    ),
    prefixes=("mkfs.",),
)
def analyze_system(text: str, config: AnalyzerConfig) -> Verdict:
    """Classify process, disk, permission, service and power commands."""
    command = parse(text)
    name = command.command_name
    args = command.args

    if name == "kill":
        return _kill(args, config)
    if name in ("killall", "pkill"):
        return _killall(name, args, config)
    if name == "dd":
        return _dd(args, config)
    if name == "mkfs" or name.startswith("mkfs."):
        return flag(
            Decision.DENY,
            "mkfs",
            CATEGORY,
            "mkfs formats a disk, destroying ALL existing data.",
            [name, *args[:1]],
        )
    if name in PARTITION_TOOLS:
        return flag(
            Decision.DENY,
            f"{name}-partition",
            CATEGORY,
            f"{name} modifies disk partition table. Incorrect use can cause data loss.",
            [name, *args[:1]],
        )
    if name == "chmod":
        return _chmod(args, config)
    if name in ("chown", "chgrp"):
        return _chown(name, args, config)
    if name == "systemctl":
        return _systemctl(args, config)
    if name == "launchctl":
        return _launchctl(args, config)
    if name == "service":
        return _service(args, config)
    if name in POWER_COMMANDS:
        return flag(
            Decision.DENY,
            f"{name}-system",
            CATEGORY,
            f"{name} will {'restart' if name == 'reboot' else 'shut down'} the system.",
            [name],
        )
    return Verdict.allow()
