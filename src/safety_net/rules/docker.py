"""Container rules for docker, podman and docker-compose."""

from safety_net.config import AnalyzerConfig
from safety_net.models import Confidence, Decision, Verdict
from safety_net.rules.base import escalated, flag, has_any, parse
from safety_net.rules.registry import register_rule

CATEGORY = "docker"

ALL_FLAGS = ("-a", "--all", "-all")
VOLUME_FLAGS = ("-v", "--volumes")


def has_force(args: list[str]) -> bool:
    return any(
        a == "--force" or (a.startswith("-") and not a.startswith("--") and "f" in a)
        for a in args
    )


def _system(args: list[str], config: AnalyzerConfig) -> Verdict:
    if args[:1] != ["prune"]:
        return Verdict.allow()
    prune_all = has_any(args, ALL_FLAGS)
    volumes = has_any(args, VOLUME_FLAGS) or "--rmi" in args
    if prune_all or volumes:
        shown = " ".join(f for f, on in (("-a", prune_all), ("--volumes", volumes)) if on)
        return flag(
            Decision.DENY,
            "docker-system-prune-aggressive",
            CATEGORY,
            f"docker system prune {shown} removes ALL unused data including volumes.",
            ["docker", "system", "prune"],
        )
    return flag(
        escalated(config),
        "docker-system-prune",
        CATEGORY,
        "docker system prune removes unused containers, networks, and images.",
        ["docker", "system", "prune"],
    )


def _volume(args: list[str], config: AnalyzerConfig) -> Verdict:
    action = args[0] if args else None
    if action == "prune":
        scope = "ALL" if has_any(args, ALL_FLAGS) else "unused"
        return flag(
            Decision.DENY,
            "docker-volume-prune",
            CATEGORY,
            f"docker volume prune removes {scope} volumes (permanent data loss).",
            ["docker", "volume", "prune"],
        )
    if action in ("rm", "remove"):
        return flag(
            escalated(config),
            "docker-volume-rm",
            CATEGORY,
            "docker volume rm permanently deletes volume data.",
            ["docker", "volume", "rm"],
        )
    return Verdict.allow()


def _container(args: list[str], config: AnalyzerConfig) -> Verdict:
    action = args[0] if args else None
    if action == "prune":
        return flag(
            escalated(config),
            "docker-container-prune",
            CATEGORY,
            "docker container prune removes all stopped containers.",
            ["docker", "container", "prune"],
        )
    if action in ("rm", "remove") and has_force(args[1:]):
        return flag(
            escalated(config),
            "docker-container-rm-force",
            CATEGORY,
            "docker container rm -f forcibly removes running containers (potential data loss).",
            ["docker", "container", "rm", "-f"],
        )
    return Verdict.allow()


def _image(args: list[str], config: AnalyzerConfig) -> Verdict:
    if args[:1] == ["prune"] and has_any(args, ALL_FLAGS):
        return flag(
            escalated(config),
            "docker-image-prune-all",
            CATEGORY,
            "docker image prune -a removes ALL unused images.",
            ["docker", "image", "prune", "-a"],
        )
    return Verdict.allow()


def _network(args: list[str], config: AnalyzerConfig) -> Verdict:
    action = args[0] if args else None
    if action == "prune":
        return flag(
            escalated(config),
            "docker-network-prune",
            CATEGORY,
            "docker network prune removes all unused networks.",
            ["docker", "network", "prune"],
        )
    if action in ("rm", "remove"):
        return flag(
            escalated(config),
            "docker-network-rm",
            CATEGORY,
            "docker network rm removes networks.",
            ["docker", "network", "rm"],
            Confidence.MEDIUM,
        )
    return Verdict.allow()


def _top_level(subcommand: str, args: list[str], text: str, config: AnalyzerConfig) -> Verdict:
    if subcommand == "rm" and has_force(args):
        return flag(
            escalated(config),
            "docker-rm-force",
            CATEGORY,
            "docker rm -f forcibly removes running containers (potential data loss).",
            ["docker", "rm", "-f"],
        )
    if subcommand == "rmi" and has_force(args):
        return flag(
            escalated(config),
            "docker-rmi-force",
            CATEGORY,
            "docker rmi -f forcibly removes images even if in use by containers.",
            ["docker", "rmi", "-f"],
        )
    if subcommand in ("stop", "kill") and ("$(docker ps" in text or "`docker ps" in text):
        return flag(
            escalated(config),
            f"docker-{subcommand}-all",
            CATEGORY,
            f"docker {subcommand} targeting all containers disrupts all services.",
            ["docker", subcommand, "$(docker ps...)"],
        )
    return Verdict.allow()


def analyze_compose(args: list[str], config: AnalyzerConfig) -> Verdict:
    """Classify ``docker-compose`` / ``docker compose`` arguments."""
    subcommand = args[0] if args else None
    rest = args[1:]

    if subcommand == "down":
        if has_any(rest, VOLUME_FLAGS) or "--rmi" in rest:
            return flag(
                Decision.DENY,
                "docker-compose-down-volumes",
                CATEGORY,
                "docker-compose down -v removes volumes (permanent data loss).",
                ["docker-compose", "down", "-v"],
            )
        return Verdict.allow()

    if subcommand == "rm":
        if has_any(rest, VOLUME_FLAGS):
            return flag(
                Decision.DENY,
                "docker-compose-rm-volumes",
                CATEGORY,
                "docker-compose rm -v removes containers and volumes (data loss).",
                ["docker-compose", "rm", "-v"],
            )
        if has_force(rest):
            return flag(
                escalated(config),
                "docker-compose-rm-force",
                CATEGORY,
                "docker-compose rm -f removes containers without confirmation.",
                ["docker-compose", "rm", "-f"],
            )
    return Verdict.allow()


MANAGEMENT_COMMANDS = {
    "system": _system,
    "volume": _volume,
    "container": _container,
    "image": _image,
    "network": _network,
}


@register_rule(category=CATEGORY, commands=("docker", "podman", "docker-compose"))
def analyze_docker(text: str, config: AnalyzerConfig) -> Verdict:
    """Classify container commands that remove data, images or running services."""
    command = parse(text)
    args = command.args
    if not args:
        return Verdict.allow()

    if command.command_name == "docker-compose":
        return analyze_compose(args, config)

    subcommand, rest = args[0], args[1:]
    if subcommand == "compose":
        return analyze_compose(rest, config)
    handler = MANAGEMENT_COMMANDS.get(subcommand)
    if handler is not None:
        return handler(rest, config)
    return _top_level(subcommand, rest, text, config)
