"""Safety Net command-line entry point.

Usage:
    safety-net                    Read a Claude Code hook payload from stdin
    safety-net <command words>    Analyze a command and print the result
    safety-net --version
"""

import argparse
import json
import sys

from safety_net import __version__
from safety_net.adapters.claude import run_claude_hook
from safety_net.analyzer import analyze_command
from safety_net.audit import flush_audit
from safety_net.config import load_settings
from safety_net.errors import ConfigurationError
from safety_net.logging import Loggers, configure_logging
from safety_net.models import Decision

ENV_HELP = """\
environment:
  SAFETY_NET_STRICT=1            deny commands that cannot be fully analyzed
  SAFETY_NET_PARANOID=1          escalate warnings to denials
  SAFETY_NET_PARANOID_<CAT>=1    paranoid mode for rm, aws, pulumi or stripe
  SAFETY_NET_DISABLE_<CAT>=1     skip one rule category
  SAFETY_NET_WARN_ONLY=1         downgrade denials to warnings
  SAFETY_NET_BYPASS=1            allow everything (still audited)
  SAFETY_NET_TEMP_ROOTS          comma-separated safe roots for rm -rf
  SAFETY_NET_MAX_RECURSION_DEPTH nested shell depth limit
  SAFETY_NET_MAX_SEGMENTS        compound command segment limit
  SAFETY_NET_AUDIT_DIR           audit log directory
  SAFETY_NET_CONFIG_FILE         YAML config file
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="safety-net",
        description="Classify shell commands as allow, warn or deny.",
        epilog=ENV_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"safety-net {__version__}",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Deny commands that cannot be fully analyzed",
    )
    parser.add_argument(
        "--paranoid",
        action="store_true",
        default=None,
        help="Escalate warnings to denials",
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Command to analyze (omit to read a hook payload from stdin)",
    )
    return parser


def cmd_analyze(words: list[str], strict: bool | None, paranoid: bool | None) -> int:
    """Analyze one command and print the result as JSON.

    Returns:
        1 when the command is denied, 0 otherwise.
    """
    command = " ".join(words)
    result = analyze_command(command, strict=strict, paranoid=paranoid)
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    return 1 if result.decision is Decision.DENY else 0


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return the process exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(load_settings())
    logger = Loggers.cli()

    try:
        if args.command:
            return cmd_analyze(args.command, args.strict, args.paranoid)
        return run_claude_hook(sys.stdin, sys.stdout, sys.stderr)
    except ConfigurationError as e:
        logger.error("configuration_invalid", error=e.message, details=e.details)
        print(f"[safety-net] Error: {e.message}", file=sys.stderr)
        return 2
    finally:
        flush_audit()


if __name__ == "__main__":
    sys.exit(main())
