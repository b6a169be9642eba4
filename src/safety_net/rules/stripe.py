"""Stripe CLI rules based on verb classification.

Decisions depend on three inputs: the kind of verb, whether the command
targets live mode (``--live`` or a live API key), and whether a flag
skips the confirmation prompt.
"""

from safety_net.config import AnalyzerConfig
from safety_net.models import Decision, Verdict
from safety_net.rules.base import flag, has_any, option_value, parse
from safety_net.rules.registry import register_rule

CATEGORY = "stripe"

DESTRUCTIVE_VERBS = frozenset({"delete", "cancel", "void", "remove", "archive"})
MONEY_VERBS = frozenset({"refund", "capture", "pay", "payout", "transfer"})
MONEY_RESOURCES = frozenset({"charges", "payment_intents", "invoices", "refunds", "payouts", "transfers"})
WRITE_VERBS = frozenset({"create", "update", "confirm", "send", "resend", "post"})
READ_VERBS = frozenset({"get", "list", "retrieve", "search"})
SAFE_COMMANDS = frozenset({"listen", "logs", "login", "logout", "help", "version", "status", "config"})

BYPASS_FLAGS = ("--confirm", "--yes", "-y", "--force", "-f")
LIVE_KEY_PREFIXES = ("sk_live_", "rk_live_")


def is_live_mode(args: list[str]) -> bool:
    """``--live`` or a live secret/restricted key passed with ``--api-key``."""
    if "--live" in args:
        return True
    key = option_value(args, ("--api-key", "-k"))
    return bool(key) and key.startswith(LIVE_KEY_PREFIXES)


def extract_verb(args: list[str]) -> tuple[str, str | None]:
    """Handle both ``stripe <resource> <action>`` and ``stripe <verb> /<path>``."""
    if not args:
        return "", None
    first = args[0]
    second = args[1] if len(args) > 1 else None
    if first in READ_VERBS or first in SAFE_COMMANDS or first in ("post", "delete", "trigger"):
        return first, second
    if second:
        return second, first
    return first, None


def classify_verb(verb: str, resource: str | None) -> str:
    if not verb:
        return "unknown"
    if verb in SAFE_COMMANDS:
        return "safe"
    if verb in READ_VERBS:
        return "read"
    if verb in DESTRUCTIVE_VERBS:
        return "destructive"
    if verb in MONEY_VERBS:
        return "money"
    if resource in MONEY_RESOURCES and verb in WRITE_VERBS:
        return "money"
    if verb in WRITE_VERBS:
        return "write"
    return "unknown"


def decide(verb_type: str, live: bool, bypass: bool, paranoid: bool) -> Decision:
    """Decision matrix over verb type, live mode and confirmation bypass."""
    if verb_type in ("read", "safe"):
        return Decision.ALLOW
    elevated = Decision.DENY if paranoid else Decision.WARN
    if verb_type in ("destructive", "money"):
        return Decision.DENY if live else elevated
    if verb_type == "write":
        if live and bypass:
            return Decision.DENY
        return elevated if live else Decision.ALLOW
    # unknown verbs only matter against live data
    return elevated if live else Decision.ALLOW


def _reason(verb: str, resource: str | None, verb_type: str, live: bool, bypass: bool) -> str:
    mode = "live mode" if live else "test mode"
    suffix = " with confirmation bypass" if bypass else ""
    target = f"{verb}{f' on {resource}' if resource else ''}"
    if verb_type == "destructive":
        return f"stripe {target} is a destructive operation in {mode}{suffix}."
    if verb_type == "money":
        return f"stripe {target} involves money movement in {mode}{suffix}."
    if verb_type == "write":
        return f"stripe {target} modifies data in {mode}{suffix}."
    return f"stripe {target} in {mode}{suffix}."


@register_rule(category=CATEGORY, commands=("stripe",))
def analyze_stripe(text: str, config: AnalyzerConfig) -> Verdict:
    """Classify Stripe CLI commands by verb, mode and confirmation bypass."""
    command = parse(text)
    args = command.args
    if not args:
        return Verdict.allow()

    verb, resource = extract_verb(args)
    live = is_live_mode(args)
    paranoid = config.is_paranoid(CATEGORY)

    if verb == "trigger":
        if not live:
            return Verdict.allow()
        return flag(
            Decision.DENY if paranoid else Decision.WARN,
            "stripe-trigger-live",
            CATEGORY,
            "stripe trigger in live mode may affect production systems.",
            ["stripe", "trigger", "--live"],
        )

    verb_type = classify_verb(verb, resource)
    bypass = has_any(args, BYPASS_FLAGS)
    decision = decide(verb_type, live, bypass, paranoid)
    if decision is Decision.ALLOW:
        return Verdict.allow()

    fragments = ["stripe", verb, resource or ""]
    if live:
        fragments.append("--live")
    if bypass:
        fragments.append("--confirm")
    return flag(
        decision,
        f"stripe-{verb_type}{'-live' if live else ''}",
        CATEGORY,
        _reason(verb, resource, verb_type, live, bypass),
        fragments,
    )
