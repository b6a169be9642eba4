"""Command analysis entry point.

``analyze_command`` splits a command into top-level segments, classifies
each segment with the rule registry, and recursively classifies commands
embedded inside shell, interpreter, batch-runner and ``find -exec``
arguments. All verdicts are then merged by the aggregator.

Example:
    from safety_net import analyze_command

    result = analyze_command("git push --force")
    result.decision  # Decision.DENY
"""

from dataclasses import replace
from typing import Any

from safety_net.aggregator import aggregate_decisions, build_reason
from safety_net.config import AnalyzerConfig, load_config
from safety_net.logging import Loggers
from safety_net.models import AnalysisResult, Confidence, Decision, Verdict
from safety_net.rules import dispatch
from safety_net.shell.constructs import has_unparseable_constructs
from safety_net.shell.models import ExtractedCommand, ExtractedKind
from safety_net.shell.splitter import split_command
from safety_net.shell.tokenizer import tokenize
from safety_net.shell.wrappers import extract_nested_commands
from safety_net.utils import truncate_command

UNPARSEABLE_REASON = (
    "Command contains constructs that cannot be fully analyzed "
    "(heredocs, process substitution, etc.)."
)

_GROUP_DELIMITERS = {"(": (")", "subshell"), "{": ("}", "group")}


def group_body(text: str) -> ExtractedCommand | None:
    """Return the body of a segment that is a ``( ... )`` or ``{ ...; }`` group.

    The splitter keeps group bodies opaque, so ``(cd /; rm -rf *)`` reaches
    the analyzer as a single segment. Trailing redirects after the closing
    delimiter are allowed.
    """
    if not text or text[0] not in _GROUP_DELIMITERS:
        return None
    closer, label = _GROUP_DELIMITERS[text[0]]
    opener = text[0]

    depth = 0
    quote: str | None = None
    escaped = False
    for i, char in enumerate(text):
        if escaped:
            escaped = False
            continue
        if char == "\\" and quote != "'":
            escaped = True
            continue
        if quote:
            if char == quote:
                quote = None
            continue
        if char in ("'", '"'):
            quote = char
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                body = text[1:i].strip()
                if not body:
                    return None
                return ExtractedCommand(text=body, wrapper_label=label, kind=ExtractedKind.SHELL)
    return None


def _annotate(verdict: Verdict, label: str) -> Verdict:
    return replace(verdict, reason=f"[via {label}] {verdict.reason or ''}")


def analyze_nested(text: str, config: AnalyzerConfig, depth: int = 0) -> list[Verdict]:
    """Classify commands embedded in one segment, up to the recursion bound.

    Every extracted command is dispatched and its non-allow verdicts are
    annotated with the wrapper label (``[via bash -c] ...``). Only shell
    kind extractions are recursed into, since interpreter code is not
    shell syntax. Reaching ``config.max_recursion_depth`` stops silently.

    Args:
        text: Segment or nested command text.
        config: Analyzer configuration.
        depth: Current nesting depth (0 for top-level segments).

    Returns:
        Non-allow verdicts in discovery order.
    """
    if depth >= config.max_recursion_depth:
        return []

    nested = extract_nested_commands(tokenize(text))
    group = group_body(text)
    if group is not None:
        nested.append(group)

    verdicts: list[Verdict] = []
    for extracted in nested:
        if extracted.kind is ExtractedKind.SHELL:
            # Shell text may itself be compound: bash -c "cd /tmp && rm -rf /"
            parts = [segment.text for segment in split_command(extracted.text)]
        else:
            parts = [extracted.text]

        for part in parts:
            verdict = dispatch(part, config)
            if not verdict.is_allow:
                verdicts.append(_annotate(verdict, extracted.wrapper_label))
            if extracted.kind is ExtractedKind.SHELL:
                verdicts.extend(analyze_nested(part, config, depth + 1))
    return verdicts


def _too_many_segments(config: AnalyzerConfig) -> Verdict:
    return Verdict(
        decision=Decision.DENY if config.strict else Decision.WARN,
        rule_id="too-many-segments",
        reason=f"Command has more than {config.max_segments} segments.",
        confidence=Confidence.LOW,
    )


def _unparseable(config: AnalyzerConfig) -> Verdict:
    return Verdict(
        decision=Decision.DENY if config.strict else Decision.WARN,
        rule_id="unparseable-construct",
        reason=UNPARSEABLE_REASON,
        confidence=Confidence.LOW,
    )


def analyze_command(
    command: str,
    config: AnalyzerConfig | None = None,
    **overrides: Any,
) -> AnalysisResult:
    """Classify a shell command as allow, warn or deny.

    Args:
        command: Raw command text as the agent would run it.
        config: Analyzer configuration. Loaded fresh from the environment
            when omitted.
        **overrides: Without ``config``, settings overrides passed to
            ``load_config`` (e.g. ``strict=True``). With ``config``,
            ``AnalyzerConfig`` fields to replace.

    Returns:
        AnalysisResult with the final decision, every non-allow verdict
        and a composed reason. Never raises for malformed command text.
    """
    if config is None:
        config = load_config(**overrides)
    elif overrides:
        config = config.replace(**overrides)

    log = Loggers.analyzer()
    unparseable = has_unparseable_constructs(command)
    verdicts: list[Verdict] = []

    for index, segment in enumerate(split_command(command)):
        if index >= config.max_segments:
            verdicts.append(_too_many_segments(config))
            break

        verdict = dispatch(segment.text, config)
        if not verdict.is_allow:
            verdicts.append(verdict)
        nested = analyze_nested(segment.text, config)
        verdicts.extend(nested)

        log.debug(
            "segment_analyzed",
            index=index,
            operator=segment.preceding_operator,
            decision=verdict.decision.value,
            rule_id=verdict.rule_id,
            nested_issues=len(nested),
        )

    if unparseable:
        verdicts.append(_unparseable(config))

    decision = aggregate_decisions(verdicts, unparseable, config)
    return AnalysisResult(
        decision=decision,
        segment_verdicts=verdicts,
        reason=build_reason(verdicts, decision),
        original_command=command,
        truncated_command=truncate_command(command),
        unparseable=unparseable,
    )
