"""HTTP API mutation rules for curl.

Requests to known services are classified by what they would change:
- Linear (api.linear.app): GraphQL mutations
- Datadog (api.datadoghq.com/.eu): HTTP method
"""

import re
from dataclasses import dataclass
from typing import Callable

from safety_net.config import AnalyzerConfig
from safety_net.models import Confidence, Decision, Verdict
from safety_net.rules.base import escalated, flag, parse
from safety_net.rules.registry import register_rule

CATEGORY = "api"

CURL_DATA_FLAGS = (
    "-d", "--data", "--data-raw", "--data-binary", "--data-urlencode", "--data-ascii", "--json",
)
CURL_METHOD_FLAGS = ("-X", "--request")

_MUTATION_PATTERNS = [
    re.compile(r"""["']query["']\s*:\s*["']\s*mutation[\s{]""", re.I),
    re.compile(r"^\s*mutation[\s{]", re.I),
    re.compile(r"""["']query["']\s*:\s*["']mutation["']""", re.I),
]
_EXPLICIT_QUERY = re.compile(r"""["']query["']\s*:\s*["']\s*query\s""", re.I)
_ANONYMOUS_QUERY = [
    re.compile(r"""["']query["']\s*:\s*["']\s*\{""", re.I),
    re.compile(r"^\s*(query\s|\{)", re.I),
]


@dataclass
class CurlRequest:
    """The parts of a curl invocation that matter for classification."""

    url: str | None = None
    method: str = "GET"
    data: str | None = None
    has_file_input: bool = False
    has_variable_input: bool = False

    def set_data(self, data: str) -> None:
        self.data = data
        if self.method == "GET":
            self.method = "POST"
        if data.startswith("@"):
            self.has_file_input = True
        if "$" in data:
            self.has_variable_input = True


def parse_curl(args: list[str]) -> CurlRequest:
    """Extract URL, method and body from curl arguments.

    A body flag implies POST unless a method was given explicitly.
    """
    request = CurlRequest()
    i = 0
    while i < len(args):
        word = args[i]

        if word in CURL_METHOD_FLAGS:
            if i + 1 < len(args):
                request.method = args[i + 1].upper()
            i += 2
            continue

        if word in CURL_DATA_FLAGS:
            if i + 1 < len(args):
                request.set_data(args[i + 1])
            i += 2
            continue

        inline = next(
            (f for f in CURL_DATA_FLAGS if word.startswith(f + "=") or word.startswith(f + ":")),
            None,
        )
        if inline:
            request.set_data(word[len(inline) + 1:])
            i += 1
            continue

        # Other short options take a value (-H, -o, -u ...)
        if word.startswith("-") and not word.startswith("--") and len(word) == 2:
            i += 2
            continue

        if word.startswith("--") and "=" not in word:
            if i + 1 < len(args) and not args[i + 1].startswith("-"):
                i += 2
            else:
                i += 1
            continue

        if not word.startswith("-") and request.url is None:
            request.url = word
        i += 1

    return request


def _normalize(body: str) -> str:
    return re.sub(r"\s+", " ", body).strip()


def is_graphql_mutation(body: str) -> bool:
    normalized = _normalize(body)
    return any(p.search(normalized) for p in _MUTATION_PATTERNS)


def is_graphql_query(body: str) -> bool:
    normalized = _normalize(body)
    if _EXPLICIT_QUERY.search(normalized):
        return True
    if any(p.search(normalized) for p in _ANONYMOUS_QUERY):
        return not is_graphql_mutation(body)
    return False


def analyze_linear(request: CurlRequest, config: AnalyzerConfig) -> Verdict:
    if request.has_file_input or request.has_variable_input:
        return flag(
            escalated(config),
            "api-linear-unanalyzable",
            CATEGORY,
            "Linear API request with file/variable input cannot be fully analyzed.",
            ["curl", "api.linear.app"],
            Confidence.LOW,
        )
    if not request.data:
        return Verdict.allow()
    if is_graphql_mutation(request.data):
        return flag(
            escalated(config),
            "api-linear-mutation",
            CATEGORY,
            "Linear GraphQL mutation detected (creates/modifies data).",
            ["curl", "api.linear.app", "mutation"],
        )
    if is_graphql_query(request.data):
        return Verdict.allow()
    if config.is_paranoid():
        return flag(
            Decision.WARN,
            "api-linear-unknown",
            CATEGORY,
            "Linear API request type could not be determined.",
            ["curl", "api.linear.app"],
            Confidence.LOW,
        )
    return Verdict.allow()


def analyze_datadog(request: CurlRequest, config: AnalyzerConfig) -> Verdict:
    if request.method == "DELETE":
        return flag(
            Decision.DENY,
            "api-datadog-delete",
            CATEGORY,
            "Datadog API DELETE request (destructive operation).",
            ["curl", "api.datadoghq", "DELETE"],
        )
    if request.method in ("POST", "PUT", "PATCH"):
        return flag(
            escalated(config),
            f"api-datadog-{request.method.lower()}",
            CATEGORY,
            f"Datadog API {request.method} request (modifies data).",
            ["curl", "api.datadoghq", request.method],
        )
    return Verdict.allow()


API_ENDPOINTS: list[tuple[str, list[re.Pattern], Callable[[CurlRequest, AnalyzerConfig], Verdict]]] = [
    ("linear", [re.compile(r"api\.linear\.app", re.I)], analyze_linear),
    (
        "datadog",
        [re.compile(r"api\.datadoghq\.(com|eu)", re.I), re.compile(r"app\.datadoghq\.(com|eu)/api", re.I)],
        analyze_datadog,
    ),
]


@register_rule(category=CATEGORY, commands=("curl",))
def analyze_api(text: str, config: AnalyzerConfig) -> Verdict:
    """Classify curl requests that mutate data in known third-party APIs."""
    command = parse(text)
    request = parse_curl(command.args)
    if not request.url:
        return Verdict.allow()

    for _name, patterns, analyze in API_ENDPOINTS:
        if any(p.search(request.url) for p in patterns):
            return analyze(request, config)
    return Verdict.allow()
