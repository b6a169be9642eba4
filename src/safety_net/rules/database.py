"""Database client rules: PostgreSQL, MySQL, MongoDB and Redis.

SQL passed inline (``psql -c``, ``mysql -e``) is scanned for statements
that drop or wipe data. Input read from a file or redirect cannot be
inspected and is warned about with low confidence.
"""

import re

from safety_net.config import AnalyzerConfig
from safety_net.models import Confidence, Decision, Verdict
from safety_net.rules.base import flag, option_value, parse, redirects_input
from safety_net.rules.registry import register_rule
from safety_net.shell.models import StrippedCommand

CATEGORY = "database"

# (pattern, rule_id, reason, critical)
SQL_PATTERNS = [
    (re.compile(r"\bDROP\s+DATABASE\b", re.I), "sql-drop-database",
     "DROP DATABASE permanently deletes the entire database.", True),
    (re.compile(r"\bDROP\s+TABLE\b", re.I), "sql-drop-table",
     "DROP TABLE permanently deletes a table and all its data.", True),
    (re.compile(r"\bDROP\s+SCHEMA\b", re.I), "sql-drop-schema",
     "DROP SCHEMA removes a schema and all objects within it.", True),
    (re.compile(r"\bTRUNCATE\s+(?:TABLE\s+)?\w", re.I), "sql-truncate",
     "TRUNCATE TABLE deletes all rows from the table.", True),
    (re.compile(r"\bDELETE\s+FROM\s+\w+\s*(?:;|$)", re.I), "sql-delete-all",
     "DELETE without WHERE clause removes ALL rows from the table.", True),
    (re.compile(r"\bUPDATE\s+\w+\s+SET\s+[^;]+(?:;|$)", re.I), "sql-update-all",
     "UPDATE without WHERE clause modifies ALL rows in the table.", False),
    (re.compile(r"\bALTER\s+TABLE\s+\w+\s+DROP\s+(?:COLUMN|CONSTRAINT)\b", re.I), "sql-alter-drop",
     "ALTER TABLE DROP removes columns or constraints.", False),
]

_WHERE = re.compile(r"\bWHERE\b", re.I)

MONGO_PATTERNS = [
    (re.compile(r"\.dropDatabase\s*\(\s*\)"), "mongo-drop-database",
     "dropDatabase() permanently deletes the entire MongoDB database."),
    (re.compile(r"\.drop\s*\(\s*\)"), "mongo-drop-collection",
     "drop() permanently deletes a MongoDB collection."),
    (re.compile(r"\.dropCollection\s*\("), "mongo-drop-collection",
     "dropCollection() permanently deletes a MongoDB collection."),
    (re.compile(r"\.deleteMany\s*\(\s*\{\s*\}\s*\)"), "mongo-delete-all",
     "deleteMany({}) deletes ALL documents in the collection."),
    (re.compile(r"\.remove\s*\(\s*\{\s*\}\s*\)"), "mongo-remove-all",
     "remove({}) deletes ALL documents in the collection."),
]

# (command, rule_id, reason, critical)
REDIS_COMMANDS = [
    ("FLUSHALL", "redis-flushall", "FLUSHALL deletes ALL keys in ALL Redis databases.", True),
    ("FLUSHDB", "redis-flushdb", "FLUSHDB deletes ALL keys in the current database.", True),
    ("DEBUG SEGFAULT", "redis-debug-crash", "DEBUG SEGFAULT crashes the Redis server.", True),
    ("DEBUG CRASH", "redis-debug-crash", "DEBUG CRASH crashes the Redis server.", True),
    ("SHUTDOWN", "redis-shutdown", "SHUTDOWN stops the Redis server.", False),
    ("CONFIG SET", "redis-config-set", "CONFIG SET modifies Redis server configuration.", False),
    ("DEBUG SLEEP", "redis-debug-sleep", "DEBUG SLEEP blocks the Redis server.", False),
]


def check_sql(sql: str, config: AnalyzerConfig) -> Verdict | None:
    """Return a verdict for the first dangerous statement found in ``sql``."""
    for pattern, rule_id, reason, critical in SQL_PATTERNS:
        if not pattern.search(sql):
            continue
        if rule_id == "sql-update-all" and _WHERE.search(sql):
            continue
        return flag(
            Decision.DENY if critical or config.is_paranoid() else Decision.WARN,
            rule_id,
            CATEGORY,
            reason,
            [rule_id.removeprefix("sql-").upper()],
        )
    return None


def _uninspectable(tool: str, rule_id: str, reason: str, config: AnalyzerConfig) -> Verdict:
    return flag(
        Decision.DENY if config.is_paranoid() else Decision.WARN,
        rule_id,
        CATEGORY,
        reason,
        [tool, "<"],
        Confidence.LOW,
    )


def _sql_client(command: StrippedCommand, options: tuple[str, ...], config: AnalyzerConfig) -> Verdict:
    tool = command.command_name
    sql = option_value(command.args, options)
    if sql:
        verdict = check_sql(sql, config)
        if verdict is not None:
            return verdict

    if tool == "psql" and ("-f" in command.args or "--file" in command.args):
        return flag(
            Decision.DENY if config.is_paranoid() else Decision.WARN,
            "psql-file-execution",
            CATEGORY,
            "psql -f executes SQL from file. Content cannot be analyzed for safety.",
            ["psql", "-f"],
            Confidence.LOW,
        )

    if redirects_input(command):
        return _uninspectable(
            tool,
            f"{tool}-piped-input",
            f"{tool} with redirected input. Content cannot be analyzed for safety.",
            config,
        )
    return Verdict.allow()


def _mongo(command: StrippedCommand, text: str, config: AnalyzerConfig) -> Verdict:
    tool = command.command_name
    script = option_value(command.args, ("--eval",)) or text
    for pattern, rule_id, reason in MONGO_PATTERNS:
        if pattern.search(script):
            return flag(Decision.DENY, rule_id, CATEGORY, reason, [tool, "--eval"])

    if redirects_input(command):
        return _uninspectable(
            tool,
            "mongo-piped-input",
            "mongo/mongosh with redirected input. Content cannot be fully analyzed.",
            config,
        )
    return Verdict.allow()


def _redis(command: StrippedCommand, config: AnalyzerConfig) -> Verdict:
    upper = " ".join(command.args).upper()
    for name, rule_id, reason, critical in REDIS_COMMANDS:
        if name in upper:
            return flag(
                Decision.DENY if critical or config.is_paranoid() else Decision.WARN,
                rule_id,
                CATEGORY,
                reason,
                ["redis-cli", name],
            )
    if redirects_input(command):
        return _uninspectable(
            "redis-cli",
            "redis-piped-input",
            "redis-cli with redirected input. Content cannot be analyzed for safety.",
            config,
        )
    return Verdict.allow()


@register_rule(
    category=CATEGORY,
    commands=("psql", "dropdb", "mysql", "mysqladmin", "mongo", "mongosh", "mongorestore", "redis-cli"),
)
def analyze_database(text: str, config: AnalyzerConfig) -> Verdict:
    """Classify database client invocations that drop or wipe data."""
    command = parse(text)
    name = command.command_name

    if name == "psql":
        return _sql_client(command, ("-c", "--command"), config)
    if name == "mysql":
        return _sql_client(command, ("-e", "--execute"), config)
    if name == "dropdb":
        return flag(
            Decision.DENY,
            "dropdb",
            CATEGORY,
            "dropdb permanently deletes the entire PostgreSQL database.",
            ["dropdb"],
        )
    if name == "mysqladmin" and "drop" in command.args:
        return flag(
            Decision.DENY,
            "mysqladmin-drop",
            CATEGORY,
            "mysqladmin drop permanently deletes the MySQL database.",
            ["mysqladmin", "drop"],
        )
    if name in ("mongo", "mongosh"):
        return _mongo(command, text, config)
    if name == "mongorestore" and "--drop" in command.args:
        return flag(
            Decision.DENY,
            "mongorestore-drop",
            CATEGORY,
            "mongorestore --drop deletes existing collections before restoring.",
            ["mongorestore", "--drop"],
        )
    if name == "redis-cli":
        return _redis(command, config)
    return Verdict.allow()
