"""Configuration for safety net.

Settings are materialized fresh on every analysis call into an
immutable ``AnalyzerConfig`` so the analysis core is a pure function
of ``(command_text, config)``.

Settings Loading Priority (highest to lowest):
    1. Explicit keyword arguments
    2. Environment variables (SAFETY_NET_* prefix)
    3. YAML config file (SAFETY_NET_CONFIG_FILE or ~/.safety-net/config.yaml)
    4. Default values
"""

import os
from dataclasses import dataclass, field, replace as dc_replace
from pathlib import Path
from typing import Any, Literal, Tuple, Type

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from safety_net.errors import ConfigurationError
from safety_net.logging import Loggers

DEFAULT_MAX_RECURSION_DEPTH = 4
DEFAULT_MAX_SEGMENTS = 64

# Rule categories that can be switched off individually
RULE_CATEGORIES = (
    "git",
    "rm",
    "aws",
    "pulumi",
    "stripe",
    "kubernetes",
    "terraform",
    "gcloud",
    "azure",
    "database",
    "docker",
    "github",
    "system",
    "api",
)

# Categories with their own paranoid switch (global paranoid covers all)
PARANOID_CATEGORIES = ("rm", "aws", "pulumi", "stripe")

_INT_DEFAULTS = {
    "max_recursion_depth": DEFAULT_MAX_RECURSION_DEPTH,
    "max_segments": DEFAULT_MAX_SEGMENTS,
}


def default_temp_roots() -> list[str]:
    """Temp directories considered safe for recursive deletion."""
    roots = ["/tmp", "/var/tmp", "/private/tmp", "/private/var/tmp"]
    tmpdir = os.environ.get("TMPDIR")
    if tmpdir:
        roots.append(tmpdir)
    return roots


def default_config_file() -> Path:
    """Location of the optional YAML config file."""
    return Path(
        os.environ.get("SAFETY_NET_CONFIG_FILE", "~/.safety-net/config.yaml")
    ).expanduser()


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ("1", "true")


class SafetyNetSettings(BaseSettings):
    """Environment-backed settings for safety net.

    Every field maps to a ``SAFETY_NET_<FIELD>`` environment variable.
    Boolean variables are true only for ``1`` or ``true``; malformed
    integers fall back to their defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="SAFETY_NET_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Modes
    strict: bool = Field(
        default=False,
        title="Strict Mode",
        description="Deny commands containing unparseable constructs",
    )
    paranoid: bool = Field(
        default=False,
        title="Paranoid Mode",
        description="Escalate warnings to denials across all categories",
    )
    bypass: bool = Field(
        default=False,
        title="Bypass",
        description="Allow every command (decisions are still audited)",
    )
    warn_only: bool = Field(
        default=False,
        title="Warn Only",
        description="Downgrade every denial to a warning",
    )

    # Per-category paranoid switches
    paranoid_rm: bool = False
    paranoid_aws: bool = False
    paranoid_pulumi: bool = False
    paranoid_stripe: bool = False

    # Per-category disable switches
    disable_git: bool = False
    disable_rm: bool = False
    disable_aws: bool = False
    disable_pulumi: bool = False
    disable_stripe: bool = False
    disable_kubernetes: bool = False
    disable_terraform: bool = False
    disable_gcloud: bool = False
    disable_azure: bool = False
    disable_database: bool = False
    disable_docker: bool = False
    disable_github: bool = False
    disable_system: bool = False
    disable_api: bool = False

    # Limits
    temp_roots: str = Field(
        default="",
        title="Temp Roots",
        description="Comma-separated directories where paranoid rm -rf is allowed",
    )
    max_recursion_depth: int = Field(
        default=DEFAULT_MAX_RECURSION_DEPTH,
        title="Max Recursion Depth",
        description="Maximum depth of nested shell extraction",
    )
    max_segments: int = Field(
        default=DEFAULT_MAX_SEGMENTS,
        title="Max Segments",
        description="Maximum number of top-level segments analyzed",
    )

    # Logging
    log_level: str = Field(
        default="warning",
        title="Log Level",
        description="Logging verbosity level",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        title="Log Format",
        description="Log output format",
    )

    # Audit
    audit_enabled: bool = Field(
        default=True,
        title="Audit Enabled",
        description="Write warn/deny decisions to the audit log",
    )
    audit_dir: Path = Field(
        default_factory=lambda: Path.home() / ".safety-net" / "logs",
        title="Audit Directory",
        description="Directory for per-session JSONL audit logs",
    )

    @field_validator(
        "strict",
        "paranoid",
        "bypass",
        "warn_only",
        "paranoid_rm",
        "paranoid_aws",
        "paranoid_pulumi",
        "paranoid_stripe",
        "disable_git",
        "disable_rm",
        "disable_aws",
        "disable_pulumi",
        "disable_stripe",
        "disable_kubernetes",
        "disable_terraform",
        "disable_gcloud",
        "disable_azure",
        "disable_database",
        "disable_docker",
        "disable_github",
        "disable_system",
        "disable_api",
        "audit_enabled",
        mode="before",
    )
    @classmethod
    def parse_flag(cls, v: Any) -> bool:
        """Only ``1`` and ``true`` (any case) enable a flag."""
        return _parse_bool(v)

    @field_validator("max_recursion_depth", "max_segments", mode="before")
    @classmethod
    def parse_limit(cls, v: Any, info: ValidationInfo) -> int:
        """Fall back to the default for values that are not usable integers."""
        minimum = 0 if info.field_name == "max_recursion_depth" else 1
        try:
            parsed = v if isinstance(v, int) and not isinstance(v, bool) else int(str(v).strip())
        except (TypeError, ValueError):
            parsed = None
        if parsed is None or parsed < minimum:
            default = _INT_DEFAULTS[info.field_name]
            Loggers.config().warning(
                "invalid_integer_setting",
                setting=info.field_name,
                value=v,
                fallback=default,
            )
            return default
        return parsed

    @field_validator("temp_roots", mode="before")
    @classmethod
    def join_roots(cls, v: Any) -> str:
        """Accept a YAML list as well as a comma-separated string."""
        if isinstance(v, (list, tuple)):
            return ",".join(str(item) for item in v)
        return "" if v is None else str(v)

    @field_validator("audit_dir", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        """Expand ~ in paths."""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Layer an optional YAML file beneath the environment.

        Note: the YAML source is only included if the file exists.
        """
        sources: list[PydanticBaseSettingsSource] = [init_settings, env_settings]
        yaml_file = default_config_file()
        if yaml_file.is_file():
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file))
        return tuple(sources)

    def temp_root_list(self) -> list[str]:
        """Parsed temp roots, or the defaults when none are configured."""
        roots = [r.strip() for r in self.temp_roots.split(",") if r.strip()]
        return roots or default_temp_roots()

    def to_analyzer_config(self, cwd: str | None = None) -> "AnalyzerConfig":
        """Freeze these settings into an ``AnalyzerConfig``."""
        return AnalyzerConfig(
            cwd=cwd or os.getcwd(),
            strict=self.strict,
            paranoid=self.paranoid,
            bypass=self.bypass,
            warn_only=self.warn_only,
            paranoid_categories=frozenset(
                c for c in PARANOID_CATEGORIES if getattr(self, f"paranoid_{c}")
            ),
            disabled_categories=frozenset(
                c for c in RULE_CATEGORIES if getattr(self, f"disable_{c}")
            ),
            temp_roots=tuple(self.temp_root_list()),
            max_recursion_depth=self.max_recursion_depth,
            max_segments=self.max_segments,
        )


@dataclass(frozen=True)
class AnalyzerConfig:
    """Immutable per-call analyzer configuration.

    Attributes:
        cwd: Working directory used to resolve relative paths.
        strict: Deny unparseable commands instead of warning.
        paranoid: Escalate warnings in every category.
        bypass: Force the final decision to allow.
        warn_only: Downgrade a final deny to warn.
        paranoid_categories: Categories escalated individually.
        disabled_categories: Categories whose rules are skipped.
        temp_roots: Directories where paranoid rm -rf is allowed.
        max_recursion_depth: Bound on nested shell extraction.
        max_segments: Bound on analyzed top-level segments.
    """

    cwd: str | None = None
    strict: bool = False
    paranoid: bool = False
    bypass: bool = False
    warn_only: bool = False
    paranoid_categories: frozenset[str] = field(default_factory=frozenset)
    disabled_categories: frozenset[str] = field(default_factory=frozenset)
    temp_roots: tuple[str, ...] = field(default_factory=lambda: tuple(default_temp_roots()))
    max_recursion_depth: int = DEFAULT_MAX_RECURSION_DEPTH
    max_segments: int = DEFAULT_MAX_SEGMENTS

    def __post_init__(self):
        if self.max_recursion_depth < 0:
            raise ConfigurationError(
                "max_recursion_depth must not be negative",
                details={"max_recursion_depth": self.max_recursion_depth},
            )
        if self.max_segments < 1:
            raise ConfigurationError(
                "max_segments must be positive",
                details={"max_segments": self.max_segments},
            )
        unknown = (self.disabled_categories | self.paranoid_categories) - set(RULE_CATEGORIES)
        if unknown:
            raise ConfigurationError(
                "Unknown rule categories",
                details={"categories": sorted(unknown)},
            )

    def is_disabled(self, category: str) -> bool:
        """Check whether a rule category is switched off."""
        return category in self.disabled_categories

    def is_paranoid(self, category: str | None = None) -> bool:
        """Check global paranoid mode or the category's own switch."""
        return self.paranoid or (category is not None and category in self.paranoid_categories)

    def replace(self, **changes: Any) -> "AnalyzerConfig":
        """Return a copy with the given fields changed."""
        return dc_replace(self, **changes)



def load_settings(**overrides: Any) -> SafetyNetSettings:
    """Load settings from all sources, explicit overrides first."""
    return SafetyNetSettings(**{k: v for k, v in overrides.items() if v is not None})


def load_config(cwd: str | None = None, **overrides: Any) -> AnalyzerConfig:
    """Load an ``AnalyzerConfig`` fresh from the environment.

    Explicit keyword values take precedence over environment values.
    ``None`` means "not given" and defers to the environment.

    Args:
        cwd: Working directory for path resolution (default: process cwd).
        **overrides: Settings fields such as ``strict=True`` or
            ``paranoid_rm=True``, or ``temp_roots`` as a list.

    Returns:
        Frozen AnalyzerConfig.

    Raises:
        ConfigurationError: If an override names an unknown setting.
    """
    unknown = set(overrides) - set(SafetyNetSettings.model_fields)
    if unknown:
        raise ConfigurationError(
            "Unknown configuration overrides",
            details={"overrides": sorted(unknown)},
        )
    settings = load_settings(**overrides)
    return settings.to_analyzer_config(cwd=cwd)
