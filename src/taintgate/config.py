"""Configuration management for taintgate."""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .patterns import (
    ALWAYS_BLOCKED,
    DANGEROUS_COMMANDS,
    SAFE_COMMANDS,
    SHELL_TOOL_NAMES,
    TRUSTED_DOMAIN_PATTERNS,
)
from .tiers import RestrictionTier

logger = logging.getLogger(__name__)


def _drop_blank(values: list[str]) -> list[str]:
    return [v for v in values if isinstance(v, str) and v.strip()]


class GlobalConfig(BaseModel):
    """Global switches."""

    enabled: bool = True
    log_level: str = "INFO"


class TierThreshold(BaseModel):
    """Inclusive taint range mapped to a restriction tier."""

    min_taint: int = Field(ge=0, le=100)
    max_taint: int = Field(ge=0, le=100)
    tier: RestrictionTier

    @model_validator(mode="after")
    def check_range(self) -> "TierThreshold":
        if self.min_taint > self.max_taint:
            raise ValueError(
                f"min_taint ({self.min_taint}) is greater than max_taint ({self.max_taint})"
            )
        return self

    def contains(self, level: int) -> bool:
        return self.min_taint <= level <= self.max_taint


def default_thresholds() -> list[TierThreshold]:
    return [
        TierThreshold(min_taint=75, max_taint=100, tier=RestrictionTier.PERMISSIVE),
        TierThreshold(min_taint=50, max_taint=74, tier=RestrictionTier.CAUTIOUS),
        TierThreshold(min_taint=25, max_taint=49, tier=RestrictionTier.RESTRICTED),
        TierThreshold(min_taint=0, max_taint=24, tier=RestrictionTier.LOCKDOWN),
    ]


class TaintConfig(BaseModel):
    """Taint level configuration."""

    initial_level: int = Field(default=100, ge=0, le=100)
    penalty_per_untrusted_url: int = Field(default=10, ge=0, le=100)
    # 0 means trust never recovers
    recovery_per_trusted_url: int = Field(default=0, ge=0, le=100)
    minimum_level: int = Field(default=0, ge=0, le=100)
    thresholds: list[TierThreshold] = Field(default_factory=default_thresholds)

    @model_validator(mode="after")
    def check_levels(self) -> "TaintConfig":
        if self.minimum_level > self.initial_level:
            raise ValueError(
                f"minimum_level ({self.minimum_level}) is above initial_level ({self.initial_level})"
            )

        ordered = sorted(self.thresholds, key=lambda t: t.min_taint)
        for lower, upper in zip(ordered, ordered[1:]):
            if upper.min_taint <= lower.max_taint:
                raise ValueError(
                    f"Threshold ranges overlap: {lower.tier.value} "
                    f"[{lower.min_taint}-{lower.max_taint}] and {upper.tier.value} "
                    f"[{upper.min_taint}-{upper.max_taint}]"
                )
        return self

    def coverage_gaps(self) -> list[tuple[int, int]]:
        """Return the sub-ranges of [0, 100] not covered by any threshold."""
        gaps = []
        cursor = 0
        for threshold in sorted(self.thresholds, key=lambda t: t.min_taint):
            if threshold.min_taint > cursor:
                gaps.append((cursor, threshold.min_taint - 1))
            cursor = max(cursor, threshold.max_taint + 1)
        if cursor <= 100:
            gaps.append((cursor, 100))
        return gaps


class TrustedUrlsConfig(BaseModel):
    """Trusted domain patterns (globs such as *.github.com)."""

    patterns: list[str] = Field(default_factory=lambda: list(TRUSTED_DOMAIN_PATTERNS))

    @field_validator("patterns")
    @classmethod
    def validate_patterns(cls, patterns: list[str]) -> list[str]:
        return [p.strip() for p in _drop_blank(patterns)]


class ShellRestrictionsConfig(BaseModel):
    """Shell command restriction rules."""

    tool_names: list[str] = Field(default_factory=lambda: list(SHELL_TOOL_NAMES))
    always_blocked: list[str] = Field(default_factory=lambda: list(ALWAYS_BLOCKED))
    dangerous_commands: list[str] = Field(default_factory=lambda: list(DANGEROUS_COMMANDS))
    safe_commands: list[str] = Field(default_factory=lambda: list(SAFE_COMMANDS))

    @field_validator("tool_names", "always_blocked", "dangerous_commands", "safe_commands")
    @classmethod
    def validate_rules(cls, rules: list[str]) -> list[str]:
        # An empty rule would match every command as a substring
        return _drop_blank(rules)


class ServerConfig(BaseModel):
    """Hook service configuration."""

    host: str = "127.0.0.1"
    port: int = Field(default=8765, ge=1, le=65535)


class TaintGateConfig(BaseModel):
    """Main taintgate configuration."""

    version: str = "1.0"
    # "global" is a keyword, hence the alias
    global_: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    taint: TaintConfig = Field(default_factory=TaintConfig)
    trusted_urls: TrustedUrlsConfig = Field(default_factory=TrustedUrlsConfig)
    shell_restrictions: ShellRestrictionsConfig = Field(default_factory=ShellRestrictionsConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    model_config = {"populate_by_name": True}


def get_config_dir() -> Path:
    """Get the taintgate configuration directory."""
    config_dir = Path(os.environ.get("TAINTGATE_CONFIG_DIR", Path.home() / ".taintgate"))
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    """Get the path to the configuration file."""
    return get_config_dir() / "config.yaml"


def get_default_config() -> str:
    """Get the default configuration as YAML string."""
    return """# taintgate configuration
# Trust-based shell command gating for autonomous agents

version: "1.0"

#----------------------------------------------------------------------
# GLOBAL
#----------------------------------------------------------------------
global:
  enabled: true
  log_level: INFO

#----------------------------------------------------------------------
# TAINT LEVEL
#----------------------------------------------------------------------
taint:
  # Starting level: 100 = fully trusted, 0 = fully untrusted
  initial_level: 100

  # Decrease per untrusted URL access
  penalty_per_untrusted_url: 10

  # Increase per trusted URL access (0 = trust never recovers)
  recovery_per_trusted_url: 0

  # Floor for the taint level
  minimum_level: 0

  # Inclusive ranges; should cover 0-100 without gaps
  thresholds:
    - {min_taint: 75, max_taint: 100, tier: permissive}
    - {min_taint: 50, max_taint: 74, tier: cautious}
    - {min_taint: 25, max_taint: 49, tier: restricted}
    - {min_taint: 0, max_taint: 24, tier: lockdown}

#----------------------------------------------------------------------
# TRUSTED URLS
#----------------------------------------------------------------------
# *  = one domain label, ** = any depth, ? = one character
trusted_urls:
  patterns:
""" + "".join(f'    - "{p}"\n' for p in TRUSTED_DOMAIN_PATTERNS) + """
#----------------------------------------------------------------------
# SHELL RESTRICTIONS
#----------------------------------------------------------------------
# Omitted lists fall back to the built-in defaults
shell_restrictions:
  tool_names:
""" + "".join(f'    - "{t}"\n' for t in SHELL_TOOL_NAMES) + """
  # always_blocked: [...]
  # dangerous_commands: [...]
  # safe_commands: [...]

#----------------------------------------------------------------------
# HOOK SERVICE
#----------------------------------------------------------------------
server:
  host: 127.0.0.1
  port: 8765
"""


def create_default_config(path: Optional[Path] = None) -> Path:
    """Create the default configuration file."""
    config_path = path or get_config_path()
    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(get_default_config())
    return config_path


def load_config(path: Optional[Path] = None) -> TaintGateConfig:
    """Load configuration from file, falling back to defaults if it is missing.

    Args:
        path: Optional path to a YAML file. Defaults to get_config_path().

    Returns:
        Validated TaintGateConfig

    Raises:
        ValueError: If the file cannot be parsed or fails validation.
    """
    config_path = Path(path) if path else get_config_path()

    if not config_path.exists():
        logger.warning(f"Config file not found at {config_path}, using defaults")
        return TaintGateConfig()

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError("top-level YAML value must be a mapping")
        config = TaintGateConfig(**data)
    except (OSError, yaml.YAMLError, ValidationError, ValueError) as e:
        raise ValueError(f"Invalid configuration file: {e}") from e

    for low, high in config.taint.coverage_gaps():
        logger.warning(f"Taint levels {low}-{high} are not covered by any threshold")

    logger.info(f"Configuration loaded from {config_path}")
    return config


def save_config(config: TaintGateConfig, path: Optional[Path] = None) -> None:
    """Save configuration to file."""
    config_path = path or get_config_path()
    data = config.model_dump(mode="json", by_alias=True)

    with open(config_path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# Global config instance
_config: TaintGateConfig | None = None


def get_config() -> TaintGateConfig:
    """Get the current configuration (loads if not already loaded)."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> TaintGateConfig:
    """Reload configuration from file."""
    global _config
    _config = load_config()
    return _config
