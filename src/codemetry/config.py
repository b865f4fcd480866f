"""Analysis configuration.

All recognised options live in :class:`MoodConfig` and its two nested
sections.  Defaults are applied here and nowhere else; every other module
receives an already-resolved config object.

YAML layout::

    follow_up_horizon_days: 3
    keywords:
      fix_pattern: '\\b(fix|bug)\\b'
      revert_pattern: '\\b(revert)\\b'
      wip_pattern: '\\b(wip|tmp)\\b'
    ai:
      engine: openai
      api_key: ...
      model: gpt-4o-mini
      base_url: null
      timeout_seconds: 30
      batch_size: 10
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from codemetry.errors import ConfigError

logger = logging.getLogger(__name__)


DEFAULT_FIX_PATTERN = r"\b(fix|bug|hotfix|patch|typo|oops)\b"
DEFAULT_REVERT_PATTERN = r"\b(revert)\b"
DEFAULT_WIP_PATTERN = r"\b(wip|tmp|debug|hack)\b"

DEFAULT_HORIZON_DAYS = 3
DEFAULT_BATCH_SIZE = 10
DEFAULT_TIMEOUT_SECONDS = 30

# Engine id → vendor environment variable consulted when no key is configured
API_KEY_ENV_VARS = {
    "openai": "OPENAI_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GOOGLE_API_KEY",
}
GENERIC_API_KEY_ENV = "CODEMETRY_AI_API_KEY"


def _valid_pattern(pattern: Any, default: str, name: str) -> str:
    """Return *pattern* if it compiles, else *default* (with a warning)."""
    if pattern is None:
        return default
    try:
        re.compile(str(pattern), re.IGNORECASE)
    except re.error as exc:
        logger.warning(
            "Invalid %s %r (%s); using built-in default %r",
            name, pattern, exc, default,
        )
        return default
    return str(pattern)


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise ConfigError(f"Config section '{name}' must be a mapping")
    return section


def _number(value: Any, kind: type, name: str) -> Any:
    try:
        return kind(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ConfigError(f"Config option '{name}' must be a number, got {value!r}") from exc


@dataclass(frozen=True)
class KeywordConfig:
    """Commit-subject patterns used by the message and follow-up providers."""

    fix_pattern: str = DEFAULT_FIX_PATTERN
    revert_pattern: str = DEFAULT_REVERT_PATTERN
    wip_pattern: str = DEFAULT_WIP_PATTERN

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "fix_pattern",
            _valid_pattern(self.fix_pattern, DEFAULT_FIX_PATTERN, "fix_pattern"),
        )
        object.__setattr__(
            self, "revert_pattern",
            _valid_pattern(self.revert_pattern, DEFAULT_REVERT_PATTERN, "revert_pattern"),
        )
        object.__setattr__(
            self, "wip_pattern",
            _valid_pattern(self.wip_pattern, DEFAULT_WIP_PATTERN, "wip_pattern"),
        )

    @property
    def fix_regex(self) -> re.Pattern[str]:
        return re.compile(self.fix_pattern, re.IGNORECASE)

    @property
    def revert_regex(self) -> re.Pattern[str]:
        return re.compile(self.revert_pattern, re.IGNORECASE)

    @property
    def wip_regex(self) -> re.Pattern[str]:
        return re.compile(self.wip_pattern, re.IGNORECASE)


@dataclass(frozen=True)
class AiConfig:
    """AI engine selection and transport settings."""

    engine: str = "openai"
    api_key: str = ""
    model: str | None = None
    base_url: str | None = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    batch_size: int = DEFAULT_BATCH_SIZE

    def __post_init__(self) -> None:
        object.__setattr__(self, "batch_size", max(1, int(self.batch_size)))

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_key.strip())


@dataclass(frozen=True)
class MoodConfig:
    """Top-level configuration threaded through providers and the analyzer."""

    follow_up_horizon_days: int = DEFAULT_HORIZON_DAYS
    keywords: KeywordConfig = field(default_factory=KeywordConfig)
    ai: AiConfig = field(default_factory=AiConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> MoodConfig:
        """Build a config from a nested mapping; unknown keys are ignored.

        Raises:
            ConfigError: A section is not a mapping or a numeric option
                does not convert.
        """
        data = data or {}
        kw = _section(data, "keywords")
        ai = _section(data, "ai")

        keywords = KeywordConfig(
            fix_pattern=kw.get("fix_pattern", DEFAULT_FIX_PATTERN),
            revert_pattern=kw.get("revert_pattern", DEFAULT_REVERT_PATTERN),
            wip_pattern=kw.get("wip_pattern", DEFAULT_WIP_PATTERN),
        )
        ai_config = AiConfig(
            engine=str(ai.get("engine", "openai")),
            api_key=str(ai.get("api_key") or ""),
            model=ai.get("model"),
            base_url=ai.get("base_url"),
            timeout_seconds=_number(
                ai.get("timeout_seconds", ai.get("timeout", DEFAULT_TIMEOUT_SECONDS)), float, "ai.timeout_seconds"
            ),
            batch_size=_number(ai.get("batch_size", DEFAULT_BATCH_SIZE), int, "ai.batch_size"),
        )
        return cls(
            follow_up_horizon_days=_number(
                data.get("follow_up_horizon_days", DEFAULT_HORIZON_DAYS), int, "follow_up_horizon_days"
            ),
            keywords=keywords,
            ai=ai_config,
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-safe mapping of every option."""
        return asdict(self)

    def with_overrides(
        self,
        follow_up_horizon_days: int | None = None,
        ai_engine: str | None = None,
        batch_size: int | None = None,
    ) -> MoodConfig:
        """Return a copy with request-level overrides applied."""
        cfg = self
        if follow_up_horizon_days is not None:
            cfg = replace(cfg, follow_up_horizon_days=follow_up_horizon_days)
        if ai_engine is not None:
            cfg = replace(cfg, ai=replace(cfg.ai, engine=ai_engine))
        if batch_size is not None:
            cfg = replace(cfg, ai=replace(cfg.ai, batch_size=batch_size))
        return cfg


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
    engine: str | None = None,
) -> MoodConfig:
    """Load configuration from an optional YAML file plus the environment.

    Args:
        path: YAML file to read. None means defaults only.
        environ: Environment mapping (default: ``os.environ``) used to fill
            an empty ``ai.api_key``.
        engine: Engine id that overrides ``ai.engine`` before the
            vendor key variable is looked up.

    Raises:
        ConfigError: The file is unreadable, not a YAML mapping, or holds
            a malformed section or option.
    """
    data: dict[str, Any] = {}
    if path is not None:
        try:
            with open(path) as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        data = loaded

    config = MoodConfig.from_dict(data).with_overrides(ai_engine=engine)

    if not config.ai.has_credentials:
        env = os.environ if environ is None else environ
        key = env.get(GENERIC_API_KEY_ENV) or env.get(
            API_KEY_ENV_VARS.get(config.ai.engine, ""), ""
        )
        if key:
            config = replace(config, ai=replace(config.ai, api_key=key))

    return config
