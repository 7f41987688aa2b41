"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml,
falling back to built-in defaults when the file does not exist.

Usage:
    from examprep.config.app_config import load_app_config

    config = load_app_config()
    minutes = config.quiz.challenge_minutes
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")

# Environment override for the database location
DB_PATH_ENV = "EXAMPREP_DB_PATH"


@dataclass
class QuizConfig:
    """Rules for challenge and study modes."""

    challenge_minutes: int = 90
    challenge_max_grade: int = 20
    points_per_challenge: int = 3
    xp_per_correct_answer: int = 10


@dataclass
class CacheConfig:
    """Time-to-live values for cached content and analytics."""

    content_ttl_seconds: int = 300
    analysis_ttl_seconds: int = 3600


@dataclass
class AuthConfig:
    """Authentication settings."""

    token_ttl_days: int = 30


@dataclass
class LLMSettings:
    """Settings for the study coach LLM."""

    enabled: bool = False
    provider: str = "lmstudio"
    base_url: str | None = "http://localhost:1234/v1"
    model: str = "default"
    api_key_env: str | None = None
    temperature: float = 0.7
    max_tokens: int = 600
    timeout: int = 60

    def get_api_key(self) -> str | None:
        """Get API key from environment variable."""
        if self.api_key_env:
            return os.environ.get(self.api_key_env)
        return None


@dataclass
class AppConfig:
    """Application-wide configuration."""

    db_path: str = "db/examprep.db"
    quiz: QuizConfig = field(default_factory=QuizConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    llm: LLMSettings = field(default_factory=LLMSettings)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "database": {"path": "db/examprep.db"},
        "quiz": {
            "challenge_minutes": 90,
            "challenge_max_grade": 20,
            "points_per_challenge": 3,
            "xp_per_correct_answer": 10,
        },
        "cache": {
            "content_ttl_seconds": 300,
            "analysis_ttl_seconds": 3600,
        },
        "auth": {"token_ttl_days": 30},
        "llm": {
            "enabled": False,
            "provider": "lmstudio",
            "base_url": "http://localhost:1234/v1",
            "model": "default",
            "api_key_env": None,
        },
    }


def _merge(defaults: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge user config section-by-section over the defaults."""
    result = copy.deepcopy(defaults)
    for section, values in (overrides or {}).items():
        if isinstance(values, dict) and isinstance(result.get(section), dict):
            result[section].update(values)
        else:
            result[section] = values
    return result


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    quiz_data = data.get("quiz", {})
    cache_data = data.get("cache", {})
    auth_data = data.get("auth", {})
    llm_data = data.get("llm", {})

    quiz = QuizConfig(
        challenge_minutes=int(quiz_data.get("challenge_minutes", 90)),
        challenge_max_grade=int(quiz_data.get("challenge_max_grade", 20)),
        points_per_challenge=int(quiz_data.get("points_per_challenge", 3)),
        xp_per_correct_answer=int(quiz_data.get("xp_per_correct_answer", 10)),
    )
    cache = CacheConfig(
        content_ttl_seconds=int(cache_data.get("content_ttl_seconds", 300)),
        analysis_ttl_seconds=int(cache_data.get("analysis_ttl_seconds", 3600)),
    )
    auth = AuthConfig(token_ttl_days=int(auth_data.get("token_ttl_days", 30)))
    llm = LLMSettings(
        enabled=bool(llm_data.get("enabled", False)),
        provider=llm_data.get("provider", "lmstudio"),
        base_url=llm_data.get("base_url"),
        model=llm_data.get("model", "default"),
        api_key_env=llm_data.get("api_key_env"),
        temperature=float(llm_data.get("temperature", 0.7)),
        max_tokens=int(llm_data.get("max_tokens", 600)),
        timeout=int(llm_data.get("timeout", 60)),
    )

    return AppConfig(
        db_path=data.get("database", {}).get("path", "db/examprep.db"),
        quiz=quiz,
        cache=cache,
        auth=auth,
        llm=llm,
    )


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        loaded = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
        data = _merge(_get_defaults(), loaded)
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def get_db_path() -> Path:
    """Resolve the database path (environment beats config file)."""
    env_path = os.environ.get(DB_PATH_ENV)
    if env_path:
        return Path(env_path)
    return Path(load_app_config().db_path)


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
