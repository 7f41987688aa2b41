"""Configuration package for the exam-preparation platform."""

from examprep.config.app_config import (
    AppConfig,
    AuthConfig,
    CacheConfig,
    LLMSettings,
    QuizConfig,
    clear_config_cache,
    get_db_path,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "AuthConfig",
    "CacheConfig",
    "LLMSettings",
    "QuizConfig",
    "clear_config_cache",
    "get_db_path",
    "load_app_config",
]
