"""Process settings read from the environment (and an optional .env file)."""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .api_client import DEFAULT_API_URL, DEFAULT_TIMEOUT
from .repo_config import DEFAULT_CONFIG_PATH


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    value = env.get(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ('true', '1', 'yes')


def _env_number(env: Mapping[str, str], name: str, default, cast=int, minimum=None):
    value = env.get(name)
    if value is None or not value.strip():
        return default
    try:
        number = cast(value.strip())
    except ValueError:
        logging.warning(f"Invalid {name} value '{value}', using default: {default}")
        return default
    if minimum is not None and number < minimum:
        logging.warning(f"{name} must be at least {minimum}, using default: {default}")
        return default
    return number


@dataclass
class Settings:
    """Runtime settings of the bot."""
    github_token: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    config_path: str = DEFAULT_CONFIG_PATH
    request_timeout: Optional[float] = DEFAULT_TIMEOUT  # None disables the timeout
    max_workers: int = 10
    max_reviewers: Optional[int] = None
    recency_half_life_days: Optional[float] = None
    exclude_generated_files: bool = True
    user_cache_file: Optional[str] = None
    user_cache_ttl_hours: float = 24.0
    webhook_secret: Optional[str] = None
    port: int = 5000
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, env: Mapping[str, str] = None) -> 'Settings':
        """Build settings from environment variables.

        Invalid values are logged and replaced by their defaults.
        """
        if env is None:
            env = os.environ

        timeout = _env_number(env, 'REQUEST_TIMEOUT', DEFAULT_TIMEOUT, cast=float, minimum=0)
        half_life = _env_number(env, 'RECENCY_HALF_LIFE_DAYS', None, cast=float, minimum=0)

        return cls(
            github_token=env.get('GITHUB_TOKEN') or None,
            api_url=(env.get('GITHUB_API_URL') or DEFAULT_API_URL).strip(),
            config_path=(env.get('MENTION_BOT_CONFIG_PATH') or DEFAULT_CONFIG_PATH).strip(),
            request_timeout=timeout or None,
            max_workers=_env_number(env, 'MAX_WORKERS', 10, minimum=1),
            max_reviewers=_env_number(env, 'MAX_REVIEWERS', None, minimum=1),
            recency_half_life_days=half_life or None,
            exclude_generated_files=_env_bool(env, 'EXCLUDE_GENERATED_FILES', True),
            user_cache_file=env.get('USER_CACHE_FILE') or None,
            user_cache_ttl_hours=_env_number(env, 'USER_CACHE_TTL_HOURS', 24.0, cast=float, minimum=0),
            webhook_secret=env.get('GITHUB_WEBHOOK_SECRET') or None,
            port=_env_number(env, 'PORT', 5000, minimum=1),
            log_level=(env.get('LOG_LEVEL') or 'INFO').strip().upper(),
        )
