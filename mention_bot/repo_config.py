"""
Per-repository configuration for mention-bot.

Repositories opt into settings by committing a JSON file (by default
'.mention-bot') at their root, for example:

    {
      "userBlacklist": ["bot-account"],
      "maxReviewers": 3,
      "fileBlacklist": ["docs/*"]
    }
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, FrozenSet, Mapping, Optional, Tuple

import requests

from .api_client import GitHubAPIClient
from .exceptions import ConfigError

# Default config file path (relative to the repository root)
DEFAULT_CONFIG_PATH = ".mention-bot"
DEFAULT_ACTIONS = ('opened', 'reopened')


def _string_list(data: Mapping[str, Any], key: str) -> Tuple[str, ...]:
    value = data.get(key, [])
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"'{key}' must be a list of strings, got {value!r}")
    return tuple(item.strip() for item in value if item.strip())


def _positive_int(data: Mapping[str, Any], key: str) -> Optional[int]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"'{key}' must be a positive integer, got {value!r}")
    return value


def _optional_string(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string, got {value!r}")
    return value or None


@dataclass(frozen=True)
class RepoConfig:
    """Settings a repository applies to reviewer suggestions."""
    user_blacklist: FrozenSet[str] = frozenset()
    max_reviewers: Optional[int] = None
    file_blacklist: Tuple[str, ...] = ()
    num_files_to_check: Optional[int] = None
    message: Optional[str] = None
    skip_title: Optional[str] = None
    actions: Tuple[str, ...] = DEFAULT_ACTIONS

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'RepoConfig':
        """Build a config from the decoded '.mention-bot' JSON object.

        Unknown keys are ignored.

        Raises:
            ConfigError: If the object or one of its known keys has the wrong type
        """
        if not isinstance(data, Mapping):
            raise ConfigError(f"Repository config must be a JSON object, got {type(data).__name__}")

        actions = _string_list(data, 'actions') if 'actions' in data else DEFAULT_ACTIONS
        return cls(
            user_blacklist=frozenset(_string_list(data, 'userBlacklist')),
            max_reviewers=_positive_int(data, 'maxReviewers'),
            file_blacklist=_string_list(data, 'fileBlacklist'),
            num_files_to_check=_positive_int(data, 'numFilesToCheck'),
            message=_optional_string(data, 'message'),
            skip_title=_optional_string(data, 'skipTitle'),
            actions=actions,
        )


def parse_repo_config(text: Optional[str]) -> RepoConfig:
    """Parse config file content, falling back to defaults when absent or malformed."""
    if not text:
        return RepoConfig()
    try:
        return RepoConfig.from_dict(json.loads(text))
    except json.JSONDecodeError as e:
        logging.warning(f"Ignoring repository config, invalid JSON: {e}")
    except ConfigError as e:
        logging.warning(f"Ignoring repository config: {e}")
    return RepoConfig()


def load_repo_config(api_client: GitHubAPIClient, repo: str,
                     config_path: str = DEFAULT_CONFIG_PATH) -> RepoConfig:
    """Fetch and parse a repository's config file from its default branch.

    Args:
        api_client: GitHub API client
        repo: Repository in 'owner/name' form
        config_path: Path of the config file in the repository

    Returns:
        The repository's config, or the defaults if it is missing or unreadable
    """
    try:
        text = api_client.get_file_content(repo, config_path)
    except requests.RequestException as e:
        logging.warning(f"Could not load {config_path} from {repo}: {e}")
        return RepoConfig()

    if text is None:
        logging.debug(f"No {config_path} in {repo}, using defaults")
        return RepoConfig()

    config = parse_repo_config(text)
    logging.info(f"Loaded {config_path} from {repo}")
    return config
