"""Reviewer inference: from a pull request's diff to the people to mention."""

import logging
from typing import Any, List, Mapping, Union

from .api_client import GitHubAPIClient
from .blame import BlameSourceAdapter
from .config import Settings
from .diff_extractor import DiffExtractor
from .exceptions import ConfigError, DiffUnavailable
from .file_filters import FileFilter, limit_files
from .models import PullRequestRef, repo_full_name
from .policy import filter_reviewers
from .repo_config import RepoConfig
from .scorer import score_blame


def coerce_repo_config(config: Union[RepoConfig, Mapping[str, Any], None]) -> RepoConfig:
    """Accept a RepoConfig, a decoded '.mention-bot' object, or None for defaults.

    Raises:
        ConfigError: For anything else, or a mapping with malformed keys
    """
    if config is None:
        return RepoConfig()
    if isinstance(config, RepoConfig):
        return config
    if isinstance(config, Mapping):
        return RepoConfig.from_dict(config)
    raise ConfigError(f"Unsupported repository config type: {type(config).__name__}")


class ReviewerInference:
    """Suggests reviewers for pull requests from blame history."""

    def __init__(self, api_client: GitHubAPIClient = None, settings: Settings = None):
        """Initialize the inference engine.

        Args:
            api_client: Client for GitHub calls; built from settings if omitted
            settings: Runtime settings; defaults when omitted
        """
        self.settings = settings or Settings()
        self.api_client = api_client or GitHubAPIClient(
            self.settings.github_token,
            api_url=self.settings.api_url,
            timeout=self.settings.request_timeout
        )
        self.diff_extractor = DiffExtractor(self.api_client)

    def guess_owners(self, pr: PullRequestRef, config: RepoConfig) -> List[str]:
        """Return the ordered reviewers for a pull request.

        An unresolvable diff yields an empty list. Files whose blame cannot
        be fetched are skipped.
        """
        config = coerce_repo_config(config)

        try:
            comparison = self.diff_extractor.extract(pr)
        except DiffUnavailable as e:
            logging.warning(f"No reviewers for {pr.full_name}#{pr.number}: {e}")
            return []

        file_filter = FileFilter.for_repository(config.file_blacklist, self.settings.exclude_generated_files)
        hunks = limit_files(file_filter.filter_hunks(comparison.hunks), config.num_files_to_check)
        if not hunks:
            logging.info(f"{pr.full_name}#{pr.number}: no changed lines with history")
            return []

        adapter = BlameSourceAdapter(self.api_client, pr.repository_url, self.settings.max_workers)
        entries = adapter.blame_hunks(hunks, comparison.base_commit)
        scores = score_blame(entries, recency_half_life_days=self.settings.recency_half_life_days)
        reviewers = filter_reviewers(scores, pr.author_login, config, self.settings.max_reviewers)

        logging.info(f"{pr.full_name}#{pr.number}: {len(scores)} candidate(s), suggesting {reviewers}")
        return reviewers


def guess_owners_for_pull_request(repository_url: str, pull_request_number: int, author_login: str,
                                  base_branch: str, config: Union[RepoConfig, Mapping[str, Any], None],
                                  api_client: GitHubAPIClient = None, settings: Settings = None) -> List[str]:
    """Suggest reviewers for a pull request.

    Args:
        repository_url: e.g. 'https://github.com/fbsamples/bot-testing'
        pull_request_number: Pull request number, e.g. 23
        author_login: Login of the pull request author
        base_branch: Branch the pull request targets, e.g. 'master'
        config: Repository configuration
        api_client: Optional GitHub API client to reuse
        settings: Optional runtime settings

    Returns:
        Logins ordered by blame ownership, possibly empty

    Raises:
        ValueError: If an argument is malformed
        ConfigError: If the configuration is malformed
    """
    if isinstance(pull_request_number, bool) or not isinstance(pull_request_number, int) or pull_request_number < 1:
        raise ValueError(f"pull_request_number must be a positive integer, got {pull_request_number!r}")
    if not isinstance(author_login, str) or not author_login.strip():
        raise ValueError("author_login must be a non-empty string")
    if not isinstance(base_branch, str) or not base_branch.strip():
        raise ValueError("base_branch must be a non-empty string")
    repo_full_name(repository_url)
    config = coerce_repo_config(config)

    pr = PullRequestRef(repository_url, pull_request_number, author_login.strip(), base_branch.strip())
    return ReviewerInference(api_client, settings).guess_owners(pr, config)
