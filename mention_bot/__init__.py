"""mention-bot - suggests pull request reviewers from blame history."""

from .models import PullRequestRef, ChangedHunk, Comparison, BlameEntry, CandidateScore
from .exceptions import MentionBotError, DiffUnavailable, BlameUnavailable, UnresolvableAuthor, ConfigError
from .api_client import GitHubAPIClient
from .repo_config import RepoConfig, load_repo_config
from .config import Settings
from .inference import ReviewerInference, guess_owners_for_pull_request
from .user_status import UserStatusCache, filter_active_reviewers
from .messages import generate_message

__all__ = [
    'PullRequestRef',
    'ChangedHunk',
    'Comparison',
    'BlameEntry',
    'CandidateScore',
    'MentionBotError',
    'DiffUnavailable',
    'BlameUnavailable',
    'UnresolvableAuthor',
    'ConfigError',
    'GitHubAPIClient',
    'RepoConfig',
    'load_repo_config',
    'Settings',
    'ReviewerInference',
    'guess_owners_for_pull_request',
    'UserStatusCache',
    'filter_active_reviewers',
    'generate_message',
]
