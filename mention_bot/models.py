"""Data models for reviewer inference."""

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple
from urllib.parse import urlparse

LineRange = Tuple[int, int]


def repo_full_name(repository_url: str) -> str:
    """Return 'owner/name' for a repository URL.

    Accepts github.com and GitHub Enterprise URLs, with or without a trailing
    slash or '.git', as well as a bare 'owner/name'.
    """
    path = urlparse(repository_url).path or repository_url
    parts = [p for p in path.strip('/').split('/') if p]
    if len(parts) < 2:
        raise ValueError(f"Cannot derive owner/name from repository URL '{repository_url}'")
    owner, name = parts[-2], parts[-1]
    if name.endswith('.git'):
        name = name[:-4]
    return f"{owner}/{name}"


@dataclass(frozen=True)
class PullRequestRef:
    """The pull request a webhook event refers to."""
    repository_url: str  # e.g. 'https://github.com/fbsamples/bot-testing'
    number: int
    author_login: str
    base_branch: str

    @property
    def full_name(self) -> str:
        return repo_full_name(self.repository_url)

    @property
    def owner(self) -> str:
        return self.full_name.split('/')[0]

    @property
    def name(self) -> str:
        return self.full_name.split('/')[1]


@dataclass(frozen=True)
class ChangedHunk:
    """Lines of one file touched by a pull request.

    Ranges are inclusive, 1-indexed, sorted and non-overlapping, and refer to
    line numbers of the file at the comparison's base commit.
    """
    file_path: str
    added_line_ranges: Tuple[LineRange, ...] = ()

    @property
    def line_count(self) -> int:
        return sum(end - start + 1 for start, end in self.added_line_ranges)


@dataclass(frozen=True)
class Comparison:
    """Result of comparing a pull request's head against its base branch."""
    base_commit: str  # merge base the hunk line numbers refer to
    hunks: Tuple[ChangedHunk, ...] = ()


@dataclass(frozen=True)
class BlameEntry:
    """Historical attribution of a single line."""
    file_path: str
    line_number: int
    author_login: Optional[str]  # None when the commit has no linked account
    commit_timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class CandidateScore:
    """Per-author weights produced by one scoring pass.

    first_seen holds the traversal position of each author's first
    attributed line and is used to break ties.
    """
    scores: Mapping[str, float] = field(default_factory=dict)
    first_seen: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'scores', MappingProxyType(dict(self.scores)))
        object.__setattr__(self, 'first_seen', MappingProxyType(dict(self.first_seen)))

    def __len__(self) -> int:
        return len(self.scores)

    def __contains__(self, login: str) -> bool:
        return login in self.scores

    def __getitem__(self, login: str) -> float:
        return self.scores[login]

    def sort_key(self, login: str):
        return (-self.scores[login], self.first_seen.get(login, len(self.first_seen)))

    def ranked(self) -> List[str]:
        """Logins ordered by descending score, earliest first-seen first on ties."""
        return sorted(self.scores, key=self.sort_key)
