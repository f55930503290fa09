"""Blame lookups through the GitHub GraphQL API."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from threading import Lock
from typing import Dict, List, Optional, Sequence, Tuple

import requests

from .api_client import GitHubAPIClient
from .exceptions import BlameUnavailable, GraphQLError
from .models import BlameEntry, ChangedHunk, LineRange, repo_full_name

BLAME_QUERY = """
query($owner: String!, $name: String!, $ref: String!, $path: String!) {
  repository(owner: $owner, name: $name) {
    object(expression: $ref) {
      ... on Commit {
        blame(path: $path) {
          ranges {
            startingLine
            endingLine
            commit {
              authoredDate
              author {
                user {
                  login
                }
              }
            }
          }
        }
      }
    }
  }
}
"""


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a GitHub ISO-8601 timestamp ('2015-06-01T12:00:00Z')."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        logging.debug(f"Unparseable commit timestamp: {value}")
        return None


class BlameSourceAdapter:
    """Attributes changed lines to the authors who last modified them.

    One adapter serves one pull request evaluation: whole-file blame results
    are cached per (file, commit) for its lifetime, so several ranges of the
    same file cost a single lookup.
    """

    def __init__(self, api_client: GitHubAPIClient, repository_url: str, max_workers: int = 10):
        """Initialize the adapter.

        Args:
            api_client: Client used for the GraphQL blame queries
            repository_url: Repository URL or 'owner/name'
            max_workers: Upper bound of parallel file lookups
        """
        self.api_client = api_client
        self.owner, self.name = repo_full_name(repository_url).split('/')
        self.max_workers = max(1, max_workers)
        self._cache: Dict[Tuple[str, str], List[Dict]] = {}
        self._cache_lock = Lock()

    def _blame_ranges(self, file_path: str, commit_ref: str) -> List[Dict]:
        key = (file_path, commit_ref)
        with self._cache_lock:
            if key in self._cache:
                logging.debug(f"Blame cache hit for {file_path}@{commit_ref[:7]}")
                return self._cache[key]

        variables = {'owner': self.owner, 'name': self.name, 'ref': commit_ref, 'path': file_path}
        try:
            data = self.api_client.post_graphql(BLAME_QUERY, variables)
        except (requests.RequestException, GraphQLError) as e:
            raise BlameUnavailable(file_path, str(e)) from e

        commit = ((data.get('repository') or {}).get('object')) or {}
        blame = commit.get('blame')
        if blame is None:
            raise BlameUnavailable(file_path, f"no blame at {commit_ref}")

        ranges = blame.get('ranges') or []
        with self._cache_lock:
            self._cache.setdefault(key, ranges)
        return ranges

    def fetch_blame(self, file_path: str, commit_ref: str, line_range: LineRange) -> List[BlameEntry]:
        """Return one BlameEntry per line of line_range that exists at commit_ref.

        Raises:
            BlameUnavailable: If the file's blame cannot be fetched
        """
        start, end = line_range
        entries = []
        for blame_range in self._blame_ranges(file_path, commit_ref):
            first = max(start, blame_range['startingLine'])
            last = min(end, blame_range['endingLine'])
            if first > last:
                continue

            commit = blame_range.get('commit') or {}
            user = (commit.get('author') or {}).get('user') or {}
            login = user.get('login')
            timestamp = parse_timestamp(commit.get('authoredDate'))

            for line_number in range(first, last + 1):
                entries.append(BlameEntry(file_path, line_number, login, timestamp))

        entries.sort(key=lambda entry: entry.line_number)
        return entries

    def blame_hunk(self, hunk: ChangedHunk, commit_ref: str) -> List[BlameEntry]:
        entries = []
        for line_range in hunk.added_line_ranges:
            entries.extend(self.fetch_blame(hunk.file_path, commit_ref, line_range))
        return entries

    def blame_hunks(self, hunks: Sequence[ChangedHunk], commit_ref: str) -> List[BlameEntry]:
        """Blame every hunk in parallel and wait for all lookups.

        A file whose blame is unavailable is logged and skipped.

        Returns:
            Entries ordered by file path, then line number
        """
        if not hunks:
            return []

        entries: List[BlameEntry] = []
        max_workers = min(self.max_workers, len(hunks))

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_hunk = {
                executor.submit(self.blame_hunk, hunk, commit_ref): hunk
                for hunk in hunks
            }

            for future in as_completed(future_to_hunk):
                hunk = future_to_hunk[future]
                try:
                    entries.extend(future.result())
                except BlameUnavailable as e:
                    logging.warning(f"Skipping {hunk.file_path}: {e.reason}")

        entries.sort(key=lambda entry: (entry.file_path, entry.line_number))
        logging.debug(f"Blamed {len(entries)} line(s) across {len(hunks)} file(s)")
        return entries
