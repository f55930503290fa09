"""Extraction of the lines a pull request touches."""

import logging
import re
from typing import Dict, Iterable, List

import requests

from .api_client import GitHubAPIClient
from .exceptions import DiffUnavailable
from .models import ChangedHunk, Comparison, LineRange, PullRequestRef, repo_full_name

HUNK_HEADER = re.compile(r'^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@')


def merge_ranges(ranges: Iterable[LineRange]) -> List[LineRange]:
    """Sort inclusive ranges and merge the ones that overlap or touch."""
    merged: List[LineRange] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1] + 1:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def parse_patch(patch: str) -> List[LineRange]:
    """Return the base-side line ranges covered by the hunks of a unified diff.

    Each hunk contributes its old-side span, context lines included, so pure
    insertions are attributed to the lines around them. A hunk with an empty
    old side anchors on the line it is inserted after.

    Args:
        patch: Diff body as returned in the 'patch' field of the GitHub API

    Returns:
        Sorted, non-overlapping inclusive (start, end) ranges
    """
    ranges = []
    for line in patch.splitlines():
        match = HUNK_HEADER.match(line)
        if not match:
            continue
        old_start = int(match.group(1))
        old_count = int(match.group(2)) if match.group(2) is not None else 1
        if old_count > 0:
            ranges.append((old_start, old_start + old_count - 1))
        elif old_start > 0:
            ranges.append((old_start, old_start))
    return merge_ranges(ranges)


def hunks_from_files(files: List[Dict]) -> List[ChangedHunk]:
    """Build ChangedHunks from the 'files' list of a GitHub comparison.

    Added files have no history to blame and files without a textual patch
    (binary or too large) cannot be mapped to lines, so both are skipped.
    Renamed files are blamed under their previous path.
    """
    hunks = []
    for file in files:
        filename = file['filename']
        status = file.get('status', 'modified')

        if status == 'added':
            logging.debug(f"Skipping new file {filename}")
            continue

        patch = file.get('patch')
        if not patch:
            logging.debug(f"Skipping {filename}: no textual patch")
            continue

        ranges = parse_patch(patch)
        if not ranges:
            continue

        path = filename
        if status == 'renamed':
            path = file.get('previous_filename') or filename
        hunks.append(ChangedHunk(file_path=path, added_line_ranges=tuple(ranges)))
    return hunks


class DiffExtractor:
    """Determines which base lines a pull request changes."""

    def __init__(self, api_client: GitHubAPIClient):
        self.api_client = api_client

    def fetch_comparison(self, repository_url: str, base_branch: str, head_ref: str) -> Comparison:
        """Compare a head ref against a base branch.

        Args:
            repository_url: Repository URL or 'owner/name'
            base_branch: Branch the pull request targets
            head_ref: Head commit SHA or ref

        Returns:
            Comparison anchored at the merge base

        Raises:
            DiffUnavailable: If the comparison cannot be resolved
        """
        repo = repo_full_name(repository_url)
        try:
            data = self.api_client.compare(repo, base_branch, head_ref)
        except requests.RequestException as e:
            raise DiffUnavailable(f"Cannot compare {repo} {base_branch}...{head_ref}: {e}") from e

        base_commit = (data.get('merge_base_commit') or {}).get('sha')
        if not base_commit:
            raise DiffUnavailable(f"No merge base between {base_branch} and {head_ref} in {repo}")

        try:
            hunks = hunks_from_files(data.get('files') or [])
        except (KeyError, TypeError) as e:
            raise DiffUnavailable(f"Malformed comparison for {repo}: {e}") from e

        logging.debug(f"{repo} {base_branch}...{head_ref}: {len(hunks)} changed file(s) at {base_commit}")
        return Comparison(base_commit=base_commit, hunks=tuple(hunks))

    def extract(self, pr: PullRequestRef) -> Comparison:
        """Resolve the pull request's head commit and compare it to its base branch.

        Raises:
            DiffUnavailable: If the head commit or the comparison cannot be resolved
        """
        try:
            head_sha = self.api_client.get_pull_request(pr.full_name, pr.number)['head']['sha']
        except requests.RequestException as e:
            raise DiffUnavailable(f"Cannot resolve head of {pr.full_name}#{pr.number}: {e}") from e
        except (KeyError, TypeError) as e:
            raise DiffUnavailable(f"Malformed pull request {pr.full_name}#{pr.number}: {e}") from e

        return self.fetch_comparison(pr.repository_url, pr.base_branch, head_sha)
