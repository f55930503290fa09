"""File filtering utilities for excluding files from blame analysis."""

import fnmatch
import logging
import posixpath
from typing import Iterable, List, Sequence

from .models import ChangedHunk


# Default patterns for commonly generated files
DEFAULT_EXCLUDED_FILE_PATTERNS = [
    'package-lock.json',
    'yarn.lock',
    'pnpm-lock.yaml',
    'Gemfile.lock',
    'Cargo.lock',
    'composer.lock',
    'poetry.lock',
    'Pipfile.lock',
    '*.min.js',
    '*.min.css',
    '*.bundle.js',
    '*.bundle.css',
    'dist/*',
    'build/*',
    'out/*',
    'target/*',
    '.next/*',
    'coverage/*',
    '*.generated.*',
    '*.gen.*',
    '*-lock.json',
    '*.lock',
]


class FileFilter:
    """Decides which changed files are blamed."""

    def __init__(self, excluded_file_patterns: Sequence[str] = None):
        """Initialize the file filter.

        Args:
            excluded_file_patterns: Glob patterns of files to skip
        """
        self.excluded_file_patterns = list(excluded_file_patterns or [])

    @classmethod
    def for_repository(cls, file_blacklist: Iterable[str] = (), exclude_generated_files: bool = True) -> 'FileFilter':
        """Build a filter from a repository's fileBlacklist.

        Args:
            file_blacklist: Patterns from the repository configuration
            exclude_generated_files: Also skip lock files, bundles and build output

        Returns:
            Configured FileFilter
        """
        patterns = list(file_blacklist)
        if exclude_generated_files:
            patterns.extend(DEFAULT_EXCLUDED_FILE_PATTERNS)
        return cls(patterns)

    def match_pattern(self, filename: str, pattern: str) -> bool:
        """Check if a path matches a pattern (supports * wildcards).

        Patterns without a slash also match against the file's basename, so
        'yarn.lock' excludes 'web/yarn.lock'.
        """
        if fnmatch.fnmatch(filename, pattern):
            return True
        return '/' not in pattern and fnmatch.fnmatch(posixpath.basename(filename), pattern)

    def is_excluded(self, filename: str) -> bool:
        """Check if a file should be excluded based on patterns."""
        return any(
            self.match_pattern(filename, pattern)
            for pattern in self.excluded_file_patterns
        )

    def filter_hunks(self, hunks: Iterable[ChangedHunk]) -> List[ChangedHunk]:
        """Drop hunks of excluded files, keeping the input order.

        Args:
            hunks: Changed hunks from the diff extractor

        Returns:
            Hunks whose file is not excluded
        """
        kept = []
        excluded_count = 0
        excluded_lines = 0

        for hunk in hunks:
            if self.is_excluded(hunk.file_path):
                excluded_count += 1
                excluded_lines += hunk.line_count
                logging.debug(f"Excluding file: {hunk.file_path} ({hunk.line_count} lines)")
            else:
                kept.append(hunk)

        if excluded_count > 0:
            logging.info(f"Excluded {excluded_count} file(s) from blame ({excluded_lines:,} lines)")

        return kept


def limit_files(hunks: Sequence[ChangedHunk], num_files_to_check: int = None) -> List[ChangedHunk]:
    """Keep the N files with the most changed lines.

    Ties keep diff order. The result stays in the original order so that
    downstream traversal is unaffected.
    """
    if num_files_to_check is None or len(hunks) <= num_files_to_check:
        return list(hunks)

    ranked = sorted(range(len(hunks)), key=lambda i: (-hunks[i].line_count, i))
    selected = set(ranked[:num_files_to_check])
    logging.debug(f"Checking {num_files_to_check} of {len(hunks)} changed files")
    return [hunk for i, hunk in enumerate(hunks) if i in selected]
