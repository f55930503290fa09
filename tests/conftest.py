"""
Shared fixtures: a mocked GitHub API client serving canned comparisons and blame.
"""

import pytest
import requests
from unittest.mock import Mock

from mention_bot.api_client import GitHubAPIClient
from mention_bot.config import Settings


def make_patch(*hunks):
    """Build a unified diff body from (old_start, old_count, new_start, new_count) tuples."""
    lines = []
    for old_start, old_count, new_start, new_count in hunks:
        lines.append(f"@@ -{old_start},{old_count} +{new_start},{new_count} @@ def something():")
        lines.extend([' context'] * min(old_count, new_count))
        lines.extend(['+added'] * max(0, new_count - old_count))
        lines.extend(['-removed'] * max(0, old_count - new_count))
    return '\n'.join(lines)


def blame_data(*ranges):
    """Build a GraphQL blame response from (start, end, login, authored_date) tuples."""
    return {
        'repository': {
            'object': {
                'blame': {
                    'ranges': [
                        {
                            'startingLine': start,
                            'endingLine': end,
                            'commit': {
                                'authoredDate': authored_date,
                                'author': {'user': {'login': login} if login else None},
                            },
                        }
                        for start, end, login, authored_date in ranges
                    ]
                }
            }
        }
    }


def modified_file(filename, *hunks, **extra):
    file = {'filename': filename, 'status': 'modified', 'patch': make_patch(*hunks)}
    file.update(extra)
    return file


@pytest.fixture
def settings():
    """Settings used by tests: small thread pool, no global cap."""
    return Settings(github_token='test_token', max_workers=4)


@pytest.fixture
def make_api_client():
    """Factory for a mocked API client.

    Args of the factory:
        files: 'files' list of the comparison
        blames: dict of file path -> GraphQL blame data (or an exception to raise)
        diff_error: exception raised by compare()
    """
    def factory(files=None, blames=None, diff_error=None):
        blames = blames or {}
        client = Mock(spec=GitHubAPIClient)
        client.get_pull_request.return_value = {'number': 23, 'head': {'sha': 'headsha'}}

        if diff_error is not None:
            client.compare.side_effect = diff_error
        else:
            client.compare.return_value = {
                'merge_base_commit': {'sha': 'basesha'},
                'files': files or [],
            }

        def post_graphql(query, variables=None):
            result = blames.get(variables['path'])
            if result is None:
                raise requests.exceptions.HTTPError("404 Not Found")
            if isinstance(result, Exception):
                raise result
            return result

        client.post_graphql.side_effect = post_graphql
        return client

    return factory
