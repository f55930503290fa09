"""
Tests for reviewer inference end to end, against a mocked GitHub API
"""

import pytest
import requests

from conftest import blame_data, modified_file
from mention_bot.config import Settings
from mention_bot.exceptions import ConfigError
from mention_bot.inference import ReviewerInference, coerce_repo_config, guess_owners_for_pull_request
from mention_bot.models import PullRequestRef
from mention_bot.repo_config import RepoConfig

REPO_URL = 'https://github.com/fbsamples/bot-testing'


@pytest.fixture
def ten_line_client(make_api_client):
    """One file with 10 blamed lines: 8 by alice, 2 by bob."""
    return make_api_client(
        files=[modified_file('src/app.py', (1, 10, 1, 12))],
        blames={'src/app.py': blame_data((1, 8, 'alice', None), (9, 10, 'bob', None))}
    )


def guess(client, settings, author='carol', config=None):
    return guess_owners_for_pull_request(REPO_URL, 23, author, 'master', config or RepoConfig(),
                                         api_client=client, settings=settings)


class TestScenarios:
    """Reviewer suggestions for typical pull requests."""

    def test_majority_author_first(self, ten_line_client, settings):
        assert guess(ten_line_client, settings) == ['alice', 'bob']

    def test_blacklisted_reviewer_removed(self, ten_line_client, settings):
        config = RepoConfig(user_blacklist=frozenset({'bob'}))
        assert guess(ten_line_client, settings, config=config) == ['alice']

    def test_self_authored_history_excluded(self, ten_line_client, settings):
        """Test the author is dropped even with the highest blame count."""
        assert guess(ten_line_client, settings, author='alice') == ['bob']

    def test_diff_unavailable_returns_empty(self, make_api_client, settings):
        """Test an unresolvable comparison yields no reviewers and no exception."""
        client = make_api_client(diff_error=requests.exceptions.HTTPError("404 Not Found"))
        assert guess(client, settings) == []
        client.post_graphql.assert_not_called()

    def test_tie_broken_by_first_line(self, make_api_client, settings):
        client = make_api_client(
            files=[modified_file('lib.py', (1, 10, 1, 10))],
            blames={'lib.py': blame_data((1, 5, 'dave', None), (6, 10, 'erin', None))}
        )
        assert guess(client, settings) == ['dave', 'erin']

    def test_tie_across_files_uses_path_order(self, make_api_client, settings):
        """Test the earlier file path wins a tie regardless of diff order."""
        client = make_api_client(
            files=[modified_file('b.py', (1, 5, 1, 5)), modified_file('a.py', (1, 5, 1, 5))],
            blames={
                'b.py': blame_data((1, 5, 'dave', None)),
                'a.py': blame_data((1, 5, 'erin', None)),
            }
        )
        assert guess(client, settings) == ['erin', 'dave']


class TestProperties:
    """Invariants of the reviewer list."""

    @pytest.fixture
    def busy_client(self, make_api_client):
        return make_api_client(
            files=[
                modified_file('a.py', (1, 6, 1, 6)),
                modified_file('b.py', (10, 4, 10, 5)),
                modified_file('c.py', (1, 3, 1, 3)),
            ],
            blames={
                'a.py': blame_data((1, 2, 'alice', None), (3, 4, 'bob', None), (5, 6, 'carol', None)),
                'b.py': blame_data((1, 11, 'bob', None), (12, 13, 'dave', None)),
                'c.py': blame_data((1, 1, 'Alice', None), (2, 3, None, None)),
            }
        )

    @pytest.mark.parametrize('author', ['alice', 'bob', 'carol', 'dave', 'nobody'])
    def test_author_never_suggested(self, busy_client, settings, author):
        assert author not in [r.lower() for r in guess(busy_client, settings, author=author)]

    def test_blacklist_never_suggested(self, busy_client, settings):
        config = RepoConfig(user_blacklist=frozenset({'bob', 'dave'}))
        reviewers = guess(busy_client, settings, author='zed', config=config)
        assert not {'bob', 'dave'} & set(reviewers)

    def test_no_duplicates(self, busy_client, settings):
        reviewers = guess(busy_client, settings, author='zed')
        assert len(reviewers) == len({r.lower() for r in reviewers})

    def test_deterministic(self, busy_client, settings):
        """Test identical history gives identical output."""
        assert guess(busy_client, settings, author='zed') == guess(busy_client, settings, author='zed')

    def test_empty_diff(self, make_api_client, settings):
        client = make_api_client(files=[])
        assert guess(client, settings) == []

    def test_failed_file_does_not_abort(self, make_api_client, settings):
        """Test a file whose blame fails is skipped and the rest still scored."""
        client = make_api_client(
            files=[modified_file('a.py', (1, 2, 1, 2)), modified_file('broken.py', (1, 9, 1, 9))],
            blames={'a.py': blame_data((1, 2, 'alice', None))}
        )
        assert guess(client, settings) == ['alice']


class TestRepositorySettings:
    """Repository and process settings applied during inference."""

    def test_file_blacklist(self, make_api_client, settings):
        client = make_api_client(
            files=[modified_file('docs/guide.md', (1, 9, 1, 9)), modified_file('src/app.py', (1, 1, 1, 1))],
            blames={
                'docs/guide.md': blame_data((1, 9, 'writer', None)),
                'src/app.py': blame_data((1, 1, 'coder', None)),
            }
        )
        config = RepoConfig(file_blacklist=('docs/*',))
        assert guess(client, settings, config=config) == ['coder']

    def test_generated_files_excluded_by_default(self, make_api_client, settings):
        client = make_api_client(
            files=[modified_file('web/yarn.lock', (1, 50, 1, 50)), modified_file('web/app.js', (1, 1, 1, 1))],
            blames={
                'web/yarn.lock': blame_data((1, 50, 'bumper', None)),
                'web/app.js': blame_data((1, 1, 'coder', None)),
            }
        )
        assert guess(client, settings) == ['coder']

    def test_num_files_to_check(self, make_api_client, settings):
        """Test only the files with the most changed lines are blamed."""
        client = make_api_client(
            files=[modified_file('small.py', (1, 1, 1, 1)), modified_file('big.py', (1, 20, 1, 20))],
            blames={
                'small.py': blame_data((1, 1, 'tiny', None)),
                'big.py': blame_data((1, 20, 'major', None)),
            }
        )
        assert guess(client, settings, config=RepoConfig(num_files_to_check=1)) == ['major']

    def test_max_reviewers(self, ten_line_client, settings):
        assert guess(ten_line_client, settings, config=RepoConfig(max_reviewers=1)) == ['alice']

    def test_process_wide_cap(self, ten_line_client):
        settings = Settings(max_workers=2, max_reviewers=1)
        assert guess(ten_line_client, settings) == ['alice']

    def test_config_mapping_accepted(self, ten_line_client, settings):
        """Test a decoded '.mention-bot' object can be passed directly."""
        assert guess(ten_line_client, settings, config={'userBlacklist': ['alice']}) == ['bob']


class TestInputValidation:
    """Malformed arguments surface as errors."""

    @pytest.mark.parametrize('number', [0, -1, '23', True])
    def test_invalid_number(self, ten_line_client, settings, number):
        with pytest.raises(ValueError):
            guess_owners_for_pull_request(REPO_URL, number, 'carol', 'master', RepoConfig(),
                                          api_client=ten_line_client, settings=settings)

    @pytest.mark.parametrize('author, base', [('', 'master'), ('carol', ' '), (None, 'master')])
    def test_empty_strings(self, ten_line_client, settings, author, base):
        with pytest.raises(ValueError):
            guess_owners_for_pull_request(REPO_URL, 23, author, base, RepoConfig(),
                                          api_client=ten_line_client, settings=settings)

    def test_malformed_config_raises(self, ten_line_client, settings):
        with pytest.raises(ConfigError):
            guess(ten_line_client, settings, config={'userBlacklist': 'bob'})

    def test_wrong_config_type_raises(self):
        with pytest.raises(ConfigError):
            coerce_repo_config(['bob'])

    def test_none_config_uses_defaults(self):
        assert coerce_repo_config(None) == RepoConfig()


class TestReviewerInference:
    """Test cases for the ReviewerInference class."""

    def test_blame_read_at_merge_base(self, ten_line_client, settings):
        inference = ReviewerInference(ten_line_client, settings)
        inference.guess_owners(PullRequestRef(REPO_URL, 23, 'carol', 'master'), RepoConfig())
        assert ten_line_client.post_graphql.call_args[0][1]['ref'] == 'basesha'

    def test_builds_client_from_settings(self):
        inference = ReviewerInference(settings=Settings(github_token='abc', request_timeout=5))
        assert inference.api_client.token == 'abc'
        assert inference.api_client.timeout == 5
