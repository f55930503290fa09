"""GitHub API client for the REST and GraphQL endpoints mention-bot uses."""

import os
import logging
from typing import Dict, Optional
from urllib.parse import quote
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import GraphQLError

DEFAULT_API_URL = 'https://api.github.com'
DEFAULT_TIMEOUT = 30.0


def graphql_url_for(api_url: str) -> str:
    """Derive the GraphQL endpoint from a REST base URL.

    github.com serves GraphQL at /graphql; GitHub Enterprise serves REST at
    /api/v3 and GraphQL at /api/graphql.
    """
    api_url = api_url.rstrip('/')
    if api_url.endswith('/api/v3'):
        return api_url[:-len('/v3')] + '/graphql'
    return api_url + '/graphql'


class GitHubAPIClient:
    """Handles GitHub API requests with retry logic and timeouts."""

    def __init__(self, token: str = None, api_url: str = DEFAULT_API_URL,
                 timeout: Optional[float] = DEFAULT_TIMEOUT, pool_size: int = 50):
        """Initialize the GitHub API client.

        Args:
            token: GitHub personal access token for authentication
            api_url: REST API base URL (GitHub Enterprise: https://host/api/v3)
            timeout: Seconds to wait for each request, None waits indefinitely
            pool_size: Connections kept per host for concurrent lookups
        """
        # Use provided token or fall back to environment variable
        self.token = token or os.environ.get('GITHUB_TOKEN')
        self.api_url = api_url.rstrip('/')
        self.graphql_url = graphql_url_for(self.api_url)
        self.timeout = timeout
        self.session = requests.Session()

        adapter = HTTPAdapter(
            pool_connections=pool_size,
            pool_maxsize=pool_size,
            max_retries=Retry(
                total=3,
                backoff_factor=0.3,
                status_forcelist=[500, 502, 503, 504]
            )
        )
        self.session.mount('https://', adapter)
        self.session.mount('http://', adapter)
        self.session.headers.update({'Accept': 'application/vnd.github.v3+json'})

        if self.token:
            self.session.headers.update({'Authorization': f'token {self.token}'})
            logging.info("Initialized GitHub API client with token")
        else:
            logging.warning("No GitHub token provided. Private repositories and blame will be unavailable.")
            logging.warning("Set GITHUB_TOKEN environment variable or pass token as argument.")

    def url(self, path: str) -> str:
        """Build an absolute API URL from a path like '/repos/o/r'."""
        return f"{self.api_url}/{path.lstrip('/')}"

    def _check(self, response: requests.Response) -> requests.Response:
        if response.status_code == 403:
            logging.error(f"GitHub API refused the request ({response.url}): {response.text[:200]}")
        response.raise_for_status()
        return response

    def get(self, path: str, params: Dict = None, headers: Dict = None) -> requests.Response:
        """Make a single GET request to the GitHub API.

        Args:
            path: API path or absolute URL
            params: Query parameters
            headers: Extra request headers

        Returns:
            Response object
        """
        url = path if path.startswith('http') else self.url(path)
        logging.debug(f"GET {url}")
        return self.session.get(url, params=params, headers=headers, timeout=self.timeout)

    def get_json(self, path: str, params: Dict = None) -> Dict:
        """GET a path and return the decoded JSON body, raising on HTTP errors."""
        return self._check(self.get(path, params=params)).json()

    def get_pull_request(self, repo: str, number: int) -> Dict:
        return self.get_json(f"/repos/{repo}/pulls/{number}")

    def compare(self, repo: str, base: str, head: str) -> Dict:
        """Compare two refs ('base...head') of a repository."""
        return self.get_json(f"/repos/{repo}/compare/{quote(base, safe='')}...{quote(head, safe='')}")

    def get_file_content(self, repo: str, path: str, ref: str = None) -> Optional[str]:
        """Fetch the raw content of a file in a repository.

        Returns:
            File content, or None if the file does not exist
        """
        response = self.get(
            f"/repos/{repo}/contents/{quote(path)}",
            params={'ref': ref} if ref else None,
            headers={'Accept': 'application/vnd.github.v3.raw'}
        )
        if response.status_code == 404:
            return None
        return self._check(response).text

    def get_user(self, login: str) -> Dict:
        return self.get_json(f"/users/{quote(login)}")

    def create_comment(self, repo: str, number: int, body: str) -> Dict:
        """Post a comment on an issue or pull request.

        Args:
            repo: Repository in 'owner/name' form
            number: Issue or pull request number
            body: Markdown comment body

        Returns:
            The created comment
        """
        url = self.url(f"/repos/{repo}/issues/{number}/comments")
        response = self.session.post(url, json={'body': body}, timeout=self.timeout)
        return self._check(response).json()

    def post_graphql(self, query: str, variables: Dict = None) -> Dict:
        """Make a GraphQL query to the GitHub API.

        Args:
            query: GraphQL query string
            variables: Optional query variables

        Returns:
            The 'data' member of the response

        Raises:
            GraphQLError: If the response carries GraphQL errors
        """
        payload = {"query": query}
        if variables:
            payload["variables"] = variables

        response = self.session.post(self.graphql_url, json=payload, timeout=self.timeout)
        result = self._check(response).json()

        if "errors" in result:
            logging.error(f"GraphQL errors: {result['errors']}")
            raise GraphQLError(result['errors'])

        return result.get("data") or {}
