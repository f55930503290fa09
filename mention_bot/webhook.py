"""Handling of GitHub pull_request webhook events."""

import hashlib
import hmac
import logging
from typing import Dict, Optional

import requests

from .inference import ReviewerInference
from .messages import generate_message
from .models import PullRequestRef, repo_full_name
from .repo_config import load_repo_config
from .user_status import UserStatusCache, filter_active_reviewers


def verify_signature(secret: Optional[str], body: bytes, signature: Optional[str]) -> bool:
    """Check an X-Hub-Signature-256 header against the raw request body.

    Always true when no secret is configured.
    """
    if not secret:
        return True
    if not signature or not signature.startswith('sha256='):
        return False
    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(signature[len('sha256='):], expected)


def pull_request_from_payload(payload: Dict) -> PullRequestRef:
    """Build a PullRequestRef from a pull_request event payload.

    Raises:
        KeyError: If the payload lacks pull request fields
    """
    pr_data = payload['pull_request']
    return PullRequestRef(
        repository_url=payload['repository']['html_url'],  # 'https://github.com/fbsamples/bot-testing'
        number=pr_data['number'],  # 23
        author_login=pr_data['user']['login'],  # 'mention-bot'
        base_branch=pr_data['base']['ref'],  # 'master'
    )


def handle_pull_request_event(payload: Dict, inference: ReviewerInference,
                              user_cache: UserStatusCache) -> Dict:
    """Suggest reviewers for a pull request event and comment on it.

    Args:
        payload: Decoded webhook body
        inference: Reviewer inference engine (holds the API client and settings)
        user_cache: Shared account liveness cache

    Returns:
        Dict with 'status' and, when reviewers were found, 'reviewers'
    """
    action = payload.get('action')
    try:
        pr = pull_request_from_payload(payload)
        repo = repo_full_name(pr.repository_url)
    except (KeyError, TypeError, ValueError):
        logging.info(f"Skipping event without a pull request (action: {action})")
        return {'status': 'ignored', 'reason': 'not a pull request event'}

    api_client = inference.api_client
    settings = inference.settings
    config = load_repo_config(api_client, repo, settings.config_path)

    if action not in config.actions:
        logging.info(f"Skipping because action is {action}. We only care about {', '.join(config.actions)}.")
        return {'status': 'ignored', 'reason': f"action {action}"}

    title = payload['pull_request'].get('title') or ''
    if config.skip_title and config.skip_title in title:
        logging.info(f"Skipping {repo}#{pr.number} because its title contains '{config.skip_title}'")
        return {'status': 'ignored', 'reason': 'skip title'}

    reviewers = inference.guess_owners(pr, config)
    pr_url = payload['pull_request'].get('html_url') or f"{repo}#{pr.number}"
    logging.info(f"{pr_url} {reviewers}")

    if not reviewers:
        logging.info("Skipping because there are no reviewers found.")
        return {'status': 'no_reviewers', 'reviewers': []}

    active_reviewers = filter_active_reviewers(reviewers, api_client, user_cache, settings.max_workers)
    user_cache.save_cache()

    if not active_reviewers:
        logging.info("Skipping because none of the reviewers has an active account.")
        return {'status': 'no_reviewers', 'reviewers': []}

    body = generate_message(active_reviewers, config.message)
    try:
        api_client.create_comment(repo, pr.number, body)
    except requests.RequestException as e:
        logging.error(f"Could not comment on {repo}#{pr.number}: {e}")
        return {'status': 'comment_failed', 'reviewers': active_reviewers}

    logging.info(f"Commented on {repo}#{pr.number} mentioning {', '.join(active_reviewers)}")
    return {'status': 'commented', 'reviewers': active_reviewers}
