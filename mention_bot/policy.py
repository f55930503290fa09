"""Eligibility rules applied to scored reviewer candidates."""

import logging
from typing import List, Optional

from .models import CandidateScore
from .repo_config import RepoConfig


def filter_reviewers(scores: CandidateScore, author_login: str, config: RepoConfig,
                     max_reviewers: Optional[int] = None) -> List[str]:
    """Turn candidate scores into the ordered list of reviewers to mention.

    The pull request author and blacklisted logins are removed (GitHub logins
    are case-insensitive), the rest is ordered by descending score with ties
    kept in first-seen order, then capped.

    Args:
        scores: Result of the ownership scorer
        author_login: Login of the pull request author
        config: Repository configuration
        max_reviewers: Cap used when the repository config sets none;
                       None means unbounded

    Returns:
        Ordered logins, possibly empty
    """
    author = author_login.casefold()
    blacklist = {login.casefold() for login in config.user_blacklist}

    candidates = [login for login in scores.scores if login.casefold() != author]
    candidates = [login for login in candidates if login.casefold() not in blacklist]

    seen = set()
    reviewers = []
    for login in sorted(candidates, key=scores.sort_key):
        if login.casefold() in seen:
            continue
        seen.add(login.casefold())
        reviewers.append(login)

    cap = config.max_reviewers if config.max_reviewers is not None else max_reviewers
    if cap is not None and len(reviewers) > cap:
        logging.debug(f"Keeping {cap} of {len(reviewers)} reviewer(s)")
        reviewers = reviewers[:cap]

    return reviewers
