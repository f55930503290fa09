"""Ownership scoring over blamed lines."""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional

from .exceptions import UnresolvableAuthor
from .models import BlameEntry, CandidateScore


def resolve_author(entry: BlameEntry) -> str:
    """Return the login a blamed line counts for.

    Raises:
        UnresolvableAuthor: If the line has no linked account or belongs to a bot
    """
    login = (entry.author_login or '').strip()
    if not login:
        raise UnresolvableAuthor(f"{entry.file_path}:{entry.line_number} has no linked account")
    if login.lower().endswith('[bot]'):
        raise UnresolvableAuthor(f"{entry.file_path}:{entry.line_number} was last changed by bot {login}")
    return login


def recency_weight(timestamp: Optional[datetime], now: datetime, half_life_days: float) -> float:
    """Weight halving every half_life_days of commit age."""
    if timestamp is None:
        return 1.0
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    age_days = max(0.0, (now - timestamp).total_seconds() / 86400)
    return 0.5 ** (age_days / half_life_days)


def score_blame(entries: Iterable[BlameEntry], recency_half_life_days: float = None,
                now: datetime = None) -> CandidateScore:
    """Tally blamed lines per author.

    Logins differing only in case count as one author, spelled as first
    seen. Entries are traversed by file path, then line number; an author's
    position in that traversal is recorded the first time they appear and
    breaks ties between equal scores.

    Args:
        entries: Blame entries of all changed lines
        recency_half_life_days: When set, older lines weigh less
        now: Reference time for recency weighting

    Returns:
        Frozen CandidateScore
    """
    if recency_half_life_days is not None and recency_half_life_days <= 0:
        raise ValueError("recency_half_life_days must be positive")
    if now is None:
        now = datetime.now(timezone.utc)

    scores: Dict[str, float] = defaultdict(float)
    first_seen: Dict[str, int] = {}
    spellings: Dict[str, str] = {}  # casefolded login -> first spelling seen
    skipped = 0

    for entry in sorted(entries, key=lambda e: (e.file_path, e.line_number)):
        try:
            login = resolve_author(entry)
        except UnresolvableAuthor as e:
            logging.debug(f"Not scoring line: {e}")
            skipped += 1
            continue

        login = spellings.setdefault(login.casefold(), login)
        if login not in first_seen:
            first_seen[login] = len(first_seen)

        if recency_half_life_days is None:
            scores[login] += 1
        else:
            scores[login] += recency_weight(entry.commit_timestamp, now, recency_half_life_days)

    if skipped:
        logging.debug(f"Excluded {skipped} line(s) with unresolvable authors")

    return CandidateScore(scores=scores, first_seen=first_seen)
