"""Comment text for reviewer suggestions."""

from typing import Optional, Sequence

REVIEWERS_PLACEHOLDER = '@reviewers'


def build_mention_sentence(reviewers: Sequence[str]) -> str:
    """Join logins as '@a', '@a and @b' or '@a, @b and @c'."""
    at_reviewers = [f"@{login}" for login in reviewers]
    if len(at_reviewers) <= 1:
        return ''.join(at_reviewers)
    return ', '.join(at_reviewers[:-1]) + ' and ' + at_reviewers[-1]


def default_message(reviewers: Sequence[str]) -> str:
    plural = len(reviewers) > 1
    return (
        "By analyzing the blame information on this pull request, "
        f"we identified {build_mention_sentence(reviewers)} to be"
        f"{'' if plural else ' a'} potential reviewer{'s' if plural else ''}"
    )


def generate_message(reviewers: Sequence[str], template: Optional[str] = None) -> str:
    """Build the comment body for a list of reviewers.

    Args:
        reviewers: Logins to mention, in order
        template: Repository supplied message; '@reviewers' is replaced by
                  the mention sentence

    Returns:
        Comment text
    """
    if template:
        return template.replace(REVIEWERS_PLACEHOLDER, build_mention_sentence(reviewers))
    return default_message(reviewers)
