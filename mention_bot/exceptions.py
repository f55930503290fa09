"""Error taxonomy for reviewer inference."""


class MentionBotError(Exception):
    """Base class for errors raised by mention-bot."""


class DiffUnavailable(MentionBotError):
    """The base/head comparison of a pull request could not be resolved."""


class BlameUnavailable(MentionBotError):
    """Blame information for a single file could not be fetched."""

    def __init__(self, file_path: str, reason: str):
        super().__init__(f"Blame unavailable for {file_path}: {reason}")
        self.file_path = file_path
        self.reason = reason


class UnresolvableAuthor(MentionBotError):
    """A blamed line cannot be attributed to a reviewable account."""


class ConfigError(MentionBotError):
    """Repository configuration is malformed."""


class GraphQLError(MentionBotError):
    """The GitHub GraphQL API answered with errors."""

    def __init__(self, errors):
        super().__init__(f"GraphQL query failed: {errors}")
        self.errors = errors
