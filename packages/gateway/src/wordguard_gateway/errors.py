"""
Error types for WordGuard Gateway
"""


class WordGuardError(Exception):
    """Base error for the content filter and violation log."""

    pass


class ValidationError(WordGuardError):
    """A word spec or request option is malformed."""

    pass


class NotFoundError(WordGuardError):
    """The referenced record does not exist."""

    pass


class StoreUnavailableError(WordGuardError):
    """The backing store could not be reached."""

    pass


class PatternError(WordGuardError):
    """A regex-type word holds a pattern that does not compile."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid regex pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason
