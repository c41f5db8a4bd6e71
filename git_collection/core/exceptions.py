"""Exceptions raised while collecting git history."""

from typing import Optional


class GitCollectionError(Exception):
    """Base exception for git collection failures."""


class ConfigurationError(GitCollectionError):
    """Raised when required configuration is missing or unusable."""


class SynchronizationError(GitCollectionError):
    """Raised when a working copy cannot be cloned or pulled."""

    def __init__(self, message: str, repository: Optional[str] = None):
        super().__init__(message)
        self.repository = repository


class FetchError(GitCollectionError):
    """Raised when a log query against a working copy fails."""

    def __init__(self, message: str, repository: Optional[str] = None):
        super().__init__(message)
        self.repository = repository


class ParseError(GitCollectionError):
    """Raised when log text or an item identifier does not match the expected grammar."""

    def __init__(self, message: str, item: Optional[str] = None):
        super().__init__(message)
        self.item = item

    def with_item(self, item: str) -> "ParseError":
        """Return a copy of this error that names the offending item."""
        error = ParseError(self.args[0], item=item)
        error.__cause__ = self.__cause__
        return error

    def __str__(self) -> str:
        message = super().__str__()
        if self.item:
            return f"{message} (item: {self.item})"
        return message
