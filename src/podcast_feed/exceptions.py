"""Custom exceptions for podcast_feed.

Only failures to obtain the feed are surfaced as exceptions. Problems inside an
otherwise readable feed (a malformed fragment, a missing field) are absorbed by
the parser and never raised.

Exception Hierarchy:
    FeedError (base)
    ├── FeedFetchError - Network/transport failure while downloading the feed
    └── FeedSourceError - Feed content could not be handed to the tokenizer
"""

from typing import Optional


class FeedError(Exception):
    """Base exception for failures that prevent the feed from loading.

    Attributes:
        message: Human-readable error message
        suggestion: Optional suggestion for resolving the error
    """

    def __init__(self, message: str, suggestion: Optional[str] = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message with an optional suggestion."""
        parts = [self.message]
        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")
        return " ".join(parts)


class FeedFetchError(FeedError):
    """Raised when the feed body cannot be downloaded.

    Common causes:
    - DNS or connection failures
    - HTTP error status after retries are exhausted (see ``status_code``)
    - Connection dropped while the body was being read
    - No feed URL configured

    Example:
        >>> raise FeedFetchError(
        ...     message="Failed to fetch feed",
        ...     url="https://example.com/feed.xml",
        ...     suggestion="Check the feed URL and your network connection"
        ... )
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        suggestion: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        if url and url not in message:
            message = f"{message} (url: {url})"
        super().__init__(message=message, suggestion=suggestion)


class FeedSourceError(FeedError):
    """Raised when feed content cannot be opened by the XML tokenizer."""
