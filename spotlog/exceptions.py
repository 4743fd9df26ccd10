"""
Error taxonomy for feed harvesting.

Transport and envelope errors are fatal for the process; remote application
errors are only raised when strict error handling is enabled.
"""

from typing import Optional


class FeedError(Exception):
    """Base class for every feed harvesting failure."""
    pass


class TransportError(FeedError):
    """Network failure, timeout, or non-2xx HTTP response."""

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class MalformedEnvelopeError(FeedError):
    """Response body is not JSON or does not have the expected structure."""
    pass


class RemoteFeedError(FeedError):
    """The feed populated its ``errors`` field for a window."""

    def __init__(self, code: str, text: str = "", description: str = ""):
        super().__init__(f"Feed reported error {code}: {text or description}")
        self.code = code
        self.text = text
        self.description = description
