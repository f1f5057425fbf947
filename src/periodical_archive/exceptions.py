"""
Exceptions for the periodical archive package.

Catalog failures are raised to the caller and shown as a page-level message.
The access family is raised only inside the network layer; the access
controller maps each of them to an AccessOutcome before anything reaches the
browse state.
"""

from typing import Optional


class ArchiveError(Exception):
    """Base exception for archive errors."""

    pass


class CatalogLoadError(ArchiveError):
    """Exception raised when the catalog listing cannot be loaded."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SelectionError(ArchiveError, ValueError):
    """Exception raised for an invalid year/month selection."""

    pass


# ============================================================================
# Access check exceptions
# ============================================================================


class AccessCheckError(ArchiveError):
    """Base exception for access check failures.

    Attributes:
        document_id: Identifier of the document being checked
        status_code: HTTP status code, if a response was received
    """

    def __init__(
        self,
        message: str,
        document_id: Optional[str] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message)
        self.document_id = document_id
        self.status_code = status_code


class AccessAuthenticationRequired(AccessCheckError):
    """Raised when the server requires a logged-in visitor (HTTP 401)."""

    pass


class AccessSubscriptionRequired(AccessCheckError):
    """Raised when the free-view quota is exhausted (HTTP 403).

    Attributes:
        preview: Document preview returned by the server, if any
    """

    def __init__(
        self,
        message: str,
        document_id: Optional[str] = None,
        status_code: Optional[int] = 403,
        preview: Optional[dict] = None
    ):
        super().__init__(message, document_id=document_id, status_code=status_code)
        self.preview = preview


class AccessTransientError(AccessCheckError):
    """Raised for network failures, server faults and unexpected responses."""

    pass


class AccessCancelled(AccessCheckError):
    """Raised when a request was superseded or dismissed. Never shown."""

    pass
