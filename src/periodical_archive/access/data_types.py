"""Data types for archive access checks.

Defines the closed outcome variant of an access check, the cancellation
token handed to the network layer, and the disposable handle returned to
callers of AccessController.request_access.
"""

import itertools
import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, Callable, List

from ..catalog.data_types import ArchiveDocument
from ..exceptions import AccessCancelled

logger = logging.getLogger(__name__)


class OutcomeKind(Enum):
    """Result category of one access check."""

    GRANTED = "granted"
    AUTHENTICATION_REQUIRED = "authentication_required"
    SUBSCRIPTION_REQUIRED = "subscription_required"
    TRANSIENT_ERROR = "transient_error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class AccessOutcome:
    """Outcome of an access check, decided once at the network boundary.

    Attributes:
        kind: Outcome category
        document_id: Document the check was issued for
        document: Granted document as returned by the server (GRANTED only)
        content_locator: Server-relative PDF locator (GRANTED only)
        message: Human-readable message (prompts and transient errors)
        status_code: HTTP status code, when a response was received
        preview: Document preview sent with a 403, if any
    """

    kind: OutcomeKind
    document_id: str
    document: Optional[ArchiveDocument] = None
    content_locator: Optional[str] = None
    message: Optional[str] = None
    status_code: Optional[int] = None
    preview: Optional[Dict[str, Any]] = field(default=None, compare=False, hash=False)

    @classmethod
    def granted(cls, document: ArchiveDocument, status_code: int = 200) -> "AccessOutcome":
        """Access granted; the document carries the content locator."""
        return cls(
            kind=OutcomeKind.GRANTED,
            document_id=document.document_id,
            document=document,
            content_locator=document.content_locator,
            status_code=status_code
        )

    @classmethod
    def authentication_required(cls, document_id: str, message: Optional[str] = None) -> "AccessOutcome":
        return cls(
            kind=OutcomeKind.AUTHENTICATION_REQUIRED,
            document_id=document_id,
            message=message,
            status_code=401
        )

    @classmethod
    def subscription_required(
        cls,
        document_id: str,
        message: Optional[str] = None,
        preview: Optional[Dict[str, Any]] = None
    ) -> "AccessOutcome":
        return cls(
            kind=OutcomeKind.SUBSCRIPTION_REQUIRED,
            document_id=document_id,
            message=message,
            status_code=403,
            preview=preview
        )

    @classmethod
    def transient_error(
        cls,
        document_id: str,
        message: str,
        status_code: Optional[int] = None
    ) -> "AccessOutcome":
        return cls(
            kind=OutcomeKind.TRANSIENT_ERROR,
            document_id=document_id,
            message=message,
            status_code=status_code
        )

    @classmethod
    def cancelled(cls, document_id: str) -> "AccessOutcome":
        return cls(kind=OutcomeKind.CANCELLED, document_id=document_id)

    @property
    def is_granted(self) -> bool:
        return self.kind is OutcomeKind.GRANTED

    @property
    def is_cancelled(self) -> bool:
        return self.kind is OutcomeKind.CANCELLED


class CancellationToken:
    """Cancellation signal shared by a request handle and the network layer.

    Cancelling is idempotent and safe from any thread. Callbacks registered
    with add_callback run once, on the cancelling thread, or immediately if
    the token is already cancelled.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> bool:
        """Cancel the token.

        Returns:
            True if this call cancelled it, False if it was already cancelled
        """
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []

        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.warning(f"Cancellation callback error: {e}")
        return True

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Run callback when the token is cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def raise_if_cancelled(self, document_id: Optional[str] = None) -> None:
        """Raise AccessCancelled if the token was cancelled."""
        if self._event.is_set():
            raise AccessCancelled("Access check cancelled", document_id=document_id)


_request_ids = itertools.count(1)


class AccessHandle:
    """Disposable handle for one in-flight access check.

    The handle is resolved at most once. Cancelling a resolved handle is a
    no-op. Used as a context manager, leaving the block cancels the check if
    it has not resolved yet.

    Attributes:
        request_id: Monotonic request number
        document_id: Document the check was issued for
        token: Cancellation token passed to the network layer
        created_at: time.monotonic() at creation
    """

    def __init__(self, document_id: str, token: Optional[CancellationToken] = None):
        self.request_id = next(_request_ids)
        self.document_id = document_id
        self.token = token or CancellationToken()
        self.created_at = time.monotonic()
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._outcome: Optional[AccessOutcome] = None

    @property
    def is_cancelled(self) -> bool:
        return self.token.is_cancelled

    @property
    def is_resolved(self) -> bool:
        return self._outcome is not None

    @property
    def outcome(self) -> Optional[AccessOutcome]:
        """Resolved outcome, or None while pending."""
        return self._outcome

    def cancel(self) -> bool:
        """Cancel the check if it is still pending.

        Returns:
            True if the check was pending and is now cancelled
        """
        with self._lock:
            if self._outcome is not None:
                return False
            if not self.token.cancel():
                return False
            self._outcome = AccessOutcome.cancelled(self.document_id)
            self._done.set()
        logger.debug(f"Cancelled access request #{self.request_id} for {self.document_id}")
        return True

    def resolve(self, outcome: AccessOutcome) -> bool:
        """Record the outcome unless the handle was cancelled or resolved.

        Returns:
            True if the outcome was recorded
        """
        with self._lock:
            if self._outcome is not None or self.token.is_cancelled:
                return False
            self._outcome = outcome
            self._done.set()
            return True

    def wait(self, timeout: Optional[float] = None) -> Optional[AccessOutcome]:
        """Block until the handle is resolved or cancelled.

        Args:
            timeout: Maximum seconds to wait, None waits indefinitely

        Returns:
            The outcome, or None if the timeout expired first
        """
        self._done.wait(timeout)
        return self._outcome

    def __enter__(self) -> "AccessHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()

    def __repr__(self) -> str:
        state = self._outcome.kind.value if self._outcome else "pending"
        return f"AccessHandle(#{self.request_id}, document_id={self.document_id!r}, {state})"
