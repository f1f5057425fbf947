"""Browse state machine.

Two orthogonal parts make up what the visitor sees:

- the browsing state, derived from the year/month Selection
  (IDLE -> YEAR_SELECTED -> MONTH_SELECTED)
- the overlay on top of it (ACCESS_PENDING, VIEWER_OPEN, AUTH_PROMPT,
  SUBSCRIPTION_PROMPT, ERROR_PROMPT or NONE)

Overlay transitions never change the Selection; only select_year and
select_month do. Access outcomes arrive from the AccessController, possibly
on another thread, and are applied only if they belong to the most recent
activation.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, Callable, List, Sequence, Tuple

from ..access.controller import AccessController
from ..access.data_types import AccessHandle, AccessOutcome, OutcomeKind
from ..catalog.data_types import ArchiveDocument, YearMonthIndex, YearSummary
from ..catalog.indexer import CatalogIndexCache
from ..exceptions import SelectionError
from ..utils.error_messages import (
    LOGIN_REQUIRED_MESSAGE,
    SUBSCRIPTION_REQUIRED_TITLE,
    SUBSCRIPTION_REQUIRED_MESSAGE,
    CONTENT_UNAVAILABLE_MESSAGE,
    GENERIC_ACCESS_ERROR_MESSAGE,
)
from ..viewer.handoff import ViewerHandoff, ViewerSession

logger = logging.getLogger(__name__)

DEFAULT_LINKS = {
    "login_url": "/login-client",
    "subscribe_url": "/subscriptions",
}


class BrowsingState(Enum):
    """Browsing state derived from the Selection."""

    IDLE = "idle"
    YEAR_SELECTED = "year_selected"
    MONTH_SELECTED = "month_selected"


class OverlayState(Enum):
    """Overlay shown on top of the browsing state."""

    NONE = "none"
    ACCESS_PENDING = "access_pending"
    VIEWER_OPEN = "viewer_open"
    AUTH_PROMPT = "auth_prompt"
    SUBSCRIPTION_PROMPT = "subscription_prompt"
    ERROR_PROMPT = "error_prompt"


@dataclass(frozen=True)
class Selection:
    """Selected year and month. A month is only ever set together with a year."""

    year: Optional[int] = None
    month: Optional[int] = None

    @property
    def browsing_state(self) -> BrowsingState:
        if self.year is None:
            return BrowsingState.IDLE
        if self.month is None:
            return BrowsingState.YEAR_SELECTED
        return BrowsingState.MONTH_SELECTED


@dataclass(frozen=True)
class Prompt:
    """Modal message shown for a denied or failed access check.

    Attributes:
        overlay: Overlay state the prompt belongs to
        document_id: Document the access check was issued for
        message: User copy
        title: Optional heading
        action_label: Call-to-action label (None for dismiss-only prompts)
        action_url: Call-to-action link target
        preview: Document preview sent by the server, if any
    """

    overlay: OverlayState
    document_id: str
    message: str
    title: Optional[str] = None
    action_label: Optional[str] = None
    action_url: Optional[str] = None
    preview: Optional[Dict[str, Any]] = field(default=None, compare=False, hash=False)


@dataclass(frozen=True)
class BrowseSnapshot:
    """Immutable view of the browse state at one point in time."""

    browsing_state: BrowsingState
    overlay: OverlayState
    selection: Selection
    visible_items: Tuple[ArchiveDocument, ...]
    prompt: Optional[Prompt] = None
    viewer_session: Optional[ViewerSession] = None
    pending_document_id: Optional[str] = None


Listener = Callable[[BrowseSnapshot], None]


class BrowseState:
    """Selection, overlay and viewer session of one archive browsing view."""

    def __init__(
        self,
        controller: AccessController,
        handoff: Optional[ViewerHandoff] = None,
        documents: Optional[Sequence[ArchiveDocument]] = None,
        links: Optional[Dict[str, str]] = None,
        auth_token: Optional[str] = None,
        index_cache: Optional[CatalogIndexCache] = None
    ):
        """Initialize browse state.

        Args:
            controller: Access controller issuing the access checks
            handoff: Viewer handoff for granted documents
            documents: Initial catalog listing
            links: Call-to-action targets ("login_url", "subscribe_url")
            auth_token: Bearer token of the logged-in visitor, if any
            index_cache: Index cache (a private one by default)
        """
        self.controller = controller
        self.handoff = handoff or ViewerHandoff()
        self.links = dict(DEFAULT_LINKS)
        self.links.update(links or {})
        self.auth_token = auth_token

        self._cache = index_cache or CatalogIndexCache()
        self._documents: Sequence[ArchiveDocument] = documents if documents is not None else ()
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []

        self._selection = Selection()
        self._overlay = OverlayState.NONE
        self._prompt: Optional[Prompt] = None
        self._viewer_session: Optional[ViewerSession] = None
        self._pending_document: Optional[ArchiveDocument] = None
        self._pending_handle: Optional[AccessHandle] = None
        # Bumped by every activation and dismissal; outcomes of older ones are dropped
        self._activation = 0

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def browsing_state(self) -> BrowsingState:
        return self._selection.browsing_state

    @property
    def overlay(self) -> OverlayState:
        return self._overlay

    @property
    def prompt(self) -> Optional[Prompt]:
        return self._prompt

    @property
    def viewer_session(self) -> Optional[ViewerSession]:
        return self._viewer_session

    @property
    def pending_handle(self) -> Optional[AccessHandle]:
        """Handle of the access check behind ACCESS_PENDING, if any."""
        return self._pending_handle

    @property
    def index(self) -> YearMonthIndex:
        return self._cache.get(self._documents)

    def summaries(self) -> List[YearSummary]:
        """Sidebar year/month counts."""
        return self._cache.summaries(self._documents)

    def visible_years(self) -> Tuple[int, ...]:
        return self.index.years()

    def visible_months(self) -> Tuple[int, ...]:
        if self._selection.year is None:
            return ()
        return self.index.months(self._selection.year)

    def visible_items(self) -> Tuple[ArchiveDocument, ...]:
        """Item grid of the selected month (empty unless MONTH_SELECTED)."""
        selection = self._selection
        if selection.year is None or selection.month is None:
            return ()
        return self.index.items(selection.year, selection.month)

    def snapshot(self) -> BrowseSnapshot:
        with self._lock:
            return BrowseSnapshot(
                browsing_state=self._selection.browsing_state,
                overlay=self._overlay,
                selection=self._selection,
                visible_items=self.visible_items(),
                prompt=self._prompt,
                viewer_session=self._viewer_session,
                pending_document_id=(
                    self._pending_document.document_id if self._pending_document else None
                )
            )

    def add_listener(self, listener: Listener) -> None:
        """Register a callback receiving a snapshot after every transition."""
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify(self) -> None:
        with self._lock:
            snapshot = self.snapshot()
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Browse state listener failed: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def set_catalog(self, documents: Sequence[ArchiveDocument]) -> None:
        """Replace the catalog listing. The Selection is kept."""
        with self._lock:
            self._documents = documents
            index = self._cache.get(documents)
        logger.debug(f"Catalog set: {index.document_count()} indexed document(s)")
        self._notify()

    # ------------------------------------------------------------------
    # Selection transitions
    # ------------------------------------------------------------------

    def select_year(self, year: int) -> None:
        """Select a year; any selected month is cleared.

        Raises:
            SelectionError: If year is not an integer
        """
        if isinstance(year, bool) or not isinstance(year, int):
            raise SelectionError(f"Year must be an integer, got {year!r}")
        with self._lock:
            self._selection = Selection(year=year)
        logger.debug(f"Selected year {year}")
        self._notify()

    def select_month(self, month: int) -> None:
        """Select a month of the selected year.

        Raises:
            SelectionError: If no year is selected or month is outside 1-12
        """
        if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
            raise SelectionError(f"Month must be an integer between 1 and 12, got {month!r}")
        with self._lock:
            if self._selection.year is None:
                raise SelectionError("Select a year before selecting a month")
            self._selection = Selection(year=self._selection.year, month=month)
        logger.debug(f"Selected month {month}")
        self._notify()

    # ------------------------------------------------------------------
    # Access transitions
    # ------------------------------------------------------------------

    def activate_item(self, document: ArchiveDocument, auth_token: Optional[str] = None) -> AccessHandle:
        """Start the access check for a document and show ACCESS_PENDING.

        A pending check for another document is cancelled by the controller;
        an open viewer is closed first.

        Args:
            document: Activated document
            auth_token: Bearer token for this check (defaults to auth_token)

        Returns:
            Handle of the new access check
        """
        with self._lock:
            self._close_viewer()
            self._activation += 1
            activation = self._activation
            self._overlay = OverlayState.ACCESS_PENDING
            self._prompt = None
            self._pending_document = document
            logger.debug(f"Activated {document.document_id} ({document.title})")

            try:
                handle = self.controller.request_access(
                    document.document_id,
                    auth_token=auth_token if auth_token is not None else self.auth_token,
                    on_outcome=lambda outcome: self._apply_outcome(activation, document, outcome)
                )
            except RuntimeError:
                self._overlay = OverlayState.NONE
                self._pending_document = None
                raise
            if activation == self._activation and self._overlay is OverlayState.ACCESS_PENDING:
                self._pending_handle = handle
        self._notify()
        return handle

    def _apply_outcome(self, activation: int, document: ArchiveDocument, outcome: AccessOutcome) -> None:
        """Apply an access outcome if it belongs to the latest activation."""
        with self._lock:
            if activation != self._activation or self._overlay is not OverlayState.ACCESS_PENDING:
                logger.debug(f"Ignoring {outcome.kind.value} outcome for superseded {document.document_id}")
                return

            self._pending_document = None
            self._pending_handle = None
            kind = outcome.kind

            if kind is OutcomeKind.GRANTED:
                self._open_viewer(document, outcome)
            elif kind is OutcomeKind.AUTHENTICATION_REQUIRED:
                self._show_prompt(Prompt(
                    overlay=OverlayState.AUTH_PROMPT,
                    document_id=document.document_id,
                    message=outcome.message or LOGIN_REQUIRED_MESSAGE,
                    action_label="Login",
                    action_url=self.links.get("login_url")
                ))
            elif kind is OutcomeKind.SUBSCRIPTION_REQUIRED:
                self._show_prompt(Prompt(
                    overlay=OverlayState.SUBSCRIPTION_PROMPT,
                    document_id=document.document_id,
                    title=SUBSCRIPTION_REQUIRED_TITLE,
                    message=SUBSCRIPTION_REQUIRED_MESSAGE,
                    action_label="Subscribe Now",
                    action_url=self.links.get("subscribe_url"),
                    preview=outcome.preview
                ))
            elif kind is OutcomeKind.TRANSIENT_ERROR:
                self._show_prompt(Prompt(
                    overlay=OverlayState.ERROR_PROMPT,
                    document_id=document.document_id,
                    message=outcome.message or GENERIC_ACCESS_ERROR_MESSAGE
                ))
            else:
                # Cancelled outcomes never change what the visitor sees
                return
        self._notify()

    def _open_viewer(self, document: ArchiveDocument, outcome: AccessOutcome) -> None:
        granted = outcome.document or document
        try:
            url = self.handoff.open(outcome.content_locator, title=granted.title)
        except Exception as e:
            logger.warning(f"Viewer could not open {document.document_id}: {e}")
            self._show_prompt(Prompt(
                overlay=OverlayState.ERROR_PROMPT,
                document_id=document.document_id,
                message=CONTENT_UNAVAILABLE_MESSAGE
            ))
            return
        self._viewer_session = ViewerSession(
            document_id=document.document_id,
            title=granted.title,
            content_url=url
        )
        self._overlay = OverlayState.VIEWER_OPEN
        self._prompt = None

    def _show_prompt(self, prompt: Prompt) -> None:
        self._overlay = prompt.overlay
        self._prompt = prompt

    def _close_viewer(self) -> None:
        if self._viewer_session is not None or self.handoff.is_open:
            self.handoff.close()
            self._viewer_session = None

    def _cancel_pending(self) -> None:
        self._activation += 1
        self._pending_document = None
        self._pending_handle = None
        self.controller.cancel()

    def dismiss_overlay(self) -> bool:
        """Return to the underlying browsing state.

        Cancels a still pending access check. The viewer session is cleared
        only when leaving VIEWER_OPEN.

        Returns:
            True if an overlay was dismissed
        """
        with self._lock:
            if self._overlay is OverlayState.NONE:
                return False
            previous = self._overlay
            self._cancel_pending()
            if previous is OverlayState.VIEWER_OPEN:
                self._close_viewer()
            self._overlay = OverlayState.NONE
            self._prompt = None
        logger.debug(f"Dismissed {previous.value}")
        self._notify()
        return True

    def leave(self) -> None:
        """Navigate away: cancel any pending check and close the viewer."""
        with self._lock:
            self._cancel_pending()
            self._close_viewer()
            self._overlay = OverlayState.NONE
            self._prompt = None
        logger.debug("Left archive view")
        self._notify()
