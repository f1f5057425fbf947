"""Viewer handoff.

Hands a granted document over to an external PDF renderer. The handoff only
tracks whether something is currently open, so at most one viewer session
exists at a time: opening a new document closes the previous one first.
"""

import logging
import webbrowser
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

from ..utils.url_validation import ALLOWED_SCHEMES, resolve_content_url

logger = logging.getLogger(__name__)


class PdfRenderer(ABC):
    """External rendering collaborator."""

    @abstractmethod
    def open(self, url: str, title: Optional[str] = None) -> None:
        """Render the document at url."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the currently rendered document."""
        pass


class SystemViewerRenderer(PdfRenderer):
    """Opens documents in the system web browser.

    Browsers cannot be closed from here, so close() only forgets the URL.
    """

    def __init__(self, new_tab: bool = True):
        self.new_tab = new_tab
        self.current_url: Optional[str] = None

    def open(self, url: str, title: Optional[str] = None) -> None:
        logger.info(f"Opening {title or url} in system viewer")
        opened = webbrowser.open(url, new=2 if self.new_tab else 0)
        if not opened:
            raise RuntimeError(f"No system viewer available for {url}")
        self.current_url = url

    def close(self) -> None:
        self.current_url = None


class NullRenderer(PdfRenderer):
    """Renderer for headless use; remembers what would have been shown."""

    def __init__(self):
        self.current_url: Optional[str] = None
        self.opened_count = 0

    def open(self, url: str, title: Optional[str] = None) -> None:
        self.current_url = url
        self.opened_count += 1

    def close(self) -> None:
        self.current_url = None


@dataclass(frozen=True)
class ViewerSession:
    """The document currently displayed to the visitor.

    Attributes:
        document_id: Granted document identifier
        title: Document title
        content_url: Absolute URL handed to the renderer
        opened_at: When the session was opened
    """

    document_id: str
    title: str
    content_url: str
    opened_at: datetime = field(default_factory=datetime.now, compare=False)


def resolve_locator(base_url: Optional[str], locator: str) -> str:
    """Turn a server-relative content locator into an absolute URL.

    Args:
        base_url: API base URL; None returns the locator unchanged
        locator: Locator from a granted access check, e.g. "uploads/pdfs/x.pdf"

    Returns:
        URL to hand to the renderer

    Raises:
        ValueError: If the locator uses a scheme other than http or https
    """
    if not base_url:
        scheme = urlparse(locator).scheme
        if scheme and scheme.lower() not in ALLOWED_SCHEMES:
            raise ValueError(f"Refusing content locator with scheme '{scheme}': {locator}")
        return locator
    return resolve_content_url(base_url, locator)


class ViewerHandoff:
    """Opens and closes granted documents through a PdfRenderer."""

    def __init__(self, renderer: Optional[PdfRenderer] = None, base_url: Optional[str] = None):
        """Initialize viewer handoff.

        Args:
            renderer: Rendering collaborator (system browser by default)
            base_url: API base URL used to resolve relative locators
        """
        self.renderer = renderer or SystemViewerRenderer()
        self.base_url = base_url
        self._open_url: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self._open_url is not None

    @property
    def current_url(self) -> Optional[str]:
        return self._open_url

    def open(self, locator: str, title: Optional[str] = None) -> str:
        """Open a document, closing any document already open.

        Args:
            locator: Content locator from the granted outcome
            title: Optional title shown by the renderer

        Returns:
            The absolute URL handed to the renderer

        Raises:
            Exception: Whatever the renderer raises; nothing is open afterwards
        """
        if self.is_open:
            self.close()

        url = resolve_locator(self.base_url, locator)
        self.renderer.open(url, title)
        self._open_url = url
        logger.debug(f"Viewer opened {url}")
        return url

    def close(self) -> bool:
        """Close the open document.

        Returns:
            True if something was open
        """
        if not self.is_open:
            return False
        url, self._open_url = self._open_url, None
        try:
            self.renderer.close()
        except Exception as e:
            logger.warning(f"Renderer failed to close {url}: {e}")
        logger.debug(f"Viewer closed {url}")
        return True
