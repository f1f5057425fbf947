"""Archive browser facade.

Wires the catalog client, index cache, access controller, browse state and
viewer handoff together from one ArchiveConfig. Catalog load failures stop
here and are kept as a page-level message; they never reach the indexer.

Example usage:
    from periodical_archive import ArchiveBrowser

    with ArchiveBrowser() as browser:
        if not browser.load_catalog():
            print(browser.load_error)
        state = browser.state
        state.select_year(state.visible_years()[0])
"""

import logging
from concurrent.futures import Executor
from typing import Optional, List, Callable

import requests

from .access.client import AccessCheckClient
from .access.controller import AccessController
from .browse.state import BrowseState
from .catalog.client import CatalogClient
from .catalog.data_types import ArchiveDocument
from .config import ArchiveConfig, get_config
from .exceptions import CatalogLoadError
from .utils.error_messages import UserFriendlyError, format_catalog_error, format_configuration_error
from .viewer.handoff import PdfRenderer, ViewerHandoff

logger = logging.getLogger(__name__)


class ArchiveBrowser:
    """One archive browsing session."""

    def __init__(
        self,
        config: Optional[ArchiveConfig] = None,
        session: Optional[requests.Session] = None,
        renderer: Optional[PdfRenderer] = None,
        executor: Optional[Executor] = None,
        dispatch: Optional[Callable[[Callable[[], None]], None]] = None
    ):
        """Initialize the browser from configuration.

        Args:
            config: Configuration (global configuration by default)
            session: Shared requests session for both endpoints
            renderer: PDF renderer (system browser by default)
            executor: Executor for access checks
            dispatch: Event-loop dispatcher for access outcomes

        Raises:
            ValueError: If the configuration is invalid
        """
        self.config = config or get_config()
        result = self.config.validate()
        if not result:
            friendly = format_configuration_error(ValueError("; ".join(result.errors)), "api")
            friendly.log(logging.ERROR)
            result.raise_if_invalid()
        for warning in result.warnings:
            logger.warning(warning)

        api = self.config.get_api_config()
        archive = self.config.get_archive_config()
        base_url = api["base_url"].rstrip('/') + '/'
        # Empty category browses every category
        self.category: Optional[str] = archive.get("category") or None
        self._owns_session = session is None
        self.session = session or requests.Session()

        self.catalog_client = CatalogClient(
            base_url,
            catalog_path=api["catalog_path"],
            timeout=api["timeout"],
            session=self.session
        )
        self.access_client = AccessCheckClient(
            base_url,
            access_path=api["access_path"],
            timeout=api["timeout"],
            session=self.session
        )
        self.controller = AccessController(
            self.access_client,
            executor=executor,
            max_workers=archive["max_workers"],
            dispatch=dispatch
        )
        self.handoff = ViewerHandoff(renderer, base_url=base_url)
        self.state = BrowseState(
            self.controller,
            handoff=self.handoff,
            links=self.config.get_links_config(),
            auth_token=self.config.get_client_token()
        )

        self.documents: List[ArchiveDocument] = []
        self.load_error: Optional[UserFriendlyError] = None

    def load_catalog(self) -> bool:
        """Fetch the catalog and hand it to the browse state.

        Returns:
            True on success; on failure load_error holds the page message
        """
        try:
            documents = self.catalog_client.fetch_documents(category_tag=self.category)
        except CatalogLoadError as e:
            self.load_error = format_catalog_error(e.__cause__ or e, self.category)
            self.load_error.log(logging.ERROR)
            return False

        self.load_error = None
        self.documents = documents
        self.state.set_catalog(documents)
        return True

    def refresh(self) -> bool:
        """Reload the catalog. The Selection is kept."""
        logger.info("Refreshing catalog")
        return self.load_catalog()

    def find_document(self, document_id: str) -> Optional[ArchiveDocument]:
        """Look up a loaded document by identifier."""
        for document in self.documents:
            if document.document_id == document_id:
                return document
        return None

    def close(self) -> None:
        """Leave the archive view and stop background work."""
        self.state.leave()
        self.controller.shutdown()
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "ArchiveBrowser":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
