"""Catalog listing client.

Fetches the flat list of archive documents from the server. The listing is
loaded once per browsing session (or on explicit refresh); failures raise
CatalogLoadError and are shown as a page-level message by the caller.
"""

import logging
import time
from typing import Optional, List, Any

import requests

from .data_types import ArchiveDocument
from .indexer import filter_by_category
from ..exceptions import CatalogLoadError
from ..utils.url_validation import build_endpoint_url

logger = logging.getLogger(__name__)

# Default timeout for HTTP requests (seconds)
DEFAULT_TIMEOUT = 30

USER_AGENT = 'periodical-archive/0.1 (+requests)'


class CatalogClient:
    """Client for the catalog listing endpoint."""

    def __init__(
        self,
        base_url: str,
        catalog_path: str = "api/pdf-uploads",
        timeout: int = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None
    ):
        """Initialize catalog client.

        Args:
            base_url: Normalized API base URL (with trailing slash)
            catalog_path: Path of the listing endpoint relative to base_url
            timeout: HTTP request timeout in seconds
            session: Optional shared requests session
        """
        self.base_url = base_url
        self.catalog_path = catalog_path
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': USER_AGENT,
            'Accept': 'application/json'
        })

    @property
    def catalog_url(self) -> str:
        """Absolute URL of the listing endpoint."""
        return build_endpoint_url(self.base_url, self.catalog_path)

    def fetch_documents(self, category_tag: Optional[str] = None) -> List[ArchiveDocument]:
        """Fetch the catalog listing, optionally filtered to one category.

        Args:
            category_tag: Category tag to keep (e.g. "Archive"); None keeps all

        Returns:
            List of ArchiveDocument in server order

        Raises:
            CatalogLoadError: On network failure, non-2xx status or an
                unusable response body
        """
        start_time = time.time()
        url = self.catalog_url

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Catalog request to {url} failed: {e}")
            raise CatalogLoadError(f"Could not load catalog: {e}") from e

        if not 200 <= response.status_code < 300:
            message = _server_message(response) or f"HTTP {response.status_code}"
            logger.error(f"Catalog request to {url} returned {response.status_code}: {message}")
            raise CatalogLoadError(
                f"Failed to load catalog: {message}",
                status_code=response.status_code
            )

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"Catalog response from {url} is not JSON: {e}")
            raise CatalogLoadError("Catalog response is not valid JSON",
                                   status_code=response.status_code) from e

        records = _extract_records(payload)
        documents = parse_documents(records)
        documents = filter_by_category(documents, category_tag)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Loaded {len(documents)} catalog document(s)"
            f"{f' in category {category_tag}' if category_tag else ''} ({duration_ms:.0f}ms)"
        )
        return documents


def parse_documents(records: List[Any]) -> List[ArchiveDocument]:
    """Parse listing records, skipping entries that are not usable records.

    Args:
        records: Raw JSON records

    Returns:
        Parsed documents in input order
    """
    documents = []
    for position, record in enumerate(records):
        if not isinstance(record, dict):
            logger.warning(f"Skipping catalog entry {position}: not an object")
            continue
        try:
            documents.append(ArchiveDocument.from_dict(record))
        except ValueError as e:
            logger.warning(f"Skipping catalog entry {position}: {e}")
    return documents


def _extract_records(payload: Any) -> List[Any]:
    """Accept both a bare list and the {"success", "data"} envelope.

    Raises:
        CatalogLoadError: If the payload has neither shape or reports failure
    """
    if isinstance(payload, list):
        return payload

    if isinstance(payload, dict):
        if payload.get('success') is False:
            raise CatalogLoadError(payload.get('message') or "Failed to load catalog")
        data = payload.get('data')
        if isinstance(data, list):
            return data

    raise CatalogLoadError("Unexpected catalog response format")


def _server_message(response: requests.Response) -> Optional[str]:
    """Extract a message/error field from an error response, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get('message') or body.get('error')
        return str(message) if message else None
    return None
