"""
Periodical Archive

Gated browsing of a scanned periodical archive: a year/month index built from
the catalog listing, cancellable per-item access checks, and the browse state
machine that turns access outcomes into viewer, login, subscription and error
overlays.
"""

__version__ = "0.1.0"

from .exceptions import (
    ArchiveError,
    CatalogLoadError,
    SelectionError,
    AccessCheckError,
    AccessAuthenticationRequired,
    AccessSubscriptionRequired,
    AccessTransientError,
    AccessCancelled
)
from .config import ArchiveConfig, get_config, reload_config
from .catalog import ArchiveDocument, YearMonthIndex, build_index, summarize, CatalogClient
from .access import AccessOutcome, OutcomeKind, AccessHandle, AccessCheckClient, AccessController
from .browse import BrowseState, BrowsingState, OverlayState, Selection, BrowseSnapshot
from .viewer import ViewerHandoff, ViewerSession, PdfRenderer
from .browser import ArchiveBrowser

__all__ = [
    '__version__',
    # Exceptions
    'ArchiveError',
    'CatalogLoadError',
    'SelectionError',
    'AccessCheckError',
    'AccessAuthenticationRequired',
    'AccessSubscriptionRequired',
    'AccessTransientError',
    'AccessCancelled',
    # Configuration
    'ArchiveConfig',
    'get_config',
    'reload_config',
    # Catalog
    'ArchiveDocument',
    'YearMonthIndex',
    'build_index',
    'summarize',
    'CatalogClient',
    # Access
    'AccessOutcome',
    'OutcomeKind',
    'AccessHandle',
    'AccessCheckClient',
    'AccessController',
    # Browse
    'BrowseState',
    'BrowsingState',
    'OverlayState',
    'Selection',
    'BrowseSnapshot',
    # Viewer
    'ViewerHandoff',
    'ViewerSession',
    'PdfRenderer',
    # Facade
    'ArchiveBrowser',
]
