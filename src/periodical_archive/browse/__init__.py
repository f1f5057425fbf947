"""Browse state machine: selection, access overlays and viewer session."""

from .state import (
    BrowsingState,
    OverlayState,
    Selection,
    Prompt,
    BrowseSnapshot,
    BrowseState,
    DEFAULT_LINKS
)

__all__ = [
    'BrowsingState',
    'OverlayState',
    'Selection',
    'Prompt',
    'BrowseSnapshot',
    'BrowseState',
    'DEFAULT_LINKS',
]
