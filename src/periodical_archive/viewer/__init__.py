"""Viewer handoff to the external PDF renderer."""

from .handoff import (
    PdfRenderer,
    SystemViewerRenderer,
    NullRenderer,
    ViewerSession,
    ViewerHandoff,
    resolve_locator
)

__all__ = [
    'PdfRenderer',
    'SystemViewerRenderer',
    'NullRenderer',
    'ViewerSession',
    'ViewerHandoff',
    'resolve_locator',
]
