"""Catalog indexer.

Builds the immutable year/month index from the flat catalog listing and
projects it into sidebar summaries. Everything here is pure: no I/O, no
mutation of the input list.
"""

import calendar
import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from .data_types import ArchiveDocument, MonthCount, YearMonthIndex, YearSummary

logger = logging.getLogger(__name__)


def build_index(documents: Sequence[ArchiveDocument]) -> YearMonthIndex:
    """Build the year -> month -> documents index.

    Documents are bucketed by their chronological date (publication date,
    or upload timestamp when no publication date exists) and ordered by that
    same date, most recent first. Documents whose date cannot be parsed are
    skipped. Equal dates keep their input order, so the same input list
    always yields an equal index.

    Args:
        documents: Flat catalog listing, possibly empty

    Returns:
        YearMonthIndex
    """
    dated: Dict[int, Dict[int, List[Tuple[datetime, ArchiveDocument]]]] = {}
    skipped = 0

    for document in documents:
        when = document.chronological_date()
        if when is None:
            skipped += 1
            continue
        dated.setdefault(when.year, {}).setdefault(when.month, []).append((when, document))

    if skipped:
        logger.debug(f"Skipped {skipped} document(s) without a usable date")

    buckets: Dict[int, Dict[int, Tuple[ArchiveDocument, ...]]] = {}
    for year, months in dated.items():
        buckets[year] = {}
        for month, entries in months.items():
            # sorted() is stable with reverse=True, ties keep input order
            ordered = sorted(entries, key=lambda entry: entry[0], reverse=True)
            buckets[year][month] = tuple(document for _, document in ordered)

    return YearMonthIndex(buckets)


def summarize(index: YearMonthIndex) -> List[YearSummary]:
    """Project the index into per-year month counts for the sidebar.

    Args:
        index: Index built by build_index

    Returns:
        Year summaries, most recent year first, months most recent first
    """
    return [
        YearSummary(
            year=year,
            months=tuple(
                MonthCount(month=month, count=len(index.items(year, month)))
                for month in index.months(year)
            )
        )
        for year in index.years()
    ]


def filter_by_category(
    documents: Sequence[ArchiveDocument],
    category_tag: Optional[str]
) -> List[ArchiveDocument]:
    """Keep documents whose category tag matches exactly.

    Args:
        documents: Catalog listing
        category_tag: Tag to keep; None or empty keeps everything

    Returns:
        Filtered list in input order
    """
    if not category_tag:
        return list(documents)
    return [doc for doc in documents if doc.category == category_tag]


def month_name(month: int) -> str:
    """English name of a month number (1-12).

    Raises:
        ValueError: If month is outside 1-12
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    return calendar.month_name[month]


class CatalogIndexCache:
    """Memoized index for a catalog list.

    The index is recomputed only when a different list object is passed;
    passing the same list again returns the cached index. Callers replace
    the list wholesale when the catalog changes instead of mutating it.

    Attributes:
        computations: Number of times the index was rebuilt
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._source: Optional[Sequence[ArchiveDocument]] = None
        self._index: YearMonthIndex = YearMonthIndex()
        self._summaries: List[YearSummary] = []
        self.computations = 0

    def get(self, documents: Sequence[ArchiveDocument]) -> YearMonthIndex:
        """Return the index for documents, rebuilding it on identity change."""
        with self._lock:
            if documents is not self._source:
                self._index = build_index(documents)
                self._summaries = summarize(self._index)
                self._source = documents
                self.computations += 1
                logger.debug(
                    f"Rebuilt catalog index: {self._index.document_count()} documents "
                    f"in {len(self._index)} year(s)"
                )
            return self._index

    def summaries(self, documents: Sequence[ArchiveDocument]) -> List[YearSummary]:
        """Return sidebar summaries for documents (shares the cached index)."""
        with self._lock:
            self.get(documents)
            return list(self._summaries)

    def invalidate(self) -> None:
        """Forget the cached source so the next get() rebuilds."""
        with self._lock:
            self._source = None
