"""Data types for the archive catalog.

Defines the archive document record as returned by the catalog listing
endpoint, the immutable year/month index derived from it, and the summary
projection used for sidebar counts.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Optional, Dict, Any, Tuple, Iterator, Mapping

from ..utils.validation import ensure_string, ensure_optional_string, ensure_int, ensure_dict


class DateSource(Enum):
    """Which record field places a document in the chronology."""

    PUBLICATION = "publication"  # Publication date of the issue
    UPLOAD = "upload"  # Upload timestamp, used when no publication date exists


class Visibility(Enum):
    """Server-side visibility of a document."""

    PUBLIC = "public"
    SUBSCRIBERS = "subscribers"
    UNKNOWN = "unknown"


def parse_document_date(value: Any) -> Optional[datetime]:
    """Parse a date value from an archive record.

    Accepts ISO 8601 strings (with or without time, "Z" suffix or offset),
    datetime/date objects and epoch milliseconds. Timezone-aware values are
    converted to UTC; the result is always naive so that all documents
    compare with each other.

    Args:
        value: Raw date value

    Returns:
        Naive datetime, or None if the value cannot be parsed
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(('Z', 'z')):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@dataclass(frozen=True)
class ArchiveDocument:
    """One scanned periodical issue from the catalog listing.

    Attributes:
        document_id: Server identifier
        title: Issue title
        subtitle: Optional subtitle
        publication_date: Raw publication date as sent by the server
        category: Category tag (e.g. "Archive", "Editorial")
        category_label: Localized category label, if provided
        cover_image: Server-relative cover image reference
        content_locator: Server-relative PDF locator; only the access check
            may hand it to a viewer
        uploaded_at: Raw upload timestamp
        visibility: Server visibility setting
        free_view_limit: Free previews allowed per visitor, if reported
        views: Total view count, if reported
    """

    document_id: str
    title: str
    subtitle: Optional[str] = None
    publication_date: Optional[str] = None
    category: str = ""
    category_label: Optional[str] = None
    cover_image: Optional[str] = None
    content_locator: Optional[str] = None
    uploaded_at: Optional[str] = None
    visibility: Visibility = Visibility.UNKNOWN
    free_view_limit: Optional[int] = None
    views: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False, repr=False)

    @property
    def date_source(self) -> Optional[DateSource]:
        """Field used for chronological placement, or None without dates.

        The publication date wins whenever it is present, even if it turns
        out to be unparseable; the upload timestamp is only a fallback for
        records that have no publication date at all.
        """
        if self.publication_date:
            return DateSource.PUBLICATION
        if self.uploaded_at:
            return DateSource.UPLOAD
        return None

    def chronological_date(self) -> Optional[datetime]:
        """Parse the date used for year/month placement and ordering."""
        source = self.date_source
        if source is DateSource.PUBLICATION:
            return parse_document_date(self.publication_date)
        if source is DateSource.UPLOAD:
            return parse_document_date(self.uploaded_at)
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArchiveDocument":
        """Create from a catalog or access-check JSON record.

        Args:
            data: Record with server field names (_id, title, date, pdfUrl, ...)

        Returns:
            ArchiveDocument

        Raises:
            ValueError: If the record has no identifier
        """
        document_id = ensure_optional_string(data.get('_id') or data.get('id'))
        if not document_id:
            raise ValueError("Archive record has no identifier")

        category = data.get('category')
        if isinstance(category, dict):
            category_tag = ensure_string(category.get('en')).strip()
            category_label = ensure_optional_string(category.get('ta'))
        else:
            category_tag = ensure_string(category).strip()
            category_label = None

        try:
            visibility = Visibility(ensure_string(data.get('visibility')).strip().lower())
        except ValueError:
            visibility = Visibility.UNKNOWN

        free_view_limit = data.get('freeViewLimit')
        views = data.get('views')

        known_keys = {
            '_id', 'id', 'title', 'subtitle', 'date', 'category', 'imageUrl',
            'pdfUrl', 'createdAt', 'visibility', 'freeViewLimit', 'views'
        }

        return cls(
            document_id=document_id,
            title=ensure_string(data.get('title')).strip(),
            subtitle=ensure_optional_string(data.get('subtitle')),
            publication_date=_raw_date(data.get('date')),
            category=category_tag,
            category_label=category_label,
            cover_image=ensure_optional_string(data.get('imageUrl')),
            content_locator=ensure_optional_string(data.get('pdfUrl')),
            uploaded_at=_raw_date(data.get('createdAt')),
            visibility=visibility,
            free_view_limit=ensure_int(free_view_limit) if free_view_limit is not None else None,
            views=ensure_int(views) if views is not None else None,
            metadata={k: v for k, v in ensure_dict(data).items() if k not in known_keys}
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the server field names."""
        category: Dict[str, Any] = {'en': self.category}
        if self.category_label:
            category['ta'] = self.category_label
        return {
            '_id': self.document_id,
            'title': self.title,
            'subtitle': self.subtitle,
            'date': self.publication_date,
            'category': category,
            'imageUrl': self.cover_image,
            'pdfUrl': self.content_locator,
            'createdAt': self.uploaded_at,
            'visibility': self.visibility.value,
            'freeViewLimit': self.free_view_limit,
            'views': self.views,
        }


def _raw_date(value: Any) -> Optional[str]:
    """Keep a date field as text; datetimes and epoch millis become ISO text."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (int, float)):
        parsed = parse_document_date(value)
        return parsed.isoformat() if parsed else str(value)
    text = ensure_string(value).strip()
    return text or None


@dataclass(frozen=True)
class MonthCount:
    """Number of documents in one month of a year."""

    month: int
    count: int


@dataclass(frozen=True)
class YearSummary:
    """Sidebar entry for one year: months in descending order with counts."""

    year: int
    months: Tuple[MonthCount, ...] = ()

    @property
    def total(self) -> int:
        """Total number of documents in the year."""
        return sum(m.count for m in self.months)


class YearMonthIndex:
    """Immutable year -> month -> documents index.

    Years, months and documents are stored and enumerated in descending
    order. Only years and months holding at least one document are present.
    Instances are built by ``build_index`` and never mutated.
    """

    __slots__ = ('_years',)

    def __init__(self, buckets: Optional[Dict[int, Dict[int, Tuple[ArchiveDocument, ...]]]] = None):
        """Initialize from already-ordered buckets.

        Args:
            buckets: year -> month -> documents; empty buckets are dropped
        """
        years: Dict[int, Mapping[int, Tuple[ArchiveDocument, ...]]] = {}
        for year in sorted(buckets or {}, reverse=True):
            months = {
                month: tuple(docs)
                for month, docs in sorted(buckets[year].items(), reverse=True)
                if docs
            }
            if months:
                years[year] = MappingProxyType(months)
        self._years: Mapping[int, Mapping[int, Tuple[ArchiveDocument, ...]]] = MappingProxyType(years)

    def years(self) -> Tuple[int, ...]:
        """Years present in the index, most recent first."""
        return tuple(self._years)

    def months(self, year: int) -> Tuple[int, ...]:
        """Months present for a year, most recent first (empty if absent)."""
        return tuple(self._years.get(year, {}))

    def items(self, year: int, month: int) -> Tuple[ArchiveDocument, ...]:
        """Documents for a year and month, most recent first (empty if absent)."""
        return self._years.get(year, {}).get(month, ())

    def document_count(self) -> int:
        """Total number of indexed documents."""
        return sum(len(docs) for months in self._years.values() for docs in months.values())

    def is_empty(self) -> bool:
        """True when no document could be placed."""
        return not self._years

    def as_dict(self) -> Dict[int, Dict[int, Tuple[ArchiveDocument, ...]]]:
        """Return a plain-dict copy of the index."""
        return {year: dict(months) for year, months in self._years.items()}

    def __getitem__(self, year: int) -> Mapping[int, Tuple[ArchiveDocument, ...]]:
        return self._years[year]

    def __contains__(self, year: object) -> bool:
        return year in self._years

    def __iter__(self) -> Iterator[int]:
        return iter(self._years)

    def __len__(self) -> int:
        return len(self._years)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, YearMonthIndex):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def __hash__(self) -> int:
        return hash(tuple(
            (year, month, tuple(d.document_id for d in docs))
            for year, months in self._years.items()
            for month, docs in months.items()
        ))

    def __repr__(self) -> str:
        return f"YearMonthIndex(years={list(self._years)}, documents={self.document_count()})"
