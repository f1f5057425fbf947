"""Archive catalog: document records, the year/month index and the listing client.

Example usage:
    from periodical_archive.catalog import CatalogClient, build_index, summarize

    client = CatalogClient(base_url="http://localhost:5000/")
    documents = client.fetch_documents(category_tag="Archive")

    index = build_index(documents)
    for summary in summarize(index):
        print(summary.year, [(m.month, m.count) for m in summary.months])
"""

from .data_types import (
    DateSource,
    Visibility,
    ArchiveDocument,
    MonthCount,
    YearSummary,
    YearMonthIndex,
    parse_document_date
)

from .indexer import (
    build_index,
    summarize,
    filter_by_category,
    month_name,
    CatalogIndexCache
)

from .client import (
    CatalogClient,
    parse_documents
)

__all__ = [
    # Data types
    'DateSource',
    'Visibility',
    'ArchiveDocument',
    'MonthCount',
    'YearSummary',
    'YearMonthIndex',
    'parse_document_date',
    # Indexing
    'build_index',
    'summarize',
    'filter_by_category',
    'month_name',
    'CatalogIndexCache',
    # Listing client
    'CatalogClient',
    'parse_documents',
]
