"""Pytest configuration and fixtures for periodical_archive tests."""

import os
from typing import Any, Callable, List, Optional, Tuple
from unittest.mock import Mock

import pytest
import requests

from periodical_archive.catalog.data_types import ArchiveDocument
from periodical_archive.viewer.handoff import PdfRenderer


ARCHIVE_ENV_VARS = [
    'ARCHIVE_API_BASE_URL',
    'ARCHIVE_API_TIMEOUT',
    'ARCHIVE_CATEGORY',
    'ARCHIVE_MAX_WORKERS',
    'ARCHIVE_CLIENT_TOKEN',
]


class DeferredExecutor:
    """Executor that queues submitted work until a test runs it.

    Lets tests decide the order in which access checks complete.
    """

    def __init__(self):
        self.jobs: List[Tuple[Callable, tuple, dict]] = []
        self.shutdown_called = False

    def submit(self, fn, *args, **kwargs):
        self.jobs.append((fn, args, kwargs))
        return Mock()

    def run(self, position: int = 0) -> None:
        """Run and remove the job at position (submission order)."""
        fn, args, kwargs = self.jobs.pop(position)
        fn(*args, **kwargs)

    def run_all(self) -> None:
        while self.jobs:
            self.run(0)

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        self.shutdown_called = True


class ImmediateExecutor:
    """Executor running submitted work synchronously."""

    def submit(self, fn, *args, **kwargs):
        fn(*args, **kwargs)
        return Mock()

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        pass


class RecordingRenderer(PdfRenderer):
    """Renderer recording open/close calls."""

    def __init__(self, fail_on_open: bool = False):
        self.calls: List[Tuple[str, Optional[str]]] = []
        self.fail_on_open = fail_on_open

    def open(self, url: str, title: Optional[str] = None) -> None:
        if self.fail_on_open:
            raise RuntimeError("renderer unavailable")
        self.calls.append(("open", url))

    def close(self) -> None:
        self.calls.append(("close", None))

    @property
    def opened(self) -> List[str]:
        return [url for action, url in self.calls if action == "open"]


def make_response(
    status_code: int = 200,
    json_data: Any = None,
    json_error: bool = False,
    reason: str = "OK"
) -> Mock:
    """Build a mock requests.Response."""
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.reason = reason
    if json_error:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def clean_environment():
    """Fixture to clear archive environment variables during a test."""
    original_env = {}
    for var in ARCHIVE_ENV_VARS:
        original_env[var] = os.environ.get(var)
        os.environ.pop(var, None)

    yield

    for var, value in original_env.items():
        if value is None:
            os.environ.pop(var, None)
        else:
            os.environ[var] = value


@pytest.fixture
def sample_records():
    """Catalog records in the server's wire format."""
    return [
        {
            '_id': 'doc-may-02',
            'title': 'Weekly Issue 18',
            'subtitle': 'Harvest edition',
            'date': '2023-05-02T00:00:00.000Z',
            'category': {'en': 'Archive', 'ta': 'காப்பகம்'},
            'imageUrl': 'uploads/images/issue-18.jpg',
            'pdfUrl': 'uploads/pdfs/issue-18.pdf',
            'createdAt': '2023-06-01T09:30:00.000Z',
            'visibility': 'public',
            'freeViewLimit': 3,
            'views': 12,
        },
        {
            '_id': 'doc-may-15',
            'title': 'Weekly Issue 20',
            'date': '2023-05-15T00:00:00.000Z',
            'category': {'en': 'Archive'},
            'pdfUrl': 'uploads/pdfs/issue-20.pdf',
            'createdAt': '2023-06-01T09:31:00.000Z',
            'visibility': 'subscribers',
        },
        {
            '_id': 'doc-2022-dec',
            'title': 'Year-end Issue',
            'date': '2022-12-28',
            'category': {'en': 'Archive'},
            'pdfUrl': 'uploads/pdfs/year-end.pdf',
        },
        {
            '_id': 'doc-editorial',
            'title': 'Editorial',
            'date': '2023-05-20',
            'category': {'en': 'Editorial'},
            'pdfUrl': 'uploads/pdfs/editorial.pdf',
        },
    ]


@pytest.fixture
def sample_documents(sample_records):
    """Parsed Archive documents (editorial excluded)."""
    return [
        ArchiveDocument.from_dict(record)
        for record in sample_records
        if record['category']['en'] == 'Archive'
    ]


@pytest.fixture
def make_document():
    """Factory for documents with a publication date."""
    def _make(document_id: str, date: Optional[str] = None, uploaded_at: Optional[str] = None,
              title: Optional[str] = None, category: str = 'Archive',
              locator: Optional[str] = None) -> ArchiveDocument:
        return ArchiveDocument(
            document_id=document_id,
            title=title or f"Issue {document_id}",
            publication_date=date,
            uploaded_at=uploaded_at,
            category=category,
            content_locator=locator
        )
    return _make


@pytest.fixture
def deferred_executor():
    """Executor whose jobs run only when the test says so."""
    return DeferredExecutor()


@pytest.fixture
def immediate_executor():
    """Executor running jobs synchronously."""
    return ImmediateExecutor()


@pytest.fixture
def recording_renderer():
    """Renderer recording open/close calls."""
    return RecordingRenderer()


@pytest.fixture
def response_factory():
    """Factory for mock requests.Response objects."""
    return make_response


@pytest.fixture
def failing_renderer():
    """Renderer whose open() raises."""
    return RecordingRenderer(fail_on_open=True)
