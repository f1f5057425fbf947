"""Tests for the ArchiveBrowser facade."""

from unittest.mock import Mock, patch

import pytest
import requests

from periodical_archive.browse.state import OverlayState
from periodical_archive.browser import ArchiveBrowser
from periodical_archive.config import ArchiveConfig

CATALOG_URL = "http://localhost:5000/api/pdf-uploads"
ACCESS_URL = "http://localhost:5000/api/pdf-uploads/access/"


@pytest.fixture
def archive_config(clean_environment, tmp_path):
    with patch('periodical_archive.utils.config_loader.get_standard_config_paths',
               return_value=[tmp_path / 'missing.json']):
        yield ArchiveConfig()


@pytest.fixture
def fake_server(sample_records, response_factory):
    """Route Session.get calls to canned catalog and access responses."""
    access = {}

    def get(url, **kwargs):
        if url == CATALOG_URL:
            return response_factory(200, sample_records)
        if url.startswith(ACCESS_URL):
            status, body = access[url[len(ACCESS_URL):]]
            return response_factory(status, body)
        return response_factory(404, {'message': 'Not found'})

    with patch('periodical_archive.catalog.client.requests.Session.get', side_effect=get):
        yield access


@pytest.fixture
def browser(archive_config, immediate_executor, recording_renderer):
    browser = ArchiveBrowser(archive_config, renderer=recording_renderer, executor=immediate_executor)
    yield browser
    browser.close()


class TestArchiveBrowser:
    """Tests for ArchiveBrowser."""

    def test_load_catalog(self, browser, fake_server):
        assert browser.load_catalog() is True

        assert browser.load_error is None
        assert [d.document_id for d in browser.documents] == ['doc-may-02', 'doc-may-15', 'doc-2022-dec']
        assert browser.state.visible_years() == (2023, 2022)

    def test_empty_category_loads_every_category(self, archive_config, immediate_executor, fake_server):
        archive_config.set('archive.category', '')

        with ArchiveBrowser(archive_config, executor=immediate_executor) as browser:
            assert browser.load_catalog() is True

            assert browser.category is None
            assert browser.find_document('doc-editorial') is not None
            assert len(browser.documents) == 4

    def test_load_failure_is_page_message(self, browser):
        with patch('periodical_archive.catalog.client.requests.Session.get',
                   side_effect=requests.ConnectionError("refused")):
            assert browser.load_catalog() is False

        assert "Could not reach the archive server" in browser.load_error.user_message
        assert browser.state.visible_years() == ()

    def test_server_error_message(self, browser, response_factory):
        with patch('periodical_archive.catalog.client.requests.Session.get',
                   return_value=response_factory(500, {'message': 'Server error'})):
            assert browser.load_catalog() is False

        assert browser.load_error.user_message == "Failed to load Archive PDFs."

    def test_refresh_keeps_selection(self, browser, fake_server):
        browser.load_catalog()
        browser.state.select_year(2023)
        browser.state.select_month(5)

        assert browser.refresh() is True
        assert browser.state.selection.month == 5

    def test_find_document(self, browser, fake_server):
        browser.load_catalog()

        assert browser.find_document('doc-may-15').title == 'Weekly Issue 20'
        assert browser.find_document('unknown') is None

    def test_granted_document_opens_viewer(self, browser, fake_server, sample_records, recording_renderer):
        fake_server['doc-may-02'] = (200, sample_records[0])
        browser.load_catalog()

        browser.state.activate_item(browser.find_document('doc-may-02'))

        assert browser.state.overlay == OverlayState.VIEWER_OPEN
        assert recording_renderer.opened == ["http://localhost:5000/uploads/pdfs/issue-18.pdf"]

    def test_subscription_prompt_uses_configured_link(self, archive_config, immediate_executor,
                                                      fake_server):
        archive_config.set('links.subscribe_url', 'https://shop.example.org/subscriptions')
        fake_server['doc-may-15'] = (403, {'message': 'Free view limit reached. Subscribe to view more.'})
        browser = ArchiveBrowser(archive_config, executor=immediate_executor)
        browser.load_catalog()

        browser.state.activate_item(browser.find_document('doc-may-15'))

        assert browser.state.overlay == OverlayState.SUBSCRIPTION_PROMPT
        assert browser.state.prompt.action_url == 'https://shop.example.org/subscriptions'
        browser.close()

    def test_invalid_configuration(self, archive_config):
        archive_config.set('api.base_url', 'ftp://archive.example.org')

        with pytest.raises(ValueError):
            ArchiveBrowser(archive_config)

    def test_close_cancels_pending_access(self, archive_config, deferred_executor, fake_server):
        browser = ArchiveBrowser(archive_config, executor=deferred_executor)
        browser.load_catalog()
        handle = browser.state.activate_item(browser.find_document('doc-may-02'))

        browser.close()

        assert handle.is_cancelled
        assert browser.state.overlay == OverlayState.NONE

    def test_close_leaves_caller_session_open(self, archive_config, immediate_executor):
        session = Mock(spec=requests.Session)
        session.headers = {}

        ArchiveBrowser(archive_config, session=session, executor=immediate_executor).close()

        session.close.assert_not_called()

    def test_close_closes_own_session(self, archive_config, immediate_executor):
        with patch('periodical_archive.browser.requests.Session.close') as mock_close:
            ArchiveBrowser(archive_config, executor=immediate_executor).close()

        mock_close.assert_called_once()
