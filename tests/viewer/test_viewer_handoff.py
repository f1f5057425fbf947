"""Tests for the viewer handoff."""

from unittest.mock import patch

import pytest

from periodical_archive.viewer.handoff import (
    NullRenderer,
    SystemViewerRenderer,
    ViewerHandoff,
    resolve_locator,
)

BASE_URL = "http://localhost:5000/"


class TestResolveLocator:
    """Tests for resolve_locator."""

    def test_relative_locator(self):
        assert resolve_locator(BASE_URL, "uploads/pdfs/x.pdf") == "http://localhost:5000/uploads/pdfs/x.pdf"

    def test_leading_slash(self):
        assert resolve_locator(BASE_URL, "/uploads/pdfs/x.pdf") == "http://localhost:5000/uploads/pdfs/x.pdf"

    def test_absolute_locator_unchanged(self):
        url = "https://cdn.example.org/x.pdf"
        assert resolve_locator(BASE_URL, url) == url

    def test_without_base_url(self):
        assert resolve_locator(None, "uploads/pdfs/x.pdf") == "uploads/pdfs/x.pdf"

    @pytest.mark.parametrize("base_url", [BASE_URL, None])
    def test_non_http_scheme_rejected(self, base_url):
        with pytest.raises(ValueError):
            resolve_locator(base_url, "file:///etc/passwd")


class TestViewerHandoff:
    """Tests for ViewerHandoff."""

    def test_open_and_close(self, recording_renderer):
        handoff = ViewerHandoff(recording_renderer, base_url=BASE_URL)

        url = handoff.open("uploads/pdfs/x.pdf", title="X")

        assert handoff.is_open
        assert handoff.current_url == url == "http://localhost:5000/uploads/pdfs/x.pdf"
        assert handoff.close() is True
        assert not handoff.is_open
        assert recording_renderer.calls == [("open", url), ("close", None)]

    def test_close_when_nothing_open(self, recording_renderer):
        handoff = ViewerHandoff(recording_renderer)

        assert handoff.close() is False
        assert recording_renderer.calls == []

    def test_opening_second_document_closes_first(self, recording_renderer):
        handoff = ViewerHandoff(recording_renderer, base_url=BASE_URL)

        handoff.open("a.pdf")
        handoff.open("b.pdf")

        assert [action for action, _ in recording_renderer.calls] == ["open", "close", "open"]
        assert handoff.current_url.endswith("b.pdf")

    def test_renderer_failure_leaves_nothing_open(self, failing_renderer):
        handoff = ViewerHandoff(failing_renderer)

        with pytest.raises(RuntimeError):
            handoff.open("a.pdf")

        assert not handoff.is_open

    def test_non_http_locator_never_reaches_renderer(self, recording_renderer):
        handoff = ViewerHandoff(recording_renderer, base_url=BASE_URL)

        with pytest.raises(ValueError):
            handoff.open("javascript:alert(1)")

        assert recording_renderer.calls == []
        assert not handoff.is_open


class TestRenderers:
    """Tests for the bundled renderers."""

    def test_null_renderer(self):
        renderer = NullRenderer()

        renderer.open("http://x/a.pdf")
        assert renderer.current_url == "http://x/a.pdf"
        assert renderer.opened_count == 1

        renderer.close()
        assert renderer.current_url is None

    @patch('periodical_archive.viewer.handoff.webbrowser.open')
    def test_system_viewer_opens_browser(self, mock_open):
        mock_open.return_value = True
        renderer = SystemViewerRenderer()

        renderer.open("http://x/a.pdf", title="A")

        mock_open.assert_called_once_with("http://x/a.pdf", new=2)
        assert renderer.current_url == "http://x/a.pdf"

    @patch('periodical_archive.viewer.handoff.webbrowser.open')
    def test_system_viewer_without_browser(self, mock_open):
        mock_open.return_value = False
        renderer = SystemViewerRenderer()

        with pytest.raises(RuntimeError):
            renderer.open("http://x/a.pdf")
