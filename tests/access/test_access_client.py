"""Tests for the access check client."""

import pytest
import requests
from unittest.mock import patch

from periodical_archive.access.client import AccessCheckClient
from periodical_archive.access.data_types import CancellationToken
from periodical_archive.exceptions import (
    AccessAuthenticationRequired,
    AccessCancelled,
    AccessSubscriptionRequired,
    AccessTransientError,
)
from periodical_archive.utils.error_messages import (
    CONTENT_UNAVAILABLE_MESSAGE,
    GENERIC_ACCESS_ERROR_MESSAGE,
    LOGIN_REQUIRED_MESSAGE,
    NETWORK_ERROR_MESSAGE,
)

BASE_URL = "http://localhost:5000/"
GRANTED_BODY = {
    '_id': 'doc-1',
    'title': 'Weekly Issue 18',
    'date': '2023-05-02',
    'pdfUrl': 'uploads/pdfs/issue-18.pdf',
    'category': {'en': 'Archive'},
}


class TestAccessCheckClient:
    """Tests for AccessCheckClient.check_access."""

    def test_access_url_quotes_identifier(self):
        client = AccessCheckClient(BASE_URL)

        assert client.access_url('doc-1') == "http://localhost:5000/api/pdf-uploads/access/doc-1"
        assert client.access_url('a/b') == "http://localhost:5000/api/pdf-uploads/access/a%2Fb"

    @patch('periodical_archive.access.client.requests.Session.get')
    def test_granted(self, mock_get, response_factory):
        mock_get.return_value = response_factory(200, GRANTED_BODY)
        client = AccessCheckClient(BASE_URL, timeout=9)

        document = client.check_access('doc-1')

        assert document.content_locator == 'uploads/pdfs/issue-18.pdf'
        args, kwargs = mock_get.call_args
        assert args[0] == "http://localhost:5000/api/pdf-uploads/access/doc-1"
        assert kwargs['timeout'] == 9
        assert 'Authorization' not in kwargs['headers']

    @patch('periodical_archive.access.client.requests.Session.get')
    def test_bearer_token_attached(self, mock_get, response_factory):
        mock_get.return_value = response_factory(200, GRANTED_BODY)
        client = AccessCheckClient(BASE_URL)

        client.check_access('doc-1', auth_token='secret')

        assert mock_get.call_args.kwargs['headers']['Authorization'] == 'Bearer secret'

    @patch('periodical_archive.access.client.requests.Session.get')
    def test_granted_envelope(self, mock_get, response_factory):
        mock_get.return_value = response_factory(200, {'success': True, 'data': GRANTED_BODY})
        client = AccessCheckClient(BASE_URL)

        assert client.check_access('doc-1').title == 'Weekly Issue 18'

    @patch('periodical_archive.access.client.requests.Session.get')
    def test_granted_without_locator(self, mock_get, response_factory):
        body = dict(GRANTED_BODY)
        body.pop('pdfUrl')
        mock_get.return_value = response_factory(200, body)
        client = AccessCheckClient(BASE_URL)

        with pytest.raises(AccessTransientError, match=CONTENT_UNAVAILABLE_MESSAGE):
            client.check_access('doc-1')

    @patch('periodical_archive.access.client.requests.Session.get')
    def test_granted_non_json(self, mock_get, response_factory):
        mock_get.return_value = response_factory(200, json_error=True)
        client = AccessCheckClient(BASE_URL)

        with pytest.raises(AccessTransientError, match=CONTENT_UNAVAILABLE_MESSAGE):
            client.check_access('doc-1')

    @patch('periodical_archive.access.client.requests.Session.get')
    def test_status_is_authoritative(self, mock_get, response_factory):
        """A 2xx body shaped like an error is still a grant."""
        body = dict(GRANTED_BODY, success=False, message='ignored')
        mock_get.return_value = response_factory(200, body)
        client = AccessCheckClient(BASE_URL)

        assert client.check_access('doc-1').document_id == 'doc-1'

    @patch('periodical_archive.access.client.requests.Session.get')
    def test_401(self, mock_get, response_factory):
        mock_get.return_value = response_factory(401, {'message': 'Unauthorized'})
        client = AccessCheckClient(BASE_URL)

        with pytest.raises(AccessAuthenticationRequired) as exc_info:
            client.check_access('doc-1')

        assert str(exc_info.value) == LOGIN_REQUIRED_MESSAGE
        assert exc_info.value.status_code == 401

    @patch('periodical_archive.access.client.requests.Session.get')
    def test_403_keeps_message_and_preview(self, mock_get, response_factory):
        mock_get.return_value = response_factory(403, {
            'message': 'Free view limit reached. Subscribe to view more.',
            'requiresSubscription': True,
            'pdfPreview': {'_id': 'doc-1', 'title': 'Weekly Issue 18'},
        })
        client = AccessCheckClient(BASE_URL)

        with pytest.raises(AccessSubscriptionRequired) as exc_info:
            client.check_access('doc-1')

        assert "Free view limit reached" in str(exc_info.value)
        assert exc_info.value.preview == {'_id': 'doc-1', 'title': 'Weekly Issue 18'}

    @patch('periodical_archive.access.client.requests.Session.get')
    def test_404_is_transient(self, mock_get, response_factory):
        mock_get.return_value = response_factory(404, {'message': 'PDF not found'})
        client = AccessCheckClient(BASE_URL)

        with pytest.raises(AccessTransientError) as exc_info:
            client.check_access('doc-1')

        assert exc_info.value.status_code == 404
        assert "not found" in str(exc_info.value).lower()

    @patch('periodical_archive.access.client.requests.Session.get')
    def test_500_is_transient(self, mock_get, response_factory):
        mock_get.return_value = response_factory(500, {'message': 'Server error'})
        client = AccessCheckClient(BASE_URL)

        with pytest.raises(AccessTransientError) as exc_info:
            client.check_access('doc-1')

        assert exc_info.value.status_code == 500

    @patch('periodical_archive.access.client.requests.Session.get')
    def test_network_failure(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("refused")
        client = AccessCheckClient(BASE_URL)

        with pytest.raises(AccessTransientError, match=NETWORK_ERROR_MESSAGE):
            client.check_access('doc-1')

    @patch('periodical_archive.access.client.requests.Session.get')
    def test_timeout(self, mock_get):
        mock_get.side_effect = requests.Timeout("read timed out")
        client = AccessCheckClient(BASE_URL)

        with pytest.raises(AccessTransientError):
            client.check_access('doc-1')

    @patch('periodical_archive.access.client.requests.Session.get')
    def test_cancelled_before_send(self, mock_get):
        token = CancellationToken()
        token.cancel()
        client = AccessCheckClient(BASE_URL)

        with pytest.raises(AccessCancelled):
            client.check_access('doc-1', token=token)

        mock_get.assert_not_called()

    @patch('periodical_archive.access.client.requests.Session.get')
    def test_cancelled_while_in_flight(self, mock_get, response_factory):
        token = CancellationToken()
        response = response_factory(200, GRANTED_BODY)

        def send(*args, **kwargs):
            token.cancel()
            return response

        mock_get.side_effect = send
        client = AccessCheckClient(BASE_URL)

        with pytest.raises(AccessCancelled):
            client.check_access('doc-1', token=token)

        response.close.assert_called()

    @patch('periodical_archive.access.client.requests.Session.get')
    def test_unexpected_status_message(self, mock_get, response_factory):
        mock_get.return_value = response_factory(418, {})
        client = AccessCheckClient(BASE_URL)

        with pytest.raises(AccessTransientError, match=GENERIC_ACCESS_ERROR_MESSAGE):
            client.check_access('doc-1')
