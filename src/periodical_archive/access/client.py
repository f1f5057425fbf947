"""Access check client.

Performs the per-document access check against the archive server and
classifies the response strictly by HTTP status:

- 2xx: access granted, the body carries the content locator
- 401: a logged-in visitor is required
- 403: the free-view quota is exhausted and no subscription covers it
- anything else, including network failures: transient error

Failures are raised as the AccessCheckError family; AccessController maps
them to AccessOutcome values.
"""

import logging
import time
from typing import Optional, Dict, Any

import requests

from .data_types import CancellationToken
from ..catalog.data_types import ArchiveDocument
from ..exceptions import (
    AccessAuthenticationRequired,
    AccessSubscriptionRequired,
    AccessTransientError,
)
from ..utils.error_messages import (
    LOGIN_REQUIRED_MESSAGE,
    SUBSCRIPTION_REQUIRED_MESSAGE,
    CONTENT_UNAVAILABLE_MESSAGE,
    format_access_error,
)
from ..utils.url_validation import build_endpoint_url

logger = logging.getLogger(__name__)

# Default timeout for HTTP requests (seconds)
DEFAULT_TIMEOUT = 30

USER_AGENT = 'periodical-archive/0.1 (+requests)'


class AccessCheckClient:
    """Client for the access check endpoint."""

    def __init__(
        self,
        base_url: str,
        access_path: str = "api/pdf-uploads/access/{document_id}",
        timeout: int = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None
    ):
        """Initialize access check client.

        Args:
            base_url: Normalized API base URL (with trailing slash)
            access_path: Endpoint path template with a {document_id} placeholder
            timeout: HTTP request timeout in seconds
            session: Optional shared requests session
        """
        self.base_url = base_url
        self.access_path = access_path
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': USER_AGENT,
            'Accept': 'application/json'
        })

    def access_url(self, document_id: str) -> str:
        """Absolute URL of the access check for a document."""
        return build_endpoint_url(self.base_url, self.access_path, document_id=document_id)

    def check_access(
        self,
        document_id: str,
        auth_token: Optional[str] = None,
        token: Optional[CancellationToken] = None
    ) -> ArchiveDocument:
        """Run the access check for one document.

        The bearer token is attached only when given; anonymous checks are
        evaluated by the server against the visitor's free-view quota.

        Args:
            document_id: Document identifier
            auth_token: Optional bearer token of a logged-in visitor
            token: Cancellation token checked before sending and before
                interpreting the response

        Returns:
            The granted document, with its content locator

        Raises:
            AccessAuthenticationRequired: HTTP 401
            AccessSubscriptionRequired: HTTP 403
            AccessTransientError: Any other status, network failure or a
                granted response without a usable locator
            AccessCancelled: If the token was cancelled
        """
        token = token or CancellationToken()
        token.raise_if_cancelled(document_id)

        url = self.access_url(document_id)
        headers = {}
        if auth_token:
            headers['Authorization'] = f'Bearer {auth_token}'

        start_time = time.time()
        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout, stream=True)
        except requests.RequestException as e:
            token.raise_if_cancelled(document_id)
            friendly = format_access_error(e, document_id=document_id)
            friendly.log(logging.WARNING)
            raise AccessTransientError(friendly.user_message, document_id=document_id) from e

        # Closing the response aborts a body download still in progress
        token.add_callback(response.close)
        try:
            token.raise_if_cancelled(document_id)
            status = response.status_code
            duration_ms = (time.time() - start_time) * 1000
            logger.debug(f"Access check for {document_id} returned {status} ({duration_ms:.0f}ms)")

            if 200 <= status < 300:
                return self._parse_granted(response, document_id, token)

            body = _json_body(response)
            if status == 401:
                raise AccessAuthenticationRequired(
                    LOGIN_REQUIRED_MESSAGE, document_id=document_id, status_code=status
                )
            if status == 403:
                preview = body.get('pdfPreview') if isinstance(body.get('pdfPreview'), dict) else None
                raise AccessSubscriptionRequired(
                    body.get('message') or SUBSCRIPTION_REQUIRED_MESSAGE,
                    document_id=document_id,
                    status_code=status,
                    preview=preview
                )

            server_message = body.get('message') or body.get('error') or response.reason
            friendly = format_access_error(
                Exception(f"HTTP {status}: {server_message}"),
                document_id=document_id,
                status_code=status
            )
            friendly.log(logging.WARNING)
            raise AccessTransientError(friendly.user_message, document_id=document_id, status_code=status)
        finally:
            response.close()

    def _parse_granted(
        self,
        response: requests.Response,
        document_id: str,
        token: CancellationToken
    ) -> ArchiveDocument:
        """Parse a 2xx body into the granted document."""
        try:
            body = response.json()
        except (ValueError, requests.RequestException) as e:
            token.raise_if_cancelled(document_id)
            friendly = format_access_error(ValueError(f"granted body is not JSON: {e}"), document_id=document_id)
            friendly.log(logging.WARNING)
            raise AccessTransientError(friendly.user_message, document_id=document_id,
                                       status_code=response.status_code) from e

        token.raise_if_cancelled(document_id)

        # Accept both the bare record and the {"success", "data"} envelope
        if isinstance(body, dict) and isinstance(body.get('data'), dict):
            body = body['data']

        if not isinstance(body, dict):
            logger.warning(f"Granted response for {document_id} is not an object")
            raise AccessTransientError(CONTENT_UNAVAILABLE_MESSAGE, document_id=document_id,
                                       status_code=response.status_code)

        record = dict(body)
        record.setdefault('_id', document_id)
        try:
            document = ArchiveDocument.from_dict(record)
        except ValueError as e:
            logger.warning(f"Granted response for {document_id} is unusable: {e}")
            raise AccessTransientError(CONTENT_UNAVAILABLE_MESSAGE, document_id=document_id,
                                       status_code=response.status_code) from e

        if not document.content_locator:
            logger.warning(f"Granted response for {document_id} has no content locator")
            raise AccessTransientError(CONTENT_UNAVAILABLE_MESSAGE, document_id=document_id,
                                       status_code=response.status_code)

        return document


def _json_body(response: requests.Response) -> Dict[str, Any]:
    """Return the JSON object body of an error response, or an empty dict."""
    try:
        body = response.json()
    except (ValueError, requests.RequestException):
        return {}
    return body if isinstance(body, dict) else {}
