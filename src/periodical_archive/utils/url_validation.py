"""URL Validation Utilities.

Validates the archive API base URL and builds endpoint and content URLs
from it.
"""

import ipaddress
import logging
from urllib.parse import urlparse, urljoin, quote
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ('http', 'https')


def is_loopback_host(hostname: str) -> bool:
    """Check if a hostname is localhost or a loopback IP address.

    Args:
        hostname: The hostname or IP address string to check

    Returns:
        True for localhost and loopback addresses, False otherwise
    """
    if not hostname:
        return False
    if hostname.lower() == 'localhost':
        return True
    try:
        return ipaddress.ip_address(hostname).is_loopback
    except ValueError:
        return False


def validate_api_base_url(url: Optional[str]) -> Tuple[bool, Optional[str], Optional[str]]:
    """Validate the archive API base URL.

    The URL must use http or https and carry a hostname. The normalized URL
    always ends with a single trailing slash so endpoint paths can be
    appended to it.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, normalized_url, error_message)

    Example:
        >>> validate_api_base_url("https://archive.example.org")
        (True, 'https://archive.example.org/', None)
    """
    if not url:
        return False, None, "API base URL cannot be empty"

    if not isinstance(url, str):
        return False, None, f"API base URL must be a string, got {type(url).__name__}"

    url = url.strip()
    if not url:
        return False, None, "API base URL cannot be empty or whitespace only"

    try:
        parsed = urlparse(url)
    except ValueError as e:
        logger.warning(f"Failed to parse URL '{url}': {e}")
        return False, None, f"Invalid URL format: {url}"

    if parsed.scheme not in ALLOWED_SCHEMES:
        return False, None, f"API base URL must use http or https (got: {parsed.scheme or 'no scheme'})"

    if not parsed.netloc:
        return False, None, f"Invalid URL format - missing hostname: {url}"

    normalized_url = url.rstrip('/') + '/'
    return True, normalized_url, None


def is_token_transport_safe(base_url: str) -> bool:
    """Check whether a bearer token may be sent to base_url.

    Tokens are only considered safe over https, or over plain http to a
    loopback host during local development.

    Args:
        base_url: The API base URL

    Returns:
        True if the transport protects the token
    """
    parsed = urlparse(base_url)
    if parsed.scheme == 'https':
        return True
    return is_loopback_host(parsed.hostname or '')


def build_endpoint_url(base_url: str, path_template: str, **params: str) -> str:
    """Build an endpoint URL from the base URL and a path template.

    Template parameters are percent-encoded so identifiers cannot alter the
    path structure.

    Args:
        base_url: Normalized API base URL (with trailing slash)
        path_template: Relative path, e.g. "api/pdf-uploads/access/{document_id}"
        **params: Values for the template placeholders

    Returns:
        Absolute endpoint URL

    Example:
        >>> build_endpoint_url("http://localhost:5000/", "api/pdf-uploads/access/{document_id}",
        ...                    document_id="abc")
        'http://localhost:5000/api/pdf-uploads/access/abc'
    """
    encoded = {key: quote(str(value), safe='') for key, value in params.items()}
    path = path_template.format(**encoded).lstrip('/')
    return base_url.rstrip('/') + '/' + path


def resolve_content_url(base_url: str, locator: str) -> str:
    """Resolve a server-relative content locator into an absolute URL.

    Locators such as "uploads/pdfs/issue.pdf" are resolved against the API
    base URL; absolute http(s) locators are returned unchanged.

    Args:
        base_url: Normalized API base URL
        locator: Content locator returned by the server

    Returns:
        Absolute content URL

    Raises:
        ValueError: If the locator carries a scheme other than http or https
    """
    parsed = urlparse(locator)
    if parsed.scheme:
        if parsed.scheme.lower() not in ALLOWED_SCHEMES or not parsed.netloc:
            raise ValueError(f"Refusing content locator with scheme '{parsed.scheme}': {locator}")
        return locator
    return urljoin(base_url, locator.lstrip('/'))
