"""Standardized Error Messages for the archive.

Provides user-friendly error messages for catalog loading and access checks,
keeping technical details for logging.
"""

import logging
from typing import Optional
from enum import Enum

import requests

from ..exceptions import CatalogLoadError

logger = logging.getLogger(__name__)

# User copy shown in the access prompts
LOGIN_REQUIRED_MESSAGE = "Login required to view this PDF."
SUBSCRIPTION_REQUIRED_TITLE = "Free View Limit Exceeded"
SUBSCRIPTION_REQUIRED_MESSAGE = (
    "You've read your free preview of this PDF. To continue reading and "
    "unlock unlimited access to all PDF, please subscribe."
)
CONTENT_UNAVAILABLE_MESSAGE = "PDF file not available or corrupted."
GENERIC_ACCESS_ERROR_MESSAGE = "An error occurred while fetching the PDF."
NETWORK_ERROR_MESSAGE = "Network error. Please try again."


class ErrorCategory(Enum):
    """Categories of errors for consistent messaging."""
    NETWORK = "network"
    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"
    SERVER = "server"
    AUTHENTICATION = "authentication"
    SUBSCRIPTION = "subscription"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


class UserFriendlyError:
    """Encapsulates an error with both user-friendly and technical details.

    Attributes:
        user_message: Message suitable for display to end users
        technical_message: Detailed message for logging/debugging
        category: Error category for routing/handling
        original_exception: Original exception if available
    """

    def __init__(
        self,
        user_message: str,
        technical_message: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        original_exception: Optional[Exception] = None
    ):
        self.user_message = user_message
        self.technical_message = technical_message or user_message
        self.category = category
        self.original_exception = original_exception

    def __str__(self) -> str:
        """Return user-friendly message."""
        return self.user_message

    def log(self, level: int = logging.WARNING) -> None:
        """Log the technical error details."""
        logger.log(level, self.technical_message, exc_info=self.original_exception)


def format_access_error(
    error: Exception,
    document_id: Optional[str] = None,
    status_code: Optional[int] = None
) -> UserFriendlyError:
    """Format an access check failure with a user-friendly message.

    Only used for transient failures; authentication and subscription
    outcomes have their own prompts.

    Args:
        error: The original exception
        document_id: Document identifier if available
        status_code: HTTP status code if a response was received

    Returns:
        UserFriendlyError with appropriate messaging
    """
    doc_context = f" for document {document_id}" if document_id else ""

    if isinstance(error, requests.Timeout):
        return UserFriendlyError(
            user_message="The archive server took too long to respond. Please try again.",
            technical_message=f"Timeout during access check{doc_context}: {error}",
            category=ErrorCategory.TIMEOUT,
            original_exception=error
        )

    if isinstance(error, requests.ConnectionError):
        return UserFriendlyError(
            user_message=NETWORK_ERROR_MESSAGE,
            technical_message=f"Connection error during access check{doc_context}: {error}",
            category=ErrorCategory.NETWORK,
            original_exception=error
        )

    if status_code == 404:
        return UserFriendlyError(
            user_message="PDF not found. It may have been removed from the archive.",
            technical_message=f"HTTP 404 - Not found{doc_context}: {error}",
            category=ErrorCategory.NOT_FOUND,
            original_exception=error
        )

    if status_code is not None and status_code >= 500:
        return UserFriendlyError(
            user_message=GENERIC_ACCESS_ERROR_MESSAGE,
            technical_message=f"HTTP {status_code} - Server error{doc_context}: {error}",
            category=ErrorCategory.SERVER,
            original_exception=error
        )

    if isinstance(error, ValueError):
        return UserFriendlyError(
            user_message=CONTENT_UNAVAILABLE_MESSAGE,
            technical_message=f"Invalid access response{doc_context}: {error}",
            category=ErrorCategory.VALIDATION,
            original_exception=error
        )

    if isinstance(error, requests.RequestException):
        return UserFriendlyError(
            user_message=NETWORK_ERROR_MESSAGE,
            technical_message=f"Request error during access check{doc_context}: {error}",
            category=ErrorCategory.NETWORK,
            original_exception=error
        )

    return UserFriendlyError(
        user_message=GENERIC_ACCESS_ERROR_MESSAGE,
        technical_message=f"Access check error{doc_context}: {error}",
        category=ErrorCategory.INTERNAL,
        original_exception=error
    )


def format_catalog_error(
    error: Exception,
    category_tag: Optional[str] = None
) -> UserFriendlyError:
    """Format a catalog loading failure with a user-friendly message.

    Args:
        error: The original exception
        category_tag: Catalog category that was being loaded

    Returns:
        UserFriendlyError with appropriate messaging
    """
    tag_context = f" {category_tag}" if category_tag else ""

    if isinstance(error, requests.Timeout):
        return UserFriendlyError(
            user_message=f"Loading{tag_context} PDFs timed out. Please try again later.",
            technical_message=f"Timeout loading catalog{tag_context}: {error}",
            category=ErrorCategory.TIMEOUT,
            original_exception=error
        )

    if isinstance(error, requests.ConnectionError):
        return UserFriendlyError(
            user_message="Could not reach the archive server. Please check your connection.",
            technical_message=f"Connection error loading catalog{tag_context}: {error}",
            category=ErrorCategory.NETWORK,
            original_exception=error
        )

    if isinstance(error, CatalogLoadError):
        return UserFriendlyError(
            user_message=f"Failed to load{tag_context} PDFs.",
            technical_message=f"Catalog request failed{tag_context} (status={error.status_code}): {error}",
            category=ErrorCategory.SERVER,
            original_exception=error
        )

    if isinstance(error, ValueError):
        return UserFriendlyError(
            user_message=f"Failed to load{tag_context} PDFs.",
            technical_message=f"Invalid catalog response{tag_context}: {error}",
            category=ErrorCategory.VALIDATION,
            original_exception=error
        )

    return UserFriendlyError(
        user_message=f"Unexpected error loading{tag_context} PDFs.",
        technical_message=f"Catalog load error{tag_context}: {error}",
        category=ErrorCategory.INTERNAL,
        original_exception=error
    )


def format_configuration_error(
    error: Exception,
    config_key: Optional[str] = None
) -> UserFriendlyError:
    """Format a configuration error with user-friendly message.

    Args:
        error: The original exception
        config_key: Configuration key that caused the error

    Returns:
        UserFriendlyError with appropriate messaging
    """
    key_context = f" ({config_key})" if config_key else ""

    if "url" in str(error).lower():
        return UserFriendlyError(
            user_message=f"Invalid URL in configuration{key_context}. Please check your settings.",
            technical_message=f"URL configuration error{key_context}: {error}",
            category=ErrorCategory.CONFIGURATION,
            original_exception=error
        )

    return UserFriendlyError(
        user_message=f"Configuration error{key_context}. Please check your settings.",
        technical_message=f"Configuration error{key_context}: {error}",
        category=ErrorCategory.CONFIGURATION,
        original_exception=error
    )
