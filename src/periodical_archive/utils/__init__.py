"""Utility modules for the periodical archive."""

from .path_utils import (
    expand_path,
    get_config_dir,
    get_default_config_path,
    get_local_config_path
)

from .config_loader import (
    find_config_file,
    load_json_config,
    load_config_with_fallback,
    merge_configs
)

from .url_validation import (
    validate_api_base_url,
    is_token_transport_safe,
    build_endpoint_url,
    resolve_content_url
)

from .error_messages import (
    ErrorCategory,
    UserFriendlyError,
    format_access_error,
    format_catalog_error,
    format_configuration_error
)

from .validation import (
    validate_positive_int,
    ensure_string,
    ensure_optional_string,
    ensure_int,
    ensure_dict
)

__all__ = [
    # Path utilities
    'expand_path',
    'get_config_dir',
    'get_default_config_path',
    'get_local_config_path',
    # Config utilities
    'find_config_file',
    'load_json_config',
    'load_config_with_fallback',
    'merge_configs',
    # URL utilities
    'validate_api_base_url',
    'is_token_transport_safe',
    'build_endpoint_url',
    'resolve_content_url',
    # Error messages
    'ErrorCategory',
    'UserFriendlyError',
    'format_access_error',
    'format_catalog_error',
    'format_configuration_error',
    # Validation and coercion
    'validate_positive_int',
    'ensure_string',
    'ensure_optional_string',
    'ensure_int',
    'ensure_dict',
]
