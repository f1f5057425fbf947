"""Configuration file lookup and loading.

User settings live in a JSON object file. The first existing file among an
explicit path, ~/.periodical_archive/config.json and
./periodical_archive_config.json wins; its values are deep-merged over the
built-in defaults by ArchiveConfig.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .path_utils import expand_path, get_default_config_path, get_local_config_path

logger = logging.getLogger(__name__)


def get_standard_config_paths() -> List[Path]:
    """Per-user file first, then the file in the working directory."""
    return [get_default_config_path(), get_local_config_path()]


def _candidate_paths(custom_path: Optional[Path]) -> Iterator[Path]:
    if custom_path:
        yield expand_path(custom_path)
    yield from get_standard_config_paths()


def find_config_file(custom_path: Optional[Path] = None) -> Optional[Path]:
    """Return the first configuration file that exists, or None."""
    found = next((path for path in _candidate_paths(custom_path) if path.exists()), None)
    if found is None:
        logger.debug("No archive config file found")
    else:
        logger.debug(f"Using archive config file {found}")
    return found


def load_json_config(file_path: Path) -> Dict[str, Any]:
    """Read a configuration file.

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the file is not valid JSON
        ValueError: If the file holds something other than a JSON object
    """
    path = expand_path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open(encoding='utf-8') as handle:
        data = json.load(handle)

    if not isinstance(data, dict):
        raise ValueError(f"{path} must hold a JSON object, not {type(data).__name__}")

    logger.info(f"Loaded archive configuration from {path}")
    return data


def load_config_with_fallback(custom_path: Optional[Path] = None) -> Optional[Dict[str, Any]]:
    """Load the first configuration file found.

    An unreadable or malformed file is logged and treated as absent so the
    defaults still apply.

    Returns:
        The file's settings, or None when no usable file exists
    """
    path = find_config_file(custom_path)
    if path is None:
        return None

    try:
        return load_json_config(path)
    except (OSError, ValueError) as e:
        # json.JSONDecodeError is a ValueError
        logger.error(f"Ignoring config file {path}: {e}")
        return None


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``; nested dicts merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_configs(current, value)
        else:
            merged[key] = value
    return merged
