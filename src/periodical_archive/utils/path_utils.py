"""Locations of the archive's per-user files (config.json and .env)."""

import os
from pathlib import Path
from typing import Union

CONFIG_DIR_NAME = ".periodical_archive"
LOCAL_CONFIG_FILE_NAME = "periodical_archive_config.json"


def expand_path(path: Union[str, Path]) -> Path:
    """Expand ~ and, for strings, environment variables such as $HOME."""
    if isinstance(path, str):
        return Path(os.path.expanduser(os.path.expandvars(path)))
    return path.expanduser()


def get_config_dir() -> Path:
    """Per-user directory holding config.json and .env (~/.periodical_archive)."""
    return Path.home() / CONFIG_DIR_NAME


def get_default_config_path() -> Path:
    return get_config_dir() / "config.json"


def get_local_config_path() -> Path:
    """Config file in the current working directory, checked after the per-user one."""
    return Path.cwd() / LOCAL_CONFIG_FILE_NAME
