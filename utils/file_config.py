"""
File Config Parsing

Loads JSON or YAML configuration text, dispatching on the file suffix.

Usage:
    from utils.file_config import parse_file_config

    data = parse_file_config(Path("examples.yaml").read_text(), "examples.yaml")
"""

import json
from pathlib import PurePath
from typing import Any, Iterable, Optional

import yaml

from utils.exceptions import ConfigError

SUPPORTED_SUFFIXES = (".json", ".yaml", ".yml")


def load_file_contents(contents: str, suffix: str) -> Any:
    """Decode `contents` according to a file suffix like '.json' or '.yaml'."""
    if suffix == ".json":
        return json.loads(contents)
    if suffix in (".yaml", ".yml"):
        return yaml.safe_load(contents)
    raise ConfigError(f"Unsupported filetype {suffix}")


def parse_file_config(
    text: str,
    path: str,
    supported_types: Optional[Iterable[str]] = None,
) -> Any:
    """
    Parse config text read from `path`.

    Args:
        text: File contents.
        path: File name or path; only its suffix is used.
        supported_types: Optional narrower allow-list of suffixes.

    Raises:
        ConfigError: If the suffix is not supported.
    """
    suffix = PurePath(path).suffix.lower()
    allowed = tuple(supported_types) if supported_types is not None else SUPPORTED_SUFFIXES
    if suffix not in SUPPORTED_SUFFIXES or suffix not in allowed:
        raise ConfigError(f"Unsupported filetype {suffix or '(none)'}")
    return load_file_contents(text, suffix)
