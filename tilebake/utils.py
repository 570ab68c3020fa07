"""
Utility functions for tilebake.
"""

import json
from pathlib import Path, PurePosixPath
from typing import Dict, Any, Union
from .logging_config import get_logger

logger = get_logger('utils')


def load_json(filepath: Union[str, Path]) -> Dict[str, Any]:
    """Load a JSON file."""
    with open(filepath, 'r', encoding='utf-8') as f:
        return json.load(f)


def asset_path(prefix: str, filename: str) -> str:
    """
    Build the texture path embedded in the scene file.

    The engine resolves texture paths relative to its asset root, so the
    result always uses forward slashes regardless of the host platform.

    Args:
        prefix: Asset-root relative directory (may be empty)
        filename: Output file name of the atlas image

    Returns:
        POSIX-style path string
    """
    if not prefix:
        return filename
    return str(PurePosixPath(prefix.replace('\\', '/')) / filename)


def parse_bool(value: Any) -> bool:
    """Interpret Tiled-style boolean values ('true', '1', True...)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in ('true', '1', 'yes')
