"""
Compiler configuration.

Defaults come from constants.py; a JSON file or CLI flags can override them.
"""

import json
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Dict, Any, Union
from .constants import (
    DEFAULT_PADDING,
    DEFAULT_MAX_ATLAS_SIZE,
    DEFAULT_SCENE_FILENAME,
    DEFAULT_ATLAS_FILE_TEMPLATE,
    DEFAULT_ATLAS_NAME_TEMPLATE,
)
from .errors import ConfigError
from .logging_config import get_logger
from .utils import load_json

logger = get_logger('config')


@dataclass
class CompilerConfig:
    """Settings for one compilation run."""
    prefix: str = ""
    padding: int = DEFAULT_PADDING
    max_atlas_size: int = DEFAULT_MAX_ATLAS_SIZE
    scene_filename: str = DEFAULT_SCENE_FILENAME
    atlas_file_template: str = DEFAULT_ATLAS_FILE_TEMPLATE
    atlas_name_template: str = DEFAULT_ATLAS_NAME_TEMPLATE

    def atlas_name(self, index: int) -> str:
        """Symbolic name the engine uses to refer to atlas `index`."""
        return self.atlas_name_template.format(index=index)

    def atlas_filename(self, index: int) -> str:
        """Output file name for atlas `index`."""
        return self.atlas_file_template.format(index=index)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CompilerConfig':
        """
        Build a config from a plain dict, ignoring unknown keys.

        Args:
            data: Mapping of field name -> value

        Returns:
            Validated CompilerConfig
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key not in known:
                logger.warning(f"Ignoring unknown config key: {key}")
                continue
            values[key] = value
        config = cls(**values)
        config.validate()
        return config

    def validate(self) -> None:
        if not isinstance(self.padding, int) or self.padding < 0:
            raise ConfigError(f"padding must be a non-negative integer, got {self.padding!r}")
        if not isinstance(self.max_atlas_size, int) or self.max_atlas_size <= 0:
            raise ConfigError(f"max_atlas_size must be a positive integer, got {self.max_atlas_size!r}")
        if not self.scene_filename:
            raise ConfigError("scene_filename must not be empty")
        for key in ('atlas_file_template', 'atlas_name_template'):
            self._check_template(key, getattr(self, key))

    @staticmethod
    def _check_template(key: str, template: Any) -> None:
        # Distinct atlas indices must give distinct names
        try:
            first = template.format(index=0)
            second = template.format(index=1)
        except (AttributeError, KeyError, IndexError, ValueError) as e:
            raise ConfigError(f"{key} {template!r} is not a valid template: {e!r}") from e
        if first == second:
            raise ConfigError(f"{key} {template!r} must contain an {{index}} placeholder")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: Union[str, Path]) -> CompilerConfig:
    """Load a CompilerConfig from a JSON file."""
    try:
        data = load_json(path)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot parse config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    logger.debug(f"Loaded config from {path}")
    return CompilerConfig.from_dict(data)
