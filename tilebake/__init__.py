"""
tilebake - Tiled map compiler

Compiles Tiled TMX maps into packed texture atlases plus a declarative JSON
scene file listing one entity per tile and object.
"""

__version__ = "0.1.0"

from .compiler import MapCompiler, CompiledMap, compile_map
from .config import CompilerConfig, load_config
from .classifier import ObjectClassifier, DefaultObjectClassifier, SpriteContext, ObjectOutcome
from .errors import (
    AssetError,
    MapParseError,
    MissingImageError,
    ImageDecodeError,
    InvalidGidError,
    PackingOverflowError,
    UnsupportedShapeError,
    IoError,
    ConfigError,
)
