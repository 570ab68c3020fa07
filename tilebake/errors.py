"""
Error taxonomy for the map compiler.

Every failure raised by the pipeline derives from AssetError so the CLI can
turn any of them into a non-zero exit. Only UnsupportedShapeError is
recoverable: the assembler skips the offending object and keeps going.
"""


class AssetError(Exception):
    """Base class for all compilation failures."""


class MapParseError(AssetError):
    """The map (or an external tileset) is malformed or unreadable."""


class MissingImageError(AssetError):
    """A referenced image file does not exist."""


class ImageDecodeError(AssetError):
    """An image exists but cannot be decoded or converted to RGBA."""


class InvalidGidError(AssetError):
    """A GID lies outside every tileset range."""

    def __init__(self, gid: int):
        super().__init__(f"GID {gid} is not covered by any tileset")
        self.gid = gid


class PackingOverflowError(AssetError):
    """Loose tile images do not fit in the largest allowed atlas."""


class UnsupportedShapeError(AssetError):
    """The classifier cannot convert an object's shape for its type."""


class IoError(AssetError):
    """File-system failure while reading or writing output."""


class ConfigError(AssetError):
    """A configuration file or option is invalid."""
