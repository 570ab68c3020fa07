"""
Constants for the Tiled map compiler.

This module contains the magic numbers and fixed names used throughout the
codebase to make the code more maintainable and self-documenting.
"""

# Tiled stores flip/rotation flags in the top bits of every GID
FLIPPED_HORIZONTALLY_FLAG = 0x80000000
FLIPPED_VERTICALLY_FLAG = 0x40000000
FLIPPED_DIAGONALLY_FLAG = 0x20000000
ROTATED_HEXAGONAL_120_FLAG = 0x10000000
GID_FLAG_MASK = (
    FLIPPED_HORIZONTALLY_FLAG
    | FLIPPED_VERTICALLY_FLAG
    | FLIPPED_DIAGONALLY_FLAG
    | ROTATED_HEXAGONAL_120_FLAG
)

# Reserved GID for an empty cell
EMPTY_GID = 0

# Atlas packing defaults
DEFAULT_PADDING = 4
DEFAULT_MAX_ATLAS_SIZE = 4096

# Output naming
DEFAULT_SCENE_FILENAME = "map.json"
DEFAULT_ATLAS_FILE_TEMPLATE = "sprite_sheet_{index}.png"
DEFAULT_ATLAS_NAME_TEMPLATE = "map_sprite_sheet_{index}"

# Image pixel format handed to the packer
ATLAS_IMAGE_MODE = "RGBA"

# Texture loader tag expected by the engine
TEXTURE_FORMAT_TAG = "IMAGE"

# Sampler description matching the engine's default image format
DEFAULT_SAMPLER_INFO = {
    "min_filter": "Nearest",
    "mag_filter": "Nearest",
    "mip_filter": "Nearest",
    "wrap_mode": ["Tile", "Tile", "Tile"],
    "lod_bias": 0.0,
    "lod_range": {"start": 0.0, "end": 1000.0},
    "border": 0,
    "normalized": True,
    "anisotropic": "Off",
}

# Identity rotation quaternion (x, y, z, w) and unit scale for transforms
IDENTITY_ROTATION = [0.0, 0.0, 0.0, 1.0]
UNIT_SCALE = [1.0, 1.0, 1.0]

# =============================================================================
# Physics collider defaults
# =============================================================================
# Applied by the default object classifier; object custom properties of the
# same name override them.

DEFAULT_DENSITY = 1.0
DEFAULT_RESTITUTION = 0.8
DEFAULT_FRICTION = 0.5
DEFAULT_GRAVITY_ENABLED = True
DEFAULT_NO_ROTATE = False

# Object type tags understood by the default classifier
OBJECT_TYPE_STATIC = "static"
OBJECT_TYPE_DYNAMIC = "dynamic"
OBJECT_TYPE_COLLISION = "collision"
