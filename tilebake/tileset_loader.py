"""
Tileset loader - turns each map tileset into an atlas.

A tileset is either a pre-built sheet (one image, tiles on a uniform grid),
which is copied through unchanged, or an image collection (one image per
tile), whose images are decoded and packed into a new atlas.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
from PIL import Image, UnidentifiedImageError
from .atlas_packer import pack
from .config import CompilerConfig
from .constants import ATLAS_IMAGE_MODE
from .errors import ImageDecodeError, MissingImageError
from .logging_config import get_logger
from .schema import AtlasDefinition, SpritePosition
from .tmx_reader import Tileset
from .utils import asset_path

logger = get_logger('tileset_loader')


@dataclass
class TilesetAtlas:
    """
    Atlas built from one tileset.

    `source_path` is set for sheet tilesets (file copied as-is); `image` is
    set for packed image collections. `tile_ids` lists the tileset-local tile
    id of every sprite, in sprite order.
    """
    index: int
    definition: AtlasDefinition
    tile_ids: List[int] = field(default_factory=list)
    source_path: Optional[Path] = None
    image: Optional[Image.Image] = None

    @property
    def sprite_count(self) -> int:
        return len(self.definition.sprites)

    @property
    def is_packed(self) -> bool:
        return self.image is not None


def sheet_sprites(
    image_width: int,
    image_height: int,
    tile_width: int,
    tile_height: int,
    margin: int = 0,
    spacing: int = 0
) -> List[SpritePosition]:
    """
    Slice a sheet into sprite rectangles.

    Rows are indexed from the bottom of the image (row 0 at the bottom) and
    enumerated from the highest row index down, columns left to right, so
    sprite i is the tileset's tile id i.

    Args:
        image_width: Sheet width in pixels
        image_height: Sheet height in pixels
        tile_width: Tile width in pixels
        tile_height: Tile height in pixels
        margin: Border around the whole grid
        spacing: Gap between neighbouring tiles

    Returns:
        Sprite rectangles in tile-id order
    """
    columns = (image_width - 2 * margin + spacing) // (tile_width + spacing)
    rows = (image_height - 2 * margin + spacing) // (tile_height + spacing)

    sprites = []
    for row in reversed(range(rows)):
        top_row = rows - 1 - row
        for col in range(columns):
            sprites.append(SpritePosition(
                x=margin + col * (tile_width + spacing),
                y=margin + top_row * (tile_height + spacing),
                width=tile_width,
                height=tile_height,
            ))
    return sprites


def decode_tile_image(path: Path) -> Image.Image:
    """
    Decode one loose tile image to RGBA.

    Raises:
        MissingImageError: If the file does not exist
        ImageDecodeError: If Pillow cannot decode or convert it
    """
    if not path.is_file():
        raise MissingImageError(f"Tile image not found: {path}")
    try:
        with Image.open(path) as img:
            img.load()
            return img.convert(ATLAS_IMAGE_MODE)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Cannot decode tile image {path}: {e}") from e


def _sheet_size(path: Path, declared_width: int, declared_height: int):
    if declared_width > 0 and declared_height > 0:
        return declared_width, declared_height
    # Older maps omit the image size; read it from the file header
    try:
        with Image.open(path) as img:
            return img.size
    except (UnidentifiedImageError, OSError) as e:
        raise ImageDecodeError(f"Cannot read sheet image size from {path}: {e}") from e


def load_tileset(tileset: Tileset, index: int, config: CompilerConfig) -> TilesetAtlas:
    """
    Build the atlas for one tileset.

    Args:
        tileset: Parsed tileset
        index: Position of the tileset in the map (sorted by first_gid)
        config: Compiler configuration (naming, padding, atlas limits)

    Returns:
        TilesetAtlas with a complete AtlasDefinition
    """
    name = config.atlas_name(index)
    texture_path = asset_path(config.prefix, config.atlas_filename(index))

    if tileset.is_sheet:
        source_path = tileset.base_dir / tileset.image.source
        if not source_path.is_file():
            raise MissingImageError(f"Tileset '{tileset.name}' image not found: {source_path}")
        width, height = _sheet_size(source_path, tileset.image.width, tileset.image.height)
        sprites = sheet_sprites(
            width, height,
            tileset.tile_width, tileset.tile_height,
            tileset.margin, tileset.spacing,
        )
        if tileset.tile_count and tileset.tile_count < len(sprites):
            sprites = sprites[:tileset.tile_count]
        logger.debug(f"Tileset '{tileset.name}': sheet {width}x{height}, {len(sprites)} sprites")
        return TilesetAtlas(
            index=index,
            definition=AtlasDefinition(
                name=name,
                texture_path=texture_path,
                texture_width=width,
                texture_height=height,
                sprites=sprites,
            ),
            tile_ids=list(range(len(sprites))),
            source_path=source_path,
        )

    # Image collection: decode every tile image and pack them
    images = []
    tile_ids = []
    for tile in tileset.tiles:
        images.append(decode_tile_image(tileset.base_dir / tile.image.source))
        tile_ids.append(tile.id)

    packed = pack(images, padding=config.padding, max_size=config.max_atlas_size)
    logger.info(
        f"Tileset '{tileset.name}': packed {len(images)} images into "
        f"{packed.width}x{packed.height} atlas"
    )
    return TilesetAtlas(
        index=index,
        definition=AtlasDefinition(
            name=name,
            texture_path=texture_path,
            texture_width=packed.width,
            texture_height=packed.height,
            sprites=packed.rects,
        ),
        tile_ids=tile_ids,
        image=packed.image,
    )


def load_tilesets(tilesets: List[Tileset], config: CompilerConfig) -> List[TilesetAtlas]:
    """Build atlases for all tilesets, preserving map order."""
    return [load_tileset(tileset, index, config) for index, tileset in enumerate(tilesets)]
