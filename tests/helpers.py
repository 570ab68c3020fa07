"""
Helpers for building TMX maps and tile images in temporary directories.
"""

from pathlib import Path
from typing import List, Optional, Sequence, Tuple
from PIL import Image


def patterned_image(width: int, height: int, seed: int) -> Image.Image:
    """RGBA image whose every pixel differs, so crops can be compared exactly."""
    img = Image.new('RGBA', (width, height))
    for y in range(height):
        for x in range(width):
            img.putpixel((x, y), ((x * 37 + seed * 11) % 256, (y * 53 + seed * 7) % 256, (seed * 29) % 256, 255))
    return img


def save_image(path: Path, img: Image.Image) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    img.save(path, format='PNG')
    return path


def make_sheet(path: Path, columns: int, rows: int, tile_width: int = 8, tile_height: int = 8) -> Path:
    """Sheet image where each cell has its own solid colour."""
    img = Image.new('RGBA', (columns * tile_width, rows * tile_height))
    for row in range(rows):
        for col in range(columns):
            colour = ((row * columns + col) * 40 % 256, 100, 200, 255)
            cell = Image.new('RGBA', (tile_width, tile_height), colour)
            img.paste(cell, (col * tile_width, row * tile_height))
    return save_image(path, img)


def sheet_tileset_xml(
    first_gid: int,
    name: str,
    source: str,
    image_width: int,
    image_height: int,
    tile_width: int = 8,
    tile_height: int = 8,
    tile_count: Optional[int] = None
) -> str:
    columns = image_width // tile_width
    if tile_count is None:
        tile_count = columns * (image_height // tile_height)
    return (
        f'<tileset firstgid="{first_gid}" name="{name}" tilewidth="{tile_width}" '
        f'tileheight="{tile_height}" tilecount="{tile_count}" columns="{columns}">\n'
        f'  <image source="{source}" width="{image_width}" height="{image_height}"/>\n'
        f'</tileset>'
    )


def collection_tileset_xml(
    first_gid: int,
    name: str,
    tiles: Sequence[Tuple[int, str, int, int]],
    tile_width: int = 8,
    tile_height: int = 8
) -> str:
    """tiles: (id, source, width, height) per tile."""
    body = "\n".join(
        f'  <tile id="{tile_id}">\n'
        f'    <image source="{source}" width="{width}" height="{height}"/>\n'
        f'  </tile>'
        for tile_id, source, width, height in tiles
    )
    return (
        f'<tileset firstgid="{first_gid}" name="{name}" tilewidth="{tile_width}" '
        f'tileheight="{tile_height}" tilecount="{len(tiles)}" columns="0">\n'
        f'{body}\n'
        f'</tileset>'
    )


def csv_layer_xml(name: str, rows: List[List[int]]) -> str:
    width = len(rows[0]) if rows else 0
    csv = ",\n".join(",".join(str(gid) for gid in row) for row in rows)
    return (
        f'<layer name="{name}" width="{width}" height="{len(rows)}">\n'
        f'  <data encoding="csv">\n{csv}\n</data>\n'
        f'</layer>'
    )


def object_group_xml(name: str, objects: List[str]) -> str:
    return f'<objectgroup name="{name}">\n' + "\n".join(objects) + '\n</objectgroup>'


def map_xml(width: int, height: int, children: List[str], tile_width: int = 8, tile_height: int = 8) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<map version="1.10" orientation="orthogonal" renderorder="right-down" '
        f'width="{width}" height="{height}" tilewidth="{tile_width}" tileheight="{tile_height}" infinite="0">\n'
        + "\n".join(children)
        + '\n</map>\n'
    )


def write_text(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding='utf-8')
    return path


def build_sample_map(directory: Path) -> Path:
    """
    Three tilesets and one tile layer:

    - tileset 0 (first_gid 1): 16x16 sheet, 4 tiles
    - tileset 1 (first_gid 5): image collection, tiles 0 (8x8) and 1 (4x6)
    - tileset 2 (first_gid 7): sheet that nothing references

    Objects: a static tile object (gid 6), a dynamic rectangle and an
    object with an unknown type.
    """
    make_sheet(directory / "terrain.png", 2, 2)
    save_image(directory / "props" / "barrel.png", patterned_image(8, 8, 1))
    save_image(directory / "props" / "lamp.png", patterned_image(4, 6, 2))
    make_sheet(directory / "unused.png", 1, 1)

    objects = [
        '<object id="1" name="lamp" type="static" gid="6" x="16" y="16" width="4" height="6"/>',
        '<object id="2" name="crate" type="dynamic" x="0" y="0" width="8" height="8"/>',
        '<object id="3" name="spawn" type="spawn" x="4" y="4"><point/></object>',
    ]
    children = [
        sheet_tileset_xml(1, "terrain", "terrain.png", 16, 16),
        collection_tileset_xml(5, "props", [(0, "props/barrel.png", 8, 8), (1, "props/lamp.png", 4, 6)]),
        sheet_tileset_xml(7, "unused", "unused.png", 8, 8),
        csv_layer_xml("ground", [[1, 2, 0], [5, 1, 0]]),
        object_group_xml("things", objects),
    ]
    return write_text(directory / "level.tmx", map_xml(3, 2, children))
