"""
TMX reader - parses Tiled map files into plain dataclasses.

Only the parts of the format the compiler needs are modelled: tilesets
(embedded or external .tsx, sheet or image collection), tile layers and
object groups. Group layers are flattened in document order.

Tile data encodings:
- csv
- base64 (uncompressed, zlib, gzip)
- XML <tile gid="..."/> children

Tiled keeps flip/rotation flags in the top four bits of each GID. They are
stripped here so every GID downstream is a plain identifier.
"""

import base64
import gzip
import struct
import zlib
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Any, Optional, Tuple, Union
from .constants import GID_FLAG_MASK
from .errors import MapParseError
from .logging_config import get_logger

logger = get_logger('tmx_reader')


SHAPE_RECTANGLE = "rectangle"
SHAPE_ELLIPSE = "ellipse"
SHAPE_POINT = "point"
SHAPE_POLYGON = "polygon"
SHAPE_POLYLINE = "polyline"
SHAPE_TEXT = "text"


@dataclass
class TilesetImage:
    """Image referenced by a tileset or a collection tile."""
    source: str
    width: int = 0
    height: int = 0


@dataclass
class TilesetTile:
    """A tile of an image-collection tileset."""
    id: int
    image: TilesetImage
    type: str = ""


@dataclass
class Tileset:
    """
    A tileset as referenced from the map.

    Exactly one of `image` (pre-built sheet) or `tiles` (loose per-tile
    images) is used. `base_dir` is the directory image sources are relative
    to: the map directory for embedded tilesets, the .tsx directory for
    external ones.
    """
    first_gid: int
    name: str
    tile_width: int
    tile_height: int
    base_dir: Path
    spacing: int = 0
    margin: int = 0
    tile_count: int = 0
    columns: int = 0
    image: Optional[TilesetImage] = None
    tiles: List[TilesetTile] = field(default_factory=list)
    tile_types: Dict[int, str] = field(default_factory=dict)

    @property
    def is_sheet(self) -> bool:
        return self.image is not None


@dataclass
class TileLayer:
    """Grid of GIDs, rows top to bottom."""
    name: str
    width: int
    height: int
    rows: List[List[int]] = field(default_factory=list)


@dataclass
class MapObject:
    """Free-form object placed in an object group."""
    id: int
    name: str = ""
    type: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    rotation: float = 0.0
    gid: Optional[int] = None
    shape: str = SHAPE_RECTANGLE
    points: List[Tuple[float, float]] = field(default_factory=list)
    properties: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ObjectGroup:
    name: str
    objects: List[MapObject] = field(default_factory=list)


@dataclass
class TiledMap:
    """Parsed TMX map."""
    path: Path
    width: int
    height: int
    tile_width: int
    tile_height: int
    orientation: str = "orthogonal"
    tilesets: List[Tileset] = field(default_factory=list)
    layers: List[TileLayer] = field(default_factory=list)
    object_groups: List[ObjectGroup] = field(default_factory=list)
    properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def directory(self) -> Path:
        return self.path.parent


# =============================================================================
# Attribute helpers
# =============================================================================

def _int_attr(elem: ET.Element, name: str, default: Optional[int] = None) -> int:
    value = elem.get(name)
    if value is None:
        if default is None:
            raise MapParseError(f"<{elem.tag}> is missing required attribute '{name}'")
        return default
    try:
        return int(value)
    except ValueError as e:
        raise MapParseError(f"<{elem.tag}> attribute '{name}' is not an integer: {value!r}") from e


def _float_attr(elem: ET.Element, name: str, default: float = 0.0) -> float:
    value = elem.get(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as e:
        raise MapParseError(f"<{elem.tag}> attribute '{name}' is not a number: {value!r}") from e


def _strip_flags(gid: int) -> int:
    return gid & ~GID_FLAG_MASK


def parse_properties(elem: ET.Element) -> Dict[str, Any]:
    """
    Read a <properties> child into a dict with typed values.

    Args:
        elem: Element that may contain a <properties> child

    Returns:
        Dict mapping property name -> value (int, float, bool or str)
    """
    properties: Dict[str, Any] = {}
    props_elem = elem.find('properties')
    if props_elem is None:
        return properties

    for prop in props_elem.findall('property'):
        name = prop.get('name')
        if not name:
            continue
        prop_type = prop.get('type', 'string')
        raw = prop.get('value')
        if raw is None:
            # Multi-line string properties keep their value as element text
            raw = prop.text or ""
        try:
            if prop_type in ('int', 'object'):
                value: Any = int(raw)
            elif prop_type == 'float':
                value = float(raw)
            elif prop_type == 'bool':
                value = raw == 'true'
            else:
                value = raw
        except ValueError as e:
            raise MapParseError(f"Property '{name}' has invalid {prop_type} value {raw!r}") from e
        properties[name] = value
    return properties


# =============================================================================
# Tilesets
# =============================================================================

def _parse_image(elem: Optional[ET.Element]) -> Optional[TilesetImage]:
    if elem is None:
        return None
    source = elem.get('source')
    if not source:
        raise MapParseError("<image> element without a source")
    return TilesetImage(
        source=source,
        width=_int_attr(elem, 'width', 0),
        height=_int_attr(elem, 'height', 0),
    )


def _parse_tileset_body(elem: ET.Element, first_gid: int, base_dir: Path) -> Tileset:
    tileset = Tileset(
        first_gid=first_gid,
        name=elem.get('name', ''),
        tile_width=_int_attr(elem, 'tilewidth'),
        tile_height=_int_attr(elem, 'tileheight'),
        base_dir=base_dir,
        spacing=_int_attr(elem, 'spacing', 0),
        margin=_int_attr(elem, 'margin', 0),
        tile_count=_int_attr(elem, 'tilecount', 0),
        columns=_int_attr(elem, 'columns', 0),
        image=_parse_image(elem.find('image')),
    )
    if tileset.tile_width <= 0 or tileset.tile_height <= 0:
        raise MapParseError(f"Tileset '{tileset.name}' has a non-positive tile size")

    for tile_elem in elem.findall('tile'):
        tile_id = _int_attr(tile_elem, 'id')
        tile_type = tile_elem.get('type') or tile_elem.get('class') or ""
        if tile_type:
            tileset.tile_types[tile_id] = tile_type
        image = _parse_image(tile_elem.find('image'))
        if tileset.image is None and image is not None:
            tileset.tiles.append(TilesetTile(id=tile_id, image=image, type=tile_type))

    return tileset


def _parse_tileset(elem: ET.Element, map_dir: Path) -> Tileset:
    first_gid = _int_attr(elem, 'firstgid')
    source = elem.get('source')
    if not source:
        return _parse_tileset_body(elem, first_gid, map_dir)

    tsx_path = map_dir / source
    logger.debug(f"Loading external tileset {tsx_path}")
    try:
        tsx_root = ET.parse(tsx_path).getroot()
    except OSError as e:
        raise MapParseError(f"Cannot read external tileset {tsx_path}: {e}") from e
    except ET.ParseError as e:
        raise MapParseError(f"Malformed external tileset {tsx_path}: {e}") from e
    return _parse_tileset_body(tsx_root, first_gid, tsx_path.parent)


# =============================================================================
# Layers
# =============================================================================

def decode_layer_data(data_elem: ET.Element) -> List[int]:
    """
    Decode a <data> element into a flat list of GIDs (flags stripped).

    Raises:
        MapParseError: On unknown encodings, unsupported compression,
            chunked (infinite) data or corrupt payloads
    """
    if data_elem.find('chunk') is not None:
        raise MapParseError("Infinite maps (chunked layer data) are not supported")

    encoding = data_elem.get('encoding')
    compression = data_elem.get('compression')

    if encoding == 'csv':
        text = (data_elem.text or "").strip()
        try:
            gids = [int(x) for x in text.replace('\n', '').split(',') if x.strip()]
        except ValueError as e:
            raise MapParseError(f"Invalid CSV tile data: {e}") from e

    elif encoding == 'base64':
        try:
            raw_data = base64.b64decode((data_elem.text or "").strip())
            if compression == 'zlib':
                raw_data = zlib.decompress(raw_data)
            elif compression == 'gzip':
                raw_data = gzip.decompress(raw_data)
            elif compression:
                raise MapParseError(f"Unsupported tile data compression: {compression}")
        except (ValueError, zlib.error, OSError, EOFError) as e:
            raise MapParseError(f"Corrupt base64 tile data: {e}") from e
        if len(raw_data) % 4:
            raise MapParseError(f"Tile data length {len(raw_data)} is not a multiple of 4")
        gids = list(struct.unpack(f'<{len(raw_data) // 4}I', raw_data))

    elif encoding is None:
        gids = [_int_attr(tile, 'gid', 0) for tile in data_elem.findall('tile')]

    else:
        raise MapParseError(f"Unsupported tile data encoding: {encoding}")

    return [_strip_flags(gid) for gid in gids]


def _parse_tile_layer(elem: ET.Element) -> TileLayer:
    layer = TileLayer(
        name=elem.get('name', ''),
        width=_int_attr(elem, 'width'),
        height=_int_attr(elem, 'height'),
    )
    data_elem = elem.find('data')
    if data_elem is None:
        raise MapParseError(f"Layer '{layer.name}' has no <data> element")

    gids = decode_layer_data(data_elem)
    expected = layer.width * layer.height
    if len(gids) != expected:
        raise MapParseError(
            f"Layer '{layer.name}' has {len(gids)} tiles, expected {expected}"
        )
    layer.rows = [gids[row * layer.width:(row + 1) * layer.width] for row in range(layer.height)]
    return layer


def _parse_points(text: str) -> List[Tuple[float, float]]:
    points = []
    try:
        for pair in text.split():
            x, y = pair.split(',')
            points.append((float(x), float(y)))
    except ValueError as e:
        raise MapParseError(f"Invalid point list: {text!r}") from e
    return points


def _parse_object(elem: ET.Element) -> MapObject:
    obj = MapObject(
        id=_int_attr(elem, 'id', 0),
        name=elem.get('name', ''),
        type=elem.get('type') or elem.get('class') or "",
        x=_float_attr(elem, 'x'),
        y=_float_attr(elem, 'y'),
        width=_float_attr(elem, 'width'),
        height=_float_attr(elem, 'height'),
        rotation=_float_attr(elem, 'rotation'),
        properties=parse_properties(elem),
    )
    if elem.get('gid') is not None:
        obj.gid = _strip_flags(_int_attr(elem, 'gid'))

    if elem.find('ellipse') is not None:
        obj.shape = SHAPE_ELLIPSE
    elif elem.find('point') is not None:
        obj.shape = SHAPE_POINT
    elif elem.find('polygon') is not None:
        obj.shape = SHAPE_POLYGON
        obj.points = _parse_points(elem.find('polygon').get('points', ''))
    elif elem.find('polyline') is not None:
        obj.shape = SHAPE_POLYLINE
        obj.points = _parse_points(elem.find('polyline').get('points', ''))
    elif elem.find('text') is not None:
        obj.shape = SHAPE_TEXT
    return obj


def _parse_object_group(elem: ET.Element) -> ObjectGroup:
    group = ObjectGroup(name=elem.get('name', ''))
    for obj_elem in elem.findall('object'):
        group.objects.append(_parse_object(obj_elem))
    return group


def _collect_layers(parent: ET.Element, tiled_map: TiledMap) -> None:
    for elem in parent:
        if elem.tag == 'layer':
            tiled_map.layers.append(_parse_tile_layer(elem))
        elif elem.tag == 'objectgroup':
            tiled_map.object_groups.append(_parse_object_group(elem))
        elif elem.tag == 'group':
            _collect_layers(elem, tiled_map)
        elif elem.tag == 'imagelayer':
            logger.debug(f"Ignoring image layer '{elem.get('name', '')}'")


def _inherit_tile_types(tiled_map: TiledMap) -> None:
    """Tile objects without a type take the type of their tile, as Tiled does."""
    tilesets = sorted(tiled_map.tilesets, key=lambda ts: ts.first_gid)
    for group in tiled_map.object_groups:
        for obj in group.objects:
            if obj.type or not obj.gid:
                continue
            owner = None
            for tileset in tilesets:
                if tileset.first_gid > obj.gid:
                    break
                owner = tileset
            if owner is not None:
                obj.type = owner.tile_types.get(obj.gid - owner.first_gid, "")


# =============================================================================
# Map
# =============================================================================

def load_map(path: Union[str, Path]) -> TiledMap:
    """
    Load a TMX file from disk.

    Args:
        path: Path to the .tmx file

    Returns:
        Parsed TiledMap with tilesets sorted by first_gid

    Raises:
        MapParseError: If the file is missing, not valid XML, or uses
            features the compiler cannot handle
    """
    path = Path(path)
    try:
        root = ET.parse(path).getroot()
    except OSError as e:
        raise MapParseError(f"Cannot read map {path}: {e}") from e
    except ET.ParseError as e:
        raise MapParseError(f"Malformed map {path}: {e}") from e

    if root.tag != 'map':
        raise MapParseError(f"{path} is not a TMX map (root element <{root.tag}>)")
    if root.get('infinite', '0') == '1':
        raise MapParseError("Infinite maps are not supported")

    tiled_map = TiledMap(
        path=path,
        width=_int_attr(root, 'width'),
        height=_int_attr(root, 'height'),
        tile_width=_int_attr(root, 'tilewidth'),
        tile_height=_int_attr(root, 'tileheight'),
        orientation=root.get('orientation', 'orthogonal'),
        properties=parse_properties(root),
    )
    if tiled_map.orientation != 'orthogonal':
        logger.warning(
            f"Map orientation '{tiled_map.orientation}' is treated as orthogonal"
        )

    for tileset_elem in root.findall('tileset'):
        tiled_map.tilesets.append(_parse_tileset(tileset_elem, tiled_map.directory))
    tiled_map.tilesets.sort(key=lambda ts: ts.first_gid)

    _collect_layers(root, tiled_map)
    _inherit_tile_types(tiled_map)

    logger.info(
        f"Loaded {path.name}: {len(tiled_map.tilesets)} tilesets, "
        f"{len(tiled_map.layers)} tile layers, {len(tiled_map.object_groups)} object groups"
    )
    return tiled_map
