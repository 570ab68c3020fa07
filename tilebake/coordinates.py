"""
Coordinate mapping from Tiled space to engine space.

Tiled: origin top-left, y grows downward, pixel units.
Engine: y grows upward, so every y is negated. Depth is the raw layer
index as a float.
"""

from typing import List, Tuple
from .tmx_reader import MapObject, SHAPE_RECTANGLE, SHAPE_ELLIPSE

_CENTERED_SHAPES = (SHAPE_RECTANGLE, SHAPE_ELLIPSE)


def layer_depth(layer_index: int) -> float:
    return float(layer_index)


def tile_to_world(
    row: int,
    col: int,
    layer_index: int,
    tile_width: int,
    tile_height: int
) -> Tuple[float, float, float]:
    """
    Centre of a grid cell in world space.

    Args:
        row: Row index (0 = top row)
        col: Column index
        layer_index: Index of the tile layer
        tile_width: Map tile width in pixels
        tile_height: Map tile height in pixels

    Returns:
        (x, y, z)
    """
    x = col * tile_width + tile_width / 2.0
    y = -(row * tile_height) - tile_height / 2.0
    return x, y, layer_depth(layer_index)


def object_to_world(
    obj: MapObject,
    layer_index: int,
    center: bool = True
) -> Tuple[float, float, float]:
    """
    World position of an object.

    With `center`, rectangles and ellipses are moved from Tiled's anchor to
    their centre. Tile objects (with a GID) are anchored at their bottom-left
    corner, plain shapes at their top-left corner. Points, polygons and
    polylines keep their raw anchor.

    Args:
        obj: Map object
        layer_index: Index of the object group
        center: Convert the corner anchor into a centre anchor

    Returns:
        (x, y, z)
    """
    x = obj.x
    y = obj.y
    if center and obj.shape in _CENTERED_SHAPES:
        x += obj.width / 2.0
        if obj.gid:
            y -= obj.height / 2.0
        else:
            y += obj.height / 2.0
    # 0.0 - y never yields -0.0
    return x, 0.0 - y, layer_depth(layer_index)


def flip_points(points: List[Tuple[float, float]]) -> List[Tuple[float, float]]:
    """Flip object-relative points into y-up space."""
    return [(px, 0.0 - py) for px, py in points]
