"""
Object classification - decides what kind of entity a tile or object becomes.

Classifiers return one of the closed set of detail payloads from schema.py
(TileDetail, StaticDetail, PhysicsDetail) or None to drop the entity.
Subclass ObjectClassifier to plug in game-specific rules.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
from .constants import (
    DEFAULT_DENSITY,
    DEFAULT_RESTITUTION,
    DEFAULT_FRICTION,
    DEFAULT_GRAVITY_ENABLED,
    DEFAULT_NO_ROTATE,
    OBJECT_TYPE_STATIC,
    OBJECT_TYPE_DYNAMIC,
    OBJECT_TYPE_COLLISION,
)
from .coordinates import object_to_world, flip_points
from .errors import MapParseError, UnsupportedShapeError
from .logging_config import get_logger
from .schema import (
    AtlasDefinition,
    BallShape,
    Collider,
    ColliderShape,
    Detail,
    PhysicsDetail,
    PolygonShape,
    RectShape,
    StaticDetail,
    TileDetail,
    Transform,
)
from .tmx_reader import MapObject, SHAPE_RECTANGLE, SHAPE_ELLIPSE, SHAPE_POLYGON
from .utils import parse_bool

logger = get_logger('classifier')


@dataclass
class SpriteContext:
    """
    Sprite a tile or tile object refers to.

    `definition` is only set when this is the first emitted reference to
    the atlas; classifiers do not need to care about it.
    """
    atlas_index: int
    sprite_index: int
    name: str
    definition: Optional[AtlasDefinition] = None


@dataclass
class ObjectOutcome:
    """Result of classifying an object: payload, placement, sprite usage."""
    detail: Detail
    transform: Optional[Transform] = None
    with_sprite: bool = True


class ObjectClassifier:
    """Base classifier: every tile is a plain tile, every object is dropped."""

    def handles(self, obj: MapObject) -> bool:
        """
        Whether classify_object should see this object at all.

        Checked before the object's GID is resolved, so objects rejected
        here never fail on a bad GID.
        """
        return True

    def classify_tile(
        self,
        ctx: SpriteContext,
        transform: Transform,
        layer_index: int
    ) -> Optional[Detail]:
        return TileDetail()

    def classify_object(
        self,
        obj: MapObject,
        ctx: Optional[SpriteContext],
        layer_index: int
    ) -> Optional[ObjectOutcome]:
        return None


def _float_property(properties: Dict[str, Any], name: str, default: float) -> float:
    if name not in properties:
        return default
    try:
        return float(properties[name])
    except (TypeError, ValueError) as e:
        raise MapParseError(f"Property '{name}' must be a number, got {properties[name]!r}") from e


def _bool_property(properties: Dict[str, Any], name: str, default: bool) -> bool:
    if name not in properties:
        return default
    return parse_bool(properties[name])


def collider_shape(obj: MapObject) -> ColliderShape:
    """
    Convert an object's shape into a collider shape.

    Raises:
        UnsupportedShapeError: For points, polylines, text, ellipses that
            are not circles and degenerate rectangles or polygons
    """
    if obj.shape == SHAPE_RECTANGLE:
        if obj.width <= 0 or obj.height <= 0:
            raise UnsupportedShapeError(f"Object {obj.id} is a rectangle with no area")
        return RectShape(width=obj.width, height=obj.height)
    if obj.shape == SHAPE_ELLIPSE:
        if obj.width <= 0 or obj.width != obj.height:
            raise UnsupportedShapeError(
                f"Object {obj.id} is an ellipse of {obj.width}x{obj.height}; only circles are supported"
            )
        return BallShape(radius=obj.width / 2.0)
    if obj.shape == SHAPE_POLYGON:
        if len(obj.points) < 3:
            raise UnsupportedShapeError(f"Object {obj.id} is a polygon with fewer than 3 points")
        return PolygonShape(points=tuple(flip_points(obj.points)))
    raise UnsupportedShapeError(f"Object {obj.id} has unsupported shape '{obj.shape}'")


class DefaultObjectClassifier(ObjectClassifier):
    """
    Classifies objects by their type tag:

    - "static": tile object drawn as a static decoration (rectangle only)
    - "dynamic": rigid body with one collider
    - "collision": collider without a body
    - anything else: dropped
    """

    HANDLED_TYPES = (OBJECT_TYPE_STATIC, OBJECT_TYPE_DYNAMIC, OBJECT_TYPE_COLLISION)

    def handles(self, obj: MapObject) -> bool:
        return obj.type in self.HANDLED_TYPES

    def classify_object(
        self,
        obj: MapObject,
        ctx: Optional[SpriteContext],
        layer_index: int
    ) -> Optional[ObjectOutcome]:
        if obj.type == OBJECT_TYPE_STATIC:
            return self._static(obj, ctx, layer_index)
        if obj.type == OBJECT_TYPE_DYNAMIC:
            return self._physics(obj, layer_index, collider_only=False)
        if obj.type == OBJECT_TYPE_COLLISION:
            return self._physics(obj, layer_index, collider_only=True)

        logger.info(f"Skipping object {obj.id} '{obj.name}' with unrecognized type '{obj.type}'")
        return None

    def _static(
        self,
        obj: MapObject,
        ctx: Optional[SpriteContext],
        layer_index: int
    ) -> Optional[ObjectOutcome]:
        if ctx is None:
            logger.info(f"Skipping static object {obj.id} '{obj.name}' without a tile image")
            return None
        if obj.shape != SHAPE_RECTANGLE:
            raise UnsupportedShapeError(
                f"Static object {obj.id} must be a rectangle, got '{obj.shape}'"
            )
        x, y, z = object_to_world(obj, layer_index, center=True)
        return ObjectOutcome(detail=StaticDetail(), transform=Transform(x, y, z))

    def _physics(self, obj: MapObject, layer_index: int, collider_only: bool) -> ObjectOutcome:
        shape = collider_shape(obj)
        x, y, z = object_to_world(obj, layer_index, center=True)
        props = obj.properties

        collider = Collider(
            shape=shape,
            density=_float_property(props, 'density', DEFAULT_DENSITY),
            restitution=_float_property(props, 'restitution', DEFAULT_RESTITUTION),
            friction=_float_property(props, 'friction', DEFAULT_FRICTION),
            is_sensor=_bool_property(props, 'is_sensor', False),
            location=(x, y) if collider_only else None,
        )
        detail = PhysicsDetail(
            colliders=[collider],
            gravity_enabled=_bool_property(props, 'gravity_enabled', DEFAULT_GRAVITY_ENABLED),
            no_rotate=_bool_property(props, 'no_rotate', DEFAULT_NO_ROTATE),
            collider_only=collider_only,
            location=None if collider_only else (x, y),
        )
        return ObjectOutcome(detail=detail, transform=Transform(x, y, z))
