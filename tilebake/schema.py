"""
Scene schema types.

These dataclasses mirror the records the engine's scene loader expects.
They carry no serialization logic; serializer.py maps them to JSON.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union


@dataclass(frozen=True)
class SpritePosition:
    """Sprite rectangle inside an atlas, in pixels, y down from the top."""
    x: int
    y: int
    width: int
    height: int


@dataclass
class AtlasDefinition:
    """Full description of one atlas: texture reference plus sprite list."""
    name: str
    texture_path: str
    texture_width: int
    texture_height: int
    sprites: List[SpritePosition] = field(default_factory=list)


@dataclass(frozen=True)
class SpriteRef:
    """Reference to one sprite of an atlas, by atlas name."""
    atlas_name: str
    sprite_index: int


@dataclass(frozen=True)
class Transform:
    """World-space placement; z is the depth/ordering value."""
    x: float
    y: float
    z: float


# =============================================================================
# Detail payloads
# =============================================================================
# The set of detail kinds is closed: a plain tile, a static decoration or a
# physics body. Classifiers pick one of these or drop the entity.

@dataclass(frozen=True)
class TileDetail:
    """Marker for a plain map tile."""


@dataclass(frozen=True)
class StaticDetail:
    """Marker for a static, non-physical decoration object."""


@dataclass(frozen=True)
class BallShape:
    radius: float


@dataclass(frozen=True)
class RectShape:
    width: float
    height: float


@dataclass(frozen=True)
class PolygonShape:
    points: Tuple[Tuple[float, float], ...]


ColliderShape = Union[BallShape, RectShape, PolygonShape]


@dataclass
class CollisionGroups:
    membership: List[int] = field(default_factory=list)
    whitelist: List[int] = field(default_factory=list)
    blacklist: List[int] = field(default_factory=list)


@dataclass
class Collider:
    shape: ColliderShape
    density: float
    restitution: float
    friction: float
    offset_x: float = 0.0
    offset_y: float = 0.0
    is_sensor: bool = False
    collision_groups: CollisionGroups = field(default_factory=CollisionGroups)
    location: Optional[Tuple[float, float]] = None


@dataclass
class PhysicsDetail:
    """Rigid body (or bare colliders when `collider_only`) for an object."""
    colliders: List[Collider]
    gravity_enabled: bool = True
    no_rotate: bool = False
    collider_only: bool = False
    location: Optional[Tuple[float, float]] = None


Detail = Union[TileDetail, StaticDetail, PhysicsDetail]


# =============================================================================
# Entities
# =============================================================================

@dataclass
class EntityDescriptor:
    """
    One output record.

    `atlas` is only set on the first entity that references a given atlas;
    later entities carry just the SpriteRef.
    """
    detail: Detail
    atlas: Optional[AtlasDefinition] = None
    sprite: Optional[SpriteRef] = None
    transform: Optional[Transform] = None


@dataclass
class SceneDescriptor:
    entities: List[EntityDescriptor] = field(default_factory=list)
