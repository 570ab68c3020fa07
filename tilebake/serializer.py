"""
Scene serializer - writes a SceneDescriptor as the engine's JSON scene file.

Layout of one entity:

    {"data": {"sheet": {...}, "render": {...}, "transform": {...}, "detail": {...}}}

Unset optional fields are left out entirely, never written as null. Key
order is fixed so identical scenes always produce identical text.
"""

import json
from typing import Any, Dict, List
from .constants import (
    DEFAULT_SAMPLER_INFO,
    IDENTITY_ROTATION,
    TEXTURE_FORMAT_TAG,
    UNIT_SCALE,
)
from .schema import (
    AtlasDefinition,
    BallShape,
    Collider,
    ColliderShape,
    Detail,
    EntityDescriptor,
    PhysicsDetail,
    PolygonShape,
    RectShape,
    SceneDescriptor,
    SpriteRef,
    StaticDetail,
    TileDetail,
    Transform,
)


def sheet_to_json(atlas: AtlasDefinition) -> Dict[str, Any]:
    sprites = [
        {
            "x": sprite.x,
            "y": sprite.y,
            "width": sprite.width,
            "height": sprite.height,
            "flip_horizontal": False,
            "flip_vertical": False,
        }
        for sprite in atlas.sprites
    ]
    return {
        "Sheet": {
            "texture": {
                "File": [
                    atlas.texture_path,
                    [TEXTURE_FORMAT_TAG, {"sampler_info": dict(DEFAULT_SAMPLER_INFO)}],
                ]
            },
            "sprites": [
                {
                    "List": {
                        "texture_width": atlas.texture_width,
                        "texture_height": atlas.texture_height,
                        "sprites": sprites,
                    }
                }
            ],
            "name": atlas.name,
        }
    }


def render_to_json(sprite: SpriteRef) -> Dict[str, Any]:
    return {
        "sheet": {"Name": sprite.atlas_name},
        "sprite_number": sprite.sprite_index,
    }


def transform_to_json(transform: Transform) -> Dict[str, Any]:
    return {
        "translation": [transform.x, transform.y, transform.z],
        "rotation": list(IDENTITY_ROTATION),
        "scale": list(UNIT_SCALE),
    }


def shape_to_json(shape: ColliderShape) -> Dict[str, Any]:
    if isinstance(shape, BallShape):
        return {"Ball": {"radius": shape.radius}}
    if isinstance(shape, RectShape):
        return {"Rect": {"width": shape.width, "height": shape.height}}
    if isinstance(shape, PolygonShape):
        return {"Polygon": {"points": [[x, y] for x, y in shape.points]}}
    raise TypeError(f"Unknown collider shape: {shape!r}")


def collider_to_json(collider: Collider) -> Dict[str, Any]:
    data = {
        "shape": shape_to_json(collider.shape),
        "density": collider.density,
        "restitution": collider.restitution,
        "friction": collider.friction,
        "offset_x": collider.offset_x,
        "offset_y": collider.offset_y,
        "is_sensor": collider.is_sensor,
        "collision_group": {
            "membership": list(collider.collision_groups.membership),
            "whitelist": list(collider.collision_groups.whitelist),
            "blacklist": list(collider.collision_groups.blacklist),
        },
    }
    if collider.location is not None:
        data["location"] = list(collider.location)
    return data


def detail_to_json(detail: Detail) -> Dict[str, Any]:
    """Tagged single-key object for a detail payload."""
    if isinstance(detail, TileDetail):
        return {"Tile": {}}
    if isinstance(detail, StaticDetail):
        return {"Static": {}}
    if isinstance(detail, PhysicsDetail):
        body: Dict[str, Any] = {
            "colliders": [collider_to_json(c) for c in detail.colliders],
            "gravity_enabled": detail.gravity_enabled,
            "no_rotate": detail.no_rotate,
            "collider_only": detail.collider_only,
        }
        if detail.location is not None:
            body["location"] = list(detail.location)
        return {"Physics": body}
    raise TypeError(f"Unknown detail payload: {detail!r}")


def entity_to_json(entity: EntityDescriptor) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    if entity.atlas is not None:
        data["sheet"] = sheet_to_json(entity.atlas)
    if entity.sprite is not None:
        data["render"] = render_to_json(entity.sprite)
    if entity.transform is not None:
        data["transform"] = transform_to_json(entity.transform)
    data["detail"] = detail_to_json(entity.detail)
    return {"data": data}


def scene_to_json(scene: SceneDescriptor) -> Dict[str, List[Dict[str, Any]]]:
    return {"entities": [entity_to_json(entity) for entity in scene.entities]}


def serialize_scene(scene: SceneDescriptor, indent: int = 2) -> str:
    """
    Serialize a scene to JSON text.

    Args:
        scene: Assembled scene
        indent: JSON indentation

    Returns:
        JSON text terminated by a newline
    """
    return json.dumps(scene_to_json(scene), indent=indent, ensure_ascii=False, allow_nan=False) + "\n"
