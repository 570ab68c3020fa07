"""
Entity assembler - walks the map and emits one entity per tile and object.

Atlas definitions are emitted once: the first entity that references an
atlas carries its full AtlasDefinition, every later one only a SpriteRef by
name. The set of atlases already emitted is owned by the assembler and only
grows, so the output depends only on traversal order:

1. tile layers, rows top to bottom, columns left to right
2. object groups, objects in document order
"""

from typing import List, Optional, Set
from .classifier import ObjectClassifier, DefaultObjectClassifier, SpriteContext
from .coordinates import tile_to_world
from .errors import InvalidGidError, UnsupportedShapeError
from .gid_resolver import GidResolver
from .logging_config import get_logger
from .schema import Detail, EntityDescriptor, SceneDescriptor, SpriteRef, Transform
from .tileset_loader import TilesetAtlas
from .tmx_reader import TiledMap

logger = get_logger('assembler')


class EntityAssembler:
    """Builds the SceneDescriptor for one map."""

    def __init__(
        self,
        tiled_map: TiledMap,
        atlases: List[TilesetAtlas],
        resolver: GidResolver,
        classifier: Optional[ObjectClassifier] = None
    ):
        self.tiled_map = tiled_map
        self.atlases = atlases
        self.resolver = resolver
        self.classifier = classifier or DefaultObjectClassifier()
        self.used_atlases: Set[int] = set()
        self.skipped_objects = 0

    def sprite_context(self, gid: Optional[int]) -> Optional[SpriteContext]:
        """
        Resolve a GID into a SpriteContext.

        The context carries the atlas definition only if no entity carrying
        that atlas has been emitted yet.

        Returns:
            None for an empty or missing GID

        Raises:
            InvalidGidError: If the GID is outside every tileset
        """
        if not gid:
            return None
        entry = self.resolver.resolve(gid)
        atlas = self.atlases[entry.tileset_index]
        definition = None
        if entry.tileset_index not in self.used_atlases:
            definition = atlas.definition
        return SpriteContext(
            atlas_index=entry.tileset_index,
            sprite_index=entry.sprite_index,
            name=atlas.definition.name,
            definition=definition,
        )

    def _emit(
        self,
        ctx: Optional[SpriteContext],
        detail: Detail,
        transform: Optional[Transform]
    ) -> EntityDescriptor:
        entity = EntityDescriptor(detail=detail, transform=transform)
        if ctx is not None:
            entity.sprite = SpriteRef(atlas_name=ctx.name, sprite_index=ctx.sprite_index)
            if ctx.atlas_index not in self.used_atlases:
                entity.atlas = ctx.definition
                self.used_atlases.add(ctx.atlas_index)
        return entity

    def assemble_tiles(self) -> List[EntityDescriptor]:
        tile_width = self.tiled_map.tile_width
        tile_height = self.tiled_map.tile_height
        entities = []

        for layer_index, layer in enumerate(self.tiled_map.layers):
            for row, gids in enumerate(layer.rows):
                for col, gid in enumerate(gids):
                    try:
                        ctx = self.sprite_context(gid)
                    except InvalidGidError:
                        logger.error(
                            f"Invalid GID {gid} in layer '{layer.name}' at row {row}, column {col}"
                        )
                        raise
                    if ctx is None:
                        continue

                    x, y, z = tile_to_world(row, col, layer_index, tile_width, tile_height)
                    transform = Transform(x, y, z)
                    detail = self.classifier.classify_tile(ctx, transform, layer_index)
                    if detail is None:
                        continue
                    entities.append(self._emit(ctx, detail, transform))

            logger.debug(f"Layer '{layer.name}': {len(entities)} tile entities so far")
        return entities

    def assemble_objects(self) -> List[EntityDescriptor]:
        entities = []

        for group_index, group in enumerate(self.tiled_map.object_groups):
            for obj in group.objects:
                if not self.classifier.handles(obj):
                    logger.info(f"Skipping object {obj.id} '{obj.name}' with unrecognized type '{obj.type}'")
                    self.skipped_objects += 1
                    continue

                try:
                    ctx = self.sprite_context(obj.gid)
                except InvalidGidError:
                    logger.error(f"Invalid GID {obj.gid} on object {obj.id} in group '{group.name}'")
                    raise

                try:
                    outcome = self.classifier.classify_object(obj, ctx, group_index)
                except UnsupportedShapeError as e:
                    logger.warning(f"Skipping object {obj.id} '{obj.name}' in group '{group.name}': {e}")
                    self.skipped_objects += 1
                    continue
                if outcome is None:
                    self.skipped_objects += 1
                    continue

                sprite_ctx = ctx if outcome.with_sprite else None
                entities.append(self._emit(sprite_ctx, outcome.detail, outcome.transform))

        return entities

    def assemble(self) -> SceneDescriptor:
        """Run the full traversal: tiles first, then objects."""
        tiles = self.assemble_tiles()
        objects = self.assemble_objects()
        logger.info(
            f"Assembled {len(tiles)} tile entities and {len(objects)} object entities "
            f"({self.skipped_objects} objects skipped), {len(self.used_atlases)} atlases used"
        )
        return SceneDescriptor(entities=tiles + objects)
