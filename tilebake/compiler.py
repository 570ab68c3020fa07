"""
Map compiler - runs the whole pipeline for one map.

    load_map -> load_tilesets (pack image collections) -> GidResolver
             -> EntityAssembler -> serialize_scene -> OutputWriter

Only atlases referenced by at least one emitted entity are written.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set, Union
from .assembler import EntityAssembler
from .classifier import ObjectClassifier
from .config import CompilerConfig
from .gid_resolver import GidResolver
from .logging_config import get_logger
from .output_writer import CopyFile, DataFile, ImageFile, MapFile, OutputWriter
from .schema import SceneDescriptor
from .serializer import serialize_scene
from .tileset_loader import TilesetAtlas, load_tilesets
from .tmx_reader import load_map

logger = get_logger('compiler')


@dataclass
class CompiledMap:
    """Everything a compilation produced, ready to be written."""
    scene: SceneDescriptor
    scene_text: str
    used_atlases: Set[int] = field(default_factory=set)
    files: List[MapFile] = field(default_factory=list)

    def write(self, output_dir: Union[str, Path]) -> List[Path]:
        return OutputWriter(output_dir).write(self.files)


def atlas_file(atlas: TilesetAtlas, config: CompilerConfig) -> MapFile:
    dest = Path(config.atlas_filename(atlas.index))
    if atlas.is_packed:
        return ImageFile(dest=dest, image=atlas.image)
    return CopyFile(source=atlas.source_path, dest=dest)


class MapCompiler:
    """Compiles TMX maps with one configuration and classifier."""

    def __init__(
        self,
        config: Optional[CompilerConfig] = None,
        classifier: Optional[ObjectClassifier] = None
    ):
        self.config = config or CompilerConfig()
        self.classifier = classifier

    def compile(self, map_path: Union[str, Path]) -> CompiledMap:
        """
        Compile a map in memory.

        Args:
            map_path: Path to the .tmx file

        Returns:
            CompiledMap with the scene text and the list of output files

        Raises:
            AssetError: Any fatal compilation failure
        """
        tiled_map = load_map(map_path)
        atlases = load_tilesets(tiled_map.tilesets, self.config)
        resolver = GidResolver(
            [tileset.first_gid for tileset in tiled_map.tilesets],
            [atlas.tile_ids for atlas in atlases],
        )

        assembler = EntityAssembler(tiled_map, atlases, resolver, self.classifier)
        scene = assembler.assemble()
        scene_text = serialize_scene(scene)

        files = [atlas_file(atlas, self.config) for atlas in atlases if atlas.index in assembler.used_atlases]
        unused = len(atlases) - len(files)
        if unused:
            logger.info(f"{unused} tileset atlases are never referenced and will not be written")
        files.append(DataFile(dest=Path(self.config.scene_filename), data=scene_text.encode('utf-8')))

        return CompiledMap(
            scene=scene,
            scene_text=scene_text,
            used_atlases=set(assembler.used_atlases),
            files=files,
        )


def compile_map(
    map_path: Union[str, Path],
    output_dir: Union[str, Path],
    config: Optional[CompilerConfig] = None,
    classifier: Optional[ObjectClassifier] = None
) -> CompiledMap:
    """Compile a map and write its outputs; returns the compiled result."""
    compiled = MapCompiler(config, classifier).compile(map_path)
    compiled.write(output_dir)
    return compiled
