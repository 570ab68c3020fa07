"""
Main entry point for the tilebake map compiler.
"""

import argparse
import sys
from pathlib import Path
from .compiler import compile_map
from .config import CompilerConfig, load_config
from .errors import AssetError
from .logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tilebake",
        description="Compile a Tiled TMX map into texture atlases and a JSON scene file"
    )
    parser.add_argument(
        "map",
        help="Path to the .tmx map file"
    )
    parser.add_argument(
        "output",
        help="Output directory for atlases and the scene file"
    )
    parser.add_argument(
        "--prefix",
        default=None,
        help="Asset-root relative directory prepended to texture paths in the scene file"
    )
    parser.add_argument(
        "--padding",
        type=int,
        default=None,
        help="Pixels of padding between packed tile images (default: 4)"
    )
    parser.add_argument(
        "--max-atlas-size",
        type=int,
        default=None,
        help="Largest width/height of a packed atlas (default: 4096)"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="JSON file with compiler settings; command-line flags take precedence"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show detailed progress information"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Show debug information (implies verbose)"
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logger = setup_logging(args.verbose, args.debug)

    map_path = Path(args.map).resolve()
    output_dir = Path(args.output).resolve()

    if not map_path.is_file():
        logger.error(f"Map file does not exist: {map_path}")
        return 1

    try:
        config = load_config(args.config) if args.config else CompilerConfig()
        if args.prefix is not None:
            config.prefix = args.prefix
        if args.padding is not None:
            config.padding = args.padding
        if args.max_atlas_size is not None:
            config.max_atlas_size = args.max_atlas_size
        config.validate()

        logger.info(f"Map: {map_path}")
        logger.info(f"Output directory: {output_dir}")

        compiled = compile_map(map_path, output_dir, config)
    except AssetError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1

    logger.info(
        f"Compiled {len(compiled.scene.entities)} entities, "
        f"{len(compiled.used_atlases)} atlases written"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
