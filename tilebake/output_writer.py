"""
Output writer - writes atlas images and the scene file to disk.

Every output is described by a MapFile:
- CopyFile: byte copy of a pre-built tileset sheet
- ImageFile: packed atlas, PNG-encoded when written
- DataFile: raw bytes (the serialized scene)

Any file-system failure raises IoError and aborts the run.
"""

import io
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union
from PIL import Image
from .errors import IoError
from .logging_config import get_logger

logger = get_logger('output_writer')


@dataclass
class CopyFile:
    source: Path
    dest: Path


@dataclass
class ImageFile:
    dest: Path
    image: Image.Image


@dataclass
class DataFile:
    dest: Path
    data: bytes


MapFile = Union[CopyFile, ImageFile, DataFile]


def encode_png(image: Image.Image) -> bytes:
    """Encode an image as PNG bytes."""
    buffer = io.BytesIO()
    image.save(buffer, format='PNG')
    return buffer.getvalue()


class OutputWriter:
    """Writes MapFiles below one output directory."""

    def __init__(self, output_dir: Union[str, Path]):
        self.output_dir = Path(output_dir)

    def write_file(self, file: MapFile) -> Path:
        """
        Write one file, creating parent directories as needed.

        Returns:
            Path that was written

        Raises:
            IoError: On any file-system failure
        """
        dest = self.output_dir / file.dest
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(file, CopyFile):
                shutil.copyfile(file.source, dest)
            elif isinstance(file, ImageFile):
                dest.write_bytes(encode_png(file.image))
            elif isinstance(file, DataFile):
                dest.write_bytes(file.data)
            else:
                raise TypeError(f"Unknown output file kind: {file!r}")
        except OSError as e:
            raise IoError(f"Failed to write {dest}: {e}") from e
        logger.debug(f"Wrote {dest}")
        return dest

    def write(self, files: List[MapFile]) -> List[Path]:
        """Write all files in order; stops at the first failure."""
        written = [self.write_file(file) for file in files]
        logger.info(f"Wrote {len(written)} files to {self.output_dir}")
        return written
