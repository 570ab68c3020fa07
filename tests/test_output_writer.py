import tempfile
import unittest
from pathlib import Path

from PIL import Image

from tilebake.errors import IoError
from tilebake.output_writer import CopyFile, DataFile, ImageFile, OutputWriter, encode_png


class TestOutputWriter(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.writer = OutputWriter(self.dir / "out")

    def tearDown(self):
        self._tmp.cleanup()

    def test_writes_every_kind(self):
        source = self.dir / "sheet.bin"
        source.write_bytes(b"\x89sheet")
        image = Image.new('RGBA', (2, 2), (1, 2, 3, 4))

        written = self.writer.write([
            CopyFile(source=source, dest=Path("a.png")),
            ImageFile(dest=Path("nested/b.png"), image=image),
            DataFile(dest=Path("map.json"), data=b"{}\n"),
        ])

        out = self.dir / "out"
        self.assertEqual(written, [out / "a.png", out / "nested" / "b.png", out / "map.json"])
        self.assertEqual((out / "a.png").read_bytes(), b"\x89sheet")
        self.assertEqual((out / "nested" / "b.png").read_bytes(), encode_png(image))
        self.assertEqual((out / "map.json").read_bytes(), b"{}\n")

    def test_missing_copy_source(self):
        with self.assertRaises(IoError):
            self.writer.write_file(CopyFile(source=self.dir / "gone.png", dest=Path("a.png")))

    def test_unwritable_destination(self):
        (self.dir / "out").write_text("a file where the directory should be")
        with self.assertRaises(IoError):
            self.writer.write_file(DataFile(dest=Path("map.json"), data=b""))


if __name__ == '__main__':
    unittest.main()
