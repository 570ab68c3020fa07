import json
import tempfile
import unittest
from pathlib import Path

from PIL import Image

from tilebake.compiler import MapCompiler, compile_map
from tilebake.config import CompilerConfig
from tilebake.errors import InvalidGidError
from tests.helpers import (
    build_sample_map,
    csv_layer_xml,
    make_sheet,
    map_xml,
    patterned_image,
    sheet_tileset_xml,
    write_text,
)


class CompilerTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.map_path = build_sample_map(self.dir / "src")
        self.out = self.dir / "out"

    def tearDown(self):
        self._tmp.cleanup()

    def entities(self, output_dir=None):
        text = ((output_dir or self.out) / "map.json").read_text(encoding='utf-8')
        return json.loads(text)["entities"]


class TestCompileMap(CompilerTestCase):
    def test_outputs_only_used_atlases(self):
        compile_map(self.map_path, self.out)
        self.assertTrue((self.out / "sprite_sheet_0.png").is_file())
        self.assertTrue((self.out / "sprite_sheet_1.png").is_file())
        self.assertFalse((self.out / "sprite_sheet_2.png").exists())
        self.assertTrue((self.out / "map.json").is_file())

    def test_sheet_is_copied_byte_for_byte(self):
        compile_map(self.map_path, self.out)
        self.assertEqual(
            (self.out / "sprite_sheet_0.png").read_bytes(),
            (self.dir / "src" / "terrain.png").read_bytes(),
        )

    def test_scene_contents(self):
        compiled = compile_map(self.map_path, self.out)
        entities = self.entities()

        # 4 tiles, static lamp, dynamic crate; the spawn point is dropped
        self.assertEqual(len(entities), 6)
        self.assertEqual(compiled.used_atlases, {0, 1})
        self.assertEqual(sum(1 for e in entities if "sheet" in e["data"]), 2)

        first = entities[0]["data"]
        self.assertEqual(first["sheet"]["Sheet"]["name"], "map_sprite_sheet_0")
        self.assertEqual(first["transform"]["translation"], [4.0, -4.0, 0.0])
        self.assertEqual(first["detail"], {"Tile": {}})

        packed = entities[2]["data"]
        self.assertEqual(packed["sheet"]["Sheet"]["name"], "map_sprite_sheet_1")
        self.assertEqual(packed["render"], {"sheet": {"Name": "map_sprite_sheet_1"}, "sprite_number": 0})

        lamp = entities[4]["data"]
        self.assertNotIn("sheet", lamp)
        self.assertEqual(lamp["render"]["sprite_number"], 1)
        self.assertEqual(lamp["detail"], {"Static": {}})
        self.assertEqual(lamp["transform"]["translation"], [18.0, -13.0, 0.0])

        crate = entities[5]["data"]
        self.assertNotIn("render", crate)
        self.assertEqual(crate["detail"]["Physics"]["location"], [4.0, -4.0])

    def test_packed_atlas_reproduces_tile_images(self):
        compile_map(self.map_path, self.out)
        sheet = self.entities()[2]["data"]["sheet"]["Sheet"]
        rects = sheet["sprites"][0]["List"]["sprites"]
        with Image.open(self.out / "sprite_sheet_1.png") as img:
            atlas = img.convert('RGBA')
        self.assertEqual(atlas.size, (sheet["sprites"][0]["List"]["texture_width"],
                                      sheet["sprites"][0]["List"]["texture_height"]))
        for source, rect in zip((patterned_image(8, 8, 1), patterned_image(4, 6, 2)), rects):
            box = (rect["x"], rect["y"], rect["x"] + rect["width"], rect["y"] + rect["height"])
            self.assertEqual(atlas.crop(box).tobytes(), source.tobytes())

    def test_output_is_deterministic(self):
        other = self.dir / "out2"
        compile_map(self.map_path, self.out)
        compile_map(self.map_path, other)
        for name in ("map.json", "sprite_sheet_0.png", "sprite_sheet_1.png"):
            self.assertEqual((self.out / name).read_bytes(), (other / name).read_bytes(), name)

    def test_prefix_in_texture_paths(self):
        compile_map(self.map_path, self.out, CompilerConfig(prefix="assets/level"))
        paths = [
            e["data"]["sheet"]["Sheet"]["texture"]["File"][0]
            for e in self.entities() if "sheet" in e["data"]
        ]
        self.assertEqual(paths, ["assets/level/sprite_sheet_0.png", "assets/level/sprite_sheet_1.png"])
        self.assertTrue((self.out / "sprite_sheet_0.png").is_file())

    def test_custom_names(self):
        config = CompilerConfig(
            scene_filename="scene.json",
            atlas_file_template="atlas{index}.png",
            atlas_name_template="level_{index}",
        )
        compile_map(self.map_path, self.out, config)
        self.assertTrue((self.out / "atlas0.png").is_file())
        data = json.loads((self.out / "scene.json").read_text(encoding='utf-8'))
        self.assertEqual(data["entities"][0]["data"]["sheet"]["Sheet"]["name"], "level_0")


class TestCompileFailures(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_invalid_gid_writes_nothing(self):
        make_sheet(self.dir / "t.png", 1, 1)
        children = [sheet_tileset_xml(1, "t", "t.png", 8, 8), csv_layer_xml("ground", [[1, 9]])]
        map_path = write_text(self.dir / "bad.tmx", map_xml(2, 1, children))
        out = self.dir / "out"
        with self.assertRaises(InvalidGidError):
            compile_map(map_path, out)
        self.assertFalse((out / "map.json").exists())

    def test_compile_in_memory(self):
        map_path = build_sample_map(self.dir)
        compiled = MapCompiler().compile(map_path)
        self.assertTrue(compiled.scene_text.endswith("\n"))
        self.assertEqual([str(f.dest) for f in compiled.files],
                         ["sprite_sheet_0.png", "sprite_sheet_1.png", "map.json"])


if __name__ == '__main__':
    unittest.main()
