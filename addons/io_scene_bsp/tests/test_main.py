# Copyright 2022-2026 Tommy Lau @ SLODT
#
# Licensed under the GPL License, Version 3.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.gnu.org/licenses/gpl-3.0.html
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Unit tests for the command line entry point."""

import io
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

from io_scene_bsp.__main__ import main, texture_file_name
from io_scene_bsp.tests.builders import build_miptex, build_square_bsp, build_wad


class TestMain(unittest.TestCase):
    """Tests for main()."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def run_main(self, *argv):
        out = io.StringIO()
        with redirect_stdout(out):
            code = main([str(a) for a in argv])
        return code, out.getvalue()

    def test_summary(self):
        """Test decoding a level and printing its summary."""
        bsp = self.tmp / "square.bsp"
        bsp.write_bytes(build_square_bsp(30))

        code, output = self.run_main(bsp)
        self.assertEqual(code, 0)
        self.assertIn("square.bsp", output)
        self.assertIn("triangles     2", output)
        self.assertIn("wad halflife.wad: missing", output)
        self.assertIn("missing textures: WALL1", output)

    def test_wad_resolves_texture(self):
        """Test that --wad archives satisfy external textures."""
        bsp = self.tmp / "square.bsp"
        bsp.write_bytes(build_square_bsp(30))
        wad = self.tmp / "halflife.wad"
        wad.write_bytes(build_wad([("WALL1", build_miptex("WALL1"))]))

        code, output = self.run_main(bsp, "--wad", wad)
        self.assertEqual(code, 0)
        self.assertIn("wad halflife.wad: loaded", output)
        self.assertNotIn("missing textures", output)

    def test_extract_textures(self):
        """Test writing resolved textures as PNG."""
        bsp = self.tmp / "square.bsp"
        bsp.write_bytes(build_square_bsp(30, embedded=True))
        out_dir = self.tmp / "textures"

        code, _ = self.run_main(bsp, "--extract-textures", out_dir)
        self.assertEqual(code, 0)
        self.assertTrue((out_dir / "WALL1.png").is_file())

    def test_extract_liquid_texture_name(self):
        """Test that liquid markers are replaced in PNG file names."""
        bsp = self.tmp / "water.bsp"
        bsp.write_bytes(build_square_bsp(30, texture_name="*water1", embedded=True))
        out_dir = self.tmp / "textures"

        code, _ = self.run_main(bsp, "--extract-textures", out_dir)
        self.assertEqual(code, 0)
        self.assertEqual([p.name for p in out_dir.iterdir()], ["_water1.png"])

    def test_extract_skips_empty_texture(self):
        """Test that an embedded texture without pixels is skipped."""
        bsp = self.tmp / "empty.bsp"
        bsp.write_bytes(build_square_bsp(30, embedded=True, texture_size=(0, 0)))
        out_dir = self.tmp / "textures"

        code, output = self.run_main(bsp, "--extract-textures", out_dir)
        self.assertEqual(code, 0)
        self.assertEqual(list(out_dir.iterdir()), [])
        self.assertIn("corrupt_geometry", output)

    def test_texture_file_name(self):
        """Test file names for tool, liquid and animated textures."""
        self.assertEqual(texture_file_name("WALL1"), "WALL1.png")
        self.assertEqual(texture_file_name("!toxic"), "_toxic.png")
        self.assertEqual(texture_file_name("+0button"), "+0button.png")
        self.assertEqual(texture_file_name("{grate"), "{grate.png")
        self.assertEqual(texture_file_name("..\\evil/name"), "___evil_name.png")

    def test_missing_texture_reported_as_issue(self):
        """Test that missing textures appear among the printed issues."""
        bsp = self.tmp / "square.bsp"
        bsp.write_bytes(build_square_bsp(30))

        _, output = self.run_main(bsp)
        self.assertIn("texture_not_found: Texture not found: WALL1", output)

    def test_invalid_file(self):
        """Test that an undecodable file exits with status 1."""
        bsp = self.tmp / "broken.bsp"
        bsp.write_bytes(b"invalid content")

        code, _ = self.run_main(bsp)
        self.assertEqual(code, 1)

    def test_file_not_found(self):
        """Test that a missing file exits with status 1."""
        code, _ = self.run_main(self.tmp / "missing.bsp")
        self.assertEqual(code, 1)


if __name__ == '__main__':
    unittest.main()
