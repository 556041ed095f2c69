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

"""Unit tests for bsp_io module."""

import unittest

from io_scene_bsp.bsp_construct import bsp_header_struct
from io_scene_bsp.bsp_io import parse_directory, parse_level
from io_scene_bsp.constants import LUMP_NAMES
from io_scene_bsp.errors import (
    MalformedBufferError,
    MissingLumpError,
    OutOfBoundsError,
    ParseError,
    UnsupportedVersionError,
)
from io_scene_bsp.types import ChildKind, ChildRef, Plane
from io_scene_bsp.tests.builders import HEADER_SIZE, build_bsp, build_square_bsp, lump_records


class TestParseDirectory(unittest.TestCase):
    """Tests for the header and lump table."""

    def test_lump_table(self):
        """Test that lumps are laid out in header order."""
        planes = lump_records("PLANES", [(1.0, 0.0, 0.0, 10.0, 0)])
        directory = parse_directory(build_bsp(30, {"PLANES": planes}))

        self.assertEqual(directory.version, 30)
        self.assertEqual(list(directory.lumps), list(LUMP_NAMES))
        self.assertEqual(directory.lump("PLANES").offset, HEADER_SIZE)
        self.assertEqual(directory.lump("PLANES").size, 20)
        self.assertEqual(directory.lump("ENTITIES").size, 0)

    def test_unknown_lump_name(self):
        """Test that looking up a lump outside the table fails."""
        directory = parse_directory(build_bsp(29))
        with self.assertRaises(MissingLumpError):
            directory.lump("BRUSHES")

    def test_unsupported_version(self):
        """Test that format ids other than 29 and 30 are rejected."""
        for version in (28, 31, 0x50534256):
            with self.subTest(version=version):
                with self.assertRaises(UnsupportedVersionError):
                    parse_directory(build_bsp(version))

    def test_short_header(self):
        """Test that a buffer shorter than the header is rejected."""
        with self.assertRaises(ParseError):
            parse_directory(b"\x1e\x00\x00\x00\x7c\x00")

    def test_lump_past_end(self):
        """Test that a lump extending past the buffer is rejected."""
        entries = [dict(offset=HEADER_SIZE, size=0)] * len(LUMP_NAMES)
        entries[1] = dict(offset=HEADER_SIZE, size=1000)
        data = bsp_header_struct.build(dict(version=30, lumps=entries)) + bytes(20)
        with self.assertRaises(OutOfBoundsError):
            parse_directory(data)


class TestParseLevel(unittest.TestCase):
    """Tests for parse_level()."""

    def test_single_plane(self):
        """Test a level holding one plane and nothing else."""
        planes = lump_records("PLANES", [(1.0, 0.0, 0.0, 10.0, 0)])
        level = parse_level(build_bsp(30, {"PLANES": planes}))

        self.assertEqual(level.planes, [Plane(1.0, 0.0, 0.0, 10.0, 0)])
        self.assertEqual(level.planes[0].normal, (1.0, 0.0, 0.0))
        self.assertEqual(level.vertices, [])
        self.assertEqual(level.textures, [])
        self.assertEqual(level.entities, [])
        self.assertEqual(level.visibility, b"")

    def test_partial_record_rejected(self):
        """Test that a lump size that is not a whole number of records fails."""
        data = lump_records("PLANES", [(1.0, 0.0, 0.0, 10.0, 0)]) + b"\x00"
        with self.assertRaises(MalformedBufferError):
            parse_level(build_bsp(30, {"PLANES": data}))

    def test_square_level(self):
        """Test decoding every lump of a small level."""
        level = parse_level(build_square_bsp(30))

        self.assertEqual(level.version, 30)
        self.assertEqual(len(level.vertices), 4)
        self.assertEqual(level.vertices[2], (64.0, 64.0, 0.0))
        self.assertEqual(level.edges[2], (2, 1))
        self.assertEqual(level.surfedges, [1, -2, 3, 4])
        self.assertEqual(level.marksurfaces, [0])

        face = level.faces[0]
        self.assertEqual((face.first_edge, face.edges, face.texinfo), (0, 4, 0))
        self.assertEqual(face.styles, (0, 255, 255, 255))
        self.assertEqual(face.lightmap_offset, 3)
        self.assertTrue(face.has_lightmap)

        texinfo = level.texinfo[0]
        self.assertEqual(texinfo.s_axis, (1.0, 0.0, 0.0))
        self.assertEqual(texinfo.t_axis, (0.0, 1.0, 0.0))

        model = level.models[0]
        self.assertEqual(model.head_nodes, (0, 0, 0, 0))
        self.assertEqual((model.first_face, model.faces), (0, 1))
        self.assertEqual(model.maxs, (64.0, 64.0, 0.0))

        leaf = level.leaves[1]
        self.assertEqual((leaf.face, leaf.faces), (0, 1))
        self.assertEqual(leaf.bbox.maxs, (64, 64, 0))

    def test_child_references(self):
        """Test that node children are classified by sign."""
        node = parse_level(build_square_bsp(30)).nodes[0]
        self.assertEqual(node.front, ChildRef(ChildKind.LEAF, 1))
        self.assertEqual(node.back, ChildRef(ChildKind.EMPTY))

    def test_child_ref_decode(self):
        """Test the three kinds of child reference."""
        self.assertEqual(ChildRef.decode(5), ChildRef(ChildKind.NODE, 5))
        self.assertEqual(ChildRef.decode(0), ChildRef(ChildKind.NODE, 0))
        self.assertEqual(ChildRef.decode(-1), ChildRef(ChildKind.EMPTY, None))
        self.assertEqual(ChildRef.decode(-2), ChildRef(ChildKind.LEAF, 1))
        self.assertEqual(ChildRef.decode(-12), ChildRef(ChildKind.LEAF, 11))

    def test_rgb_lighting(self):
        """Test that BSP30 lighting is read as RGB triples."""
        level = parse_level(build_square_bsp(30))
        self.assertEqual(level.lighting, [(10, 20, 30), (255, 128, 0)])

    def test_grey_lighting(self):
        """Test that BSP29 lighting is expanded from one byte per sample."""
        level = parse_level(build_square_bsp(29))
        self.assertEqual(len(level.lighting), 6)
        self.assertEqual(level.lighting[1], (20, 20, 20))
        self.assertEqual(level.lighting[4], (128, 128, 128))

    def test_rgb_lighting_partial_sample(self):
        """Test that BSP30 lighting must hold whole RGB samples."""
        with self.assertRaises(MalformedBufferError):
            parse_level(build_bsp(30, {"LIGHTING": bytes(4)}))

    def test_entities(self):
        """Test the entity lump and worldspawn helpers."""
        level = parse_level(build_square_bsp(30))

        self.assertEqual(len(level.entities), 2)
        self.assertEqual(level.worldspawn().classname, "worldspawn")
        self.assertEqual(level.entities[1].origin, (32.0, 32.0, 16.0))
        self.assertEqual(level.required_wads(), ["halflife.wad", "decals.wad"])

    def test_external_textures(self):
        """Test that textures without pixels are listed as external."""
        level = parse_level(build_square_bsp(30, embedded=False))
        self.assertEqual(level.external_textures(), ["WALL1"])

        level = parse_level(build_square_bsp(30, embedded=True))
        self.assertEqual(level.external_textures(), [])

    def test_summary(self):
        """Test record counts."""
        summary = parse_level(build_square_bsp(30)).summary()
        self.assertEqual(summary['version'], 30)
        self.assertEqual(summary['faces'], 1)
        self.assertEqual(summary['edges'], 5)
        self.assertEqual(summary['leaves'], 2)

    def test_idempotent(self):
        """Test that decoding the same buffer twice gives equal results."""
        data = build_square_bsp(30, embedded=True)
        self.assertEqual(parse_level(data), parse_level(data))

    def test_accepts_bytearray(self):
        """Test that mutable buffers decode like bytes."""
        data = build_square_bsp(29)
        self.assertEqual(parse_level(bytearray(data)), parse_level(data))


if __name__ == '__main__':
    unittest.main()
