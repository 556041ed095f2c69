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

"""BSP level decoding.

parse_level() reads the header, checks every lump against the buffer and
turns each lump into typed records. Record decoders take the raw field
tuples produced by bsp_construct.extract() and never cross-check indices,
out of range references are reported later by the geometry builder.
"""

from __future__ import annotations

from .bsp_construct import (
    LIGHTING_GREY_LAYOUT,
    LIGHTING_RGB_LAYOUT,
    LUMP_LAYOUTS,
    bsp_header_struct,
    check_range,
    extract,
    parse_at,
)
from .constants import BSP_VERSION_GOLDSRC, LUMP_NAMES, SUPPORTED_VERSIONS
from .entities import parse_entities
from .errors import UnsupportedVersionError
from .logging_utils import get_logger
from .textures import parse_textures
from .types import (
    BBox,
    ChildRef,
    ClipNode,
    Edge,
    Face,
    Leaf,
    LevelData,
    Lump,
    LumpDirectory,
    Model,
    Node,
    Plane,
    TexInfo,
    Vertex,
)

_logger = get_logger(__name__)


def parse_directory(buffer) -> LumpDirectory:
    """Read the format id and lump table.

    Raises:
        MalformedBufferError: Buffer shorter than the header
        UnsupportedVersionError: Unknown format id
        OutOfBoundsError: A lump extends past the end of the buffer
    """
    header = parse_at(bsp_header_struct, buffer, 0, what="BSP header")
    if header.version not in SUPPORTED_VERSIONS:
        raise UnsupportedVersionError(f"Unsupported BSP version {int(header.version)}")

    lumps = {}
    for name, entry in zip(LUMP_NAMES, header.lumps):
        check_range(buffer, entry.offset, entry.size, what=f"lump {name}")
        lumps[name] = Lump(name, entry.offset, entry.size)

    return LumpDirectory(int(header.version), lumps)


def _bbox(values) -> BBox:
    return BBox(tuple(values[0:3]), tuple(values[3:6]))


def decode_planes(rows) -> list[Plane]:
    return [Plane(x, y, z, dist, type_) for x, y, z, dist, type_ in rows]


def decode_vertices(rows) -> list[Vertex]:
    return [Vertex(*row) for row in rows]


def decode_edges(rows) -> list[Edge]:
    return [Edge(*row) for row in rows]


def decode_surfedges(rows) -> list[int]:
    return [row[0] for row in rows]


def decode_faces(rows) -> list[Face]:
    return [Face(plane=r[0], side=r[1], first_edge=r[2], edges=r[3], texinfo=r[4],
                 styles=tuple(r[5:9]), lightmap_offset=r[9])
            for r in rows]


def decode_texinfo(rows) -> list[TexInfo]:
    return [TexInfo(s_axis=tuple(r[0:3]), s_shift=r[3], t_axis=tuple(r[4:7]), t_shift=r[7],
                    miptex=r[8], flags=r[9])
            for r in rows]


def decode_models(rows) -> list[Model]:
    return [Model(mins=tuple(r[0:3]), maxs=tuple(r[3:6]), origin=tuple(r[6:9]),
                  head_nodes=tuple(r[9:13]), vis_leafs=r[13], first_face=r[14], faces=r[15])
            for r in rows]


def decode_nodes(rows) -> list[Node]:
    return [Node(plane=r[0], front=ChildRef.decode(r[1]), back=ChildRef.decode(r[2]),
                 bbox=_bbox(r[3:9]), face=r[9], faces=r[10])
            for r in rows]


def decode_leaves(rows) -> list[Leaf]:
    return [Leaf(type=r[0], vislist=r[1], bbox=_bbox(r[2:8]), face=r[8], faces=r[9],
                 ambient=tuple(r[10:14]))
            for r in rows]


def decode_clipnodes(rows) -> list[ClipNode]:
    return [ClipNode(*row) for row in rows]


def decode_marksurfaces(rows) -> list[int]:
    return [row[0] for row in rows]


def decode_lighting(rows, rgb: bool) -> list[tuple[int, int, int]]:
    """Lighting samples as RGB triples, greyscale samples are expanded."""
    if rgb:
        return [tuple(row) for row in rows]
    return [(row[0], row[0], row[0]) for row in rows]


RECORD_DECODERS = {
    "PLANES": decode_planes,
    "VERTICES": decode_vertices,
    "EDGES": decode_edges,
    "SURFEDGES": decode_surfedges,
    "FACES": decode_faces,
    "TEXINFO": decode_texinfo,
    "MODELS": decode_models,
    "NODES": decode_nodes,
    "LEAVES": decode_leaves,
    "CLIPNODES": decode_clipnodes,
    "MARKSURFACES": decode_marksurfaces,
}


def extract_lump(buffer, lump: Lump, fields):
    return extract(buffer, lump.offset, lump.size, fields)


def parse_level(buffer) -> LevelData:
    """Decode a BSP buffer.

    Args:
        buffer: Complete file contents

    Returns:
        Decoded level, no geometry is built here

    Raises:
        ParseError: The buffer cannot be decoded, nothing partial is returned
    """
    directory = parse_directory(buffer)
    version = directory.version
    rgb = version == BSP_VERSION_GOLDSRC
    _logger.debug(f"BSP version {version}")

    records = {}
    for name, decoder in RECORD_DECODERS.items():
        lump = directory.lump(name)
        records[name.lower()] = decoder(extract_lump(buffer, lump, LUMP_LAYOUTS[name]))
        _logger.debug(f"{name}: {lump.size} bytes, {len(records[name.lower()])} records")

    lighting_lump = directory.lump("LIGHTING")
    lighting_layout = LIGHTING_RGB_LAYOUT if rgb else LIGHTING_GREY_LAYOUT
    lighting = decode_lighting(extract_lump(buffer, lighting_lump, lighting_layout), rgb)

    entity_lump = directory.lump("ENTITIES")
    entity_text = bytes(buffer[entity_lump.offset:entity_lump.end]).decode("ascii", errors="replace")
    entities = parse_entities(entity_text)

    visibility_lump = directory.lump("VISIBILITY")
    visibility = bytes(buffer[visibility_lump.offset:visibility_lump.end])

    texture_lump = directory.lump("TEXTURES")
    textures = parse_textures(buffer, texture_lump.offset, texture_lump.size, per_texture_palette=rgb)

    level = LevelData(
        directory=directory,
        entities=entities,
        textures=textures,
        visibility=visibility,
        lighting=lighting,
        **records,
    )
    _logger.info(f"Parsed BSP{version}: {len(level.faces)} faces, {len(level.models)} models, "
                 f"{len(level.textures)} textures, {len(level.entities)} entities")
    return level
