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


from construct import *

from .constants import HEADER_LUMPS, MIP_LEVELS, MIPTEX_NAME_SIZE
from .errors import MalformedBufferError, OutOfBoundsError

# Primitive field tags, all little-endian
FIELD_TYPES = {
    "u8": Int8ul,
    "i8": Int8sl,
    "u16": Int16ul,
    "i16": Int16sl,
    "u32": Int32ul,
    "i32": Int32sl,
    "f32": Float32l,
}

# Per-lump record layouts
LUMP_LAYOUTS = {
    "PLANES": ("f32", "f32", "f32", "f32", "u32"),
    "VERTICES": ("f32", "f32", "f32"),
    "EDGES": ("u16", "u16"),
    "SURFEDGES": ("i32",),
    "FACES": ("u16", "u16", "u32", "u16", "u16", "u8", "u8", "u8", "u8", "u32"),
    "TEXINFO": ("f32",) * 8 + ("u32", "u32"),
    "MODELS": ("f32",) * 9 + ("i32",) * 7,
    "NODES": ("u32", "i16", "i16") + ("i16",) * 6 + ("u16", "u16"),
    "LEAVES": ("i32", "i32") + ("i16",) * 6 + ("u16", "u16") + ("u8",) * 4,
    "CLIPNODES": ("i32", "i16", "i16"),
    "MARKSURFACES": ("u16",),
}

# Lighting depends on the BSP version
LIGHTING_RGB_LAYOUT = ("u8", "u8", "u8")
LIGHTING_GREY_LAYOUT = ("u8",)


def parse_name(raw):
    """Cut a fixed-width name at the first NUL."""
    return bytes(raw).split(b"\x00", 1)[0].decode("ascii", errors="replace")


def record_struct(fields):
    try:
        return Sequence(*[FIELD_TYPES[f] for f in fields])
    except KeyError as e:
        raise ValueError(f"unknown field type {e.args[0]!r}") from None


def record_width(fields):
    """Byte width of one record made of the given field tags."""
    return record_struct(fields).sizeof()


def check_range(buffer, offset, size, what="region", limit=None):
    end = len(buffer) if limit is None else min(limit, len(buffer))
    if offset < 0 or size < 0 or offset + size > end:
        raise OutOfBoundsError(f"{what} [{offset}, {offset + size}) exceeds {end} bytes")


def extract(buffer, offset, size, fields):
    """Split a byte range into fixed-width records.

    Args:
        buffer: Source buffer
        offset: Start of the range
        size: Length of the range in bytes
        fields: Ordered field tags, one per record column

    Returns:
        List of tuples, one per record
    """
    record = record_struct(fields)
    width = record.sizeof()
    check_range(buffer, offset, size)
    if size % width:
        raise MalformedBufferError(f"range of {size} bytes is not a multiple of record width {width}")

    data = memoryview(buffer)[offset:offset + size]
    try:
        records = Array(size // width, record).parse(data)
    except ConstructError as e:
        raise MalformedBufferError(str(e)) from e
    return [tuple(r) for r in records]


def parse_at(struct, buffer, offset, limit=None, what="structure"):
    """Parse a construct struct at an absolute offset, bounded by limit."""
    limit = len(buffer) if limit is None else limit
    if offset < 0 or offset > limit or limit > len(buffer):
        raise OutOfBoundsError(f"{what} at {offset} outside [0, {limit})")
    try:
        return struct.parse(memoryview(buffer)[offset:limit])
    except StreamError as e:
        raise OutOfBoundsError(f"{what} at {offset} truncated: {e}") from e
    except ConstructError as e:
        raise MalformedBufferError(f"{what} at {offset}: {e}") from e


# ------------------------------------------------------------
# Header
# ------------------------------------------------------------
bsp_lump_struct = Struct(
    "offset" / Int32ul,
    "size" / Int32ul,
)

bsp_header_struct = Struct(
    "version" / Enum(Int32ul, BSP29=29, BSP30=30),
    "lumps" / Array(HEADER_LUMPS, bsp_lump_struct),
)
# ------------------------------------------------------------
# Header - END
# ------------------------------------------------------------

# ------------------------------------------------------------
# Textures
# ------------------------------------------------------------
bsp_texture_lump_struct = Struct(
    "count" / Int32ul,
    "offsets" / Array(this.count, Int32sl),  # Relative to lump start, -1 = missing
)

miptex_struct = Struct(
    "raw_name" / Bytes(MIPTEX_NAME_SIZE),
    "name" / Computed(lambda this: parse_name(this.raw_name)),
    "width" / Int32ul,
    "height" / Int32ul,
    "offsets" / Array(MIP_LEVELS, Int32ul),  # Relative to miptex start, 0 = stored in a WAD
)
# ------------------------------------------------------------
# Textures - END
# ------------------------------------------------------------

# ------------------------------------------------------------
# WAD
# ------------------------------------------------------------
wad_header_struct = Struct(
    "magic" / Bytes(4),
    "count" / Int32ul,
    "directory_offset" / Int32ul,
)

wad_entry_struct = Struct(
    "offset" / Int32ul,
    "disk_size" / Int32ul,
    "size" / Int32ul,
    "type" / Int8ul,
    "compression" / Int8ul,
    "padding" / Padding(2),
    "raw_name" / Bytes(MIPTEX_NAME_SIZE),
    "name" / Computed(lambda this: parse_name(this.raw_name)),
)
# ------------------------------------------------------------
# WAD - END
# ------------------------------------------------------------
