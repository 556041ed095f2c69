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

"""Miptex decoding for embedded BSP textures and WAD entries.

A miptex record is a 16 byte name, the level 0 size and four mip level
offsets relative to the record start. An offset of 0 for level 0 means the
pixels are not stored in the file and must be looked up by name in a WAD.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from PIL import Image

from .bsp_construct import bsp_texture_lump_struct, check_range, miptex_struct, parse_at
from .constants import PALETTE_COLORS, TRANSPARENT_COLOR
from .logging_utils import get_logger
from .palette import QUAKE_PALETTE, Palette

_logger = get_logger(__name__)


@dataclass(frozen=True)
class IndexedImage:
    """A palettized image.

    Attributes:
        name: Texture name
        width: Width in pixels
        height: Height in pixels
        palette: 256 color palette
        pixels: width * height palette indices
    """
    name: str
    width: int
    height: int
    palette: Palette
    pixels: bytes

    def _rgba_table(self) -> list[bytes]:
        return [bytes((r, g, b, 0 if (r, g, b) == TRANSPARENT_COLOR else 255))
                for r, g, b in self.palette]

    def to_rgba(self) -> bytes:
        """Expand the indices to RGBA bytes, keying out pure blue."""
        table = self._rgba_table()
        return b"".join(table[i] for i in self.pixels)

    @property
    def is_transparent(self) -> bool:
        keyed = {i for i, rgb in enumerate(self.palette) if rgb == TRANSPARENT_COLOR}
        return bool(keyed) and any(i in keyed for i in set(self.pixels))

    def to_pil(self) -> Image.Image:
        if self.width == 0 or self.height == 0:
            raise ValueError(f"texture {self.name!r} has no pixels")
        return Image.frombytes("RGBA", (self.width, self.height), self.to_rgba())


@dataclass(frozen=True)
class Texture:
    """A miptex record from the TEXTURES lump.

    Attributes:
        name: Texture name, cut at the first NUL
        width: Width of mip level 0
        height: Height of mip level 0
        offsets: Four mip level offsets relative to global_offset
        global_offset: Position of the record in the source buffer
        pixels: Level 0 palette indices, None when stored in a WAD
        palette: Palette for the pixels, None when stored in a WAD
    """
    name: str
    width: int
    height: int
    offsets: tuple[int, int, int, int]
    global_offset: int
    pixels: Optional[bytes] = None
    palette: Optional[Palette] = None

    @property
    def embedded(self) -> bool:
        return self.offsets[0] != 0

    @property
    def external(self) -> bool:
        return not self.embedded

    def image(self) -> IndexedImage:
        """Return the embedded pixels as an image.

        Raises:
            ValueError: If the texture is stored in a WAD
        """
        if not self.embedded or self.pixels is None or self.palette is None:
            raise ValueError(f"texture {self.name!r} is not embedded")
        return IndexedImage(self.name, self.width, self.height, self.palette, self.pixels)


def read_miptex(buffer, start: int, limit: int, shared_palette: Optional[Palette] = None) -> Texture:
    """Decode one miptex record.

    Args:
        buffer: Source buffer
        start: Absolute offset of the record
        limit: End of the enclosing lump or entry
        shared_palette: Palette to use instead of the one stored after mip level 3

    Returns:
        Decoded texture
    """
    header = parse_at(miptex_struct, buffer, start, limit, what="miptex")
    offsets = tuple(header.offsets)
    width, height = header.width, header.height

    if offsets[0] == 0:
        return Texture(header.name, width, height, offsets, start)

    pixel_start = start + offsets[0]
    pixel_size = width * height
    check_range(buffer, pixel_start, pixel_size, what=f"pixels of {header.name!r}", limit=limit)
    pixels = bytes(buffer[pixel_start:pixel_start + pixel_size])

    if shared_palette is not None:
        palette = shared_palette
    else:
        # Palette follows mip level 3 and its 16-bit color count
        palette_start = start + offsets[3] + pixel_size // 64 + 2
        check_range(buffer, palette_start, PALETTE_COLORS * 3,
                    what=f"palette of {header.name!r}", limit=limit)
        palette = Palette.from_bytes(buffer[palette_start:palette_start + PALETTE_COLORS * 3])

    return Texture(header.name, width, height, offsets, start, pixels, palette)


def parse_textures(buffer, offset: int, size: int, per_texture_palette: bool) -> list[Texture]:
    """Decode the TEXTURES lump.

    Args:
        buffer: Whole BSP buffer
        offset: Lump offset
        size: Lump size
        per_texture_palette: True for BSP30, where each miptex carries its palette

    Returns:
        Textures in lump order
    """
    if size == 0:
        return []

    limit = offset + size
    check_range(buffer, offset, size, what="TEXTURES lump")
    lump = parse_at(bsp_texture_lump_struct, buffer, offset, limit, what="texture directory")
    shared_palette = None if per_texture_palette else QUAKE_PALETTE

    textures = []
    for relative in lump.offsets:
        if relative < 0:
            # Compiler placeholder for a miptex it could not find
            textures.append(Texture("", 0, 0, (0, 0, 0, 0), offset))
            continue
        textures.append(read_miptex(buffer, offset + relative, limit, shared_palette))

    embedded = sum(1 for t in textures if t.embedded)
    _logger.debug(f"Decoded {len(textures)} textures, {embedded} embedded")
    return textures
