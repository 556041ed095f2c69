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

"""Constants and configuration for the BSP/WAD decoder."""

from typing import Final

# Addon information
ADDON_NAME: Final[str] = "io_scene_bsp"

# Environment variable holding the debug level (same scale as Blender's debug_value)
DEBUG_ENV_VAR: Final[str] = "IO_SCENE_BSP_DEBUG"

# Supported BSP versions
BSP_VERSION_QUAKE: Final[int] = 29  # Shared palette, greyscale lighting
BSP_VERSION_GOLDSRC: Final[int] = 30  # Per-texture palette, RGB lighting
SUPPORTED_VERSIONS: Final[tuple[str, ...]] = ('BSP29', 'BSP30')

# Lump table order, the header holds one (offset, size) pair per name
LUMP_NAMES: Final[tuple[str, ...]] = (
    'ENTITIES',
    'PLANES',
    'TEXTURES',
    'VERTICES',
    'VISIBILITY',
    'NODES',
    'TEXINFO',
    'FACES',
    'LIGHTING',
    'CLIPNODES',
    'LEAVES',
    'MARKSURFACES',
    'EDGES',
    'SURFEDGES',
    'MODELS',
)
HEADER_LUMPS: Final[int] = len(LUMP_NAMES)

# Miptex
MIPTEX_NAME_SIZE: Final[int] = 16
MIP_LEVELS: Final[int] = 4
PALETTE_COLORS: Final[int] = 256

# Face.lightmap_offset value for faces without lighting
NO_LIGHTMAP: Final[int] = 0xFFFFFFFF

# Palette color keyed out as transparent when expanding indexed images
TRANSPARENT_COLOR: Final[tuple[int, int, int]] = (0, 0, 255)

# Texture name prefixes that never produce render geometry
SKIP_TEXTURE_PREFIXES: Final[tuple[str, ...]] = (
    'sky',
    'aaatrigger',
    'trigger',
    'clip',
    'origin',
    'null',
    'hint',
    'skip',
    '*',  # Quake liquids
    '!',  # GoldSrc liquids
)

# WAD signatures and miptex entry types
WAD2_SIGNATURE: Final[bytes] = b"WAD2"
WAD3_SIGNATURE: Final[bytes] = b"WAD3"
WAD_DIRECTORY_ENTRY_SIZE: Final[int] = 32
WAD2_MIPTEX_TYPE: Final[int] = 0x44
WAD3_MIPTEX_TYPE: Final[int] = 0x43

# Worldspawn key listing the WAD files a map was compiled against
WORLDSPAWN_WAD_KEY: Final[str] = "wad"
