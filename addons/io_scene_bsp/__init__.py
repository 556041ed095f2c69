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

"""Decoder for Quake/GoldSrc BSP levels and WAD texture archives.

Typical use:

    level = parse_level(bsp_bytes)
    registry = WadRegistry()
    registry.load('halflife.wad', wad_bytes)
    materials = resolve_materials(level, registry)
    geometry = build_level_geometry(level)
"""

__version__ = "0.1.0"

from .bsp_geometry import (
    LevelGeometryBuilder,
    build_level_geometry,
    build_model_geometry,
    resolve_materials,
)
from .bsp_io import parse_directory, parse_level
from .entities import Entity, parse_entities
from .errors import (
    CorruptGeometryError,
    MalformedBufferError,
    MissingLumpError,
    OutOfBoundsError,
    ParseError,
    TextureNotFoundError,
    UnsupportedVersionError,
)
from .palette import QUAKE_PALETTE, Palette
from .textures import IndexedImage, Texture
from .types import GeometrySettings, LevelData, LevelGeometry
from .wad_io import WadArchive, WadRegistry, parse_wad

__all__ = (
    'CorruptGeometryError',
    'Entity',
    'GeometrySettings',
    'IndexedImage',
    'LevelData',
    'LevelGeometry',
    'LevelGeometryBuilder',
    'MalformedBufferError',
    'MissingLumpError',
    'OutOfBoundsError',
    'Palette',
    'ParseError',
    'QUAKE_PALETTE',
    'Texture',
    'TextureNotFoundError',
    'UnsupportedVersionError',
    'WadArchive',
    'WadRegistry',
    'build_level_geometry',
    'build_model_geometry',
    'parse_directory',
    'parse_entities',
    'parse_level',
    'parse_wad',
    'resolve_materials',
)
