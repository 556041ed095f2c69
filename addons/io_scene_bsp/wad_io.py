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

"""WAD2/WAD3 texture archives.

This module provides parse_wad() to decode an archive and the WadRegistry
class that holds loaded archives and resolves texture names against them.
"""

from __future__ import annotations

import pathlib
import threading
from dataclasses import dataclass, field
from typing import Iterable, Optional

from construct import Array

from .bsp_construct import parse_at, wad_entry_struct, wad_header_struct
from .constants import (
    WAD2_MIPTEX_TYPE,
    WAD2_SIGNATURE,
    WAD3_MIPTEX_TYPE,
    WAD3_SIGNATURE,
    WAD_DIRECTORY_ENTRY_SIZE,
)
from .errors import OutOfBoundsError, TextureNotFoundError, UnsupportedVersionError
from .logging_utils import get_logger
from .palette import QUAKE_PALETTE
from .textures import IndexedImage, read_miptex

_logger = get_logger(__name__)


def _key(name: str) -> str:
    return name.lower()


@dataclass
class WadArchive:
    """Decoded WAD archive.

    Attributes:
        name: Name the archive was loaded under
        signature: WAD2 or WAD3
        textures: Images keyed by lower-cased texture name
    """
    name: str
    signature: bytes
    textures: dict[str, IndexedImage] = field(default_factory=dict)

    def get(self, texture_name: str) -> Optional[IndexedImage]:
        return self.textures.get(_key(texture_name))

    def names(self) -> list[str]:
        return [image.name for image in self.textures.values()]

    def __contains__(self, texture_name: str) -> bool:
        return _key(texture_name) in self.textures

    def __len__(self) -> int:
        return len(self.textures)


def parse_wad(buffer, name: str = "") -> WadArchive:
    """Decode a WAD archive.

    Only miptex entries are kept. WAD3 textures carry their own palette,
    WAD2 textures use the Quake palette.

    Args:
        buffer: Raw archive bytes
        name: Name to attach to the archive

    Returns:
        Decoded archive

    Raises:
        UnsupportedVersionError: Unknown signature
        OutOfBoundsError: Directory or entry past the end of the buffer
    """
    header = parse_at(wad_header_struct, buffer, 0, what="WAD header")
    if header.magic == WAD3_SIGNATURE:
        miptex_type, shared_palette = WAD3_MIPTEX_TYPE, None
    elif header.magic == WAD2_SIGNATURE:
        miptex_type, shared_palette = WAD2_MIPTEX_TYPE, QUAKE_PALETTE
    else:
        raise UnsupportedVersionError(f"Unsupported WAD signature {header.magic!r}")

    directory_end = header.directory_offset + header.count * WAD_DIRECTORY_ENTRY_SIZE
    if directory_end > len(buffer):
        raise OutOfBoundsError(f"WAD directory [{header.directory_offset}, {directory_end}) "
                               f"exceeds buffer of {len(buffer)} bytes")
    entries = parse_at(Array(header.count, wad_entry_struct), buffer, header.directory_offset,
                       directory_end, what="WAD directory")

    archive = WadArchive(name, bytes(header.magic))
    for entry in entries:
        if entry.type != miptex_type:
            continue
        if entry.compression:
            _logger.warning(f"{name}: skipping compressed entry {entry.name!r}")
            continue
        end = entry.offset + entry.disk_size
        if end > len(buffer):
            raise OutOfBoundsError(f"WAD entry {entry.name!r} [{entry.offset}, {end}) "
                                   f"exceeds buffer of {len(buffer)} bytes")
        texture = read_miptex(buffer, entry.offset, end, shared_palette)
        if not texture.embedded:
            _logger.warning(f"{name}: entry {entry.name!r} holds no pixels")
            continue
        # Directory name wins over the name stored in the miptex header
        image = IndexedImage(entry.name or texture.name, texture.width, texture.height,
                             texture.palette, texture.pixels)
        archive.textures[_key(image.name)] = image

    return archive


def _wad_key(name: str) -> str:
    return pathlib.PureWindowsPath(name).name.lower()


class WadRegistry:
    """Named, mutable set of loaded WAD archives.

    Archives are searched in load order. A lock guards every access so a
    registry can be shared between threads.

    Example:
        registry = WadRegistry()
        registry.load('halflife.wad', data)
        image = registry.resolve('C1A0_LABFLRA')
    """

    def __init__(self) -> None:
        self._wads: dict[str, WadArchive] = {}
        self._required: list[str] = []
        self._lock = threading.RLock()
        self._logger = get_logger(f"{__name__}.WadRegistry")

    def load(self, name: str, buffer) -> WadArchive:
        """Decode and register an archive.

        An archive already loaded under name is replaced and keeps its
        position in the search order.
        """
        archive = parse_wad(buffer, name)
        with self._lock:
            self._wads[name] = archive
        self._logger.info(f"WAD Loaded: {name} ({len(archive)} textures)")
        return archive

    def unload(self, name: str) -> None:
        with self._lock:
            if self._wads.pop(name, None) is not None:
                self._logger.info(f"WAD Unloaded: {name}")

    def clear(self) -> None:
        with self._lock:
            self._wads.clear()

    def names(self) -> list[str]:
        with self._lock:
            return list(self._wads)

    def archives(self) -> list[WadArchive]:
        with self._lock:
            return list(self._wads.values())

    def locate(self, texture_name: str) -> tuple[str, IndexedImage]:
        """Find a texture and the archive holding it.

        Raises:
            TextureNotFoundError: If no loaded archive holds the texture
        """
        with self._lock:
            for name, archive in self._wads.items():
                image = archive.get(texture_name)
                if image is not None:
                    return name, image
        raise TextureNotFoundError(texture_name)

    def resolve(self, texture_name: str) -> IndexedImage:
        """Return the first image named texture_name, in load order.

        Raises:
            TextureNotFoundError: If no loaded archive holds the texture
        """
        return self.locate(texture_name)[1]

    def get(self, texture_name: str, default: Optional[IndexedImage] = None) -> Optional[IndexedImage]:
        try:
            return self.resolve(texture_name)
        except TextureNotFoundError:
            return default

    def set_required(self, names: Iterable[str]) -> None:
        """Remember which archives a level needs, see required_state()."""
        with self._lock:
            self._required = list(names)

    def required_state(self) -> dict[str, bool]:
        """Map each required archive name to whether it is loaded."""
        with self._lock:
            loaded = {_wad_key(n) for n in self._wads}
            return {name: _wad_key(name) in loaded for name in self._required}

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._wads

    def __len__(self) -> int:
        with self._lock:
            return len(self._wads)
