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

"""Exceptions raised while decoding BSP and WAD data."""


class ParseError(RuntimeError):
    """Raised when a buffer cannot be decoded.

    Parse errors are fatal: the decode is aborted and no partial
    structure is returned.
    """
    pass


class UnsupportedVersionError(ParseError):
    """Raised for an unknown BSP format id or WAD signature."""
    pass


class MalformedBufferError(ParseError):
    """Raised when a region cannot be split into whole records."""
    pass


class OutOfBoundsError(MalformedBufferError):
    """Raised when a lump or field region exceeds the source buffer."""
    pass


class MissingLumpError(ParseError):
    """Raised when a lump name is not part of the header table."""
    pass


class CorruptGeometryError(ValueError):
    """Raised when an index dereferenced during the tree walk is out of range.

    The walker catches it, records an issue and skips the offending face
    or leaf.
    """
    pass


class TextureNotFoundError(LookupError):
    """Raised when no loaded WAD archive holds the requested texture."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Texture not found: {name}")
        self.name = name
