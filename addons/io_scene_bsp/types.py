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

"""Data structures for decoded BSP levels and built geometry."""

from __future__ import annotations

import enum
import pathlib
from dataclasses import dataclass, field
from typing import NamedTuple, Optional

from .constants import (
    NO_LIGHTMAP,
    SKIP_TEXTURE_PREFIXES,
    WORLDSPAWN_WAD_KEY,
)
from .entities import Entity
from .errors import MissingLumpError
from .textures import IndexedImage, Texture

Vec3 = tuple[float, float, float]
Color = tuple[float, float, float]


@dataclass(frozen=True)
class Lump:
    """Byte range of one named section."""
    name: str
    offset: int
    size: int

    @property
    def end(self) -> int:
        return self.offset + self.size


@dataclass(frozen=True)
class LumpDirectory:
    """Format id and lump table read from the header.

    Attributes:
        version: BSP format id (29 or 30)
        lumps: Lumps keyed by name, in header order
    """
    version: int
    lumps: dict[str, Lump]

    def lump(self, name: str) -> Lump:
        """Look up a lump by name.

        Raises:
            MissingLumpError: If the name is not part of the header table
        """
        try:
            return self.lumps[name]
        except KeyError:
            raise MissingLumpError(f"Lump {name!r} is not part of the header") from None


@dataclass(frozen=True)
class Plane:
    x: float
    y: float
    z: float
    dist: float
    type: int

    @property
    def normal(self) -> Vec3:
        return self.x, self.y, self.z


class Vertex(NamedTuple):
    x: float
    y: float
    z: float

    def dot(self, axis: Vec3) -> float:
        return self.x * axis[0] + self.y * axis[1] + self.z * axis[2]


class Edge(NamedTuple):
    first: int
    second: int


class BBox(NamedTuple):
    mins: tuple[int, int, int]
    maxs: tuple[int, int, int]


class ChildKind(enum.Enum):
    NODE = "node"
    EMPTY = "empty"
    LEAF = "leaf"


class ChildRef(NamedTuple):
    """Decoded node child reference.

    Raw values >= 0 point at another node, -1 is the empty leaf and
    anything below -1 is leaf ``-value - 1``.
    """
    kind: ChildKind
    index: Optional[int] = None

    @classmethod
    def decode(cls, value: int) -> ChildRef:
        if value >= 0:
            return cls(ChildKind.NODE, value)
        if value == -1:
            return cls(ChildKind.EMPTY)
        return cls(ChildKind.LEAF, -value - 1)


@dataclass(frozen=True)
class Face:
    """Polygon descriptor.

    Attributes:
        plane: Plane index
        side: Non-zero when the face looks at the back of its plane
        first_edge: First index into the surfedge list
        edges: Number of surfedges
        texinfo: TexInfo index
        styles: Four light style bytes
        lightmap_offset: Byte offset into the LIGHTING lump
    """
    plane: int
    side: int
    first_edge: int
    edges: int
    texinfo: int
    styles: tuple[int, int, int, int]
    lightmap_offset: int

    @property
    def has_lightmap(self) -> bool:
        return self.lightmap_offset != NO_LIGHTMAP


@dataclass(frozen=True)
class TexInfo:
    """UV projection for a face's texture."""
    s_axis: Vec3
    s_shift: float
    t_axis: Vec3
    t_shift: float
    miptex: int
    flags: int


@dataclass(frozen=True)
class Node:
    plane: int
    front: ChildRef
    back: ChildRef
    bbox: BBox
    face: int
    faces: int

    @property
    def children(self) -> tuple[ChildRef, ChildRef]:
        return self.front, self.back


@dataclass(frozen=True)
class Leaf:
    """Terminal tree element.

    Attributes:
        type: Contents type (empty, solid, water...)
        vislist: Offset into the VISIBILITY lump, -1 when none
        bbox: Bounding box
        face: First face (or marksurface) index
        faces: Number of faces
        ambient: Four ambient sound levels
    """
    type: int
    vislist: int
    bbox: BBox
    face: int
    faces: int
    ambient: tuple[int, int, int, int]


@dataclass(frozen=True)
class Model:
    """A sub-object, model 0 is the static world."""
    mins: Vec3
    maxs: Vec3
    origin: Vec3
    head_nodes: tuple[int, int, int, int]
    vis_leafs: int
    first_face: int
    faces: int


@dataclass(frozen=True)
class ClipNode:
    plane: int
    front: int
    back: int


@dataclass
class LevelData:
    """Root data structure for a decoded BSP file.

    Attributes:
        directory: Format id and lump table
        entities: Parsed entity records
        planes, vertices, edges, surfedges, faces, texinfo, nodes,
        leaves, models, clipnodes, marksurfaces: Decoded lump records
        textures: Miptex records, embedded or external
        visibility: Raw compressed visibility bytes
        lighting: One RGB sample per record
    """
    directory: LumpDirectory
    entities: list[Entity] = field(default_factory=list)
    planes: list[Plane] = field(default_factory=list)
    textures: list[Texture] = field(default_factory=list)
    vertices: list[Vertex] = field(default_factory=list)
    visibility: bytes = b""
    nodes: list[Node] = field(default_factory=list)
    texinfo: list[TexInfo] = field(default_factory=list)
    faces: list[Face] = field(default_factory=list)
    lighting: list[tuple[int, int, int]] = field(default_factory=list)
    clipnodes: list[ClipNode] = field(default_factory=list)
    leaves: list[Leaf] = field(default_factory=list)
    marksurfaces: list[int] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    surfedges: list[int] = field(default_factory=list)
    models: list[Model] = field(default_factory=list)

    @property
    def version(self) -> int:
        return self.directory.version

    def summary(self) -> dict[str, int]:
        """Record counts per lump."""
        return {
            'version': self.version,
            'entities': len(self.entities),
            'planes': len(self.planes),
            'textures': len(self.textures),
            'vertices': len(self.vertices),
            'visibility': len(self.visibility),
            'nodes': len(self.nodes),
            'texinfo': len(self.texinfo),
            'faces': len(self.faces),
            'lighting': len(self.lighting),
            'clipnodes': len(self.clipnodes),
            'leaves': len(self.leaves),
            'marksurfaces': len(self.marksurfaces),
            'edges': len(self.edges),
            'surfedges': len(self.surfedges),
            'models': len(self.models),
        }

    def worldspawn(self) -> Optional[Entity]:
        return next((e for e in self.entities if e.classname == "worldspawn"), None)

    def required_wads(self) -> list[str]:
        """WAD file names listed in the worldspawn ``wad`` key."""
        world = self.worldspawn()
        if world is None:
            return []
        paths = world.get(WORLDSPAWN_WAD_KEY, "").split(";")
        return [pathlib.PureWindowsPath(p.strip()).name for p in paths if p.strip()]

    def external_textures(self) -> list[str]:
        return [t.name for t in self.textures if t.external and t.name]


# ------------------------------------------------------------
# Geometry
# ------------------------------------------------------------
class IssueKind(enum.Enum):
    CORRUPT_GEOMETRY = "corrupt_geometry"
    DEGENERATE_FACE = "degenerate_face"
    TEXTURE_NOT_FOUND = "texture_not_found"


@dataclass(frozen=True)
class GeometryIssue:
    """A recoverable problem met while building geometry."""
    kind: IssueKind
    message: str
    face: Optional[int] = None
    leaf: Optional[int] = None
    node: Optional[int] = None


@dataclass
class GeometrySettings:
    """Options for the geometry builder.

    Attributes:
        use_marksurfaces: Read leaf face ranges through the MARKSURFACES lump
        skip_prefixes: Texture name prefixes that produce no geometry
        scale: Factor applied to output positions
        quake_lighting_offsets: Read BSP29 lightmap offsets as direct indices
            into the one-byte samples instead of ``offset // 3``
    """
    use_marksurfaces: bool = False
    skip_prefixes: tuple[str, ...] = SKIP_TEXTURE_PREFIXES
    scale: float = 1.0
    quake_lighting_offsets: bool = False


@dataclass
class FaceGeometry:
    """Polygon rebuilt from one face.

    Attributes:
        face_index: Index into LevelData.faces
        texture_index: Index into LevelData.textures
        positions: Ordered vertex loop
        uvs: One (u, v) per position
        color: Normalized lighting sample, None when the face is unlit
        triangles: Fan triangulation, indices into positions
    """
    face_index: int
    texture_index: int
    positions: list[Vec3]
    uvs: list[tuple[float, float]]
    color: Optional[Color]
    triangles: list[tuple[int, int, int]]


@dataclass
class MaterialGroup:
    """Triangles sharing one texture, ready for batched rendering."""
    texture_index: int
    positions: list[Vec3] = field(default_factory=list)
    uvs: list[tuple[float, float]] = field(default_factory=list)
    colors: list[Color] = field(default_factory=list)
    indices: list[tuple[int, int, int]] = field(default_factory=list)

    @property
    def triangle_count(self) -> int:
        return len(self.indices)

    def add(self, face: FaceGeometry) -> None:
        base = len(self.positions)
        color = face.color if face.color is not None else (1.0, 1.0, 1.0)
        self.positions.extend(face.positions)
        self.uvs.extend(face.uvs)
        self.colors.extend([color] * len(face.positions))
        self.indices.extend((base + a, base + b, base + c) for a, b, c in face.triangles)


@dataclass
class LevelGeometry:
    """Result of a tree walk.

    Attributes:
        groups: Material groups keyed by texture index
        faces: Per-face polygons that produced triangles
        leaves: Leaf indices reached by the walk
        visited_faces: Every face index handled, skipped ones included
        skipped_faces: Faces dropped for their texture name
        issues: Recoverable problems
    """
    groups: dict[int, MaterialGroup] = field(default_factory=dict)
    faces: list[FaceGeometry] = field(default_factory=list)
    leaves: list[int] = field(default_factory=list)
    visited_faces: list[int] = field(default_factory=list)
    skipped_faces: list[int] = field(default_factory=list)
    issues: list[GeometryIssue] = field(default_factory=list)

    @property
    def triangle_count(self) -> int:
        return sum(g.triangle_count for g in self.groups.values())

    def add_face(self, face: FaceGeometry) -> None:
        self.faces.append(face)
        group = self.groups.get(face.texture_index)
        if group is None:
            group = self.groups[face.texture_index] = MaterialGroup(face.texture_index)
        group.add(face)


@dataclass(frozen=True)
class MaterialSource:
    """Where a texture's pixels come from.

    Attributes:
        texture_index: Index into LevelData.textures
        name: Texture name
        image: Decoded image, None when missing
        embedded: True when the pixels are stored in the BSP
        wad: Name of the WAD the image came from
    """
    texture_index: int
    name: str
    image: Optional[IndexedImage]
    embedded: bool = False
    wad: Optional[str] = None

    @property
    def missing(self) -> bool:
        return self.image is None
