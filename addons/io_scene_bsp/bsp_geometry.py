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

"""Face geometry reconstruction.

This module provides the LevelGeometryBuilder class, which walks the BSP
tree of a decoded level and turns the faces of every reachable leaf into
triangles with UVs and vertex colors, grouped by texture.
"""

from __future__ import annotations

from typing import Optional, Sequence, TypeVar

from .constants import BSP_VERSION_QUAKE, NO_LIGHTMAP
from .errors import CorruptGeometryError, TextureNotFoundError
from .logging_utils import get_logger
from .types import (
    ChildKind,
    ChildRef,
    FaceGeometry,
    GeometryIssue,
    GeometrySettings,
    IssueKind,
    LevelData,
    LevelGeometry,
    MaterialSource,
)
from .wad_io import WadRegistry

T = TypeVar("T")


def is_special_texture(name: str, prefixes: Sequence[str]) -> bool:
    """True for tool and sky textures that are never drawn."""
    lowered = name.lower()
    return any(lowered.startswith(p) for p in prefixes)


def triangulate(count: int) -> list[tuple[int, int, int]]:
    """Fan triangulation of a convex loop of count vertices."""
    return [(0, i, i + 1) for i in range(1, count - 1)]


def _get(items: Sequence[T], index: int, what: str) -> T:
    if 0 <= index < len(items):
        return items[index]
    raise CorruptGeometryError(f"{what} index {index} out of range (0..{len(items) - 1})")


class LevelGeometryBuilder:
    """Builds renderable geometry from a decoded level.

    Attributes:
        level: The decoded level
        settings: Builder options

    Example:
        builder = LevelGeometryBuilder(level)
        geometry = builder.build()
        for texture_index, group in geometry.groups.items():
            ...
    """

    def __init__(self, level: LevelData, settings: Optional[GeometrySettings] = None) -> None:
        self.level = level
        self.settings = settings or GeometrySettings()
        self._logger = get_logger(f"{__name__}.LevelGeometryBuilder")

    def build(self) -> LevelGeometry:
        """Walk the tree of model 0 and build every reachable face."""
        geometry = LevelGeometry()
        if not self.level.models:
            self._issue(geometry, IssueKind.CORRUPT_GEOMETRY, "level has no models")
            return geometry

        root = ChildRef.decode(self.level.models[0].head_nodes[0])
        geometry.leaves = self.collect_leaves(root, geometry)

        visited: set[int] = set()
        for leaf_index in geometry.leaves:
            leaf = self.level.leaves[leaf_index]
            for slot in range(leaf.face, leaf.face + leaf.faces):
                try:
                    face_index = self._leaf_face(slot)
                except CorruptGeometryError as e:
                    self._issue(geometry, IssueKind.CORRUPT_GEOMETRY, str(e), leaf=leaf_index)
                    continue
                if face_index in visited:
                    continue
                visited.add(face_index)
                self._emit(geometry, face_index, leaf_index)

        self._log_result(geometry, "model 0")
        return geometry

    def build_model(self, model_index: int) -> LevelGeometry:
        """Build the faces of one model from its own face range.

        Used for brush entities (doors, platforms), whose faces are not
        reachable from the world tree.
        """
        geometry = LevelGeometry()
        try:
            model = _get(self.level.models, model_index, "model")
        except CorruptGeometryError as e:
            self._issue(geometry, IssueKind.CORRUPT_GEOMETRY, str(e))
            return geometry

        for face_index in range(model.first_face, model.first_face + model.faces):
            self._emit(geometry, face_index, None)

        self._log_result(geometry, f"model {model_index}")
        return geometry

    def collect_leaves(self, root: ChildRef, geometry: LevelGeometry) -> list[int]:
        """Collect every leaf reachable from root.

        Node children are pushed on a stack, empty leaves are ignored and
        leaf references are collected. Out of range or repeated indices are
        reported on geometry and skipped.
        """
        leaves: list[int] = []
        seen_leaves: set[int] = set()
        seen_nodes: set[int] = set()
        stack: list[int] = []

        def visit(ref: ChildRef, parent: Optional[int]) -> None:
            if ref.kind is ChildKind.NODE:
                stack.append(ref.index)
            elif ref.kind is ChildKind.LEAF:
                if ref.index >= len(self.level.leaves):
                    self._issue(geometry, IssueKind.CORRUPT_GEOMETRY,
                                f"leaf index {ref.index} out of range", node=parent)
                elif ref.index in seen_leaves:
                    self._issue(geometry, IssueKind.CORRUPT_GEOMETRY,
                                f"leaf {ref.index} reached twice", node=parent)
                else:
                    seen_leaves.add(ref.index)
                    leaves.append(ref.index)

        visit(root, None)
        while stack:
            index = stack.pop()
            if index in seen_nodes:
                self._issue(geometry, IssueKind.CORRUPT_GEOMETRY, f"node {index} reached twice", node=index)
                continue
            seen_nodes.add(index)
            if index >= len(self.level.nodes):
                self._issue(geometry, IssueKind.CORRUPT_GEOMETRY, f"node index {index} out of range", node=index)
                continue
            node = self.level.nodes[index]
            for child in node.children:
                visit(child, index)

        return leaves

    def build_face(self, face_index: int) -> Optional[FaceGeometry]:
        """Rebuild one face.

        Returns:
            The face polygon, or None when its texture is never drawn

        Raises:
            CorruptGeometryError: An index of the face is out of range
        """
        level = self.level
        face = _get(level.faces, face_index, "face")
        texinfo = _get(level.texinfo, face.texinfo, "texinfo")
        texture = _get(level.textures, texinfo.miptex, "texture")

        if is_special_texture(texture.name, self.settings.skip_prefixes):
            return None
        if texture.width == 0 or texture.height == 0:
            raise CorruptGeometryError(f"texture {texinfo.miptex} ({texture.name!r}) has no size")

        scale = self.settings.scale
        positions = []
        uvs = []
        for i in range(face.edges):
            surfedge = _get(level.surfedges, face.first_edge + i, "surfedge")
            edge = _get(level.edges, abs(surfedge), "edge")
            # A negative surfedge walks the edge backwards
            vertex = _get(level.vertices, edge[0] if surfedge >= 0 else edge[1], "vertex")

            positions.append((vertex.x * scale, vertex.y * scale, vertex.z * scale))
            uvs.append(((vertex.dot(texinfo.s_axis) + texinfo.s_shift) / texture.width,
                        (vertex.dot(texinfo.t_axis) + texinfo.t_shift) / texture.height))

        return FaceGeometry(
            face_index=face_index,
            texture_index=texinfo.miptex,
            positions=positions,
            uvs=uvs,
            color=self.face_color(face_index),
            triangles=triangulate(len(positions)),
        )

    def face_color(self, face_index: int) -> Optional[tuple[float, float, float]]:
        """Normalized lighting sample of a face, None when unlit."""
        face = self.level.faces[face_index]
        if face.lightmap_offset == NO_LIGHTMAP:
            return None
        index = face.lightmap_offset // 3
        if self.settings.quake_lighting_offsets and self.level.version == BSP_VERSION_QUAKE:
            index = face.lightmap_offset
        if index >= len(self.level.lighting):
            return None
        r, g, b = self.level.lighting[index]
        return r / 255.0, g / 255.0, b / 255.0

    def _leaf_face(self, slot: int) -> int:
        if self.settings.use_marksurfaces:
            return _get(self.level.marksurfaces, slot, "marksurface")
        return slot

    def _emit(self, geometry: LevelGeometry, face_index: int, leaf_index: Optional[int]) -> None:
        geometry.visited_faces.append(face_index)
        try:
            face_geometry = self.build_face(face_index)
        except CorruptGeometryError as e:
            self._issue(geometry, IssueKind.CORRUPT_GEOMETRY, str(e), face=face_index, leaf=leaf_index)
            return

        if face_geometry is None:
            geometry.skipped_faces.append(face_index)
            return
        if not face_geometry.triangles:
            self._issue(geometry, IssueKind.DEGENERATE_FACE,
                        f"face has {len(face_geometry.positions)} edges", face=face_index, leaf=leaf_index)
            return

        geometry.add_face(face_geometry)

    def _issue(self, geometry: LevelGeometry, kind: IssueKind, message: str, **where) -> None:
        geometry.issues.append(GeometryIssue(kind, message, **where))
        self._logger.warning(f"{kind.value}: {message} {where}")

    def _log_result(self, geometry: LevelGeometry, what: str) -> None:
        self._logger.info(
            f"Built {what}: {len(geometry.faces)} faces, {geometry.triangle_count} triangles, "
            f"{len(geometry.groups)} materials, {len(geometry.issues)} issues"
        )


def build_level_geometry(level: LevelData, settings: Optional[GeometrySettings] = None) -> LevelGeometry:
    return LevelGeometryBuilder(level, settings).build()


def build_model_geometry(level: LevelData, model_index: int,
                         settings: Optional[GeometrySettings] = None) -> LevelGeometry:
    return LevelGeometryBuilder(level, settings).build_model(model_index)


def resolve_materials(level: LevelData, registry: WadRegistry,
                      geometry: Optional[LevelGeometry] = None) -> list[MaterialSource]:
    """Pair every texture of a level with its pixels.

    Embedded textures use their own pixels, the others are looked up by
    name in the registry. Misses are flagged as missing, no substitute
    image is produced.

    Args:
        level: Decoded level
        registry: Loaded WAD archives
        geometry: Receives a TEXTURE_NOT_FOUND issue per miss when given
    """
    logger = get_logger(f"{__name__}.resolve_materials")
    materials = []
    for index, texture in enumerate(level.textures):
        if texture.embedded:
            materials.append(MaterialSource(index, texture.name, texture.image(), embedded=True))
            continue
        try:
            wad, image = registry.locate(texture.name)
        except TextureNotFoundError as e:
            logger.warning(str(e))
            if geometry is not None:
                geometry.issues.append(GeometryIssue(IssueKind.TEXTURE_NOT_FOUND, str(e)))
            materials.append(MaterialSource(index, texture.name, None))
            continue
        materials.append(MaterialSource(index, texture.name, image, wad=wad))
    return materials
