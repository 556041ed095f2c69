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

"""Entity lump parsing."""

from __future__ import annotations

from typing import Optional


class Entity(dict):
    """Key/value record of one level object.

    Every value is a string. ``classname`` is expected but not enforced
    here, consumers that need it call require_classname().
    """

    @property
    def classname(self) -> Optional[str]:
        return self.get("classname")

    def require_classname(self) -> str:
        """Return the classname.

        Raises:
            KeyError: If the entity has no classname
        """
        if "classname" not in self:
            raise KeyError("entity has no classname")
        return self["classname"]

    @property
    def origin(self) -> Optional[tuple[float, float, float]]:
        """The ``origin`` key as three floats, None when absent."""
        value = self.get("origin")
        if value is None:
            return None
        x, y, z = (float(v) for v in value.split())
        return x, y, z


def parse_entities(text: str) -> list[Entity]:
    """Parse brace-delimited key/value blocks.

    A ``{`` line starts a record (an unfinished one is dropped), a ``}``
    line commits it. Other lines have their quotes removed and are split
    on the first whitespace run into key and value.

    Args:
        text: Contents of the ENTITIES lump

    Returns:
        Entities in lump order
    """
    entities: list[Entity] = []
    current: Optional[Entity] = None

    for raw_line in text.split("\n"):
        line = raw_line.strip(" \t\r\x00")
        if line == "{":
            current = Entity()
        elif line == "}":
            if current is not None:
                entities.append(current)
            current = None
        elif line and current is not None:
            parts = line.replace('"', "").split(None, 1)
            if not parts:
                continue
            current[parts[0]] = parts[1] if len(parts) > 1 else ""

    return entities
