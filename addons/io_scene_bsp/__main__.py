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

"""Command line inspection of BSP levels.

Usage:
    python -m io_scene_bsp maps/c1a0.bsp --wad valve/halflife.wad
    python -m io_scene_bsp e1m1.bsp --extract-textures out/
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import re
import sys
import time
from typing import Optional

from .bsp_geometry import build_level_geometry, resolve_materials
from .bsp_io import parse_level
from .errors import ParseError
from .logging_utils import get_log_level_from_env, get_logger, setup_logging
from .types import GeometrySettings
from .wad_io import WadRegistry

_logger = get_logger(__name__)


def texture_file_name(name: str) -> str:
    """PNG file name for a texture, liquid markers and path characters replaced."""
    return re.sub(r"[^\w+{}-]", "_", name) + ".png"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="io-scene-bsp", description="Inspect a Quake/GoldSrc BSP level")
    parser.add_argument('bsp', type=pathlib.Path, help='BSP file to decode')
    parser.add_argument('--wad', type=pathlib.Path, action='append', default=[],
                        help='WAD archive to resolve external textures (repeatable)')
    parser.add_argument('--marksurfaces', action='store_true',
                        help='Read leaf face ranges through the MARKSURFACES lump')
    parser.add_argument('--extract-textures', type=pathlib.Path, metavar='DIR',
                        help='Write every resolved texture to DIR as PNG')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else get_log_level_from_env())

    registry = WadRegistry()
    for path in args.wad:
        try:
            registry.load(path.name, path.read_bytes())
        except (OSError, ParseError) as e:
            _logger.error(f"Cannot load WAD {path}: {e}")

    start_time = time.time()
    try:
        level = parse_level(args.bsp.read_bytes())
    except OSError as e:
        _logger.error(f"Cannot read {args.bsp}: {e}")
        return 1
    except ParseError as e:
        _logger.error(f"Cannot decode {args.bsp}: {e}")
        return 1

    registry.set_required(level.required_wads())
    geometry = build_level_geometry(level, GeometrySettings(use_marksurfaces=args.marksurfaces))
    materials = resolve_materials(level, registry, geometry)
    elapsed_s = "{:.2f}s".format(time.time() - start_time)

    print(f"{args.bsp.name}: decoded in {elapsed_s}")
    for key, value in level.summary().items():
        print(f"  {key:<14}{value}")

    print(f"  leaves walked {len(geometry.leaves)}")
    print(f"  faces built   {len(geometry.faces)} ({len(geometry.skipped_faces)} skipped)")
    print(f"  triangles     {geometry.triangle_count}")
    for texture_index, group in geometry.groups.items():
        print(f"    {level.textures[texture_index].name:<16}{group.triangle_count}")

    for name, loaded in registry.required_state().items():
        print(f"  wad {name}: {'loaded' if loaded else 'missing'}")

    missing = [m.name for m in materials if m.missing]
    if missing:
        print(f"  missing textures: {', '.join(missing)}")
    for issue in geometry.issues:
        print(f"  {issue.kind.value}: {issue.message}")

    if args.extract_textures:
        args.extract_textures.mkdir(parents=True, exist_ok=True)
        for material in materials:
            if material.missing or not material.name:
                continue
            if material.image.width == 0 or material.image.height == 0:
                _logger.warning(f"Skipping empty texture {material.name!r}")
                continue
            material.image.to_pil().save(args.extract_textures / texture_file_name(material.name))

    return 0


if __name__ == "__main__":
    sys.exit(main())
