#!/usr/bin/env python3
"""NuVerse avatar pipeline - generate, inspect and dress the procedural avatar GLB."""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from src.modules.m1_skeleton import BONE_NAMES
from src.modules.m5_scene_runtime import (
    AssetLoader, FileAssetSource, InlineExecutor, MemoryAssetSource, parse_asset,
)
from src.modules.m6_equipment import EquippedLook, install_placeholder_assets
from src.modules.m8_diagnostics import inspect
from src.pipeline import AvatarPipeline, AvatarPipelineConfig
from src.session import AvatarSession
from src.shared.constants import AVATAR_GLB_FILENAME, DEFAULT_MAX_ASSET_BYTES, DEFAULT_OUTPUT_DIR
from src.shared.errors import AvatarPipelineError

log = logging.getLogger("main")


def _args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="NuVerse anime-futuristic avatar pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python main.py generate --with-equipment\n"
            f"  python main.py inspect outputs/{AVATAR_GLB_FILENAME}\n"
            f"  python main.py equip outputs/{AVATAR_GLB_FILENAME} --shoes shoe-1 --outfit outfit-3\n"
        ),
    )
    p.add_argument("-v", "--verbose", action="store_true")
    sub = p.add_subparsers(dest="command", required=True)

    g = sub.add_parser("generate", help="build the avatar GLB")
    g.add_argument("--output-dir", default=DEFAULT_OUTPUT_DIR)
    g.add_argument("--filename", default=AVATAR_GLB_FILENAME)
    g.add_argument("--detail", type=float, default=1.0)
    g.add_argument("--max-bytes", type=int, default=DEFAULT_MAX_ASSET_BYTES,
                   help="size limit in bytes (0 disables)")
    g.add_argument("--asset-layout", action="store_true",
                   help="write under <output-dir>/assets/xr/ like the web root")
    g.add_argument("--with-equipment", action="store_true",
                   help="also write placeholder equipment GLBs")

    i = sub.add_parser("inspect", help="print the diagnostics report of a GLB")
    i.add_argument("asset")
    i.add_argument("--expect-default-bones", action="store_true",
                   help="exit non-zero if any generated-skeleton bone is missing")

    e = sub.add_parser("equip", help="attach equipment to an avatar GLB and report")
    e.add_argument("asset")
    e.add_argument("--shoes")
    e.add_argument("--accessory", dest="accessories")
    e.add_argument("--outfit", dest="outfits")
    e.add_argument("--asset-root", help="directory serving /assets/... (default: in-memory placeholders)")
    e.add_argument("--stance", default="Idle")
    return p.parse_args(argv)


def _generate(args) -> int:
    config = AvatarPipelineConfig(
        output_dir=args.output_dir,
        filename=args.filename,
        detail=args.detail,
        max_asset_bytes=args.max_bytes or None,
        asset_layout=args.asset_layout,
        with_equipment=args.with_equipment,
    )
    result = AvatarPipeline(config).run()
    print(f"\nasset  → {result['asset_path']}  ({result['size']} bytes)")
    print(f"bones  : {result['bones']}")
    print(f"clips  : {result['clips']}")
    for path in result["equipment_paths"]:
        print(f"equip  → {path}")
    return 0


def _inspect(args) -> int:
    path = Path(args.asset)
    report = inspect(parse_asset(path.read_bytes(), str(path)))
    print(json.dumps(report.to_dict(), indent=2))
    if args.expect_default_bones:
        missing = report.missing_bones(BONE_NAMES)
        if missing:
            print(f"missing bones: {missing}", file=sys.stderr)
            return 1
    return 0


def _equip(args) -> int:
    path = Path(args.asset)
    if args.asset_root:
        source = FileAssetSource(args.asset_root)
    else:
        source = MemoryAssetSource()
        install_placeholder_assets(source)
    look = EquippedLook(shoes=args.shoes, accessories=args.accessories, outfits=args.outfits)

    with AssetLoader(source, executor=InlineExecutor()) as loader:
        with AvatarSession(loader, look=look, stance=args.stance) as session:
            session.show(parse_asset(path.read_bytes(), str(path)))
            report = session.attachment_report
            for a in report.attached:
                print(f"attached {a.slot:<12} {a.item_id:<12} → {a.resolved_bone_name}")
            for f in report.failures:
                print(f"failed   {f.slot:<12} {f.item_id:<12} : {f.reason}")
            print(f"stance : {session.stance.value if session.stance else '-'}")
    return 0 if report.ok else 2


def main(argv=None) -> int:
    args = _args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s  %(levelname)-8s  %(message)s", datefmt="%H:%M:%S")
    handler = {"generate": _generate, "inspect": _inspect, "equip": _equip}[args.command]
    try:
        return handler(args)
    except AvatarPipelineError as e:
        log.error("%s failed: %s", args.command, e)
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
