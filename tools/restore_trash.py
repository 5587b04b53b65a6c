#!/usr/bin/env python3
"""
Out-of-band recovery for deleted markers.

Lists archived markers, or copies one back into the live collection as a new
marker (new id, original createdAt). The archive record itself is left intact.

Usage:
    python tools/restore_trash.py --data data --list
    python tools/restore_trash.py --data data --restore <trash _id>
"""
import argparse
import sys
from pathlib import Path

from bm.core.constants import MARKERS_COLLECTION, TRASH_COLLECTION
from bm.server.storage import JsonCollection
from bm.utils.log import log_line


def restore(markers: JsonCollection, trash: JsonCollection, trash_id: str) -> dict:
    rec = trash.find_by_id(trash_id)
    if rec is None:
        raise SystemExit(f"No archive record {trash_id}")
    doc = {k: v for k, v in rec.items() if k not in ("_id", "updatedAt")}
    restored = markers.insert(doc)
    log_line(f"RESTORE | trash={trash_id} -> id={restored['_id']} | location={restored.get('location')!r}")
    return restored


def main() -> int:
    parser = argparse.ArgumentParser(description="List or restore archived markers")
    parser.add_argument("--data", default="data")
    g = parser.add_mutually_exclusive_group(required=True)
    g.add_argument("--list", action="store_true")
    g.add_argument("--restore", metavar="TRASH_ID")
    args = parser.parse_args()

    data = Path(args.data)
    trash = JsonCollection(data / TRASH_COLLECTION)

    if args.list:
        for rec in trash.find():
            lat, lng = (rec.get("position") or [0, 0])[:2]
            print(f"{rec['_id']}\t{rec.get('createdAt')}\t({lat:.3f}, {lng:.3f})\t{rec.get('location') or ''}")
        return 0

    markers = JsonCollection(data / MARKERS_COLLECTION)
    restore(markers, trash, args.restore)
    return 0


if __name__ == "__main__":
    sys.exit(main())
