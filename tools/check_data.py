#!/usr/bin/env python3
"""
Script to check the consistency of the marker data files.
Loads the live collection (markers.json) and the archive (trash.json) and
performs several validations:
* Position validity: a [lat, lng] pair of numbers within range
  (–90 ≤ lat ≤ 90, –180 ≤ lng ≤ 180).
* Duplicate ids in the live collection.
* Missing createdAt/updatedAt timestamps.
* Non-list comments.
If any issues are detected, they are printed to standard output. Each line
contains the issue type, the collection and the record id. The script exits
with a non-zero status if issues are found.
Usage:
    python tools/check_data.py --data data
"""
import argparse, json, sys
from pathlib import Path

def load_json(path: Path) -> list:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return []

def check_docs(docs: list, collection: str) -> list[tuple[str, str, str]]:
    errors: list[tuple[str, str, str]] = []
    seen_ids: set[str] = set()
    for doc in docs:
        doc_id = str(doc.get("_id") or "unknown")
        if doc_id in seen_ids:
            errors.append(("duplicate_id", collection, doc_id))
        seen_ids.add(doc_id)
        pos = doc.get("position")
        if not isinstance(pos, list) or len(pos) != 2 or not all(
            isinstance(v, (int, float)) and not isinstance(v, bool) for v in pos
        ):
            errors.append(("invalid_position", collection, doc_id))
        else:
            lat, lng = pos
            if not (-90 <= lat <= 90 and -180 <= lng <= 180):
                errors.append(("out_of_bounds_position", collection, doc_id))
        if not isinstance(doc.get("comments", []), list):
            errors.append(("invalid_comments", collection, doc_id))
        for field in ("createdAt", "updatedAt"):
            if not doc.get(field):
                errors.append((f"missing_{field}", collection, doc_id))
    return errors

def main() -> int:
    parser = argparse.ArgumentParser(description="Validate marker data files")
    parser.add_argument("--data", default="data")
    args = parser.parse_args()
    data = Path(args.data)
    errors = check_docs(load_json(data / "markers.json"), "markers")
    errors += check_docs(load_json(data / "trash.json"), "trash")
    if errors:
        for issue, coll, rid in errors:
            print(f"{issue}\t{coll}\t{rid}")
        print(f"\nFound {len(errors)} issues")
        return 1
    else:
        print("No issues detected")
        return 0

if __name__ == "__main__":
    sys.exit(main())
