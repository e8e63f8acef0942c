"""Create a row-store table with the standard layout and one demo record."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rowstore.config import load_settings  # noqa: E402
from rowstore.core.errors import RowStoreError  # noqa: E402
from rowstore.core.grid import open_workbook  # noqa: E402
from rowstore.core.tables import create_table  # noqa: E402


def _parse_column(raw: str) -> dict:
    name, _, ctype = raw.partition(":")
    out = {"name": name.strip()}
    if ctype.strip():
        out["type"] = ctype.strip().lower()
    return out


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description=__doc__)
    ap.add_argument("name", help="table (sheet) name")
    ap.add_argument(
        "--column",
        action="append",
        default=[],
        metavar="NAME[:TYPE]",
        help="user column, TYPE is string|number|boolean (repeatable)",
    )
    ap.add_argument("--sample", default=None, help="JSON object used for the demo record and type inference")
    ap.add_argument("--config", default=None, help="settings file (YAML or JSON)")
    args = ap.parse_args(argv)

    sample = None
    if args.sample:
        try:
            sample = json.loads(args.sample)
        except json.JSONDecodeError as exc:
            print(json.dumps({"error": "Invalid JSON", "debug": str(exc)}))
            return 2
        if not isinstance(sample, dict):
            print(json.dumps({"error": "--sample must be a JSON object"}))
            return 2

    settings = load_settings(Path(args.config) if args.config else None)
    workbook = open_workbook(settings)
    columns = [_parse_column(c) for c in args.column] or None

    try:
        result = create_table(workbook, args.name, columns, sample)
    except RowStoreError as exc:
        print(json.dumps(exc.to_payload()))
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
