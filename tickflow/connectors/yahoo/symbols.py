from __future__ import annotations

import csv
from pathlib import Path


def load_symbols(path: str | Path) -> list[str]:
    """Read ticker symbols from the first column of a CSV file.

    Blank lines are skipped, as is a first row whose first cell starts
    with ``symbol`` (case-insensitive).
    """
    text = Path(path).expanduser().read_text(encoding="utf-8")
    symbols: list[str] = []
    for i, row in enumerate(csv.reader(text.splitlines())):
        if not row:
            continue
        first = row[0].strip()
        if i == 0 and first.lower().startswith("symbol"):
            continue
        if first:
            symbols.append(first)
    return symbols
