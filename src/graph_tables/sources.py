"""Turn a text payload into raw rows for a static table."""

from __future__ import annotations

import csv
import io
import json
from pathlib import PurePath
from typing import Any

DELIMITERS = {
    "csv": ",",
    "tsv": "\t",
}


def guess_extension(name: str) -> str | None:
    """Extension of ``name`` without the dot, lower-cased, or None."""
    suffix = PurePath(name).suffix
    return suffix[1:].lower() if suffix else None


def parse_rows(text: str, extension: str) -> tuple[list[Any] | dict[str, Any], list[str] | None]:
    """Parse ``text`` and return ``(data, columns)``.

    Delimited formats give a list of row dicts plus the header columns; JSON
    gives whatever list or object the payload holds and no columns.

    Raises:
        ValueError: If the extension is unsupported or JSON holds a scalar.
    """
    extension = extension.lower()
    if extension in DELIMITERS:
        reader = csv.DictReader(io.StringIO(text), delimiter=DELIMITERS[extension])
        rows = [dict(row) for row in reader]
        return rows, list(reader.fieldnames or [])
    if extension == "json":
        data = json.loads(text)
        if not isinstance(data, (list, dict)):
            raise ValueError("JSON payload must be an array or an object")
        return data, None
    raise ValueError(f"Unsupported file extension: {extension}")
