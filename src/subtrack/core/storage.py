"""JSON document storage — the on-disk home of the subscription list."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from subtrack.core.config import get_data_file
from subtrack.core.exceptions import StorageError

DOCUMENT_VERSION = 1


class JsonStore:
    """Reads and writes a single JSON document.

    Errors are raised as StorageError; deciding whether to recover is left to
    the caller.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or get_data_file()

    @property
    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> Any:
        """Parse and return the stored document."""
        try:
            with open(self.path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {self.path}: {e}") from e

    def write(self, document: Any) -> None:
        """Write the document atomically (temp file, then replace)."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2, default=str)
                    f.write("\n")
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write {self.path}: {e}") from e


def wrap_records(records: list[dict[str, Any]]) -> dict[str, Any]:
    """Build the versioned document around a list of records."""
    return {"version": DOCUMENT_VERSION, "subscriptions": records}


def unwrap_records(document: Any) -> list[dict[str, Any]]:
    """Extract the record list from a stored document.

    Accepts the versioned envelope and the bare list written by browser
    localStorage exports.
    """
    if isinstance(document, list):
        records = document
    elif isinstance(document, dict) and isinstance(document.get("subscriptions"), list):
        records = document["subscriptions"]
    else:
        raise StorageError("Unrecognized document: expected a list of subscriptions")
    if not all(isinstance(r, dict) for r in records):
        raise StorageError("Unrecognized document: every subscription must be an object")
    return records
