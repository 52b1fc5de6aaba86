"""Durable JSON Lines export and import."""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from collections.abc import Iterable, Mapping
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any


def _to_mapping(record: Any) -> Mapping[str, Any]:
    if isinstance(record, Mapping):
        return record
    if hasattr(record, "model_dump"):
        return record.model_dump(mode="json")
    if is_dataclass(record) and not isinstance(record, type):
        return asdict(record)
    raise TypeError(f"Cannot write {type(record).__name__} as a JSONL row")


def dumps_line(record: Any) -> str:
    """Serialize one record as a compact, key-sorted JSON line (no newline)."""
    return json.dumps(
        dict(_to_mapping(record)), separators=(",", ":"), sort_keys=True, ensure_ascii=False
    )


def atomic_write_jsonl(path: Path, records: Iterable[Any]) -> int:
    """Write ``records`` to ``path`` as JSONL, replacing any existing file atomically.

    Rows go to a sibling temporary file that is fsynced and then renamed over
    ``path``; readers see either the old file or the complete new one.

    Returns:
        Number of rows written
    """
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)

    handle = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=destination.parent,
        prefix=f".{destination.name}.",
        suffix=".tmp",
        delete=False,
    )
    written = 0
    try:
        with handle:
            for record in records:
                handle.write(dumps_line(record) + "\n")
                written += 1
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(handle.name, destination)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(handle.name)
        raise
    return written


def read_jsonl(path: Path) -> list[dict[str, Any]]:
    """Load every non-blank line of ``path``."""
    rows: list[dict[str, Any]] = []
    with Path(path).open(encoding="utf-8") as handle:
        for line_no, line in enumerate(handle, 1):
            if not line.strip():
                continue
            try:
                rows.append(json.loads(line))
            except json.JSONDecodeError as exc:
                raise ValueError(f"{path}:{line_no}: invalid JSON ({exc.msg})") from exc
    return rows
