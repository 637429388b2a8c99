"""Utility helpers for working with files."""

from __future__ import annotations

import json
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator, List

from dumpsplit.models import CategoryMap

_UNSAFE_CHARS = re.compile(r"[^\w.\-]+", re.ASCII)
_REPEATED_UNDERSCORES = re.compile(r"_+")


@dataclass(slots=True)
class CategoryFiles:
    categories_dir: Path
    file_paths: List[Path] = field(default_factory=list)


def sanitize_file_name(name: Any) -> str:
    """Turn an arbitrary label into a filesystem-safe name."""
    if not name or not isinstance(name, str):
        return "file"
    cleaned = _UNSAFE_CHARS.sub("_", name)
    cleaned = _REPEATED_UNDERSCORES.sub("_", cleaned).strip("_")
    return cleaned or "file"


def iter_sql_paths(inputs: Iterable[Path]) -> Iterator[Path]:
    """Yield SQL dump paths from input paths, descending into directories."""
    for item in inputs:
        if item.is_dir():
            yield from iter_sql_paths(sorted(child for child in item.rglob("*.sql")))
        elif item.is_file() and item.suffix.lower() == ".sql":
            yield item


def write_category_files(category_map: CategoryMap, output_dir: Path, base_name: str) -> CategoryFiles:
    """Write one JSON array per category under ``<output_dir>/<base_name>_categories``."""
    categories_dir = Path(output_dir) / f"{base_name}_categories"
    categories_dir.mkdir(parents=True, exist_ok=True)

    written = CategoryFiles(categories_dir=categories_dir)
    for category, items in category_map.items():
        file_path = categories_dir / f"{sanitize_file_name(category)}.json"
        payload = [item.to_dict() for item in items]
        file_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        written.file_paths.append(file_path)
    return written


def safe_remove_path(target: Path | None) -> None:
    """Remove a file or directory tree if it exists."""
    if target is None:
        return
    target = Path(target)
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target, ignore_errors=True)
    else:
        target.unlink(missing_ok=True)
