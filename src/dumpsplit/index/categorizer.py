"""Grouping of dump rows into categories."""

from __future__ import annotations

from typing import Callable, Mapping, Optional

from dumpsplit.ingestion.decoder import decode_text_buffer
from dumpsplit.ingestion.sql_parser import WHITESPACE, iter_statements
from dumpsplit.models import CategorizedItem, CategoryMap, ParseResult, ParseStats

LogFn = Callable[[str], None]


class NoCategoriesError(RuntimeError):
    """Raised when a whole dump yields no categorized rows."""

    def __init__(self, stats: ParseStats) -> None:
        self.stats = stats
        super().__init__(
            "No categories found in SQL file "
            f"(inserts={stats.statements_found}, rows={stats.rows_parsed})"
        )


def category_root(value: Optional[str]) -> Optional[str]:
    """Return the trimmed segment before the first dot, or ``None`` if blank."""
    if not value:
        return None
    root = str(value).split(".", 1)[0].strip(WHITESPACE)
    return root or None


def _first_present(row: Mapping[str, Optional[str]], *keys: str) -> Optional[str]:
    for key in keys:
        value = row.get(key)
        if value is not None:
            return value
    return None


class CategoryAggregator:
    """Folds rows into an insertion-ordered mapping of category to items."""

    def __init__(self) -> None:
        self.category_map: CategoryMap = {}

    def __len__(self) -> int:
        return len(self.category_map)

    def add(self, row: Mapping[str, Optional[str]]) -> bool:
        """Add ``row`` to its category bucket; return ``False`` if it was dropped."""
        root = category_root(_first_present(row, "category_id", "cat_id"))
        if root is None:
            return False

        item = CategorizedItem(
            question=_first_present(row, "question") or "",
            short=_first_present(row, "answer", "description") or "",
            full=_first_present(row, "description", "answer") or "",
        )
        self.category_map.setdefault(root, []).append(item)
        return True


def split_sql_by_category(text: str, log: Optional[LogFn] = None) -> ParseResult:
    """Parse every INSERT statement in ``text`` and bucket rows by category."""
    aggregator = CategoryAggregator()
    stats = ParseStats()

    def on_row(row: Mapping[str, Optional[str]]) -> None:
        stats.rows_parsed += 1
        aggregator.add(row)

    for _header in iter_statements(text, on_row):
        stats.statements_found += 1

    stats.categories_found = len(aggregator)
    if log is not None:
        log(
            f"SQL parse stats: inserts={stats.statements_found}, "
            f"rows={stats.rows_parsed}, categories={stats.categories_found}"
        )
    return ParseResult(category_map=aggregator.category_map, stats=stats)


def parse_dump(buffer: bytes, log: Optional[LogFn] = None) -> ParseResult:
    """Decode and split a raw dump, failing if no category was found."""
    result = split_sql_by_category(decode_text_buffer(buffer), log=log)
    if not result.category_map:
        raise NoCategoriesError(result.stats)
    return result
