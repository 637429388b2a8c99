"""Core dumpsplit data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(slots=True, frozen=True)
class CategorizedItem:
    """Question/answer pair extracted from one dump row."""

    question: str
    short: str
    full: str

    def to_dict(self) -> Dict[str, str]:
        return {"question": self.question, "short": self.short, "full": self.full}


CategoryMap = Dict[str, List[CategorizedItem]]


@dataclass(slots=True)
class ParseStats:
    statements_found: int = 0
    rows_parsed: int = 0
    categories_found: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "statementsFound": self.statements_found,
            "rowsParsed": self.rows_parsed,
            "categoriesFound": self.categories_found,
        }


@dataclass(slots=True)
class ParseResult:
    """Categories extracted from one dump together with parse diagnostics."""

    category_map: CategoryMap = field(default_factory=dict)
    stats: ParseStats = field(default_factory=ParseStats)
