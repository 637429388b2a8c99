"""Extraction of rows from ``INSERT INTO ... VALUES`` statements.

Only the subset of SQL produced by typical table dumps is understood: a
column list, then parenthesised rows of single-quoted strings, ``NULL`` and
bare tokens, terminated by ``;``. Everything else is skipped.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Sequence

Row = Dict[str, Optional[str]]

# Trimmed from fields and allowed between header tokens. Unlike str.strip(),
# the information separators and NEL are not whitespace here.
WHITESPACE = (
    "\t\n\v\f\r \u00a0\u1680\u2000\u2001\u2002\u2003\u2004\u2005\u2006"
    "\u2007\u2008\u2009\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"
)
_WS = "[" + re.escape(WHITESPACE) + "]"
_NOT_WS = re.escape(WHITESPACE)

INSERT_PATTERN = re.compile(
    rf"INSERT{_WS}+INTO{_WS}+`?[^`({_NOT_WS}]*`?{_WS}*\(([^)]+)\){_WS}*VALUES{_WS}*",
    re.IGNORECASE | re.ASCII,
)


@dataclass(slots=True, frozen=True)
class InsertHeader:
    columns: List[str]
    values_start: int


class ScanState(enum.Enum):
    BETWEEN_ROWS = "between_rows"
    IN_ROW = "in_row"


def parse_sql_columns(columns_text: str) -> List[str]:
    """Split a column list, dropping backticks and empty names."""
    columns = (col.strip(WHITESPACE).replace("`", "") for col in columns_text.split(","))
    return [col for col in columns if col]


def decode_sql_value(value: str) -> Optional[str]:
    """Map a trimmed field to its value; ``NULL`` becomes ``None``."""
    if not value:
        return ""
    if value.upper() == "NULL":
        return None
    return value


def find_insert_statement(text: str, start: int = 0) -> Optional[InsertHeader]:
    """Locate the next INSERT header at or after ``start``."""
    match = INSERT_PATTERN.search(text, start)
    if match is None:
        return None
    return InsertHeader(columns=parse_sql_columns(match.group(1)), values_start=match.end())


def _build_row(columns: Sequence[str], values: Sequence[Optional[str]]) -> Row:
    return {
        column: values[idx] if idx < len(values) else None
        for idx, column in enumerate(columns)
    }


def parse_values_section(
    text: str,
    start: int,
    columns: Sequence[str],
    on_row: Callable[[Row], None],
) -> int:
    """Tokenize the rows of one statement, calling ``on_row`` for each.

    Returns the offset just past the terminating ``;``, or ``len(text)`` when
    the statement is never terminated. Unfinished trailing rows are dropped.
    """
    length = len(text)
    i = start
    state = ScanState.BETWEEN_ROWS
    in_string = False
    current: List[str] = []
    values: List[Optional[str]] = []

    while i < length:
        ch = text[i]

        if in_string:
            if ch == "'":
                if i + 1 < length and text[i + 1] == "'":
                    current.append("'")
                    i += 2
                    continue
                in_string = False
                i += 1
                continue
            # Copy the run of plain characters up to the next quote at once.
            end = text.find("'", i)
            if end == -1:
                end = length
            current.append(text[i:end])
            i = end
            continue

        if ch == "'":
            in_string = True
        elif ch == "(":
            state = ScanState.IN_ROW
            values = []
            current = []
        elif ch == "," and state is ScanState.IN_ROW:
            values.append(decode_sql_value("".join(current).strip(WHITESPACE)))
            current = []
        elif ch == ")" and state is ScanState.IN_ROW:
            values.append(decode_sql_value("".join(current).strip(WHITESPACE)))
            current = []
            state = ScanState.BETWEEN_ROWS
            on_row(_build_row(columns, values))
        elif ch == ";" and state is ScanState.BETWEEN_ROWS:
            return i + 1
        else:
            current.append(ch)
        i += 1

    return length


def iter_statements(text: str, on_row: Callable[[Row], None]) -> Iterator[InsertHeader]:
    """Parse every INSERT statement in document order, yielding each header.

    Rows go to ``on_row`` as they are tokenized; scanning for the next header
    resumes just past the previous statement's terminator.
    """
    position = 0
    while True:
        header = find_insert_statement(text, position)
        if header is None:
            return
        position = parse_values_section(text, header.values_start, header.columns, on_row)
        yield header
