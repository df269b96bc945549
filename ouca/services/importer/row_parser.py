"""
Splitting of uploaded delimited files into rows of trimmed cells.

Responsibilities:
  • BOM removal (UTF-8)
  • One physical line per row; quotes are ordinary characters
  • Lazy iteration, blank lines skipped and not numbered
  • Column count check before any validation happens
"""

from __future__ import annotations

import io
from collections.abc import Iterator
from dataclasses import dataclass

_BOM = "\ufeff"


class MalformedRowError(ValueError):
    """The row does not have the number of columns the entity kind expects."""

    def __init__(self, row_number: int, expected: int, actual: int) -> None:
        self.row_number = row_number
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"The row has {actual} column(s) but {expected} are expected"
        )


@dataclass(frozen=True)
class RawRow:
    number: int
    cells: list[str]


def _decode(raw: bytes | str, encoding: str) -> str:
    text = raw.decode(encoding) if isinstance(raw, bytes) else raw
    if text.startswith(_BOM):
        return text[1:]
    return text


def iter_rows(
    raw: bytes | str, delimiter: str = ";", encoding: str = "utf-8"
) -> Iterator[RawRow]:
    """Yield the non-blank lines of ``raw`` in file order, numbered from 1.

    Only ``\\n``, ``\\r\\n`` and ``\\r`` end a row, so a cell can never span
    lines and there is no limit on the length of a cell.
    """
    # newline=None folds \r\n and \r into \n
    lines = io.StringIO(_decode(raw, encoding), newline=None)
    number = 0
    for line in lines:
        cells = [cell.strip() for cell in line.rstrip("\n").split(delimiter)]
        if not any(cells):
            continue
        number += 1
        yield RawRow(number=number, cells=cells)


def count_rows(raw: bytes | str, delimiter: str = ";", encoding: str = "utf-8") -> int:
    return sum(1 for _ in iter_rows(raw, delimiter, encoding))


def check_column_count(row: RawRow, expected: int) -> None:
    if len(row.cells) != expected:
        raise MalformedRowError(row.number, expected, len(row.cells))
