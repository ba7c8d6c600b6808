"""
Numeric table reader for tsdb-ingest.

Turns the data region of a database CSV file (every line from the first
data line on) into a numeric matrix plus a missing-value mask.

Cell cleaning (before any numeric parsing):
1. Lower-case every cell and remove all whitespace.
2. Replace configured ``nan`` tokens (whole-cell, case-insensitive; a
   literal ``.`` is fine) and the date-highlight marker ``***`` with an
   internal ``nan`` sentinel.

Two-pass parse:
  An empty or unparsable cell is *missing*, but a cell may also hold a
  genuine ``-inf``.  A single parse cannot tell "this was a gap" from
  "this was -inf", so the table is parsed twice:

  - pass 1 fills empty/unparsable cells with ``-inf``
  - pass 2 fills them with ``nan``

  A cell is missing iff it reads ``-inf`` in pass 1 AND ``nan`` in pass 2.
  Genuine ``-inf`` reads ``-inf`` in both passes; sentinel cells read
  ``nan`` in both.  The returned matrix is the pass-1 matrix; consumers
  overwrite masked cells with ``nan``.

Complex literals (``1+2i`` / ``1+2j``) are supported; if any cell is
complex the whole matrix is complex128.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import partial

import numpy as np
import pandas as pd

from tsdb_ingest.config import LoadOptions
from tsdb_ingest.exceptions import InvalidFormatError
from tsdb_ingest.parsers.headers import COMMENT_MARKER
from tsdb_ingest.parsers.tokens import split_cells

logger = logging.getLogger(__name__)

MISSING_SENTINEL = "nan"
HIGHLIGHT_MARKER = "***"

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass
class DataBlock:
    """Parsed data region.

    Attributes:
        matrix: 2-D float64 or complex128 array, one row per data line,
            one column per data column (the date column excluded).
        missing: Boolean mask, same shape; ``True`` where the source cell
            was empty or unparsable.
        date_cells: Cleaned first cell of every data line.
    """

    matrix: np.ndarray
    missing: np.ndarray
    date_cells: list[str]

    @property
    def n_rows(self) -> int:
        return int(self.matrix.shape[0])

    @property
    def n_cols(self) -> int:
        return int(self.matrix.shape[1])

    @property
    def is_empty(self) -> bool:
        return self.n_rows == 0


def empty_block() -> DataBlock:
    """A data block for a file without a data region."""
    return DataBlock(
        matrix=np.zeros((0, 0)),
        missing=np.zeros((0, 0), dtype=bool),
        date_cells=[],
    )


def clean_date_cell(cell: str) -> str:
    """Strip whitespace and one leading/trailing single or double quote."""
    cell = cell.strip()
    if cell[:1] in ("'", '"'):
        cell = cell[1:]
    if cell[-1:] in ("'", '"'):
        cell = cell[:-1]
    return cell


def tokenize_data_region(lines: list[str]) -> list[list[str]]:
    """Split data lines into cells, dropping blank and ``%`` comment lines."""
    rows: list[list[str]] = []
    for line in lines:
        if not line.strip():
            continue
        cells = split_cells(line)
        if cells[0].strip().startswith(COMMENT_MARKER):
            continue
        rows.append(cells)
    return rows


def normalize_cells(rows: list[list[str]], nan_tokens: list[str]) -> np.ndarray:
    """Build a rectangular array of cleaned data cells (date column dropped).

    Short rows are right-padded with empty cells.
    """
    width = max((len(r) for r in rows), default=1) - 1
    tokens = {_WHITESPACE_RE.sub("", t).lower() for t in nan_tokens}
    tokens.add(HIGHLIGHT_MARKER)

    cells = np.full((len(rows), max(width, 0)), "", dtype=object)
    for i, row in enumerate(rows):
        for j, raw in enumerate(row[1:]):
            text = _WHITESPACE_RE.sub("", raw).lower()
            cells[i, j] = MISSING_SENTINEL if text in tokens else text
    return cells


def _parse_fallback(text: str) -> float | complex | None:
    """Parse a cell pandas could not: real first, then complex."""
    try:
        return float(text)
    except ValueError:
        pass
    if text[-1:] in ("i", "j"):
        try:
            return complex(text[:-1] + "j")
        except ValueError:
            return None
    return None


def parse_pass(cells: np.ndarray, fill: float) -> np.ndarray:
    """One full numeric pass over *cells*.

    Empty and unparsable cells get *fill*; the ``nan`` sentinel reads as
    ``nan``.

    Args:
        cells: 2-D object array of cleaned cell strings.
        fill: Value for empty/unparsable cells (``-inf`` or ``nan``).

    Returns:
        float64 array, or complex128 if any cell holds a complex literal.
    """
    if cells.size == 0:
        return np.zeros(cells.shape)

    frame = pd.DataFrame(cells)
    numeric = (
        frame.apply(partial(pd.to_numeric, errors="coerce"))
        .to_numpy(dtype=float, na_value=np.nan, copy=True)
    )
    unresolved = np.isnan(numeric) & (cells != MISSING_SENTINEL)

    complex_cells: dict[tuple[int, int], complex] = {}
    for i, j in zip(*np.nonzero(unresolved & (cells != ""))):
        value = _parse_fallback(cells[i, j])
        if value is None:
            continue
        unresolved[i, j] = False
        if isinstance(value, complex):
            complex_cells[(i, j)] = value
        else:
            numeric[i, j] = value

    if complex_cells:
        result = numeric.astype(np.complex128)
        for (i, j), value in complex_cells.items():
            result[i, j] = value
        result[unresolved] = complex(fill, 0.0)
        return result

    numeric[unresolved] = fill
    return numeric


def read_numeric_data(
    lines: list[str],
    options: LoadOptions,
    source: str | None = None,
) -> DataBlock:
    """Parse the data region into a ``DataBlock``.

    Args:
        lines: Lines from the first data line to the end of the file.
        options: Load options (``nan`` tokens).
        source: File name for error messages.

    Returns:
        The parsed ``DataBlock``.

    Raises:
        InvalidFormatError: If the region has data cells but none of them
            is numeric, i.e. the file is not a numeric table.
    """
    rows = tokenize_data_region(lines)
    if not rows:
        return empty_block()

    date_cells = [clean_date_cell(r[0]) for r in rows]
    cells = normalize_cells(rows, options.nan)

    # Two full passes with different fills, combined by mask intersection
    data = parse_pass(cells, -np.inf)
    data_nan = parse_pass(cells, np.nan)
    missing = (np.real(data) == -np.inf) & np.isnan(np.real(data_nan))

    if cells.size and missing.all() and (cells != "").any():
        raise InvalidFormatError(
            "Data region does not contain any numeric values; "
            f"first data line: {lines[0][:80]!r}",
            source=source,
        )

    logger.info(
        "Read numeric data: %d rows x %d cols (%s), %d missing cell(s)",
        data.shape[0],
        data.shape[1],
        data.dtype,
        int(missing.sum()),
    )
    return DataBlock(matrix=data, missing=missing, date_cells=date_cells)
