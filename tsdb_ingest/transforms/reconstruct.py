"""
Entry reconstruction for tsdb-ingest.

Rebuilds named entries from the parsed pieces of one file: the header
bundle (names, class row, comments, per-entry userdata), the numeric
data block and the date axis.

Column groups:
  Columns are walked left to right.  A column with an empty name is
  skipped on its own; otherwise the class cell decides how many columns
  the entry spans:

    (empty) / Series / tseries     1-D time series, one column
    Series[Inf-by-2-by-3]          time series, trailing dims (2, 3)
    Series[2-by-3]                 same (a leading ``Inf`` is optional)
    double[4-by-2]                 typed array, 4 rows x 2 columns
    int32[3][2]                    legacy bracket-chain shape

  Multi-dimensional entries store their columns in column-major
  (Fortran) order, so ``Series[Inf-by-2-by-3]`` columns run
  ``(0,0) (1,0) (0,1) (1,1) (0,2) (1,2)``.

Type dispatch:
  Non-series class identifiers are looked up in ``NUMERIC_TYPES``; the
  table is closed, and an identifier outside it is an error.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from tsdb_ingest.exceptions import UnknownTypeError
from tsdb_ingest.parsers.datecol import DateAxis
from tsdb_ingest.parsers.headers import HeaderBundle
from tsdb_ingest.parsers.numeric import DataBlock
from tsdb_ingest.series import TimeSeries

logger = logging.getLogger(__name__)

SERIES_TYPES = frozenset({"series", "tseries"})

NUMERIC_TYPES: dict[str, np.dtype] = {
    "int8": np.dtype(np.int8),
    "int16": np.dtype(np.int16),
    "int32": np.dtype(np.int32),
    "int64": np.dtype(np.int64),
    "uint8": np.dtype(np.uint8),
    "uint16": np.dtype(np.uint16),
    "uint32": np.dtype(np.uint32),
    "uint64": np.dtype(np.uint64),
    "single": np.dtype(np.float32),
    "float32": np.dtype(np.float32),
    "double": np.dtype(np.float64),
    "float64": np.dtype(np.float64),
    "complex64": np.dtype(np.complex64),
    "complex128": np.dtype(np.complex128),
    "logical": np.dtype(np.bool_),
    "bool": np.dtype(np.bool_),
}

_CLASS_SPEC_RE = re.compile(r"^(\w*)\s*(\[.*\])?")


@dataclass
class ColumnGroup:
    """A contiguous run of data columns forming one entry.

    Attributes:
        name: Entry name (already normalized).
        start: Index of the first column in the data matrix.
        width: Number of columns spanned.
        dtype: Target numeric type for typed arrays; ``None`` for series.
        dims: Full shape for typed arrays (first dim may be ``inf``);
            trailing shape for series.
    """

    name: str
    start: int
    width: int
    dtype: np.dtype | None = None
    dims: tuple[float, ...] = field(default_factory=tuple)

    @property
    def is_series(self) -> bool:
        return self.dtype is None

    @property
    def columns(self) -> range:
        return range(self.start, self.start + self.width)


# ---------------------------------------------------------------------------
# Class/shape annotation
# ---------------------------------------------------------------------------

def parse_dims(text: str) -> tuple[float, ...]:
    """Parse ``[2-by-3]`` or ``[2][3]`` into ``(2, 3)``.

    ``Inf`` is read as ``math.inf``.  Returns ``()`` if *text* is empty
    or any dimension is not a number.
    """
    text = text.strip()
    if len(text) < 2:
        return ()
    inner = text[1:-1].replace("][", "-by-")
    dims: list[float] = []
    for token in inner.split("-by-"):
        try:
            value = float(token.strip())
        except ValueError:
            return ()
        if math.isnan(value) or value < 0:
            return ()
        dims.append(value if math.isinf(value) else int(value))
    return tuple(dims)


def parse_class_spec(spec: str) -> tuple[str, tuple[float, ...]]:
    """Split a class cell into (type identifier, dims).

    A missing identifier means a time series.
    """
    match = _CLASS_SPEC_RE.match(spec.strip())
    type_name = match.group(1) if match else ""
    dims = parse_dims(match.group(2) or "") if match else ()
    if match and match.group(2) and not dims:
        logger.warning("Cannot read shape annotation %r; assuming one column", spec)
    return (type_name or "Series"), dims


def series_trailing_dims(dims: tuple[float, ...]) -> tuple[int, ...]:
    """Trailing dims of a series annotation; a leading ``Inf`` is dropped."""
    if dims and math.isinf(dims[0]):
        dims = dims[1:]
    if any(math.isinf(d) for d in dims):
        logger.warning("Series shape %r has an infinite trailing dim; ignored", dims)
        return ()
    return tuple(int(d) for d in dims)


def _prod(dims: tuple[float, ...]) -> int:
    return int(math.prod(dims)) if dims else 1


def plan_column_groups(
    names: list[str],
    class_specs: list[str],
    source: str | None = None,
) -> list[ColumnGroup]:
    """Partition the named data columns into ``ColumnGroup``s.

    Raises:
        UnknownTypeError: If a non-series group with a shape names a type
            outside ``NUMERIC_TYPES``.
    """
    groups: list[ColumnGroup] = []
    count = 0
    n = len(names)
    while count < n:
        name = names[count]
        if not name:
            count += 1
            continue

        spec = class_specs[count] if count < len(class_specs) else ""
        type_name, dims = parse_class_spec(spec)

        if type_name.lower() in SERIES_TYPES:
            trailing = series_trailing_dims(dims)
            group = ColumnGroup(name=name, start=count, width=_prod(trailing), dims=trailing)
        elif not dims:
            logger.warning(
                "Column %d (%s): type %r without a shape; column skipped",
                count + 1, name, type_name,
            )
            count += 1
            continue
        else:
            dtype = NUMERIC_TYPES.get(type_name.lower())
            if dtype is None:
                raise UnknownTypeError(
                    f"Unknown type {type_name!r} for entry {name!r}", source=source
                )
            if any(math.isinf(d) for d in dims[1:]):
                raise UnknownTypeError(
                    f"Shape {spec!r} of entry {name!r} has an infinite trailing dim",
                    source=source,
                )
            group = ColumnGroup(
                name=name, start=count, width=_prod(dims[1:]), dtype=dtype, dims=dims
            )

        groups.append(group)
        count += max(group.width, 1)
    return groups


# ---------------------------------------------------------------------------
# Entry builders
# ---------------------------------------------------------------------------

def _take_block(
    block: DataBlock,
    group: ColumnGroup,
    n_rows: int | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Slice the group's columns; cells beyond the matrix count as missing."""
    n = block.n_rows if n_rows is None else n_rows
    values = np.full((n, group.width), np.nan, dtype=block.matrix.dtype)
    missing = np.ones((n, group.width), dtype=bool)
    r = min(n, block.n_rows)
    c = max(0, min(group.width, block.n_cols - group.start))
    if r and c:
        values[:r, :c] = block.matrix[:r, group.start:group.start + c]
        missing[:r, :c] = block.missing[:r, group.start:group.start + c]
    return values, missing


def _group_comments(comments: list[str], group: ColumnGroup) -> np.ndarray:
    cells = list(comments[group.start:group.start + group.width])
    cells += [""] * (group.width - len(cells))
    return np.array(cells, dtype=object).reshape(group.dims, order="F")


def _group_userdata(aux_fields: dict[str, list[str]], group: ColumnGroup) -> dict[str, Any]:
    return {
        key: (row[group.start] if group.start < len(row) else "")
        for key, row in aux_fields.items()
    }


def build_series(
    group: ColumnGroup,
    block: DataBlock,
    axis: DateAxis,
    headers: HeaderBundle,
) -> TimeSeries:
    """Build the ``TimeSeries`` for one series group."""
    comments = _group_comments(headers.comments, group)
    userdata = _group_userdata(headers.aux_fields, group)

    if block.is_empty or not axis.has_dates:
        return TimeSeries(
            data=np.zeros((0, *group.dims)),
            comments=comments,
            userdata=userdata,
        )

    values, missing = _take_block(block, group)
    rows = axis.valid
    live = values[rows]
    live_missing = missing[rows]
    is_complex = np.iscomplexobj(live) and bool(np.any(np.imag(live[~live_missing]) != 0))

    dtype = np.complex128 if is_complex else np.float64
    data = np.full((axis.n_per, group.width), np.nan, dtype=dtype)
    data_missing = np.zeros((axis.n_per, group.width), dtype=bool)
    data[axis.index[rows]] = live if is_complex else np.real(live)
    data_missing[axis.index[rows]] = live_missing
    data[data_missing] = np.nan

    return TimeSeries(
        data=data.reshape((axis.n_per, *group.dims), order="F"),
        start=axis.min_date,
        freq=axis.freq,
        comments=comments,
        userdata=userdata,
    )


def cast_array(values: np.ndarray, dtype: np.dtype) -> np.ndarray:
    """Cast to *dtype*: real part for real targets, ``NaN`` -> 0 for
    integer and boolean targets, integers rounded and saturated."""
    dtype = np.dtype(dtype)
    if dtype.kind == "c":
        return values.astype(dtype)
    values = np.real(values)
    if dtype.kind == "f":
        return values.astype(dtype)
    values = np.where(np.isnan(values), 0.0, values)
    if dtype.kind == "b":
        return values != 0
    info = np.iinfo(dtype)
    values = np.rint(values)
    # float(info.max) is not exact for 64-bit types; compare against the
    # exclusive power of two.
    upper = 2.0 ** (info.bits - 1) if dtype.kind == "i" else 2.0 ** info.bits
    too_high = values >= upper
    too_low = values <= info.min
    result = np.where(too_high | too_low, 0.0, values).astype(dtype)
    result[too_high] = info.max
    result[too_low] = info.min
    return result


def build_array(group: ColumnGroup, block: DataBlock) -> np.ndarray:
    """Build the typed array for one non-series group."""
    first = group.dims[0]
    n_rows = block.n_rows if math.isinf(first) else int(first)
    values, missing = _take_block(block, group, n_rows=n_rows)
    values[missing] = np.nan
    shape = (n_rows, *(int(d) for d in group.dims[1:]))
    return cast_array(values.reshape(shape, order="F"), group.dtype)


def populate_database(
    database: dict[str, Any],
    names: list[str],
    headers: HeaderBundle,
    block: DataBlock,
    axis: DateAxis,
    source: str | None = None,
) -> list[str]:
    """Build every entry and insert it into *database*.

    Args:
        database: Target mapping; existing entries with the same name are
            overwritten.
        names: Final entry names, aligned with the data columns.
        headers: Class row, comments and per-entry userdata.
        block: Parsed data region.
        axis: Parsed date column.
        source: File name for error messages.

    Returns:
        Names of the entries created, in column order.
    """
    groups = plan_column_groups(names, headers.class_specs, source=source)
    created: list[str] = []
    n_series = 0
    for group in groups:
        if group.is_series:
            database[group.name] = build_series(group, block, axis, headers)
            n_series += 1
        else:
            database[group.name] = build_array(group, block)
        created.append(group.name)

    logger.info(
        "Created %d entries (%d series, %d arrays)",
        len(created), n_series, len(created) - n_series,
    )
    return created
