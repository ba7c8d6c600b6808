"""
Time series entry type for tsdb-ingest.

A ``TimeSeries`` is a dense array whose first axis runs over consecutive
periods starting at ``start``; any further axes come from the shape
annotation in the file's class row (e.g. ``Series[Inf-by-2-by-3]`` gives
trailing dimensions ``(2, 3)``).  Unobserved and missing periods hold
``NaN``.

The loader creates each series once and never mutates it afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from tsdb_ingest.dates import Freq, dat2date, dat2str, dat2ypf

# pandas period aliases for the frequencies pandas can represent
_PANDAS_FREQ: dict[Freq, str] = {
    Freq.YEARLY: "Y",
    Freq.QUARTERLY: "Q",
    Freq.MONTHLY: "M",
    Freq.WEEKLY: "W-SUN",
    Freq.DAILY: "D",
}


@dataclass
class TimeSeries:
    """Serial-date-indexed numeric array.

    Attributes:
        data: Array of shape ``(n_per, *trailing_dims)``; float64 or
            complex128.
        start: Serial date number of the first row, or ``None`` when the
            series has no dated observations.
        freq: Frequency of ``start``, or ``None`` together with ``start``.
        comments: Array of ``str`` with shape ``trailing_dims`` (one
            comment per column).
        userdata: Per-entry auxiliary fields read from ``.Field`` rows.
    """

    data: np.ndarray
    start: int | None = None
    freq: Freq | None = None
    comments: np.ndarray = field(default_factory=lambda: np.array("", dtype=object))
    userdata: dict[str, Any] = field(default_factory=dict)

    # -- Properties ---------------------------------------------------------

    @property
    def n_per(self) -> int:
        return int(self.data.shape[0])

    @property
    def trailing_shape(self) -> tuple[int, ...]:
        return tuple(self.data.shape[1:])

    @property
    def end(self) -> int | None:
        """Serial date number of the last row."""
        if self.start is None or self.n_per == 0:
            return None
        return self.start + self.n_per - 1

    @property
    def range(self) -> list[int]:
        """Serial date numbers of all rows."""
        if self.start is None:
            return []
        return list(range(self.start, self.start + self.n_per))

    @property
    def comment(self) -> str | list:
        """Comment text; a nested list for multi-column series."""
        if self.comments.size == 1:
            return str(self.comments.reshape(-1)[0])
        return self.comments.tolist()

    def __repr__(self) -> str:
        if self.start is None:
            span = "empty"
        else:
            span = f"{dat2str(self.start, self.freq)}:{dat2str(self.end, self.freq)}"
        return (
            f"TimeSeries({span}, shape={self.data.shape}, "
            f"dtype={self.data.dtype}, comment={self.comment!r})"
        )

    # -- Conversion ---------------------------------------------------------

    def labels(self) -> list[str]:
        """Date labels of all rows, e.g. ``["2010Q1", "2010Q2"]``."""
        return [dat2str(s, self.freq) for s in self.range]

    def index(self) -> pd.Index:
        """pandas index for the rows.

        A ``PeriodIndex`` for yearly, quarterly, monthly, weekly and daily
        series; an ``Index`` of date labels for half-yearly, bi-monthly and
        integer frequencies, which pandas has no period alias for.
        """
        if self.start is None:
            return pd.Index([], dtype=object)
        alias = _PANDAS_FREQ.get(self.freq)
        if alias is None:
            return pd.Index(self.labels(), dtype=object)
        if self.freq is Freq.YEARLY:
            year, _ = dat2ypf(self.start, self.freq)
            first = pd.Period(year=year, freq=alias)
        else:
            first = pd.Period(pd.Timestamp(dat2date(self.start, self.freq)), freq=alias)
        return pd.period_range(start=first, periods=self.n_per, freq=alias)

    def to_pandas(self) -> pd.Series | pd.DataFrame:
        """Convert to a ``pandas.Series`` (1-D) or ``pandas.DataFrame``.

        Multi-dimensional series are flattened to columns in the same
        column-major order the file stores them in.
        """
        idx = self.index()
        if self.data.ndim == 1:
            return pd.Series(self.data, index=idx)
        flat = self.data.reshape((self.n_per, -1), order="F")
        return pd.DataFrame(flat, index=idx)
