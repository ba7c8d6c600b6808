"""
Database collection for tsdb-ingest.

A ``Database`` is the result of ``dbload()``: a plain ``dict`` from entry
name to entry, where an entry is a ``TimeSeries``, a typed
``numpy.ndarray``, or (for the file-level userdata) any Python literal.

It stays a ``dict`` so callers can index, iterate and merge it with the
usual mapping tools; the extra methods only summarize what was loaded.

Design rationale:
- **Insertion order** follows column order in the file, then file order
  for multi-file loads.  A later entry with the same name replaces the
  earlier one in place.
- **Cheap metadata**: ``describe()`` only looks at entry attributes
  (start, frequency, shape) and never copies data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from tsdb_ingest.dates import Freq, dat2str
from tsdb_ingest.series import TimeSeries

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DatabaseInfo -- lightweight metadata snapshot
# ---------------------------------------------------------------------------

@dataclass
class DatabaseInfo:
    """Structured summary of a database, returned by ``Database.describe()``.

    Attributes:
        entries: All entry names, in insertion order.
        series: Names of ``TimeSeries`` entries.
        arrays: Names of typed ``numpy.ndarray`` entries.
        other: Names of any other entries (file-level userdata).
        freq: Frequency shared by every dated series, or ``None`` if
            there are none or they disagree.
        date_range: ``(first, last)`` date labels over all dated series,
            or ``None`` when ``freq`` is ``None``.
        shapes: Mapping of entry name to array shape (series and arrays).
    """

    entries: list[str] = field(default_factory=list)
    series: list[str] = field(default_factory=list)
    arrays: list[str] = field(default_factory=list)
    other: list[str] = field(default_factory=list)
    freq: Freq | None = None
    date_range: tuple[str, str] | None = None
    shapes: dict[str, tuple[int, ...]] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

class Database(dict):
    """Mapping of entry name to loaded entry."""

    def __repr__(self) -> str:
        info = self.describe()
        return (
            f"Database({len(self)} entries: {len(info.series)} series, "
            f"{len(info.arrays)} arrays, {len(info.other)} other)"
        )

    def series(self) -> dict[str, TimeSeries]:
        """All ``TimeSeries`` entries, in insertion order."""
        return {k: v for k, v in self.items() if isinstance(v, TimeSeries)}

    def arrays(self) -> dict[str, np.ndarray]:
        """All typed array entries, in insertion order."""
        return {k: v for k, v in self.items() if isinstance(v, np.ndarray)}

    def describe(self) -> DatabaseInfo:
        """Summarize entry kinds, shapes and the overall date range."""
        info = DatabaseInfo(entries=list(self.keys()))
        for name, entry in self.items():
            if isinstance(entry, TimeSeries):
                info.series.append(name)
                info.shapes[name] = tuple(entry.data.shape)
            elif isinstance(entry, np.ndarray):
                info.arrays.append(name)
                info.shapes[name] = tuple(entry.shape)
            else:
                info.other.append(name)

        dated = [s for s in self.series().values() if s.start is not None and s.n_per]
        freqs = {s.freq for s in dated}
        if len(freqs) == 1:
            info.freq = freqs.pop()
            first = min(s.start for s in dated)
            last = max(s.end for s in dated)
            info.date_range = (dat2str(first, info.freq), dat2str(last, info.freq))
        elif len(freqs) > 1:
            logger.debug("Series have %d different frequencies", len(freqs))
        return info

    def merge(self, other: dict[str, Any]) -> Database:
        """Insert every entry of *other*, overwriting same-named entries."""
        self.update(other)
        return self
