"""
Date column parser for tsdb-ingest.

Cell 0 of every data line holds the period the line belongs to.  This
module turns those cells into a date axis: one serial date number per
row, a validity mask, and the dense period range the series will span.

Rows whose date cell is empty or unparsable stay in the data block (typed
arrays still read them) but are left off the axis, so series never see
them.

Frequency:
  Every valid date must share one frequency.  A file mixing ``2010Q1``
  and ``2010M01`` raises ``MixedFrequencyError``; the loader never
  guesses which rows were meant.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from tsdb_ingest.config import LoadOptions
from tsdb_ingest.dates import DateCode, Freq, dat2str, str2dat
from tsdb_ingest.exceptions import MixedFrequencyError

logger = logging.getLogger(__name__)


@dataclass
class DateAxis:
    """Result of parsing the date column.

    Attributes:
        serials: Serial date number per data row (0 where invalid).
        valid: Boolean mask of rows with a parsable date.
        freq: Common frequency of the valid dates, or ``None``.
        min_date: Smallest valid serial date, or ``None``.
        max_date: Largest valid serial date, or ``None``.
        n_per: Number of periods from ``min_date`` to ``max_date``
            inclusive; 0 without valid dates.
        index: Row position within that range per data row (-1 where
            invalid).
    """

    serials: np.ndarray
    valid: np.ndarray
    freq: Freq | None
    min_date: int | None
    max_date: int | None
    n_per: int
    index: np.ndarray

    @property
    def has_dates(self) -> bool:
        return self.min_date is not None


def _check_single_freq(codes: list[DateCode | None], source: str | None) -> Freq | None:
    freqs = {code.freq for code in codes if code is not None}
    if len(freqs) > 1:
        names = ", ".join(sorted(f.name.lower() for f in freqs))
        raise MixedFrequencyError(
            f"Date column mixes frequencies ({names})", source=source
        )
    return freqs.pop() if freqs else None


def parse_date_column(
    date_cells: list[str],
    options: LoadOptions,
    source: str | None = None,
) -> DateAxis:
    """Parse the date cells of all data rows into a ``DateAxis``.

    Args:
        date_cells: Cleaned cell 0 of every data row.
        options: Load options (``date_format``, ``freq``,
            ``freq_letters``, ``first_date_only``).
        source: File name for error messages.

    Raises:
        MixedFrequencyError: If the valid dates have more than one
            frequency.
    """
    n_rows = len(date_cells)

    if options.first_date_only and n_rows:
        first = str2dat(
            date_cells[:1], options.date_format, options.freq, options.freq_letters
        )[0]
        if first is None:
            codes: list[DateCode | None] = [None] * n_rows
        else:
            codes = [DateCode(first.serial + k, first.freq) for k in range(n_rows)]
    else:
        codes = str2dat(
            date_cells, options.date_format, options.freq, options.freq_letters
        )

    freq = _check_single_freq(codes, source)

    valid = np.array([code is not None for code in codes], dtype=bool)
    serials = np.array(
        [code.serial if code is not None else 0 for code in codes], dtype=np.int64
    )

    if not valid.any():
        if n_rows:
            logger.info("No valid dates in %d data row(s)", n_rows)
        return DateAxis(
            serials=serials,
            valid=valid,
            freq=None,
            min_date=None,
            max_date=None,
            n_per=0,
            index=np.full(n_rows, -1, dtype=np.int64),
        )

    min_date = int(serials[valid].min())
    max_date = int(serials[valid].max())
    index = np.where(valid, serials - min_date, -1)

    n_invalid = int((~valid).sum())
    if n_invalid:
        logger.debug("%d data row(s) without a valid date", n_invalid)
    logger.info(
        "Date range %s:%s (%s, %d periods)",
        dat2str(min_date, freq, options.freq_letters),
        dat2str(max_date, freq, options.freq_letters),
        freq.name.lower(),
        max_date - min_date + 1,
    )
    return DateAxis(
        serials=serials,
        valid=valid,
        freq=freq,
        min_date=min_date,
        max_date=max_date,
        n_per=max_date - min_date + 1,
        index=index,
    )
