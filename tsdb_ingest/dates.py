"""
Frequency/date codec for tsdb-ingest.

Pure functions mapping ``(frequency, year, period)`` to a linear serial
date number and back, plus decimal-year conversion and date-string
parsing for the leading column of a database CSV file.

Serial numbers are integers that are linear *within one frequency*, so
consecutive periods differ by exactly 1 and ``max - min + 1`` is the
number of periods in a range. The frequency itself is carried alongside
the serial in a ``DateCode``.

Encoding per frequency:

- regular (yearly, half-yearly, quarterly, bi-monthly, monthly):
  ``year * freq + period - 1``
- integer (undated): the period itself
- weekly: number of whole weeks since 0001-01-01 (a Monday) to the
  Monday of ISO week ``period``
- daily: the proleptic Gregorian ordinal (``datetime.date.toordinal()``)

Why our own codec instead of ``pandas.Period``:
  Half-yearly and bi-monthly periods are first-class frequencies in
  database files but have no pandas offset alias.  ``TimeSeries.to_pandas()``
  still hands out a ``PeriodIndex`` where pandas can represent the
  frequency.
"""

from __future__ import annotations

import calendar
import datetime as dt
import math
import re
from enum import IntEnum
from functools import lru_cache
from typing import Iterable, NamedTuple


class Freq(IntEnum):
    """Date frequency; the value is the number of periods per year."""

    INTEGER = 0
    YEARLY = 1
    HALFYEARLY = 2
    QUARTERLY = 4
    BIMONTHLY = 6
    MONTHLY = 12
    WEEKLY = 52
    DAILY = 365

    @property
    def is_regular(self) -> bool:
        """True for frequencies that divide a year into equal periods."""
        return self in _REGULAR


_REGULAR = frozenset(
    {Freq.YEARLY, Freq.HALFYEARLY, Freq.QUARTERLY, Freq.BIMONTHLY, Freq.MONTHLY}
)

# Order in which ``freq_letters`` assigns letters to frequencies
_LETTER_ORDER = (
    Freq.YEARLY,
    Freq.HALFYEARLY,
    Freq.QUARTERLY,
    Freq.BIMONTHLY,
    Freq.MONTHLY,
    Freq.WEEKLY,
)

DEFAULT_FREQ_LETTERS = "YHQBMW"

_FREQ_NAMES: dict[str, Freq] = {
    "integer": Freq.INTEGER,
    "undated": Freq.INTEGER,
    "zero": Freq.INTEGER,
    "yearly": Freq.YEARLY,
    "annual": Freq.YEARLY,
    "y": Freq.YEARLY,
    "a": Freq.YEARLY,
    "halfyearly": Freq.HALFYEARLY,
    "semiannual": Freq.HALFYEARLY,
    "h": Freq.HALFYEARLY,
    "quarterly": Freq.QUARTERLY,
    "q": Freq.QUARTERLY,
    "bimonthly": Freq.BIMONTHLY,
    "b": Freq.BIMONTHLY,
    "monthly": Freq.MONTHLY,
    "m": Freq.MONTHLY,
    "weekly": Freq.WEEKLY,
    "w": Freq.WEEKLY,
    "daily": Freq.DAILY,
    "d": Freq.DAILY,
}

# Period positioning for decimal-year conversion
_POSITION_ADJUST = {"s": -1.0, "b": -1.0, "c": -0.5, "m": -0.5, "e": 0.0}

_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_FORMAT_TOKEN_RE = re.compile(r"YYYY|YY|MMMM|Mmm|MMM|MM|DD|PP|P|F")


class DateCode(NamedTuple):
    """A serial date number tagged with its frequency."""

    serial: int
    freq: Freq


# ---------------------------------------------------------------------------
# Frequency helpers
# ---------------------------------------------------------------------------

def freq_from_option(value: object) -> Freq | None:
    """Interpret a user-supplied frequency.

    Accepts ``None`` (auto-detect), a ``Freq``, an integer code
    (``0, 1, 2, 4, 6, 12, 52, 365``) or a name such as ``"daily"``,
    ``"Quarterly"`` or ``"q"``.

    Raises:
        ValueError: If *value* does not name a known frequency.
    """
    if value is None or isinstance(value, Freq):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid frequency: {value!r}")
    if isinstance(value, (int, float)):
        return Freq(int(value))
    if isinstance(value, str):
        key = re.sub(r"[\s_-]", "", value).lower()
        if key in _FREQ_NAMES:
            return _FREQ_NAMES[key]
        if _INTEGER_RE.match(key):
            return Freq(int(key))
    raise ValueError(f"Invalid frequency: {value!r}")


def periods_in_year(freq: Freq | int, year: int) -> int:
    """Number of periods of *freq* in calendar *year*."""
    freq = Freq(freq)
    if freq.is_regular:
        return int(freq)
    if freq is Freq.WEEKLY:
        # Dec 28 always falls in the last ISO week of its year
        return dt.date(year, 12, 28).isocalendar()[1]
    if freq is Freq.DAILY:
        return 366 if calendar.isleap(year) else 365
    raise ValueError("Integer frequency has no periods per year")


def _iso_week1_monday(year: int) -> int:
    return dt.date.fromisocalendar(year, 1, 1).toordinal()


def freq_letter_map(freq_letters: str = DEFAULT_FREQ_LETTERS) -> dict[str, Freq]:
    """Map upper-cased frequency letters to frequencies."""
    return {
        letter.upper(): freq for letter, freq in zip(freq_letters, _LETTER_ORDER)
    }


# ---------------------------------------------------------------------------
# Serial <-> (year, period)
# ---------------------------------------------------------------------------

def datcode(freq: Freq | int, year: int, per: int | str = 1) -> int:
    """Serial date number for period *per* of *year* at frequency *freq*.

    Args:
        freq: Date frequency.
        year: Calendar year (ignored for integer frequency).
        per: Period within the year (1-based), or ``"end"`` for the last
            period of the year.  Out-of-range periods roll over linearly
            for regular frequencies.

    Returns:
        The integer serial date number.
    """
    freq = Freq(freq)
    if freq is Freq.INTEGER:
        if per == "end":
            raise ValueError("Integer frequency has no 'end' period")
        return int(per)
    year = int(year)
    if per == "end":
        per = periods_in_year(freq, year)
    per = int(per)
    if freq.is_regular:
        return year * int(freq) + per - 1
    if freq is Freq.WEEKLY:
        monday = _iso_week1_monday(year) + 7 * (per - 1)
        return (monday - 1) // 7
    return dt.date(year, 1, 1).toordinal() + per - 1


def dat2ypf(serial: int, freq: Freq | int) -> tuple[int | None, int]:
    """Inverse of ``datcode``: return ``(year, period)``.

    For integer frequency the year is ``None``.
    """
    freq = Freq(freq)
    serial = int(serial)
    if freq is Freq.INTEGER:
        return None, serial
    if freq.is_regular:
        return serial // int(freq), serial % int(freq) + 1
    if freq is Freq.WEEKLY:
        iso = dt.date.fromordinal(serial * 7 + 1).isocalendar()
        return iso[0], iso[1]
    day = dt.date.fromordinal(serial)
    return day.year, day.timetuple().tm_yday


def dat2date(serial: int, freq: Freq | int) -> dt.date:
    """First calendar day of the period a serial date number stands for."""
    freq = Freq(freq)
    if freq is Freq.INTEGER:
        raise ValueError("Integer-frequency dates have no calendar day")
    if freq is Freq.DAILY:
        return dt.date.fromordinal(int(serial))
    if freq is Freq.WEEKLY:
        return dt.date.fromordinal(int(serial) * 7 + 1)
    year, per = dat2ypf(serial, freq)
    month = (per - 1) * 12 // int(freq) + 1
    return dt.date(year, month, 1)


def dat2str(
    serial: int,
    freq: Freq | int,
    freq_letters: str = DEFAULT_FREQ_LETTERS,
) -> str:
    """Canonical text label for a serial date, e.g. ``2010Q1``.

    Monthly and weekly periods are zero-padded (``2010M03``, ``2010W05``),
    daily dates are ISO formatted, integer dates are plain numbers.
    """
    freq = Freq(freq)
    if freq is Freq.INTEGER:
        return str(int(serial))
    if freq is Freq.DAILY:
        return dat2date(serial, freq).isoformat()
    letters = {f: letter for letter, f in zip(freq_letters, _LETTER_ORDER)}
    year, per = dat2ypf(serial, freq)
    letter = letters.get(freq, "?")
    if freq is Freq.YEARLY:
        return f"{year}{letter}"
    if freq in (Freq.MONTHLY, Freq.WEEKLY):
        return f"{year}{letter}{per:02d}"
    return f"{year}{letter}{per}"


# ---------------------------------------------------------------------------
# Decimal year
# ---------------------------------------------------------------------------

def dec2dat(dec: float, freq: Freq | int, pos: str = "s") -> DateCode:
    """Convert a decimal-year representation to a serial date.

    Args:
        dec: Decimal year, e.g. ``2010.25``.
        freq: Target frequency.
        pos: Which point of a period the decimal refers to: ``"s"``
            (start, default), ``"c"`` (centre) or ``"e"`` (end).
    """
    freq = Freq(freq)
    if freq is Freq.INTEGER:
        return DateCode(math.floor(dec + 0.5), freq)
    year = math.floor(dec)
    if freq.is_regular:
        adjust = _POSITION_ADJUST.get(pos[:1].lower(), -1.0)
        per = math.floor((dec - year) * int(freq) - adjust + 0.5)
        return DateCode(datcode(freq, year, per), freq)
    n_days = 366 if calendar.isleap(year) else 365
    day = dt.date(year, 1, 1).toordinal() + math.floor((dec - year) * n_days)
    if freq is Freq.WEEKLY:
        return DateCode((day - 1) // 7, freq)
    return DateCode(day, freq)


def dat2dec(serial: int, freq: Freq | int, pos: str = "s") -> float:
    """Convert a serial date to a decimal year (inverse of ``dec2dat``)."""
    freq = Freq(freq)
    if freq is Freq.INTEGER:
        return float(serial)
    adjust = _POSITION_ADJUST.get(pos[:1].lower(), -1.0)
    if freq.is_regular:
        year, per = dat2ypf(serial, freq)
        return year + (per + adjust) / int(freq)
    span = 7 if freq is Freq.WEEKLY else 1
    first = dat2date(serial, freq)
    offset = span * (1.0 + adjust)
    n_days = 366 if calendar.isleap(first.year) else 365
    jan1 = dt.date(first.year, 1, 1).toordinal()
    return first.year + (first.toordinal() - jan1 + offset) / n_days


# ---------------------------------------------------------------------------
# String -> serial
# ---------------------------------------------------------------------------

@lru_cache(maxsize=32)
def _compile_date_format(date_format: str, freq_letters: str) -> re.Pattern[str]:
    """Translate a date format such as ``YYYY-MM-DD`` into a regex."""
    letters = "".join(re.escape(c) for c in freq_letters)
    token_regex = {
        "YYYY": r"(?P<year>\d{4})",
        "YY": r"(?P<shortyear>\d{2})",
        "MMMM": r"(?P<monthname>[A-Za-z]+)",
        "Mmm": r"(?P<monthname>[A-Za-z]{3})",
        "MMM": r"(?P<monthname>[A-Za-z]{3})",
        "MM": r"(?P<month>\d{1,2})",
        "DD": r"(?P<day>\d{1,2})",
        "PP": r"(?P<period>\d{2})",
        "P": r"(?P<period>\d*)",
        "F": rf"(?P<freqletter>[{letters}])",
    }
    parts: list[str] = []
    pos = 0
    for match in _FORMAT_TOKEN_RE.finditer(date_format):
        parts.append(re.escape(date_format[pos:match.start()]))
        parts.append(token_regex[match.group(0)])
        pos = match.end()
    parts.append(re.escape(date_format[pos:]))
    return re.compile("^" + "".join(parts) + "$", re.IGNORECASE)


def _month_from_name(name: str) -> int | None:
    key = name[:3].lower()
    for i in range(1, 13):
        if calendar.month_abbr[i].lower() == key:
            return i
    return None


def _from_period(freq: Freq, year: int, per: int) -> DateCode | None:
    if freq is Freq.INTEGER or not 1 <= per <= periods_in_year(freq, year):
        return None
    return DateCode(datcode(freq, year, per), freq)


def _from_calendar_date(day: dt.date, freq: Freq) -> DateCode | None:
    if freq is Freq.DAILY:
        return DateCode(day.toordinal(), freq)
    if freq is Freq.WEEKLY:
        return DateCode((day.toordinal() - 1) // 7, freq)
    if freq is Freq.INTEGER:
        return None
    per = (day.month - 1) * int(freq) // 12 + 1
    return DateCode(datcode(freq, day.year, per), freq)


def _resolve_match(
    groups: dict[str, str | None],
    freq: Freq | None,
    letter_map: dict[str, Freq],
) -> DateCode | None:
    year: int | None = None
    if groups.get("year"):
        year = int(groups["year"])
    elif groups.get("shortyear"):
        yy = int(groups["shortyear"])
        year = 2000 + yy if yy < 69 else 1900 + yy

    period = int(groups["period"]) if groups.get("period") else None

    month: int | None = None
    if groups.get("month"):
        month = int(groups["month"])
    elif groups.get("monthname"):
        month = _month_from_name(groups["monthname"])
        if month is None:
            return None
    if month is not None and not 1 <= month <= 12:
        return None

    day = int(groups["day"]) if groups.get("day") else None

    # An explicit frequency letter wins over a forced frequency
    if groups.get("freqletter"):
        if year is None:
            return None
        letter_freq = letter_map[groups["freqletter"].upper()]
        return _from_period(letter_freq, year, 1 if period is None else period)

    if day is not None:
        if year is None or month is None:
            return None
        try:
            calendar_day = dt.date(year, month, day)
        except ValueError:
            return None
        return _from_calendar_date(calendar_day, freq or Freq.DAILY)

    if month is not None:
        if year is None:
            return None
        return _from_calendar_date(dt.date(year, month, 1), freq or Freq.MONTHLY)

    if year is not None:
        if period is not None:
            return None if freq is None else _from_period(freq, year, period)
        return _from_period(freq or Freq.YEARLY, year, 1)

    if period is not None and freq in (None, Freq.INTEGER):
        return DateCode(period, Freq.INTEGER)
    return None


def str2dat(
    strings: Iterable[str],
    date_format: str = "YYYYFP",
    freq: Freq | int | str | None = None,
    freq_letters: str = DEFAULT_FREQ_LETTERS,
) -> list[DateCode | None]:
    """Parse date strings into serial date numbers.

    Format tokens: ``YYYY``, ``YY`` (year), ``MMMM`` (month name),
    ``Mmm``/``MMM`` (month abbreviation), ``MM`` (month number), ``DD``
    (day), ``PP``/``P`` (period), ``F`` (frequency letter).  Any other
    character matches itself; matching is case-insensitive.

    Frequency is determined, in order, by the frequency letter, the
    forced *freq*, and finally the finest calendar field present (day ->
    daily, month -> monthly, year -> yearly).  A forced frequency maps
    calendar dates onto the period that contains them, e.g.
    ``2000-04-01`` with ``freq=4`` is ``2000Q2``.

    Bare integers that do not match the format are read as integer
    (undated) periods when no frequency is forced, or as years when the
    forced frequency is yearly.

    Args:
        strings: Date strings; surrounding whitespace is ignored.
        date_format: Expected layout (default ``YYYYFP``, e.g. ``2010Q1``).
        freq: Forced frequency, or ``None`` to auto-detect.
        freq_letters: Letters standing for yearly, half-yearly,
            quarterly, bi-monthly, monthly and weekly frequency.

    Returns:
        One ``DateCode`` per input string, ``None`` where the string is
        empty or cannot be parsed.
    """
    freq = freq_from_option(freq)
    pattern = _compile_date_format(date_format, freq_letters)
    letter_map = freq_letter_map(freq_letters)

    result: list[DateCode | None] = []
    for text in strings:
        text = text.strip()
        if not text:
            result.append(None)
            continue
        match = pattern.match(text)
        if match:
            result.append(_resolve_match(match.groupdict(), freq, letter_map))
        elif _INTEGER_RE.match(text) and freq in (None, Freq.INTEGER):
            result.append(DateCode(int(text), Freq.INTEGER))
        elif _INTEGER_RE.match(text) and freq is Freq.YEARLY:
            result.append(DateCode(datcode(Freq.YEARLY, int(text)), Freq.YEARLY))
        else:
            result.append(None)
    return result
