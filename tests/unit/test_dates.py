"""
Unit tests for the frequency/date codec (tsdb_ingest.dates).

Tests serial date encoding per frequency, the inverse mapping, text
labels, decimal-year conversion and date-string parsing.
"""

from __future__ import annotations

import datetime as dt

import pytest

from tsdb_ingest.dates import (
    DateCode,
    Freq,
    dat2date,
    dat2dec,
    dat2str,
    dat2ypf,
    datcode,
    dec2dat,
    freq_from_option,
    periods_in_year,
    str2dat,
)


# ---------------------------------------------------------------------------
# Frequency helpers
# ---------------------------------------------------------------------------

class TestFreqFromOption:
    """Tests for freq_from_option()."""

    def test_none_means_auto(self):
        """None leaves the frequency to be detected."""
        assert freq_from_option(None) is None

    def test_integer_codes(self):
        """Periods-per-year codes map to Freq members."""
        assert freq_from_option(4) is Freq.QUARTERLY
        assert freq_from_option(12) is Freq.MONTHLY
        assert freq_from_option(0) is Freq.INTEGER

    def test_names_case_insensitive(self):
        """Names and one-letter aliases match in any case."""
        assert freq_from_option("Quarterly") is Freq.QUARTERLY
        assert freq_from_option("q") is Freq.QUARTERLY
        assert freq_from_option("half-yearly") is Freq.HALFYEARLY
        assert freq_from_option("DAILY") is Freq.DAILY

    def test_numeric_string(self):
        """A digit string is read as a code."""
        assert freq_from_option("52") is Freq.WEEKLY

    def test_unknown_raises(self):
        """Unknown names and codes raise ValueError."""
        with pytest.raises(ValueError, match="Invalid frequency"):
            freq_from_option("fortnightly")
        with pytest.raises(ValueError):
            freq_from_option(3)

    def test_bool_rejected(self):
        """True is not accepted as code 1."""
        with pytest.raises(ValueError):
            freq_from_option(True)


class TestPeriodsInYear:
    def test_regular(self):
        """Regular frequencies have a fixed count."""
        assert periods_in_year(Freq.QUARTERLY, 2010) == 4
        assert periods_in_year(Freq.BIMONTHLY, 2010) == 6

    def test_weekly_long_year(self):
        """Weekly counts follow ISO 8601 week years."""
        # 2015 has 53 ISO weeks, 2010 has 52
        assert periods_in_year(Freq.WEEKLY, 2015) == 53
        assert periods_in_year(Freq.WEEKLY, 2010) == 52

    def test_daily_leap_year(self):
        """Daily counts include Feb 29 in leap years."""
        assert periods_in_year(Freq.DAILY, 2012) == 366
        assert periods_in_year(Freq.DAILY, 2011) == 365


# ---------------------------------------------------------------------------
# Serial <-> (year, period)
# ---------------------------------------------------------------------------

class TestDatcode:
    """Tests for datcode() / dat2ypf() / dat2str()."""

    def test_quarterly(self):
        """Quarterly serials are year*4 + quarter - 1."""
        serial = datcode(Freq.QUARTERLY, 2010, 1)
        assert serial == 2010 * 4
        assert dat2ypf(serial, Freq.QUARTERLY) == (2010, 1)
        assert dat2str(serial + 1, Freq.QUARTERLY) == "2010Q2"

    def test_consecutive_periods_differ_by_one(self):
        """Serials stay linear across a year boundary."""
        q4 = datcode(Freq.QUARTERLY, 2010, 4)
        q1 = datcode(Freq.QUARTERLY, 2011, 1)
        assert q1 - q4 == 1

    def test_monthly_label_zero_padded(self):
        """Monthly labels use two-digit months."""
        serial = datcode(Freq.MONTHLY, 2010, 3)
        assert dat2str(serial, Freq.MONTHLY) == "2010M03"

    def test_yearly(self):
        """Yearly serials are the year itself."""
        assert datcode(Freq.YEARLY, 2010) == 2010
        assert dat2str(2010, Freq.YEARLY) == "2010Y"

    def test_half_yearly_and_bimonthly(self):
        """H and B labels use the default letters."""
        assert dat2str(datcode(Freq.HALFYEARLY, 2010, 2), Freq.HALFYEARLY) == "2010H2"
        assert dat2str(datcode(Freq.BIMONTHLY, 2010, 2), Freq.BIMONTHLY) == "2010B2"

    def test_end_period(self):
        """'end' selects the last period of the year."""
        assert datcode(Freq.QUARTERLY, 2010, "end") == datcode(Freq.QUARTERLY, 2010, 4)
        assert datcode(Freq.DAILY, 2010, "end") == dt.date(2010, 12, 31).toordinal()

    def test_daily(self):
        """Daily serials are proleptic ordinals."""
        serial = datcode(Freq.DAILY, 2010, 1)
        assert serial == dt.date(2010, 1, 1).toordinal()
        assert dat2str(serial, Freq.DAILY) == "2010-01-01"
        assert dat2ypf(serial + 40, Freq.DAILY) == (2010, 41)

    def test_weekly_roundtrip(self):
        """Weekly serials map back to the same ISO week."""
        serial = datcode(Freq.WEEKLY, 2010, 5)
        assert dat2ypf(serial, Freq.WEEKLY) == (2010, 5)
        assert dat2str(serial, Freq.WEEKLY) == "2010W05"
        # ISO week 1 of 2010 starts on Monday 4 January
        assert dat2date(datcode(Freq.WEEKLY, 2010, 1), Freq.WEEKLY) == dt.date(2010, 1, 4)

    def test_integer(self):
        """Integer dates are the period number alone."""
        assert datcode(Freq.INTEGER, 0, 5) == 5
        assert dat2ypf(5, Freq.INTEGER) == (None, 5)
        assert dat2str(5, Freq.INTEGER) == "5"

    def test_custom_letters_in_label(self):
        """Labels use the configured frequency letters."""
        serial = datcode(Freq.YEARLY, 2010)
        assert dat2str(serial, Freq.YEARLY, freq_letters="AHQBMW") == "2010A"

    def test_dat2date_quarter(self):
        """A quarter starts on its first calendar day."""
        serial = datcode(Freq.QUARTERLY, 2010, 3)
        assert dat2date(serial, Freq.QUARTERLY) == dt.date(2010, 7, 1)


# ---------------------------------------------------------------------------
# Decimal year
# ---------------------------------------------------------------------------

class TestDecimalYear:
    """Tests for dec2dat() / dat2dec()."""

    def test_start_of_period(self):
        """Start-positioned decimal years round-trip."""
        code = dec2dat(2010.25, Freq.QUARTERLY)
        assert code == DateCode(datcode(Freq.QUARTERLY, 2010, 2), Freq.QUARTERLY)
        assert dat2dec(code.serial, Freq.QUARTERLY) == pytest.approx(2010.25)

    def test_end_of_period(self):
        """End-positioned decimal years round-trip."""
        serial = datcode(Freq.QUARTERLY, 2010, 2)
        assert dat2dec(serial, Freq.QUARTERLY, "e") == pytest.approx(2010.5)
        assert dec2dat(2010.5, Freq.QUARTERLY, "e").serial == serial

    def test_centre_of_period(self):
        """Centre position is half a period in."""
        serial = datcode(Freq.HALFYEARLY, 2010, 1)
        assert dat2dec(serial, Freq.HALFYEARLY, "c") == pytest.approx(2010.25)

    def test_daily(self):
        """Daily dates convert through the decimal year."""
        code = dec2dat(2011.0, Freq.DAILY)
        assert code.serial == dt.date(2011, 1, 1).toordinal()
        assert dat2dec(code.serial, Freq.DAILY) == pytest.approx(2011.0)


# ---------------------------------------------------------------------------
# String -> serial
# ---------------------------------------------------------------------------

class TestStr2Dat:
    """Tests for str2dat()."""

    def test_default_format(self):
        """YYYYFP reads letters in either case; empty is None."""
        result = str2dat(["2010Q1", "2010q2", ""])
        q1 = datcode(Freq.QUARTERLY, 2010, 1)
        assert result == [
            DateCode(q1, Freq.QUARTERLY),
            DateCode(q1 + 1, Freq.QUARTERLY),
            None,
        ]

    def test_yearly_letter_without_period(self):
        """'2010Y' needs no period number."""
        assert str2dat(["2010Y"]) == [DateCode(2010, Freq.YEARLY)]

    def test_period_out_of_range(self):
        """Periods past the frequency's count are invalid."""
        assert str2dat(["2010M13", "2010Q5"]) == [None, None]

    def test_garbage(self):
        """Unrecognized text and letters give None."""
        assert str2dat(["n/a", "2010X1"]) == [None, None]

    def test_bare_integer_is_integer_frequency(self):
        """Plain integers are undated periods."""
        assert str2dat(["5", "6"]) == [
            DateCode(5, Freq.INTEGER),
            DateCode(6, Freq.INTEGER),
        ]

    def test_bare_integer_with_yearly_freq(self):
        """With yearly forced, a plain integer is a year."""
        assert str2dat(["2010"], freq=Freq.YEARLY) == [DateCode(2010, Freq.YEARLY)]

    def test_calendar_date_defaults_to_daily(self):
        """A full calendar date is daily unless forced."""
        result = str2dat(["2000-04-01"], date_format="YYYY-MM-DD")
        assert result == [DateCode(dt.date(2000, 4, 1).toordinal(), Freq.DAILY)]

    def test_calendar_date_forced_quarterly(self):
        """A forced frequency buckets calendar dates."""
        result = str2dat(["2000-04-01"], date_format="YYYY-MM-DD", freq=4)
        assert result == [DateCode(datcode(Freq.QUARTERLY, 2000, 2), Freq.QUARTERLY)]

    def test_invalid_calendar_date(self):
        """Impossible days give None."""
        assert str2dat(["2010-02-30"], date_format="YYYY-MM-DD") == [None]

    def test_month_name(self):
        """Abbreviated month names are recognized."""
        result = str2dat(["Mar-2010"], date_format="Mmm-YYYY")
        assert result == [DateCode(datcode(Freq.MONTHLY, 2010, 3), Freq.MONTHLY)]

    def test_custom_freq_letters(self):
        """Custom letters replace the defaults."""
        result = str2dat(["2010A1"], freq_letters="AHQBMW")
        assert result == [DateCode(2010, Freq.YEARLY)]

    def test_letter_wins_over_forced_freq(self):
        """An explicit letter beats the forced frequency."""
        result = str2dat(["2010M02"], freq=Freq.QUARTERLY)
        assert result[0].freq is Freq.MONTHLY

    def test_surrounding_whitespace_ignored(self):
        """Cells are stripped before matching."""
        assert str2dat(["  2010Q1 "])[0].freq is Freq.QUARTERLY
