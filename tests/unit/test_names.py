"""
Unit tests for entry name transforms (tsdb_ingest.transforms.names).

Tests selection, name functions, case conversion and the deterministic
repair of invalid names.
"""

from __future__ import annotations

import pytest

from tsdb_ingest.exceptions import NameFuncError
from tsdb_ingest.transforms.names import (
    apply_name_funcs,
    change_case,
    is_valid_name,
    normalize_names,
    repair_names,
    select_names,
)


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

class TestSelectNames:
    def test_unselected_blanked(self):
        """Names outside the selection become empty."""
        assert select_names(["A", "B", "C"], ["A", "C"]) == ["A", "", "C"]

    def test_none_keeps_all(self):
        """No selection keeps every name."""
        assert select_names(["A", "B"], None) == ["A", "B"]

    def test_selection_is_case_sensitive(self):
        """Selection compares names exactly."""
        assert select_names(["gdp", "GDP"], ["GDP"]) == ["", "GDP"]


# ---------------------------------------------------------------------------
# Name functions and case
# ---------------------------------------------------------------------------

class TestNameFuncs:
    """Tests for apply_name_funcs()."""

    def test_applied_left_to_right(self):
        """Functions run in list order."""
        funcs = [lambda n: n + "_x", str.upper]
        assert apply_name_funcs(["a", "b"], funcs) == ["A_X", "B_X"]

    def test_empty_names_untouched(self):
        """Skipped columns are not renamed."""
        assert apply_name_funcs(["", "a"], [lambda n: "z" + n]) == ["", "za"]

    def test_non_string_result_raises(self):
        """A non-str result raises NameFuncError."""
        with pytest.raises(NameFuncError, match="must return str") as exc_info:
            apply_name_funcs(["a"], [len], source="f.csv")
        assert exc_info.value.source == "f.csv"


class TestChangeCase:
    def test_lower_upper_none(self):
        """Case conversion follows the option."""
        assert change_case(["Ab"], "lower") == ["ab"]
        assert change_case(["Ab"], "upper") == ["AB"]
        assert change_case(["Ab"], None) == ["Ab"]


# ---------------------------------------------------------------------------
# Repair
# ---------------------------------------------------------------------------

class TestRepairNames:
    """Tests for repair_names()."""

    def test_duplicate_invalid_names(self):
        """Repaired duplicates get numeric suffixes."""
        assert repair_names(["1x", "ok", "1x"]) == ["x1x", "ok", "x1x1"]

    def test_valid_names_protected(self):
        """Repairs never take an existing valid name."""
        # "a_b" is already taken, so the repaired name gets a suffix
        assert repair_names(["a b", "a_b"]) == ["a_b1", "a_b"]

    def test_keyword(self):
        """Python keywords are prefixed."""
        assert repair_names(["class"]) == ["xclass"]

    def test_empty_names_kept(self):
        """Empty names are left empty."""
        assert repair_names(["", "A"]) == ["", "A"]

    def test_deterministic(self):
        """The same input always gives the same names."""
        names = ["1x", "ok", "1x", "x1x1", "a-b"]
        assert repair_names(names) == repair_names(list(names))
        assert repair_names(names) == ["x1x", "ok", "x1x2", "x1x1", "a_b"]

    def test_valid_duplicates_left_alone(self):
        """Valid duplicates are not renamed."""
        assert repair_names(["A", "A"]) == ["A", "A"]

    def test_is_valid_name(self):
        """Identifiers that are not keywords are valid."""
        assert is_valid_name("gdp_q")
        assert not is_valid_name("2x")
        assert not is_valid_name("for")


class TestNormalizeNames:
    def test_order_func_case_repair(self):
        """Functions, then case, then repair."""
        result = normalize_names(["gdp"], [lambda n: n + " real"], "upper")
        assert result == ["GDP_REAL"]
