"""
Unit tests for load options and YAML I/O (tsdb_ingest.config).

Tests Pydantic model validation and coercion, option merging, and the
YAML serialization round-trip.
"""

import logging

import pytest
from pydantic import ValidationError

from tsdb_ingest.config import LoadOptions, load_options, resolve_options, save_options
from tsdb_ingest.dates import Freq
from tsdb_ingest.exceptions import ConfigValidationError


# ---------------------------------------------------------------------------
# LoadOptions
# ---------------------------------------------------------------------------

class TestLoadOptions:
    """Tests for LoadOptions validation."""

    def test_defaults(self):
        """Defaults match the documented option table."""
        opts = LoadOptions()
        assert opts.name_row == ["", "Variables"]
        assert opts.comment_row == ["comment", "comments"]
        assert opts.date_format == "YYYYFP"
        assert opts.freq is None
        assert opts.nan == ["NaN"]
        assert opts.user_data is True
        assert opts.user_data_field == "."
        assert opts.select is None

    def test_camel_case_aliases(self):
        """camelCase aliases populate snake_case fields."""
        opts = LoadOptions(dateFormat="YYYY-MM-DD", nameRow=2, userDataFieldList=[3])
        assert opts.date_format == "YYYY-MM-DD"
        assert opts.name_row == 2
        assert opts.user_data_field_list == [3]

    def test_scalars_wrapped(self):
        """Scalar list options are wrapped in a list."""
        opts = LoadOptions(nan="NA", comment_row="Description", skip_rows="Source")
        assert opts.nan == ["NA"]
        assert opts.comment_row == ["Description"]
        assert opts.skip_rows == ["Source"]

    def test_select_string_split(self):
        """A select string splits into words."""
        assert LoadOptions(select="A, B C").select == ["A", "B", "C"]

    def test_freq_names(self):
        """Frequency names and codes become Freq members."""
        assert LoadOptions(freq="quarterly").freq is Freq.QUARTERLY
        assert LoadOptions(freq=12).freq is Freq.MONTHLY

    def test_invalid_freq(self):
        """Unknown frequency names fail validation."""
        with pytest.raises(ValidationError, match="Invalid frequency"):
            LoadOptions(freq="fortnightly")

    def test_case_normalized(self):
        """Case is lower-cased; empty means none."""
        assert LoadOptions(case="Upper").case == "upper"
        assert LoadOptions(case="").case is None

    def test_invalid_case(self):
        """Only lower and upper are accepted."""
        with pytest.raises(ValidationError):
            LoadOptions(case="title")

    def test_unknown_option_rejected(self):
        """Unknown option names are rejected."""
        with pytest.raises(ValidationError):
            LoadOptions(convert="Q")

    def test_name_func_must_be_callable(self):
        """name_func entries must be callables."""
        with pytest.raises(ValidationError, match="callable"):
            LoadOptions(name_func=["upper"])

    def test_single_callable_wrapped(self):
        """One callable is wrapped in a list."""
        assert LoadOptions(name_func=str.upper).name_func == [str.upper]

    def test_skip_row_patterns_anchored(self):
        """Label patterns are anchored at both ends once."""
        opts = LoadOptions(skip_rows=["Src", "^Total.*$"])
        assert [p.pattern for p in opts.skip_row_patterns()] == ["^Src$", "^Total.*$"]
        assert opts.skip_row_numbers == set()

    def test_skip_row_numbers(self):
        """Integers in skip_rows are line numbers."""
        opts = LoadOptions(skip_rows=[2, 5])
        assert opts.skip_row_numbers == {2, 5}
        assert opts.skip_row_patterns() == []


# ---------------------------------------------------------------------------
# resolve_options
# ---------------------------------------------------------------------------

class TestResolveOptions:
    def test_none_gives_defaults(self):
        """No options give the defaults."""
        assert resolve_options() == LoadOptions()

    def test_overrides_on_base(self):
        """Keyword overrides win over the base options."""
        base = LoadOptions(delimiter=";", case="lower")
        opts = resolve_options(base, {"dateFormat": "YYYY", "case": "upper"})
        assert opts.delimiter == ";"
        assert opts.date_format == "YYYY"
        assert opts.case == "upper"

    def test_base_not_mutated(self):
        """Resolving never changes the base instance."""
        base = LoadOptions()
        resolve_options(base, {"nan": ["NA"]})
        assert base.nan == ["NaN"]

    def test_from_yaml_path(self, tmp_path):
        """A YAML path is loaded before overrides apply."""
        path = tmp_path / "opts.yaml"
        path.write_text("delimiter: ';'\nfreq: monthly\n", encoding="utf-8")
        opts = resolve_options(path, {"case": "lower"})
        assert opts.delimiter == ";"
        assert opts.freq is Freq.MONTHLY
        assert opts.case == "lower"


# ---------------------------------------------------------------------------
# YAML I/O
# ---------------------------------------------------------------------------

class TestYamlIO:
    """Tests for load_options() / save_options()."""

    def test_roundtrip(self, tmp_path):
        """Saved options load back equal."""
        opts = LoadOptions(
            freq="quarterly", nan=["NA", "."], select=["A", "B"], name_row=3,
        )
        path = tmp_path / "opts.yaml"
        save_options(opts, path)
        loaded = load_options(path)
        assert loaded == opts

    def test_freq_written_as_name(self, tmp_path):
        """Frequencies are saved by name."""
        path = tmp_path / "opts.yaml"
        save_options(LoadOptions(freq=4), path)
        assert "freq: quarterly" in path.read_text(encoding="utf-8")

    def test_callables_dropped_with_warning(self, tmp_path, caplog):
        """Callables are left out of YAML with a warning."""
        path = tmp_path / "opts.yaml"
        with caplog.at_level(logging.WARNING):
            save_options(LoadOptions(name_func=[str.upper]), path)
        assert "name_func" in caplog.text
        assert load_options(path).name_func == []

    def test_camel_case_keys_in_yaml(self, tmp_path):
        """YAML files may use camelCase keys."""
        path = tmp_path / "opts.yaml"
        path.write_text("dateFormat: YYYY-MM-DD\nfirstDateOnly: true\n", encoding="utf-8")
        opts = load_options(path)
        assert opts.date_format == "YYYY-MM-DD"
        assert opts.first_date_only is True

    def test_missing_file(self, tmp_path):
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_options(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path):
        """An empty file raises ConfigValidationError."""
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="empty"):
            load_options(path)

    def test_not_a_mapping(self, tmp_path):
        """A top-level list is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="mapping"):
            load_options(path)

    def test_callable_key_rejected(self, tmp_path):
        """Callable options cannot come from YAML."""
        path = tmp_path / "bad.yaml"
        path.write_text("nameFunc: upper\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="callables"):
            load_options(path)
