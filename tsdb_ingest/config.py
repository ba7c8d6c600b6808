"""
Load options and YAML I/O for tsdb-ingest.

This module defines the Pydantic model that carries every option of a
``dbload()`` call, plus helpers for reading and writing the data-valued
options as YAML.

Key model:
- LoadOptions: one instance per load call, passed down explicitly to every
  parsing step (there are no module-level mutable defaults).

Key functions:
- load_options(path) -> LoadOptions: Load and validate from YAML.
- save_options(options, path): Serialize to YAML.
- resolve_options(options, overrides) -> LoadOptions: Merge keyword
  overrides into a base options object.

Field names are snake_case; every field also accepts its camelCase alias
(``dateFormat``, ``nameRow``, ``userDataFieldList``, ...) so option files
written for other tools load unchanged.

Why Pydantic + YAML:
- Pydantic gives us strict validation, type coercion, and clear error messages.
- YAML is human-editable (the user keeps per-source option files next
  to the data).
- Callables (``name_func``, ``pre_process``) cannot live in YAML and are
  excluded on save.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Callable, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from tsdb_ingest.dates import DEFAULT_FREQ_LETTERS, Freq, freq_from_option
from tsdb_ingest.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)

# Fields that hold code and therefore never round-trip through YAML
_CALLABLE_FIELDS = {"name_func", "pre_process"}


def _as_list(value: Any) -> Any:
    """Wrap a scalar in a list; leave lists, tuples and None alone."""
    if value is None or isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return [value]


class LoadOptions(BaseModel):
    """Options controlling how a database CSV file is read.

    All fields have defaults, so ``LoadOptions()`` reads a plain file with
    a name row, ``YYYYFP`` dates (``2010Q1``) and numeric columns.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
        extra="forbid",
        validate_assignment=True,
    )

    case: Literal["lower", "upper"] | None = Field(
        None, description="Convert entry names to lower or upper case"
    )
    comment_row: list[str] = Field(
        default_factory=lambda: ["comment", "comments"],
        description="Labels (first cell) identifying the comment row",
    )
    date_format: str = Field("YYYYFP", description="Layout of the date strings")
    delimiter: str = Field(",", description="Cell separator, normalized to comma")
    first_date_only: bool = Field(
        False, description="Parse only the first date and assume consecutive periods"
    )
    freq: Freq | None = Field(
        None, description="Force the date frequency instead of auto-detecting"
    )
    freq_letters: str = Field(
        DEFAULT_FREQ_LETTERS,
        description="Letters for yearly, half-yearly, quarterly, bi-monthly, monthly, weekly",
    )
    name_row: list[str] | int = Field(
        default_factory=lambda: ["", "Variables"],
        description="Labels of the name row, or its 1-based line number",
    )
    name_func: list[Callable[[str], Any]] = Field(
        default_factory=list, description="Functions applied to every entry name"
    )
    nan: list[str] = Field(
        default_factory=lambda: ["NaN"], description="Strings marking missing values"
    )
    pre_process: list[Callable[[str], str]] = Field(
        default_factory=list, description="Functions applied to the raw text"
    )
    select: list[str] | None = Field(
        None, description="Keep only entries with these names"
    )
    skip_rows: list[str] | list[int] = Field(
        default_factory=list,
        description="Row label patterns (regex) or 1-based line numbers to skip",
    )
    user_data: str | bool = Field(
        True,
        description=(
            "Entry name for the file-level userdata: True reads the name "
            "from the file, False ignores the userdata row"
        ),
    )
    user_data_field: str = Field(
        ".", description="Leading character of per-entry userdata rows"
    )
    user_data_field_list: list[str] | list[int] = Field(
        default_factory=list,
        description="Row labels or 1-based line numbers of per-entry userdata rows",
    )

    # -- Validators ---------------------------------------------------------

    @field_validator(
        "comment_row", "nan", "skip_rows", "user_data_field_list",
        "name_func", "pre_process",
        mode="before",
    )
    @classmethod
    def _wrap_scalar(cls, value: Any) -> Any:
        return _as_list(value)

    @field_validator("select", mode="before")
    @classmethod
    def _split_select_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            return re.findall(r"\w+", value)
        return _as_list(value)

    @field_validator("name_row", mode="before")
    @classmethod
    def _wrap_name_row(cls, value: Any) -> Any:
        if isinstance(value, (int, list)) and not isinstance(value, bool):
            return value
        return _as_list(value)

    @field_validator("freq", mode="before")
    @classmethod
    def _parse_freq(cls, value: Any) -> Freq | None:
        return freq_from_option(value)

    @field_validator("case", mode="before")
    @classmethod
    def _normalize_case(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            return value or None
        return value

    @field_validator("name_func", "pre_process")
    @classmethod
    def _check_callables(cls, value: list[Any]) -> list[Any]:
        for func in value:
            if not callable(func):
                raise ValueError(f"Expected a callable, got {func!r}")
        return value

    # -- Derived values -----------------------------------------------------

    @property
    def skip_row_numbers(self) -> set[int]:
        """Line numbers to skip, when ``skip_rows`` holds numbers."""
        return {r for r in self.skip_rows if isinstance(r, int)}

    def skip_row_patterns(self) -> list[re.Pattern[str]]:
        """Compiled, fully anchored patterns when ``skip_rows`` holds labels."""
        patterns: list[re.Pattern[str]] = []
        for pattern in self.skip_rows:
            if not isinstance(pattern, str) or not pattern:
                continue
            if not pattern.startswith("^"):
                pattern = "^" + pattern
            if not pattern.endswith("$"):
                pattern = pattern + "$"
            patterns.append(re.compile(pattern))
        return patterns


def resolve_options(
    options: LoadOptions | str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> LoadOptions:
    """Build the ``LoadOptions`` for one load call.

    Args:
        options: A ``LoadOptions`` instance, a path to an options YAML
            file, or ``None`` for defaults.
        overrides: Keyword options (snake_case or camelCase) applied on
            top of *options*.

    Returns:
        A new, validated ``LoadOptions``.
    """
    if options is None:
        base: dict[str, Any] = {}
    elif isinstance(options, LoadOptions):
        base = options.model_dump(exclude_unset=True)
    else:
        base = load_options(options).model_dump(exclude_unset=True)

    if overrides:
        # Translate aliases so they can't clash with snake_case keys in *base*
        alias_to_name = {
            field.alias: name for name, field in LoadOptions.model_fields.items()
        }
        for key, value in overrides.items():
            base[alias_to_name.get(key, key)] = value

    return LoadOptions.model_validate(base)


def load_options(path: str | Path) -> LoadOptions:
    """Load and validate a YAML options file into a LoadOptions model.

    Raises:
        FileNotFoundError: If the options file does not exist.
        ConfigValidationError: If the file is empty or not a mapping.
        pydantic.ValidationError: If the YAML content fails schema validation.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Options file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if raw is None:
        raise ConfigValidationError("Options file is empty", source=str(path))
    if not isinstance(raw, dict):
        raise ConfigValidationError(
            f"Options file must hold a mapping, got {type(raw).__name__}",
            source=str(path),
        )
    bad_keys = {"name_func", "nameFunc", "pre_process", "preProcess"} & raw.keys()
    if bad_keys:
        raise ConfigValidationError(
            f"Options {sorted(bad_keys)} take Python callables and cannot be set from YAML",
            source=str(path),
        )
    logger.info("Loaded options from %s", path)
    return LoadOptions.model_validate(raw)


def save_options(options: LoadOptions, path: str | Path) -> None:
    """Serialize the data-valued fields of *options* to YAML.

    Writes a human-readable YAML file with a header comment.  Callables
    are dropped with a warning.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = options.model_dump(mode="json", exclude=_CALLABLE_FIELDS)
    if data.get("freq") is not None:
        data["freq"] = Freq(data["freq"]).name.lower()
    dropped = [name for name in _CALLABLE_FIELDS if getattr(options, name)]
    if dropped:
        logger.warning("Not saving callable options to YAML: %s", sorted(dropped))
    with open(path, "w", encoding="utf-8") as f:
        f.write("# tsdb-ingest load options\n")
        f.write("# Pass this file as dbload(..., options=<path>)\n\n")
        yaml.dump(
            data,
            f,
            allow_unicode=True,
            default_flow_style=False,
            sort_keys=False,
        )
    logger.info("Saved options to %s", path)
