"""
Internal per-file orchestration for tsdb-ingest.

Extracted from ``__init__.py`` so that ``dbload()`` (files) and
``load_text()`` (in-memory strings) run exactly the same sequence:

  raw text -> pre-process -> header classification -> selection
  -> numeric table -> date column -> name normalization
  -> entry reconstruction -> file-level userdata

Every step gets the same ``LoadOptions`` instance and the source name
for error messages.  Nothing here keeps state between calls.

This module is **not** part of the public API.
"""

from __future__ import annotations

import ast
import logging
from pathlib import Path
from typing import Any

from tsdb_ingest.config import LoadOptions
from tsdb_ingest.exceptions import UserDataError
from tsdb_ingest.parsers.datecol import parse_date_column
from tsdb_ingest.parsers.headers import HeaderBundle, classify_headers
from tsdb_ingest.parsers.numeric import read_numeric_data
from tsdb_ingest.parsers.tokens import normalize_delimiter, normalize_eols
from tsdb_ingest.transforms.names import normalize_names, select_names
from tsdb_ingest.transforms.reconstruct import populate_database

logger = logging.getLogger(__name__)

DEFAULT_USER_DATA_NAME = "userdata"


def read_source(path: str | Path) -> str:
    """Read a whole file as text; a UTF-8 byte order mark is dropped."""
    with open(path, "r", encoding="utf-8-sig") as f:
        return f.read()


def preprocess_text(text: str, options: LoadOptions) -> str:
    """Normalize line endings, run ``pre_process`` callables, fix delimiter."""
    text = normalize_eols(text)
    for func in options.pre_process:
        text = func(text)
    return normalize_delimiter(text, options.delimiter)


def evaluate_user_data(expression: str, source: str | None = None) -> Any:
    """Evaluate the file-level userdata cell as a Python literal.

    Raises:
        UserDataError: If the text is not a valid literal.
    """
    try:
        return ast.literal_eval(expression.strip())
    except (ValueError, SyntaxError, TypeError, MemoryError, RecursionError) as exc:
        raise UserDataError(
            f"Cannot evaluate userdata {expression!r}: {exc}", source=source
        ) from exc


def user_data_entry_name(headers: HeaderBundle, options: LoadOptions) -> str | None:
    """Entry name for the file-level userdata, or ``None`` to skip it."""
    if headers.user_data is None or options.user_data is False:
        return None
    if isinstance(options.user_data, str) and options.user_data:
        return options.user_data
    return headers.user_data_name or DEFAULT_USER_DATA_NAME


def load_text_into(
    database: dict[str, Any],
    text: str,
    options: LoadOptions,
    source: str | None = None,
) -> list[str]:
    """Parse one file's text and insert its entries into *database*.

    Steps:
      1. Pre-process the raw text and split it into lines.
      2. Classify header lines -> ``HeaderBundle`` + first data line.
      3. Apply ``select`` to the raw names.
      4. Read the numeric table and the date column.
      5. Normalize names (name functions, case, repair).
      6. Reconstruct entries into a per-file mapping.
      7. Evaluate the file-level userdata, then merge into *database*.

    Returns:
        Names of the entries inserted, in insertion order.

    Raises:
        TsdbIngestError: Any parsing error; *database* is left untouched.
    """
    text = preprocess_text(text, options)
    lines = text.split("\n")

    headers, start = classify_headers(lines, options)
    names = select_names(headers.names, options.select)

    block = read_numeric_data(lines[start:], options, source=source)
    axis = parse_date_column(block.date_cells, options, source=source)

    names = normalize_names(names, options.name_func, options.case, source=source)
    entries: dict[str, Any] = {}
    populate_database(entries, names, headers, block, axis, source=source)

    entry_name = user_data_entry_name(headers, options)
    if entry_name is not None:
        if headers.user_data.strip():
            entries[entry_name] = evaluate_user_data(headers.user_data, source=source)
            logger.debug("Stored file userdata as '%s'", entry_name)
        else:
            logger.debug("Empty userdata row ignored")

    database.update(entries)
    return list(entries)


def load_file_into(
    database: dict[str, Any],
    path: str | Path,
    options: LoadOptions,
) -> list[str]:
    """Read *path* and insert its entries into *database*."""
    logger.info("Loading %s", path)
    text = read_source(path)
    return load_text_into(database, text, options, source=str(path))
