"""
tsdb-ingest: load time-series database CSV files into Python.

Public API surface:

- ``dbload(paths, ...)`` -- **recommended entry point**.  Reads one file
  or a list of files and returns a ``Database`` (a ``dict`` of entry
  name -> ``TimeSeries`` / ``numpy.ndarray`` / userdata value).

- ``load_text(text, ...)`` -- Same engine on an in-memory string.

- ``LoadOptions`` / ``load_options()`` / ``save_options()`` -- Options
  model and its YAML round-trip.

Example file::

    ,GDP,CPI
    Class[Size],Series,Series
    Comment,Real output,Consumer prices
    2010Q1,100.1,1.2
    2010Q2,101.3,NaN

    >>> db = tsdb_ingest.dbload("macro.csv")
    >>> db["GDP"].labels()
    ['2010Q1', '2010Q2']
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

from tsdb_ingest._pipeline import load_file_into, load_text_into
from tsdb_ingest.config import LoadOptions, load_options, resolve_options, save_options
from tsdb_ingest.database import Database, DatabaseInfo
from tsdb_ingest.dates import DateCode, Freq
from tsdb_ingest.exceptions import (
    ConfigValidationError,
    InvalidFormatError,
    MixedFrequencyError,
    NameFuncError,
    TsdbIngestError,
    UnknownTypeError,
    UserDataError,
)
from tsdb_ingest.series import TimeSeries

__all__ = [
    "dbload",
    "load_text",
    "Database",
    "DatabaseInfo",
    "TimeSeries",
    "LoadOptions",
    "load_options",
    "save_options",
    "Freq",
    "DateCode",
    "TsdbIngestError",
    "InvalidFormatError",
    "MixedFrequencyError",
    "NameFuncError",
    "UserDataError",
    "UnknownTypeError",
    "ConfigValidationError",
]

logger = logging.getLogger(__name__)


def _target_database(database: dict[str, Any] | None) -> dict[str, Any]:
    if database is None:
        return Database()
    return database


def dbload(
    paths: str | Path | Iterable[str | Path],
    database: dict[str, Any] | None = None,
    options: LoadOptions | str | Path | None = None,
    **overrides: Any,
) -> dict[str, Any]:
    """Load one or more database CSV files.

    Files are read strictly in the given order and folded into one
    database; an entry in a later file replaces a same-named entry from
    an earlier file (or from *database*).

    Args:
        paths: A file path or an iterable of file paths.
        database: Existing mapping to add entries to.  A new ``Database``
            is created when ``None``.
        options: A ``LoadOptions`` instance or the path to an options
            YAML file.  Defaults apply when ``None``.
        **overrides: Individual options, by field name (``date_format``)
            or camelCase alias (``dateFormat``), applied on top of
            *options*.

    Returns:
        The database holding all loaded entries: a new ``Database``, or
        *database* itself, unchanged in type, when one was passed in.

    Raises:
        FileNotFoundError: If a file does not exist.
        TsdbIngestError: If a file cannot be loaded.  Entries from files
            earlier in *paths* stay in the database.
        pydantic.ValidationError: If an option value is invalid.

    Examples::

        db = tsdb_ingest.dbload("macro.csv")
        db = tsdb_ingest.dbload(["q.csv", "m.csv"], freq="quarterly")
        db = tsdb_ingest.dbload("eu.csv", delimiter=";", nan=["n.a.", "."])
    """
    opts = resolve_options(options, overrides)
    db = _target_database(database)

    if isinstance(paths, (str, Path)):
        paths = [paths]

    n_files = 0
    for path in paths:
        load_file_into(db, path, opts)
        n_files += 1

    logger.info("dbload() -- %d file(s), %d entries", n_files, len(db))
    return db


def load_text(
    text: str,
    database: dict[str, Any] | None = None,
    options: LoadOptions | str | Path | None = None,
    source: str = "<string>",
    **overrides: Any,
) -> dict[str, Any]:
    """Load database CSV content from a string.

    Same as ``dbload()`` for a single file, with *source* used in error
    messages in place of a file name.  Returns a new ``Database``, or
    *database* itself (whatever mapping type it is) when one is passed.
    """
    opts = resolve_options(options, overrides)
    db = _target_database(database)
    load_text_into(db, text, opts, source=source)
    return db
