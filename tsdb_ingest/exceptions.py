"""
Custom exception hierarchy for tsdb-ingest.

Why a custom hierarchy:
- Callers can catch specific exceptions (e.g., MixedFrequencyError vs
  UnknownTypeError) without relying on generic ValueError/RuntimeError.
- Every load failure names the offending source file, so a multi-file
  ``dbload()`` call tells the user which file broke.

All load-time errors are fatal for the file being read: there is no
partial database for a failing file.
"""

from __future__ import annotations


class TsdbIngestError(Exception):
    """Base exception for all tsdb-ingest errors.

    Attributes:
        source: Name of the file (or ``"<string>"``) being loaded when
            the error was raised, if known.
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        self.source = source
        if source:
            message = f"{message} [source: {source}]"
        super().__init__(message)


class InvalidFormatError(TsdbIngestError):
    """Raised when the data region cannot be read as a numeric table.

    Typically the file is not a database CSV at all, e.g. a plain text
    table whose cells are all words.
    """


class MixedFrequencyError(TsdbIngestError):
    """Raised when valid dates in one file disagree on frequency."""


class NameFuncError(TsdbIngestError):
    """Raised when a ``name_func`` callable returns something other than ``str``."""


class UserDataError(TsdbIngestError):
    """Raised when the file-level userdata expression cannot be evaluated.

    The message wraps the underlying evaluation error.
    """


class UnknownTypeError(TsdbIngestError):
    """Raised when a class annotation names a numeric type that does not exist."""


class ConfigValidationError(TsdbIngestError):
    """Raised when a load-options YAML file is empty or malformed."""
