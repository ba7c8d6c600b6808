"""
Header row classification for tsdb-ingest.

Scans the leading lines of a database CSV file one at a time and assigns
each a role until the first data line is found:

  name row | class[size] row | comment row | per-entry userdata row |
  file-level userdata row | skipped | first data line

Example input::

    ,Y,P
    Class[Size],Series,Series
    Comment,Output,Prices
    .Source,Stat,IMFIFS
    Units,bn,idx
    2010Q1,1,10          <- first data line

State machine:
  Classification state lives in an explicit ``ParserState`` that is passed
  to ``classify_line()`` together with the ``HeaderBundle`` being filled.
  ``classify_headers()`` drives it over the lines and returns the bundle
  plus the index of the first data line.

Precedence per line (first match wins):
  1. before a numeric ``name_row``          -> skip
  2. line number in numeric ``skip_rows``   -> skip
  3. name row label / line number           -> name row
  4. presume data, then re-examine the identifier:
     a. userdata-field prefix or listed     -> per-entry userdata row
        (does not stop the checks below)
     b. empty or ``%``                      -> skip
     c. contains ``userdata``               -> file-level userdata
     d. contains ``class[size]``            -> class row
     e. equals a comment-row label          -> comment row
     f. contains ``units``                  -> skip
     g. matches a ``skip_rows`` pattern     -> skip
     none of a-g                            -> first data line
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from tsdb_ingest.config import LoadOptions
from tsdb_ingest.parsers.tokens import split_cells

logger = logging.getLogger(__name__)

COMMENT_MARKER = "%"

_USERDATA_NAME_RE = re.compile(r"\[([^\]]+)\]")


@dataclass
class HeaderBundle:
    """Metadata rows collected ahead of the data region.

    Attributes:
        names: Entry names, one per data column (cell 0 excluded).
        class_specs: Class/shape annotations, aligned with ``names``.
        comments: Comments, aligned with ``names``.
        aux_fields: Per-entry userdata rows, keyed by sanitized field name.
        user_data: Raw text of the file-level userdata expression, or
            ``None`` if the file has no userdata row.
        user_data_name: Field name found in brackets in the userdata row
            label (e.g. ``Userdata[info]``), or ``""``.
    """

    names: list[str] = field(default_factory=list)
    class_specs: list[str] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)
    aux_fields: dict[str, list[str]] = field(default_factory=dict)
    user_data: str | None = None
    user_data_name: str = ""

    def pad(self) -> None:
        """Strip all header cells and right-pad class/comment rows to ``len(names)``."""
        self.names = [c.strip() for c in self.names]
        n = len(self.names)
        self.class_specs = [c.strip() for c in self.class_specs]
        self.comments = [c.strip() for c in self.comments]
        self.class_specs += [""] * (n - len(self.class_specs))
        self.comments += [""] * (n - len(self.comments))


@dataclass
class ParserState:
    """Mutable classification state threaded through ``classify_line()``.

    Attributes:
        row: 1-based number of the line being classified.
        identifier: Cleaned first cell of that line.
        in_data_region: Set once the first data line is confirmed.
        name_row_done: Set once the name row has been recorded.
    """

    row: int = 0
    identifier: str = ""
    in_data_region: bool = False
    name_row_done: bool = False


def row_identifier(cells: list[str]) -> str:
    """First cell with ``->`` removed and whitespace stripped.

    Lines without any non-empty cell get the comment marker, so they are
    never taken for the name row or for data.
    """
    if not cells or all(not c for c in cells):
        return COMMENT_MARKER
    return cells[0].replace("->", "").strip()


def _sanitize_field_name(identifier: str, existing: dict[str, list[str]]) -> str:
    """Strip non-word characters and make the name unique among *existing*."""
    base = re.sub(r"\W", "", identifier)
    name = base
    k = 0
    while name in existing:
        k += 1
        name = f"{base}_{k}"
    return name


def _is_name_row(state: ParserState, options: LoadOptions) -> bool:
    if state.name_row_done:
        return False
    if isinstance(options.name_row, int):
        return state.row == options.name_row
    ident = state.identifier.lower()
    return any(ident == label.lower() for label in options.name_row)


def _is_user_data_field(state: ParserState, options: LoadOptions) -> bool:
    marker = options.user_data_field
    ident = state.identifier
    if marker and ident.lower().startswith(marker[:1].lower()):
        return True
    listed = options.user_data_field_list
    if not listed:
        return False
    if isinstance(listed[0], int):
        return state.row in listed
    return any(ident.lower() == str(label).lower() for label in listed)


def classify_line(
    line: str,
    state: ParserState,
    bundle: HeaderBundle,
    options: LoadOptions,
    skip_patterns: list[re.Pattern[str]],
) -> None:
    """Classify one header line, updating *state* and *bundle* in place.

    On return, ``state.in_data_region`` is ``True`` if *line* is the first
    data line; otherwise the line has been consumed as metadata or skipped.
    """
    state.row += 1
    state.in_data_region = False

    if isinstance(options.name_row, int) and state.row < options.name_row:
        return

    cells = split_cells(line)
    state.identifier = row_identifier(cells)
    ident = state.identifier
    lower = ident.lower()

    if state.row in options.skip_row_numbers:
        logger.debug("Row %d: skipped by number", state.row)
        return

    if _is_name_row(state, options):
        bundle.names = cells[1:]
        state.name_row_done = True
        logger.debug("Row %d: name row (%d names)", state.row, len(bundle.names))
        return

    is_data = True

    if _is_user_data_field(state, options):
        key = _sanitize_field_name(ident, bundle.aux_fields)
        if key:
            bundle.aux_fields[key] = cells[1:]
            logger.debug("Row %d: userdata field '%s'", state.row, key)
        is_data = False

    if lower.startswith(COMMENT_MARKER) or not ident:
        is_data = False
    elif "userdata" in lower:
        match = _USERDATA_NAME_RE.search(cells[0])
        bundle.user_data_name = match.group(1) if match else ""
        bundle.user_data = cells[1] if len(cells) > 1 else ""
        logger.debug("Row %d: file-level userdata", state.row)
        is_data = False
    elif "class[size]" in lower:
        bundle.class_specs = cells[1:]
        logger.debug("Row %d: class row", state.row)
        is_data = False
    elif any(lower == label.lower() for label in options.comment_row):
        bundle.comments = cells[1:]
        logger.debug("Row %d: comment row", state.row)
        is_data = False
    elif "units" in lower:
        is_data = False
    elif any(p.search(ident) for p in skip_patterns):
        logger.debug("Row %d: skipped by pattern", state.row)
        is_data = False

    state.in_data_region = is_data


def classify_headers(
    lines: list[str],
    options: LoadOptions,
) -> tuple[HeaderBundle, int]:
    """Classify leading lines until the first data line.

    Args:
        lines: The file split into lines (line endings removed).
        options: Load options (name row labels, skip rows, markers).

    Returns:
        Tuple of (header bundle, index of the first data line in *lines*).
        The index equals ``len(lines)`` when the file has no data region.
        The bundle's class and comment rows are padded to the name row.
    """
    state = ParserState()
    bundle = HeaderBundle()
    skip_patterns = options.skip_row_patterns()

    start = len(lines)
    for i, line in enumerate(lines):
        classify_line(line, state, bundle, options, skip_patterns)
        if state.in_data_region:
            start = i
            break

    bundle.pad()
    logger.info(
        "Classified %d header line(s): %d names, class row %s, comment row %s, "
        "%d userdata field(s)",
        start,
        len(bundle.names),
        "yes" if any(bundle.class_specs) else "no",
        "yes" if any(bundle.comments) else "no",
        len(bundle.aux_fields),
    )
    return bundle, start
