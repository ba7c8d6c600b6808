"""
Delimiter/token splitting for tsdb-ingest.

Database CSV files are comma-delimited with optional double quotes.  A
quoted span may contain commas and is kept as one cell; one layer of
surrounding quotes is stripped from every cell.

A non-comma delimiter is normalized by replacing every occurrence with a
comma in the raw text *before* tokenizing.  This is a blind substitution:
quoted text containing the delimiter character is rewritten too, so a
comment such as ``"Output; real"`` in a semicolon-delimited file ends up
split in two.  Callers with such files should pre-process the text
themselves (``pre_process`` option).
"""

from __future__ import annotations

import re

_DELIMITER_ESCAPES = {"\\t": "\t"}

# One cell: any run of quoted spans and non-comma, non-quote characters.
# A quote with no closing partner later on the line is taken literally.
_CELL_RE = re.compile(r'(?:"[^"]*"|[^,"]|"(?![^"]*"))*')


def normalize_eols(text: str) -> str:
    """Convert Windows and old Mac line endings to ``\\n``."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def normalize_delimiter(text: str, delimiter: str) -> str:
    """Replace a non-comma *delimiter* with commas throughout *text*.

    The escape ``"\\t"`` (as written in a YAML file) means a tab; any
    other delimiter, including non-ASCII characters and a lone
    backslash, is taken literally.
    """
    if not delimiter:
        return text
    delimiter = _DELIMITER_ESCAPES.get(delimiter, delimiter)
    if delimiter == ",":
        return text
    return text.replace(delimiter, ",")


def strip_quotes(cell: str) -> str:
    """Remove one leading and one trailing double quote, independently."""
    if cell.startswith('"'):
        cell = cell[1:]
    if cell.endswith('"'):
        cell = cell[:-1]
    return cell


def split_cells(line: str) -> list[str]:
    """Split one line into cells.

    Examples::

        split_cells('a,"b,c",d')  ->  ['a', 'b,c', 'd']
        split_cells('a,b,')       ->  ['a', 'b', '']
        split_cells('')           ->  ['']
    """
    cells: list[str] = []
    pos = 0
    n = len(line)
    while True:
        match = _CELL_RE.match(line, pos)
        cells.append(strip_quotes(match.group(0)))
        pos = match.end()
        if pos < n and line[pos] == ",":
            pos += 1
            continue
        break
    return cells
