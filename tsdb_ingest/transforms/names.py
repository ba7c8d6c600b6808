"""
Entry name transforms for tsdb-ingest.

Applied to the name row after classification, in this order:

1. Selection: names outside the ``select`` allow-list are blanked, so
   their columns are skipped like any unnamed column.  Selection sees the
   names exactly as written in the file.
2. ``name_func`` callables, left to right.
3. Case conversion (``lower`` / ``upper``).
4. Repair: every non-empty name that is not a valid Python identifier
   (or is a keyword) is rewritten into one.

Repair is deterministic: names that are already valid are never touched
and are reserved first, then invalid names are rewritten left to right,
each taking the first free numeric suffix.  ``["1x", "ok", "1x"]``
always becomes ``["x1x", "ok", "x1x1"]``.
"""

from __future__ import annotations

import keyword
import logging
import re
from typing import Any, Callable, Iterable

from tsdb_ingest.exceptions import NameFuncError

logger = logging.getLogger(__name__)

_INVALID_CHAR_RE = re.compile(r"\W")


def select_names(names: list[str], select: Iterable[str] | None) -> list[str]:
    """Blank every name not in *select*; ``None`` keeps all names."""
    if select is None:
        return list(names)
    allowed = set(select)
    result = [n if n in allowed else "" for n in names]
    dropped = sum(1 for n, r in zip(names, result) if n and not r)
    if dropped:
        logger.debug("Selection dropped %d named column(s)", dropped)
    return result


def apply_name_funcs(
    names: list[str],
    funcs: list[Callable[[str], Any]],
    source: str | None = None,
) -> list[str]:
    """Apply each callable in *funcs* to every non-empty name.

    Raises:
        NameFuncError: If a callable returns anything but a ``str``.
    """
    result = list(names)
    for func in funcs:
        for i, name in enumerate(result):
            if not name:
                continue
            new = func(name)
            if not isinstance(new, str):
                raise NameFuncError(
                    f"Name function {getattr(func, '__name__', func)!r} returned "
                    f"{type(new).__name__} for {name!r}; it must return str",
                    source=source,
                )
            result[i] = new
    return result


def change_case(names: list[str], case: str | None) -> list[str]:
    if case == "lower":
        return [n.lower() for n in names]
    if case == "upper":
        return [n.upper() for n in names]
    return list(names)


def is_valid_name(name: str) -> bool:
    return name.isidentifier() and not keyword.iskeyword(name)


def _base_name(name: str) -> str:
    base = _INVALID_CHAR_RE.sub("_", name)
    if not base[:1].isalpha():
        base = "x" + base
    if keyword.iskeyword(base):
        base = "x" + base
    return base


def repair_names(names: list[str]) -> list[str]:
    """Turn non-empty names into valid, unique-where-rewritten identifiers.

    Empty names stay empty.  Duplicate valid names are left alone; a
    later column simply overwrites the earlier entry.
    """
    taken = {n for n in names if n and is_valid_name(n)}
    result: list[str] = []
    for name in names:
        if not name or is_valid_name(name):
            result.append(name)
            continue
        base = _base_name(name)
        candidate = base
        k = 0
        while candidate in taken:
            k += 1
            candidate = f"{base}{k}"
        taken.add(candidate)
        logger.debug("Renamed %r to %r", name, candidate)
        result.append(candidate)
    return result


def normalize_names(
    names: list[str],
    name_funcs: list[Callable[[str], Any]],
    case: str | None,
    source: str | None = None,
) -> list[str]:
    """Run name functions, case conversion and repair in order."""
    names = apply_name_funcs(names, name_funcs, source=source)
    names = change_case(names, case)
    return repair_names(names)
