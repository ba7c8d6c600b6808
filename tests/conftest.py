"""
Shared test fixtures for tsdb-ingest tests.

Test inputs are small synthetic database CSV files written to
``tmp_path``; the canonical sample is defined here as a module-level
constant so every test reads the same layout.
"""

from pathlib import Path
from typing import Callable

import pytest

# ---------------------------------------------------------------------------
# Sample files -- edit here if the canonical layout changes
# ---------------------------------------------------------------------------

# Quarterly file: two 1-D series, one [Inf-by-2] series, per-entry
# userdata row, units row (ignored), file-level userdata, a missing
# period (2010Q3), an empty cell, a NaN token and a genuine -Inf.
MACRO_CSV = """\
,GDP,CPI,M,
Class[Size],Series,Series,Series[Inf-by-2],
Comment,Real output,Consumer prices,Money A,Money B
.Source,Stat,IMF,CB,CB
Units,bn,idx,bn,bn
Userdata[info],{'vintage': 2011}
2010Q1,100,1.5,10,20
2010Q2,101,,11,21
2010Q4,103,-Inf,13,NaN
"""


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[[str, str], Path]:
    """Return a helper that writes *text* to ``tmp_path / name``."""

    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def macro_csv(write_csv) -> Path:
    return write_csv("macro.csv", MACRO_CSV)


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------
def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (loads CSV files through dbload())",
    )
