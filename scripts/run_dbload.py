"""
Demo script: load database CSV files via the public API and summarize them.

Usage:
    python scripts/run_dbload.py macro_q.csv                 # one file
    python scripts/run_dbload.py macro_q.csv macro_m.csv     # merged, in order
    python scripts/run_dbload.py --debug macro_q.csv         # per-row decisions

An ``options.yaml`` next to the first file is used as the load options
when present (see ``tsdb_ingest.save_options``).
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

DEBUG = "--debug" in sys.argv

logging.basicConfig(
    level=logging.DEBUG if DEBUG else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger("run_dbload")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    import tsdb_ingest

    paths = [a for a in sys.argv[1:] if not a.startswith("--")]
    if not paths:
        log.error("No input files given")
        return 2

    missing = [p for p in paths if not Path(p).exists()]
    for p in missing:
        log.warning("SKIP  %s  (file not found)", p)
    paths = [p for p in paths if p not in missing]
    if not paths:
        return 1

    options_path = Path(paths[0]).parent / "options.yaml"
    options = options_path if options_path.exists() else None
    if options is not None:
        log.info("Using options from %s", options_path)

    db = tsdb_ingest.dbload(paths, options=options)

    info = db.describe()
    log.info("=" * 70)
    log.info("Entries    : %d", len(info.entries))
    log.info("Frequency  : %s", info.freq.name.lower() if info.freq else "-")
    log.info("Date range : %s", "%s:%s" % info.date_range if info.date_range else "-")
    for name in info.series + info.arrays:
        log.info("  %-20s %s", name, info.shapes[name])
    for name in info.other:
        log.info("  %-20s %r", name, db[name])
    log.info("=" * 70)
    return 0


if __name__ == "__main__":
    sys.exit(main())
