"""
Parsers sub-package for tsdb-ingest.

Contains the line- and cell-level readers that turn the raw text of a
database CSV file into structured intermediate pieces.

Design: one module per stage, each a set of pure functions plus a small
dataclass for its result:
- tokens.py splits lines into cells (quotes, delimiter, line endings).
- headers.py classifies the leading lines -> HeaderBundle.
- numeric.py reads the data region -> DataBlock (matrix + missing mask).
- datecol.py parses the date column -> DateAxis.

The stages run in this order from ``_pipeline.load_text_into()``; each
receives the per-call ``LoadOptions`` explicitly.
"""
