"""
Transforms sub-package for tsdb-ingest.

Contains the steps that run on the parsed pieces of a file:
- names.py: selection, name functions, case conversion, name repair.
- reconstruct.py: column groups -> TimeSeries / typed arrays.

Each step is a plain function so it can be tested without any file I/O.
"""
