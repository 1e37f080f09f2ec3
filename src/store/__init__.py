"""Record storage layer.

This package owns the JSONL record encoding and the numbered record
files written by the spool pipeline runner.
"""
