"""Resumable spool ingestion.

This package decides which spool file to read next, produces bounded
batches from it, and persists the offset that makes runs resumable.
"""
