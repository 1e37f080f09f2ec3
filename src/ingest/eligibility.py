"""Spool file eligibility rules.

These pure functions decide whether a produce cycle needs a new file and
whether a file offered by the spooler may be processed given the last
checkpoint. File names are compared lexicographically.
"""

from __future__ import annotations

from ingest.offset_codec import is_exhausted


def needs_new_source(
    current_file: str | None,
    checkpoint_file: str | None,
    checkpoint_position: int,
) -> bool:
    """Return whether the cycle must ask the spooler for a file.

    Args:
        current_file: Name of the file open in this process, if any.
        checkpoint_file: File recorded in the last checkpoint.
        checkpoint_position: Position recorded in the last checkpoint.

    Returns:
        True when there is no usable open file for the checkpoint.
    """
    return (
        current_file is None
        or checkpoint_file is None
        or current_file < checkpoint_file
        or is_exhausted(checkpoint_position)
    )


def is_eligible(
    offered_file: str | None,
    checkpoint_file: str | None,
    checkpoint_position: int,
) -> bool:
    """Return whether a spooler-offered file may be processed.

    An absent offer is eligible so the polling loop ends with nothing
    available. Stale or already drained files are not eligible.
    """
    if offered_file is None:
        return True
    if checkpoint_file is None:
        return True
    if offered_file == checkpoint_file and not is_exhausted(checkpoint_position):
        return True
    return offered_file > checkpoint_file
