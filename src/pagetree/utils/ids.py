"""ID utilities."""

from __future__ import annotations


def format_node_id(n: int, width: int = 4) -> str:
    """Format a pre-order position as a node id.

    Uses zero-padded numbers (e.g., 0000, 0001) so ids sort in document order and match the
    format the search prompt shows the model.
    """

    return str(n).zfill(width)
