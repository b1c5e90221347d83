"""
Batch partitioning for HubSpot batch endpoints.
"""

import logging
from typing import List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    """
    Split items into consecutive chunks of at most ``size``.

    Example:
        >>> chunk([1, 2, 3, 4, 5], 2)
        [[1, 2], [3, 4], [5]]
    """
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def partition(
    candidates: Sequence[T],
    chunk_size: int,
    run_cap: Optional[int] = None,
) -> List[List[T]]:
    """
    Apply the run cap, then chunk what is left.

    Rows beyond ``run_cap`` are not an error: they stay pending and are
    picked up by the next run.

    Args:
        candidates: Pending rows in processing order
        chunk_size: Provider limit per request
        run_cap: Maximum rows for this run (None = no cap)

    Returns:
        Chunks covering the first min(len(candidates), run_cap) rows
    """
    if run_cap is not None:
        run_cap = max(0, int(run_cap))
        to_process = candidates[:run_cap]
        if len(to_process) < len(candidates):
            logger.info(
                f"🧮 Run cap active: processing {len(to_process)} of "
                f"{len(candidates)} pending rows"
            )
    else:
        to_process = candidates

    return chunk(to_process, chunk_size)
