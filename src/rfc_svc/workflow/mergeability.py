"""
Mergeability poller.

The backend computes merge checks asynchronously. Two bounded polling
phases resolve a verdict:

1. Combined check status, retried while "pending".
2. A direct fetch of the request, retried while its merge state is
   "unknown" (list endpoints never carry the recomputed state).

The request is mergeable iff the final state is "clean". A state still
unknown after the retries is an error, never a guess.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from ..backend.base import RepositoryBackend
from ..backend.types import (
    CHECKS_PENDING_STATE,
    MERGE_STATE_CLEAN,
    MERGE_STATE_UNKNOWN,
    ReviewRequest,
)
from ..errors import MergeabilityUndeterminedError

logger = logging.getLogger(__name__)

DEFAULT_RETRY_COUNT = 3
DEFAULT_WAIT_SECONDS = 10.0

Sleep = Callable[[float], Awaitable[None]]


async def resolve_mergeability(
    backend: RepositoryBackend,
    request: ReviewRequest,
    retry_count: int = DEFAULT_RETRY_COUNT,
    wait_seconds: float = DEFAULT_WAIT_SECONDS,
    sleep: Sleep = asyncio.sleep,
) -> bool:
    """
    Resolve whether the review request can be merged cleanly.

    Raises MergeabilityUndeterminedError if the merge state is still
    unknown after ``retry_count`` direct fetches.
    """
    for attempt in range(1, retry_count + 1):
        status = await backend.get_combined_status(request)
        if status != CHECKS_PENDING_STATE:
            break
        logger.debug(f"Checks pending for {request.workspace} (attempt {attempt}/{retry_count})")
        if attempt < retry_count:
            await sleep(wait_seconds)

    state: str | None = None
    for attempt in range(1, retry_count + 1):
        request = await backend.refresh_review_request(request)
        state = request.mergeable_state
        if state is not None and state != MERGE_STATE_UNKNOWN:
            break
        logger.debug(f"Merge state unknown for {request.workspace} (attempt {attempt}/{retry_count})")
        if attempt < retry_count:
            await sleep(wait_seconds)

    if state is None or state == MERGE_STATE_UNKNOWN:
        logger.error(f"Unable to determine mergeability of RFC {request.workspace}")
        raise MergeabilityUndeterminedError(
            f"Unable to determine mergeability of RFC {request.workspace}"
        )

    logger.info(f"RFC {request.workspace} merge state: {state}")
    return state == MERGE_STATE_CLEAN
