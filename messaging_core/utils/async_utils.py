# =============================================================================
# File: messaging_core/utils/async_utils.py
# Description: Run independent side effects together without letting one
#              failure cancel the others
# =============================================================================

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, List


async def gather_settled(*aws: Awaitable[Any]) -> List[Any]:
    """
    Await every coroutine to completion, then raise the first failure.

    Unlike a plain gather, a failing side effect never leaves its siblings
    unattempted.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)
