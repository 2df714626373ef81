"""
Helpers for fanning out per-key storage calls.
"""

import asyncio
from typing import Awaitable, Iterable, List, Union, TypeVar

T = TypeVar("T")


async def gather_isolated(aws: Iterable[Awaitable[T]]) -> List[Union[T, Exception]]:
    """
    Run awaitables concurrently and join them.

    A failing awaitable yields its exception in place of its result so the
    others still complete. Cancellation and other BaseExceptions propagate.
    Awaitables only overlap where they actually await non-blocking I/O;
    blocking calls inside them run one after another.

    Returns:
        Results or exceptions, in input order
    """
    outcomes = await asyncio.gather(*aws, return_exceptions=True)
    for outcome in outcomes:
        if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
            raise outcome
    return outcomes
