import logging
from typing import Any, Awaitable, Callable, Iterable, List, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


async def _attempt(fetch: Callable[[T], Awaitable[R]], item: T, label: str) -> Tuple[bool, Any]:
    try:
        return True, await fetch(item)
    except Exception as e:
        logger.warning(f"Skipping {label} {item}: {e}")
        return False, None


async def best_effort_gather(
    fetch: Callable[[T], Awaitable[R]],
    items: Iterable[T],
    label: str = "item",
) -> List[R]:
    """
    Run `fetch` once per item, one after another, and return the successful
    results in input order. A failing item is logged and dropped; it never
    aborts the rest of the batch.
    """
    outcomes = [await _attempt(fetch, item, label) for item in items]
    return [value for ok, value in outcomes if ok]
