import asyncio
from typing import Any, Awaitable


async def gather_or_cancel(*aws: Awaitable) -> list[Any]:
    """
    Run awaitables concurrently and return their results in order.
    Unlike asyncio.gather, the first failure cancels the remaining awaitables
    and waits for them, so no query outlives the caller.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.wait(pending)
        for task in tasks:
            # mark exceptions of the siblings as retrieved
            if task.done() and not task.cancelled():
                task.exception()
        raise


async def run_queries(*aws: Awaitable, concurrent: bool = True) -> list[Any]:
    """
    Await independent node queries, concurrently when the node client allows it.
    Sequential mode stops at the first failure and closes the queries not started.
    """
    if concurrent:
        return await gather_or_cancel(*aws)
    results = []
    try:
        for aw in aws:
            results.append(await aw)
    except BaseException:
        for aw in aws[len(results) + 1:]:
            if asyncio.iscoroutine(aw):
                aw.close()
        raise
    return results
