import asyncio
from typing import Any, Awaitable, List


async def join_all(*aws: Awaitable[Any]) -> List[Any]:
    """Await all awaitables concurrently; all results or the first failure.

    Results come back in argument order. When one awaitable raises, the
    others are cancelled (and awaited) before the exception propagates, so no
    partial result is ever returned.
    """

    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
