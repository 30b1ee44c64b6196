"""Debounce for search-as-you-type."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, ParamSpec, TypeVar

P = ParamSpec("P")
T = TypeVar("T")


class Debouncer(Generic[P, T]):
    """
    Run `func` only after `wait` seconds without a newer call.

    Each call cancels the previous pending one. A superseded call returns
    None instead of a result; only the last call in a burst reaches `func`.
    """

    def __init__(self, func: Callable[P, Awaitable[T]], wait: float = 0.5) -> None:
        self.func = func
        self.wait = wait
        self._pending: asyncio.Task[T] | None = None

    async def _delayed(self, *args: P.args, **kwargs: P.kwargs) -> T:
        await asyncio.sleep(self.wait)
        return await self.func(*args, **kwargs)

    async def __call__(self, *args: P.args, **kwargs: P.kwargs) -> T | None:
        self.cancel()
        task = asyncio.create_task(self._delayed(*args, **kwargs))
        self._pending = task

        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task.cancelled():
            return None
        if self._pending is task:
            self._pending = None
        return task.result()

    def cancel(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
