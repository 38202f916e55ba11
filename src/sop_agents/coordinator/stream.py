"""Single-pass event stream backed by a producer task."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncGenerator, Callable
from types import TracebackType
from typing import Generic, TypeVar

T = TypeVar("T")

_DONE = object()


class _Failure:
    __slots__ = ("error",)

    def __init__(self, error: BaseException) -> None:
        self.error = error


async def _produce(
    source: Callable[[], AsyncGenerator[T, None]], queue: asyncio.Queue[object]
) -> None:
    # Holds no reference to the stream, so an abandoned stream can be collected
    try:
        # aclosing keeps generator cleanup inside this task
        async with contextlib.aclosing(source()) as events:
            async for event in events:
                await queue.put(event)
    except Exception as e:
        await queue.put(_Failure(e))
        return
    await queue.put(_DONE)


class EventStream(Generic[T]):
    """Forward-only async iterator over events produced by a background task.

    The producer starts on the first ``__anext__`` and hands events over a
    one-slot queue, so it never runs far ahead of the consumer. Closing the
    stream (``aclose`` or leaving ``async with``) cancels the producer. Callers
    should close the stream; one dropped without closing cancels its producer
    when it is garbage collected. Iterating a second time raises RuntimeError.
    """

    def __init__(self, source: Callable[[], AsyncGenerator[T, None]]) -> None:
        self._source = source
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=1)
        self._task: asyncio.Task[None] | None = None
        self._iterated = False
        self._finished = False

    def __aiter__(self) -> EventStream[T]:
        if self._iterated:
            raise RuntimeError("EventStream can only be iterated once")
        self._iterated = True
        return self

    async def __anext__(self) -> T:
        if self._finished:
            raise StopAsyncIteration
        if self._task is None:
            self._task = asyncio.create_task(_produce(self._source, self._queue))
        item = await self._queue.get()
        if item is _DONE:
            self._finished = True
            raise StopAsyncIteration
        if isinstance(item, _Failure):
            self._finished = True
            raise item.error
        return item  # type: ignore[return-value]

    async def aclose(self) -> None:
        self._finished = True
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def __del__(self) -> None:
        task = getattr(self, "_task", None)
        if task is not None and not task.done() and not task.get_loop().is_closed():
            task.cancel()

    async def __aenter__(self) -> EventStream[T]:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
