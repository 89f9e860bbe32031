"""Lifecycle-scoped event emitters.

Each component that publishes events owns its emitters: they are created in
the component's constructor and disposed with it. Listeners are plain
callables; a listener that returns an awaitable has it scheduled on the
running loop. A failing listener is logged and does not stop delivery to the
others.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")

Listener = Callable[[T], Awaitable[None] | None]


class Subscription:
    """Handle returned by EventEmitter.listen; dispose() unsubscribes."""

    def __init__(self, emitter: EventEmitter[Any], listener: Listener[Any]) -> None:
        self._emitter: EventEmitter[Any] | None = emitter
        self._listener = listener

    def dispose(self) -> None:
        if self._emitter is not None:
            self._emitter._remove(self._listener)
            self._emitter = None


class EventEmitter(Generic[T]):
    """Synchronous fan-out of events of one type."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Listener[T]] = []
        self._pending: set[asyncio.Task[Any]] = set()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def listen(self, listener: Listener[T]) -> Subscription:
        if self._disposed:
            raise RuntimeError(f"Emitter {self.name} is disposed")
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove(self, listener: Listener[T]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def fire(self, event: T) -> None:
        if self._disposed:
            logger.debug("event_dropped", emitter=self.name, reason="disposed")
            return
        for listener in list(self._listeners):
            try:
                result = listener(event)
            except Exception:
                logger.exception("event_listener_failed", emitter=self.name)
                continue
            if inspect.isawaitable(result):
                self._schedule(result)

    def _schedule(self, awaitable: Awaitable[None]) -> None:
        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "event_listener_failed",
                emitter=self.name,
                error=str(task.exception()),
            )

    async def drain(self) -> None:
        """Wait for every scheduled async listener to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def dispose(self) -> None:
        self._listeners.clear()
        self._disposed = True
