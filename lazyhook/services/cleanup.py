from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping
from typing import Any, Callable, Iterator

from lazyhook.config import Settings
from lazyhook.enums import CleanupKind, MemberState
from lazyhook.schemas import CleanupDescriptor
from lazyhook.services.structure import member_state

logger = logging.getLogger(__name__)

DoneCallback = Callable[[BaseException | None], Any]


class CleanupError(RuntimeError):
    def __init__(self, message: str, errors: list[BaseException] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class _Drain:
    """Countdown of outstanding asynchronous cleanups for one ``end`` call.

    The counter starts at one for the enumeration itself so that a cleanup
    completing synchronously during dispatch cannot fire the callback before
    every entry has been dispatched.
    """

    def __init__(self, callback: DoneCallback | None) -> None:
        self.callback = callback
        self.outstanding = 1
        self.dispatched = 0
        self.completed = 0
        self.error: BaseException | None = None

    def completion(self, name: str) -> Callable[..., None]:
        self.outstanding += 1
        self.dispatched += 1
        called = False

        def next_(error: Any = None) -> None:
            nonlocal called
            if called:
                logger.warning("Cleanup %s reported completion more than once; ignoring", name)
                return
            called = True
            self.completed += 1
            if error is not None:
                logger.warning("Asynchronous cleanup %s failed: %s", name, error)
                if self.error is None:
                    self.error = error
            self.settle()

        return next_

    def settle(self) -> None:
        self.outstanding -= 1
        if self.outstanding:
            return
        logger.info(
            "Drain finished: %d asynchronous cleanup(s), error=%s",
            self.completed,
            self.error,
        )
        if self.callback is not None:
            self.callback(self.error)


class CleanupRegistry(Mapping):
    """Insertion-ordered cleanup descriptors keyed by cleanup name."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._entries: dict[str, CleanupDescriptor] = {}
        # Coroutine cleanups still running; the loop only holds weak references.
        self._tasks: set[asyncio.Task] = set()

    def __getitem__(self, name: str) -> CleanupDescriptor:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, name: str, method: Any = True, is_async: bool = False) -> CleanupDescriptor:
        descriptor = CleanupDescriptor(method=method, is_async=is_async)
        self._entries[name] = descriptor
        logger.debug("Registered %s cleanup for %s (async=%s)", descriptor.kind.value, name, is_async)
        return descriptor

    def resolve(self, host: Any, name: str, descriptor: CleanupDescriptor) -> Callable[..., Any] | None:
        """Turn a descriptor into the callable to invoke, or None to skip it."""
        if descriptor.kind is CleanupKind.function:
            return descriptor.method
        if member_state(host, name) is not MemberState.resolved:
            logger.debug("Skipping cleanup for %s: member was never initialised", name)
            return None
        instance = getattr(host, name)
        if descriptor.kind is CleanupKind.named:
            candidates = [descriptor.method]
        else:
            candidates = self.settings.guess_methods
        for candidate in candidates:
            action = getattr(instance, candidate, None)
            if callable(action):
                return action
        logger.debug("Skipping cleanup for %s: no method among %s", name, candidates)
        return None

    def drain(self, host: Any, callback: DoneCallback | None = None) -> None:
        logger.info("Draining %d registered cleanup(s)", len(self._entries))
        state = _Drain(callback)
        errors: list[BaseException] = []
        for name, descriptor in list(self._entries.items()):
            action = self.resolve(host, name, descriptor)
            if action is None:
                continue
            if inspect.iscoroutinefunction(action):
                self._schedule(name, action, state.completion(name))
            elif descriptor.is_async:
                action(state.completion(name))
            else:
                try:
                    action()
                except Exception as exc:
                    if not self.settings.collect_sync_errors:
                        raise
                    logger.error("Cleanup %s failed: %s", name, exc, exc_info=True)
                    errors.append(exc)
        if errors:
            raise CleanupError(f"{len(errors)} synchronous cleanup(s) failed", errors)
        state.settle()

    def _schedule(self, name: str, action: Callable[..., Any], next_: Callable[..., None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise CleanupError(f"Coroutine cleanup for {name!r} needs a running event loop") from None
        task = loop.create_task(action())
        self._tasks.add(task)

        def _on_done(task: asyncio.Task) -> None:
            self._tasks.discard(task)
            if task.cancelled():
                next_(asyncio.CancelledError())
            else:
                next_(task.exception())

        task.add_done_callback(_on_done)
