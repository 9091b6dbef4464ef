from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable

from lazyhook.config import Settings, settings as default_settings
from lazyhook.enums import MemberState
from lazyhook.services.cleanup import CleanupError, CleanupRegistry, DoneCallback
from lazyhook.services.structure import Structure, member_state, pending_cells, store

logger = logging.getLogger(__name__)

Initializer = Callable[..., Any]


class Register:
    """Registration callable handed to an initializer.

    ``register(cleanup=None, method=None)`` records a synchronous cleanup and
    ``register.async_(cleanup=None, method=None)`` an asynchronous one. The
    cleanup name defaults to the member being initialised.
    """

    def __init__(self, registry: CleanupRegistry, member: str) -> None:
        self.registry = registry
        self.member = member

    def __call__(self, cleanup: str | None = None, method: Any = None) -> None:
        self._add(cleanup, method, is_async=False)

    def async_(self, cleanup: str | None = None, method: Any = None) -> None:
        self._add(cleanup, method, is_async=True)

    def _add(self, cleanup: str | None, method: Any, is_async: bool) -> None:
        self.registry.add(cleanup or self.member, method or True, is_async)


@dataclass
class PendingMember:
    name: str
    initializer: Initializer
    register: Register
    options: Any

    def resolve(self, host: Any) -> Any:
        logger.debug("Initialising lazy member %s", self.name)
        value = self.initializer(host, self.register, self.options)
        store(host, self.name, value)
        return value


class Binder:
    """Declares lazy members on a host and drains their cleanups.

    Example:
        init = on()

        def database(host, register, options):
            register()  # guess end/close/destroy at shutdown
            return connect(options["url"])

        init("database", database, {"url": "sqlite://"})
        init.host.database.execute(...)
        init.end(lambda error: ...)
    """

    def __init__(self, host: Any, settings: Settings) -> None:
        self.host = host
        self.settings = settings
        self.registered = CleanupRegistry(settings)

    def __call__(self, name: str, initializer: Initializer, options: Any = None) -> None:
        cells = pending_cells(self.host)
        vars(self.host).pop(name, None)
        cells[name] = PendingMember(
            name=name,
            initializer=initializer,
            register=Register(self.registered, name),
            options={} if options is None else options,
        )
        logger.debug("Declared lazy member %s", name)

    def member(self, name: str | None = None, options: Any = None) -> Callable[[Initializer], Initializer]:
        def decorator(initializer: Initializer) -> Initializer:
            self(name or initializer.__name__, initializer, options)
            return initializer

        return decorator

    def is_resolved(self, name: str) -> bool:
        return member_state(self.host, name) is MemberState.resolved

    def end(self, callback: DoneCallback | None = None) -> None:
        self.registered.drain(self.host, callback)

    async def aend(self) -> None:
        """Drain and wait for every asynchronous cleanup, raising the first error."""
        loop = asyncio.get_running_loop()
        finished: asyncio.Future = loop.create_future()

        def _done(error: Any = None) -> None:
            if not finished.done():
                finished.set_result(error)

        self.end(_done)
        error = await finished
        if error is None:
            return
        if isinstance(error, BaseException):
            raise error
        raise CleanupError(str(error))


def on(host: Any = None, settings: Settings | None = None) -> Binder:
    """Create a binder for ``host``, a fresh ``Structure`` when omitted."""
    if host is None:
        host = Structure()
    pending_cells(host)
    return Binder(host, settings or default_settings)
