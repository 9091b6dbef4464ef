from __future__ import annotations

import logging
from collections.abc import MutableMapping
from types import ModuleType
from typing import Any, Iterator

from lazyhook.enums import MemberState

logger = logging.getLogger(__name__)

MODULE_PENDING_ATTR = "__lazyhook_pending__"


class HostError(TypeError):
    pass


class Structure(MutableMapping):
    """Namespace whose members may be declared lazily.

    Resolved members live in the instance ``__dict__``; pending ones live in a
    side table and are only consulted by ``__getattr__``, which Python calls
    after normal lookup fails. Storing a value therefore shadows the pending
    cell for good.

    Members are reachable as attributes (``host.config``) and as items
    (``host["config"]``). A member named like a mapping method (``keys``,
    ``get``, ...) is only reachable as an item.
    """

    __slots__ = ("_pending", "__dict__")

    def __init__(self, **members: Any) -> None:
        object.__setattr__(self, "_pending", {})
        self.__dict__.update(members)

    def __getattr__(self, name: str) -> Any:
        try:
            pending = object.__getattribute__(self, "_pending")
        except AttributeError:
            raise AttributeError(name) from None
        cell = pending.get(name)
        if cell is None:
            raise AttributeError(f"{type(self).__name__!r} object has no member {name!r}")
        return cell.resolve(self)

    def __setattr__(self, name: str, value: Any) -> None:
        self._pending.pop(name, None)
        self.__dict__[name] = value

    def __delattr__(self, name: str) -> None:
        found = self._pending.pop(name, None) is not None
        if name in self.__dict__:
            del self.__dict__[name]
            found = True
        if not found:
            raise AttributeError(name)

    def __getitem__(self, name: str) -> Any:
        if name in self.__dict__:
            return self.__dict__[name]
        cell = self._pending.get(name)
        if cell is None:
            raise KeyError(name)
        return cell.resolve(self)

    def __setitem__(self, name: str, value: Any) -> None:
        setattr(self, name, value)

    def __delitem__(self, name: str) -> None:
        try:
            delattr(self, name)
        except AttributeError:
            raise KeyError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self.__dict__ or name in self._pending

    def __iter__(self) -> Iterator[str]:
        yield from self.__dict__
        for name in self._pending:
            if name not in self.__dict__:
                yield name

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __repr__(self) -> str:
        parts = []
        for name in self:
            if name in self.__dict__:
                parts.append(f"{name}={self.__dict__[name]!r}")
            else:
                parts.append(f"{name}=<pending>")
        return f"{type(self).__name__}({', '.join(parts)})"


def _install_module_hook(module: ModuleType) -> dict[str, Any]:
    pending: dict[str, Any] = {}
    fallback = module.__dict__.get("__getattr__")

    def __getattr__(name: str) -> Any:
        cell = pending.get(name)
        if cell is not None:
            return cell.resolve(module)
        if fallback is not None:
            return fallback(name)
        raise AttributeError(f"module {module.__name__!r} has no attribute {name!r}")

    setattr(module, MODULE_PENDING_ATTR, pending)
    module.__getattr__ = __getattr__
    logger.debug("Installed lazy attribute hook on module %s", module.__name__)
    return pending


def pending_cells(host: Any) -> dict[str, Any]:
    """Return the table of pending cells kept on ``host``."""
    if isinstance(host, Structure):
        return host._pending
    if isinstance(host, ModuleType):
        pending = host.__dict__.get(MODULE_PENDING_ATTR)
        if pending is None:
            pending = _install_module_hook(host)
        return pending
    raise HostError(f"Unsupported host type {type(host).__name__!r}; use a Structure or a module")


def member_state(host: Any, name: str) -> MemberState:
    if name in vars(host):
        return MemberState.resolved
    if name in pending_cells(host):
        return MemberState.pending
    return MemberState.undeclared


def store(host: Any, name: str, value: Any) -> None:
    """Replace whatever ``name`` holds on ``host`` with a plain value."""
    setattr(host, name, value)
    pending_cells(host).pop(name, None)
