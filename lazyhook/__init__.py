from __future__ import annotations

from lazyhook.config import Settings, settings
from lazyhook.enums import CleanupKind, MemberState
from lazyhook.schemas import CleanupDescriptor
from lazyhook.services import (
    Binder,
    CleanupError,
    CleanupRegistry,
    HostError,
    Register,
    Structure,
    on,
)

__version__ = "0.1.0"

__all__ = [
    "Binder",
    "CleanupDescriptor",
    "CleanupError",
    "CleanupKind",
    "CleanupRegistry",
    "HostError",
    "MemberState",
    "Register",
    "Settings",
    "Structure",
    "on",
    "settings",
]
