from __future__ import annotations

from lazyhook.services.binder import Binder, PendingMember, Register, on
from lazyhook.services.cleanup import CleanupError, CleanupRegistry
from lazyhook.services.structure import HostError, Structure

__all__ = [
    "Binder",
    "CleanupError",
    "CleanupRegistry",
    "HostError",
    "PendingMember",
    "Register",
    "Structure",
    "on",
]
