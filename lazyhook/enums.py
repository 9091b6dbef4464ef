from __future__ import annotations

from enum import Enum


class CleanupKind(str, Enum):
    function = "function"
    named = "named"
    guessed = "guessed"


class MemberState(str, Enum):
    pending = "pending"
    resolved = "resolved"
    undeclared = "undeclared"
