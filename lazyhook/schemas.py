from __future__ import annotations

from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lazyhook.enums import CleanupKind


class CleanupDescriptor(BaseModel):
    """How a registered member is torn down when the binder drains."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, arbitrary_types_allowed=True)

    method: Callable[..., Any] | str | bool = True
    is_async: bool = Field(default=False, alias="async")

    @field_validator("method", mode="before")
    @classmethod
    def _normalize_sentinel(cls, value: Any) -> Any:
        # Anything that is neither a callable nor a method name means "guess".
        if callable(value) or isinstance(value, str):
            return value
        return True

    @property
    def kind(self) -> CleanupKind:
        if callable(self.method):
            return CleanupKind.function
        if isinstance(self.method, str):
            return CleanupKind.named
        return CleanupKind.guessed
