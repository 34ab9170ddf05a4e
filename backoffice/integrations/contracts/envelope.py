"""
Envelope: the success/data/messages wrapper returned by every upstream
operation.

success=False means the caller must look at messages. data may still be
missing or partial when success=True; callers decide what "enough" means.
"""

from __future__ import annotations

from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    success: bool = False
    data: Optional[T] = None
    messages: List[str] = Field(default_factory=list)

    @classmethod
    def ok(cls, data: Any = None, messages: Optional[List[str]] = None) -> "Envelope":
        return cls(success=True, data=data, messages=list(messages or []))

    @classmethod
    def fail(cls, *messages: str) -> "Envelope":
        return cls(success=False, data=None, messages=[m for m in messages if m])

    @property
    def first_message(self) -> Optional[str]:
        return self.messages[0] if self.messages else None

    def to_payload(self) -> dict:
        """JSON-friendly dict for routers (entities dumped with upstream names)."""
        return {
            "success": self.success,
            "data": _dump(self.data),
            "messages": list(self.messages),
        }


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True)
    if isinstance(value, list):
        return [_dump(item) for item in value]
    if isinstance(value, dict):
        return {key: _dump(item) for key, item in value.items()}
    return value
