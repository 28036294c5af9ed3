"""OperationResult — structured outcome for store operations.

Store mutations report missing ids, duplicates and invalid input as values
so callers can branch on ``result.ok`` instead of catching exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from territory_engine.domain.value_objects.enums import ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    value: T | None = None
    error: ErrorKind | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> OperationResult[T]:
        return cls(value=value)

    @classmethod
    def not_found(cls, message: str) -> OperationResult[T]:
        return cls(error=ErrorKind.NOT_FOUND, message=message)

    @classmethod
    def duplicate(cls, message: str) -> OperationResult[T]:
        return cls(error=ErrorKind.DUPLICATE, message=message)

    @classmethod
    def invalid(cls, message: str) -> OperationResult[T]:
        return cls(error=ErrorKind.INVALID, message=message)
