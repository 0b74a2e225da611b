"""Registry data models: varieties, stewards, call context and results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(int, Enum):
    """Stable error codes returned by registry operations."""

    INVALID_RARITY = 1
    NOT_FOUND = 2
    UNAUTHORIZED = 3


class RegistryError(Exception):
    """Raised by ``OperationResult.unwrap`` for a failed operation."""

    def __init__(self, kind: ErrorKind, message: str = "") -> None:
        self.kind = kind
        super().__init__(message or kind.name)


@dataclass(frozen=True)
class CallContext:
    """Who is calling and at which height.

    Both values come from the execution environment; the registry never
    authenticates the caller or checks that heights are monotonic.
    """

    caller: str
    height: int


@dataclass(frozen=True)
class VarietyRecord:
    """A single registered seed variety."""

    id: int
    name: str
    species: str
    origin: str
    description: str
    year_documented: int
    rarity_level: int  # 1 - 5 scale
    registered_by: str
    registration_height: int
    active: bool = True


@dataclass(frozen=True)
class StewardRecord:
    """Stewardship of one identity over one variety."""

    since: int
    active: bool = True


@dataclass
class OperationResult:
    """Outcome of a registry operation: a value or an error kind."""

    value: Any = None
    error: Optional[ErrorKind] = None

    @classmethod
    def success(cls, value: Any = True) -> OperationResult:
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorKind) -> OperationResult:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the value, raising ``RegistryError`` on failure."""
        if self.error is not None:
            raise RegistryError(self.error)
        return self.value

    def summary(self) -> str:
        if self.ok:
            return f"[OK] {self.value}"
        return f"[FAIL] {self.error.name} ({int(self.error)})"
