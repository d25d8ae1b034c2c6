from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .exceptions import ReservationError


@dataclass(frozen=True)
class Result:
    """Outcome of a service call: either ``value`` or ``error`` is set."""

    value: Any = None
    error: ReservationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ReservationError) -> "Result":
        return cls(error=error)
