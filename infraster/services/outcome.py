"""Result wrapper for read paths that fail open."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from infraster.common.errors import AppError

T = TypeVar("T")


@dataclass
class Outcome(Generic[T]):
    """A value that is always usable, plus the error that degraded it, if any."""

    value: T
    error: AppError | None = None

    @property
    def status_code(self) -> int:
        return 200 if self.error is None else self.error.status_code
