"""Error types raised by the ingestion and broadcast pipeline."""

from __future__ import annotations

from typing import Iterable, List

from models.records import FieldError


class ValidationError(ValueError):
    """An inbound reading payload was rejected before any state changed."""

    def __init__(self, errors: Iterable[FieldError]) -> None:
        self.errors: List[FieldError] = list(errors)
        summary = "; ".join(f"{error.field}: {error.reason}" for error in self.errors)
        super().__init__(f"Invalid reading payload ({summary}).")


class ObserverWriteError(RuntimeError):
    """An observer's transport could not accept an event."""
