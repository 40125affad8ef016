"""Domain records shared across services."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SensorMetadata:
    """Static description of a field sensor: display name and location."""

    name: str
    lat: float
    lng: float


@dataclass(frozen=True, slots=True)
class FieldError:
    """A single rejected field of an inbound reading payload."""

    field: str
    reason: str
