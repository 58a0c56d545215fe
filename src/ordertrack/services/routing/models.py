"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from ...models.domain import LatLng


@dataclass(slots=True)
class PlannedRoute:
    path: List[LatLng]
    distance_meters: float
    duration_seconds: float
