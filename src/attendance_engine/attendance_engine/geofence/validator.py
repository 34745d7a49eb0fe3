from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from ..core.constants import METERS_PER_DEGREE
from .model import GeofenceConfig, GeoPoint


def planar_distance_meters(point: GeoPoint, center: GeoPoint) -> float:
    """Flat-earth distance: Euclidean distance in degrees scaled to meters.

    Only meaningful for small areas (an office radius of a few km).
    """
    d_lng = point.longitude - center.longitude
    d_lat = point.latitude - center.latitude
    return math.sqrt(d_lng * d_lng + d_lat * d_lat) * METERS_PER_DEGREE


@dataclass(frozen=True)
class GeofenceCheck:
    within: bool
    distance_meters: float


class GeofenceValidator:
    def __init__(self, config: GeofenceConfig):
        self._config = config

    @property
    def config(self) -> GeofenceConfig:
        return self._config

    def is_within(
        self,
        point: GeoPoint,
        center: Optional[GeoPoint] = None,
        radius_meters: Optional[float] = None,
    ) -> bool:
        return self.check(point, center=center, radius_meters=radius_meters).within

    def check(
        self,
        point: GeoPoint,
        *,
        center: Optional[GeoPoint] = None,
        radius_meters: Optional[float] = None,
    ) -> GeofenceCheck:
        center = center or self._config.center
        radius = self._config.radius_meters if radius_meters is None else radius_meters
        try:
            distance = planar_distance_meters(point, center)
        except (TypeError, ValueError, OverflowError):
            return GeofenceCheck(within=False, distance_meters=math.inf)
        # NaN compares False, so malformed input lands outside.
        return GeofenceCheck(within=distance <= radius, distance_meters=distance)
