from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GeoPoint:
    """Coordinate pair in degrees, stored as [longitude, latitude]."""

    longitude: float
    latitude: float

    def to_document(self) -> dict:
        return {"type": "Point", "coordinates": [self.longitude, self.latitude]}

    @classmethod
    def from_document(cls, data) -> "GeoPoint | None":
        if not data:
            return None
        lng, lat = data["coordinates"]
        return cls(longitude=float(lng), latitude=float(lat))


@dataclass(frozen=True)
class GeofenceConfig:
    """Allowed check-in area, sourced once at startup."""

    center: GeoPoint
    radius_meters: float
