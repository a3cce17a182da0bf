# devcamper/core/geopoint.py
from typing import Any, Literal, Optional
from pydantic import BaseModel, Field, model_validator
from google.cloud.firestore import GeoPoint
import geohash2

GEOHASH_PRECISION = 9


class GeoPointModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    @model_validator(mode="before")
    @classmethod
    def validate_geopoint(cls, v: Any):
        if isinstance(v, GeoPoint):
            return {"latitude": v.latitude, "longitude": v.longitude}
        if isinstance(v, (list, tuple)) and len(v) == 2:
            # GeoJSON order: [lng, lat]
            return {"latitude": v[1], "longitude": v[0]}
        if isinstance(v, dict) and "_latitude" in v and "_longitude" in v:
            return {"latitude": v["_latitude"], "longitude": v["_longitude"]}
        return v

    def to_firestore_geopoint(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude)

    def geohash(self, precision: int = GEOHASH_PRECISION) -> str:
        return geohash2.encode(self.latitude, self.longitude, precision=precision)


class Location(BaseModel):
    type: Literal["Point"] = "Point"
    coordinates: GeoPointModel
    formatted_address: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    country: Optional[str] = None

    def to_firestore(self) -> dict:
        data = self.model_dump()
        data["coordinates"] = self.coordinates.to_firestore_geopoint()
        return data
