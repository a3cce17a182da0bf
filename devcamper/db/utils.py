import logging
import math
from typing import Any, Dict, Tuple, Type
import geohash2
from google.cloud.firestore import GeoPoint

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6378137.0


def _normalize(value: Any) -> Any:
    if isinstance(value, GeoPoint):
        return {"latitude": value.latitude, "longitude": value.longitude}
    if isinstance(value, dict):
        return {k: _normalize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_normalize(v) for v in value]
    return value


def convert_doc_to_model(doc_id: str, doc_data: Dict[str, Any], Model: Type) -> Any:
    try:
        data = {"id": doc_id, **{k: _normalize(v) for k, v in (doc_data or {}).items()}}
        return Model.model_validate(data)
    except Exception as e:
        logger.error("Error converting document %s to %s: %s", doc_id, Model.__name__, e)
        raise


def bounding_box(lat, lon, radius):
    """
    Returns the bounding box coordinates for a given lat/lon and radius in meters.
    """
    R = EARTH_RADIUS_M
    d_lat = radius / R
    cos_lat = math.cos(math.pi * lat / 180)
    d_lon = radius / (R * cos_lat) if cos_lat > 1e-12 else math.pi

    min_lat = max(lat - d_lat * 180 / math.pi, -90.0)
    max_lat = min(lat + d_lat * 180 / math.pi, 90.0)
    min_lon = max(lon - d_lon * 180 / math.pi, -180.0)
    max_lon = min(lon + d_lon * 180 / math.pi, 180.0)

    return (min_lat, min_lon, max_lat, max_lon)


def geohash_range(lat, lon, radius, precision=7) -> Tuple[str, str]:
    """Lexicographic geohash bounds covering the bounding box of a circle.

    Geohash is a Z-order curve, so every point inside the box sorts between
    the south-west and north-east corners. The upper bound is padded so that
    longer hashes inside the north-east cell still sort below it.
    """
    min_lat, min_lon, max_lat, max_lon = bounding_box(lat, lon, radius)
    geohash_sw = geohash2.encode(min_lat, min_lon, precision=precision)
    geohash_ne = geohash2.encode(max_lat, max_lon, precision=precision)
    return geohash_sw, geohash_ne + "~"


def angular_distance(lat1, lon1, lat2, lon2):
    """Great-circle distance in radians between two points (haversine on a unit sphere)."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = math.sin(delta_phi / 2) ** 2 + \
        math.cos(phi1) * math.cos(phi2) * \
        math.sin(delta_lambda / 2) ** 2
    return 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
