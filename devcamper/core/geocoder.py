# devcamper/core/geocoder.py
import logging
from functools import lru_cache
from typing import List, Optional
import httpx
from fastapi import status
from pydantic import BaseModel
from devcamper.config import get_settings
from devcamper.core.errors import ErrorResponse
from devcamper.core.geopoint import GeoPointModel, Location

logger = logging.getLogger(__name__)

MAPQUEST_URL = "https://www.mapquestapi.com/geocoding/v1/address"
NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
USER_AGENT = "DevCamperAPI/1.0"


class GeocoderError(ErrorResponse):
    def __init__(self, message: str):
        super().__init__(message, status.HTTP_502_BAD_GATEWAY)


class GeocodeResult(BaseModel):
    latitude: float
    longitude: float
    formatted_address: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    country: Optional[str] = None

    def to_location(self) -> Location:
        return Location(
            coordinates=GeoPointModel(latitude=self.latitude, longitude=self.longitude),
            formatted_address=self.formatted_address,
            street=self.street,
            city=self.city,
            state=self.state,
            zipcode=self.zipcode,
            country=self.country,
        )


class Geocoder:
    """Resolves free-text addresses and postal codes to coordinates.

    Supports the MapQuest geocoding API (needs an API key) and the public
    OpenStreetMap Nominatim search endpoint.
    """

    def __init__(self, provider: str = "mapquest", api_key: Optional[str] = None,
                 timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.provider = provider
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    async def geocode(self, query: str) -> List[GeocodeResult]:
        if self.provider == "mapquest":
            if not self.api_key:
                raise GeocoderError("GEOCODER_API_KEY is not set")
            url = MAPQUEST_URL
            params = {"key": self.api_key, "location": query, "maxResults": 5}
            parse = self._parse_mapquest
        else:
            url = NOMINATIM_URL
            params = {"q": query, "format": "json", "addressdetails": 1, "limit": 5}
            parse = self._parse_nominatim

        logger.debug("Geocoding %r with %s", query, self.provider)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport,
                                         headers={"User-Agent": USER_AGENT}) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.error("Geocoding request for %r failed: %s", query, e)
            raise GeocoderError(f"Geocoding failed for {query}") from e

        results = parse(data)
        logger.debug("Geocoder returned %d result(s) for %r", len(results), query)
        return results

    @staticmethod
    def _parse_mapquest(data: dict) -> List[GeocodeResult]:
        results = []
        for result in data.get("results", []):
            for loc in result.get("locations", []):
                lat_lng = loc.get("latLng") or {}
                if "lat" not in lat_lng or "lng" not in lat_lng:
                    continue
                parts = [loc.get("street"), loc.get("adminArea5"), loc.get("adminArea3"), loc.get("postalCode")]
                results.append(
                    GeocodeResult(
                        latitude=lat_lng["lat"],
                        longitude=lat_lng["lng"],
                        formatted_address=", ".join(p for p in parts if p) or None,
                        street=loc.get("street") or None,
                        city=loc.get("adminArea5") or None,
                        state=loc.get("adminArea3") or None,
                        zipcode=loc.get("postalCode") or None,
                        country=loc.get("adminArea1") or None,
                    )
                )
        return results

    @staticmethod
    def _parse_nominatim(data: list) -> List[GeocodeResult]:
        results = []
        for item in data:
            address = item.get("address", {})
            results.append(
                GeocodeResult(
                    latitude=float(item["lat"]),
                    longitude=float(item["lon"]),
                    formatted_address=item.get("display_name"),
                    street=address.get("road"),
                    city=address.get("city") or address.get("town") or address.get("village"),
                    state=address.get("state"),
                    zipcode=address.get("postcode"),
                    country=(address.get("country_code") or "").upper() or None,
                )
            )
        return results


@lru_cache
def get_geocoder() -> Geocoder:
    settings = get_settings()
    return Geocoder(
        provider=settings.geocoder_provider,
        api_key=settings.geocoder_api_key,
        timeout=settings.geocoder_timeout,
    )
