"""
Address resolution through OpenStreetMap Nominatim.

Nominatim's usage policy allows roughly one request per second, so every
lookup goes through a geopy ``RateLimiter`` owned by the geocoder instance,
and results are cached per instance.
"""

import asyncio
import concurrent.futures
import logging
import threading
from typing import Dict, Optional

from geopy.exc import GeocoderServiceError
from geopy.extra.rate_limiter import RateLimiter
from geopy.geocoders import Nominatim

from .errors import AddressNotFoundError, UpstreamUnavailableError
from .models import Coordinate, GeocodedAddress

logger = logging.getLogger(__name__)

MIN_REQUEST_INTERVAL_SECONDS = 1.1


class NominatimGeocoder:
    def __init__(self, user_agent: str, min_delay_seconds: float = MIN_REQUEST_INTERVAL_SECONDS,
                 timeout: float = 10.0, geolocator=None):
        self.geolocator = geolocator or Nominatim(user_agent=user_agent, timeout=timeout)
        self._geocode = RateLimiter(
            self.geolocator.geocode,
            min_delay_seconds=min_delay_seconds,
            max_retries=0,
            swallow_exceptions=False,
        )
        self._cache: Dict[str, GeocodedAddress] = {}
        # RateLimiter spaces calls but is not meant to be entered from many threads at once
        self._lock = threading.Lock()
        self.executor = concurrent.futures.ThreadPoolExecutor(max_workers=2)

    def cleanup(self):
        self.executor.shutdown(wait=True)

    @staticmethod
    def cache_key(address: str) -> str:
        return address.lower().strip()

    def cached(self, address: str) -> Optional[GeocodedAddress]:
        return self._cache.get(self.cache_key(address))

    def resolve(self, address: str) -> GeocodedAddress:
        """Resolve a free-text address, raising AddressNotFoundError when nothing matches"""
        key = self.cache_key(address)
        with self._lock:
            if key in self._cache:
                return self._cache[key]
            try:
                location = self._geocode(address, exactly_one=True)
            except GeocoderServiceError as e:
                logger.error("Geocoding failed for %r: %s", address, e)
                raise UpstreamUnavailableError("Nominatim", str(e)) from e

            if location is None:
                logger.warning("No geocoding match for %r", address)
                raise AddressNotFoundError(address)

            result = GeocodedAddress(
                location=Coordinate(lat=float(location.latitude), lng=float(location.longitude)),
                display_name=location.address,
            )
            self._cache[key] = result
            return result

    async def resolve_async(self, address: str) -> GeocodedAddress:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(self.executor, self.resolve, address)
