import googlemaps
import googlemaps.exceptions
from typing import Dict, List, Optional, Sequence
from geopy.distance import geodesic
import datetime as _dt
import asyncio
import concurrent.futures
import logging

from .errors import UpstreamUnavailableError
from .models import Coordinate, MatrixResult, TransportMode, VenueCandidate


logger = logging.getLogger(__name__)

# --- Module-level constants ---
DISTANCE_MATRIX_MAX_DEST = 25      # conservative chunk size for DM requests
DISTANCE_MATRIX_MAX_ELEMENTS = 100  # origins x destinations per DM request
PLACES_MAX_RADIUS_M = 50000
PLACES_MAX_RESULTS = 20
NO_ROUTE = -1

CATEGORY_TO_GOOGLE_TYPE = {
    'restaurant': 'restaurant',
    'cafe': 'cafe',
    'coffee': 'cafe',
    'bar': 'bar',
    'pub': 'bar',
    'park': 'park',
    'beach': 'natural_feature',
    'museum': 'museum',
    'library': 'library',
    'gym': 'gym',
    'shopping': 'shopping_mall',
    'entertainment': 'movie_theater',
    'cinema': 'movie_theater',
    'theater': 'movie_theater',
    'food': 'restaurant',
    'outdoors': 'park',
}

_GOOGLE_ERRORS = (
    googlemaps.exceptions.ApiError,
    googlemaps.exceptions.HTTPError,
    googlemaps.exceptions.Timeout,
    googlemaps.exceptions.TransportError,
)


def google_place_type(category: Optional[str]) -> str:
    """Map an interpreted intent category to a Google Places type"""
    return CATEGORY_TO_GOOGLE_TYPE.get((category or '').lower(), 'restaurant')


def format_place_type(place_type: Optional[str]) -> str:
    """'coffee_shop' -> 'Coffee Shop'"""
    if not place_type:
        return 'Place'
    return ' '.join(word[:1].upper() + word[1:] for word in place_type.split('_'))


def _fmt(pt: Coordinate) -> str:
    return f"{pt.lat},{pt.lng}"


class GoogleMapsService:
    """Transit travel times and venue discovery backed by Google Maps APIs"""

    def __init__(self, api_key: Optional[str] = None, client=None, max_workers: int = 10):
        if client is None:
            if not api_key or api_key == "your_api_key_here":
                raise ValueError("Valid Google Maps API key is required")
            client = googlemaps.Client(key=api_key)
        self.client = client
        self.executor = concurrent.futures.ThreadPoolExecutor(max_workers=max_workers)

    def cleanup(self):
        """Clean up resources"""
        if hasattr(self, 'executor'):
            self.executor.shutdown(wait=True)

    def get_transit_times_matrix(self, origins: Sequence[Coordinate], destinations: Sequence[Coordinate],
                                 departure_time=None) -> MatrixResult:
        """Batch transit durations using Distance Matrix API. Rows = origins, cols = destinations.
        Values are seconds/meters, or -1 where Google reports no route.
        Chunks destinations and origins to respect API limits.
        """
        rows = len(origins)
        cols = len(destinations)
        durations: List[List[float]] = [[NO_ROUTE] * cols for _ in range(rows)]
        distances: List[List[float]] = [[NO_ROUTE] * cols for _ in range(rows)]
        if not origins or not destinations:
            return MatrixResult(durations=durations, distances=distances)

        departure_time = departure_time or _dt.datetime.now()
        try:
            for d_start in range(0, cols, DISTANCE_MATRIX_MAX_DEST):
                dest_chunk = destinations[d_start:d_start + DISTANCE_MATRIX_MAX_DEST]
                origins_per_request = max(1, min(25, DISTANCE_MATRIX_MAX_ELEMENTS // len(dest_chunk)))
                for o_start in range(0, rows, origins_per_request):
                    origin_chunk = origins[o_start:o_start + origins_per_request]
                    dm = self.client.distance_matrix(
                        origins=[_fmt(o) for o in origin_chunk],
                        destinations=[_fmt(d) for d in dest_chunk],
                        mode="transit",
                        departure_time=departure_time,
                    )
                    for i, row in enumerate((dm or {}).get('rows', [])):
                        for j, el in enumerate(row.get('elements', [])):
                            if el and el.get('status') == 'OK' and 'duration' in el:
                                durations[o_start + i][d_start + j] = el['duration']['value']
                                distances[o_start + i][d_start + j] = el.get('distance', {}).get('value', NO_ROUTE)
        except _GOOGLE_ERRORS as e:
            logger.error(f"Distance Matrix error: {e}")
            raise UpstreamUnavailableError("Google Distance Matrix", str(e)) from e

        return MatrixResult(durations=durations, distances=distances)

    def compute_matrix(self, sources: Sequence[Coordinate], destinations: Sequence[Coordinate],
                       mode: TransportMode) -> MatrixResult:
        if mode != TransportMode.TRANSIT:
            raise ValueError(f"GoogleMapsService only serves transit matrices, got {mode.value}")
        return self.get_transit_times_matrix(sources, destinations)

    def _to_venue(self, place: Dict, center: Coordinate, address_keys) -> VenueCandidate:
        location = Coordinate(
            lat=place['geometry']['location']['lat'],
            lng=place['geometry']['location']['lng'],
        )
        address = next((place[k] for k in address_keys if place.get(k)), 'Address not available')
        types = place.get('types') or []
        return VenueCandidate(
            id=place.get('place_id', ''),
            name=place['name'],
            address=address,
            location=location,
            category=format_place_type(types[0] if types else None),
            rating=place.get('rating'),
            distance_meters=round(geodesic((center.lat, center.lng), (location.lat, location.lng)).meters, 1),
        )

    def find_places_nearby(self, location: Coordinate, radius: int = 3000, category: Optional[str] = None,
                           keyword: Optional[str] = None) -> List[VenueCandidate]:
        """
        Find places of the given intent category near a location
        """
        params = {
            'location': (location.lat, location.lng),
            'radius': min(int(radius), PLACES_MAX_RADIUS_M),
            'type': google_place_type(category),
        }
        if keyword:
            params['keyword'] = keyword
        try:
            places_result = self.client.places_nearby(**params)
        except _GOOGLE_ERRORS as e:
            logger.error(f"Places search error: {e}")
            raise UpstreamUnavailableError("Google Places", str(e)) from e

        return [
            self._to_venue(place, location, ('vicinity', 'formatted_address'))
            for place in places_result.get('results', [])[:PLACES_MAX_RESULTS]
        ]

    def text_search_places(self, query: str, location: Coordinate, radius: int = 5000) -> List[VenueCandidate]:
        """Free-text place search biased towards a location"""
        try:
            places_result = self.client.places(
                query=query,
                location=(location.lat, location.lng),
                radius=min(int(radius), PLACES_MAX_RADIUS_M),
            )
        except _GOOGLE_ERRORS as e:
            logger.error(f"Places text search error: {e}")
            raise UpstreamUnavailableError("Google Places", str(e)) from e

        return [
            self._to_venue(place, location, ('formatted_address', 'vicinity'))
            for place in places_result.get('results', [])[:PLACES_MAX_RESULTS]
        ]

    # Async wrapper methods for parallel execution
    async def compute_matrix_async(self, sources: Sequence[Coordinate], destinations: Sequence[Coordinate],
                                   mode: TransportMode) -> MatrixResult:
        """Async wrapper for compute_matrix"""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(self.executor, self.compute_matrix, sources, destinations, mode)

    async def search_nearby_async(self, center: Coordinate, radius: int, category: Optional[str] = None,
                                  keyword: Optional[str] = None) -> List[VenueCandidate]:
        """Async wrapper for find_places_nearby"""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(self.executor, self.find_places_nearby, center, radius, category, keyword)

    async def text_search_async(self, query: str, center: Coordinate, radius: int) -> List[VenueCandidate]:
        """Async wrapper for text_search_places"""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(self.executor, self.text_search_places, query, center, radius)
