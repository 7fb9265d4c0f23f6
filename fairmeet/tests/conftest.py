import asyncio

import pytest
from geopy.distance import geodesic

from fairmeet.models import (
    Coordinate,
    GeocodedAddress,
    InterpretedIntent,
    MatrixResult,
    Participant,
    TransportMode,
    VenueCandidate,
)
from fairmeet.travel_times import TravelTimeAggregator

# 10 m/s, so durations are proportional to straight-line distance
METERS_PER_SECOND = 10.0

LONDON_A = Coordinate(51.50, -0.12)
LONDON_B = Coordinate(51.52, -0.10)
LONDON_C = Coordinate(51.49, -0.14)


def straight_line_seconds(a: Coordinate, b: Coordinate) -> float:
    return geodesic((a.lat, a.lng), (b.lat, b.lng)).meters / METERS_PER_SECOND


def run(coro):
    return asyncio.run(coro)


class StraightLineRouting:
    """Routing stub: travel time is straight-line distance at a fixed speed"""

    def __init__(self):
        self.calls = []

    async def compute_matrix_async(self, sources, destinations, mode):
        self.calls.append((list(sources), list(destinations), mode))
        durations = [[straight_line_seconds(s, d) for d in destinations] for s in sources]
        distances = [[geodesic((s.lat, s.lng), (d.lat, d.lng)).meters for d in destinations] for s in sources]
        return MatrixResult(durations=durations, distances=distances)


class NoRouteRouting:
    """Routing stub that never finds a route, like a transit ZERO_RESULTS answer"""

    def __init__(self, marker=-1):
        self.calls = []
        self.marker = marker

    async def compute_matrix_async(self, sources, destinations, mode):
        self.calls.append((list(sources), list(destinations), mode))
        return MatrixResult(
            durations=[[self.marker] * len(destinations) for _ in sources],
            distances=[[self.marker] * len(destinations) for _ in sources],
        )


class FixedDurationRouting:
    """Routing stub returning a fixed duration per source, whatever the destination"""

    def __init__(self, by_source):
        self.by_source = by_source
        self.calls = []

    async def compute_matrix_async(self, sources, destinations, mode):
        self.calls.append((list(sources), list(destinations), mode))
        rows = [[self.by_source[s]] * len(destinations) for s in sources]
        return MatrixResult(durations=rows, distances=[[1000.0] * len(destinations) for _ in sources])


class StubDiscovery:
    def __init__(self, nearby=None, text=None):
        self.nearby = list(nearby or [])
        self.text = list(text or [])
        self.nearby_calls = []
        self.text_calls = []

    async def search_nearby_async(self, center, radius, category=None, keyword=None):
        self.nearby_calls.append((center, radius, category, keyword))
        return list(self.nearby)

    async def text_search_async(self, query, center, radius):
        self.text_calls.append((query, center, radius))
        return list(self.text)


class StubGeocoder:
    def __init__(self, known):
        self.known = known
        self.calls = []

    async def resolve_async(self, address):
        from fairmeet.errors import AddressNotFoundError

        self.calls.append(address)
        if address not in self.known:
            raise AddressNotFoundError(address)
        return GeocodedAddress(location=self.known[address], display_name=f"{address}, London")


class StubClassifier:
    def __init__(self, intent):
        self.intent = intent
        self.calls = []

    async def classify_async(self, text):
        self.calls.append(text)
        return self.intent


def participant(name, location, mode=TransportMode.DRIVING):
    return Participant(name=name, location=location, transport_mode=mode)


def venue(venue_id, location, category="Cafe", rating=None, name=None):
    return VenueCandidate(
        id=venue_id,
        name=name or f"Venue {venue_id}",
        address=f"{venue_id} High Street",
        location=location,
        category=category,
        rating=rating,
    )


@pytest.fixture
def london_participants():
    return [
        participant("Ana", LONDON_A),
        participant("Ben", LONDON_B),
        participant("Cat", LONDON_C),
    ]


@pytest.fixture
def cafe_intent():
    return InterpretedIntent(category="cafe", keywords=("coffee",))


@pytest.fixture
def straight_line_aggregator():
    return TravelTimeAggregator(routing=StraightLineRouting(), transit=StraightLineRouting())
