"""
Domain value types shared by the meeting point search and venue ranking
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class TransportMode(str, Enum):
    DRIVING = "driving"
    WALKING = "walking"
    CYCLING = "cycling"
    TRANSIT = "transit"


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    def to_dict(self) -> Dict:
        return {'lat': self.lat, 'lng': self.lng}


@dataclass(frozen=True)
class Participant:
    name: str
    location: Coordinate
    transport_mode: TransportMode
    address: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'address': self.address,
            'location': self.location.to_dict(),
            'transport_mode': self.transport_mode.value,
        }


@dataclass(frozen=True)
class InterpretedIntent:
    """Structured reading of a free-text 'where should we meet' request"""
    category: str
    subcategory: Optional[str] = None
    keywords: Tuple[str, ...] = ()
    time_of_day: Optional[str] = None

    @property
    def search_keyword(self) -> Optional[str]:
        if self.subcategory:
            return self.subcategory
        return self.keywords[0] if self.keywords else None

    def to_dict(self) -> Dict:
        return {
            'category': self.category,
            'subcategory': self.subcategory,
            'keywords': list(self.keywords),
            'time_of_day': self.time_of_day,
        }


@dataclass(frozen=True)
class GeocodedAddress:
    location: Coordinate
    display_name: str


@dataclass
class MatrixResult:
    """Raw many-to-many matrix as reported by a routing provider.

    Rows follow the sources, columns the destinations. Entries of -1, any
    negative value or None mean the provider found no route.
    """
    durations: List[List[Optional[float]]]
    distances: List[List[Optional[float]]]


@dataclass(frozen=True)
class CandidatePoint:
    location: Coordinate
    travel_times: Tuple[float, ...]
    total_time: float
    mean_time: float
    max_time: float
    variance: float
    coefficient_of_variation: float
    combined_score: Optional[float] = None

    @classmethod
    def from_durations(cls, location: Coordinate, durations) -> "CandidatePoint":
        """Derive every statistic from the duration vector alone."""
        times = tuple(float(d) for d in durations)
        if not times:
            raise ValueError("A candidate needs at least one travel time")
        total = sum(times)
        mean = total / len(times)
        variance = sum((t - mean) ** 2 for t in times) / len(times)
        cv = math.sqrt(variance) / mean if mean > 0 else 0.0
        return cls(
            location=location,
            travel_times=times,
            total_time=total,
            mean_time=mean,
            max_time=max(times),
            variance=variance,
            coefficient_of_variation=cv,
        )

    @property
    def fairness_score(self) -> float:
        return 1.0 / (1.0 + self.coefficient_of_variation)


@dataclass(frozen=True)
class VenueCandidate:
    id: str
    name: str
    address: str
    location: Coordinate
    category: str
    rating: Optional[float] = None
    distance_meters: Optional[float] = None

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'address': self.address,
            'location': self.location.to_dict(),
            'category': self.category,
            'rating': self.rating,
            'distance_meters': self.distance_meters,
        }


@dataclass(frozen=True)
class TravelTimeResult:
    participant_name: str
    duration_seconds: Optional[float]
    distance_meters: Optional[float]
    transport_mode: TransportMode

    @property
    def reachable(self) -> bool:
        return self.duration_seconds is not None

    def to_dict(self) -> Dict:
        return {
            'participant_name': self.participant_name,
            'duration_seconds': self.duration_seconds,
            'duration_minutes': round(self.duration_seconds / 60, 1) if self.reachable else None,
            'distance_meters': self.distance_meters,
            'transport_mode': self.transport_mode.value,
            'reachable': self.reachable,
        }


@dataclass(frozen=True)
class RankedVenue:
    venue: VenueCandidate
    travel_times: Tuple[TravelTimeResult, ...]
    variance: float
    total_time_seconds: float
    max_time_seconds: float
    mean_time_seconds: float
    fairness_score: float
    relevance_score: float
    ranking_score: float
    explanation: str

    def to_dict(self) -> Dict:
        return {
            **self.venue.to_dict(),
            'travel_times': [t.to_dict() for t in self.travel_times],
            'variance': self.variance,
            'total_time_seconds': self.total_time_seconds,
            'total_time_minutes': round(self.total_time_seconds / 60, 1),
            'max_time_seconds': self.max_time_seconds,
            'mean_time_seconds': self.mean_time_seconds,
            'fairness_score': self.fairness_score,
            'relevance_score': self.relevance_score,
            'ranking_score': self.ranking_score,
            'explanation': self.explanation,
        }


@dataclass(frozen=True)
class SearchArea:
    center: Coordinate
    radius_meters: int

    def to_dict(self) -> Dict:
        return {'center': self.center.to_dict(), 'radius_meters': self.radius_meters}


@dataclass
class MeetingPointResult:
    venues: List[RankedVenue]
    search_area: SearchArea
    chosen_point: Coordinate
    # None when the fine pass produced the point, else 'centroid' or 'coarse'
    fallback: Optional[str] = None
    broadened_search: bool = False
    coarse_candidates: List[CandidatePoint] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'recommended_venues': [v.to_dict() for v in self.venues],
            'search_area': self.search_area.to_dict(),
            'chosen_point': self.chosen_point.to_dict(),
            'fallback': self.fallback,
            'broadened_search': self.broadened_search,
        }
