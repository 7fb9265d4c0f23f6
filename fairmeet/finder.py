"""
Find a meeting point that is fair in travel time and rank venues around it
"""

import asyncio
import logging
from typing import Optional, Sequence

from .errors import InputError
from .models import (
    Coordinate,
    InterpretedIntent,
    MeetingPointResult,
    Participant,
    SearchArea,
)
from .ranker import VenueRanker
from .refiner import TwoPassRefiner
from .travel_times import TravelTimeAggregator

logger = logging.getLogger(__name__)

VENUE_SEARCH_RADIUS_METERS = 3000
BROADENED_SEARCH_FACTOR = 2


def validate_participants(participants: Sequence[Participant]) -> None:
    if len(participants) < 2:
        raise InputError("At least 2 participants required")
    names = [p.name for p in participants]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise InputError(f"Participant names must be unique: {', '.join(duplicates)}")


class FairMeetingPointFinder:
    """Runs the two-pass point search, venue discovery and venue ranking for one request"""

    def __init__(self, aggregator: TravelTimeAggregator, discovery,
                 refiner: Optional[TwoPassRefiner] = None,
                 ranker: Optional[VenueRanker] = None,
                 venue_search_radius_m: int = VENUE_SEARCH_RADIUS_METERS):
        self.aggregator = aggregator
        self.discovery = discovery
        self.refiner = refiner or TwoPassRefiner(aggregator)
        self.ranker = ranker or VenueRanker(aggregator)
        self.venue_search_radius_m = venue_search_radius_m

    def find(self, participants: Sequence[Participant], intent: InterpretedIntent) -> MeetingPointResult:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            return loop.run_until_complete(self.find_async(participants, intent))
        finally:
            loop.close()

    async def _discover(self, point: Coordinate, intent: InterpretedIntent):
        venues = await self.discovery.search_nearby_async(
            point,
            self.venue_search_radius_m,
            intent.category,
            intent.search_keyword,
        )
        if venues:
            return venues, self.venue_search_radius_m, False

        broader_radius = self.venue_search_radius_m * BROADENED_SEARCH_FACTOR
        logger.info(
            "No %s venues within %dm, retrying as a text search within %dm",
            intent.category, self.venue_search_radius_m, broader_radius,
        )
        venues = await self.discovery.text_search_async(intent.category, point, broader_radius)
        return venues, broader_radius, True

    async def find_async(self, participants: Sequence[Participant],
                         intent: InterpretedIntent) -> MeetingPointResult:
        validate_participants(participants)
        participants = list(participants)

        refined = await self.refiner.refine(participants)
        logger.info(
            "Chosen point lat=%.5f lng=%.5f (fallback=%s)",
            refined.point.lat, refined.point.lng, refined.fallback,
        )

        venues, radius, broadened = await self._discover(refined.point, intent)
        ranked = await self.ranker.rank(venues, participants, intent) if venues else []
        if not ranked:
            logger.info("No %s venues found around the chosen point", intent.category)

        return MeetingPointResult(
            venues=ranked,
            search_area=SearchArea(center=refined.point, radius_meters=radius),
            chosen_point=refined.point,
            fallback=refined.fallback,
            broadened_search=broadened,
            coarse_candidates=refined.coarse_candidates,
        )
