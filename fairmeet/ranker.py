"""
Venue ranking by travel fairness and relevance
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .models import InterpretedIntent, Participant, RankedVenue, VenueCandidate
from .travel_times import TravelTimeAggregator

logger = logging.getLogger(__name__)

MAX_VENUES = 10
DEFAULT_MAX_CONCURRENCY = 4

BASE_RELEVANCE = 0.5
RATING_RELEVANCE = 0.3
CATEGORY_MATCH_RELEVANCE = 0.2


@dataclass(frozen=True)
class VenueWeights:
    fairness: float = 0.5
    total_time: float = 0.3
    # Added as a flat term: the per-venue relevance score is not part of the sort
    relevance: float = 0.2


DEFAULT_VENUE_WEIGHTS = VenueWeights()


def _round_minutes(seconds: float) -> int:
    # Halves round up, not to even
    return int(math.floor(seconds / 60 + 0.5))


def explain_fairness(durations: Sequence[float]) -> str:
    """One-line summary of how evenly the reachable travel times are spread"""
    spread = _round_minutes(max(durations) - min(durations))
    avg = _round_minutes(sum(durations) / len(durations))
    if spread <= 5:
        return f"Great fairness! Everyone arrives within 5 minutes of each other (avg {avg} min)."
    if spread <= 10:
        return f"Good balance. Travel times differ by about {spread} minutes (avg {avg} min)."
    return f"Some variation in travel times ({spread} min difference, avg {avg} min)."


def relevance_score(venue: VenueCandidate, intent: InterpretedIntent) -> float:
    score = BASE_RELEVANCE
    if venue.rating:
        score += (venue.rating / 10) * RATING_RELEVANCE
    if intent.category and intent.category.lower() in (venue.category or '').lower():
        score += CATEGORY_MATCH_RELEVANCE
    return score


def ranking_score(fairness: float, total_time_seconds: float,
                  weights: VenueWeights = DEFAULT_VENUE_WEIGHTS) -> float:
    return (
        weights.fairness * fairness
        + weights.total_time * (1 / (1 + total_time_seconds / 3600))
        + weights.relevance
    )


class VenueRanker:
    """Score venues near the chosen point; each venue is looked up independently"""

    def __init__(self, aggregator: TravelTimeAggregator, weights: VenueWeights = DEFAULT_VENUE_WEIGHTS,
                 max_results: int = MAX_VENUES, max_concurrency: int = DEFAULT_MAX_CONCURRENCY):
        self.aggregator = aggregator
        self.weights = weights
        self.max_results = max_results
        self.max_concurrency = max(1, max_concurrency)

    async def score_venue(self, venue: VenueCandidate, participants: Sequence[Participant],
                          intent: InterpretedIntent) -> Optional[RankedVenue]:
        travel_times = await self.aggregator.travel_times_to(participants, venue.location)
        durations = [t.duration_seconds for t in travel_times if t.reachable]
        if not durations:
            logger.debug("Skipping %s: no participant can reach it", venue.name)
            return None

        total = sum(durations)
        mean = total / len(durations)
        variance = sum((d - mean) ** 2 for d in durations) / len(durations)
        cv = math.sqrt(variance) / mean if mean > 0 else 0.0
        fairness = 1 / (1 + cv)

        return RankedVenue(
            venue=venue,
            travel_times=tuple(travel_times),
            variance=variance,
            total_time_seconds=total,
            max_time_seconds=max(durations),
            mean_time_seconds=mean,
            fairness_score=fairness,
            relevance_score=relevance_score(venue, intent),
            ranking_score=ranking_score(fairness, total, self.weights),
            explanation=explain_fairness(durations),
        )

    async def rank(self, venues: Sequence[VenueCandidate], participants: Sequence[Participant],
                   intent: InterpretedIntent) -> List[RankedVenue]:
        """Best-first list of at most ``max_results`` venues"""
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def guarded(venue: VenueCandidate) -> Optional[RankedVenue]:
            async with semaphore:
                try:
                    return await self.score_venue(venue, participants, intent)
                except Exception as e:
                    logger.warning("Dropping venue %s (%s): %s", venue.name, venue.id, e)
                    return None

        results = await asyncio.gather(*[guarded(v) for v in venues])
        ranked = [r for r in results if r is not None]
        ranked.sort(key=lambda r: r.ranking_score, reverse=True)
        logger.info("Ranked %d of %d venues", len(ranked), len(venues))
        return ranked[:self.max_results]
