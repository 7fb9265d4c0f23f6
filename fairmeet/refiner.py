"""
Coarse-to-fine search for the fairest meeting point.

A single wide grid is too coarse to land near the optimum, and a single fine
grid anchored at the centroid gets stuck when participants are spread
unevenly. The refiner first scores a wide sparse grid, then scores tight grids
around the few best coarse points and keeps the overall winner.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .geometry import DEDUPE_EPSILON_DEG, candidate_grid, centroid, dedupe_points
from .models import CandidatePoint, Coordinate, Participant
from .scoring import DEFAULT_CANDIDATE_WEIGHTS, CandidateWeights, score_candidates, select_top
from .travel_times import TravelTimeAggregator

logger = logging.getLogger(__name__)

FALLBACK_CENTROID = "centroid"
FALLBACK_COARSE = "coarse"


@dataclass(frozen=True)
class RefinerConfig:
    grid_size: int = 5
    coarse_radius_km: float = 20.0
    coarse_top_k: int = 3
    fine_radius_km: float = 3.0
    dedupe_epsilon_deg: float = DEDUPE_EPSILON_DEG
    weights: CandidateWeights = DEFAULT_CANDIDATE_WEIGHTS


@dataclass
class RefinementResult:
    point: Coordinate
    fallback: Optional[str] = None
    coarse_candidates: List[CandidatePoint] = field(default_factory=list)
    best_candidate: Optional[CandidatePoint] = None


class TwoPassRefiner:
    """Stateless between calls; one instance can serve concurrent requests"""

    def __init__(self, aggregator: TravelTimeAggregator, config: RefinerConfig = RefinerConfig()):
        self.aggregator = aggregator
        self.config = config

    async def _evaluate(self, participants: Sequence[Participant], points: List[Coordinate],
                        k: int) -> List[CandidatePoint]:
        durations = await self.aggregator.aggregate(participants, points)
        scored = score_candidates(points, durations)
        return select_top(scored, k, self.config.weights)

    async def refine(self, participants: Sequence[Participant]) -> RefinementResult:
        cfg = self.config
        center = centroid(participants)

        coarse_grid = candidate_grid(center, cfg.coarse_radius_km, cfg.grid_size)
        top_coarse = await self._evaluate(participants, coarse_grid, cfg.coarse_top_k)
        logger.info("Coarse pass: %d grid points, %d kept for refinement", len(coarse_grid), len(top_coarse))

        if not top_coarse:
            logger.warning("No coarse candidate reachable by every participant, falling back to the centroid")
            return RefinementResult(point=center, fallback=FALLBACK_CENTROID)

        fine_points: List[Coordinate] = []
        for winner in top_coarse:
            fine_points.extend(candidate_grid(winner.location, cfg.fine_radius_km, cfg.grid_size))
        fine_grid = dedupe_points(fine_points, cfg.dedupe_epsilon_deg)

        best = await self._evaluate(participants, fine_grid, 1)
        logger.info("Fine pass: %d grid points (%d before dedupe)", len(fine_grid), len(fine_points))

        if not best:
            logger.warning("Fine pass produced no reachable candidate, using the best coarse point")
            return RefinementResult(
                point=top_coarse[0].location,
                fallback=FALLBACK_COARSE,
                coarse_candidates=top_coarse,
                best_candidate=top_coarse[0],
            )

        return RefinementResult(
            point=best[0].location,
            coarse_candidates=top_coarse,
            best_candidate=best[0],
        )
