"""
Candidate scoring and selection.

Scoring turns per-participant durations into dispersion and centrality
statistics; selection ranks a candidate set by a weighted sum of the
normalised statistics. The weights live in ``CandidateWeights`` so a different
trade-off can be plugged in without touching the refiner.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Sequence

from .models import CandidatePoint, Coordinate
from .travel_times import UNREACHABLE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateWeights:
    # Low dispersion matters most, then overall efficiency, then the worst individual trip
    variance: float = 0.5
    total_time: float = 0.3
    max_time: float = 0.2


DEFAULT_CANDIDATE_WEIGHTS = CandidateWeights()


def score_candidates(destinations: Sequence[Coordinate],
                     durations_by_participant: Dict[str, List[float]]) -> List[CandidatePoint]:
    """
    Build a CandidatePoint for every destination all participants can reach.

    A destination with even one unreachable participant is dropped outright;
    partial fairness over a subset of participants is never reported.
    """
    vectors = list(durations_by_participant.values())
    scored: List[CandidatePoint] = []
    dropped = 0
    for index, destination in enumerate(destinations):
        times = [vector[index] for vector in vectors]
        if not times or any(t == UNREACHABLE for t in times):
            dropped += 1
            continue
        scored.append(CandidatePoint.from_durations(destination, times))
    if dropped:
        logger.debug("Dropped %d of %d candidates with unreachable participants", dropped, len(destinations))
    return scored


def combined_scores(candidates: Sequence[CandidatePoint],
                    weights: CandidateWeights = DEFAULT_CANDIDATE_WEIGHTS) -> List[float]:
    """Weighted score per candidate, normalised against the maxima of this set (higher is better)"""
    if not candidates:
        return []
    max_variance = max(c.variance for c in candidates)
    max_total = max(c.total_time for c in candidates)
    max_max = max(c.max_time for c in candidates)

    scores = []
    for c in candidates:
        norm_variance = c.variance / max_variance if max_variance > 0 else 0.0
        norm_total = c.total_time / max_total if max_total > 0 else 0.0
        norm_max = c.max_time / max_max if max_max > 0 else 0.0
        scores.append(
            weights.variance * (1 - norm_variance)
            + weights.total_time * (1 - norm_total)
            + weights.max_time * (1 - norm_max)
        )
    return scores


def select_top(candidates: Sequence[CandidatePoint], k: int,
               weights: CandidateWeights = DEFAULT_CANDIDATE_WEIGHTS) -> List[CandidatePoint]:
    """Top ``k`` candidates by combined score; ties keep their encounter order"""
    if not candidates or k <= 0:
        return []
    scored = [
        replace(c, combined_score=score)
        for c, score in zip(candidates, combined_scores(candidates, weights))
    ]
    scored.sort(key=lambda c: c.combined_score, reverse=True)
    return scored[:k]
