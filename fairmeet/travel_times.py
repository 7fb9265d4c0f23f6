"""
Multi-modal travel time aggregation.

Participants are grouped by transport mode and each group is sent to its
routing provider as a single many-to-many matrix request. Transit goes to the
transit provider (Google Distance Matrix); every other mode goes to the generic
routing provider (OpenRouteService). Requests for different modes run
concurrently and are joined before anything is scored.
"""

import asyncio
import logging
import math
from collections import OrderedDict
from typing import Dict, List, Optional, Sequence

from .errors import UpstreamUnavailableError
from .models import Coordinate, MatrixResult, Participant, TransportMode, TravelTimeResult

logger = logging.getLogger(__name__)

UNREACHABLE = math.inf


def normalize_duration(value) -> float:
    """Map provider 'no route' markers (None, -1, any negative) to UNREACHABLE"""
    if value is None:
        return UNREACHABLE
    value = float(value)
    if value < 0 or math.isnan(value):
        return UNREACHABLE
    return value


def _normalize_distance(value) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    return None if value < 0 else value


def group_by_mode(participants: Sequence[Participant]) -> "OrderedDict[TransportMode, List[Participant]]":
    groups: "OrderedDict[TransportMode, List[Participant]]" = OrderedDict()
    for p in participants:
        groups.setdefault(p.transport_mode, []).append(p)
    return groups


class TravelTimeAggregator:
    """Fan matrix requests out by transport mode and merge the answers per participant"""

    def __init__(self, routing, transit):
        self.routing = routing
        self.transit = transit

    def _provider_for(self, mode: TransportMode):
        return self.transit if mode == TransportMode.TRANSIT else self.routing

    async def _matrix_for_group(self, mode: TransportMode, group: List[Participant],
                                destinations: Sequence[Coordinate]) -> MatrixResult:
        provider = self._provider_for(mode)
        sources = [p.location for p in group]
        result = await provider.compute_matrix_async(sources, list(destinations), mode)
        if len(result.durations) != len(group) or any(len(row) != len(destinations) for row in result.durations):
            raise UpstreamUnavailableError(
                f"{mode.value} routing",
                f"expected a {len(group)}x{len(destinations)} matrix",
            )
        return result

    async def _matrices(self, participants: Sequence[Participant], destinations: Sequence[Coordinate]):
        groups = group_by_mode(participants)
        logger.debug(
            "Requesting %d matrix call(s) for %d participants x %d destinations",
            len(groups), len(participants), len(destinations),
        )
        results = await asyncio.gather(*[
            self._matrix_for_group(mode, group, destinations)
            for mode, group in groups.items()
        ])
        return list(zip(groups.values(), results))

    async def aggregate(self, participants: Sequence[Participant],
                        destinations: Sequence[Coordinate]) -> Dict[str, List[float]]:
        """
        Return participant name -> durations (seconds), one per destination in
        destination order. Missing routes come back as UNREACHABLE. Keys follow
        the order of ``participants``.
        """
        if not destinations:
            return {p.name: [] for p in participants}

        by_name: Dict[str, List[float]] = {}
        for group, matrix in await self._matrices(participants, destinations):
            for i, participant in enumerate(group):
                by_name[participant.name] = [normalize_duration(d) for d in matrix.durations[i]]
        return {p.name: by_name[p.name] for p in participants}

    async def travel_times_to(self, participants: Sequence[Participant],
                              destination: Coordinate) -> List[TravelTimeResult]:
        """Per-participant travel figures to one destination, in participant order"""
        results: Dict[str, TravelTimeResult] = {}
        for group, matrix in await self._matrices(participants, [destination]):
            for i, participant in enumerate(group):
                duration = normalize_duration(matrix.durations[i][0])
                distances = matrix.distances[i] if i < len(matrix.distances) else []
                results[participant.name] = TravelTimeResult(
                    participant_name=participant.name,
                    duration_seconds=None if duration == UNREACHABLE else duration,
                    distance_meters=_normalize_distance(distances[0]) if distances else None,
                    transport_mode=participant.transport_mode,
                )
        return [results[p.name] for p in participants]
