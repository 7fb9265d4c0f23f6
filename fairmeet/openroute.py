"""OpenRouteService matrix client for driving, walking and cycling travel times."""

import asyncio
import concurrent.futures
import logging
from typing import Optional, Sequence

import requests

from .config import DEFAULT_ORS_BASE_URL
from .errors import UpstreamUnavailableError
from .models import Coordinate, MatrixResult, TransportMode

logger = logging.getLogger(__name__)

ORS_PROFILES = {
    TransportMode.DRIVING: 'driving-car',
    TransportMode.WALKING: 'foot-walking',
    TransportMode.CYCLING: 'cycling-regular',
}


class OpenRouteServiceClient:
    def __init__(self, api_key: str, base_url: str = DEFAULT_ORS_BASE_URL, timeout: float = 30.0,
                 session: Optional[requests.Session] = None, max_workers: int = 8):
        if not api_key:
            raise ValueError("OpenRouteService API key is required")
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.executor = concurrent.futures.ThreadPoolExecutor(max_workers=max_workers)

    def cleanup(self):
        self.executor.shutdown(wait=True)

    @staticmethod
    def profile_for(mode: TransportMode) -> str:
        if mode not in ORS_PROFILES:
            raise ValueError(f"OpenRouteService has no profile for {mode.value}; use the transit provider")
        return ORS_PROFILES[mode]

    def compute_matrix(self, sources: Sequence[Coordinate], destinations: Sequence[Coordinate],
                       mode: TransportMode) -> MatrixResult:
        """Durations (s) and distances (m) from every source to every destination.

        ORS reports unroutable pairs as null; they are passed through as None.
        """
        profile = self.profile_for(mode)
        # ORS expects [lng, lat]
        locations = [[s.lng, s.lat] for s in sources] + [[d.lng, d.lat] for d in destinations]
        payload = {
            'locations': locations,
            'sources': list(range(len(sources))),
            'destinations': list(range(len(sources), len(sources) + len(destinations))),
            'metrics': ['duration', 'distance'],
        }
        url = f"{self.base_url}/v2/matrix/{profile}"
        try:
            response = self.session.post(
                url,
                json=payload,
                headers={'Authorization': self.api_key, 'Content-Type': 'application/json'},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.error("ORS matrix request failed (%s): %s", profile, e)
            raise UpstreamUnavailableError("OpenRouteService", str(e)) from e
        except ValueError as e:
            raise UpstreamUnavailableError("OpenRouteService", f"invalid JSON response: {e}") from e

        if 'durations' not in data:
            error = data.get('error')
            if isinstance(error, dict):
                error = error.get('message')
            raise UpstreamUnavailableError("OpenRouteService", error or "response missing durations")

        durations = data['durations']
        distances = data.get('distances') or [[None] * len(destinations) for _ in sources]
        return MatrixResult(durations=durations, distances=distances)

    async def compute_matrix_async(self, sources: Sequence[Coordinate], destinations: Sequence[Coordinate],
                                   mode: TransportMode) -> MatrixResult:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(self.executor, self.compute_matrix, sources, destinations, mode)
