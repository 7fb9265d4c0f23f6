"""
Runtime settings read from the environment (and a local .env file)
"""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv

PLACEHOLDER_KEY = "your_api_key_here"
DEFAULT_ORS_BASE_URL = "https://api.openrouteservice.org"


def _key(name: str) -> Optional[str]:
    value = os.getenv(name)
    if not value or value == PLACEHOLDER_KEY:
        return None
    return value


def _int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass
class Settings:
    google_maps_api_key: Optional[str] = None
    ors_api_key: Optional[str] = None
    ors_base_url: str = DEFAULT_ORS_BASE_URL
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    nominatim_user_agent: str = "FairMeet/1.0 (Meet in the Middle App)"
    allowed_origins: Tuple[str, ...] = field(default_factory=lambda: ("http://localhost:5173",))
    log_file: Optional[str] = None
    venue_max_concurrency: int = 4
    host: str = "0.0.0.0"
    port: int = 5001

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()
        origins = os.getenv('ALLOWED_ORIGINS', 'http://localhost:5173')
        return cls(
            google_maps_api_key=_key('GOOGLE_MAPS_API_KEY'),
            ors_api_key=_key('ORS_API_KEY'),
            ors_base_url=os.getenv('ORS_BASE_URL', DEFAULT_ORS_BASE_URL).rstrip('/'),
            openai_api_key=_key('OPENAI_API_KEY'),
            openai_model=os.getenv('OPENAI_MODEL', 'gpt-4o-mini'),
            nominatim_user_agent=os.getenv('NOMINATIM_USER_AGENT', cls.nominatim_user_agent),
            allowed_origins=tuple(o.strip() for o in origins.split(',') if o.strip()),
            log_file=os.getenv('LOG_FILE') or None,
            venue_max_concurrency=max(1, _int('VENUE_MAX_CONCURRENCY', 4)),
            host=os.getenv('HOST', '0.0.0.0'),
            port=_int('PORT', 5001),
        )

    @property
    def missing_keys(self) -> Tuple[str, ...]:
        """Names of provider keys the full pipeline needs but which are not set"""
        missing = []
        if not self.google_maps_api_key:
            missing.append('GOOGLE_MAPS_API_KEY')
        if not self.ors_api_key:
            missing.append('ORS_API_KEY')
        return tuple(missing)
