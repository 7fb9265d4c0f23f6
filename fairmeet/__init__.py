"""Fair Meet: find a meeting point that is fair in travel time for everyone."""

from .finder import FairMeetingPointFinder
from .models import Coordinate, InterpretedIntent, Participant, TransportMode

__all__ = [
    "Coordinate",
    "FairMeetingPointFinder",
    "InterpretedIntent",
    "Participant",
    "TransportMode",
]
