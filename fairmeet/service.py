"""
Request-level orchestration: raw addresses and intent text in, ranked venues out
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

from .errors import AddressNotFoundError, InputError
from .finder import FairMeetingPointFinder, validate_participants
from .models import GeocodedAddress, InterpretedIntent, MeetingPointResult, Participant, TransportMode

logger = logging.getLogger(__name__)


@dataclass
class MeetingPlan:
    result: MeetingPointResult
    intent: InterpretedIntent
    participants: List[Participant]

    @property
    def message(self):
        if self.result.venues:
            return None
        return f"No {self.intent.category} venues found in the search area. Try a different type of place."

    def to_dict(self) -> Dict:
        data = {
            **self.result.to_dict(),
            'participant_locations': [
                {'name': p.name, 'location': p.location.to_dict()} for p in self.participants
            ],
            'intent': self.intent.to_dict(),
        }
        if self.message:
            data['message'] = self.message
        return data


def parse_transport_mode(value) -> TransportMode:
    try:
        return TransportMode(str(value).lower())
    except ValueError:
        allowed = ', '.join(m.value for m in TransportMode)
        raise InputError(f"transport_mode must be one of: {allowed}")


def _require_text(value, message: str) -> str:
    """Non-blank string or InputError; numbers, lists and null are rejected too"""
    if not isinstance(value, str) or not value.strip():
        raise InputError(message)
    return value.strip()


def validate_inputs(participant_inputs: Sequence[Dict], intent_text: str) -> None:
    if not isinstance(participant_inputs, (list, tuple)) or len(participant_inputs) < 2:
        raise InputError("At least 2 participants required")
    for p in participant_inputs:
        if not isinstance(p, dict):
            raise InputError("Each participant must be an object")
        _require_text(p.get('name'), "Name is required")
        _require_text(p.get('address'), "Address is required")
        parse_transport_mode(p.get('transport_mode'))
    _require_text(intent_text, "Intent is required")


class MeetInTheMiddleService:
    def __init__(self, geocoder, classifier, finder: FairMeetingPointFinder):
        self.geocoder = geocoder
        self.classifier = classifier
        self.finder = finder

    async def geocode_async(self, address: str) -> GeocodedAddress:
        address = _require_text(address, "Address is required")
        return await self.geocoder.resolve_async(address)

    async def interpret_async(self, text: str) -> InterpretedIntent:
        text = _require_text(text, "Intent is required")
        return await self.classifier.classify_async(text)

    async def _resolve_participant(self, raw: Dict) -> Participant:
        name = _require_text(raw.get('name'), "Name is required")
        address = _require_text(raw.get('address'), "Address is required")
        try:
            geocoded = await self.geocoder.resolve_async(address)
        except AddressNotFoundError:
            raise InputError(
                f'Could not find location for "{name}": {address}. Please check the address.'
            ) from None
        return Participant(
            name=name,
            location=geocoded.location,
            transport_mode=parse_transport_mode(raw.get('transport_mode')),
            address=address,
        )

    async def plan_async(self, participant_inputs: Sequence[Dict], intent_text: str) -> MeetingPlan:
        validate_inputs(participant_inputs, intent_text)

        participants = list(await asyncio.gather(*[
            self._resolve_participant(p) for p in participant_inputs
        ]))
        validate_participants(participants)
        logger.info("Resolved %d participant addresses", len(participants))

        intent = await self.classifier.classify_async(intent_text)
        logger.info("Interpreted intent %r as category=%s", intent_text, intent.category)

        result = await self.finder.find_async(participants, intent)
        return MeetingPlan(result=result, intent=intent, participants=participants)

    def _run(self, coro):
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            return loop.run_until_complete(coro)
        finally:
            loop.close()

    def geocode(self, address: str) -> GeocodedAddress:
        return self._run(self.geocode_async(address))

    def interpret(self, text: str) -> InterpretedIntent:
        return self._run(self.interpret_async(text))

    def plan(self, participant_inputs: Sequence[Dict], intent_text: str) -> MeetingPlan:
        return self._run(self.plan_async(participant_inputs, intent_text))
