import pytest

from fairmeet.errors import AddressNotFoundError, InputError
from fairmeet.finder import FairMeetingPointFinder
from fairmeet.models import InterpretedIntent, TransportMode
from fairmeet.service import MeetInTheMiddleService, parse_transport_mode, validate_inputs

from conftest import (
    LONDON_A,
    LONDON_B,
    LONDON_C,
    StubClassifier,
    StubDiscovery,
    StubGeocoder,
    run,
    venue,
)

ADDRESSES = {
    "10 Downing St": LONDON_A,
    "King's Cross": LONDON_B,
    "Vauxhall": LONDON_C,
}

PEOPLE = [
    {"name": "Ana", "address": "10 Downing St", "transport_mode": "driving"},
    {"name": "Ben", "address": "King's Cross", "transport_mode": "walking"},
    {"name": "Cat", "address": "Vauxhall", "transport_mode": "CYCLING"},
]


@pytest.fixture
def service(straight_line_aggregator):
    def build(nearby=None, intent=InterpretedIntent(category="cafe", keywords=("coffee",))):
        discovery = StubDiscovery(nearby=nearby)
        finder = FairMeetingPointFinder(straight_line_aggregator, discovery)
        return MeetInTheMiddleService(StubGeocoder(ADDRESSES), StubClassifier(intent), finder)
    return build


def test_parse_transport_mode_is_case_insensitive():
    assert parse_transport_mode("Transit") == TransportMode.TRANSIT


def test_unknown_transport_mode_is_rejected():
    with pytest.raises(InputError, match="transport_mode"):
        parse_transport_mode("teleport")


@pytest.mark.parametrize("people, intent, message", [
    (PEOPLE[:1], "coffee", "At least 2 participants"),
    ([{"name": "", "address": "x", "transport_mode": "driving"}] * 2, "coffee", "Name is required"),
    ([{"name": "A", "address": " ", "transport_mode": "driving"}] * 2, "coffee", "Address is required"),
    (PEOPLE, "   ", "Intent is required"),
    ("not a list", "coffee", "At least 2 participants"),
    ([{"name": 123, "address": "x", "transport_mode": "driving"}, PEOPLE[1]], "coffee", "Name is required"),
    ([{"name": "A", "address": ["x"], "transport_mode": "driving"}, PEOPLE[1]], "coffee", "Address is required"),
    (PEOPLE, 5, "Intent is required"),
])
def test_validate_inputs(people, intent, message):
    with pytest.raises(InputError, match=message):
        validate_inputs(people, intent)


def test_plan_end_to_end(service):
    cafe = venue("cafe-1", LONDON_A, category="Cafe", rating=4.5)
    svc = service(nearby=[cafe])
    plan = svc.plan(PEOPLE, "somewhere for a flat white")

    assert [p.name for p in plan.participants] == ["Ana", "Ben", "Cat"]
    assert plan.participants[2].transport_mode == TransportMode.CYCLING
    assert plan.participants[0].address == "10 Downing St"
    assert plan.message is None
    assert svc.classifier.calls == ["somewhere for a flat white"]

    data = plan.to_dict()
    assert [v["id"] for v in data["recommended_venues"]] == ["cafe-1"]
    assert data["intent"]["category"] == "cafe"
    assert data["participant_locations"][1] == {"name": "Ben", "location": LONDON_B.to_dict()}
    assert "message" not in data


def test_empty_plan_carries_a_message(service):
    plan = service().plan(PEOPLE, "coffee")
    assert plan.result.venues == []
    assert "No cafe venues found" in plan.to_dict()["message"]


def test_unknown_address_names_the_participant(service):
    people = PEOPLE[:2] + [{"name": "Dee", "address": "Atlantis", "transport_mode": "driving"}]
    with pytest.raises(InputError, match='"Dee": Atlantis') as info:
        service().plan(people, "coffee")
    assert not isinstance(info.value, AddressNotFoundError)


def test_duplicate_names_are_rejected(service):
    people = [PEOPLE[0], dict(PEOPLE[1], name="Ana")]
    with pytest.raises(InputError, match="unique"):
        service().plan(people, "coffee")


def test_geocode_passes_not_found_through(service):
    svc = service()
    assert svc.geocode("Vauxhall").location == LONDON_C
    with pytest.raises(AddressNotFoundError):
        svc.geocode("Atlantis")
    with pytest.raises(InputError, match="Address is required"):
        svc.geocode("")


def test_interpret(service):
    svc = service()
    assert run(svc.interpret_async("coffee")).category == "cafe"
    with pytest.raises(InputError, match="Intent is required"):
        svc.interpret(" ")


def test_non_string_fields_are_input_errors(service):
    svc = service()
    people = [{"name": 123, "address": "Vauxhall", "transport_mode": "driving"}, PEOPLE[1]]
    with pytest.raises(InputError, match="Name is required"):
        svc.plan(people, "coffee")
    with pytest.raises(InputError, match="Intent is required"):
        svc.interpret(5)
    with pytest.raises(InputError, match="Address is required"):
        svc.geocode(42)
    assert svc.geocoder.calls == []
    assert svc.classifier.calls == []
