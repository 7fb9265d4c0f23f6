import math

import pytest

from fairmeet.models import CandidatePoint, Coordinate
from fairmeet.scoring import CandidateWeights, combined_scores, score_candidates, select_top

P1 = Coordinate(51.50, -0.12)
P2 = Coordinate(51.51, -0.11)
P3 = Coordinate(51.52, -0.10)


def test_equal_durations_have_zero_dispersion():
    [candidate] = score_candidates([P1], {"a": [600.0], "b": [600.0], "c": [600.0]})
    assert candidate.variance == 0
    assert candidate.coefficient_of_variation == 0
    assert candidate.fairness_score == 1.0


def test_statistics_use_population_variance():
    [candidate] = score_candidates([P1], {"a": [300.0], "b": [900.0]})
    assert candidate.total_time == 1200
    assert candidate.mean_time == 600
    assert candidate.max_time == 900
    assert candidate.variance == pytest.approx(90000)
    assert candidate.coefficient_of_variation == pytest.approx(0.5)
    assert candidate.fairness_score == pytest.approx(1 / 1.5)
    assert candidate.travel_times == (300.0, 900.0)


def test_zero_mean_gives_zero_coefficient():
    [candidate] = score_candidates([P1], {"a": [0.0], "b": [0.0]})
    assert candidate.coefficient_of_variation == 0
    assert candidate.fairness_score == 1.0


def test_unreachable_destination_is_dropped():
    scored = score_candidates(
        [P1, P2, P3],
        {"a": [100.0, math.inf, 300.0], "b": [200.0, 200.0, 300.0]},
    )
    assert [c.location for c in scored] == [P1, P3]


def test_all_unreachable_yields_nothing():
    assert score_candidates([P1], {"a": [math.inf], "b": [10.0]}) == []


def test_statistics_are_idempotent():
    first = CandidatePoint.from_durations(P1, [120.0, 480.0, 300.0])
    second = CandidatePoint.from_durations(first.location, first.travel_times)
    assert first == second


def test_select_top_on_empty_input():
    assert select_top([], 3) == []


def test_combined_score_weights():
    fair = CandidatePoint.from_durations(P1, [300.0, 300.0])
    unfair = CandidatePoint.from_durations(P2, [500.0, 700.0])
    scores = combined_scores([fair, unfair])
    # fair: 0.5 * 1 + 0.3 * (1 - 600/1200) + 0.2 * (1 - 300/700)
    assert scores[0] == pytest.approx(0.5 + 0.15 + 0.2 * (1 - 300 / 700))
    assert scores[1] == pytest.approx(0.0)


def test_select_top_returns_all_sorted_when_k_is_large():
    a = CandidatePoint.from_durations(P1, [500.0, 700.0])
    b = CandidatePoint.from_durations(P2, [300.0, 300.0])
    c = CandidatePoint.from_durations(P3, [400.0, 420.0])
    top = select_top([a, b, c], 10)
    assert [t.location for t in top] == [P2, P3, P1]
    scores = [t.combined_score for t in top]
    assert scores == sorted(scores, reverse=True)


def test_select_top_keeps_encounter_order_on_ties():
    a = CandidatePoint.from_durations(P1, [300.0, 300.0])
    b = CandidatePoint.from_durations(P2, [300.0, 300.0])
    c = CandidatePoint.from_durations(P3, [300.0, 300.0])
    assert [t.location for t in select_top([a, b, c], 2)] == [P1, P2]


def test_custom_weights_change_the_winner():
    # Low total but unequal versus higher total but perfectly equal
    quick = CandidatePoint.from_durations(P1, [100.0, 300.0])
    even = CandidatePoint.from_durations(P2, [500.0, 500.0])
    assert select_top([quick, even], 1)[0].location == P2
    efficiency_only = CandidateWeights(variance=0.0, total_time=1.0, max_time=0.0)
    assert select_top([quick, even], 1, efficiency_only)[0].location == P1
