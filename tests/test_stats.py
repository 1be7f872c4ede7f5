import random

import pytest

from auction_signal.scoring import compute_cpm_stats, round2


def test_empty_values_are_all_zero():
    stats = compute_cpm_stats([])
    assert stats.model_dump() == {"avg": 0.0, "max": 0.0, "min": 0.0, "median": 0.0}


def test_odd_length_median_is_middle_value():
    stats = compute_cpm_stats([3, 1, 2])
    assert stats.avg == 2.00
    assert stats.max == 3.00
    assert stats.min == 1.00
    assert stats.median == 2.00


def test_even_length_median_averages_central_values():
    stats = compute_cpm_stats([4, 1, 3, 2])
    assert stats.median == 2.50
    assert stats.avg == 2.50


def test_single_value():
    stats = compute_cpm_stats([0.456])
    assert stats.model_dump() == {"avg": 0.46, "max": 0.46, "min": 0.46, "median": 0.46}


def test_outputs_rounded_independently():
    stats = compute_cpm_stats([1.111, 2.226, 3.334])
    assert stats.min == 1.11
    assert stats.max == 3.33
    assert stats.median == 2.23
    assert stats.avg == 2.22


@pytest.mark.parametrize(
    "value, expected",
    [
        (2.675, 2.68),
        (1.005, 1.01),
        (0.125, 0.13),
        (-0.125, -0.13),
        (2.0, 2.0),
        (0.2089, 0.21),
    ],
)
def test_round2_rounds_halves_away_from_zero(value, expected):
    assert round2(value) == expected


def test_ordering_holds_for_random_positive_values():
    rng = random.Random(7)
    for _ in range(200):
        values = [rng.uniform(0.01, 50.0) for _ in range(rng.randint(1, 25))]
        stats = compute_cpm_stats(values)
        assert stats.min <= stats.median <= stats.max
        assert stats.min - 0.01 <= stats.avg <= stats.max + 0.01


def test_input_sequence_is_not_mutated():
    values = [3.0, 1.0, 2.0]
    compute_cpm_stats(values)
    assert values == [3.0, 1.0, 2.0]
