from datetime import date, datetime, timedelta, timezone

import numpy as np
import pytest

from lostfound_matcher.config import MatchWeights
from lostfound_matcher.matcher import (
    composite_score,
    cosine,
    days_between,
    location_similarity,
    round_half_up,
    similarity_percentage,
    temporal_proximity,
)


def test_cosine_basic_and_degenerate():
    a = np.array([1.0, 0.0])
    assert cosine(a, a) == pytest.approx(1.0)
    assert cosine(a, np.array([0.0, 1.0])) == pytest.approx(0.0)
    assert cosine(a, np.array([-1.0, 0.0])) == pytest.approx(-1.0)
    assert cosine(a, np.zeros(2)) == 0.0


def test_cosine_dim_mismatch():
    with pytest.raises(ValueError):
        cosine(np.ones(3), np.ones(4))


def test_similarity_percentage_clamps():
    assert similarity_percentage(-0.4) == 0
    assert similarity_percentage(0.506) == 51
    assert similarity_percentage(1.2) == 100


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2


@pytest.mark.parametrize("place", ["library", "Main Hall", "Block C, Room 12", "north gate bus stop area"])
def test_location_self_similarity(place):
    assert location_similarity(place, place) == 100


def test_location_shared_leading_token():
    # {library,2nd,floor} vs {library,building,main,campus}: 1/6 -> 16.7 + 15
    score = location_similarity("Library, 2nd Floor", "Library Building, Main Campus")
    assert score == 32
    assert score >= 15


def test_location_second_side_truncated():
    long_b = "cafeteria one two three four five six"
    assert location_similarity("six", long_b) == 0
    assert location_similarity("cafeteria", long_b) == round_half_up(100 / 5 + 15)


def test_location_empty_sides():
    assert location_similarity("", "library") == 0
    assert location_similarity("library", None) == 0
    assert location_similarity("!!!", "library") == 0


def test_days_between_fractional_and_symmetric():
    t0 = datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert days_between(t0, t0 + timedelta(hours=36)) == pytest.approx(1.5)
    assert days_between(t0 + timedelta(days=3), t0) == pytest.approx(3.0)
    assert days_between(date(2025, 1, 1), date(2025, 1, 11)) == pytest.approx(10.0)
    assert days_between(None, t0) is None


def test_days_between_mixed_awareness():
    aware = datetime(2025, 1, 2, tzinfo=timezone.utc)
    assert days_between(datetime(2025, 1, 1), aware) == pytest.approx(1.0)


def test_temporal_proximity_window_and_decay():
    assert temporal_proximity(0) == 100
    assert temporal_proximity(10) == 100
    assert temporal_proximity(14) == 100
    assert temporal_proximity(20) == 60
    assert temporal_proximity(40) == 30
    assert temporal_proximity(400) == 30
    assert temporal_proximity(None) == 30


def test_temporal_proximity_monotone_with_floor():
    scores = [temporal_proximity(d / 2) for d in range(28, 400)]
    assert all(b <= a for a, b in zip(scores, scores[1:]))
    assert min(scores) >= 30


def test_composite_weights_and_bounds():
    w = MatchWeights()
    assert composite_score(100, 100, 100, w) == 100
    assert composite_score(0, 100, 100, w) == 40
    assert composite_score(75, 50, 100, w) == 70
    assert composite_score(100, 100, 100, MatchWeights(detail=1, location=1, date=1)) == 100
    assert composite_score(0, 0, 0, w) == 0
