# lostfound_matcher/matcher.py

from __future__ import annotations

import math

from datetime import date, datetime, timezone
from typing import Optional, Union

import numpy as np

from .config import MatchWeights
from .text import clean_text

Timestamp = Union[datetime, date]

SECONDS_PER_DAY = 24 * 60 * 60


def normalise(v: np.ndarray) -> np.ndarray:
    """L2-normalise rows for cosine similarity via dot product."""
    if v.ndim == 1:
        v = v.reshape(1, -1)
    denom = np.linalg.norm(v, axis=1, keepdims=True) + 1e-12
    return v / denom


def round_half_up(x: float) -> int:
    """Integer rounding with .5 going up, as scores were always rounded."""
    return int(math.floor(x + 0.5))


def cosine(vec_a: np.ndarray, vec_b: np.ndarray) -> float:
    """Cosine similarity in [-1, 1]; 0.0 if either vector has no magnitude."""
    a = np.asarray(vec_a, dtype=np.float64).reshape(-1)
    b = np.asarray(vec_b, dtype=np.float64).reshape(-1)
    if a.shape != b.shape:
        raise ValueError(f"Dim mismatch: {a.shape} vs {b.shape}")
    magnitude = float(np.linalg.norm(a) * np.linalg.norm(b))
    if magnitude == 0.0:
        return 0.0
    return float(np.dot(a, b) / magnitude)


def similarity_percentage(cos: float) -> int:
    # negative similarity means nothing for two item descriptions
    return max(0, min(100, round_half_up(cos * 100)))


def location_similarity(
    a: Optional[str],
    b: Optional[str],
    *,
    token_cap: int = 5,
    leading_bonus: int = 15,
) -> int:
    """
    Token-set Jaccard over two place names, scaled to 0..100.

    - only the first `token_cap` tokens of `b` count (b is usually free text)
    - a shared first token adds `leading_bonus`; area/building names lead
    """
    na = clean_text(a)
    nb = clean_text(b)
    if not na or not nb:
        return 0

    tokens_a = na.split(" ")
    tokens_b = nb.split(" ")[:token_cap]

    set_a, set_b = set(tokens_a), set(tokens_b)
    union = set_a | set_b
    score = len(set_a & set_b) / len(union) * 100 if union else 0.0

    if tokens_a[0] == tokens_b[0]:
        score = min(100.0, score + leading_bonus)

    return round_half_up(score)


def _as_datetime(value: Timestamp) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def days_between(lost_at: Optional[Timestamp], found_at: Optional[Timestamp]) -> Optional[float]:
    """Absolute gap in (fractional) days; None if either timestamp is missing."""
    if lost_at is None or found_at is None:
        return None
    lost, found = _as_datetime(lost_at), _as_datetime(found_at)
    if (lost.tzinfo is None) != (found.tzinfo is None):
        # naive timestamps are taken as UTC
        lost = lost if lost.tzinfo else lost.replace(tzinfo=timezone.utc)
        found = found if found.tzinfo else found.replace(tzinfo=timezone.utc)
    delta = found - lost
    return abs(delta.total_seconds()) / SECONDS_PER_DAY


def temporal_proximity(
    days_diff: Optional[float],
    *,
    window_days: float = 14,
    decay_per_day: float = 2,
    floor: int = 30,
) -> float:
    """Full marks inside the window, then linear decay that never drops below `floor`."""
    if days_diff is None:
        return float(floor)
    if days_diff <= window_days:
        return 100.0
    return max(float(floor), 100.0 - decay_per_day * days_diff)


def composite_score(detail: float, location: float, date_score: float, weights: MatchWeights) -> int:
    raw = detail * weights.detail + location * weights.location + date_score * weights.date
    return max(0, min(100, round_half_up(raw)))
