# lostfound_matcher/config.py

from __future__ import annotations

import os

from dataclasses import dataclass


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class MatchWeights:
    """Share of each sub-score in the composite."""
    detail: float = 0.6
    location: float = 0.3
    date: float = 0.1


@dataclass(frozen=True)
class Settings:
    MODEL_NAME: str = os.environ.get("MODEL_NAME", "sentence-transformers/all-MiniLM-L6-v2")

    MODEL_DEVICE: str = os.environ.get("MODEL_DEVICE", "")

    EMBED_BATCH_SIZE: int = int(os.environ.get("EMBED_BATCH_SIZE", "32"))

    EMBED_TIMEOUT_SECONDS: float = float(os.environ.get("EMBED_TIMEOUT_SECONDS", "30"))

    MAX_WORKERS: int = int(os.environ.get("MAX_WORKERS", "4"))

    MATCH_THRESHOLD: int = int(os.environ.get("MATCH_THRESHOLD", "10"))

    DETAIL_WEIGHT: float = float(os.environ.get("DETAIL_WEIGHT", "0.6"))
    LOCATION_WEIGHT: float = float(os.environ.get("LOCATION_WEIGHT", "0.3"))
    DATE_WEIGHT: float = float(os.environ.get("DATE_WEIGHT", "0.1"))

    LOCATION_TOKEN_CAP: int = int(os.environ.get("LOCATION_TOKEN_CAP", "5"))
    LOCATION_LEADING_BONUS: int = int(os.environ.get("LOCATION_LEADING_BONUS", "15"))

    DATE_WINDOW_DAYS: float = float(os.environ.get("DATE_WINDOW_DAYS", "14"))
    DATE_DECAY_PER_DAY: float = float(os.environ.get("DATE_DECAY_PER_DAY", "2"))
    DATE_SCORE_FLOOR: int = int(os.environ.get("DATE_SCORE_FLOOR", "30"))

    PRELOAD_MODEL: bool = _env_bool("PRELOAD_MODEL", "true")

    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    def __post_init__(self) -> None:
        for name in ("DETAIL_WEIGHT", "LOCATION_WEIGHT", "DATE_WEIGHT"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative; got {getattr(self, name)}")
        if not 0 <= self.MATCH_THRESHOLD <= 100:
            raise ValueError(f"MATCH_THRESHOLD must be within 0..100; got {self.MATCH_THRESHOLD}")
        if not 0 <= self.DATE_SCORE_FLOOR <= 100:
            raise ValueError(f"DATE_SCORE_FLOOR must be within 0..100; got {self.DATE_SCORE_FLOOR}")
        if self.MAX_WORKERS < 1:
            raise ValueError(f"MAX_WORKERS must be at least 1; got {self.MAX_WORKERS}")
        if self.EMBED_TIMEOUT_SECONDS <= 0:
            raise ValueError(f"EMBED_TIMEOUT_SECONDS must be positive; got {self.EMBED_TIMEOUT_SECONDS}")
        if self.LOCATION_TOKEN_CAP < 1:
            raise ValueError(f"LOCATION_TOKEN_CAP must be at least 1; got {self.LOCATION_TOKEN_CAP}")

    @property
    def weights(self) -> MatchWeights:
        return MatchWeights(
            detail=self.DETAIL_WEIGHT,
            location=self.LOCATION_WEIGHT,
            date=self.DATE_WEIGHT,
        )


settings = Settings()
