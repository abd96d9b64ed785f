# lostfound_matcher/models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from .matcher import Timestamp, round_half_up

AttributeSet = Union[Dict[str, Any], str, None]


class LostReportStatus(str, Enum):
    OPEN = "OPEN"
    MATCHED = "MATCHED"
    RESOLVED = "RESOLVED"


class MatchStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


@dataclass
class LostReportCandidate:
    """An open lost-item report, as the candidate source hands it over."""
    id: str
    item_category: str
    attributes: AttributeSet
    location_text: Optional[str]
    lost_at: Optional[Timestamp]
    status: LostReportStatus = LostReportStatus.OPEN


@dataclass
class FoundItemRecord:
    id: str
    item_category: str
    public_attributes: AttributeSet
    location_text: Optional[str]
    found_at: Optional[Timestamp]


@dataclass(frozen=True)
class ComponentScores:
    detail: int
    location: int
    date: int


@dataclass
class MatchRecord:
    """
    One scored (lost report, found item) pair.

    `id`, `created_at` and `updated_at` are filled in by the match store.
    `days_diff` is the raw gap in days, None when a timestamp was missing.
    """
    lost_report_id: str
    found_item_id: str
    composite_score: int
    component_scores: ComponentScores
    days_diff: Optional[float] = None
    status: MatchStatus = MatchStatus.PENDING
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def key(self) -> tuple:
        return (self.lost_report_id, self.found_item_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_id": self.id,
            "lost_report_id": self.lost_report_id,
            "found_item_id": self.found_item_id,
            "match_score": self.composite_score,
            "details_score": self.component_scores.detail,
            "location_score": self.component_scores.location,
            "date_score": self.component_scores.date,
            "days_diff": None if self.days_diff is None else round_half_up(self.days_diff),
            "status": self.status.value,
        }

