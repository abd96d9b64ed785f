# lostfound_matcher/store.py

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Protocol, Tuple

from .models import LostReportCandidate, LostReportStatus, MatchRecord, MatchStatus


logger = logging.getLogger(__name__)


class MatchStoreError(RuntimeError):
    """Raised by a match store that could not persist a record."""


class CandidateSource(Protocol):
    def open_reports(self, item_category: str) -> Iterable[LostReportCandidate]:
        """All OPEN lost reports whose category equals `item_category`."""
        ...


class MatchStore(Protocol):
    def upsert(self, record: MatchRecord) -> MatchRecord:
        """
        Persist `record`, keyed on (lost_report_id, found_item_id).

        Returns the stored row. A row staff already reviewed comes back unchanged.
        """
        ...


class InMemoryCandidateSource:
    """Dict-backed candidate source; filters the way the lost_reports query does."""

    def __init__(self, reports: Iterable[LostReportCandidate] = ()) -> None:
        self._reports: Dict[str, LostReportCandidate] = {r.id: r for r in reports}

    def add(self, report: LostReportCandidate) -> None:
        self._reports[report.id] = report

    def open_reports(self, item_category: str) -> List[LostReportCandidate]:
        return [
            r for r in self._reports.values()
            if r.status == LostReportStatus.OPEN and r.item_category == item_category
        ]


class InMemoryMatchStore:
    """
    Match table with a uniqueness guard on (lost_report_id, found_item_id).

    - new pair: inserted as PENDING with a generated id
    - existing PENDING pair: scores refreshed in place, id kept
    - existing APPROVED/REJECTED pair: left as staff decided it
    """

    def __init__(self) -> None:
        self._rows: Dict[Tuple[str, str], MatchRecord] = {}
        self._lock = threading.Lock()

    def upsert(self, record: MatchRecord) -> MatchRecord:
        now = datetime.now(timezone.utc)
        with self._lock:
            existing = self._rows.get(record.key)
            if existing is None:
                stored = replace(
                    record,
                    id=uuid.uuid4().hex,
                    status=MatchStatus.PENDING,
                    created_at=now,
                    updated_at=now,
                )
            elif existing.status == MatchStatus.PENDING:
                stored = replace(
                    record,
                    id=existing.id,
                    status=MatchStatus.PENDING,
                    created_at=existing.created_at,
                    updated_at=now,
                )
            else:
                logger.debug("Match %s already %s; not rescored", existing.id, existing.status.value)
                return existing
            self._rows[record.key] = stored
            return stored

    def set_status(self, match_id: str, status: MatchStatus) -> MatchRecord:
        with self._lock:
            for key, row in self._rows.items():
                if row.id == match_id:
                    self._rows[key] = replace(row, status=status, updated_at=datetime.now(timezone.utc))
                    return self._rows[key]
        raise KeyError(match_id)

    def all(self) -> List[MatchRecord]:
        with self._lock:
            return list(self._rows.values())

    def __len__(self) -> int:
        return len(self._rows)
