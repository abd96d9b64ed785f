# lostfound_matcher/engine.py

from __future__ import annotations

import logging
import time
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Deque, Dict, Iterable, List, Optional, Protocol

import numpy as np

from .config import MatchWeights, Settings
from .config import settings as default_settings
from .embedder import EmbeddingError, ModelLoadError
from .matcher import (
    composite_score,
    cosine,
    days_between,
    location_similarity,
    round_half_up,
    similarity_percentage,
    temporal_proximity,
)
from .models import (
    AttributeSet,
    ComponentScores,
    FoundItemRecord,
    LostReportCandidate,
    LostReportStatus,
    MatchRecord,
    MatchStatus,
)
from .store import CandidateSource, MatchStore
from .text import DEFAULT_BOOST, KeywordBoost, prepare_text


logger = logging.getLogger(__name__)


class Embedder(Protocol):
    def load(self) -> object:
        ...

    def embed_texts(self, texts: List[str]) -> np.ndarray:
        ...


class _Attempt:
    """One candidate on its way through the pool; the worker stamps `started_at`."""
    __slots__ = ("candidate", "started_at")

    def __init__(self, candidate: LostReportCandidate) -> None:
        self.candidate = candidate
        self.started_at: Optional[float] = None


class MatchEngine:
    """
    Scores a newly registered found item against the open lost reports of its category.

    The provider, candidate source and match store are handed in; the engine
    holds no state between runs.
    """
    def __init__(
        self,
        *,
        provider: Embedder,
        source: Optional[CandidateSource] = None,
        store: Optional[MatchStore] = None,
        settings: Settings = default_settings,
        weights: Optional[MatchWeights] = None,
        boost: Optional[KeywordBoost] = DEFAULT_BOOST,
    ) -> None:
        self.provider = provider
        self.source = source
        self.store = store
        self.settings = settings
        self.weights = weights or settings.weights
        self.boost = boost

    # -- sub-scores -------------------------------------------------------

    def detail_score(self, proof: AttributeSet, truth: AttributeSet) -> int:
        """
        Semantic similarity of two attribute sets as a 0..100 percentage.

        An empty proof never justifies a match, so it scores 0 without embedding.
        """
        proof_text = prepare_text(proof, self.boost)
        if not proof_text:
            logger.debug("Proof empty after cleaning; detail score 0")
            return 0
        truth_text = prepare_text(truth, self.boost)

        vecs = self.provider.embed_texts([truth_text, proof_text])
        return similarity_percentage(cosine(vecs[0], vecs[1]))

    def score_claim(self, claim_details: AttributeSet, hidden_details: AttributeSet) -> int:
        """Match percentage of an ownership claim against the item's backend-only details."""
        return self.detail_score(claim_details, hidden_details)

    def score_candidate(self, candidate: LostReportCandidate, found_item: FoundItemRecord) -> MatchRecord:
        s = self.settings
        detail = self.detail_score(candidate.attributes, found_item.public_attributes)
        location = location_similarity(
            candidate.location_text,
            found_item.location_text,
            token_cap=s.LOCATION_TOKEN_CAP,
            leading_bonus=s.LOCATION_LEADING_BONUS,
        )
        days_diff = days_between(candidate.lost_at, found_item.found_at)
        date_score = temporal_proximity(
            days_diff,
            window_days=s.DATE_WINDOW_DAYS,
            decay_per_day=s.DATE_DECAY_PER_DAY,
            floor=s.DATE_SCORE_FLOOR,
        )

        return MatchRecord(
            lost_report_id=candidate.id,
            found_item_id=found_item.id,
            composite_score=composite_score(detail, location, date_score, self.weights),
            component_scores=ComponentScores(
                detail=detail,
                location=location,
                date=round_half_up(date_score),
            ),
            days_diff=days_diff,
            status=MatchStatus.PENDING,
        )

    # -- batch ------------------------------------------------------------

    def _eligible(self, found_item: FoundItemRecord, candidates: Iterable[LostReportCandidate]) -> List[LostReportCandidate]:
        out: List[LostReportCandidate] = []
        for c in candidates:
            if c.status != LostReportStatus.OPEN or c.item_category != found_item.item_category:
                logger.debug("Skipping report %s (status=%s, category=%s)", c.id, c.status, c.item_category)
                continue
            out.append(c)
        return out

    def _timed_score(self, attempt: _Attempt, found_item: FoundItemRecord) -> MatchRecord:
        attempt.started_at = time.monotonic()
        return self.score_candidate(attempt.candidate, found_item)

    def _collect(self, attempt: _Attempt, fut: Future) -> Optional[MatchRecord]:
        report_id = attempt.candidate.id
        try:
            return fut.result()
        except ModelLoadError:
            raise
        except EmbeddingError as e:
            logger.warning("Embedding failed for report %s; skipped: %s", report_id, e)
        except Exception:
            logger.exception("Scoring report %s failed; skipped", report_id)
        return None

    def score_candidates(
        self,
        found_item: FoundItemRecord,
        candidates: Iterable[LostReportCandidate],
    ) -> List[MatchRecord]:
        """
        Score every eligible candidate and keep those at or above the threshold.

        - at most MAX_WORKERS inferences are live at once
        - the timeout clock starts when a candidate's own scoring starts, not
          while it waits for a worker
        - a candidate that overruns EMBED_TIMEOUT_SECONDS or fails to embed is
          logged and skipped; its worker no longer counts against MAX_WORKERS
        - a model that cannot load raises ModelLoadError before any scoring

        Result is ranked by composite score, best first.
        """
        eligible = self._eligible(found_item, candidates)
        if not eligible:
            return []

        self.provider.load()

        s = self.settings
        timeout = s.EMBED_TIMEOUT_SECONDS
        scored: List[MatchRecord] = []
        queued: Deque[LostReportCandidate] = deque(eligible)
        live: Dict[Future, _Attempt] = {}
        # one thread per candidate at most, so an overrun worker never blocks the queue
        pool = ThreadPoolExecutor(max_workers=len(eligible), thread_name_prefix="match")
        try:
            while queued or live:
                while queued and len(live) < s.MAX_WORKERS:
                    attempt = _Attempt(queued.popleft())
                    live[pool.submit(self._timed_score, attempt, found_item)] = attempt

                done, _ = wait(list(live), timeout=self._next_wait(live.values(), timeout), return_when=FIRST_COMPLETED)
                for fut in done:
                    attempt = live.pop(fut)
                    record = self._collect(attempt, fut)
                    if record is None:
                        continue
                    if record.composite_score < s.MATCH_THRESHOLD:
                        logger.debug(
                            "Report %s below threshold (%d < %d)",
                            record.lost_report_id, record.composite_score, s.MATCH_THRESHOLD,
                        )
                        continue
                    scored.append(record)

                now = time.monotonic()
                for fut, attempt in list(live.items()):
                    if attempt.started_at is not None and now - attempt.started_at > timeout and not fut.done():
                        del live[fut]
                        logger.warning(
                            "Scoring report %s against item %s timed out after %.1fs; skipped",
                            attempt.candidate.id, found_item.id, timeout,
                        )
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        scored.sort(key=lambda r: (-r.composite_score, str(r.lost_report_id)))
        return scored

    @staticmethod
    def _next_wait(attempts: Iterable[_Attempt], timeout: float) -> float:
        now = time.monotonic()
        deadlines = [a.started_at + timeout for a in attempts if a.started_at is not None]
        if not deadlines:
            return timeout
        return max(0.0, min(deadlines) - now)

    def run_match(self, found_item: FoundItemRecord) -> List[MatchRecord]:
        """
        Find, score and persist matches for one found item.

        A failing candidate source, or a model that cannot load, aborts the run
        before anything is stored.
        A record the store cannot persist is logged and left out of the result.
        """
        if self.source is None or self.store is None:
            raise RuntimeError("run_match needs both a candidate source and a match store")

        candidates = list(self.source.open_reports(found_item.item_category))
        logger.info(
            "Matching found item %s (category=%s) against %d open report(s)",
            found_item.id, found_item.item_category, len(candidates),
        )

        created: List[MatchRecord] = []
        for record in self.score_candidates(found_item, candidates):
            try:
                stored = self.store.upsert(record)
            except Exception:
                logger.exception(
                    "Could not store match report=%s item=%s", record.lost_report_id, record.found_item_id,
                )
                continue

            if stored.status != MatchStatus.PENDING:
                continue

            c = stored.component_scores
            logger.info(
                "Match stored: report %s <-> item %s (%d%%) [details=%d%%, location=%d%%, date=%d%% (%sd)]",
                stored.lost_report_id, stored.found_item_id, stored.composite_score,
                c.detail, c.location, c.date,
                "?" if stored.days_diff is None else round_half_up(stored.days_diff),
            )
            created.append(stored)

        logger.info("Found item %s: %d suggested match(es)", found_item.id, len(created))
        return created

