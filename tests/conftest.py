from __future__ import annotations

import threading
import zlib
from datetime import datetime, timedelta, timezone
from typing import List

import numpy as np
import pytest

from lostfound_matcher.config import Settings
from lostfound_matcher.embedder import EmbeddingError
from lostfound_matcher.engine import MatchEngine
from lostfound_matcher.matcher import normalise
from lostfound_matcher.models import FoundItemRecord, LostReportCandidate
from lostfound_matcher.store import InMemoryCandidateSource, InMemoryMatchStore

DAY0 = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


class HashingEmbedder:
    """Bag-of-words vectors from crc32 buckets: deterministic, no model download."""

    def __init__(self, dim: int = 1024) -> None:
        self.dim = dim
        self.calls: List[List[str]] = []
        self._lock = threading.Lock()
        self.fail_on: set = set()

    def load(self) -> "HashingEmbedder":
        return self

    def embed_texts(self, texts: List[str]) -> np.ndarray:
        with self._lock:
            self.calls.append(list(texts))
        out = np.zeros((len(texts), self.dim), dtype=np.float32)
        for i, text in enumerate(texts):
            for tok in text.split():
                if tok in self.fail_on:
                    raise EmbeddingError(f"cannot embed {tok!r}")
                out[i, zlib.crc32(tok.encode("utf-8")) % self.dim] += 1.0
        return normalise(out)


@pytest.fixture
def embedder() -> HashingEmbedder:
    return HashingEmbedder()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(MAX_WORKERS=2, EMBED_TIMEOUT_SECONDS=5, MATCH_THRESHOLD=10)


@pytest.fixture
def source() -> InMemoryCandidateSource:
    return InMemoryCandidateSource()


@pytest.fixture
def store() -> InMemoryMatchStore:
    return InMemoryMatchStore()


@pytest.fixture
def engine(embedder, source, store, test_settings) -> MatchEngine:
    return MatchEngine(provider=embedder, source=source, store=store, settings=test_settings)


def make_found(**kw) -> FoundItemRecord:
    base = dict(
        id="found-1",
        item_category="headphones",
        public_attributes={"color": "black", "brand": "sony"},
        location_text="Library",
        found_at=DAY0 + timedelta(days=1),
    )
    base.update(kw)
    return FoundItemRecord(**base)


def make_report(id: str = "lost-1", **kw) -> LostReportCandidate:
    base = dict(
        id=id,
        item_category="headphones",
        attributes={"color": "black", "brand": "sony"},
        location_text="Library",
        lost_at=DAY0,
    )
    base.update(kw)
    return LostReportCandidate(**base)
