# lostfound_matcher/main.py

from __future__ import annotations

import logging

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .config import settings
from .embedder import EmbeddingError, EmbeddingProvider
from .engine import MatchEngine
from .models import FoundItemRecord, LostReportCandidate, LostReportStatus

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

PROVIDER = EmbeddingProvider(
    model_name=settings.MODEL_NAME,
    embed_batch_size=settings.EMBED_BATCH_SIZE,
    device=settings.MODEL_DEVICE,
)
ENGINE = MatchEngine(provider=PROVIDER, settings=settings)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Load the model once at startup; keep it in memory for the lifetime of the process.
    Without PRELOAD_MODEL the first request pays for the load instead.
    """
    if settings.PRELOAD_MODEL:
        PROVIDER.load()
    yield

app = FastAPI(title="matcher-service", version="1.0.0", lifespan=lifespan)

Attributes = Union[Dict[str, Any], str, None]


class FoundItemIn(BaseModel):
    id: str
    item_category: str
    public_attributes: Attributes = None
    location_text: Optional[str] = None
    found_at: Optional[datetime] = None

    def to_record(self) -> FoundItemRecord:
        return FoundItemRecord(
            id=self.id,
            item_category=self.item_category,
            public_attributes=self.public_attributes,
            location_text=self.location_text,
            found_at=self.found_at,
        )


class CandidateIn(BaseModel):
    id: str
    item_category: str
    attributes: Attributes = None
    location_text: Optional[str] = None
    lost_at: Optional[datetime] = None
    status: LostReportStatus = LostReportStatus.OPEN

    def to_record(self) -> LostReportCandidate:
        return LostReportCandidate(
            id=self.id,
            item_category=self.item_category,
            attributes=self.attributes,
            location_text=self.location_text,
            lost_at=self.lost_at,
            status=self.status,
        )


class ScoreCandidatesRequest(BaseModel):
    found_item: FoundItemIn
    candidates: List[CandidateIn] = Field(default_factory=list)


class ScoreClaimRequest(BaseModel):
    claim_details: Attributes = None
    hidden_details: Attributes = None


@app.get("/health")
def health() -> Dict[str, Any]:
    return {
        "ok": True,
        "model_loaded": PROVIDER.loaded,
        "model_name": PROVIDER.model_name,
    }


@app.post("/v1/score-claim")
def score_claim(req: ScoreClaimRequest) -> Dict[str, Any]:
    try:
        pct = ENGINE.score_claim(req.claim_details, req.hidden_details)
    except EmbeddingError as e:
        logger.error("Claim scoring failed: %s", e)
        raise HTTPException(status_code=503, detail="embedding model unavailable")
    return {"match_percentage": pct}


@app.post("/v1/score-candidates")
def score_candidates(req: ScoreCandidatesRequest) -> Dict[str, Any]:
    """
    Returns the candidates that clear the match threshold, best first.
    Nothing is stored; the calling application persists the matches it keeps.
    """
    found_item = req.found_item.to_record()
    try:
        records = ENGINE.score_candidates(found_item, [c.to_record() for c in req.candidates])
    except EmbeddingError as e:
        logger.error("Candidate scoring failed for item %s: %s", found_item.id, e)
        raise HTTPException(status_code=503, detail="embedding model unavailable")
    return {
        "found_item_id": found_item.id,
        "match_count": len(records),
        "suggested_matches": [r.to_dict() for r in records],
    }
