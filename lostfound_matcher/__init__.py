"""
Lost & found match scoring
--------------------------
Public API:

    MatchEngine(provider=..., source=..., store=...).run_match(found_item)
    MatchEngine.score_claim(claim_details, hidden_details)
"""

from .config import MatchWeights, Settings, settings
from .embedder import EmbeddingError, EmbeddingProvider, ModelLoadError
from .engine import MatchEngine
from .matcher import cosine, location_similarity, similarity_percentage, temporal_proximity
from .models import (ComponentScores, FoundItemRecord, LostReportCandidate,
                     LostReportStatus, MatchRecord, MatchStatus)
from .store import InMemoryCandidateSource, InMemoryMatchStore, MatchStoreError
from .text import KeywordBoost, flatten_attributes, prepare_text

__all__ = [
    "ComponentScores",
    "EmbeddingError",
    "EmbeddingProvider",
    "FoundItemRecord",
    "InMemoryCandidateSource",
    "InMemoryMatchStore",
    "KeywordBoost",
    "LostReportCandidate",
    "LostReportStatus",
    "MatchEngine",
    "MatchRecord",
    "MatchStatus",
    "MatchStoreError",
    "MatchWeights",
    "ModelLoadError",
    "Settings",
    "cosine",
    "flatten_attributes",
    "location_similarity",
    "prepare_text",
    "settings",
    "similarity_percentage",
    "temporal_proximity",
]
