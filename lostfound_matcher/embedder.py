# lostfound_matcher/embedder.py

from __future__ import annotations

import logging
import threading
from typing import List, Optional

import numpy as np
from sentence_transformers import SentenceTransformer

from .matcher import normalise


logger = logging.getLogger(__name__)


class EmbeddingError(RuntimeError):
    """Raised when text cannot be turned into a vector."""


class ModelLoadError(EmbeddingError):
    """Raised when the sentence-embedding model cannot be loaded."""


class EmbeddingProvider:
    """
    Holds:
    - SentenceTransformer model (loaded once, on first use or at startup)
    - the lock that guards that single load

    The model handle is read-only once loaded, so encode() runs without locking.
    """
    def __init__(self, *, model_name: str, embed_batch_size: int = 32, device: Optional[str] = None) -> None:
        self.model_name = model_name
        self.embed_batch_size = embed_batch_size
        self.device = device or None

        self._model: SentenceTransformer | None = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._model is not None

    def load(self) -> SentenceTransformer:
        model = self._model
        if model is not None:
            return model

        with self._lock:
            if self._model is None:
                logger.info("Loading SentenceTransformer model=%s", self.model_name)
                try:
                    self._model = SentenceTransformer(self.model_name, device=self.device)
                except Exception as e:
                    logger.error("Model load failed for %s: %s", self.model_name, e)
                    raise ModelLoadError(f"Could not load model {self.model_name}: {e}") from e
                logger.info("Model ready.")
            return self._model

    def embed_texts(self, texts: List[str]) -> np.ndarray:
        """Embed + L2-normalise; shape (n, d)."""
        model = self.load()
        try:
            vecs = model.encode(
                texts,
                convert_to_numpy=True,
                show_progress_bar=False,
                batch_size=self.embed_batch_size,
            )
        except Exception as e:
            raise EmbeddingError(f"Embedding failed: {e}") from e
        return normalise(np.asarray(vecs, dtype=np.float32))

    def embed(self, text: str) -> np.ndarray:
        return self.embed_texts([text])[0]
