# lostfound_matcher/text.py

from __future__ import annotations

import re

from typing import Any, Iterable, List, Mapping, Optional, Tuple


STOPWORDS: Tuple[str, ...] = (
    "i have a",
    "it is a",
    "there is a",
    "from my",
    "the",
    "is",
    "on",
    "at",
    "a",
    "an",
    "my",
    "i",
    "and",
    "or",
    "that",
    "with",
    "in",
    "to",
    "for",
)

BOOST_KEYWORDS: Tuple[str, ...] = (
    "imei",
    "serial",
    "model",
    "black",
    "white",
    "red",
    "blue",
    "gold",
    "silver",
    "space gray",
    "pro",
    "max",
    "plus",
)

_PUNCT_RE = re.compile(r"[^\w\s]|_")
_SPACE_RE = re.compile(r"\s+")


def _phrase_regex(phrase: str) -> str:
    return r"\s+".join(map(re.escape, phrase.split()))


def _phrase_pattern(phrases: Iterable[str]) -> re.Pattern[str]:
    # longest first so "i have a" wins over "i"
    ordered = sorted(set(phrases), key=lambda p: (-len(p.split()), -len(p)))
    alternation = "|".join(_phrase_regex(p) for p in ordered)
    return re.compile(rf"\b(?:{alternation})\b")


_STOPWORD_RE = _phrase_pattern(STOPWORDS)


def flatten_attributes(value: Any) -> str:
    """
    Collapse an attribute set into one string of its values.

    Keys are dropped: a claimant's "Colour" and a listing's "Color" differ,
    the values they carry are what get compared.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        parts = [flatten_attributes(v) for v in value.values()]
    elif isinstance(value, (list, tuple)):
        parts = [flatten_attributes(v) for v in value]
    elif isinstance(value, (set, frozenset)):
        # sets have no stable order across processes
        parts = [flatten_attributes(v) for v in sorted(value, key=str)]
    else:
        return str(value)
    return " ".join(p for p in parts if p)


def clean_text(text: Optional[str]) -> str:
    """Lowercase, drop punctuation, collapse whitespace."""
    if not text:
        return ""
    lowered = _PUNCT_RE.sub("", str(text).lower())
    return _SPACE_RE.sub(" ", lowered).strip()


def strip_stopwords(text: str) -> str:
    stripped = _STOPWORD_RE.sub(" ", text)
    return _SPACE_RE.sub(" ", stripped).strip()


class KeywordBoost:
    """
    Re-appends high-signal keywords so they weigh more in the mean-pooled embedding.

    Two descriptions sharing "imei" or "space gray" drift closer together
    without a learned re-ranker.
    """

    def __init__(self, keywords: Iterable[str] = BOOST_KEYWORDS) -> None:
        self.keywords: Tuple[str, ...] = tuple(k.strip().lower() for k in keywords if k and k.strip())
        self._patterns = [
            (kw, re.compile(rf"\b{_phrase_regex(kw)}\b"))
            for kw in self.keywords
        ]

    def found(self, text: str) -> List[str]:
        if not text:
            return []
        return [kw for kw, pat in self._patterns if pat.search(text)]

    def apply(self, text: str) -> str:
        hits = self.found(text)
        if not hits:
            return text
        return f"{text} {' '.join(hits)}"

    def __repr__(self) -> str:
        return f"KeywordBoost({len(self.keywords)} keywords)"


DEFAULT_BOOST = KeywordBoost()


def prepare_text(value: Any, boost: Optional[KeywordBoost] = DEFAULT_BOOST) -> str:
    """Flatten → clean → strip stopwords → boost. Empty input gives ""."""
    text = strip_stopwords(clean_text(flatten_attributes(value)))
    if boost is not None and text:
        text = boost.apply(text)
    return text
