# src/socialprice/domain/sentiment.py
"""
Sentiment Classification - Keyword Scan for Opinions

Opinions carry a sentiment tag derived once from their text. The default
classifier scans for fixed positive and negative keywords; negative matches
win over positive ones. Any object with a classify(text) method can be
injected into the opinions store instead.

Files that USE this module:
- socialprice.application.stores.opinions (classifies content on submit)
- tests.test_sentiment (unit tests)

Files that this module USES:
- socialprice.domain.models (Sentiment)
"""
from __future__ import annotations

from typing import Iterable, Protocol

from socialprice.domain.models import Sentiment

POSITIVE_WORDS = (
    "excellent", "good", "great", "recommend", "worth", "quality", "premium", "justified", "key",
    "excelente", "bueno", "genial", "recomiendo", "vale", "calidad", "justifica", "clave",
)

NEGATIVE_WORDS = (
    "expensive", "overpriced", "too high", "too much", "not worth", "excessive",
    "caro", "alto", "mucho", "no vale", "costoso", "excesivo",
)


class SentimentClassifier(Protocol):
    def classify(self, text: str) -> Sentiment:
        ...


class KeywordSentimentClassifier:
    """Substring keyword scan; negative keywords take precedence."""

    def __init__(self, positive: Iterable[str] = POSITIVE_WORDS,
                 negative: Iterable[str] = NEGATIVE_WORDS):
        self.positive = tuple(w.lower() for w in positive)
        self.negative = tuple(w.lower() for w in negative)

    def classify(self, text: str) -> Sentiment:
        lowered = (text or "").lower()
        if any(w in lowered for w in self.negative):
            return Sentiment.NEGATIVE
        if any(w in lowered for w in self.positive):
            return Sentiment.POSITIVE
        return Sentiment.NEUTRAL
