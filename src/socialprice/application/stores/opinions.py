# src/socialprice/application/stores/opinions.py
"""
Opinion Store - Free-text Comments with a Price Valuation

Each opinion carries an author, text, a valuation and a sentiment tag that
is classified once, on submit, by an injectable classifier.

Files that USE this module:
- socialprice.application.market_session (opinion wall)
- tests.test_stores (unit tests)

Files that this module USES:
- socialprice.application.stores.base (EntityStore)
- socialprice.domain.sentiment (KeywordSentimentClassifier default)
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from socialprice.adapters.backend.base import Row
from socialprice.application.stores.base import EntityStore, next_temp_id, now_utc, parse_timestamp
from socialprice.domain.models import Confirmed, CurrencyCode, Money, Opinion, OpinionStats, Pending, Sentiment
from socialprice.domain.sentiment import KeywordSentimentClassifier, SentimentClassifier

ANONYMOUS = "Anonymous"


def _sentiment(value) -> Sentiment:
    try:
        return Sentiment(value)
    except ValueError:
        return Sentiment.NEUTRAL


class OpinionStore(EntityStore[Opinion]):
    table = "opinions"
    order_column = "created_at"

    def __init__(self, *args, classifier: Optional[SentimentClassifier] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.classifier = classifier or KeywordSentimentClassifier()

    def _from_row(self, row: Row) -> Opinion:
        return Opinion(
            key=Confirmed(row["id"]),
            author=row.get("author_name") or ANONYMOUS,
            content=row.get("content") or "",
            value=Money(float(row.get("value") or 0), CurrencyCode(row["currency"])),
            sentiment=_sentiment(row.get("sentiment")),
            timestamp=parse_timestamp(row.get("created_at")),
        )

    def _to_row(self, item: Opinion) -> Row:
        return {
            "product_id": self.product_id,
            "author_name": item.author,
            "content": item.content,
            "value": item.value.amount,
            "currency": item.value.currency.value,
            "sentiment": item.sentiment.value,
        }

    def _value_of(self, item: Opinion) -> Money:
        return item.value

    def _timestamp_of(self, item: Opinion) -> datetime:
        return item.timestamp

    def submit(self, author: str, content: str, amount: float, currency: CurrencyCode) -> Opinion:
        """
        Post an opinion; its sentiment is classified here and never changes.

        Raises:
            SubmissionError: If saving failed (the opinion has been removed)
        """
        opinion = Opinion(
            key=Pending(next_temp_id()),
            author=(author or "").strip() or ANONYMOUS,
            content=content,
            value=Money(float(amount), CurrencyCode(currency)),
            sentiment=self.classifier.classify(content),
            timestamp=now_utc(),
        )
        return self._submit(opinion)

    @property
    def stats(self) -> OpinionStats:
        counts = {s: 0 for s in Sentiment}
        for opinion in self._items:
            counts[opinion.sentiment] += 1
        values = self.display_values()
        return OpinionStats(
            total=len(self._items),
            positive=counts[Sentiment.POSITIVE],
            neutral=counts[Sentiment.NEUTRAL],
            negative=counts[Sentiment.NEGATIVE],
            avg_value=sum(values) / len(values) if values else 0.0,
        )
