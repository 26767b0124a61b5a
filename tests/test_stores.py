# tests/test_stores.py
"""
Entity Store Tests - Load, Realtime Merge and Optimistic Writes

This module tests the vote, offer, opinion and price-history stores against
the in-memory FakeBackend and a BroadcastFeed: optimistic insertion and
reconciliation in both realtime orderings, rollback on failure, realtime
filtering, statistics and history series.

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- socialprice.application.stores (VoteStore, OfferStore, OpinionStore, PriceHistoryStore)
- tests.conftest (FakeBackend, feed and rates fixtures)
- pytest (testing framework)
"""
import pytest  # Testing framework for writing and running tests

from unittest.mock import Mock  # Listener and provider mocks

from socialprice.adapters.backend import UPDATE, RealtimeEvent
from socialprice.application.rates_service import RatesService
from socialprice.application.stores import OfferStore, OpinionStore, PriceHistoryStore, VoteStore
from socialprice.application.stores.base import parse_timestamp
from socialprice.application.stores.offers import SUPERSEDED
from socialprice.domain.errors import InvalidTransitionError, SubmissionError
from socialprice.domain.models import Confirmed, CurrencyCode, OfferStatus, Pending, Sentiment

from conftest import backend_down, insert_event, minutes

USD, COP = CurrencyCode.USD, CurrencyCode.COP


def vote_row(vid, value, minute, currency="USD", product_id=1):
    return {"id": vid, "product_id": product_id, "value": value, "currency": currency,
            "timestamp": minutes(minute)}


def offer_row(oid, amount, minute, status="pending", bidder="Ana"):
    return {"id": oid, "product_id": 1, "bidder_name": bidder, "amount": amount, "currency": "USD",
            "status": status, "created_at": minutes(minute)}


@pytest.fixture
def votes(backend, feed, rates):
    store = VoteStore(backend, feed, 1, rates)
    store.start()
    yield store
    store.stop()


@pytest.fixture
def offers(backend, feed, rates):
    store = OfferStore(backend, feed, 1, rates)
    store.start()
    yield store
    store.stop()


class TestLoad:
    def test_load_replaces_state(self, backend, feed, rates):
        backend.seed("votes", vote_row(1, 900, 0), vote_row(2, 1100, 1), vote_row(3, 5, 2, product_id=2))
        store = VoteStore(backend, feed, 1, rates)

        assert store.load() is True
        assert [v.key for v in store.items] == [Confirmed(1), Confirmed(2)]
        assert store.stats.avg_sentiment == pytest.approx(1000)
        assert store.loaded

    def test_load_is_repeatable(self, backend, feed, rates):
        backend.seed("votes", vote_row(1, 900, 0))
        store = VoteStore(backend, feed, 1, rates)
        store.load()
        store.load()
        assert len(store) == 1

    def test_load_failure_keeps_state(self, backend, feed, rates):
        backend.seed("votes", vote_row(1, 900, 0))
        store = VoteStore(backend, feed, 1, rates)
        store.load()

        backend.fail_next["select"] = backend_down()
        assert store.load() is False
        assert [v.key for v in store.items] == [Confirmed(1)]

    def test_malformed_rows_skipped(self, backend, feed, rates):
        backend.seed("votes", vote_row(1, 900, 0), {"id": 2, "product_id": 1, "value": "abc", "currency": "USD"})
        store = VoteStore(backend, feed, 1, rates)
        store.load()
        assert len(store) == 1


class TestOptimisticWrites:
    def test_item_visible_before_backend_answers(self, backend, votes):
        seen = []
        backend.on_insert = lambda table, row: seen.append([v.key for v in votes.items])

        vote = votes.submit(900, USD)

        assert len(seen) == 1
        assert len(seen[0]) == 1
        assert isinstance(seen[0][0], Pending)
        assert vote.key == Confirmed(1)
        assert [v.key for v in votes.items] == [Confirmed(1)]

    def test_realtime_echo_after_confirmation_ignored(self, feed, votes):
        vote = votes.submit(900, USD)

        delivered = feed.publish("votes", insert_event(vote_row(vote.id, 900, 0)))

        assert delivered == 1
        assert len(votes) == 1
        assert votes.items[0].key == Confirmed(vote.id)

    def test_realtime_echo_before_confirmation_deduplicated(self, backend, feed, votes):
        def echo(table, row):
            feed.publish(table, insert_event(row))
            # both copies are visible until the insert call returns
            assert len(votes) == 2

        backend.on_insert = echo
        votes.submit(900, USD)

        assert len(votes) == 1
        assert votes.items[0].key == Confirmed(1)
        assert len(votes.history) == 1

    def test_position_kept_on_confirmation(self, backend, feed, votes):
        def interleave(table, row):
            backend.on_insert = None
            feed.publish(table, insert_event(vote_row(99, 1100, 5)))

        backend.on_insert = interleave
        votes.submit(900, USD)

        assert [v.key for v in votes.items] == [Confirmed(1), Confirmed(99)]

    def test_confirmed_item_takes_stored_row(self, votes):
        vote = votes.submit(100, USD)
        incremental = votes.history

        assert vote.timestamp == parse_timestamp(minutes(0))
        assert votes.items[0] == vote

        votes.load()
        assert votes.history == incremental
        assert votes.items == [vote]

    def test_offer_history_uses_stored_timestamp(self, offers):
        offer = offers.submit("Ana", 1200, USD)

        assert offer.created_at == parse_timestamp(minutes(0))
        assert [(p.time, p.date) for p in offers.history] == [("10:00", "23/01")]

    def test_rollback_on_failure(self, backend, votes):
        votes.submit(900, USD)
        before = votes.items
        listener = Mock()
        votes.subscribe(listener)

        backend.fail_next["insert"] = backend_down()
        with pytest.raises(SubmissionError):
            votes.submit(1100, USD)

        assert votes.items == before
        assert votes.stats.avg_sentiment == pytest.approx(900)
        assert listener.call_count == 2  # optimistic append, then rollback

    def test_temp_ids_strictly_increase(self, backend, votes):
        keys = []
        backend.on_insert = lambda table, row: keys.append(votes.items[-1].key.temp_id)
        votes.submit(1, USD)
        votes.submit(2, USD)
        assert keys[0] < keys[1]


class TestRealtime:
    def test_insert_from_other_client(self, feed, votes):
        feed.publish("votes", insert_event(vote_row(7, 1000, 0)))
        assert [v.key for v in votes.items] == [Confirmed(7)]

    def test_recent_newest_first(self, feed, votes):
        for vid in range(1, 5):
            feed.publish("votes", insert_event(vote_row(vid, 100 * vid, vid)))
        assert [v.id for v in votes.recent(limit=3)] == [4, 3, 2]

    def test_duplicate_delivery_idempotent(self, feed, votes):
        for _ in range(3):
            feed.publish("votes", insert_event(vote_row(7, 1000, 0)))
        assert len(votes) == 1

    def test_other_product_ignored(self, votes):
        assert votes.apply_remote_event(insert_event(vote_row(7, 1000, 0, product_id=2))) is False
        assert len(votes) == 0

    def test_malformed_event_ignored(self, votes):
        assert votes.apply_remote_event(insert_event({"product_id": 1, "value": 3})) is False
        assert votes.apply_remote_event(insert_event({"id": 8, "product_id": 1, "currency": "EUR", "value": 3})) is False
        assert len(votes) == 0

    def test_stop_releases_subscription(self, feed, votes):
        assert votes.listening
        votes.stop()

        assert not votes.listening
        assert feed.subscription_count == 0
        feed.publish("votes", insert_event(vote_row(7, 1000, 0)))
        assert len(votes) == 0

    def test_context_manager(self, backend, feed, rates):
        with VoteStore(backend, feed, 1, rates) as store:
            assert store.listening
        assert feed.subscription_count == 0


class TestVoteHistory:
    def test_running_average_series(self, feed, votes):
        for vid, value in [(1, 100), (2, 200), (3, 300)]:
            feed.publish("votes", insert_event(vote_row(vid, value, vid)))
        assert [p.value for p in votes.history] == [100, 150, 200]

    def test_display_currency_conversion(self, feed, votes):
        feed.publish("votes", insert_event(vote_row(1, 1000, 0)))
        feed.publish("votes", insert_event(vote_row(2, 4_000_000, 1, currency="COP")))
        assert votes.stats.avg_sentiment == pytest.approx(1000)

        votes.set_display_currency(COP)
        assert votes.stats.avg_sentiment == pytest.approx(4_000_000)
        assert votes.history[-1].value == pytest.approx(4_000_000)

    def test_rate_change_rebuilds_history(self, backend, feed):
        provider = Mock()
        provider.usd_rates.return_value = {COP: 5000.0}
        rates = RatesService(provider=provider)
        store = VoteStore(backend, feed, 1, rates)
        store.start()
        feed.publish("votes", insert_event(vote_row(1, 5_000_000, 0, currency="COP")))
        assert store.history[-1].value == pytest.approx(1250)

        rates.refresh()

        assert store.history[-1].value == pytest.approx(1000)
        store.stop()


class TestOffers:
    def test_running_maximum_series(self, feed, offers):
        for oid, amount in [(1, 50), (2, 30), (3, 80), (4, 60)]:
            feed.publish("offers", insert_event(offer_row(oid, amount, oid)))
        assert [p.value for p in offers.history] == [50, 50, 80, 80]
        assert offers.stats.max_offer == 80
        assert offers.stats.avg_offer == pytest.approx(55)

    def test_submit(self, offers):
        offer = offers.submit("Ana", 1200, USD)
        assert offer.status == OfferStatus.PENDING
        assert offer.bidder == "Ana"
        assert offers.stats.pending_count == 1

    def test_realtime_status_update(self, feed, offers):
        feed.publish("offers", insert_event(offer_row(1, 1200, 0)))
        feed.publish("offers", RealtimeEvent(UPDATE, offer_row(1, 1200, 0, status="rejected")))
        assert offers.items[0].status == OfferStatus.REJECTED

    def test_accept_then_superseded(self, backend, feed, offers):
        backend.seed("offers", offer_row(1, 1200, 0), offer_row(2, 1100, 1))
        offers.load()

        accepted = offers.accept(1)

        assert accepted.status == OfferStatus.ACCEPTED
        assert backend.tables["offers"][0]["status"] == "accepted"
        other = offers.find(Confirmed(2))
        assert other.status == OfferStatus.PENDING
        assert offers.display_status(other) == SUPERSEDED
        assert offers.display_status(accepted) == "accepted"
        assert [o.id for o in offers.listing()] == [1, 2]
        assert offers.stats.accepted_offer == accepted

    def test_listing_newest_first(self, backend, offers):
        backend.seed("offers", offer_row(1, 1200, 0), offer_row(2, 1100, 1))
        offers.load()
        assert [o.id for o in offers.listing()] == [2, 1]

    def test_invalid_transitions(self, backend, offers):
        backend.seed("offers", offer_row(1, 1200, 0, status="rejected"))
        offers.load()
        with pytest.raises(InvalidTransitionError):
            offers.accept(1)
        with pytest.raises(InvalidTransitionError):
            offers.reject(99)

    def test_status_update_reverted_on_failure(self, backend, offers):
        backend.seed("offers", offer_row(1, 1200, 0))
        offers.load()
        backend.fail_next["update"] = backend_down()

        with pytest.raises(SubmissionError):
            offers.accept(1)

        assert offers.items[0].status == OfferStatus.PENDING

    def test_withdraw_acceptance(self, backend, offers):
        backend.seed("offers", offer_row(1, 1200, 0, status="accepted"))
        offers.load()

        reopened = offers.withdraw_acceptance(1)

        assert reopened.status == OfferStatus.PENDING
        assert backend.tables["offers"][0]["status"] == "pending"
        assert offers.accepted_offer is None

    def test_withdraw_acceptance_requires_accepted_offer(self, backend, offers):
        backend.seed("offers", offer_row(1, 1200, 0))
        offers.load()
        with pytest.raises(InvalidTransitionError):
            offers.withdraw_acceptance(1)

    def test_withdraw_acceptance_kept_on_failure(self, backend, offers):
        backend.seed("offers", offer_row(1, 1200, 0, status="accepted"))
        offers.load()
        backend.fail_next["update:offers"] = backend_down()

        with pytest.raises(SubmissionError):
            offers.withdraw_acceptance(1)

        assert offers.items[0].status == OfferStatus.ACCEPTED


class TestOpinions:
    def test_submit_classifies_sentiment(self, backend, feed, rates):
        store = OpinionStore(backend, feed, 1, rates)
        opinion = store.submit("  ", "Way too expensive", 800, USD)

        assert opinion.author == "Anonymous"
        assert opinion.sentiment == Sentiment.NEGATIVE
        assert backend.tables["opinions"][0]["sentiment"] == "negative"

    def test_injected_classifier(self, backend, feed, rates):
        classifier = Mock()
        classifier.classify.return_value = Sentiment.POSITIVE
        store = OpinionStore(backend, feed, 1, rates, classifier=classifier)
        store.submit("Luis", "meh", 800, USD)
        classifier.classify.assert_called_once_with("meh")

    def test_stats(self, backend, feed, rates):
        backend.seed(
            "opinions",
            {"product_id": 1, "author_name": "A", "content": "great", "value": 1000, "currency": "USD",
             "sentiment": "positive", "created_at": minutes(0)},
            {"product_id": 1, "author_name": None, "content": "hmm", "value": 2000, "currency": "USD",
             "sentiment": "odd", "created_at": minutes(1)},
        )
        store = OpinionStore(backend, feed, 1, rates)
        store.load()

        stats = store.stats
        assert stats.total == 2
        assert stats.positive == 1
        assert stats.neutral == 1
        assert stats.avg_value == pytest.approx(1500)
        assert store.items[1].author == "Anonymous"


class TestPriceHistory:
    def _rows(self, n):
        return [{"product_id": 1, "price": 1000 + i, "currency": "USD", "created_at": minutes(i)} for i in range(n)]

    def test_load_keeps_latest_rows_oldest_first(self, backend, feed, rates):
        backend.seed("price_history", *self._rows(60))
        store = PriceHistoryStore(backend, feed, 1, rates)
        store.load()

        prices = [p.price.amount for p in store.items]
        assert len(prices) == 50
        assert prices[0] == 1010
        assert prices[-1] == 1059

    def test_add_price_point_trims(self, backend, feed, rates):
        backend.seed("price_history", *self._rows(3))
        store = PriceHistoryStore(backend, feed, 1, rates, limit=3)
        store.load()

        store.add_price_point(1500, USD)

        assert len(store) == 3
        assert store.items[-1].price.amount == 1500
        assert store.items[0].price.amount == 1001

    def test_history_in_display_currency(self, backend, feed, rates):
        backend.seed("price_history", *self._rows(1))
        store = PriceHistoryStore(backend, feed, 1, rates, display_currency=COP)
        store.load()
        assert store.history[0].value == pytest.approx(4_000_000)
        assert store.history[0].time == "10:00"
