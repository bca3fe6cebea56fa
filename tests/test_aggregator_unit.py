"""Unit tests for the feed aggregator."""

import threading
import time
from unittest.mock import Mock

import pytest

from pulse_reader.aggregator import FeedAggregator, parse_pub_date, sort_by_date
from pulse_reader.errors import FetchError, GenerationError
from pulse_reader.models import Article, Feed, FeedType

RSS_FEED = Feed(id="1", title="Tech", url="https://tech.example.com/rss", type=FeedType.RSS)
OTHER_RSS = Feed(id="2", title="Science", url="https://sci.example.com/rss", type=FeedType.RSS)
VIRTUAL_FEED = Feed(id="3", title="AI chips", url="AI chips", type=FeedType.VIRTUAL)
CATALOG = [RSS_FEED, OTHER_RSS, VIRTUAL_FEED]


def article(article_id: str, feed_id: str, pub_date: str) -> Article:
    return Article(
        id=article_id,
        feed_id=feed_id,
        title=f"Title {article_id}",
        link=f"https://example.com/{article_id}",
        pub_date=pub_date,
        content="Body",
    )


def make_aggregator(rss_results=None, virtual_results=None, max_workers=4):
    rss_fetcher = Mock()
    virtual_generator = Mock()

    def fetch_feed(feed):
        result = (rss_results or {})[feed.id]
        if isinstance(result, Exception):
            raise result
        return result

    def generate(topic, feed_id):
        result = (virtual_results or {})[feed_id]
        if isinstance(result, Exception):
            raise result
        return result

    rss_fetcher.fetch_feed.side_effect = fetch_feed
    virtual_generator.generate.side_effect = generate
    return FeedAggregator(rss_fetcher, virtual_generator, max_workers=max_workers)


class TestFeedAggregatorUnit:
    """Unit tests for FeedAggregator."""

    def test_merges_and_sorts_newest_first(self):
        aggregator = make_aggregator(
            rss_results={
                "1": [
                    article("a", "1", "Mon, 01 Jan 2024 10:00:00 GMT"),
                    article("b", "1", "Wed, 03 Jan 2024 10:00:00 GMT"),
                ]
            },
            virtual_results={"3": [article("c", "3", "2024-01-02 10:00:00")]},
        )

        result = aggregator.aggregate(["1", "3"], CATALOG)

        assert [a.id for a in result] == ["b", "c", "a"]

    def test_dispatches_by_feed_type(self):
        aggregator = make_aggregator(rss_results={"1": []}, virtual_results={"3": []})

        aggregator.aggregate(["1", "3"], CATALOG)

        aggregator.rss_fetcher.fetch_feed.assert_called_once_with(RSS_FEED)
        aggregator.virtual_generator.generate.assert_called_once_with("AI chips", "3")

    def test_unknown_feed_ids_are_skipped(self):
        aggregator = make_aggregator(rss_results={"1": [article("a", "1", "2024-01-01")]})

        result = aggregator.aggregate(["1", "missing"], CATALOG)

        assert [a.id for a in result] == ["a"]

    def test_empty_selection_returns_empty_list(self):
        aggregator = make_aggregator()

        assert aggregator.aggregate([], CATALOG) == []

    def test_one_failing_feed_fails_the_batch(self):
        aggregator = make_aggregator(
            rss_results={
                "1": [article("a", "1", "2024-01-01")],
                "2": FetchError("Failed to fetch RSS feed", OTHER_RSS.url),
            },
            virtual_results={"3": [article("c", "3", "2024-01-02")]},
        )

        with pytest.raises(FetchError):
            aggregator.aggregate(["1", "2", "3"], CATALOG)

    def test_virtual_failure_propagates(self):
        aggregator = make_aggregator(
            rss_results={"1": []},
            virtual_results={"3": GenerationError("Invalid JSON")},
        )

        with pytest.raises(GenerationError):
            aggregator.aggregate(["1", "3"], CATALOG)

    def test_failure_is_raised_without_waiting_for_slow_fetches(self):
        release = threading.Event()
        rss_fetcher = Mock()

        def fetch_feed(feed):
            if feed.id == "1":
                time.sleep(0.1)
                raise FetchError("Failed to fetch RSS feed", feed.url)
            release.wait(timeout=5)
            return []

        rss_fetcher.fetch_feed.side_effect = fetch_feed
        aggregator = FeedAggregator(rss_fetcher, Mock(), max_workers=2)

        started = time.monotonic()
        try:
            with pytest.raises(FetchError):
                aggregator.aggregate(["1", "2"], CATALOG)
            elapsed = time.monotonic() - started
        finally:
            release.set()

        assert elapsed < 2

    def test_duplicate_ids_are_fetched_once(self):
        aggregator = make_aggregator(rss_results={"1": [article("a", "1", "2024-01-01")]})

        result = aggregator.aggregate(["1", "1"], CATALOG)

        assert [a.id for a in result] == ["a"]
        aggregator.rss_fetcher.fetch_feed.assert_called_once_with(RSS_FEED)

    def test_fetches_run_concurrently(self):
        """Every fetch is in flight at the same time."""
        barrier = threading.Barrier(3, timeout=5)
        rss_fetcher = Mock()
        virtual_generator = Mock()

        def fetch_feed(feed):
            barrier.wait()
            return [article(f"rss-{feed.id}", feed.id, "2024-01-01")]

        def generate(topic, feed_id):
            barrier.wait()
            return [article("virtual", feed_id, "2024-01-02")]

        rss_fetcher.fetch_feed.side_effect = fetch_feed
        virtual_generator.generate.side_effect = generate
        aggregator = FeedAggregator(rss_fetcher, virtual_generator, max_workers=3)

        result = aggregator.aggregate(["1", "2", "3"], CATALOG)

        assert len(result) == 3
        assert result[0].id == "virtual"

    def test_ties_keep_selection_order(self):
        same_date = "2024-01-01 00:00:00"
        aggregator = make_aggregator(
            rss_results={
                "1": [article("a1", "1", same_date), article("a2", "1", same_date)],
                "2": [article("b1", "2", same_date)],
            }
        )

        result = aggregator.aggregate(["2", "1"], CATALOG)

        assert [a.id for a in result] == ["b1", "a1", "a2"]

    def test_fetch_one_uses_matching_adapter(self):
        aggregator = make_aggregator(rss_results={"1": []}, virtual_results={"3": []})

        aggregator.fetch_one(VIRTUAL_FEED)

        aggregator.virtual_generator.generate.assert_called_once_with("AI chips", "3")
        aggregator.rss_fetcher.fetch_feed.assert_not_called()


class TestDateSorting:
    """Publication date parsing and ordering."""

    def test_parse_formats(self):
        assert parse_pub_date("Mon, 01 Jan 2024 10:00:00 GMT") is not None
        assert parse_pub_date("2024-01-01 10:00:00") is not None
        assert parse_pub_date("2024-01-01T10:00:00+02:00") is not None

    def test_unparsable_dates(self):
        assert parse_pub_date("") is None
        assert parse_pub_date(None) is None
        assert parse_pub_date("not a date at all") is None

    def test_naive_dates_are_utc(self):
        naive = parse_pub_date("2024-01-01 10:00:00")
        aware = parse_pub_date("2024-01-01T10:00:00Z")

        assert naive == aware

    def test_us_zone_names_are_offsets(self):
        assert parse_pub_date("Mon, 01 Jan 2024 10:00:00 EST") == parse_pub_date(
            "Mon, 01 Jan 2024 15:00:00 GMT"
        )
        assert parse_pub_date("Mon, 01 Jul 2024 10:00:00 PDT") == parse_pub_date(
            "2024-07-01T17:00:00Z"
        )

    def test_zone_names_order_correctly(self):
        articles = [
            article("gmt", "1", "Mon, 01 Jan 2024 12:00:00 GMT"),
            article("est", "1", "Mon, 01 Jan 2024 10:00:00 EST"),
        ]

        assert [a.id for a in sort_by_date(articles)] == ["est", "gmt"]

    def test_undated_articles_sort_last_in_input_order(self):
        articles = [
            article("x", "1", "garbage"),
            article("old", "1", "2023-01-01"),
            article("y", "1", ""),
            article("new", "1", "2024-01-01"),
        ]

        assert [a.id for a in sort_by_date(articles)] == ["new", "old", "x", "y"]
