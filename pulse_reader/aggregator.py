"""Feed aggregation: concurrent fetch of several feeds into one timeline."""

from collections.abc import Iterable
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from datetime import UTC, datetime

from dateutil import parser as date_parser

# RFC 822 zone names found in RSS pubDates, as UTC offsets in seconds
RFC822_TZINFOS = {
    "EST": -5 * 3600,
    "EDT": -4 * 3600,
    "CST": -6 * 3600,
    "CDT": -5 * 3600,
    "MST": -7 * 3600,
    "MDT": -6 * 3600,
    "PST": -8 * 3600,
    "PDT": -7 * 3600,
}

from .logging_config import create_execution_logger
from .models import Article, Feed, FeedType
from .rss import RssFetcher
from .virtual import VirtualFeedGenerator


def parse_pub_date(value: str | None) -> datetime | None:
    """Parse a publication date string; naive dates are taken as UTC.

    Returns:
        Timezone-aware datetime, or None when the string does not parse
    """
    if not value or not value.strip():
        return None
    try:
        parsed = date_parser.parse(value, tzinfos=RFC822_TZINFOS)
    except (ValueError, OverflowError, TypeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def sort_by_date(articles: list[Article]) -> list[Article]:
    """Sort newest first.

    The sort is stable: equal dates keep their input order. Articles with
    unparsable dates follow all dated ones, in input order.
    """
    dated = []
    undated = []
    for article in articles:
        parsed = parse_pub_date(article.pub_date)
        if parsed is None:
            undated.append(article)
        else:
            dated.append((parsed, article))

    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [article for _, article in dated] + undated


class FeedAggregator:
    """Fetches selected feeds concurrently and merges their articles."""

    def __init__(
        self,
        rss_fetcher: RssFetcher,
        virtual_generator: VirtualFeedGenerator,
        max_workers: int = 8,
        execution_id: str | None = None,
    ):
        self.rss_fetcher = rss_fetcher
        self.virtual_generator = virtual_generator
        self.max_workers = max_workers
        self.logger = create_execution_logger("aggregator", execution_id)

    def fetch_one(self, feed: Feed) -> list[Article]:
        """Load a single feed through the adapter matching its type."""
        if feed.type == FeedType.RSS:
            return self.rss_fetcher.fetch_feed(feed)
        return self.virtual_generator.generate(feed.url, feed.id)

    def aggregate(self, feed_ids: Iterable[str], feeds: list[Feed]) -> list[Article]:
        """Fetch every selected feed and merge the results by date.

        All fetches run concurrently. If any fetch fails, the first error is
        raised at once: work that has not started is cancelled and fetches
        still in flight are not awaited. No partial result is returned.

        Args:
            feed_ids: Identifiers of the selected feeds
            feeds: Full feed catalog used to resolve the identifiers

        Returns:
            Merged articles, newest first

        Raises:
            FetchError: If an RSS fetch fails
            GenerationError: If a virtual feed generation fails
        """
        catalog = {feed.id: feed for feed in feeds}
        selected = []
        for feed_id in dict.fromkeys(feed_ids):
            feed = catalog.get(feed_id)
            if feed is None:
                self.logger.warning("Selected feed not found", feed_id=feed_id)
                continue
            selected.append(feed)

        self.logger.log_execution_start(feed_count=len(selected))
        if not selected:
            self.logger.log_execution_end(success=True, total_articles=0)
            return []

        workers = min(self.max_workers, len(selected))
        executor = ThreadPoolExecutor(max_workers=workers)
        futures = [executor.submit(self.fetch_one, feed) for feed in selected]
        done, _ = wait(futures, return_when=FIRST_EXCEPTION)

        failed = next(
            (
                future
                for future in futures
                if future in done and future.exception() is not None
            ),
            None,
        )
        if failed is not None:
            # Fetches still running are abandoned, not awaited
            executor.shutdown(wait=False, cancel_futures=True)
            error = failed.exception()
            self.logger.error(
                f"Aggregation aborted: {error}",
                error=str(error),
                error_type=type(error).__name__,
            )
            self.logger.log_execution_end(success=False)
            raise error
        executor.shutdown()

        # Flatten in selection order so ties sort deterministically
        merged = [article for future in futures for article in future.result()]
        articles = sort_by_date(merged)

        self.logger.log_execution_end(success=True, total_articles=len(articles))
        return articles
