"""Feed creation with form-level validation messages."""

from .ids import new_id
from .logging_config import create_execution_logger
from .models import CreateFeedResult, Feed, FeedType
from .rss import RssFetcher
from .store import FeedRepository

INVALID_RSS_MESSAGE = "Could not validate RSS feed. Please check the URL."
SHORT_TOPIC_MESSAGE = "Topic must be at least 3 characters."
MIN_TOPIC_LENGTH = 3


class FeedCreator:
    """Validates new content sources and adds them to the feed list."""

    def __init__(
        self,
        repository: FeedRepository,
        rss_fetcher: RssFetcher,
        execution_id: str | None = None,
    ):
        self.repository = repository
        self.rss_fetcher = rss_fetcher
        self.logger = create_execution_logger("creator", execution_id)

    def create_rss_feed(self, url: str) -> CreateFeedResult:
        """Follow an RSS feed once the lookup service can read it."""
        url = url.strip()
        metadata = self.rss_fetcher.validate_url(url)
        if metadata is None:
            self.logger.info("Rejected RSS feed", feed_url=url)
            return CreateFeedResult(error=INVALID_RSS_MESSAGE)

        feed = Feed(id=new_id(), title=metadata["title"], url=url, type=FeedType.RSS)
        self.repository.add(feed)
        return CreateFeedResult(feed=feed)

    def create_virtual_feed(self, topic: str) -> CreateFeedResult:
        """Create an AI discovery feed; the topic doubles as title and url."""
        if len(topic.strip()) < MIN_TOPIC_LENGTH:
            return CreateFeedResult(error=SHORT_TOPIC_MESSAGE)

        feed = Feed(id=new_id(), title=topic, url=topic, type=FeedType.VIRTUAL)
        self.repository.add(feed)
        self.logger.info("Virtual feed created", feed_id=feed.id, topic=topic)
        return CreateFeedResult(feed=feed)
