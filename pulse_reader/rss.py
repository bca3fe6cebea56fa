"""RSS feed fetching through the RSS-to-JSON lookup service."""

from typing import Any

import requests
from bs4 import BeautifulSoup

from .config import RssProxyConfig
from .errors import FetchError
from .logging_config import create_execution_logger
from .models import Article, Feed, FeedType, RssProxyItem


class RssFetcher:
    """Fetches RSS feeds via the lookup service and normalizes their items."""

    def __init__(
        self,
        config: RssProxyConfig | None = None,
        execution_id: str | None = None,
    ):
        """Initialize RssFetcher with configuration.

        Args:
            config: Lookup service configuration
            execution_id: Execution ID for logging context
        """
        self.config = config or RssProxyConfig()
        self.logger = create_execution_logger("rss_fetcher", execution_id)
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": "Pulse-AI-Reader/1.0"})

        self.logger.info(
            "RssFetcher initialized",
            endpoint=self.config.endpoint,
            timeout=self.config.timeout,
        )

    def lookup(self, feed_url: str) -> dict[str, Any]:
        """Query the lookup service for a feed URL.

        Args:
            feed_url: URL of the RSS/Atom feed

        Returns:
            Decoded JSON response of the lookup service

        Raises:
            FetchError: If the HTTP call fails or the body is not JSON
        """
        params = {"rss_url": feed_url}
        if self.config.api_key:
            params["api_key"] = self.config.api_key

        try:
            response = self.session.get(
                self.config.endpoint, params=params, timeout=self.config.timeout
            )
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            self.logger.error(
                f"Lookup request failed for {feed_url}: {e}",
                feed_url=feed_url,
                error=str(e),
            )
            raise FetchError(f"Failed to fetch RSS feed: {e}", feed_url) from e

        if not isinstance(data, dict):
            raise FetchError("Failed to fetch RSS feed: malformed response", feed_url)
        return data

    def fetch_feed(self, feed: Feed) -> list[Article]:
        """Fetch a feed and map its items to Articles.

        Args:
            feed: Feed to fetch; virtual feeds yield no articles here

        Returns:
            List of Article objects in the order the service returned them

        Raises:
            FetchError: If the lookup fails or the status is not "ok"
        """
        if feed.type != FeedType.RSS:
            self.logger.debug(
                "Skipping non-RSS feed", feed_id=feed.id, feed_type=feed.type.value
            )
            return []

        self.logger.info("Fetching feed", feed_id=feed.id, feed_url=feed.url)
        data = self.lookup(feed.url)

        status = data.get("status")
        if status != "ok":
            self.logger.error(
                "Lookup service returned non-ok status",
                feed_id=feed.id,
                feed_url=feed.url,
                status=status,
                service_message=data.get("message"),
            )
            raise FetchError("Failed to fetch RSS feed", feed.url)

        articles = [
            self.normalize_item(RssProxyItem.from_dict(raw), feed.id)
            for raw in data.get("items") or []
            if isinstance(raw, dict)
        ]

        self.logger.log_feed_fetched(feed.id, feed.url, len(articles))
        return articles

    def normalize_item(self, item: RssProxyItem, feed_id: str) -> Article:
        """Normalize a lookup service item into an Article.

        Content is passed through unmodified; it is not sanitized.

        Args:
            item: Validated lookup service item
            feed_id: Identifier of the owning feed

        Returns:
            Normalized Article object
        """
        return Article(
            id=item.guid or item.link,
            feed_id=feed_id,
            title=item.title,
            link=item.link,
            pub_date=item.pub_date,
            content=item.content or item.description or "",
            author=item.author,
            thumbnail=item.thumbnail or item.enclosure_link or None,
        )

    def validate_url(self, url: str) -> dict[str, str] | None:
        """Check that a URL resolves to a feed the lookup service can read.

        Args:
            url: Candidate feed URL

        Returns:
            {"title": feed title} when valid, None otherwise
        """
        try:
            data = self.lookup(url)
        except FetchError:
            return None

        if data.get("status") != "ok":
            self.logger.info("RSS URL did not validate", feed_url=url)
            return None

        feed_info = data.get("feed") or {}
        title = feed_info.get("title") if isinstance(feed_info, dict) else None
        return {"title": title or url}


def preview_text(content: str | None) -> str:
    """Strip markup from article content for previews and prompts.

    Args:
        content: Raw content that may contain HTML

    Returns:
        Plain text with whitespace normalized
    """
    if not content:
        return ""

    if "<" in content or ">" in content:
        soup = BeautifulSoup(content, "html.parser")
        for element in soup(["script", "style"]):
            element.decompose()
        content = soup.get_text(separator=" ")

    return " ".join(content.split())
