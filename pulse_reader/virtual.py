"""Virtual feeds: articles discovered on demand by a grounded model."""

import json
import re
from typing import Any

from .bedrock import BedrockClient
from .errors import GenerationError
from .ids import next_stamp
from .logging_config import create_execution_logger
from .models import Article, GeneratedItem

DEFAULT_AUTHOR = "Pulse AI Discovery"
VIRTUAL_TAGS = ("Virtual", "AI Generated")

PROMPT_TEMPLATE = """Find the latest, most relevant news articles about: "{topic}".
Return a structured JSON list of 5-7 articles.
For each article, provide a title, a link (URL found from grounding), a brief content summary (2-3 sentences), a publication date (approximate if exact not found, formatted YYYY-MM-DD HH:mm:ss), and an author name if available.

Respond with ONLY a JSON array matching this schema, no other text:
[{{"title": string, "link": string, "content": string, "pubDate": string, "author": string (optional)}}]
Fields title, link, content and pubDate are required."""

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class VirtualFeedGenerator:
    """Builds virtual feed articles from a topic using web-grounded generation."""

    def __init__(self, client: BedrockClient, execution_id: str | None = None):
        self.client = client
        self.logger = create_execution_logger("virtual_feed", execution_id)

    def generate(self, topic: str, feed_id: str) -> list[Article]:
        """Discover articles about a topic.

        Args:
            topic: Free-text topic of the virtual feed
            feed_id: Identifier of the owning feed

        Returns:
            List of Article objects tagged as AI generated

        Raises:
            GenerationError: If the service call fails or the response is not
                a valid JSON array of articles
        """
        request_stamp = next_stamp()
        self.logger.info("Generating virtual feed", feed_id=feed_id, topic=topic)

        raw_text = self.client.generate(
            PROMPT_TEMPLATE.format(topic=topic), grounding=True
        )
        if not raw_text or not raw_text.strip():
            self.logger.warning("Empty virtual feed response", feed_id=feed_id)
            return []

        items = self.parse_items(raw_text)
        articles = [
            self.to_article(item, feed_id, request_stamp, index)
            for index, item in enumerate(items)
        ]

        self.logger.log_feed_fetched(feed_id, topic, len(articles))
        return articles

    def parse_items(self, raw_text: str) -> list[GeneratedItem]:
        """Parse and validate the structured response.

        Raises:
            GenerationError: If the text is not a JSON array of valid items
        """
        text = raw_text.strip()
        match = _FENCE_RE.match(text)
        if match:
            text = match.group(1)

        try:
            payload: Any = json.loads(text)
        except json.JSONDecodeError as e:
            self.logger.error(
                f"Virtual feed response is not valid JSON: {e}", error=str(e)
            )
            raise GenerationError(f"Invalid JSON in virtual feed response: {e}") from e

        if not isinstance(payload, list):
            raise GenerationError(
                f"Virtual feed response must be a JSON array, got {type(payload).__name__}"
            )

        return [GeneratedItem.from_dict(entry) for entry in payload]

    def to_article(
        self, item: GeneratedItem, feed_id: str, request_stamp: int, index: int
    ) -> Article:
        return Article(
            id=f"virtual-{feed_id}-{request_stamp}-{index}",
            feed_id=feed_id,
            title=item.title,
            link=item.link,
            pub_date=item.pub_date,
            content=item.content,
            author=item.author or DEFAULT_AUTHOR,
            tags=list(VIRTUAL_TAGS),
        )

