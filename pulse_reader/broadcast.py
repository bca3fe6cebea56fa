"""RSS 2.0 broadcast of the current article context and optional digest."""

import re
from datetime import UTC, date, datetime
from email.utils import format_datetime

from .models import Article, BroadcastItem

CHANNEL_TITLE = "Pulse AI Broadcast"
CHANNEL_DESCRIPTION = "AI Curated feed based on custom analysis."
CHANNEL_LINK = "https://pulse-ai-reader.local"
GENERATOR = "Pulse AI Reader"
DIGEST_LINK_BASE = "https://pulse.local/digest"

_XML_ESCAPES = {
    "<": "&lt;",
    ">": "&gt;",
    "&": "&amp;",
    "'": "&apos;",
    '"': "&quot;",
}

# Characters that may not appear in an XML 1.0 document at all
_XML_ILLEGAL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def escape_xml(text: str | None) -> str:
    """Escape the five XML-significant characters.

    Characters XML 1.0 forbids outright are dropped.
    """
    if not text:
        return ""
    text = _XML_ILLEGAL_RE.sub("", text)
    return "".join(_XML_ESCAPES.get(char, char) for char in text)


def rfc822(moment: datetime) -> str:
    return format_datetime(moment.astimezone(UTC), usegmt=True)


def build_broadcast_items(
    digest: str | None, articles: list[Article], now: datetime
) -> list[BroadcastItem]:
    """Order the broadcast: the digest first when present, then each article."""
    items = []

    if digest:
        stamp = int(now.timestamp() * 1000)
        items.append(
            BroadcastItem(
                title=f"Pulse AI Digest - {now.strftime('%Y-%m-%d')}",
                link=f"{DIGEST_LINK_BASE}/{stamp}",
                description=digest.replace("\n", "<br/>"),
                pub_date=rfc822(now),
                guid=f"digest-{stamp}",
            )
        )

    for article in articles:
        items.append(
            BroadcastItem(
                title=article.title,
                link=article.link,
                description=article.content,
                pub_date=article.pub_date,
                guid=article.id,
            )
        )

    return items


def render_item(item: BroadcastItem) -> str:
    return f"""
    <item>
      <title>{escape_xml(item.title)}</title>
      <link>{escape_xml(item.link)}</link>
      <guid isPermaLink="false">{escape_xml(item.guid or item.link)}</guid>
      <pubDate>{escape_xml(item.pub_date)}</pubDate>
      <description>{escape_xml(item.description)}</description>
    </item>
  """


def generate_rss_xml(
    title: str,
    description: str,
    items: list[BroadcastItem],
    now: datetime | None = None,
) -> str:
    """Serialize broadcast items as an RSS 2.0 document."""
    now = now or datetime.now(UTC)
    rss_items = "".join(render_item(item) for item in items)

    return f"""<?xml version="1.0" encoding="UTF-8" ?>
<rss version="2.0">
<channel>
  <title>{escape_xml(title)}</title>
  <description>{escape_xml(description)}</description>
  <link>{CHANNEL_LINK}</link>
  <lastBuildDate>{rfc822(now)}</lastBuildDate>
  <generator>{GENERATOR}</generator>
  {rss_items}
</channel>
</rss>"""


def encode_broadcast(
    digest: str | None, articles: list[Article], now: datetime | None = None
) -> str:
    """Build the broadcast RSS document for a digest and its articles.

    Callers must not pass an absent digest together with no articles.
    """
    now = now or datetime.now(UTC)
    items = build_broadcast_items(digest, articles, now)
    return generate_rss_xml(CHANNEL_TITLE, CHANNEL_DESCRIPTION, items, now)


def broadcast_filename(today: date | None = None) -> str:
    return f"pulse_broadcast_{(today or date.today()).isoformat()}.xml"
