"""Data models for Pulse AI Reader."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import GenerationError


class FeedType(str, Enum):
    """Kind of content source behind a feed."""

    RSS = "RSS"
    VIRTUAL = "VIRTUAL"


@dataclass
class Feed:
    """A followed source: an RSS URL or a topic for AI discovery."""

    id: str
    title: str
    url: str  # Feed URL for RSS, free-text topic for VIRTUAL
    type: FeedType

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "type": self.type.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Feed":
        return cls(
            id=str(data["id"]),
            title=data["title"],
            url=data["url"],
            type=FeedType(data["type"]),
        )


@dataclass
class Article:
    """Canonical article shape shared by RSS and virtual feeds."""

    id: str
    feed_id: str
    title: str
    link: str
    pub_date: str
    content: str
    author: str | None = None
    thumbnail: str | None = None
    read: bool = False
    bookmarked: bool = False
    tags: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "feedId": self.feed_id,
            "title": self.title,
            "link": self.link,
            "pubDate": self.pub_date,
            "content": self.content,
            "author": self.author,
            "thumbnail": self.thumbnail,
            "read": self.read,
            "bookmarked": self.bookmarked,
        }
        if self.tags is not None:
            data["tags"] = list(self.tags)
        return data


@dataclass
class AnalysisPreset:
    """A named instruction sent verbatim to the digest step."""

    id: str
    name: str
    description: str
    prompt: str
    icon: str = "file-text"

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "prompt": self.prompt,
            "icon": self.icon,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisPreset":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            description=data.get("description", ""),
            prompt=data["prompt"],
            icon=data.get("icon", "file-text"),
        )


@dataclass
class ChatMessage:
    """One turn of an article chat session."""

    role: str  # "user" or "model"
    text: str


@dataclass
class RssProxyItem:
    """Item as returned by the RSS-to-JSON lookup service."""

    title: str
    link: str
    pub_date: str
    guid: str | None = None
    content: str | None = None
    description: str | None = None
    author: str | None = None
    thumbnail: str | None = None
    enclosure_link: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RssProxyItem":
        enclosure = data.get("enclosure")
        enclosure_link = None
        if isinstance(enclosure, dict):
            enclosure_link = enclosure.get("link") or None

        return cls(
            title=_optional_str(data.get("title")) or "",
            link=_optional_str(data.get("link")) or "",
            pub_date=_optional_str(data.get("pubDate")) or "",
            guid=_optional_str(data.get("guid")),
            content=_optional_str(data.get("content")),
            description=_optional_str(data.get("description")),
            author=_optional_str(data.get("author")),
            thumbnail=_optional_str(data.get("thumbnail")),
            enclosure_link=_optional_str(enclosure_link),
        )


@dataclass
class GeneratedItem:
    """Item of the structured array returned by the generative service."""

    REQUIRED_FIELDS = ("title", "link", "content", "pubDate")

    title: str
    link: str
    content: str
    pub_date: str
    author: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "GeneratedItem":
        """Validate a raw JSON object against the generation schema.

        Raises:
            GenerationError: If the object is not a mapping or a required
                field is missing or not a string
        """
        if not isinstance(data, dict):
            raise GenerationError(
                f"Generated item must be an object, got {type(data).__name__}"
            )

        missing = [
            name
            for name in cls.REQUIRED_FIELDS
            if not isinstance(data.get(name), str)
        ]
        if missing:
            raise GenerationError(
                f"Generated item missing required fields: {', '.join(missing)}"
            )

        return cls(
            title=data["title"],
            link=data["link"],
            content=data["content"],
            pub_date=data["pubDate"],
            author=_optional_str(data.get("author")),
        )


@dataclass
class BroadcastItem:
    """A single <item> of a broadcast RSS document."""

    title: str
    link: str
    description: str
    pub_date: str
    guid: str | None = None


@dataclass
class CreateFeedResult:
    """Outcome of a feed creation form submission."""

    feed: Feed | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.feed is not None


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None

