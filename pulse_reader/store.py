"""Persistent feed and preset lists on top of a key-value store."""

import json
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

import boto3
from botocore.exceptions import ClientError

from .config import StoreConfig
from .ids import new_id
from .logging_config import create_execution_logger
from .models import AnalysisPreset, Feed, FeedType

FEEDS_KEY = "pulse_feeds"
PRESETS_KEY = "pulse_presets"

INITIAL_FEEDS = [
    Feed(id="1", title="The Verge", url="https://www.theverge.com/rss/index.xml", type=FeedType.RSS),
    Feed(id="2", title="Wired", url="https://www.wired.com/feed/rss", type=FeedType.RSS),
]

DEFAULT_PRESETS = [
    AnalysisPreset(
        id="default_digest",
        name="Daily Smart Digest",
        description="General overview of news grouped by theme.",
        prompt=(
            'Create a "Daily Smart Digest" based on the provided articles. Group them '
            "by theme. Write in a professional, engaging newsletter style. Include "
            "source links."
        ),
        icon="newspaper",
    ),
    AnalysisPreset(
        id="job_hunter",
        name="Job Opportunity Scout",
        description="Scan for jobs, career advice, and application strategies.",
        prompt=(
            "Analyze the content for job opportunities, career advice, or companies "
            "that are hiring. List specific roles mentioned, required skills, and "
            "suggest the best method to apply based on the context. If no direct jobs "
            "are found, identify companies expanding or launching new products that "
            "might imply hiring needs. Format as a clear Markdown table followed by a "
            '"Strategy" section.'
        ),
        icon="briefcase",
    ),
    AnalysisPreset(
        id="checklist_gen",
        name="Action Checklist",
        description="Convert insights into a To-Do list.",
        prompt=(
            "Review these articles and create a prioritized markdown checklist of "
            "actionable items, learning opportunities, or technologies to research. "
            "Use check boxes [ ] for each item. Be specific."
        ),
        icon="check-square",
    ),
    AnalysisPreset(
        id="market_intel",
        name="Market Research",
        description="Trends, competitors, and business sentiment.",
        prompt=(
            "Identify emerging trends, market shifts, and competitor moves. Summarize "
            "the sentiment (Positive/Negative/Neutral) and potential business impacts "
            'in a structured report. Highlight any "Red Flags" or "Green Lights" for '
            "investors or stakeholders."
        ),
        icon="search",
    ),
]

DEFAULT_PRESET_IDS = frozenset(preset.id for preset in DEFAULT_PRESETS)


class KeyValueStore(Protocol):
    """String-valued key-value store."""

    def get(self, key: str) -> str | None: ...

    def put(self, key: str, value: str) -> None: ...


class JsonFileStore:
    """Stores each key as a JSON document in a local directory."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self.logger = create_execution_logger("store")

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def put(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(value)
        tmp_path.replace(path)
        self.logger.debug("Stored key", key=key, path=str(path))


class DynamoDBStore:
    """Stores each key as an item of a DynamoDB table."""

    def __init__(
        self,
        table_name: str,
        aws_region: str = "us-east-1",
        execution_id: str | None = None,
    ):
        """Initialize the store with DynamoDB configuration.

        Args:
            table_name: Name of the DynamoDB table (partition key "key")
            aws_region: AWS region for DynamoDB client
            execution_id: Execution ID for logging context
        """
        self.table_name = table_name
        self.logger = create_execution_logger("store", execution_id)
        self.dynamodb = boto3.resource("dynamodb", region_name=aws_region)
        self.table = self.dynamodb.Table(table_name)

        self.logger.info(
            "DynamoDBStore initialized", table_name=table_name, aws_region=aws_region
        )

    def get(self, key: str) -> str | None:
        try:
            response = self.table.get_item(Key={"key": key})
        except ClientError as e:
            self.logger.error(f"Error reading key {key}: {e}", key=key, error=str(e))
            raise
        item = response.get("Item")
        return item["value"] if item else None

    def put(self, key: str, value: str) -> None:
        try:
            self.table.put_item(
                Item={
                    "key": key,
                    "value": value,
                    "updated_at": datetime.now(UTC).isoformat(),
                }
            )
        except ClientError as e:
            self.logger.error(f"Error storing key {key}: {e}", key=key, error=str(e))
            raise
        self.logger.info("Stored key in DynamoDB", key=key, value_length=len(value))


def create_store(config: StoreConfig, execution_id: str | None = None) -> KeyValueStore:
    if config.backend == "dynamodb":
        return DynamoDBStore(config.table_name, config.region, execution_id)
    return JsonFileStore(config.data_dir)


class FeedRepository:
    """Feed list loaded at start and saved on every mutation."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.logger = create_execution_logger("store")
        raw = store.get(FEEDS_KEY)
        if raw is None:
            self._feeds = [replace(feed) for feed in INITIAL_FEEDS]
        else:
            self._feeds = [Feed.from_dict(entry) for entry in json.loads(raw)]

    def list(self) -> list[Feed]:
        return list(self._feeds)

    def get(self, feed_id: str) -> Feed | None:
        return next((feed for feed in self._feeds if feed.id == feed_id), None)

    def add(self, feed: Feed) -> Feed:
        if self.get(feed.id) is not None:
            raise ValueError(f"Feed id already exists: {feed.id}")
        self._feeds.append(feed)
        self._save()
        self.logger.info("Feed added", feed_id=feed.id, feed_url=feed.url)
        return feed

    def delete(self, feed_id: str) -> bool:
        remaining = [feed for feed in self._feeds if feed.id != feed_id]
        if len(remaining) == len(self._feeds):
            return False
        self._feeds = remaining
        self._save()
        self.logger.info("Feed deleted", feed_id=feed_id)
        return True

    def _save(self) -> None:
        self.store.put(FEEDS_KEY, json.dumps([feed.to_dict() for feed in self._feeds]))


class PresetRepository:
    """Analysis presets: the defaults plus user-created ones."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.logger = create_execution_logger("store")
        raw = store.get(PRESETS_KEY)
        if raw is None:
            self._presets = [replace(p) for p in DEFAULT_PRESETS]
        else:
            self._presets = [AnalysisPreset.from_dict(entry) for entry in json.loads(raw)]

    def list(self) -> list[AnalysisPreset]:
        return list(self._presets)

    def get(self, preset_id: str) -> AnalysisPreset | None:
        return next((p for p in self._presets if p.id == preset_id), None)

    def add(self, name: str, prompt: str) -> AnalysisPreset | None:
        """Save a custom preset; blank names are ignored."""
        if not name.strip():
            return None
        preset = AnalysisPreset(
            id=new_id(),
            name=name,
            description="Custom saved preset",
            prompt=prompt,
            icon="file-text",
        )
        self._presets.append(preset)
        self._save()
        self.logger.info("Preset saved", preset_id=preset.id)
        return preset

    def delete(self, preset_id: str) -> bool:
        """Remove a custom preset. Default presets are never removed."""
        if preset_id in DEFAULT_PRESET_IDS:
            return False
        remaining = [p for p in self._presets if p.id != preset_id]
        if len(remaining) == len(self._presets):
            return False
        self._presets = remaining
        self._save()
        return True

    def _save(self) -> None:
        self.store.put(
            PRESETS_KEY, json.dumps([p.to_dict() for p in self._presets])
        )
