"""Configuration management for Pulse AI Reader."""

import os
from dataclasses import dataclass


@dataclass
class BedrockConfig:
    """Configuration for Amazon Bedrock."""

    model_id: str = "amazon.nova-micro-v1:0"
    grounding_model_id: str = "us.amazon.nova-premier-v1:0"
    region: str = "us-east-1"
    max_tokens: int = 2000
    temperature: float = 0.3


@dataclass
class RssProxyConfig:
    """Configuration for the RSS-to-JSON lookup service."""

    endpoint: str = "https://api.rss2json.com/v1/api.json"
    api_key: str | None = None
    timeout: int = 30


@dataclass
class StoreConfig:
    """Configuration for the key-value store holding feeds and presets."""

    backend: str = "file"  # "file" or "dynamodb"
    data_dir: str = ".pulse"
    table_name: str = "pulse-reader-state"
    region: str = "us-east-1"


class Config:
    """Main configuration manager."""

    STORE_BACKENDS = ("file", "dynamodb")

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.aws_region = os.getenv(
            "CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")
        )
        self.bedrock_model_id = os.getenv("BEDROCK_MODEL_ID", "amazon.nova-micro-v1:0")
        self.bedrock_grounding_model_id = os.getenv(
            "BEDROCK_GROUNDING_MODEL_ID", "us.amazon.nova-premier-v1:0"
        )
        self.rss_endpoint = os.getenv(
            "RSS2JSON_ENDPOINT", "https://api.rss2json.com/v1/api.json"
        )
        self.rss_api_key = os.getenv("RSS2JSON_API_KEY") or None
        self.store_backend = os.getenv("PULSE_STORE", "file").lower()
        self.data_dir = os.getenv("PULSE_DATA_DIR", ".pulse")
        self.dynamodb_table = os.getenv("DYNAMODB_TABLE", "pulse-reader-state")
        self.fetch_workers = _int_env("FETCH_WORKERS", 8)
        self.request_timeout = _int_env("REQUEST_TIMEOUT", 30)

        if self.store_backend not in self.STORE_BACKENDS:
            raise ValueError(
                f"PULSE_STORE must be one of {', '.join(self.STORE_BACKENDS)}, "
                f"got {self.store_backend!r}"
            )
        if self.fetch_workers < 1:
            raise ValueError("FETCH_WORKERS must be at least 1")

    def get_bedrock_config(self) -> BedrockConfig:
        """Get Bedrock configuration."""
        return BedrockConfig(
            model_id=self.bedrock_model_id,
            grounding_model_id=self.bedrock_grounding_model_id,
            region=self.aws_region,
        )

    def get_rss_proxy_config(self) -> RssProxyConfig:
        """Get RSS lookup service configuration."""
        return RssProxyConfig(
            endpoint=self.rss_endpoint,
            api_key=self.rss_api_key,
            timeout=self.request_timeout,
        )

    def get_store_config(self) -> StoreConfig:
        """Get key-value store configuration."""
        return StoreConfig(
            backend=self.store_backend,
            data_dir=self.data_dir,
            table_name=self.dynamodb_table,
            region=self.aws_region,
        )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
