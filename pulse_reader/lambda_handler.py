"""Main Lambda handler for Pulse AI Reader digest and broadcast jobs."""

import json
import os
from datetime import UTC, datetime
from typing import Any

import boto3

from .aggregator import FeedAggregator
from .bedrock import BedrockClient
from .broadcast import broadcast_filename, encode_broadcast
from .config import Config
from .digest import (
    EMPTY_RESULT_MESSAGE,
    ERROR_MESSAGE,
    DigestSynthesizer,
    export_markdown,
)
from .logging_config import create_execution_logger, setup_structured_logging
from .rss import RssFetcher
from .store import FeedRepository, PresetRepository, create_store
from .virtual import VirtualFeedGenerator

ACTIONS = ("digest", "broadcast")
METRICS_NAMESPACE = "Pulse-AI-Reader"

# Setup structured logging
setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"))


def _response(status_code: int, body: dict[str, Any]) -> dict[str, Any]:
    return {"statusCode": status_code, "body": json.dumps(body)}


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Run a digest or broadcast job over a selection of feeds.

    Event fields:
        action: "digest" (Markdown report) or "broadcast" (RSS document)
        feed_ids: Identifiers of the feeds to aggregate
        preset_id: Analysis preset to use (default "default_digest")
        prompt: Explicit analysis prompt, overrides preset_id
        include_digest: Broadcast only; put a generated digest first

    Args:
        event: Lambda event data
        context: Lambda context object

    Returns:
        Response dictionary with status, output file and metrics
    """
    execution_id = f"lambda_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    main_logger = create_execution_logger("main", execution_id)

    main_logger.log_execution_start(
        lambda_request_id=getattr(context, "aws_request_id", "unknown"),
        lambda_function_name=getattr(context, "function_name", "unknown"),
    )

    metrics = {
        "feeds_selected": 0,
        "articles_fetched": 0,
        "digest_generated": 0,
        "broadcast_items": 0,
        "errors": [],
    }

    action = event.get("action", "digest")
    feed_ids = event.get("feed_ids") or []
    if action not in ACTIONS or not isinstance(feed_ids, list):
        error_msg = f"Invalid job request: action={action!r}"
        main_logger.error(error_msg)
        main_logger.log_execution_end(success=False, error=error_msg)
        return _response(400, {"message": error_msg, "execution_id": execution_id})

    try:
        config = Config()
        main_logger.info("Configuration initialized", action=action)

        store = create_store(config.get_store_config(), execution_id)
        feeds = FeedRepository(store)
        presets = PresetRepository(store)

        bedrock_client = BedrockClient(config.get_bedrock_config(), execution_id)
        aggregator = FeedAggregator(
            RssFetcher(config.get_rss_proxy_config(), execution_id),
            VirtualFeedGenerator(bedrock_client, execution_id),
            max_workers=config.fetch_workers,
            execution_id=execution_id,
        )
        synthesizer = DigestSynthesizer(bedrock_client, execution_id)

        metrics["feeds_selected"] = len(feed_ids)
        articles = aggregator.aggregate(feed_ids, feeds.list())
        metrics["articles_fetched"] = len(articles)

        prompt = event.get("prompt")
        if not prompt:
            preset = presets.get(event.get("preset_id", "default_digest"))
            prompt = preset.prompt if preset else None

        digest = None
        if action == "digest":
            # Empty context yields the fixed "no articles" message
            digest = synthesizer.generate(articles, prompt)
            metrics["digest_generated"] = 1 if articles else 0
        elif event.get("include_digest") and articles:
            digest = synthesizer.generate(articles, prompt)
            if digest in (ERROR_MESSAGE, EMPTY_RESULT_MESSAGE):
                main_logger.warning("Digest unavailable, broadcasting articles only")
                metrics["errors"].append(f"Digest not generated: {digest}")
                digest = None
            else:
                metrics["digest_generated"] = 1

        if action == "digest":
            filename, content = export_markdown(digest)
        else:
            if not digest and not articles:
                error_msg = "Nothing to broadcast: no digest and no articles"
                main_logger.warning(error_msg)
                metrics["errors"].append(error_msg)
                send_cloudwatch_metrics(metrics, config.aws_region, execution_id)
                main_logger.log_execution_end(success=False, metrics=metrics)
                return _response(
                    400,
                    {
                        "message": error_msg,
                        "execution_id": execution_id,
                        "metrics": metrics,
                    },
                )
            content = encode_broadcast(digest, articles)
            filename = broadcast_filename()
            metrics["broadcast_items"] = len(articles) + (1 if digest else 0)

        main_logger.log_metrics(metrics)
        send_cloudwatch_metrics(metrics, config.aws_region, execution_id)
        main_logger.log_execution_end(success=True, metrics=metrics)

        return _response(
            200,
            {
                "message": f"Pulse {action} job completed",
                "execution_id": execution_id,
                "filename": filename,
                "content": content,
                "metrics": metrics,
            },
        )

    except Exception as e:
        error_msg = f"Critical error in Lambda handler: {str(e)}"
        main_logger.error(error_msg, error=str(e), error_type=type(e).__name__)
        metrics["errors"].append(error_msg)

        send_cloudwatch_metrics(
            metrics,
            config.aws_region if "config" in locals() else "us-east-1",
            execution_id,
        )

        main_logger.log_execution_end(success=False, metrics=metrics, error=error_msg)

        return _response(
            500,
            {
                "message": f"Pulse {action} job failed",
                "execution_id": execution_id,
                "error": error_msg,
                "metrics": metrics,
            },
        )


def send_cloudwatch_metrics(
    metrics: dict[str, Any], aws_region: str, execution_id: str
) -> None:
    """
    Send custom job metrics to CloudWatch.

    Failures are logged and never raised.

    Args:
        metrics: Dictionary containing execution metrics
        aws_region: AWS region for CloudWatch client
        execution_id: Execution ID for logging context
    """
    metrics_logger = create_execution_logger("cloudwatch_metrics", execution_id)

    try:
        metrics_logger.info("Sending metrics to CloudWatch", metrics=metrics)
        cloudwatch = boto3.client("cloudwatch", region_name=aws_region)

        total_errors = len(metrics["errors"])
        execution_success = total_errors == 0
        execution_dimension = [{"Name": "ExecutionId", "Value": execution_id}]
        status_dimension = [
            {"Name": "Status", "Value": "Success" if execution_success else "Failure"}
        ]

        metric_data = [
            {
                "MetricName": "FeedsSelected",
                "Value": metrics["feeds_selected"],
                "Unit": "Count",
                "Dimensions": execution_dimension,
            },
            {
                "MetricName": "ArticlesFetched",
                "Value": metrics["articles_fetched"],
                "Unit": "Count",
                "Dimensions": execution_dimension,
            },
            {
                "MetricName": "DigestsGenerated",
                "Value": metrics["digest_generated"],
                "Unit": "Count",
                "Dimensions": execution_dimension,
            },
            {
                "MetricName": "BroadcastItems",
                "Value": metrics["broadcast_items"],
                "Unit": "Count",
                "Dimensions": execution_dimension,
            },
            {
                "MetricName": "Errors",
                "Value": total_errors,
                "Unit": "Count",
                "Dimensions": execution_dimension,
            },
            {
                "MetricName": "ExecutionSuccess",
                "Value": 1 if execution_success else 0,
                "Unit": "Count",
                "Dimensions": status_dimension,
            },
            {
                "MetricName": "ExecutionFailure",
                "Value": 0 if execution_success else 1,
                "Unit": "Count",
                "Dimensions": status_dimension,
            },
        ]

        cloudwatch.put_metric_data(Namespace=METRICS_NAMESPACE, MetricData=metric_data)

        metrics_logger.info(
            "Successfully sent metrics to CloudWatch",
            metrics_sent=len(metric_data),
            namespace=METRICS_NAMESPACE,
            execution_success=execution_success,
        )

    except Exception as e:
        metrics_logger.error(f"Failed to send CloudWatch metrics: {e}", error=str(e))
