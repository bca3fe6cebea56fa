"""Unit tests for CloudWatch metrics functionality."""

from unittest.mock import Mock, patch

from botocore.exceptions import ClientError

from pulse_reader.lambda_handler import METRICS_NAMESPACE, send_cloudwatch_metrics


def collect_metrics(mock_cloudwatch) -> list[dict]:
    all_metrics = []
    for call in mock_cloudwatch.put_metric_data.call_args_list:
        all_metrics.extend(call.kwargs["MetricData"])
    return all_metrics


def find_metric(all_metrics: list[dict], name: str) -> dict:
    return next(m for m in all_metrics if m["MetricName"] == name)


class TestCloudWatchMetricsUnit:
    """Unit tests for CloudWatch metrics functionality."""

    def test_send_cloudwatch_metrics_success(self):
        """Test successful CloudWatch metrics publication."""
        metrics = {
            "feeds_selected": 3,
            "articles_fetched": 12,
            "digest_generated": 1,
            "broadcast_items": 13,
            "errors": [],
        }

        with patch("boto3.client") as mock_boto_client:
            mock_cloudwatch = Mock()
            mock_boto_client.return_value = mock_cloudwatch

            send_cloudwatch_metrics(metrics, "us-east-1", "test-exec-123")

        mock_boto_client.assert_called_with("cloudwatch", region_name="us-east-1")
        mock_cloudwatch.put_metric_data.assert_called_once()
        assert mock_cloudwatch.put_metric_data.call_args.kwargs["Namespace"] == (
            METRICS_NAMESPACE
        )
        assert METRICS_NAMESPACE == "Pulse-AI-Reader"

        all_metrics = collect_metrics(mock_cloudwatch)
        assert [m["MetricName"] for m in all_metrics] == [
            "FeedsSelected",
            "ArticlesFetched",
            "DigestsGenerated",
            "BroadcastItems",
            "Errors",
            "ExecutionSuccess",
            "ExecutionFailure",
        ]
        assert find_metric(all_metrics, "FeedsSelected")["Value"] == 3
        assert find_metric(all_metrics, "ArticlesFetched")["Value"] == 12
        assert find_metric(all_metrics, "BroadcastItems")["Value"] == 13
        assert find_metric(all_metrics, "Errors")["Value"] == 0
        assert find_metric(all_metrics, "ExecutionSuccess")["Value"] == 1
        assert find_metric(all_metrics, "ExecutionFailure")["Value"] == 0
        assert all(m["Unit"] == "Count" for m in all_metrics)

    def test_send_cloudwatch_metrics_with_errors(self):
        """Errors flip the execution status dimension to Failure."""
        metrics = {
            "feeds_selected": 2,
            "articles_fetched": 0,
            "digest_generated": 0,
            "broadcast_items": 0,
            "errors": ["Error 1", "Error 2"],
        }

        with patch("boto3.client") as mock_boto_client:
            mock_cloudwatch = Mock()
            mock_boto_client.return_value = mock_cloudwatch

            send_cloudwatch_metrics(metrics, "eu-west-1", "test-exec-456")

        all_metrics = collect_metrics(mock_cloudwatch)
        assert find_metric(all_metrics, "Errors")["Value"] == 2
        assert find_metric(all_metrics, "ExecutionSuccess")["Value"] == 0
        assert find_metric(all_metrics, "ExecutionFailure")["Value"] == 1

        success_dimensions = find_metric(all_metrics, "ExecutionSuccess")["Dimensions"]
        assert success_dimensions == [{"Name": "Status", "Value": "Failure"}]

    def test_send_cloudwatch_metrics_dimensions(self):
        """Count metrics carry the ExecutionId dimension."""
        metrics = {
            "feeds_selected": 1,
            "articles_fetched": 3,
            "digest_generated": 1,
            "broadcast_items": 0,
            "errors": [],
        }

        with patch("boto3.client") as mock_boto_client:
            mock_cloudwatch = Mock()
            mock_boto_client.return_value = mock_cloudwatch

            send_cloudwatch_metrics(metrics, "eu-central-1", "test-exec-dim")

        all_metrics = collect_metrics(mock_cloudwatch)
        for name in ("FeedsSelected", "ArticlesFetched", "DigestsGenerated", "Errors"):
            assert find_metric(all_metrics, name)["Dimensions"] == [
                {"Name": "ExecutionId", "Value": "test-exec-dim"}
            ]

    def test_send_cloudwatch_metrics_client_error(self):
        """CloudWatch failures are logged, never raised."""
        metrics = {
            "feeds_selected": 1,
            "articles_fetched": 2,
            "digest_generated": 0,
            "broadcast_items": 2,
            "errors": [],
        }

        with patch("boto3.client") as mock_boto_client:
            mock_cloudwatch = Mock()
            mock_cloudwatch.put_metric_data.side_effect = ClientError(
                error_response={
                    "Error": {"Code": "AccessDenied", "Message": "Access denied"}
                },
                operation_name="PutMetricData",
            )
            mock_boto_client.return_value = mock_cloudwatch

            send_cloudwatch_metrics(metrics, "us-west-2", "test-exec-789")

        assert mock_cloudwatch.put_metric_data.called
