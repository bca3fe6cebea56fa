"""Generative AI client backed by the Amazon Bedrock Converse API."""

import time

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import BedrockConfig
from .errors import GenerationError
from .logging_config import create_execution_logger
from .models import ChatMessage

# Web search grounding tool exposed by Amazon Nova models
GROUNDING_TOOL_CONFIG = {"tools": [{"systemTool": {"name": "nova_grounding"}}]}

# Chat roles are stored as user/model; Bedrock names the second "assistant"
ROLE_MAP = {"user": "user", "model": "assistant"}


class BedrockClient:
    """Thin wrapper around bedrock-runtime for text generation and chat."""

    def __init__(self, config: BedrockConfig, execution_id: str | None = None):
        """Initialize the Bedrock client.

        Args:
            config: Bedrock configuration
            execution_id: Execution ID for logging context
        """
        self.config = config
        self.logger = create_execution_logger("bedrock", execution_id)
        self.client = boto3.client("bedrock-runtime", region_name=config.region)
        self.logger.info(
            "Initialized Bedrock client",
            region=config.region,
            model_id=config.model_id,
        )

    def generate(
        self,
        prompt: str,
        system: str | None = None,
        grounding: bool = False,
    ) -> str:
        """Run a single-turn generation request.

        Args:
            prompt: User prompt
            system: Optional system instruction
            grounding: Enable live web search grounding

        Returns:
            Generated text (may be empty)

        Raises:
            GenerationError: If the service call fails
        """
        messages = [{"role": "user", "content": [{"text": prompt}]}]
        model_id = self.config.grounding_model_id if grounding else self.config.model_id
        return self._converse(model_id, messages, system, grounding)

    def chat(
        self,
        history: list[ChatMessage],
        message: str,
        system: str | None = None,
    ) -> str:
        """Send a new message on top of an ordered chat history.

        Raises:
            GenerationError: If a history role is unknown or the call fails
        """
        messages = []
        for turn in history:
            role = ROLE_MAP.get(turn.role)
            if role is None:
                raise GenerationError(f"Unknown chat role: {turn.role}")
            messages.append({"role": role, "content": [{"text": turn.text}]})
        messages.append({"role": "user", "content": [{"text": message}]})

        return self._converse(self.config.model_id, messages, system, False)

    def _converse(
        self,
        model_id: str,
        messages: list[dict],
        system: str | None,
        grounding: bool,
    ) -> str:
        request = {
            "modelId": model_id,
            "messages": messages,
            "inferenceConfig": {
                "maxTokens": self.config.max_tokens,
                "temperature": self.config.temperature,
            },
        }
        if system:
            request["system"] = [{"text": system}]
        if grounding:
            request["toolConfig"] = GROUNDING_TOOL_CONFIG

        self.logger.info(
            "Calling Bedrock Converse API",
            model_id=model_id,
            turns=len(messages),
            grounding=grounding,
        )

        start_time = time.time()
        try:
            response = self.client.converse(**request)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            error_message = e.response.get("Error", {}).get("Message", "")
            self.logger.error(
                f"Bedrock client error: {error_code} - {error_message}",
                error_code=error_code,
                model_id=model_id,
            )
            raise GenerationError(f"Bedrock request failed: {error_code}") from e
        except BotoCoreError as e:
            self.logger.error(f"Bedrock transport error: {e}", error=str(e))
            raise GenerationError(f"Bedrock request failed: {e}") from e

        response_time_ms = int((time.time() - start_time) * 1000)

        message = response.get("output", {}).get("message", {})
        text = "".join(
            block["text"]
            for block in message.get("content", [])
            if isinstance(block, dict) and isinstance(block.get("text"), str)
        )

        usage = response.get("usage", {})
        self.logger.info(
            "Bedrock response received",
            model_id=model_id,
            response_length=len(text),
            tokens=usage.get("totalTokens"),
            stop_reason=response.get("stopReason"),
            response_time_ms=response_time_ms,
        )
        return text
