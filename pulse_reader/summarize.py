"""Article summarization and article chat using Amazon Bedrock."""

from .bedrock import BedrockClient
from .errors import GenerationError
from .logging_config import create_execution_logger
from .models import Article, ChatMessage
from .rss import preview_text

SUMMARY_CONTENT_LIMIT = 10000
CHAT_CONTENT_LIMIT = 15000

SUMMARY_SYSTEM_INSTRUCTION = (
    "You are a helpful news assistant. Keep summaries objective and easy to read."
)
CHAT_ACKNOWLEDGEMENT = "Understood. I am ready to answer questions about the article."

SUMMARY_EMPTY = "Could not generate summary."
SUMMARY_ERROR = "Error generating summary. Please try again."
CHAT_ERROR = "I'm having trouble connecting right now."


def truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text


class Summarizer:
    """Summarizes single articles and answers questions about them."""

    def __init__(self, client: BedrockClient, execution_id: str | None = None):
        self.client = client
        self.logger = create_execution_logger("summarizer", execution_id)

    def summarize(self, article: Article) -> str:
        """Generate a bulleted summary of an article.

        Failures are logged and reported as a fixed message, never raised.
        """
        self.logger.info("Starting summarization", article_id=article.id)

        content = truncate(preview_text(article.content), SUMMARY_CONTENT_LIMIT)
        prompt = (
            f'Summarize the following article titled "{article.title}" in a concise, '
            "bulleted format. Highlight the key takeaways. \n\n"
            f"Article Content:\n{content}"
        )

        try:
            text = self.client.generate(prompt, system=SUMMARY_SYSTEM_INSTRUCTION)
        except GenerationError as e:
            self.logger.error(
                f"Summarization error: {e}", article_id=article.id, error=str(e)
            )
            return SUMMARY_ERROR

        return text or SUMMARY_EMPTY

    def chat(self, article: Article, history: list[ChatMessage], message: str) -> str:
        """Answer a question about an article given the prior conversation.

        The conversation is seeded with the article text and an
        acknowledgement turn before the caller's history.
        """
        content = truncate(preview_text(article.content), CHAT_CONTENT_LIMIT)
        seeded = [
            ChatMessage(
                role="user",
                text=(
                    "Context: You are an AI assistant helping a user understand an "
                    f"article. Here is the article content:\n\n{content}\n\n"
                    "Answer questions based on this text."
                ),
            ),
            ChatMessage(role="model", text=CHAT_ACKNOWLEDGEMENT),
            *history,
        ]

        try:
            return self.client.chat(seeded, message)
        except GenerationError as e:
            self.logger.error(f"Chat error: {e}", article_id=article.id, error=str(e))
            return CHAT_ERROR
