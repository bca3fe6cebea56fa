"""Digest synthesis: cross-feed analysis reports from an instruction prompt."""

from datetime import date

from .bedrock import BedrockClient
from .errors import GenerationError
from .logging_config import create_execution_logger
from .models import Article

MAX_DIGEST_ARTICLES = 50
SNIPPET_LENGTH = 800

DEFAULT_DIGEST_PROMPT = (
    'Create a "Daily Smart Digest" based on the following article headlines and '
    "snippets. Group them by theme if possible. Write in a professional, "
    "engaging newsletter style. Include links to the original articles where "
    "relevant in Markdown format."
)

NO_ARTICLES_MESSAGE = "No articles available to generate a digest."
EMPTY_RESULT_MESSAGE = "Could not generate analysis."
ERROR_MESSAGE = "Error generating analysis."


def render_entry(article: Article) -> str:
    """Render one article as a single digest source line."""
    return (
        f"- [{article.pub_date}] {article.title} ({article.link}): "
        f"{article.content[:SNIPPET_LENGTH]}..."
    )


def render_source_data(articles: list[Article]) -> str:
    return "\n\n".join(
        render_entry(article) for article in articles[:MAX_DIGEST_ARTICLES]
    )


class DigestSynthesizer:
    """Sends an article set plus an analysis prompt to the generative service."""

    def __init__(self, client: BedrockClient, execution_id: str | None = None):
        self.client = client
        self.logger = create_execution_logger("digest", execution_id)

    def build_prompt(self, articles: list[Article], prompt: str | None = None) -> str:
        instruction = prompt or DEFAULT_DIGEST_PROMPT
        return (
            f"{instruction}\n\n--- SOURCE DATA ---\n"
            f"{render_source_data(articles)}"
        )

    def generate(self, articles: list[Article], prompt: str | None = None) -> str:
        """Produce a Markdown report for the given articles.

        Only the first 50 articles are used, in the order given. The result
        is not cached; repeated calls may return different prose.

        Args:
            articles: Article context, typically newest first
            prompt: Analysis instruction; the default digest prompt when empty

        Returns:
            Generated text, or a fixed message when there is nothing to
            analyze or the service fails
        """
        if not articles:
            return NO_ARTICLES_MESSAGE

        self.logger.info(
            "Generating digest",
            articles_count=len(articles),
            articles_used=min(len(articles), MAX_DIGEST_ARTICLES),
        )

        try:
            text = self.client.generate(self.build_prompt(articles, prompt))
        except GenerationError as e:
            self.logger.error(f"Digest/Analysis error: {e}", error=str(e))
            return ERROR_MESSAGE

        return text or EMPTY_RESULT_MESSAGE


def markdown_filename(today: date) -> str:
    return f"pulse_analysis_{today.isoformat()}.md"


def export_markdown(result: str, today: date | None = None) -> tuple[str, str]:
    """Package a digest result as a downloadable Markdown file.

    Returns:
        Tuple of (filename, content)
    """
    return markdown_filename(today or date.today()), result
