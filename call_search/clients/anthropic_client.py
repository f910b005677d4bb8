"""Answer generation through the Anthropic API."""

import anthropic

from ..config import get_settings
from ..errors import AnswerGenerationError


class AnthropicAnswerGenerator:
    """Generates grounded answers with a Claude model."""

    def __init__(self, api_key: str | None = None, llm_model: str | None = None, max_tokens: int | None = None):
        settings = get_settings()
        self.llm_model = llm_model or settings.llm_model
        self.max_tokens = max_tokens or settings.answer_max_tokens
        self.anthropic = anthropic.AsyncAnthropic(
            api_key=api_key or settings.anthropic_api_key,
            timeout=settings.upstream_timeout_seconds,
        )

    async def complete(self, prompt: str, max_tokens: int | None = None) -> str:
        """Return the model's text response to a single-turn prompt."""
        try:
            response = await self.anthropic.messages.create(
                model=self.llm_model,
                max_tokens=max_tokens or self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            raise AnswerGenerationError(str(e)) from e

        return "".join(block.text for block in response.content if block.type == "text")

    async def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        await self.anthropic.close()
