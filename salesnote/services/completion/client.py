"""Completion service client."""
import logging
from typing import Optional
from openai import AsyncOpenAI
from pydantic import BaseModel

logger = logging.getLogger(__name__)

MAX_LITERAL_TEMPERATURE = 0.3


class CompletionFailure(Exception):
    """The completion service was unreachable or returned an error."""


class GenerationParams(BaseModel):
    """Generation parameters sent with every extraction prompt."""

    model: str = "gpt-4o-mini"
    temperature: float = 0.1
    max_tokens: int = 1000


class CompletionService:
    """Sends one prompt to the chat completions API; a single attempt, no retries."""

    def __init__(self, api_key: str, client: Optional[AsyncOpenAI] = None):
        self.client = client or AsyncOpenAI(api_key=api_key, max_retries=0)

    async def complete(self, prompt: str, params: GenerationParams) -> str:
        """
        Get the raw completion text for a prompt.

        Returns:
            Completion text (empty string if the model returned no content)

        Raises:
            CompletionFailure: on any upstream error
        """
        if params.temperature > MAX_LITERAL_TEMPERATURE:
            logger.warning(
                f"[COMPLETION] Temperature {params.temperature} is above "
                f"{MAX_LITERAL_TEMPERATURE}; prices and quantities may be rewritten"
            )

        logger.info(
            f"[COMPLETION] Sending prompt ({len(prompt)} chars) to {params.model}, "
            f"temperature={params.temperature}, max_tokens={params.max_tokens}"
        )
        try:
            response = await self.client.chat.completions.create(
                model=params.model,
                messages=[{"role": "system", "content": prompt}],
                temperature=params.temperature,
                max_tokens=params.max_tokens,
            )
        except Exception as e:
            logger.error(f"[COMPLETION] Request failed: {type(e).__name__}: {e}")
            raise CompletionFailure(f"Completion failed: {e}") from e

        if not response.choices:
            logger.warning("[COMPLETION] Response contained no choices")
            return ""
        content = response.choices[0].message.content or ""
        logger.info(f"[COMPLETION] Received {len(content)} chars")
        logger.debug(f"[COMPLETION] Raw response:\n{content}")
        return content
