"""Hosted LLM access: grounded answers and code insights."""

import asyncio
import logging

from anthropic import APIConnectionError, APIStatusError, AsyncAnthropic, RateLimitError

from studyforge.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# Returned instead of raising when the provider call fails
FALLBACK_ANSWER = "I'm experiencing technical difficulties. Please try again later."
EMPTY_ANSWER = "I couldn't generate a response. Please try again."
CODE_ANALYSIS_UNAVAILABLE = "Code analysis unavailable."
CODE_ANALYSIS_FAILED = "Failed to analyze code."

# Transient error types that warrant retrying
_RETRYABLE_ERRORS = (APIConnectionError, RateLimitError)

ANSWER_SYSTEM_PROMPT = """You are an AI study assistant specializing in computer science topics, placement preparation, and code analysis.

You have access to the user's personal study materials, notes, GitHub repositories, and placement questions.
Use the provided context to give accurate, detailed answers.

When referencing sources, mention which document or repository the information comes from.

Keep answers focused, practical, and educational."""

CODE_ANALYSIS_SYSTEM_PROMPT = (
    "You are a code analysis expert. Analyze the provided code and explain its "
    "functionality, architecture, and key components."
)


async def _retry_anthropic(coro_factory, *, max_attempts: int = 3, base_delay: float = 1.0):
    """
    Retry an Anthropic API call with exponential backoff.

    Args:
        coro_factory: Callable that returns a new coroutine each invocation.
        max_attempts: Maximum number of attempts.
        base_delay: Base delay in seconds (doubles each retry).

    Returns:
        The result of the coroutine.
    """
    for attempt in range(max_attempts):
        try:
            return await coro_factory()
        except _RETRYABLE_ERRORS as e:
            if attempt >= max_attempts - 1:
                raise
            delay = base_delay * (2 ** attempt)
            logger.warning(
                "Anthropic API transient error (attempt %d/%d), retrying in %.1fs: %s",
                attempt + 1, max_attempts, delay, str(e),
            )
            await asyncio.sleep(delay)
        except APIStatusError as e:
            if e.status_code != 529 or attempt >= max_attempts - 1:  # 529: overloaded
                raise
            delay = base_delay * (2 ** attempt)
            logger.warning(
                "Anthropic API overloaded (attempt %d/%d), retrying in %.1fs",
                attempt + 1, max_attempts, delay,
            )
            await asyncio.sleep(delay)


def _first_text(message) -> str | None:
    """Return the first text block of a Messages API response, if any."""
    for block in getattr(message, "content", None) or []:
        text = getattr(block, "text", None)
        if text:
            return text
    return None


class AnswerService:
    """Generates answers grounded in retrieved context using Claude."""

    def __init__(self, client: AsyncAnthropic | None = None, *, retry_base_delay: float = 1.0):
        self.client = client or AsyncAnthropic(api_key=settings.anthropic_api_key)
        self.retry_base_delay = retry_base_delay

    async def _complete(self, system_prompt: str, user_prompt: str, max_tokens: int) -> str | None:
        message = await _retry_anthropic(
            lambda: self.client.messages.create(
                model=settings.llm_model,
                max_tokens=max_tokens,
                temperature=settings.llm_temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            ),
            max_attempts=settings.llm_max_attempts,
            base_delay=self.retry_base_delay,
        )
        return _first_text(message)

    async def generate_answer(self, query: str, context: str) -> str:
        """
        Answer `query` using `context` rendered from the user's material.

        Never raises: provider failures produce FALLBACK_ANSWER and an empty
        completion produces EMPTY_ANSWER.
        """
        user_prompt = f"""Question: {query}

Context from user's materials:
{context}

Please provide a comprehensive answer based on the context provided."""

        try:
            answer = await self._complete(
                ANSWER_SYSTEM_PROMPT, user_prompt, settings.llm_answer_max_tokens
            )
        except Exception:
            logger.exception("LLM answer generation failed")
            return FALLBACK_ANSWER
        return answer or EMPTY_ANSWER

    async def analyze_code(self, code: str, language: str | None) -> str:
        """Explain the purpose and structure of a code snippet."""
        user_prompt = (
            f"Please analyze this {language or 'source'} code and explain its purpose "
            f"and structure:\n\n{code}"
        )
        try:
            analysis = await self._complete(
                CODE_ANALYSIS_SYSTEM_PROMPT, user_prompt, settings.llm_code_analysis_max_tokens
            )
        except Exception:
            logger.exception("LLM code analysis failed")
            return CODE_ANALYSIS_FAILED
        return analysis or CODE_ANALYSIS_UNAVAILABLE
