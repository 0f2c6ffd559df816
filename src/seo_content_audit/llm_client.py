"""
LLM client abstraction for content analysis.

This module provides an interface for calling LLMs (Claude/Anthropic)
to enrich rule-based duplicate findings with root causes and
improvement strategies.
"""

import logging
import os
from typing import Optional

try:
    import anthropic
except ImportError:
    anthropic = None  # type: ignore

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"


class LLMClientError(Exception):
    """Raised when LLM operations fail."""
    pass


class LLMClient:
    """
    Client for LLM-based content analysis.

    Supports Anthropic Claude API.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.3,
    ):
        """
        Initialize the LLM client.

        Args:
            api_key: API key for the LLM provider. If None, reads from ANTHROPIC_API_KEY env var.
            model: Model identifier to use.
            temperature: Sampling temperature for every call.
        """
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self.model = model
        self.temperature = temperature

        if not self.api_key:
            raise LLMClientError(
                "No API key provided. Set ANTHROPIC_API_KEY environment variable "
                "or pass api_key parameter."
            )

        if anthropic is None:
            raise LLMClientError(
                "anthropic package not installed. Run: pip install anthropic"
            )

        import httpx
        # Shared by enrichment worker threads
        http_client = httpx.Client(
            timeout=httpx.Timeout(60.0, connect=30.0),
            follow_redirects=True,
        )
        self.client = anthropic.Anthropic(
            api_key=self.api_key,
            http_client=http_client,
        )

    def complete_json(
        self,
        system: str,
        prompt: str,
        max_tokens: int = 4000,
    ) -> str:
        """
        Ask the model for a JSON answer.

        Args:
            system: System prompt.
            prompt: User prompt describing the content and the JSON shape.
            max_tokens: Maximum tokens in response.

        Returns:
            Raw text of the first content block (expected to hold JSON).
        """
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=self.temperature,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            raise LLMClientError(f"LLM API call failed: {e}")

        if not response.content:
            raise LLMClientError("LLM API call returned no content")

        text = getattr(response.content[0], "text", None)
        if not text:
            raise LLMClientError("LLM API call returned an empty text block")

        logger.debug(f"LLM response received ({len(text)} chars)")
        return text


def create_llm_client(
    api_key: Optional[str] = None,
    model: str = DEFAULT_MODEL,
    temperature: float = 0.3,
) -> LLMClient:
    """
    Factory function to create an LLM client.

    Args:
        api_key: Optional API key. If None, uses environment variable.
        model: Model to use.
        temperature: Sampling temperature.

    Returns:
        Configured LLMClient instance.
    """
    return LLMClient(api_key=api_key, model=model, temperature=temperature)
