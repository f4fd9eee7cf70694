"""
OpenAI LLM Provider.
"""

import logging
from typing import List, Dict, Optional

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """
    OpenAI LLM provider.

    Supports GPT-4o family models.
    """

    name = "openai"
    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_id: str = DEFAULT_MODEL,
        max_tokens: int = 300,
        temperature: float = 0.3,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model_id: Model ID
            max_tokens: Maximum tokens
            temperature: Generation temperature
            client: Pre-built async client
        """
        self._client = client or (AsyncOpenAI(api_key=api_key) if api_key else AsyncOpenAI())
        self.model_id = model_id
        self.max_tokens = max_tokens
        self.temperature = temperature

        logger.info(f"OpenAI provider initialized: {model_id}")

    async def agenerate_with_history(
        self,
        messages: List[Dict[str, str]],
        system: Optional[str] = None
    ) -> str:
        """
        Generate response with conversation history.

        Args:
            messages: List of messages
            system: System prompt

        Returns:
            Generated response
        """
        formatted = []
        if system:
            formatted.append({"role": "system", "content": system})
        formatted.extend({"role": m["role"], "content": m["content"]} for m in messages)

        try:
            response = await self._client.chat.completions.create(
                model=self.model_id,
                messages=formatted,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except Exception as e:
            logger.error(f"OpenAI generation failed: {e}")
            raise

        content = response.choices[0].message.content
        if not content:
            raise ValueError("Empty response from OpenAI")
        return content.strip()
