"""
AWS Bedrock LLM Provider.
"""

import asyncio
import json
import logging
from typing import List, Dict, Optional

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class BedrockProvider:
    """
    AWS Bedrock LLM provider.

    Supports Claude models via Bedrock.
    """

    name = "bedrock"
    DEFAULT_MODEL = "us.anthropic.claude-sonnet-4-20250514-v1:0"

    def __init__(
        self,
        model_id: str = DEFAULT_MODEL,
        region: str = "us-east-1",
        max_tokens: int = 300,
        temperature: float = 0.3,
        client=None,
    ):
        """
        Initialize Bedrock provider.

        Args:
            model_id: Bedrock model ID
            region: AWS region
            max_tokens: Maximum tokens for response
            temperature: Generation temperature
            client: Pre-built bedrock-runtime client
        """
        self.model_id = model_id
        self.region = region
        self.max_tokens = max_tokens
        self.temperature = temperature

        self._client = client or boto3.client("bedrock-runtime", region_name=region)
        logger.info(f"Bedrock provider initialized: {model_id} in {region}")

    def _build_body(self, messages: List[Dict[str, str]], system: Optional[str]) -> Dict:
        # Claude requires the first message to come from the user
        while messages and messages[0]["role"] != "user":
            messages = messages[1:]

        body = {
            "anthropic_version": "bedrock-2023-05-31",
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [
                {"role": msg["role"], "content": [{"type": "text", "text": msg["content"]}]}
                for msg in messages
            ],
        }
        if system:
            body["system"] = system
        return body

    def generate_with_history(
        self,
        messages: List[Dict[str, str]],
        system: Optional[str] = None
    ) -> str:
        """
        Generate response with conversation history.

        Args:
            messages: List of messages with role and content
            system: System prompt

        Returns:
            Generated response
        """
        try:
            response = self._client.invoke_model(
                modelId=self.model_id,
                body=json.dumps(self._build_body(messages, system)),
                contentType="application/json",
                accept="application/json",
            )
        except ClientError as e:
            logger.error(f"Bedrock API error: {e}")
            raise

        response_body = json.loads(response["body"].read())

        if "content" in response_body and response_body["content"]:
            return response_body["content"][0]["text"].strip()

        raise ValueError("Empty response from Bedrock")

    async def agenerate_with_history(
        self,
        messages: List[Dict[str, str]],
        system: Optional[str] = None
    ) -> str:
        """Async wrapper; boto3 is blocking so the call runs in a worker thread."""
        return await asyncio.to_thread(self.generate_with_history, messages, system)
