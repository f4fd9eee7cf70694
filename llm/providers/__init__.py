"""
LLM Provider implementations.
"""

from .bedrock import BedrockProvider
from .openai_provider import OpenAIProvider

__all__ = ["BedrockProvider", "OpenAIProvider"]
