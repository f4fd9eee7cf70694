"""
LLM Orchestration Module.

This module handles:
- LLM provider abstraction (Bedrock, OpenAI)
- Prompt template management
- The per-turn chat pipeline with provider fallback
"""

from .orchestrator import ChatOrchestrator, ChatTurnRequest, ChatTurnResult
from .prompt_templates import PromptTemplates, PromptType

__all__ = [
    "ChatOrchestrator",
    "ChatTurnRequest",
    "ChatTurnResult",
    "PromptTemplates",
    "PromptType",
]
