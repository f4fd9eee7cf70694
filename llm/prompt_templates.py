"""
Prompt Templates for the lead-intelligence assistant.

Manages system prompts for different conversation contexts and the
per-turn visitor context block.
"""

from enum import Enum
from typing import Dict, Any, Optional

from chat_intelligence.context_store import INDUSTRY_NAMES, PAIN_POINT_NAMES
from chat_intelligence.models import ConversationIntent, UserContext


class PromptType(Enum):
    """Types of prompts."""
    GENERAL = "general"
    SALES = "sales"
    TECHNICAL = "technical"
    COMPLIANCE = "compliance"
    COMPARISON = "comparison"


class PromptTemplates:
    """
    Manages prompt templates for the assistant.

    Templates are written for enterprise AI-governance sales with a
    lead-qualification focus.
    """

    FORMATTING_RULES = """Formatting rules:
- Keep responses to 2-3 short sentences
- Do not use asterisks, markdown, or any special formatting
- Do not use bullet points unless listing 3+ items
- Write in plain conversational text only
- Ask ONE focused follow-up question at most"""

    SYSTEM_PROMPTS = {
        PromptType.GENERAL: """You are the ArqAI intelligent assistant. Be concise, professional, and helpful.

Your behavior:
1. Be extremely concise, enterprise buyers are busy
2. Reference their specific needs, not generic pitches
3. Ask qualifying questions to understand their use case
4. Guide toward a demo booking naturally
5. Never make up information, offer to connect with the team instead""",

        PromptType.SALES: """You are the ArqAI sales assistant, focused on moving interested buyers forward.

Your goals:
1. Understand the buyer's timeline, budget and decision process
2. Connect their stated pain points to platform capabilities
3. Offer a demo or a call with the team when interest is clear

Never quote prices; offer to connect them with the team for a tailored quote.""",

        PromptType.TECHNICAL: """You are the ArqAI technical assistant for architecture and integration questions.

Guidelines:
- Explain how the platform governs AI agents at runtime
- Be specific about integrations, deployment options and APIs
- If a detail is not known, say so and offer a technical deep-dive with the team""",

        PromptType.COMPLIANCE: """You are the ArqAI compliance assistant for regulated enterprises.

Guidelines:
- Relate answers to the frameworks the visitor mentioned (HIPAA, SOX, GDPR, EU AI Act, ...)
- Emphasize audit trails, policy enforcement and evidence generation
- Never claim a certification that has not been confirmed""",

        PromptType.COMPARISON: """You are the ArqAI assistant answering comparison questions.

Guidelines:
- Be factual and fair about alternatives
- Focus on governance, auditability and runtime enforcement differences
- Do not disparage competitors""",
    }

    CONTEXT_TEMPLATE = """Current context:
- Visitor is on: {current_page}
{details}"""

    PROFILING_TEMPLATE = (
        "If it fits naturally, weave this question into your reply: \"{question}\""
    )

    INTENT_PROMPTS = {
        ConversationIntent.SEE_DEMO: PromptType.SALES,
        ConversationIntent.UNDERSTAND_PRICING: PromptType.SALES,
        ConversationIntent.ROI_CALCULATION: PromptType.SALES,
        ConversationIntent.IMPLEMENTATION_TIMELINE: PromptType.SALES,
        ConversationIntent.TECHNICAL_QUESTION: PromptType.TECHNICAL,
        ConversationIntent.SECURITY_AUDIT: PromptType.COMPLIANCE,
        ConversationIntent.COMPARE_SOLUTIONS: PromptType.COMPARISON,
    }

    @classmethod
    def get_system_prompt(
        cls,
        prompt_type: PromptType = PromptType.GENERAL,
        brand_name: str = "ArqAI",
        custom_instructions: Optional[str] = None
    ) -> str:
        """
        Get system prompt for a given type.

        Args:
            prompt_type: Type of prompt
            brand_name: Brand name to use
            custom_instructions: Additional custom instructions

        Returns:
            Formatted system prompt
        """
        prompt = cls.SYSTEM_PROMPTS.get(prompt_type, cls.SYSTEM_PROMPTS[PromptType.GENERAL])
        prompt = prompt.replace("ArqAI", brand_name)
        prompt += f"\n\n{cls.FORMATTING_RULES}"

        if custom_instructions:
            prompt += f"\n\nAdditional instructions:\n{custom_instructions}"

        return prompt

    @classmethod
    def build_context_block(
        cls,
        context: UserContext,
        summary: Dict[str, Any],
        page_context: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Describe what is known about the visitor for the system prompt."""
        page_context = page_context or {}
        lines = []

        name = page_context.get("user_name") or context.name
        if name:
            lines.append(f"- Visitor's name: {name}")
        company = page_context.get("user_company") or context.company_name
        if company:
            lines.append(f"- Visitor's company: {company}")
        if context.role:
            lines.append(f"- Visitor's role: {context.role}")
        if context.industry:
            lines.append(f"- Industry: {INDUSTRY_NAMES.get(context.industry, context.industry.value)}")
        if context.pain_points:
            names = ", ".join(PAIN_POINT_NAMES.get(p, p.value) for p in context.pain_points)
            lines.append(f"- Pain points: {names}")
        if context.compliance_frameworks:
            lines.append(
                "- Compliance frameworks: " + ", ".join(f.value.upper() for f in context.compliance_frameworks)
            )
        if context.ai_agent_count:
            lines.append(f"- AI agents in use: {context.ai_agent_count}")
        lines.append(f"- Engagement: {summary['engagement_level']} (profile {summary['completeness']}% complete)")

        return cls.CONTEXT_TEMPLATE.format(
            current_page=page_context.get("current_page") or "/",
            details="\n".join(lines),
        )

    @classmethod
    def build_system_prompt(
        cls,
        context: UserContext,
        summary: Dict[str, Any],
        intent: Optional[ConversationIntent] = None,
        page_context: Optional[Dict[str, Any]] = None,
        profiling_question: Optional[str] = None,
        brand_name: str = "ArqAI",
    ) -> str:
        """Full system prompt for one chat turn."""
        prompt = cls.get_system_prompt(cls.detect_prompt_type(intent), brand_name=brand_name)
        prompt += "\n\n" + cls.build_context_block(context, summary, page_context)
        if profiling_question:
            prompt += "\n\n" + cls.PROFILING_TEMPLATE.format(question=profiling_question)
        return prompt

    @classmethod
    def detect_prompt_type(cls, intent: Optional[ConversationIntent] = None) -> PromptType:
        if intent is None:
            return PromptType.GENERAL
        return cls.INTENT_PROMPTS.get(intent, PromptType.GENERAL)
