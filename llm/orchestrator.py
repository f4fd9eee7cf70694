"""
Chat Orchestrator.

Runs one inbound chat turn: restores the visitor context, extracts
entities and contact details, classifies intent, decides on a morph
card, picks a profiling question and asks the LLM for a reply.
"""

import dataclasses
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from chat_intelligence.card_triggers import CardTriggerEngine
from chat_intelligence.content_engine import ContentEngine
from chat_intelligence.context_store import (
    ContextDeserializationError,
    calculate_engagement_level,
    create_initial_context,
    deserialize_context,
    generate_session_id,
    get_context_summary,
    merge_entities_into_context,
    serialize_context,
    update_context,
)
from chat_intelligence.entity_extractor import EntityExtractor
from chat_intelligence.intent_classifier import IntentClassifier
from chat_intelligence.models import (
    CardTrigger,
    ContactInfo,
    ConversationIntent,
    ProfilingQuestion,
    UserContext,
)
from chat_intelligence.profiling import ProfilingScheduler

from .prompt_templates import PromptTemplates

logger = logging.getLogger(__name__)


@dataclass
class ChatTurnRequest:
    """One inbound chat message plus whatever the client remembers."""
    message: str
    session_id: Optional[str] = None
    user_context: Optional[str] = None
    conversation_history: List[Dict[str, str]] = field(default_factory=list)
    page_context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ChatTurnResult:
    """Response from a chat turn."""
    response: str
    session_id: str
    context: UserContext
    context_summary: Dict[str, Any]
    extracted_info: Dict[str, str] = field(default_factory=dict)
    morph_trigger: Optional[CardTrigger] = None
    intent: Optional[ConversationIntent] = None
    profiling_question: Optional[str] = None
    used_fallback: bool = False
    error: bool = False
    llm_provider: Optional[str] = None
    llm_latency_ms: float = 0.0
    processing_time_ms: float = 0.0

    @property
    def user_context(self) -> str:
        return serialize_context(self.context)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "response": self.response,
            "session_id": self.session_id,
            "user_context": self.user_context,
            "context_summary": self.context_summary,
            "extracted_info": self.extracted_info,
            "morph_trigger": self.morph_trigger.to_dict() if self.morph_trigger else None,
            "intent": self.intent.value if self.intent else None,
            "profiling_question": self.profiling_question,
            "used_fallback": self.used_fallback,
            "error": self.error,
        }


class ChatOrchestrator:
    """
    Orchestrates the chat pipeline.

    Pipeline:
    1. Restore (or create) the visitor context
    2. Extract entities, contact details and buying signals
    3. Classify intent
    4. Detect a morph card and personalise it
    5. Pick a profiling question
    6. Generate the LLM reply (primary, then fallback, then apology)
    7. Record cards, topics and engagement on the context
    """

    APOLOGY = (
        "I apologize, but I'm having trouble connecting right now. Please try again "
        "in a moment, or feel free to email us at {contact_email} for immediate assistance."
    )

    def __init__(
        self,
        primary_provider: Optional[Any] = None,
        fallback_provider: Optional[Any] = None,
        entity_extractor: Optional[EntityExtractor] = None,
        intent_classifier: Optional[IntentClassifier] = None,
        card_engine: Optional[CardTriggerEngine] = None,
        content_engine: Optional[ContentEngine] = None,
        profiler: Optional[ProfilingScheduler] = None,
        brand_name: str = "ArqAI",
        contact_email: str = "hello@thearq.ai",
    ):
        """
        Initialize the orchestrator.

        Args:
            primary_provider: LLM provider tried first
            fallback_provider: LLM provider tried when the primary fails
            entity_extractor: Entity and contact extractor
            intent_classifier: Conversational intent classifier
            card_engine: Morph card trigger engine
            content_engine: Card content personaliser
            profiler: Profiling question scheduler
            brand_name: Brand name for prompts and copy
            contact_email: Address offered when no LLM is reachable
        """
        self.primary_provider = primary_provider
        self.fallback_provider = fallback_provider
        self.entity_extractor = entity_extractor or EntityExtractor()
        self.intent_classifier = intent_classifier or IntentClassifier()
        self.card_engine = card_engine or CardTriggerEngine(
            entity_extractor=self.entity_extractor,
            intent_classifier=self.intent_classifier,
        )
        self.content_engine = content_engine or ContentEngine(brand_name=brand_name)
        self.profiler = profiler or ProfilingScheduler()
        self.brand_name = brand_name
        self.contact_email = contact_email

    def restore_context(self, serialized: Optional[str], session_id: Optional[str]) -> UserContext:
        """Deserialize the client's context; malformed input starts a fresh one."""
        if serialized:
            try:
                context = deserialize_context(serialized)
                if session_id and context.session_id != session_id:
                    context = dataclasses.replace(context, session_id=session_id)
                return context
            except ContextDeserializationError as e:
                logger.warning(f"Discarding malformed user context: {e}")
        return create_initial_context(session_id or generate_session_id())

    def _apply_contact_info(
        self,
        context: UserContext,
        contact: ContactInfo,
        page_context: Dict[str, Any],
    ) -> UserContext:
        updates: Dict[str, Any] = {}
        name = page_context.get("user_name") or contact.name
        email = page_context.get("user_email") or contact.email
        company = page_context.get("user_company") or contact.company

        if name and not context.name:
            updates["name"] = name
        if email and not context.email:
            updates["email"] = email
        if company and not context.company_name:
            updates["company_name"] = company
        if contact.job_title and not context.role:
            updates["role"] = contact.job_title

        return update_context(context, updates) if updates else context

    def _personalise(self, trigger: CardTrigger, context: UserContext) -> CardTrigger:
        base = self.content_engine.generate_card_customizations(trigger.card_type, context)
        return CardTrigger(
            card_type=trigger.card_type,
            confidence=trigger.confidence,
            reason=trigger.reason,
            customizations=base.merged_with(trigger.customizations),
        )

    def _pick_profiling_question(
        self,
        context: UserContext,
        history: Sequence[Dict[str, str]],
        message_count: int,
    ) -> Optional[ProfilingQuestion]:
        last_assistant = next(
            (m.get("content", "") for m in reversed(history) if m.get("role") == "assistant"),
            "",
        )
        if not self.profiler.should_ask(context, message_count, last_assistant):
            return None
        return self.profiler.next_question(context, history)

    async def _generate_response(self, messages: List[Dict[str, str]], system_prompt: str):
        """
        Try each configured provider in turn.

        Returns:
            (response text or None, provider name or None, used_fallback)
        """
        providers = [p for p in (self.primary_provider, self.fallback_provider) if p is not None]
        for index, provider in enumerate(providers):
            name = getattr(provider, "name", type(provider).__name__)
            try:
                text = await provider.agenerate_with_history(messages, system=system_prompt)
                return text, name, index > 0
            except Exception as e:
                logger.error(f"LLM provider {name} failed: {e}")
        return None, None, False

    async def process_turn(self, request: ChatTurnRequest) -> ChatTurnResult:
        """
        Process one chat turn through the full pipeline.

        Args:
            request: Chat turn request

        Returns:
            ChatTurnResult; on LLM failure the reply is a fixed apology with
            error=True and the context, card and profiling results still set
        """
        start_time = time.time()
        page_context = request.page_context or {}
        history = [
            {"role": m["role"], "content": m["content"]}
            for m in request.conversation_history
            if m.get("role") in ("user", "assistant") and m.get("content")
        ]

        context = self.restore_context(request.user_context, request.session_id)

        # Entities, contact details, buying signals
        entities = self.entity_extractor.extract(request.message)
        context = merge_entities_into_context(context, entities)
        contact = self.entity_extractor.extract_contact_info(request.message)
        context = self._apply_contact_info(context, contact, page_context)
        buying_signals = self.entity_extractor.detect_buying_signals(request.message)
        if buying_signals:
            context = update_context(context, {"buying_signals": buying_signals})

        # Intent
        intent = self.intent_classifier.classify(request.message, context)
        updates: Dict[str, Any] = {"current_intent": intent}
        if intent != ConversationIntent.GENERAL_INQUIRY:
            updates["topics_discussed"] = [intent.value]
        context = update_context(context, updates)

        # Morph card
        trigger = self.card_engine.detect(
            request.message, context, [m["content"] for m in history if m["role"] == "user"]
        )
        if trigger:
            trigger = self._personalise(trigger, context)
            context = update_context(context, {"cards_shown": [trigger.card_type.value]})

        message_count = len(history) + 1
        question = self._pick_profiling_question(context, history, message_count)
        if question:
            context = update_context(context, {"questions_asked": [question.id]})

        context = update_context(context, {
            "engagement_level": calculate_engagement_level(context, message_count),
        })
        summary = get_context_summary(context)

        logger.debug(
            f"Turn {context.session_id}: intent={intent.value}, "
            f"card={trigger.card_type.value if trigger else None}, "
            f"question={question.id if question else None}"
        )

        # LLM reply
        system_prompt = PromptTemplates.build_system_prompt(
            context,
            summary,
            intent=intent,
            page_context=page_context,
            profiling_question=question.question if question else None,
            brand_name=self.brand_name,
        )
        messages = history + [{"role": "user", "content": request.message}]

        llm_start = time.time()
        response_text, provider_name, used_fallback = await self._generate_response(messages, system_prompt)
        llm_latency = (time.time() - llm_start) * 1000

        error = response_text is None
        if error:
            response_text = self.APOLOGY.format(contact_email=self.contact_email)

        return ChatTurnResult(
            response=response_text,
            session_id=context.session_id,
            context=context,
            context_summary=summary,
            extracted_info=contact.to_dict(),
            morph_trigger=trigger,
            intent=intent,
            profiling_question=question.question if question else None,
            used_fallback=used_fallback,
            error=error,
            llm_provider=provider_name,
            llm_latency_ms=round(llm_latency, 2),
            processing_time_ms=round((time.time() - start_time) * 1000, 2),
        )
