"""
Service initialization and dependency injection for the lead-intelligence API.

Creates and manages all service instances used by the API.
"""

import logging
from typing import Any, Optional

from config.settings import get_settings, Settings
from lead_scoring.db_store import DbLeadStore
from lead_scoring.lead_router import LeadRouter
from lead_scoring.lead_service import LeadService
from lead_scoring.scoring_model import LeadIntelligenceScorer
from lead_scoring.store import InMemoryLeadStore, LeadStore
from llm.orchestrator import ChatOrchestrator
from llm.providers import BedrockProvider, OpenAIProvider
from chat_intelligence.content_engine import ContentEngine
from chat_intelligence.profiling import ProfilingScheduler
from notifications.email import ResendEmail
from notifications.mailing_list import MailchimpList

logger = logging.getLogger(__name__)


class Services:
    """Container for all application services."""

    def __init__(self):
        self.settings: Optional[Settings] = None
        self.primary_provider: Optional[Any] = None
        self.fallback_provider: Optional[Any] = None
        self.store: Optional[LeadStore] = None
        self.lead_router: Optional[LeadRouter] = None
        self.lead_service: Optional[LeadService] = None
        self.orchestrator: Optional[ChatOrchestrator] = None
        self._initialized = False

    def initialize(self, session_factory=None, settings: Optional[Settings] = None):
        """
        Initialize all services.

        Args:
            session_factory: Async session factory when a database is configured
            settings: Override settings (defaults to get_settings())
        """
        if self._initialized:
            return

        self.settings = settings or get_settings()
        logger.info(f"Initializing services with provider: {self.settings.llm_provider}")

        self._init_providers()
        self._init_lead_service(session_factory)
        self._init_orchestrator()
        self._initialized = True
        logger.info("All services initialized")

    def _build_provider(self, name: Optional[str]):
        s = self.settings
        if not name:
            return None
        name = name.lower()
        try:
            if name == "bedrock":
                return BedrockProvider(
                    model_id=s.bedrock_llm_model_id,
                    region=s.aws_region,
                    max_tokens=s.max_tokens,
                    temperature=s.temperature,
                )
            if name == "openai":
                return OpenAIProvider(
                    api_key=s.openai_api_key,
                    model_id=s.openai_llm_model,
                    max_tokens=s.max_tokens,
                    temperature=s.temperature,
                )
        except Exception as e:
            logger.warning(f"LLM provider {name} unavailable: {e}")
            return None
        logger.warning(f"Unknown LLM provider: {name}")
        return None

    def _init_providers(self):
        s = self.settings
        self.primary_provider = self._build_provider(s.llm_provider)
        if s.llm_fallback_provider and s.llm_fallback_provider.lower() != s.llm_provider.lower():
            self.fallback_provider = self._build_provider(s.llm_fallback_provider)
        if not self.primary_provider and not self.fallback_provider:
            logger.warning("No LLM provider available, chat replies will be the fallback apology")

    def _init_lead_service(self, session_factory):
        s = self.settings

        if session_factory is not None:
            self.store = DbLeadStore(session_factory)
        elif s.use_memory_store:
            logger.warning("DATABASE_URL not set, using in-memory lead store")
            self.store = InMemoryLeadStore()
        else:
            logger.warning("DATABASE_URL not set, lead persistence disabled")

        notifier = ResendEmail(
            api_key=s.resend_api_key,
            from_email=s.resend_from_email,
            team_emails=s.team_emails,
            brand_name=s.brand_name,
            site_url=s.site_url,
            timeout=s.notification_timeout,
        )
        mailing_list = MailchimpList(
            api_key=s.mailchimp_api_key,
            server_prefix=s.mailchimp_server_prefix,
            list_id=s.mailchimp_list_id,
            timeout=s.notification_timeout,
        )
        if not notifier.is_configured:
            logger.warning("Resend not configured, lead emails disabled")
        if not mailing_list.is_configured:
            logger.warning("Mailchimp not configured, mailing list sync disabled")

        self.lead_router = LeadRouter(
            notifier=notifier if notifier.is_configured else None,
            mailing_list=mailing_list if mailing_list.is_configured else None,
        )
        self.lead_service = LeadService(
            store=self.store,
            scorer=LeadIntelligenceScorer(),
            router=self.lead_router,
            signal_cap=s.lead_signal_cap,
        )
        logger.info("Lead services ready")

    def _init_orchestrator(self):
        """Initialize the chat orchestrator."""
        s = self.settings
        self.orchestrator = ChatOrchestrator(
            primary_provider=self.primary_provider,
            fallback_provider=self.fallback_provider,
            content_engine=ContentEngine(brand_name=s.brand_name),
            profiler=ProfilingScheduler(ask_chance=s.profiling_ask_chance),
            brand_name=s.brand_name,
            contact_email=s.contact_email,
        )
        logger.info("Chat orchestrator ready")

    async def shutdown(self):
        """Wait for in-flight notifications."""
        if self.lead_router:
            await self.lead_router.drain()

    @property
    def is_ready(self) -> bool:
        return self._initialized and self.orchestrator is not None

    def health(self) -> dict:
        """Return health status of all services."""
        return {
            "initialized": self._initialized,
            "llm_primary": self.primary_provider is not None,
            "llm_fallback": self.fallback_provider is not None,
            "lead_store": type(self.store).__name__ if self.store else None,
            "notifications": bool(self.lead_router and self.lead_router.notifier),
            "mailing_list": bool(self.lead_router and self.lead_router.mailing_list),
        }


# Singleton
_services = Services()


def get_services() -> Services:
    """Get the global services instance."""
    return _services


def initialize_services(session_factory=None):
    """Initialize all services (called at startup)."""
    _services.initialize(session_factory)


def reset_services():
    """Drop the singleton so the next startup rebuilds everything."""
    global _services
    _services = Services()
