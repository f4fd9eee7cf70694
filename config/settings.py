"""
Centralized configuration for the lead-intelligence service.

All settings are loaded from environment variables via .env file.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings."""

    # Brand / chat
    brand_name: str = Field(default="ArqAI", env="BRAND_NAME")
    site_url: str = Field(default="https://thearq.ai", env="SITE_URL")
    contact_email: str = Field(default="hello@thearq.ai", env="CONTACT_EMAIL")
    profiling_ask_chance: float = Field(default=0.3, env="PROFILING_ASK_CHANCE")

    # AWS / Bedrock
    aws_region: str = Field(default="us-east-1", env="AWS_REGION")
    bedrock_llm_model_id: str = Field(
        default="us.anthropic.claude-sonnet-4-20250514-v1:0", env="BEDROCK_LLM_MODEL_ID"
    )

    # OpenAI
    openai_api_key: Optional[str] = Field(default=None, env="OPENAI_API_KEY")
    openai_llm_model: str = Field(default="gpt-4o-mini", env="OPENAI_LLM_MODEL")

    # LLM provider selection
    llm_provider: str = Field(default="bedrock", env="LLM_PROVIDER")  # bedrock | openai
    llm_fallback_provider: Optional[str] = Field(default="openai", env="LLM_FALLBACK_PROVIDER")
    max_tokens: int = Field(default=300, env="MAX_TOKENS")
    temperature: float = Field(default=0.3, env="TEMPERATURE")

    # Database (unset means lead persistence is disabled)
    database_url: Optional[str] = Field(default=None, env="DATABASE_URL")
    db_pool_size: int = Field(default=5, env="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, env="DB_MAX_OVERFLOW")

    # Lead scoring
    lead_signal_cap: int = Field(default=50, env="LEAD_SIGNAL_CAP")
    use_memory_store: bool = Field(default=False, env="USE_MEMORY_STORE")  # dev only, when DATABASE_URL is unset

    # Notifications
    resend_api_key: Optional[str] = Field(default=None, env="RESEND_API_KEY")
    resend_from_email: str = Field(default="ArqAI <notifications@thearq.ai>", env="RESEND_FROM_EMAIL")
    sales_team_emails: str = Field(default="", env="SALES_TEAM_EMAILS")  # comma-separated
    mailchimp_api_key: Optional[str] = Field(default=None, env="MAILCHIMP_API_KEY")
    mailchimp_server_prefix: Optional[str] = Field(default=None, env="MAILCHIMP_SERVER_PREFIX")
    mailchimp_list_id: Optional[str] = Field(default=None, env="MAILCHIMP_LIST_ID")
    notification_timeout: float = Field(default=10.0, env="NOTIFICATION_TIMEOUT")

    # API
    api_host: str = Field(default="0.0.0.0", env="API_HOST")
    api_port: int = Field(default=8000, env="API_PORT")
    api_title: str = Field(default="Lead Intelligence Chat API", env="API_TITLE")
    api_version: str = Field(default="1.0.0", env="API_VERSION")
    cors_origins: str = Field(default="*", env="CORS_ORIGINS")  # comma-separated
    rate_limit_per_minute: int = Field(default=30, env="RATE_LIMIT_PER_MINUTE")

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    debug: bool = Field(default=False, env="DEBUG")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def is_bedrock(self) -> bool:
        return self.llm_provider.lower() == "bedrock"

    @property
    def is_openai(self) -> bool:
        return self.llm_provider.lower() == "openai"

    @property
    def team_emails(self) -> List[str]:
        return _split_csv(self.sales_team_emails)

    @property
    def cors_origin_list(self) -> List[str]:
        return _split_csv(self.cors_origins) or ["*"]


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
