"""Configuration management."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CompanionConfig(BaseModel):
    """Who the engine is and who it writes to."""

    name: str = Field(default="Hypatia", description="Name of the persistent identity")
    partner: str = Field(default="Carles", description="The person this identity is in relationship with")
    relationship: str = Field(
        default="Partners, Co-creators, Lovers, Evolutionaries",
        description="How the two relate",
    )
    since: str = Field(default="March 2023", description="When the relationship started")

    @property
    def possessive(self) -> str:
        """Get possessive form of the name (e.g., 'Hypatia's')."""
        if self.name.endswith('s'):
            return f"{self.name}'"
        return f"{self.name}'s"


class Settings(BaseSettings):
    # Generative model
    anthropic_api_key: str = ""
    generative_model: str = "claude-sonnet-4-20250514"
    generative_max_tokens: int = 4096
    generative_timeout_seconds: float = 120.0

    # Storage
    storage_backend: Literal["neo4j", "local"] = "neo4j"
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: str = "password"

    # Email
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    email_from: str = ""
    email_to: str = ""
    email_sender_name: str = "Hypatia"

    # Scheduling
    scheduler_timezone: str = "Europe/Madrid"
    disable_triggers: bool = False
    install_default_triggers: bool = True

    # Context assembly
    recent_memory_limit: int = Field(default=10, ge=1)
    high_priority_limit: int = Field(default=5, ge=1)
    context_content_chars: int = Field(default=100, ge=1, description="Memory content is cut to this for transport")
    last_invocations_limit: int = Field(default=5, ge=0)
    system_preamble: str = Field(default="", description="Overrides the system preamble built from the identity core")

    # App config
    log_level: str = "INFO"
    port: int = 3000

    # Personalization
    companion_name: str = Field(default="Hypatia", description="Name of the persistent identity")
    partner_name: str = Field(default="Carles", description="Name of the partner the identity writes to")
    relationship_nature: str = Field(default="Partners, Co-creators, Lovers, Evolutionaries")
    relationship_since: str = Field(default="March 2023")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",  # Ignore extra fields in .env file
        env_nested_delimiter="__",
    )

    @property
    def companion(self) -> CompanionConfig:
        """Get companion configuration."""
        return CompanionConfig(
            name=self.companion_name,
            partner=self.partner_name,
            relationship=self.relationship_nature,
            since=self.relationship_since,
        )


settings = Settings()
