"""Configuration management for Schema Builder."""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET_KEY = "default-secret-please-change-in-production"


class DatabaseConfig(BaseSettings):
    """Document store connection configuration."""

    url: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URL (memory:// for the in-process store)"
    )
    name: str = Field(default="schema_builder", description="Database name")
    max_pool_size: int = Field(default=100, description="Connection pool size")
    server_selection_timeout_ms: int = Field(
        default=5000, description="Server selection timeout in milliseconds"
    )

    model_config = SettingsConfigDict(env_prefix="SCHEMABUILDER_DB_")

    def is_memory(self) -> bool:
        """Check if the in-process store is configured."""
        return self.url.startswith("memory://")


class RedisConfig(BaseSettings):
    """Redis configuration for the background task queue."""

    url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL"
    )

    model_config = SettingsConfigDict(env_prefix="SCHEMABUILDER_REDIS_")


class AIConfig(BaseSettings):
    """AI model configuration."""

    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    anthropic_api_key: Optional[str] = Field(default=None, description="Anthropic API key")
    gemini_api_key: Optional[str] = Field(default=None, description="Google Gemini API key")
    default_model: str = Field(default="gemini-2.0-flash", description="Default AI model to use")
    max_tokens: int = Field(default=4000, description="Maximum tokens per request")
    temperature: float = Field(default=0.4, description="AI model temperature")
    max_message_length: int = Field(default=2000, description="Maximum chat message length")

    model_config = SettingsConfigDict(env_prefix="SCHEMABUILDER_AI_")


class SecurityConfig(BaseSettings):
    """Security configuration."""

    secret_key: str = Field(
        default=DEFAULT_SECRET_KEY,
        description="Secret key for session tokens"
    )
    algorithm: str = Field(default="HS256", description="Session token algorithm")
    access_token_expire_minutes: int = Field(
        default=24 * 60, description="Session token lifetime in minutes"
    )
    bcrypt_rounds: int = Field(default=12, description="bcrypt cost factor")
    code_ttl_minutes: int = Field(
        default=15, description="Lifetime of verification and reset codes"
    )
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma separated list of allowed CORS origins"
    )
    request_timeout_seconds: float = Field(
        default=30.0, description="Deadline applied to every inbound request"
    )

    model_config = SettingsConfigDict(env_prefix="SCHEMABUILDER_SECURITY_")

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        """bcrypt only accepts cost factors between 4 and 31."""
        if not 4 <= v <= 31:
            raise ValueError("bcrypt_rounds must be between 4 and 31")
        return v

    def cors_origin_list(self) -> List[str]:
        """Allowed CORS origins as a list."""
        return [item.strip() for item in self.cors_origins.split(",") if item.strip()]


class AuthConfig(BaseSettings):
    """Identity provider configuration."""

    mode: Literal["local", "federated"] = Field(
        default="local",
        description="How bearer credentials are resolved: self-issued session tokens or federated ID tokens"
    )
    federated_project_id: Optional[str] = Field(
        default=None, description="Project the federated issuer must be bound to"
    )
    federated_issuer_prefix: str = Field(
        default="https://securetoken.google.com/",
        description="Issuer prefix of federated identity tokens"
    )
    federated_certs_url: str = Field(
        default="https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com",
        description="JWKS used when local signature verification is enabled"
    )
    verify_local_signatures: bool = Field(
        default=False,
        description="Verify federated token signatures on the local-claims path"
    )
    fallback_certs_url: str = Field(
        default="https://www.googleapis.com/oauth2/v3/certs",
        description="JWKS of the secondary identity token issuer"
    )
    fallback_issuers: List[str] = Field(
        default=["accounts.google.com", "https://accounts.google.com"],
        description="Accepted issuers on the fallback path"
    )
    clock_skew_seconds: int = Field(default=300, description="Allowed issued-at skew")
    max_subject_length: int = Field(default=128, description="Maximum subject length")

    model_config = SettingsConfigDict(env_prefix="SCHEMABUILDER_AUTH_")


class EmailConfig(BaseSettings):
    """Outbound email configuration."""

    backend: Literal["console", "smtp", "celery"] = Field(
        default="console", description="Delivery backend"
    )
    host: str = Field(default="smtp.gmail.com", description="SMTP host")
    port: int = Field(default=587, description="SMTP port")
    username: Optional[str] = Field(default=None, description="SMTP username")
    password: Optional[str] = Field(default=None, description="SMTP password")
    use_tls: bool = Field(default=True, description="Use STARTTLS")
    timeout_seconds: float = Field(default=10.0, description="SMTP timeout")
    from_name: str = Field(default="Schema Builder", description="Sender display name")
    from_address: str = Field(default="no-reply@schemabuilder.local", description="Sender address")
    frontend_url: str = Field(default="http://localhost:5173", description="Frontend base URL")

    model_config = SettingsConfigDict(env_prefix="SCHEMABUILDER_EMAIL_")


class AppConfig(BaseSettings):
    """Application configuration."""

    name: str = Field(default="Schema Builder", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    environment: str = Field(default="development", description="Environment")
    host: str = Field(default="0.0.0.0", description="Host to bind to")
    port: int = Field(default=8080, description="Port to bind to")
    workers: int = Field(default=1, description="Number of worker processes")

    model_config = SettingsConfigDict(env_prefix="SCHEMABUILDER_")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed = ["development", "staging", "production", "test"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of {allowed}")
        return v


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format"
    )
    file: Optional[str] = Field(default=None, description="Log file path")
    max_file_size: int = Field(default=10 * 1024 * 1024, description="Max log file size")
    backup_count: int = Field(default=5, description="Number of backup log files")

    model_config = SettingsConfigDict(env_prefix="SCHEMABUILDER_LOG_")


class Settings(BaseSettings):
    """Main settings class that combines all configuration sections."""

    app: AppConfig = Field(default_factory=AppConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_production_secret(self) -> "Settings":
        """Refuse to run production with the default signing key."""
        if self.is_production() and self.security.secret_key == DEFAULT_SECRET_KEY:
            raise ValueError("SCHEMABUILDER_SECURITY_SECRET_KEY must be set in production")
        return self

    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app.environment == "development"

    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
