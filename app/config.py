from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Redis settings (learning state blob store)
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_MAX_CONNECTIONS: int = 20
    REDIS_SOCKET_TIMEOUT: float = 10.0
    NUDGE_STATE_KEY_PREFIX: str = "followup_guardrail:state:"

    # =================================================================
    # AI ENRICHMENT SETTINGS - Fit Normalizer and Tone Polisher
    # =================================================================
    AI_ASSIST_ENABLED: bool = True
    OPENAI_API_KEY: str | None = None
    OPENAI_BASE_URL: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE: float = 0.1
    OPENAI_MAX_TOKENS: int = 400
    ENRICHMENT_TIMEOUT_SECONDS: float = 20.0
    ENRICHMENT_MAX_RETRIES: int = 2

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def ai_enabled(self) -> bool:
        """AI enrichment runs only when switched on and a key is present."""
        return self.AI_ASSIST_ENABLED and bool(self.OPENAI_API_KEY and self.OPENAI_API_KEY.strip())

    def state_key(self, user_id: str) -> str:
        return f"{self.NUDGE_STATE_KEY_PREFIX}{user_id}"

    def get_redis_pool_config(self) -> dict:
        """
        Get Redis connection pool configuration.
        Adjust environment-specific settings based on self.environment.
        """
        config = {
            "max_connections": self.REDIS_MAX_CONNECTIONS,
            "socket_connect_timeout": self.REDIS_SOCKET_TIMEOUT,
            "socket_timeout": self.REDIS_SOCKET_TIMEOUT,
        }

        if self.environment == "development":
            # Smaller pool and faster failure for local development
            config.update(
                {
                    "max_connections": min(self.REDIS_MAX_CONNECTIONS, 5),
                    "socket_connect_timeout": 5.0,
                }
            )

        return config


settings = Settings()
