from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, PostgresDsn, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SYSTEM_PROMPT = (
    "Du är en svensk juridisk AI-assistent för Juridiko. "
    "Ge tydliga, pedagogiska svar och vägledning. "
    "Du ersätter inte en advokat och ger ingen juridisk garanti. "
    "Uppmana alltid att kontakta en kvalificerad jurist vid behov."
)


class CustomSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


class AppSettings(CustomSettings):
    ENVIRONMENT: Literal["local", "dev", "prod"] = Field(default="local")
    LOG_LEVEL: str = Field(default="INFO")
    JSON_LOGS: bool = Field(default=False)
    APP_HOST: str = Field(default="0.0.0.0")
    APP_PORT: int = Field(default=8000)


class PgDbSettings(CustomSettings):
    POSTGRES_ENGINE: str = Field(default="postgresql+asyncpg")
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: SecretStr = Field(default="postgres")
    POSTGRES_DB: str = Field(default="chat")
    POSTGRES_HOST: str = Field(default="localhost")
    POSTGRES_PORT: int = Field(default=5432)
    DATABASE_URL: PostgresDsn | str = Field(default="")

    @model_validator(mode="before")
    def validate_postgres_dsn(cls, data: dict):
        if isinstance(data, dict) and not data.get("DATABASE_URL"):
            password = data.get("POSTGRES_PASSWORD", "postgres")
            if isinstance(password, SecretStr):
                password = password.get_secret_value()
            _built_uri = PostgresDsn.build(
                scheme=data.get("POSTGRES_ENGINE", "postgresql+asyncpg"),
                username=data.get("POSTGRES_USER", "postgres"),
                password=password,
                host=data.get("POSTGRES_HOST", "localhost"),
                port=int(data.get("POSTGRES_PORT", 5432)),
                path=data.get("POSTGRES_DB", "chat"),
            ).unicode_string()
            data["DATABASE_URL"] = _built_uri
        return data


class OpenAISettings(CustomSettings):
    """Completion engine configuration.

    Env vars:
    - OPENAI_API_KEY
    - OPENAI_MODEL
    - OPENAI_BASE_URL (optional, for compatible gateways)
    - OPENAI_TEMPERATURE
    - OPENAI_TIMEOUT_SECONDS
    """

    OPENAI_API_KEY: SecretStr = Field(default="")
    OPENAI_MODEL: str = Field(default="gpt-4o-mini")
    OPENAI_BASE_URL: Optional[str] = Field(default=None)
    OPENAI_TEMPERATURE: float = Field(default=0.7)
    OPENAI_TIMEOUT_SECONDS: Optional[float] = Field(default=None)


class ChatSettings(CustomSettings):
    """Conversation resolution and context window behaviour.

    Env vars:
    - CHAT_SYSTEM_PROMPT
    - CHAT_CONTEXT_WINDOW
    - CHAT_HISTORY_LIMIT (unset returns the full history)
    - CHAT_FALLBACK_REPLY
    - CHAT_EPHEMERAL_ID_PATTERN
    - CHAT_ANONYMOUS_MODE_ENABLED
    - CHAT_RETURN_CONVERSATIONS
    - CHAT_TITLE_MAX_LENGTH
    """

    model_config = SettingsConfigDict(
        env_prefix="CHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    SYSTEM_PROMPT: str = Field(default=DEFAULT_SYSTEM_PROMPT)
    CONTEXT_WINDOW: int = Field(default=30, ge=1)
    HISTORY_LIMIT: Optional[int] = Field(default=None, ge=1)
    FALLBACK_REPLY: str = Field(default="Inget svar från AI:n")
    EPHEMERAL_ID_PATTERN: str = Field(default=r"^(?:tmp|temp|local|new)[-_:]")
    ANONYMOUS_MODE_ENABLED: bool = Field(default=True)
    RETURN_CONVERSATIONS: bool = Field(default=True)
    TITLE_MAX_LENGTH: int = Field(default=80, ge=4)


class CorsSettings(CustomSettings):
    CORS_ALLOW_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])
    CORS_ALLOW_METHODS: List[str] = Field(
        default_factory=lambda: ["GET", "POST", "OPTIONS"]
    )
    CORS_ALLOW_HEADERS: List[str] = Field(
        default_factory=lambda: ["Content-Type", "Authorization", "Accept"]
    )


class Settings(BaseModel):
    APP: AppSettings = Field(default_factory=AppSettings)
    DATABASE: PgDbSettings = Field(default_factory=PgDbSettings)
    OPENAI: OpenAISettings = Field(default_factory=OpenAISettings)
    CHAT: ChatSettings = Field(default_factory=ChatSettings)
    CORS: CorsSettings = Field(default_factory=CorsSettings)


@lru_cache
def get_settings() -> Settings:
    return Settings()


SETTINGS = get_settings()
