from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict


class Env(str, Enum):
    DEV = "dev"
    HML = "hml"
    PROD = "prod"


class Settings(BaseSettings):
    APP_ENV: Env = Env.DEV
    DEBUG: bool = False

    DATABASE_URL: str = "sqlite:///./agenda.db"
    ALLOWED_HOSTS: str = "localhost,127.0.0.1"

    LOG_JSON: bool = True
    LOG_LEVEL: str = "INFO"

    # Fuso usado quando o negócio não tem um configurado
    DEFAULT_TIMEZONE: str = "America/Sao_Paulo"

    # Motor de disponibilidade
    SLOT_STEP_MINUTES: int = 15
    # True = oferece horários cujo serviço termina depois do fechamento (comportamento legado)
    SLOTS_ALLOW_OVERRUN_PAST_CLOSING: bool = False

    # Fidelidade: tentativas do compare-and-swap do contador
    LOYALTY_MAX_RETRIES: int = 5

    # Notificações (vazio = canal desligado)
    WHATSAPP_API_TOKEN: str | None = None
    WHATSAPP_PHONE_NUMBER_ID: str | None = None
    WHATSAPP_API_BASE: str = "https://graph.facebook.com/v19.0"
    TELEGRAM_BOT_TOKEN: str | None = None
    TELEGRAM_API_BASE: str = "https://api.telegram.org"
    NOTIFY_TIMEOUT_SECONDS: float = 10.0

    APP_PUBLIC_BASE_URL: str = "http://localhost:8000"

    model_config = SettingsConfigDict(
        env_file=".env.dev",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# cria instância global
settings = Settings()
