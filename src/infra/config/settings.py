from typing import List, Optional
from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # App Settings
    APP_NAME: str = "Web4Apps"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 3001

    # Rate Limiting (requests per minute per IP)
    RATE_LIMIT_DEFAULT: int = 60
    RATE_LIMIT_AI_CHALLENGE: int = 10
    RATE_LIMIT_AI_PROMPT: int = 10
    RATE_LIMIT_REGISTER: int = 5

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:5173",  # Vite dev server
        "http://localhost:3000",
    ]

    # Database Settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./web4apps.db"
    DB_LOGGING_ENABLED: bool = False

    # Redis Settings
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_MAX_CONNECTIONS: int = 10

    # AI usage gate
    CHALLENGE_EXPIRY_SECONDS: int = 300  # 5 minutes
    MAX_AI_REQUESTS_PER_DAY: int = 10

    # OpenAI Settings
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE: float = 0.7
    OPENAI_MAX_TOKENS: int = 16384  # gpt-4o-mini output limit
    OPENAI_TIMEOUT_SECONDS: float = 60.0

    # Telegram Settings
    TELEGRAM_BOT_TOKEN: Optional[str] = None
    TELEGRAM_CHAT_IDS: str = ""  # comma separated notification chats
    TELEGRAM_MODERATION_CHAT_ID: Optional[str] = None

    # HTTP client
    HTTP_DEFAULT_TIMEOUT: float = 10.0
    HTTP_TELEGRAM_TIMEOUT: float = 10.0
    HTTP_MAX_CONNECTIONS: int = 100
    HTTP_MAX_KEEPALIVE_CONNECTIONS: int = 20

    # Feature flags
    SUBMISSIONS_ENABLED_DEFAULT: bool = True

    @property
    def telegram_chat_ids(self) -> List[str]:
        return [chat_id.strip() for chat_id in self.TELEGRAM_CHAT_IDS.split(",") if chat_id.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = True

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
