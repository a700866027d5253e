from pydantic_settings import BaseSettings

class Settings(BaseSettings):

    DATABASE_URL: str = "sqlite+aiosqlite:///./goryl.db"
    JWT_SECRET: str = "dev-secret-change-me"
    JWT_ALGO: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    PASS_HASH_SCHEME: str = "pbkdf2_sha256"
    REDIS_URL: str | None = None
    CURSOR_SECRET: str = "dev-cursor-secret-change-me"
    AUTO_CREATE_TABLES: bool = True
    DEFAULT_CURRENCY: str = "USD"
    CHAT_MESSAGES_POLL_MS: int = 2000
    CHAT_LIST_POLL_MS: int = 5000
    CHAT_LIST_CACHE_TTL: int = 120
    CATEGORY_CACHE_TTL: int = 600

    class Config:
        env_file = ".env"
        extra="ignore"

config_settings = Settings()
