from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENV: str = "dev"                # "dev" / "staging" / "prod"
    ENABLE_ADMIN: bool = True
    ENABLE_METRICS: bool = False
    SERVICE_NAME: str = "goryl"

    class Config:
        env_file = ".env"
        extra="ignore"

admin_config = Settings()
