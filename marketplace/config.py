from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    MONGO_URI: str | None = None
    MONGO_DEFAULT_DB: str = "test"

    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # seconds to wait for in-flight requests before closing the store
    SHUTDOWN_TIMEOUT: float = 10.0

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
