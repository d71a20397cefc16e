from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "One Pace TorBox Addon"
    VERSION: str = "1.0.4"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    PORT: int = 3000

    # TorBox (API key is normally passed by the client in the addon URL)
    TORBOX_API_BASE: str = "https://api.torbox.app/v1/api"
    TORBOX_API_KEY: Optional[str] = None
    TORBOX_TIMEOUT: float = 30.0
    PLACEHOLDER_API_KEY: str = "test"

    # Resolution
    CACHE_TTL_SECONDS: float = 30 * 60
    POLL_INTERVAL_SECONDS: float = 3.0
    POLL_DEADLINE_SECONDS: float = 30.0
    MAX_STREAM_CANDIDATES: int = 3

    # One Pace catalog
    ONEPACE_GRAPHQL_URL: str = "https://onepace.net/api/graphql"
    CATALOG_TIMEOUT: float = 10.0
    CATALOG_TTL_SECONDS: float = 5 * 60
    ID_PREFIX: str = "onepace"

    class Config:
        env_file = ".env"

settings = Settings()
