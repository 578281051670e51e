from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

# Placeholder some deployments put in KLARA_API_KEY to force the empty catalog
KLARA_PLACEHOLDER_KEY = "mock_mode"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True)

    # App Settings
    APP_NAME: str = "KLARA Catalog"
    PROJECT_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: str = "*"  # Comma-separated string or "*"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = False

    DATABASE_URL: str = "sqlite+aiosqlite:///./catalog.db"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # KLARA POS
    KLARA_API_URL: str = "https://api.klara.ch/core/latest"
    KLARA_API_KEY: str | None = None
    KLARA_API_SECRET: str | None = None  # Only reported in diagnostics, never sent
    USE_MOCK_KLARA: bool = False
    KLARA_CACHE_TTL_SECONDS: float = 60 * 60
    KLARA_CACHE_SWEEP_INTERVAL_SECONDS: float = 10 * 60
    KLARA_REQUEST_TIMEOUT_SECONDS: float = 30.0
    KLARA_PAGE_SIZE: int = 1000

    # Parse ALLOWED_ORIGINS
    @property
    def allowed_origins_list(self) -> List[str]:
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def klara_api_key_valid(self) -> bool:
        return bool(self.KLARA_API_KEY and self.KLARA_API_KEY != KLARA_PLACEHOLDER_KEY)


settings = Settings()
