from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import AnyHttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., FIXER_API_LINK,
    FIXER_API_CODE, FIXER_TEST_MODE, DATA_DIR, DB_FILENAME, REFRESH_INTERVAL_SECONDS).
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Basic app metadata
    app_name: str = "FX Rates Cache"
    debug: bool = False
    version: str = "0.1.0"

    # Data & persistence
    data_dir: Path = Path("data")
    db_filename: str = "fxcache.sqlite3"
    db_path: Optional[Path] = None  # derived if not provided

    # Provider (Fixer compatible API)
    fixer_api_link: AnyHttpUrl = "http://data.fixer.io/api"
    fixer_api_code: str = ""
    # Free tier ignores the base parameter and always answers with EUR rates
    fixer_test_mode: bool = True
    http_timeout_seconds: float = 5.0
    http_retries: int = 2

    # Currencies exposed in pickers and refreshed by the worker
    fixer_currencies_list: List[str] = ["EUR"]
    fixer_base_currencies: List[str] = ["EUR"]
    refresh_interval_seconds: int = 180

    @field_validator("fixer_currencies_list", "fixer_base_currencies")
    @classmethod
    def upper_codes(cls, v: List[str]) -> List[str]:
        return [c.strip().upper() for c in v if c and c.strip()]

    @property
    def api_base_uri(self) -> str:
        return str(self.fixer_api_link).rstrip("/")

    def init_post_load(self) -> None:
        """Finalize derived fields and ensure directories exist."""
        if self.db_path is None:
            self.db_path = self.data_dir / self.db_filename
        # Ensure persistence directory exists
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        if self.http_timeout_seconds <= 0:
            raise ValueError("http_timeout_seconds must be positive")
        if self.refresh_interval_seconds <= 0:
            raise ValueError("refresh_interval_seconds must be positive")


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
