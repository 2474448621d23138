"""Runtime settings read from the environment."""

import os
from dataclasses import dataclass
from pathlib import Path


def _env_float(name: str, default: float) -> float:
    """Read a float env var; empty or invalid values fall back to default."""
    val = os.environ.get(name, "")
    try:
        return float(val)
    except ValueError:
        return default


@dataclass
class Settings:
    db_path: Path = Path("data/pricewatch.db")
    # The quote service allows roughly 6 requests per minute.
    competitor_delay: float = 10.0
    product_delay: float = 5.0
    auto_refresh_minutes: float = 60.0
    quote_api_url: str = ""
    quote_api_key: str = ""
    quote_timeout: float = 30.0
    search_api_url: str = ""
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (and a loaded .env)."""
        return cls(
            db_path=Path(os.environ.get("DB_PATH", "data/pricewatch.db")),
            competitor_delay=_env_float("COMPETITOR_DELAY_SECONDS", 10.0),
            product_delay=_env_float("PRODUCT_DELAY_SECONDS", 5.0),
            auto_refresh_minutes=_env_float("AUTO_REFRESH_MINUTES", 60.0),
            quote_api_url=os.environ.get("QUOTE_API_URL", ""),
            quote_api_key=os.environ.get("QUOTE_API_KEY", ""),
            quote_timeout=_env_float("QUOTE_TIMEOUT_SECONDS", 30.0),
            search_api_url=os.environ.get("SEARCH_API_URL", ""),
            telegram_bot_token=os.environ.get("TELEGRAM_BOT_TOKEN", ""),
            telegram_chat_id=os.environ.get("TELEGRAM_CHAT_ID", ""),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )
