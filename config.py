import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv


DEFAULT_EXPLORER_API_URL = "https://api.arbiscan.io/api"
DEFAULT_TX_URL_BASE = "https://arbiscan.io/tx/"
SCAN_INTERVAL_SECONDS = 60.0


@dataclass(frozen=True)
class Settings:
    etherscan_api_key: str
    telegram_token: str
    redis_url: str
    explorer_api_url: str = DEFAULT_EXPLORER_API_URL
    tx_url_base: str = DEFAULT_TX_URL_BASE
    redis_key_prefix: str = ""
    http_timeout: float = 20.0
    log_level: str = "INFO"


def _required(name: str) -> str:
    value = (os.getenv(name) or "").strip()
    if not value:
        raise RuntimeError(f"{name} is required")
    return value


def load_settings() -> Settings:
    """Read process configuration from the environment (and .env, if present)."""
    load_dotenv()
    return Settings(
        etherscan_api_key=_required("ETHERSCAN_API_KEY"),
        telegram_token=_required("TELEGRAM_TOKEN"),
        redis_url=_required("REDIS_URL"),
        explorer_api_url=os.getenv("EXPLORER_API_URL", DEFAULT_EXPLORER_API_URL),
        tx_url_base=os.getenv("TX_URL_BASE", DEFAULT_TX_URL_BASE),
        redis_key_prefix=os.getenv("REDIS_KEY_PREFIX", ""),
        http_timeout=float(os.getenv("HTTP_TIMEOUT_SECONDS", "20")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
