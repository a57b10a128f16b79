import logging
from typing import Any, Dict, List, Optional

import requests


logger = logging.getLogger(__name__)

API_BASE = "https://api.telegram.org"


class TelegramError(Exception):
    pass


class TelegramClient:
    """Thin wrapper over the Telegram Bot HTTP API."""

    def __init__(self, token: str, timeout: float = 20.0, session: Optional[requests.Session] = None):
        self.base_url = f"{API_BASE}/bot{token}"
        self.timeout = timeout
        self.session = session or requests.Session()

    def _call(self, method: str, payload: Dict[str, Any], timeout: Optional[float] = None) -> Any:
        try:
            resp = self.session.post(
                f"{self.base_url}/{method}", json=payload, timeout=timeout or self.timeout
            )
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise TelegramError(f"{method} failed: {exc}") from exc
        if not resp.ok or not data.get("ok"):
            raise TelegramError(f"{method} failed: {data.get('description', resp.text)}")
        return data.get("result")

    def send_message(self, chat_id: int, text: str) -> None:
        self._call("sendMessage", {"chat_id": chat_id, "text": text})

    def get_updates(self, offset: int = 0, timeout: int = 30) -> List[dict]:
        return self._call(
            "getUpdates",
            {"offset": offset, "timeout": timeout, "allowed_updates": ["message"]},
            timeout=timeout + 5,
        ) or []

    def set_my_commands(self, commands: List[Dict[str, str]]) -> None:
        try:
            self._call("setMyCommands", {"commands": commands})
        except TelegramError as exc:
            logger.warning("Failed to set commands: %s", exc)
