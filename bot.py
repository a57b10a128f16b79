import logging
import time

import redis

from commands import BOT_COMMANDS, parse_command
from config import SCAN_INTERVAL_SECONDS, load_settings, setup_logging
from explorer import ExplorerClient, ExplorerError
from store import StalkerStore, connect
from telegram_api import TelegramClient, TelegramError
from tracker import Tracker


logger = logging.getLogger(__name__)

LONG_POLL_SECONDS = 30


def handle_update(tracker: Tracker, update: dict) -> None:
    message = update.get("message")
    if not message:
        return
    chat_id = message.get("chat", {}).get("id")
    command = parse_command(message.get("text", ""))
    if chat_id is None or command is None:
        return
    logger.info("Chat %s: /%s", chat_id, command.kind.value)
    tracker.handle(int(chat_id), command)


def poll_updates(tracker: Tracker, chat: TelegramClient, offset: int, timeout: int) -> int:
    """Fetch one batch of updates, dispatch them and return the next offset."""
    for update in chat.get_updates(offset, timeout=timeout):
        offset = max(offset, update.get("update_id", offset) + 1)
        try:
            handle_update(tracker, update)
        except Exception:
            logger.exception("Failed to handle update %s", update.get("update_id"))
    return offset


def run_scan(tracker: Tracker) -> None:
    try:
        sent = tracker.scan()
    except (ExplorerError, TelegramError, redis.RedisError):
        logger.exception("Scan pass failed; retrying next interval")
        return
    if sent:
        logger.info("Scan pass sent %d notifications", sent)


class BotLoop:
    """Serves commands and triggers a scan pass every interval, on one thread."""

    def __init__(
        self,
        tracker: Tracker,
        chat: TelegramClient,
        interval: float = SCAN_INTERVAL_SECONDS,
        clock=time.monotonic,
        sleep=time.sleep,
    ):
        self.tracker = tracker
        self.chat = chat
        self.interval = interval
        self.clock = clock
        self.sleep = sleep
        self.offset = 0
        self.next_scan = clock()

    def step(self) -> None:
        now = self.clock()
        if now >= self.next_scan:
            self.next_scan = now + self.interval
            run_scan(self.tracker)

        wait = max(0, int(self.next_scan - self.clock()))
        self.offset = poll_updates(self.tracker, self.chat, self.offset, min(LONG_POLL_SECONDS, wait))

    def run(self) -> None:
        while True:
            try:
                self.step()
            except Exception:
                logger.exception("Error while polling; retrying soon")
                self.sleep(2)


def main() -> None:
    settings = load_settings()
    setup_logging(settings.log_level)

    store = StalkerStore(connect(settings.redis_url), prefix=settings.redis_key_prefix)
    explorer = ExplorerClient(
        settings.explorer_api_url, settings.etherscan_api_key, timeout=settings.http_timeout
    )
    chat = TelegramClient(settings.telegram_token, timeout=settings.http_timeout)
    tracker = Tracker(store, explorer, chat, tx_url_base=settings.tx_url_base)

    chat.set_my_commands(BOT_COMMANDS)
    logger.info("Bot started")
    try:
        BotLoop(tracker, chat).run()
    except KeyboardInterrupt:
        logger.info("Bot stopped")


if __name__ == "__main__":
    main()
