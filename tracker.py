import logging

import redis

from commands import START_MESSAGE, Command, CommandKind, normalize_address
from config import DEFAULT_TX_URL_BASE
from explorer import ExplorerClient, ExplorerError
from store import CorruptRecordError, Stalker, StalkerStore, Target
from telegram_api import TelegramClient, TelegramError


logger = logging.getLogger(__name__)

NO_TARGETS = "No targets registered"
ADDED = "Address added successfully"
REMOVED = "Address removed successfully"
MISSING_ADDRESS_OR_ALIAS = "Missing address or alias"
MISSING_ALIAS = "Missing alias"
UNREADABLE_RECORD = "Your tracking record could not be read; no changes were made"
ALIAS_IN_USE = "Alias already in use"
UNKNOWN_COMMAND = "Unknown command, send /start for help"


class Tracker:
    """Per-chat address tracking plus the periodic scan pass.

    All collaborators are injected; a single instance is built at startup
    and shared by the update loop and the scan trigger.
    """

    def __init__(
        self,
        store: StalkerStore,
        explorer: ExplorerClient,
        chat: TelegramClient,
        tx_url_base: str = DEFAULT_TX_URL_BASE,
    ):
        self.store = store
        self.explorer = explorer
        self.chat = chat
        self.tx_url_base = tx_url_base
        self._handlers = {
            CommandKind.START: lambda chat_id, cmd: self.start(chat_id),
            CommandKind.LIST: lambda chat_id, cmd: self.list_targets(chat_id),
            CommandKind.ADD: lambda chat_id, cmd: self.add(chat_id, cmd.address, cmd.alias),
            CommandKind.REMOVE: lambda chat_id, cmd: self.remove(chat_id, cmd.alias),
            CommandKind.UNKNOWN: lambda chat_id, cmd: self.chat.send_message(chat_id, UNKNOWN_COMMAND),
        }

    def handle(self, chat_id: int, command: Command) -> None:
        try:
            self._handlers[command.kind](chat_id, command)
        except CorruptRecordError:
            logger.exception("Record for chat %s is unreadable", chat_id)
            self.chat.send_message(chat_id, UNREADABLE_RECORD)

    def start(self, chat_id: int) -> None:
        self.chat.send_message(chat_id, START_MESSAGE)

    def list_targets(self, chat_id: int) -> None:
        stalker = self.store.get(chat_id)
        if stalker is None or not stalker.targets:
            self.chat.send_message(chat_id, NO_TARGETS)
            return
        lines = [f"{target.alias} => {target.address}" for target in stalker.targets]
        self.chat.send_message(chat_id, "Targets:\n\n" + "\n".join(lines))

    def add(self, chat_id: int, address: str, alias: str) -> None:
        if not address or not alias:
            self.chat.send_message(chat_id, MISSING_ADDRESS_OR_ALIAS)
            return
        normalized = normalize_address(address) or address.strip()

        stalker = self.store.get(chat_id) or Stalker(chat_id=chat_id)
        if stalker.find(alias) is not None:
            self.chat.send_message(chat_id, ALIAS_IN_USE)
            return

        current_block = self.explorer.current_block_height()
        stalker.targets.append(
            Target(address=normalized, alias=alias, last_block_checked=current_block)
        )
        self.store.put(stalker)
        logger.info("Chat %s now tracks %s as %r from block %s", chat_id, normalized, alias, current_block)
        self.chat.send_message(chat_id, ADDED)

    def remove(self, chat_id: int, alias: str) -> None:
        if not alias:
            self.chat.send_message(chat_id, MISSING_ALIAS)
            return

        stalker = self.store.get(chat_id)
        if stalker is None or stalker.find(alias) is None:
            self.chat.send_message(chat_id, f"No target with alias {alias}")
            return

        stalker.targets = [t for t in stalker.targets if t.alias != alias]
        self.store.put(stalker)
        logger.info("Chat %s stopped tracking %r", chat_id, alias)
        self.chat.send_message(chat_id, REMOVED)

    def notification(self, alias: str, tx_hash: str) -> str:
        return f"New transaction from {alias}: {self.tx_url_base}{tx_hash}"

    def scan(self) -> int:
        """Run one scan pass over every tracked address; returns messages sent."""
        current_block = self.explorer.current_block_height()
        logger.info("Scanning block %s", current_block)

        sent = 0
        for stalker in self.store.all_records():
            for target in stalker.targets:
                if target.last_block_checked >= current_block:
                    continue
                try:
                    sent += self._scan_target(stalker, target, current_block)
                except (ExplorerError, TelegramError, redis.RedisError):
                    logger.exception(
                        "Scan of %s for chat %s failed; will retry next pass",
                        target.address,
                        stalker.chat_id,
                    )
        return sent

    def _scan_target(self, stalker: Stalker, target: Target, current_block: int) -> int:
        history = self.explorer.history(target.address, target.last_block_checked, current_block)
        new_txs = [tx for tx in history if tx.block_number > target.last_block_checked]
        if new_txs:
            logger.info("Found %d transactions from %s", len(new_txs), target.address)

        for tx in new_txs:
            self.chat.send_message(stalker.chat_id, self.notification(target.alias, tx.hash))

        # Advance only after delivery; a failed send leaves the watermark for the next pass.
        target.last_block_checked = current_block
        self.store.put(stalker)
        return len(new_txs)
