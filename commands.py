from dataclasses import dataclass
from enum import Enum
from typing import Optional

from web3 import Web3


class CommandKind(Enum):
    START = "start"
    ADD = "add"
    REMOVE = "remove"
    LIST = "list"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    address: str = ""
    alias: str = ""


USAGE_ADD = "/add <address> <alias>"
USAGE_REMOVE = "/remove <alias>"

START_MESSAGE = (
    "You can control me by sending these commands:\n"
    "\n"
    f"    {USAGE_ADD} - add new address to stalk\n"
    f"    {USAGE_REMOVE} - remove address\n"
    "    /list - get the current addresses\n"
)

BOT_COMMANDS = [
    {"command": "add", "description": "Track an address: /add <address> <alias>"},
    {"command": "remove", "description": "Stop tracking: /remove <alias>"},
    {"command": "list", "description": "Show tracked addresses"},
    {"command": "start", "description": "Show help"},
]

_KINDS = {
    "/start": CommandKind.START,
    "/help": CommandKind.START,
    "/add": CommandKind.ADD,
    "/remove": CommandKind.REMOVE,
    "/list": CommandKind.LIST,
}


def normalize_address(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip().lower()
    if not cleaned:
        return None
    if not cleaned.startswith("0x"):
        cleaned = f"0x{cleaned}"
    if not Web3.is_address(cleaned):
        return None
    return cleaned


def parse_command(text: Optional[str]) -> Optional[Command]:
    """Turn a chat message into a Command; None for anything that is not a command."""
    if not text:
        return None
    parts = text.strip().split()
    if not parts or not parts[0].startswith("/"):
        return None
    kind = _KINDS.get(parts[0].split("@")[0].lower(), CommandKind.UNKNOWN)
    args = parts[1:]

    if kind is CommandKind.ADD:
        address = args[0] if args else ""
        alias = " ".join(args[1:])
        return Command(kind, address=address, alias=alias)
    if kind is CommandKind.REMOVE:
        return Command(kind, alias=" ".join(args))
    return Command(kind)
