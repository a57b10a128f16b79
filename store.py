import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import redis


logger = logging.getLogger(__name__)


class CorruptRecordError(Exception):
    """A stored tracking record could not be decoded."""


@dataclass
class Target:
    address: str
    alias: str
    last_block_checked: int

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "alias": self.alias,
            "lastBlockChecked": self.last_block_checked,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Target":
        return cls(
            address=str(data["address"]),
            alias=str(data["alias"]),
            last_block_checked=int(data["lastBlockChecked"]),
        )


@dataclass
class Stalker:
    chat_id: int
    targets: List[Target] = field(default_factory=list)

    def find(self, alias: str) -> Optional[Target]:
        for target in self.targets:
            if target.alias == alias:
                return target
        return None

    def to_json(self) -> str:
        return json.dumps(
            {"chatId": self.chat_id, "targets": [t.to_dict() for t in self.targets]}
        )

    @classmethod
    def from_json(cls, raw: str) -> "Stalker":
        try:
            data = json.loads(raw)
            return cls(
                chat_id=int(data["chatId"]),
                targets=[Target.from_dict(item) for item in data.get("targets", [])],
            )
        except (ValueError, TypeError, KeyError) as exc:
            raise CorruptRecordError(str(exc)) from exc


def connect(url: str) -> redis.Redis:
    client = redis.from_url(url, decode_responses=True)
    client.ping()
    return client


class StalkerStore:
    """One JSON record per chat, keyed by the stringified chat id."""

    def __init__(self, client: redis.Redis, prefix: str = ""):
        self.client = client
        self.prefix = prefix

    def _key(self, chat_id: int) -> str:
        return f"{self.prefix}{chat_id}"

    def put(self, stalker: Stalker) -> None:
        self.client.set(self._key(stalker.chat_id), stalker.to_json())

    def get(self, chat_id: int) -> Optional[Stalker]:
        raw = self.client.get(self._key(chat_id))
        if raw is None:
            return None
        return Stalker.from_json(raw)

    def delete(self, chat_id: int) -> None:
        self.client.delete(self._key(chat_id))

    def all_records(self) -> List[Stalker]:
        keys = sorted(self.client.keys(f"{self.prefix}*"))
        if not keys:
            return []

        stalkers = []
        for key, raw in zip(keys, self.client.mget(keys)):
            if raw is None:
                continue
            try:
                stalkers.append(Stalker.from_json(raw))
            except CorruptRecordError as exc:
                logger.warning("Skipping unreadable record %s: %s", key, exc)
        return stalkers
