import fnmatch

import pytest

from explorer import ExplorerError, Transaction
from store import StalkerStore
from telegram_api import TelegramError
from tracker import Tracker


class FakeRedis:
    def __init__(self):
        self.data = {}
        self.writes = 0

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.writes += 1
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)

    def keys(self, pattern="*"):
        return [k for k in self.data if fnmatch.fnmatchcase(k, pattern)]

    def mget(self, keys):
        return [self.data.get(k) for k in keys]


class FakeExplorer:
    def __init__(self, height=0):
        self.height = height
        self.txs = {}
        self.calls = []
        self.failing = set()

    def current_block_height(self):
        return self.height

    def history(self, address, from_block, to_block):
        self.calls.append((address, from_block, to_block))
        if address in self.failing:
            raise ExplorerError(f"boom for {address}")
        return [
            Transaction(hash=h, block_number=b)
            for h, b in self.txs.get(address, [])
            if from_block <= b <= to_block
        ]


class FakeChat:
    def __init__(self):
        self.sent = []
        self.fail_on = set()

    def send_message(self, chat_id, text):
        if text in self.fail_on:
            raise TelegramError(f"could not deliver {text!r}")
        self.sent.append((chat_id, text))


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def store(fake_redis):
    return StalkerStore(fake_redis)


@pytest.fixture
def explorer():
    return FakeExplorer(height=100)


@pytest.fixture
def chat():
    return FakeChat()


@pytest.fixture
def tracker(store, explorer, chat):
    return Tracker(store, explorer, chat)
