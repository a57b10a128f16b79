import pytest
import requests

from explorer import ExplorerClient, ExplorerError, Transaction


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params, timeout))
        return self.responses.pop(0)


def make_client(*responses):
    session = FakeSession(*responses)
    return ExplorerClient("https://api.example/api", "KEY", timeout=5, session=session), session


def test_current_block_height():
    client, session = make_client(FakeResponse({"jsonrpc": "2.0", "id": 83, "result": "0x1b4"}))
    assert client.current_block_height() == 436
    url, params, timeout = session.requests[0]
    assert params == {"module": "proxy", "action": "eth_blockNumber", "apikey": "KEY"}
    assert timeout == 5


def test_current_block_height_error_payload():
    client, _ = make_client(FakeResponse({"status": "0", "message": "NOTOK", "result": "Invalid API Key"}))
    with pytest.raises(ExplorerError):
        client.current_block_height()


def test_history():
    client, session = make_client(
        FakeResponse(
            {
                "status": "1",
                "message": "OK",
                "result": [
                    {"hash": "0xh1", "blockNumber": "120"},
                    {"hash": "0xh2", "blockNumber": "150"},
                ],
            }
        )
    )
    txs = client.history("0xabc", 100, 150)
    assert txs == [Transaction("0xh1", 120), Transaction("0xh2", 150)]
    params = session.requests[0][1]
    assert params["startblock"] == 100
    assert params["endblock"] == 150
    assert params["sort"] == "asc"


def test_history_no_transactions():
    client, _ = make_client(FakeResponse({"status": "0", "message": "No transactions found", "result": []}))
    assert client.history("0xabc", 1, 2) == []


def test_history_rate_limited():
    client, _ = make_client(
        FakeResponse({"status": "0", "message": "NOTOK", "result": "Max rate limit reached"})
    )
    with pytest.raises(ExplorerError):
        client.history("0xabc", 1, 2)


def test_http_and_decode_failures():
    client, _ = make_client(FakeResponse({}, status=502), FakeResponse(ValueError("not json")))
    with pytest.raises(ExplorerError):
        client.current_block_height()
    with pytest.raises(ExplorerError):
        client.history("0xabc", 1, 2)
