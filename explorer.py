import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from web3 import Web3


logger = logging.getLogger(__name__)

NO_TRANSACTIONS = "No transactions found"


class ExplorerError(Exception):
    """The explorer call failed or returned something unusable."""


@dataclass(frozen=True)
class Transaction:
    hash: str
    block_number: int


class ExplorerClient:
    """Minimal Etherscan-compatible API client (Arbiscan by default)."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: float = 20.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, module: str, action: str, **params) -> Dict[str, Any]:
        payload = {"module": module, "action": action, "apikey": self.api_key}
        payload.update(params)
        try:
            resp = self.session.get(self.api_url, params=payload, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise ExplorerError(f"{module}/{action} request failed: {exc}") from exc
        if not isinstance(data, dict):
            raise ExplorerError(f"{module}/{action} returned {data!r}")
        return data

    def current_block_height(self) -> int:
        data = self._get("proxy", "eth_blockNumber")
        result = data.get("result")
        if not isinstance(result, str) or not result.startswith("0x"):
            raise ExplorerError(f"Unexpected eth_blockNumber response: {data}")
        return Web3.to_int(hexstr=result)

    def history(self, address: str, from_block: int, to_block: int) -> List[Transaction]:
        """Normal transactions for address in [from_block, to_block], oldest first."""
        data = self._get(
            "account",
            "txlist",
            address=address,
            startblock=from_block,
            endblock=to_block,
            sort="asc",
        )
        result = data.get("result")
        if str(data.get("status")) == "0":
            if data.get("message") == NO_TRANSACTIONS or result == []:
                return []
            raise ExplorerError(f"Explorer error: {data.get('message')} {result}")
        if not isinstance(result, list):
            raise ExplorerError(f"Unexpected txlist response: {data}")

        txs = []
        for item in result:
            try:
                txs.append(Transaction(hash=item["hash"], block_number=int(item["blockNumber"])))
            except (KeyError, TypeError, ValueError) as exc:
                raise ExplorerError(f"Malformed transaction entry {item!r}") from exc
        logger.debug("txlist %s [%s, %s]: %d entries", address, from_block, to_block, len(txs))
        return txs
