"""Solana JSON-RPC client for feewindow."""

import json
import requests
from typing import Any, Optional

from .constants import DEFAULT_COMMITMENT, DEFAULT_HTTP_TIMEOUT_SECS, SLOT_SKIPPED_ERROR_CODES
from .logging import get_logger
from .models import Block

logger = get_logger(__name__)


class RPCError(RuntimeError):
    """Raised when the node answers a call with a JSON-RPC error object."""

    def __init__(self, method: str, code: Optional[int] = None, message: str = None):
        self.method = method
        self.code = code
        self.message = message or "RPC error"
        super().__init__(f"{method} failed ({code}): {self.message}")


class RPCClient:
    """JSON-RPC client with persistent session."""

    def __init__(self, url: str, timeout: float = DEFAULT_HTTP_TIMEOUT_SECS):
        """
        Initialize RPC client.

        Args:
            url: RPC URL (e.g., "https://api.mainnet-beta.solana.com")
            timeout: Seconds before a single call is abandoned
        """
        self.url = url
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers["content-type"] = "application/json"

    def call(self, method: str, *params: Any) -> Any:
        """
        Make an RPC call.

        Args:
            method: RPC method name
            *params: RPC method parameters

        Returns:
            RPC result

        Raises:
            RPCError: If RPC returns an error
            requests.RequestException: If HTTP request fails or times out
        """
        payload = {
            "jsonrpc": "2.0",
            "id": "fw",
            "method": method,
            "params": list(params)
        }
        response = self.session.post(self.url, data=json.dumps(payload), timeout=self.timeout)
        response.raise_for_status()
        result = response.json()

        if "error" in result and result["error"]:
            error = result["error"]
            if isinstance(error, dict):
                raise RPCError(method, error.get("code"), error.get("message", ""))
            raise RPCError(method, message=str(error))

        return result.get("result")


class ChainClient:
    """Reads slots and blocks from a Solana node."""

    def __init__(self, rpc_client: RPCClient, commitment: str = DEFAULT_COMMITMENT):
        self.rpc_client = rpc_client
        self.commitment = commitment

    def current_height(self) -> int:
        """Return the node's current slot."""
        return int(self.rpc_client.call("getSlot", {"commitment": self.commitment}))

    def fetch_block(self, height: int) -> Optional[Block]:
        """
        Fetch a full block with transaction metadata.

        Args:
            height: Slot to fetch

        Returns:
            Parsed block, or None if the node has no block at that slot

        Raises:
            RPCError: For node errors other than a skipped/unavailable slot
            requests.RequestException: If HTTP request fails or times out
        """
        try:
            raw = self.rpc_client.call("getBlock", height, {
                "encoding": "json",
                "transactionDetails": "full",
                "rewards": False,
                "maxSupportedTransactionVersion": 0,
                "commitment": self.commitment,
            })
        except RPCError as e:
            if e.code in SLOT_SKIPPED_ERROR_CODES:
                logger.debug(f"No block available at slot {height}: {e.message}")
                return None
            raise

        if not raw:
            return None
        return Block.from_rpc(height, raw)
