"""Solana JSON-RPC client adapter."""

import logging
from dataclasses import dataclass

import httpx

from vision_mint.domain.errors import UpstreamUnavailableError
from vision_mint.services.payments import ChainClient

logger = logging.getLogger(__name__)


@dataclass
class HttpxSolanaRpcClient(ChainClient):
    """Chain client implemented with httpx over JSON-RPC."""

    rpc_url: str
    http_client: httpx.AsyncClient
    timeout: float = 15.0
    commitment: str = "confirmed"

    @classmethod
    def create(cls, rpc_url: str, timeout: float = 15.0) -> "HttpxSolanaRpcClient":
        """Create an RPC client with a managed httpx session."""
        return cls(rpc_url=rpc_url, http_client=httpx.AsyncClient(), timeout=timeout)

    async def get_transaction(self, signature: str) -> dict[str, object] | None:
        """Fetch a confirmed transaction in parsed form."""
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "getTransaction",
            "params": [
                signature,
                {
                    "encoding": "jsonParsed",
                    "commitment": self.commitment,
                    "maxSupportedTransactionVersion": 0,
                },
            ],
        }
        try:
            response = await self.http_client.post(
                self.rpc_url, json=payload, timeout=self.timeout
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.exception(
                "Solana RPC request failed", extra={"signature": signature}
            )
            raise UpstreamUnavailableError("Chain RPC unavailable") from exc

        data = response.json()
        if data.get("error"):
            logger.warning(
                "Solana RPC returned an error",
                extra={"signature": signature, "rpc_error": data["error"]},
            )
            return None
        result = data.get("result")
        return result if isinstance(result, dict) else None

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()
