"""HTTP client for the external NFT mint service."""

import logging
from dataclasses import dataclass

import httpx

from vision_mint.domain.errors import UpstreamUnavailableError
from vision_mint.domain.minting import MintedAsset
from vision_mint.services.minting import AssetMinter

logger = logging.getLogger(__name__)


@dataclass
class HttpxMintServiceClient(AssetMinter):
    """Asks the signing mint service to create a core asset for an owner."""

    base_url: str | None
    token: str | None
    http_client: httpx.AsyncClient
    timeout: float = 60.0

    @classmethod
    def create(
        cls, base_url: str | None, token: str | None, timeout: float = 60.0
    ) -> "HttpxMintServiceClient":
        """Create a mint service client with a managed httpx session."""
        return cls(
            base_url=base_url,
            token=token,
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def mint_asset(
        self, *, metadata_uri: str, name: str, owner: str
    ) -> MintedAsset:
        """Mint an asset and return its address and transaction signature."""
        if not self.base_url:
            raise UpstreamUnavailableError("MINT_SERVICE_URL not set")
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        try:
            response = await self.http_client.post(
                f"{self.base_url.rstrip('/')}/mint",
                json={"metadataUri": metadata_uri, "name": name, "owner": owner},
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.exception("Mint service request failed", extra={"owner": owner})
            raise UpstreamUnavailableError("Mint service unavailable") from exc
        data = response.json()
        return MintedAsset(
            asset_id=str(data["assetId"]), signature=str(data["signature"])
        )

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()
