"""Pinata IPFS uploader adapter."""

import logging
from dataclasses import dataclass

import httpx

from vision_mint.domain.errors import UpstreamUnavailableError
from vision_mint.services.minting import Uploader

logger = logging.getLogger(__name__)

_IPFS_PREFIX = "ipfs://"


@dataclass
class HttpxPinataUploader(Uploader):
    """Uploads images and metadata to IPFS through Pinata's pinning API."""

    jwt: str | None
    http_client: httpx.AsyncClient
    api_url: str = "https://api.pinata.cloud"
    gateway_base_url: str = "https://gateway.pinata.cloud/ipfs/"
    timeout: float = 15.0

    @classmethod
    def create(
        cls,
        jwt: str | None,
        gateway_base_url: str = "https://gateway.pinata.cloud/ipfs/",
        timeout: float = 15.0,
    ) -> "HttpxPinataUploader":
        """Create an uploader with a managed httpx session."""
        return cls(
            jwt=jwt,
            http_client=httpx.AsyncClient(),
            gateway_base_url=gateway_base_url,
            timeout=timeout,
        )

    async def upload_file(self, content: bytes, file_name: str, mime_type: str) -> str:
        """Pin a file and return its ipfs:// URI."""
        response = await self._post(
            "/pinning/pinFileToIPFS",
            files={"file": (file_name, content, mime_type)},
        )
        return _IPFS_PREFIX + str(response["IpfsHash"])

    async def upload_json(self, payload: dict[str, object], name: str) -> str:
        """Pin a JSON document and return its ipfs:// URI."""
        response = await self._post(
            "/pinning/pinJSONToIPFS",
            json={"pinataContent": payload, "pinataMetadata": {"name": name}},
        )
        return _IPFS_PREFIX + str(response["IpfsHash"])

    def gateway_url(self, uri: str) -> str:
        """Convert an ipfs:// URI into a gateway URL."""
        if uri.startswith(_IPFS_PREFIX):
            return self.gateway_base_url + uri[len(_IPFS_PREFIX) :]
        return uri

    async def _post(self, path: str, **kwargs: object) -> dict[str, object]:
        if not self.jwt:
            raise UpstreamUnavailableError("PINATA_JWT not set")
        try:
            response = await self.http_client.post(
                f"{self.api_url}{path}",
                headers={"Authorization": f"Bearer {self.jwt}"},
                timeout=self.timeout,
                **kwargs,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.exception("Pinata upload failed", extra={"path": path})
            raise UpstreamUnavailableError("Pinata upload failed") from exc
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()
