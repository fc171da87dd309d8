"""NFT mint orchestration."""

import logging
from dataclasses import dataclass
from typing import Protocol

from vision_mint.domain.errors import ErrorKind, Failure
from vision_mint.domain.minting import ClaimStatus, MintedAsset, MintReceipt
from vision_mint.domain.outcomes import Outcome
from vision_mint.services.mint_ledger import MintLedger
from vision_mint.services.sessions import SessionService

logger = logging.getLogger(__name__)


class Uploader(Protocol):
    """Interface for content-addressed object storage."""

    async def upload_file(self, content: bytes, file_name: str, mime_type: str) -> str:
        """Upload bytes and return a content URI."""

    async def upload_json(self, payload: dict[str, object], name: str) -> str:
        """Upload a JSON document and return a content URI."""

    def gateway_url(self, uri: str) -> str:
        """Convert a content URI into a browsable URL."""


class AssetMinter(Protocol):
    """Interface for the on-chain NFT mint call."""

    async def mint_asset(
        self, *, metadata_uri: str, name: str, owner: str
    ) -> MintedAsset:
        """Mint an asset to the owner and return its id and signature."""


@dataclass
class MintService:
    """Mints one NFT per wallet from a vision session.

    The ledger slot is claimed before any network call and revoked if the
    upload or mint fails, so the session flag and the ledger move together.
    """

    session_service: SessionService
    mint_ledger: MintLedger
    uploader: Uploader
    minter: AssetMinter
    total_supply: int
    dev_wallets: frozenset[str] = frozenset()
    collection_name: str = "3eyes Selfie"
    external_url: str = "https://selfie.3eyes.world"

    async def mint(
        self,
        session_id: str | None,
        wallet: str | None,
        image: bytes | None,
        mime_type: str = "image/png",
    ) -> MintReceipt | Failure:
        """Upload the captured image and mint it for the session's wallet."""
        if not session_id or not wallet or not image:
            return Failure(ErrorKind.VALIDATION, "Missing required fields")

        session = self.session_service.begin_mint(session_id, wallet)
        if isinstance(session, Failure):
            return session

        is_dev = wallet in self.dev_wallets
        claim = self.mint_ledger.claim(wallet, self.total_supply, allow_repeat=is_dev)
        if claim.status is ClaimStatus.SUPPLY_EXHAUSTED:
            self.session_service.abort_mint(session_id)
            return Failure(
                ErrorKind.SUPPLY_EXHAUSTED,
                f"All {self.total_supply} have been claimed",
            )
        if claim.status is ClaimStatus.ALREADY_MINTED or claim.mint_number is None:
            self.session_service.abort_mint(session_id)
            return Failure(ErrorKind.ALREADY_MINTED, "Wallet already minted")

        mint_number = claim.mint_number
        name = f"{self.collection_name} #{mint_number}"
        try:
            image_uri = await self.uploader.upload_file(
                image, f"3eyes-selfie-{mint_number}.png", mime_type
            )
            metadata = self.build_metadata(name, image_uri, session.outcome)
            metadata_uri = await self.uploader.upload_json(
                metadata, f"3eyes-selfie-{mint_number}-metadata"
            )
            asset = await self.minter.mint_asset(
                metadata_uri=metadata_uri, name=name, owner=wallet
            )
        except Exception:
            logger.exception(
                "Mint failed, rolling back ledger claim",
                extra={"wallet": wallet, "session_id": session_id},
            )
            self.mint_ledger.revoke(claim, wallet)
            self.session_service.abort_mint(session_id)
            raise

        self.session_service.complete_mint(session)
        logger.info(
            "Minted",
            extra={
                "wallet": wallet,
                "session_id": session_id,
                "mint_number": mint_number,
                "asset_id": asset.asset_id,
            },
        )
        return MintReceipt(
            mint_number=mint_number,
            total_supply=self.total_supply,
            asset_id=asset.asset_id,
            signature=asset.signature,
            image_uri=image_uri,
            metadata_uri=metadata_uri,
            aura=session.outcome.aura,
        )

    def build_metadata(
        self, name: str, image_uri: str, outcome: Outcome
    ) -> dict[str, object]:
        """Build the off-chain NFT metadata document."""
        return {
            "name": name,
            "description": "POV. You're in 3eyes world.",
            "image": image_uri,
            "external_url": self.external_url,
            "attributes": [
                {"trait_type": "Spot", "value": outcome.spot.name},
                {"trait_type": "Spot Rarity", "value": outcome.spot.rarity},
                {"trait_type": "Atmosphere", "value": outcome.preset.name},
                {"trait_type": "Pose", "value": outcome.pose.name},
                {"trait_type": "Aura", "value": outcome.aura.name},
                {"trait_type": "Aura Tier", "value": str(outcome.aura.tier)},
            ],
        }
