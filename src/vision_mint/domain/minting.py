"""Mint ledger and minting models."""

from dataclasses import dataclass
from enum import Enum

from vision_mint.domain.outcomes import Aura


class ClaimStatus(str, Enum):
    """Result of claiming a slot in the mint ledger."""

    OK = "ok"
    SUPPLY_EXHAUSTED = "supply_exhausted"
    ALREADY_MINTED = "already_minted"


@dataclass(frozen=True)
class MintClaim:
    """A ledger claim; `mint_number` is set only when status is OK.

    `wallet_added` is false when a repeat claim (dev wallet) found the wallet
    already in the minted set, so a rollback must leave the set alone.
    """

    status: ClaimStatus
    mint_number: int | None = None
    total_minted: int = 0
    wallet_added: bool = False


@dataclass(frozen=True)
class MintedAsset:
    """Result returned by the external NFT minter."""

    asset_id: str
    signature: str


@dataclass(frozen=True)
class MintReceipt:
    """Successful mint summary returned to the client."""

    mint_number: int
    total_supply: int
    asset_id: str
    signature: str
    image_uri: str
    metadata_uri: str
    aura: Aura
