"""Supabase mint ledger backed by database functions."""

import logging
from dataclasses import dataclass

from supabase import Client

from vision_mint.domain.minting import ClaimStatus, MintClaim
from vision_mint.services.mint_ledger import MintLedger

logger = logging.getLogger(__name__)


@dataclass
class SupabaseMintLedger(MintLedger):
    """Mint ledger whose claim and revoke run as single SQL transactions.

    See `sql/schema.sql` for `claim_mint`, `revoke_mint` and `reset_mints`.
    """

    client: Client

    def total_minted(self) -> int:
        response = (
            self.client.table("mint_state")
            .select("mint_count")
            .eq("id", 1)
            .limit(1)
            .execute()
        )
        if not response.data:
            return 0
        return int(response.data[0].get("mint_count", 0))

    def has_minted(self, wallet: str) -> bool:
        response = (
            self.client.table("minted_wallets")
            .select("wallet")
            .eq("wallet", wallet)
            .limit(1)
            .execute()
        )
        return bool(response.data)

    def claim(self, wallet: str, total_supply: int, allow_repeat: bool) -> MintClaim:
        response = self.client.rpc(
            "claim_mint",
            {
                "p_wallet": wallet,
                "p_total_supply": total_supply,
                "p_allow_repeat": allow_repeat,
            },
        ).execute()
        row = _first_row(response.data)
        mint_number = row.get("mint_number")
        return MintClaim(
            status=ClaimStatus(str(row["status"])),
            mint_number=int(mint_number) if mint_number is not None else None,
            total_minted=int(row.get("total_minted", 0)),
            wallet_added=bool(row.get("wallet_added", False)),
        )

    def revoke(self, claim: MintClaim, wallet: str) -> None:
        if claim.status is not ClaimStatus.OK:
            return
        self.client.rpc(
            "revoke_mint",
            {
                "p_wallet": wallet,
                "p_remove_wallet": claim.wallet_added,
                "p_mint_number": claim.mint_number,
            },
        ).execute()
        logger.info("Mint claim revoked", extra={"wallet": wallet})

    def reset(self) -> None:
        self.client.rpc("reset_mints", {}).execute()


def _first_row(data: object) -> dict[str, object]:
    if isinstance(data, list):
        data = data[0] if data else {}
    if not isinstance(data, dict):
        raise RuntimeError("claim_mint returned no result")
    return data
