"""Supabase repository for per-wallet entitlement counters."""

from dataclasses import dataclass
from datetime import datetime

from postgrest.exceptions import APIError
from supabase import Client

from vision_mint.domain.entitlements import WalletEntitlement
from vision_mint.services.entitlements import EntitlementRepository

_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseEntitlementRepository(EntitlementRepository):
    """Supabase implementation using the `version` column for compare-and-set."""

    client: Client

    def get(self, wallet: str) -> WalletEntitlement | None:
        """Return counters for a wallet, if present."""
        response = (
            self.client.table("wallet_entitlements")
            .select("*")
            .eq("wallet", wallet)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_entitlement(response.data[0])

    def compare_and_set(
        self, expected_version: int, entitlement: WalletEntitlement
    ) -> bool:
        """Write the row only if nobody else has written since `expected_version`."""
        row = _serialize(entitlement)
        if expected_version == 0:
            try:
                self.client.table("wallet_entitlements").insert(row).execute()
            except APIError as exc:
                if exc.code == _UNIQUE_VIOLATION:
                    return False
                raise
            return True
        response = (
            self.client.table("wallet_entitlements")
            .update(row)
            .eq("wallet", entitlement.wallet)
            .eq("version", expected_version)
            .execute()
        )
        return bool(response.data)


def _serialize(entitlement: WalletEntitlement) -> dict[str, object]:
    started_at = entitlement.batch_started_at
    return {
        "wallet": entitlement.wallet,
        "visions_consumed": entitlement.visions_consumed,
        "session_ids": list(entitlement.session_ids),
        "batch_started_at": started_at.isoformat() if started_at else None,
        "version": entitlement.version,
    }


def _parse_entitlement(row: dict[str, object]) -> WalletEntitlement:
    started_raw = row.get("batch_started_at")
    started_at = (
        datetime.fromisoformat(started_raw)
        if isinstance(started_raw, str) and started_raw
        else None
    )
    return WalletEntitlement(
        wallet=str(row["wallet"]),
        visions_consumed=int(row.get("visions_consumed", 0)),
        session_ids=tuple(row.get("session_ids") or ()),
        batch_started_at=started_at,
        version=int(row.get("version", 0)),
    )
