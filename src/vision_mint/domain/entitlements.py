"""Per-wallet entitlement models."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class WalletEntitlement:
    """Counters for the wallet's current batch.

    `version` increases with every committed vision and is the
    compare-and-set token; a cooldown reset keeps it unchanged.
    """

    wallet: str
    visions_consumed: int = 0
    session_ids: tuple[str, ...] = field(default_factory=tuple)
    batch_started_at: datetime | None = None
    version: int = 0

    def reset(self) -> "WalletEntitlement":
        """Return a fresh batch for the same wallet."""
        return WalletEntitlement(wallet=self.wallet, version=self.version)


@dataclass(frozen=True)
class EntitlementDecision:
    """Outcome of evaluating a vision request against the wallet's counters.

    `current` is the state the decision was computed from, after any
    cooldown reset.
    """

    wallet: str
    current: WalletEntitlement
    vision_number: int
    requires_payment: bool
    visions_remaining_after: int


@dataclass(frozen=True)
class WalletStatus:
    """Read-only snapshot reported by wallet-status."""

    wallet: str
    selfie_count: int
    max_selfies: int
    max_free_visions: int
    has_minted: bool
    cooldown_ends_at: datetime | None
