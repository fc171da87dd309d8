"""Per-wallet quota, payment tier and cooldown rules."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

from vision_mint.domain.entitlements import (
    EntitlementDecision,
    WalletEntitlement,
    WalletStatus,
)
from vision_mint.domain.errors import ErrorKind, Failure
from vision_mint.services.mint_ledger import MintLedger

logger = logging.getLogger(__name__)


class EntitlementRepository(Protocol):
    """Persistence interface for wallet counters."""

    def get(self, wallet: str) -> WalletEntitlement | None:
        """Return the stored counters for a wallet, if any."""

    def compare_and_set(
        self, expected_version: int, entitlement: WalletEntitlement
    ) -> bool:
        """Store the entitlement only if the stored version still matches.

        A missing row counts as version 0.
        """


@dataclass
class InMemoryEntitlementRepository(EntitlementRepository):
    """Process-local wallet counters."""

    entries: dict[str, WalletEntitlement] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get(self, wallet: str) -> WalletEntitlement | None:
        return self.entries.get(wallet)

    def compare_and_set(
        self, expected_version: int, entitlement: WalletEntitlement
    ) -> bool:
        with self._lock:
            stored = self.entries.get(entitlement.wallet)
            stored_version = stored.version if stored else 0
            if stored_version != expected_version:
                return False
            self.entries[entitlement.wallet] = entitlement
            return True


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class EntitlementService:
    """State machine over a wallet's batch counters.

    FreshBatch -> InFreeTier -> PaidTierEligible -> BatchExhausted ->
    CooldownElapsed -> FreshBatch. The state is derived from the counters,
    never from anything the client sends.
    """

    repository: EntitlementRepository
    mint_ledger: MintLedger
    max_free_visions: int
    max_selfies: int
    cooldown: timedelta
    dev_wallets: frozenset[str] = frozenset()
    now: Callable[[], datetime] = _utcnow

    def is_dev_wallet(self, wallet: str) -> bool:
        return wallet in self.dev_wallets

    def load(self, wallet: str) -> WalletEntitlement:
        """Return stored counters, or a fresh batch for an unknown wallet."""
        return self.repository.get(wallet) or WalletEntitlement(wallet=wallet)

    def evaluate(self, wallet: str) -> EntitlementDecision | Failure:
        """Decide whether the wallet may take another vision and at what price."""
        if not self.is_dev_wallet(wallet) and self.mint_ledger.has_minted(wallet):
            return Failure(ErrorKind.ALREADY_MINTED, "Wallet already minted")

        current = self._effective(self.load(wallet))
        if current.visions_consumed >= self.max_selfies:
            ends_at = self.cooldown_ends_at(current)
            logger.info(
                "Vision rejected during cooldown",
                extra={"wallet": wallet, "cooldown_ends_at": ends_at},
            )
            return Failure(
                ErrorKind.COOLDOWN_ACTIVE,
                "Maximum visions reached, cooldown active",
                cooldown_ends_at=ends_at,
            )

        vision_number = current.visions_consumed + 1
        return EntitlementDecision(
            wallet=wallet,
            current=current,
            vision_number=vision_number,
            requires_payment=vision_number > self.max_free_visions,
            visions_remaining_after=self.max_selfies - vision_number,
        )

    def record_vision(
        self, decision: EntitlementDecision, session_id: str
    ) -> WalletEntitlement | None:
        """Commit one consumed vision; None means a concurrent writer won."""
        current = decision.current
        started_at = current.batch_started_at
        if current.visions_consumed == 0 or started_at is None:
            started_at = self.now()
        updated = WalletEntitlement(
            wallet=current.wallet,
            visions_consumed=current.visions_consumed + 1,
            session_ids=(*current.session_ids, session_id),
            batch_started_at=started_at,
            version=current.version + 1,
        )
        if not self.repository.compare_and_set(current.version, updated):
            logger.warning(
                "Concurrent entitlement update", extra={"wallet": current.wallet}
            )
            return None
        return updated

    def status(self, wallet: str) -> WalletStatus:
        """Report the wallet's effective counters without writing anything."""
        is_dev = self.is_dev_wallet(wallet)
        current = self._effective(self.load(wallet))
        exhausted = current.visions_consumed >= self.max_selfies
        return WalletStatus(
            wallet=wallet,
            selfie_count=current.visions_consumed,
            max_selfies=self.max_selfies,
            max_free_visions=self.max_free_visions,
            has_minted=False if is_dev else self.mint_ledger.has_minted(wallet),
            cooldown_ends_at=self.cooldown_ends_at(current) if exhausted else None,
        )

    def cooldown_ends_at(self, entitlement: WalletEntitlement) -> datetime | None:
        if entitlement.batch_started_at is None:
            return None
        return entitlement.batch_started_at + self.cooldown

    def _effective(self, entitlement: WalletEntitlement) -> WalletEntitlement:
        """Apply the cooldown reset rule to an exhausted batch."""
        if entitlement.visions_consumed < self.max_selfies:
            return entitlement
        if self.is_dev_wallet(entitlement.wallet):
            return entitlement.reset()
        ends_at = self.cooldown_ends_at(entitlement)
        if ends_at is None or self.now() >= ends_at:
            return entitlement.reset()
        return entitlement
