"""Durable mint ledger interface."""

import threading
from dataclasses import dataclass, field
from typing import Protocol

from vision_mint.domain.minting import ClaimStatus, MintClaim


class MintLedger(Protocol):
    """Authoritative record of the mint count and minted wallets."""

    def total_minted(self) -> int:
        """Return the number of mints recorded so far."""

    def has_minted(self, wallet: str) -> bool:
        """Return true if the wallet is in the minted set."""

    def claim(self, wallet: str, total_supply: int, allow_repeat: bool) -> MintClaim:
        """Atomically check supply and wallet, then record the mint.

        `allow_repeat` skips the minted-wallet check (dev wallets).
        """

    def revoke(self, claim: MintClaim, wallet: str) -> None:
        """Roll back a successful claim."""

    def reset(self) -> None:
        """Clear the ledger."""


def apply_claim(
    mint_count: int,
    minted_wallets: list[str],
    wallet: str,
    total_supply: int,
    allow_repeat: bool,
) -> MintClaim:
    """Claim rules shared by the process-local ledgers. Mutates `minted_wallets`."""
    if mint_count >= total_supply:
        return MintClaim(status=ClaimStatus.SUPPLY_EXHAUSTED, total_minted=mint_count)
    already_listed = wallet in minted_wallets
    if already_listed and not allow_repeat:
        return MintClaim(status=ClaimStatus.ALREADY_MINTED, total_minted=mint_count)
    if not already_listed:
        minted_wallets.append(wallet)
    return MintClaim(
        status=ClaimStatus.OK,
        mint_number=mint_count + 1,
        total_minted=mint_count + 1,
        wallet_added=not already_listed,
    )


def apply_revoke(
    mint_count: int, minted_wallets: list[str], claim: MintClaim, wallet: str
) -> int:
    """Undo `apply_claim` and return the new count. Mutates `minted_wallets`.

    The count only drops when the revoked number is still the latest one;
    otherwise a later claim already holds a higher number and this one stays
    spent.
    """
    if claim.status is not ClaimStatus.OK:
        return mint_count
    if claim.wallet_added and wallet in minted_wallets:
        minted_wallets.remove(wallet)
    if claim.mint_number == mint_count:
        return mint_count - 1
    return mint_count


@dataclass
class InMemoryMintLedger(MintLedger):
    """Volatile ledger for tests and single-process development."""

    mint_count: int = 0
    minted_wallets: list[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def total_minted(self) -> int:
        return self.mint_count

    def has_minted(self, wallet: str) -> bool:
        return wallet in self.minted_wallets

    def claim(self, wallet: str, total_supply: int, allow_repeat: bool) -> MintClaim:
        with self._lock:
            claim = apply_claim(
                self.mint_count, self.minted_wallets, wallet, total_supply, allow_repeat
            )
            if claim.status is ClaimStatus.OK:
                self.mint_count += 1
            return claim

    def revoke(self, claim: MintClaim, wallet: str) -> None:
        with self._lock:
            self.mint_count = apply_revoke(
                self.mint_count, self.minted_wallets, claim, wallet
            )

    def reset(self) -> None:
        with self._lock:
            self.mint_count = 0
            self.minted_wallets.clear()
