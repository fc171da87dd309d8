"""Local JSON file mint ledger for development."""

import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path

from vision_mint.domain.minting import ClaimStatus, MintClaim
from vision_mint.services.mint_ledger import MintLedger, apply_claim, apply_revoke

logger = logging.getLogger(__name__)


@dataclass
class FileMintLedger(MintLedger):
    """Mint ledger persisted as `{"mintCount": n, "mintedWallets": [...]}`.

    Safe for one process only; every write replaces the file atomically.
    """

    path: Path
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def total_minted(self) -> int:
        with self._lock:
            return self._read()[0]

    def has_minted(self, wallet: str) -> bool:
        with self._lock:
            return wallet in self._read()[1]

    def claim(self, wallet: str, total_supply: int, allow_repeat: bool) -> MintClaim:
        with self._lock:
            mint_count, minted_wallets = self._read()
            claim = apply_claim(
                mint_count, minted_wallets, wallet, total_supply, allow_repeat
            )
            if claim.status is ClaimStatus.OK:
                self._write(claim.total_minted, minted_wallets)
            return claim

    def revoke(self, claim: MintClaim, wallet: str) -> None:
        with self._lock:
            mint_count, minted_wallets = self._read()
            new_count = apply_revoke(mint_count, minted_wallets, claim, wallet)
            self._write(new_count, minted_wallets)
            logger.info("Mint claim revoked", extra={"wallet": wallet})

    def reset(self) -> None:
        with self._lock:
            self._write(0, [])

    def _read(self) -> tuple[int, list[str]]:
        if not self.path.exists():
            return 0, []
        data = json.loads(self.path.read_text(encoding="utf-8"))
        return int(data.get("mintCount", 0)), list(data.get("mintedWallets", []))

    def _write(self, mint_count: int, minted_wallets: list[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.path.parent), prefix=".mint-store-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(
                    {"mintCount": mint_count, "mintedWallets": minted_wallets},
                    handle,
                    indent=2,
                )
            os.replace(tmp_path, self.path)
        except Exception:
            Path(tmp_path).unlink(missing_ok=True)
            raise
