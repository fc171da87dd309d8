"""Vision and aura re-roll orchestration."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from vision_mint.domain.catalog import DEFAULT_TABLES
from vision_mint.domain.errors import ErrorKind, Failure
from vision_mint.domain.outcomes import OutcomeTables
from vision_mint.domain.payments import PaymentProof, PaymentVerified, PricedAction
from vision_mint.domain.sessions import VisionSession
from vision_mint.services.entitlements import EntitlementService
from vision_mint.services.locks import KeyedLock
from vision_mint.services.payments import PaymentVerifier
from vision_mint.services.replay import ReplayGuard
from vision_mint.services.seeds import derive_seed, reroll_aura_byte, seed_to_outcome
from vision_mint.services.sessions import SessionService, new_session_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisionGranted:
    """A successful vision request."""

    session: VisionSession
    visions_remaining: int


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class VisionService:
    """Grants visions and paid aura re-rolls.

    External verification runs before any lock is taken; the wallet lock
    only covers the re-check, the proof reservation and the commit.
    """

    entitlement_service: EntitlementService
    session_service: SessionService
    payment_verifier: PaymentVerifier
    replay_guard: ReplayGuard
    server_salt: str
    tables: OutcomeTables = DEFAULT_TABLES
    now: Callable[[], datetime] = _utcnow
    wallet_locks: KeyedLock = field(default_factory=KeyedLock)

    async def request_vision(
        self, wallet: str | None, proof: PaymentProof | None
    ) -> VisionGranted | Failure:
        """Grant the wallet its next vision if quota, payment and cooldown allow."""
        if not wallet:
            return Failure(ErrorKind.VALIDATION, "Missing wallet")

        decision = self.entitlement_service.evaluate(wallet)
        if isinstance(decision, Failure):
            return decision

        verified: PaymentVerified | None = None
        if decision.requires_payment:
            checked = await self._verify(proof, wallet, PricedAction.VISION)
            if isinstance(checked, Failure):
                return checked
            verified = checked

        async with self.wallet_locks.hold(wallet):
            decision = self.entitlement_service.evaluate(wallet)
            if isinstance(decision, Failure):
                return decision
            if decision.requires_payment and verified is None:
                return Failure(
                    ErrorKind.PAYMENT_REQUIRED,
                    f"Payment required for vision {decision.vision_number}",
                )
            paid = verified if decision.requires_payment else None
            if paid and not self.replay_guard.reserve(paid.proof_token):
                return Failure(ErrorKind.REPLAY_DETECTED, "Payment already used")

            seed = self._seed_for(wallet, decision.vision_number, paid)
            outcome = seed_to_outcome(seed, self.tables)
            session_id = new_session_id()
            if self.entitlement_service.record_vision(decision, session_id) is None:
                if paid:
                    self.replay_guard.release(paid.proof_token)
                return Failure(ErrorKind.CONFLICT, "Concurrent vision request, retry")
            session = self.session_service.create_session(
                session_id=session_id,
                wallet=wallet,
                seed=seed,
                vision_number=decision.vision_number,
                outcome=outcome,
            )

        logger.info(
            "Vision granted",
            extra={
                "wallet": wallet,
                "session_id": session.session_id,
                "vision_number": session.vision_number,
                "paid": paid is not None,
            },
        )
        return VisionGranted(
            session=session, visions_remaining=decision.visions_remaining_after
        )

    async def reroll_aura(
        self, session_id: str | None, wallet: str | None, proof: PaymentProof | None
    ) -> VisionSession | Failure:
        """Replace the session's aura after a verified payment."""
        if not session_id or not wallet:
            return Failure(ErrorKind.VALIDATION, "Missing required fields")

        session = self.session_service.owned_session(session_id, wallet)
        if isinstance(session, Failure):
            return session

        verified = await self._verify(proof, wallet, PricedAction.REROLL)
        if isinstance(verified, Failure):
            return verified

        async with self.wallet_locks.hold(wallet):
            if not self.replay_guard.reserve(verified.proof_token):
                return Failure(ErrorKind.REPLAY_DETECTED, "Payment already used")
            aura_byte = reroll_aura_byte(session_id, verified.proof_token, self.now())
            updated = self.session_service.reroll_aura(session_id, wallet, aura_byte)
            if isinstance(updated, Failure):
                self.replay_guard.release(verified.proof_token)
        return updated

    async def _verify(
        self, proof: PaymentProof | None, wallet: str, action: PricedAction
    ) -> PaymentVerified | Failure:
        if proof is None:
            label = "re-roll" if action is PricedAction.REROLL else "this vision"
            return Failure(ErrorKind.PAYMENT_REQUIRED, f"Payment required for {label}")
        if self.replay_guard.is_consumed(proof.token):
            logger.warning(
                "Payment proof already consumed",
                extra={"wallet": wallet, "proof": proof.token},
            )
            return Failure(ErrorKind.REPLAY_DETECTED, "Payment already used")
        return await self.payment_verifier.verify(proof, wallet, action)

    def _seed_for(
        self, wallet: str, vision_number: int, paid: PaymentVerified | None
    ) -> str:
        epoch_ms = str(int(self.now().timestamp() * 1000))
        if paid:
            entropy = paid.proof_token
            time_value = paid.entropy or epoch_ms
        else:
            entropy = f"{wallet}-{vision_number}-{epoch_ms}"
            time_value = epoch_ms
        return derive_seed(entropy, time_value, wallet, self.server_salt)
