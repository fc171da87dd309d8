"""Vision session store and lifecycle."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

from vision_mint.domain.catalog import DEFAULT_TABLES
from vision_mint.domain.errors import ErrorKind, Failure, InvariantViolationError
from vision_mint.domain.outcomes import Outcome, OutcomeTables
from vision_mint.domain.sessions import VisionSession
from vision_mint.services.rarity import pick_aura
from vision_mint.services.seeds import seed_to_outcome

logger = logging.getLogger(__name__)


class VisionSessionRepository(Protocol):
    """Persistence interface for vision sessions."""

    def insert(self, session: VisionSession) -> None:
        """Store a new session."""

    def get(self, session_id: str) -> VisionSession | None:
        """Return a session by id, if present."""

    def update(self, session: VisionSession) -> None:
        """Replace a stored session."""


@dataclass
class InMemoryVisionSessionRepository(VisionSessionRepository):
    """Process-local session map."""

    sessions: dict[str, VisionSession] = field(default_factory=dict)

    def insert(self, session: VisionSession) -> None:
        if session.session_id in self.sessions:
            raise InvariantViolationError(f"Duplicate session id {session.session_id}")
        self.sessions[session.session_id] = session

    def get(self, session_id: str) -> VisionSession | None:
        return self.sessions.get(session_id)

    def update(self, session: VisionSession) -> None:
        self.sessions[session.session_id] = session


def new_session_id() -> str:
    """Allocate an opaque, never reused session id."""
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SessionService:
    """Creates sessions and guards their aura re-roll and mint transitions.

    The in-flight mint marker lives in this process only. Across several
    processes sharing one Supabase store, a dev wallet (which skips the
    minted-wallet check) can mint the same session twice if both requests
    land before either marks the session minted; run a single worker when
    dev wallets are configured.
    """

    repository: VisionSessionRepository
    tables: OutcomeTables = DEFAULT_TABLES
    now: Callable[[], datetime] = _utcnow
    _minting: set[str] = field(default_factory=set, repr=False)
    _minting_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def create_session(
        self,
        session_id: str,
        wallet: str,
        seed: str,
        vision_number: int,
        outcome: Outcome,
    ) -> VisionSession:
        """Store a freshly granted vision."""
        if not self.tables.contains(outcome):
            raise InvariantViolationError("Outcome field outside its table")
        session = VisionSession(
            session_id=session_id,
            seed=seed,
            wallet=wallet,
            vision_number=vision_number,
            outcome=outcome,
            created_at=self.now(),
        )
        self.repository.insert(session)
        return session

    def get_session(self, session_id: str) -> VisionSession | Failure:
        session = self.repository.get(session_id)
        if session is None:
            return Failure(ErrorKind.NOT_FOUND, "Session not found")
        return session

    def owned_session(self, session_id: str, wallet: str) -> VisionSession | Failure:
        """Return the session if the wallet owns it and it is still unminted."""
        session = self.get_session(session_id)
        if isinstance(session, Failure):
            return session
        if session.wallet != wallet:
            return Failure(ErrorKind.OWNERSHIP_MISMATCH, "Session wallet mismatch")
        if session.minted:
            return Failure(ErrorKind.ALREADY_MINTED, "Already minted, aura is locked")
        if self.is_minting(session_id):
            return Failure(ErrorKind.CONFLICT, "Mint already in progress")
        return session

    def reroll_aura(
        self, session_id: str, wallet: str, aura_byte: int
    ) -> VisionSession | Failure:
        """Overwrite only the aura; spot, preset and pose never change."""
        session = self.owned_session(session_id, wallet)
        if isinstance(session, Failure):
            return session
        updated = session.with_rerolled_aura(pick_aura(aura_byte, self.tables.auras))
        self.repository.update(updated)
        logger.info(
            "Aura re-rolled",
            extra={
                "session_id": session_id,
                "aura": updated.outcome.aura.id,
                "reroll_count": updated.reroll_count,
            },
        )
        return updated

    def reveal(self, session_id: str) -> Outcome | Failure:
        """Re-derive the display outcome from the stored seed.

        Spot, preset and pose come from the seed; the aura is the stored one
        because paid re-rolls replace it.
        """
        session = self.get_session(session_id)
        if isinstance(session, Failure):
            return session
        derived = seed_to_outcome(session.seed, self.tables)
        return derived.with_aura(session.outcome.aura)

    def begin_mint(self, session_id: str, wallet: str) -> VisionSession | Failure:
        """Validate the session and mark its mint as in flight."""
        session = self.owned_session(session_id, wallet)
        if isinstance(session, Failure):
            if session.kind is ErrorKind.ALREADY_MINTED:
                return Failure(ErrorKind.ALREADY_MINTED, "Already minted")
            return session
        with self._minting_lock:
            if session_id in self._minting:
                return Failure(ErrorKind.CONFLICT, "Mint already in progress")
            self._minting.add(session_id)
        return session

    def complete_mint(self, session: VisionSession) -> VisionSession:
        """Mark the session minted. Irreversible."""
        minted = session.mark_minted()
        try:
            self.repository.update(minted)
        finally:
            self.abort_mint(session.session_id)
        return minted

    def abort_mint(self, session_id: str) -> None:
        with self._minting_lock:
            self._minting.discard(session_id)

    def is_minting(self, session_id: str) -> bool:
        with self._minting_lock:
            return session_id in self._minting
