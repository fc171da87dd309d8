"""Replay protection for payment proofs."""

import logging
import threading
from dataclasses import dataclass, field
from typing import Protocol

logger = logging.getLogger(__name__)


class ProofRepository(Protocol):
    """Persistence interface for consumed proof tokens."""

    def insert_if_absent(self, token: str) -> bool:
        """Atomically insert a token; return false if it was already present."""

    def contains(self, token: str) -> bool:
        """Return true if the token has been consumed."""

    def delete(self, token: str) -> None:
        """Remove a token."""


@dataclass
class InMemoryProofRepository(ProofRepository):
    """Process-local proof set."""

    tokens: set[str] = field(default_factory=set)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def insert_if_absent(self, token: str) -> bool:
        with self._lock:
            if token in self.tokens:
                return False
            self.tokens.add(token)
            return True

    def contains(self, token: str) -> bool:
        with self._lock:
            return token in self.tokens

    def delete(self, token: str) -> None:
        with self._lock:
            self.tokens.discard(token)


@dataclass
class ReplayGuard:
    """Single global namespace of consumed payment proofs.

    A proof accepted for a vision can never pay for a re-roll and vice versa.
    """

    repository: ProofRepository

    def reserve(self, token: str) -> bool:
        """Consume a proof token; false means the caller must abort."""
        reserved = self.repository.insert_if_absent(token)
        if not reserved:
            logger.warning("Payment proof replay rejected", extra={"proof": token})
        return reserved

    def is_consumed(self, token: str) -> bool:
        """Cheap pre-check before contacting the payment rail."""
        return self.repository.contains(token)

    def release(self, token: str) -> None:
        """Undo a reservation whose commit did not happen."""
        logger.info("Releasing payment proof", extra={"proof": token})
        self.repository.delete(token)
