"""Typed failures returned by services and translated at the HTTP boundary."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ErrorKind(str, Enum):
    """Enumerated failure kinds with their HTTP status."""

    VALIDATION = "validation"
    PAYMENT_REQUIRED = "payment_required"
    PAYMENT_NOT_COMPLETED = "payment_not_completed"
    PAYMENT_METADATA_MISMATCH = "payment_metadata_mismatch"
    OWNERSHIP_MISMATCH = "ownership_mismatch"
    NOT_FOUND = "not_found"
    REPLAY_DETECTED = "replay_detected"
    ALREADY_MINTED = "already_minted"
    CONFLICT = "conflict"
    SUPPLY_EXHAUSTED = "supply_exhausted"
    COOLDOWN_ACTIVE = "cooldown_active"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.PAYMENT_REQUIRED: 402,
    ErrorKind.PAYMENT_NOT_COMPLETED: 402,
    ErrorKind.PAYMENT_METADATA_MISMATCH: 403,
    ErrorKind.OWNERSHIP_MISMATCH: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.REPLAY_DETECTED: 409,
    ErrorKind.ALREADY_MINTED: 409,
    ErrorKind.CONFLICT: 409,
    ErrorKind.SUPPLY_EXHAUSTED: 410,
    ErrorKind.COOLDOWN_ACTIVE: 429,
    ErrorKind.UPSTREAM_UNAVAILABLE: 500,
}


@dataclass(frozen=True)
class Failure:
    """A rejected request, safe to show to the client."""

    kind: ErrorKind
    message: str
    cooldown_ends_at: datetime | None = None

    @property
    def status_code(self) -> int:
        return self.kind.status_code


class UpstreamUnavailableError(RuntimeError):
    """Raised when an external collaborator cannot be reached."""


class InvariantViolationError(RuntimeError):
    """Raised when local state breaks an invariant. Always a programming error."""
