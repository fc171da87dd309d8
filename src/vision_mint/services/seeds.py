"""Deterministic seed derivation and outcome mapping."""

import hashlib
from datetime import datetime

from vision_mint.domain.catalog import DEFAULT_TABLES
from vision_mint.domain.errors import InvariantViolationError
from vision_mint.domain.outcomes import Outcome, OutcomeTables
from vision_mint.services.rarity import pick_aura, pick_weighted

SPOT_BYTE = 0
PRESET_BYTE = 4
POSE_BYTE = 8
AURA_BYTE = 12


def derive_seed(entropy: str, time_or_blockhash: str, wallet: str, salt: str) -> str:
    """Hash the four inputs, concatenated in order, into a 64-char hex seed."""
    payload = f"{entropy}{time_or_blockhash}{wallet}{salt}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def seed_to_outcome(seed_hex: str, tables: OutcomeTables = DEFAULT_TABLES) -> Outcome:
    """Map a seed to an outcome using independent byte offsets.

    Pure in `(seed_hex, tables)`, so a stored seed can be re-derived for audit.
    """
    digest = _seed_bytes(seed_hex)
    if not tables.presets or not tables.poses:
        raise InvariantViolationError("Outcome tables must not be empty")
    return Outcome(
        spot=pick_weighted(tables.spots, digest[SPOT_BYTE]),
        preset=tables.presets[digest[PRESET_BYTE] % len(tables.presets)],
        pose=tables.poses[digest[POSE_BYTE] % len(tables.poses)],
        aura=pick_aura(digest[AURA_BYTE], tables.auras),
    )


def reroll_aura_byte(session_id: str, proof_token: str, now: datetime) -> int:
    """Return fresh aura entropy for a paid re-roll."""
    epoch_ms = int(now.timestamp() * 1000)
    payload = f"{session_id}-reroll-{proof_token}-{epoch_ms}"
    return hashlib.sha256(payload.encode("utf-8")).digest()[0]


def _seed_bytes(seed_hex: str) -> bytes:
    try:
        digest = bytes.fromhex(seed_hex)
    except ValueError as exc:
        raise InvariantViolationError(f"Seed is not valid hex: {seed_hex!r}") from exc
    if len(digest) <= AURA_BYTE:
        raise InvariantViolationError("Seed is too short for outcome selection")
    return digest
