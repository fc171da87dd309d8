"""Weighted rarity selection."""

from collections.abc import Sequence
from typing import Protocol, TypeVar

from vision_mint.domain.catalog import AURA_TIERS
from vision_mint.domain.errors import InvariantViolationError
from vision_mint.domain.outcomes import Aura


class Weighted(Protocol):
    """Anything with a positive integer weight."""

    @property
    def weight(self) -> int: ...


T = TypeVar("T", bound=Weighted)


def pick_weighted(items: Sequence[T], seed_byte: int) -> T:
    """Select an item by walking the cumulative weights in table order.

    `roll = seed_byte % total`; each weight is subtracted in order and the
    first item that drives the roll negative wins. The iteration order is
    part of the contract: when the total does not divide 256 the entries at
    the end of the table are hit slightly less often over a full byte sweep.
    """
    if not 0 <= seed_byte <= 255:
        raise InvariantViolationError(f"Seed byte out of range: {seed_byte}")
    if not items:
        raise InvariantViolationError("Weighted table is empty")
    if any(item.weight <= 0 for item in items):
        raise InvariantViolationError("Weighted table has a non-positive weight")

    total = sum(item.weight for item in items)
    roll = seed_byte % total
    for item in items:
        roll -= item.weight
        if roll < 0:
            return item
    raise InvariantViolationError("Weighted walk finished without a selection")


def pick_aura(seed_byte: int, tiers: Sequence[Aura] = AURA_TIERS) -> Aura:
    """Select an aura tier for a seed byte."""
    return pick_weighted(tiers, seed_byte)
