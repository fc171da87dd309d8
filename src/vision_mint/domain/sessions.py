"""Domain models for vision sessions."""

from dataclasses import dataclass, replace
from datetime import datetime

from vision_mint.domain.outcomes import Aura, Outcome


@dataclass(frozen=True)
class VisionSession:
    """Represents one granted vision."""

    session_id: str
    seed: str
    wallet: str
    vision_number: int
    outcome: Outcome
    created_at: datetime
    minted: bool = False
    reroll_count: int = 0

    def with_rerolled_aura(self, aura: Aura) -> "VisionSession":
        return replace(
            self,
            outcome=self.outcome.with_aura(aura),
            reroll_count=self.reroll_count + 1,
        )

    def mark_minted(self) -> "VisionSession":
        return replace(self, minted=True)
