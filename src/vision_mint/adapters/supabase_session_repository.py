"""Supabase-backed vision session repository."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from vision_mint.domain.catalog import DEFAULT_TABLES
from vision_mint.domain.errors import InvariantViolationError
from vision_mint.domain.outcomes import Outcome, OutcomeTables
from vision_mint.domain.sessions import VisionSession
from vision_mint.services.sessions import VisionSessionRepository


@dataclass
class SupabaseVisionSessionRepository(VisionSessionRepository):
    """Stores outcome ids and rehydrates them from the outcome tables."""

    client: Client
    tables: OutcomeTables = DEFAULT_TABLES

    def insert(self, session: VisionSession) -> None:
        """Create a session row."""
        self.client.table("vision_sessions").insert(_serialize(session)).execute()

    def get(self, session_id: str) -> VisionSession | None:
        """Return a session by id, if present."""
        response = (
            self.client.table("vision_sessions")
            .select("*")
            .eq("session_id", session_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return self._parse_session(response.data[0])

    def update(self, session: VisionSession) -> None:
        """Persist the mutable fields of a session."""
        self.client.table("vision_sessions").update(
            {
                "aura_id": session.outcome.aura.id,
                "reroll_count": session.reroll_count,
                "minted": session.minted,
            }
        ).eq("session_id", session.session_id).execute()

    def _parse_session(self, row: dict[str, object]) -> VisionSession:
        spot = self.tables.find_spot(str(row.get("spot_id")))
        preset = self.tables.find_preset(str(row.get("preset_id")))
        pose = self.tables.find_pose(str(row.get("pose_id")))
        aura = self.tables.find_aura(str(row.get("aura_id")))
        if spot is None or preset is None or pose is None or aura is None:
            raise InvariantViolationError(
                f"Stored session {row.get('session_id')} references unknown outcome"
            )
        return VisionSession(
            session_id=str(row["session_id"]),
            seed=str(row["seed"]),
            wallet=str(row["wallet"]),
            vision_number=int(row["vision_number"]),
            outcome=Outcome(spot=spot, preset=preset, pose=pose, aura=aura),
            created_at=datetime.fromisoformat(str(row["created_at"])),
            minted=bool(row.get("minted", False)),
            reroll_count=int(row.get("reroll_count", 0)),
        )


def _serialize(session: VisionSession) -> dict[str, object]:
    return {
        "session_id": session.session_id,
        "seed": session.seed,
        "wallet": session.wallet,
        "vision_number": session.vision_number,
        "spot_id": session.outcome.spot.id,
        "preset_id": session.outcome.preset.id,
        "pose_id": session.outcome.pose.id,
        "aura_id": session.outcome.aura.id,
        "created_at": session.created_at.isoformat(),
        "minted": session.minted,
        "reroll_count": session.reroll_count,
    }
