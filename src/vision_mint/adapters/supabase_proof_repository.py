"""Supabase repository for consumed payment proofs."""

from dataclasses import dataclass

from postgrest.exceptions import APIError
from supabase import Client

from vision_mint.services.replay import ProofRepository

_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseProofRepository(ProofRepository):
    """Proof set backed by a table with a unique `token` column."""

    client: Client

    def insert_if_absent(self, token: str) -> bool:
        """Insert the token; a unique-key violation means it was already used."""
        try:
            self.client.table("payment_proofs").insert({"token": token}).execute()
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                return False
            raise
        return True

    def contains(self, token: str) -> bool:
        response = (
            self.client.table("payment_proofs")
            .select("token")
            .eq("token", token)
            .limit(1)
            .execute()
        )
        return bool(response.data)

    def delete(self, token: str) -> None:
        self.client.table("payment_proofs").delete().eq("token", token).execute()
