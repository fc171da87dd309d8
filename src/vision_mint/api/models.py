"""Pydantic request bodies for the public API."""

from pydantic import BaseModel, ConfigDict, Field

from vision_mint.domain.errors import ErrorKind, Failure
from vision_mint.domain.payments import (
    ChainProof,
    CheckoutProof,
    IntentProof,
    PaymentProof,
)


class PaymentFields(BaseModel):
    """Optional payment identifiers; at most one may be supplied."""

    model_config = ConfigDict(populate_by_name=True)

    tx_sig: str | None = Field(default=None, alias="txSig")
    payment_intent_id: str | None = Field(default=None, alias="paymentIntentId")
    stripe_session_id: str | None = Field(default=None, alias="stripeSessionId")

    def payment_proof(self) -> PaymentProof | Failure | None:
        """Build the tagged proof from whichever identifier was sent."""
        proofs: list[PaymentProof] = []
        if self.tx_sig:
            proofs.append(ChainProof(self.tx_sig))
        if self.payment_intent_id:
            proofs.append(IntentProof(self.payment_intent_id))
        if self.stripe_session_id:
            proofs.append(CheckoutProof(self.stripe_session_id))
        if len(proofs) > 1:
            return Failure(
                ErrorKind.VALIDATION, "Supply only one payment identifier"
            )
        return proofs[0] if proofs else None


class VisionRequest(PaymentFields):
    """Body of `POST /api/vision`.

    `visionNumber` and `lastSessionId` are accepted for client compatibility
    but never drive quota decisions.
    """

    wallet: str | None = None
    vision_number: int | None = Field(default=None, alias="visionNumber")
    last_session_id: str | None = Field(default=None, alias="lastSessionId")


class RerollRequest(PaymentFields):
    """Body of `POST /api/reroll-aura`."""

    session_id: str | None = Field(default=None, alias="sessionId")
    wallet: str | None = None


class PaymentIntentRequest(BaseModel):
    """Body of `POST /api/create-payment-intent`."""

    wallet: str | None = None
    type: str | None = None


class FiatCheckoutRequest(BaseModel):
    """Body of `POST /api/fiat-checkout`."""

    model_config = ConfigDict(populate_by_name=True)

    wallet: str | None = None
    vision_number: int | None = Field(default=None, alias="visionNumber")
    type: str | None = None


class FiatSuccessRequest(BaseModel):
    """Body of `POST /api/fiat-success`."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str | None = Field(default=None, alias="sessionId")
