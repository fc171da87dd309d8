"""Payment proof models."""

from dataclasses import dataclass
from enum import Enum


class PricedAction(str, Enum):
    """Actions that can be paid for."""

    VISION = "vision"
    REROLL = "reroll"


@dataclass(frozen=True)
class ChainProof:
    """A native-chain transfer, identified by its transaction signature."""

    signature: str

    @property
    def token(self) -> str:
        return self.signature


@dataclass(frozen=True)
class CheckoutProof:
    """A hosted checkout session at the card processor."""

    session_id: str

    @property
    def token(self) -> str:
        return self.session_id


@dataclass(frozen=True)
class IntentProof:
    """An inline card payment intent."""

    intent_id: str

    @property
    def token(self) -> str:
        return self.intent_id


PaymentProof = ChainProof | CheckoutProof | IntentProof


@dataclass(frozen=True)
class PaymentVerified:
    """An authenticated payment.

    `entropy` is extra seed material tied to the payment, such as the
    transaction's recent blockhash. It is None for card payments.
    """

    proof_token: str
    entropy: str | None = None
