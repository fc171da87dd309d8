"""Card payment creation and confirmation."""

import logging
from dataclasses import dataclass

from vision_mint.domain.errors import ErrorKind, Failure
from vision_mint.domain.payments import PricedAction
from vision_mint.services.payments import CardProcessorClient

logger = logging.getLogger(__name__)

_DESCRIPTIONS = {
    PricedAction.VISION: "3EYES Final Vision",
    PricedAction.REROLL: "3EYES Aura Re-roll",
}


@dataclass
class CheckoutService:
    """Creates card payments for the priced actions and confirms checkouts."""

    card_client: CardProcessorClient
    vision_price_pence: int
    reroll_price_pence: int
    currency: str = "gbp"
    verify_webhooks: bool = True

    def price_for(self, action: PricedAction) -> int:
        if action is PricedAction.VISION:
            return self.vision_price_pence
        return self.reroll_price_pence

    async def create_payment_intent(
        self, wallet: str | None, payment_type: str | None
    ) -> dict[str, object] | Failure:
        """Create an inline payment intent tagged with wallet and action."""
        if not wallet:
            return Failure(ErrorKind.VALIDATION, "Missing wallet")
        action = _parse_action(payment_type)
        if action is None:
            return Failure(ErrorKind.VALIDATION, "Invalid payment type")
        intent = await self.card_client.create_payment_intent(
            amount=self.price_for(action),
            currency=self.currency,
            description=_DESCRIPTIONS[action],
            metadata={"wallet": wallet, "type": action.value},
        )
        logger.info(
            "Payment intent created",
            extra={"wallet": wallet, "type": action.value, "intent_id": intent["id"]},
        )
        return {
            "clientSecret": intent.get("client_secret"),
            "paymentIntentId": intent["id"],
        }

    async def create_vision_checkout(
        self,
        wallet: str | None,
        vision_number: int | None,
        checkout_type: str | None,
        origin: str,
    ) -> dict[str, object] | Failure:
        """Create a hosted checkout session for a paid vision."""
        if not wallet:
            return Failure(ErrorKind.VALIDATION, "Missing wallet")
        if checkout_type != PricedAction.VISION.value:
            return Failure(ErrorKind.VALIDATION, "Invalid checkout type")
        session = await self.card_client.create_checkout_session(
            amount=self.vision_price_pence,
            currency=self.currency,
            product_name=_DESCRIPTIONS[PricedAction.VISION],
            product_description="Unlock the third and final selfie vision",
            metadata={
                "wallet": wallet,
                "visionNumber": str(vision_number or ""),
                "type": PricedAction.VISION.value,
            },
            success_url=f"{origin}/world?fiat_session={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{origin}/world?fiat_cancelled=1",
        )
        logger.info(
            "Checkout session created",
            extra={"wallet": wallet, "checkout_session_id": session["id"]},
        )
        return {"checkoutUrl": session.get("url")}

    async def confirm_checkout(
        self, session_id: str | None
    ) -> dict[str, object] | Failure:
        """Confirm a returned checkout. Does not consume the proof."""
        if not session_id:
            return Failure(ErrorKind.VALIDATION, "Missing sessionId")
        session = await self.card_client.retrieve_checkout_session(session_id)
        if not session or session.get("payment_status") != "paid":
            return Failure(ErrorKind.PAYMENT_NOT_COMPLETED, "Payment not completed")
        metadata = session.get("metadata")
        metadata = metadata if isinstance(metadata, dict) else {}
        if metadata.get("type") != PricedAction.VISION.value:
            return Failure(ErrorKind.VALIDATION, "Invalid session type")
        return {
            "wallet": metadata.get("wallet"),
            "visionNumber": _parse_int(metadata.get("visionNumber")),
            "stripeSessionId": session_id,
        }

    def handle_webhook(
        self, payload: bytes, signature: str | None
    ) -> dict[str, object] | Failure:
        """Verify and log a card processor event.

        Events are informational only: entitlements are granted when the
        proof is presented, never from a webhook.
        """
        if not self.verify_webhooks:
            logger.warning("Webhook secret not set, skipping webhook verification")
            return {"received": True}
        event = self.card_client.construct_webhook_event(payload, signature)
        if event is None:
            return Failure(ErrorKind.VALIDATION, "Invalid signature")

        event_type = event.get("type")
        data = event.get("data")
        obj = data.get("object") if isinstance(data, dict) else None
        obj = obj if isinstance(obj, dict) else {}
        metadata = obj.get("metadata")
        metadata = metadata if isinstance(metadata, dict) else {}
        if event_type in {"checkout.session.completed", "payment_intent.succeeded"}:
            logger.info(
                "Card payment confirmed",
                extra={
                    "event_type": event_type,
                    "payment_type": metadata.get("type"),
                    "wallet": metadata.get("wallet"),
                    "payment_id": obj.get("id"),
                },
            )
        return {"received": True}


def _parse_action(raw: str | None) -> PricedAction | None:
    try:
        return PricedAction(raw)
    except ValueError:
        return None


def _parse_int(raw: object) -> int | None:
    try:
        return int(str(raw))
    except ValueError:
        return None
