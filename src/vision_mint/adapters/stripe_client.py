"""Stripe card processor adapter."""

import asyncio
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass

import stripe

from vision_mint.domain.errors import UpstreamUnavailableError
from vision_mint.services.payments import CardProcessorClient

logger = logging.getLogger(__name__)


@dataclass
class StripeCardClient(CardProcessorClient):
    """Card processor client backed by the Stripe SDK.

    The SDK calls are blocking, so each one runs in a worker thread. Results
    are flattened into plain dicts so services never touch Stripe objects.
    """

    api_key: str | None
    webhook_secret: str | None = None

    async def retrieve_payment_intent(self, intent_id: str) -> dict[str, object] | None:
        """Return the intent, or None if Stripe does not know it."""
        intent = await self._call(stripe.PaymentIntent.retrieve, intent_id)
        if intent is None:
            return None
        return {
            "id": intent.id,
            "status": intent.status,
            "client_secret": getattr(intent, "client_secret", None),
            "metadata": _metadata(intent),
        }

    async def retrieve_checkout_session(
        self, session_id: str
    ) -> dict[str, object] | None:
        """Return the checkout session, or None if Stripe does not know it."""
        session = await self._call(stripe.checkout.Session.retrieve, session_id)
        if session is None:
            return None
        return {
            "id": session.id,
            "payment_status": session.payment_status,
            "url": getattr(session, "url", None),
            "metadata": _metadata(session),
        }

    async def create_payment_intent(
        self,
        *,
        amount: int,
        currency: str,
        description: str,
        metadata: dict[str, str],
    ) -> dict[str, object]:
        """Create a card payment intent."""
        intent = await self._call(
            stripe.PaymentIntent.create,
            amount=amount,
            currency=currency,
            description=description,
            metadata=metadata,
            automatic_payment_methods={"enabled": True},
        )
        if intent is None:
            raise UpstreamUnavailableError("Stripe rejected the payment intent")
        return {
            "id": intent.id,
            "status": intent.status,
            "client_secret": intent.client_secret,
            "metadata": _metadata(intent),
        }

    async def create_checkout_session(
        self,
        *,
        amount: int,
        currency: str,
        product_name: str,
        product_description: str,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> dict[str, object]:
        """Create a hosted one-off checkout session."""
        session = await self._call(
            stripe.checkout.Session.create,
            mode="payment",
            payment_method_types=["card"],
            line_items=[
                {
                    "price_data": {
                        "currency": currency,
                        "product_data": {
                            "name": product_name,
                            "description": product_description,
                        },
                        "unit_amount": amount,
                    },
                    "quantity": 1,
                }
            ],
            metadata=metadata,
            success_url=success_url,
            cancel_url=cancel_url,
        )
        if session is None:
            raise UpstreamUnavailableError("Stripe rejected the checkout session")
        return {
            "id": session.id,
            "payment_status": session.payment_status,
            "url": session.url,
            "metadata": _metadata(session),
        }

    def construct_webhook_event(
        self, payload: bytes, signature: str | None
    ) -> dict[str, object] | None:
        """Verify a webhook signature and return the event, or None if invalid."""
        if not self.webhook_secret:
            raise UpstreamUnavailableError("STRIPE_WEBHOOK_SECRET not set")
        try:
            stripe.Webhook.construct_event(
                payload, signature or "", self.webhook_secret
            )
        except (stripe.SignatureVerificationError, ValueError):
            logger.warning("Stripe webhook signature verification failed")
            return None
        return json.loads(payload)

    async def _call(
        self, method: Callable[..., object], *args: object, **kwargs: object
    ):
        if not self.api_key:
            raise UpstreamUnavailableError("STRIPE_SECRET_KEY not set")
        try:
            return await asyncio.to_thread(
                method, *args, api_key=self.api_key, **kwargs
            )
        except stripe.InvalidRequestError:
            logger.info("Stripe object not found", extra={"args": args})
            return None
        except stripe.StripeError as exc:
            logger.exception("Stripe request failed")
            raise UpstreamUnavailableError("Card processor unavailable") from exc


def _metadata(obj: object) -> dict[str, str]:
    raw = getattr(obj, "metadata", None)
    if not raw:
        return {}
    return {str(key): str(raw[key]) for key in raw.keys()}
