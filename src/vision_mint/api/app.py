"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, File, Form, Query, Request, UploadFile
from fastapi.responses import JSONResponse

from vision_mint.api.admin import router as admin_router
from vision_mint.api.models import (
    FiatCheckoutRequest,
    FiatSuccessRequest,
    PaymentIntentRequest,
    RerollRequest,
    VisionRequest,
)
from vision_mint.app_logging import configure_logging
from vision_mint.containers import AppContainer
from vision_mint.domain.errors import (
    ErrorKind,
    Failure,
    InvariantViolationError,
    UpstreamUnavailableError,
)
from vision_mint.domain.outcomes import aura_to_dict

_DEFAULT_ORIGIN = "http://localhost:3000"


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(UpstreamUnavailableError)
    async def upstream_unavailable(
        _request: Request, exc: UpstreamUnavailableError
    ) -> JSONResponse:
        logger.error("Upstream unavailable: %s", exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.exception_handler(InvariantViolationError)
    async def invariant_violation(
        _request: Request, exc: InvariantViolationError
    ) -> JSONResponse:
        logger.error("Invariant violated: %s", exc)
        return JSONResponse(status_code=500, content={"error": "Internal error"})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/api/vision", response_model=None)
    async def vision(body: VisionRequest) -> dict[str, object] | JSONResponse:
        """Grant the wallet's next vision."""
        proof = body.payment_proof()
        if isinstance(proof, Failure):
            return _failure_response(proof)
        result = await container.vision_service.request_vision(body.wallet, proof)
        if isinstance(result, Failure):
            return _failure_response(result)
        return {
            "ok": True,
            "sessionId": result.session.session_id,
            "outcome": result.session.outcome.to_dict(),
            "visionNumber": result.session.vision_number,
            "visionsRemaining": result.visions_remaining,
        }

    @app.get("/api/reveal", response_model=None)
    async def reveal(
        session_id: str | None = Query(default=None, alias="sessionId"),
    ) -> dict[str, object] | JSONResponse:
        """Return the outcome stored for a session."""
        if not session_id:
            return _failure_response(
                Failure(ErrorKind.VALIDATION, "Missing sessionId")
            )
        outcome = container.session_service.reveal(session_id)
        if isinstance(outcome, Failure):
            return _failure_response(outcome)
        return outcome.to_dict()

    @app.post("/api/reroll-aura", response_model=None)
    async def reroll_aura(body: RerollRequest) -> dict[str, object] | JSONResponse:
        """Replace a session's aura after a verified payment."""
        proof = body.payment_proof()
        if isinstance(proof, Failure):
            return _failure_response(proof)
        result = await container.vision_service.reroll_aura(
            body.session_id, body.wallet, proof
        )
        if isinstance(result, Failure):
            return _failure_response(result)
        return {
            "ok": True,
            "aura": aura_to_dict(result.outcome.aura),
            "rerollCount": result.reroll_count,
        }

    @app.post("/api/mint", response_model=None)
    async def mint(
        session_id: str | None = Form(default=None, alias="sessionId"),
        wallet: str | None = Form(default=None),
        image: UploadFile | None = File(default=None),
    ) -> dict[str, object] | JSONResponse:
        """Upload the captured selfie and mint it."""
        content = await image.read() if image is not None else None
        mime_type = (image.content_type if image else None) or "image/png"
        result = await container.mint_service.mint(
            session_id, wallet, content, mime_type
        )
        if isinstance(result, Failure):
            return _failure_response(result)
        return {
            "ok": True,
            "mint": result.asset_id,
            "mintAddress": result.asset_id,
            "mintNumber": result.mint_number,
            "totalSupply": result.total_supply,
            "aura": aura_to_dict(result.aura),
            "imageUrl": container.uploader.gateway_url(result.image_uri),
            "signature": result.signature,
        }

    @app.get("/api/wallet-status", response_model=None)
    async def wallet_status(
        wallet: str | None = None,
    ) -> dict[str, object] | JSONResponse:
        """Report the wallet's effective counters without changing them."""
        if not wallet:
            return _failure_response(Failure(ErrorKind.VALIDATION, "Missing wallet"))
        status = container.entitlement_service.status(wallet)
        return {
            "selfieCount": status.selfie_count,
            "maxSelfies": status.max_selfies,
            "maxFreeVisions": status.max_free_visions,
            "hasMinted": status.has_minted,
            "cooldownEndsAt": _epoch_ms(status.cooldown_ends_at),
        }

    @app.post("/api/create-payment-intent", response_model=None)
    async def create_payment_intent(
        body: PaymentIntentRequest,
    ) -> dict[str, object] | JSONResponse:
        """Create a card payment intent for a vision or re-roll."""
        result = await container.checkout_service.create_payment_intent(
            body.wallet, body.type
        )
        if isinstance(result, Failure):
            return _failure_response(result)
        return {"ok": True, **result}

    @app.post("/api/fiat-checkout", response_model=None)
    async def fiat_checkout(
        body: FiatCheckoutRequest, request: Request
    ) -> dict[str, object] | JSONResponse:
        """Create a hosted checkout session for a paid vision."""
        origin = request.headers.get("origin") or _DEFAULT_ORIGIN
        result = await container.checkout_service.create_vision_checkout(
            body.wallet, body.vision_number, body.type, origin
        )
        if isinstance(result, Failure):
            return _failure_response(result)
        return {"ok": True, **result}

    @app.post("/api/fiat-success", response_model=None)
    async def fiat_success(
        body: FiatSuccessRequest,
    ) -> dict[str, object] | JSONResponse:
        """Confirm a completed checkout without consuming it."""
        result = await container.checkout_service.confirm_checkout(body.session_id)
        if isinstance(result, Failure):
            return _failure_response(result)
        return {"ok": True, **result}

    @app.post("/api/webhooks/stripe", response_model=None)
    async def stripe_webhook(request: Request) -> dict[str, object] | JSONResponse:
        """Receive signed card processor events."""
        payload = await request.body()
        result = container.checkout_service.handle_webhook(
            payload, request.headers.get("stripe-signature")
        )
        if isinstance(result, Failure):
            return _failure_response(result)
        return result

    return app


def _failure_response(failure: Failure) -> JSONResponse:
    content: dict[str, object] = {"error": failure.message}
    if failure.cooldown_ends_at is not None:
        content["cooldownEndsAt"] = _epoch_ms(failure.cooldown_ends_at)
    return JSONResponse(status_code=failure.status_code, content=content)


def _epoch_ms(value: datetime | None) -> int | None:
    if value is None:
        return None
    return int(value.timestamp() * 1000)
