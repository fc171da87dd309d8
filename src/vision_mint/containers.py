"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from supabase import create_client

from vision_mint.adapters.file_mint_ledger import FileMintLedger
from vision_mint.adapters.mint_service_client import HttpxMintServiceClient
from vision_mint.adapters.pinata_uploader import HttpxPinataUploader
from vision_mint.adapters.solana_rpc_client import HttpxSolanaRpcClient
from vision_mint.adapters.stripe_client import StripeCardClient
from vision_mint.adapters.supabase_entitlement_repository import (
    SupabaseEntitlementRepository,
)
from vision_mint.adapters.supabase_mint_ledger import SupabaseMintLedger
from vision_mint.adapters.supabase_proof_repository import SupabaseProofRepository
from vision_mint.adapters.supabase_session_repository import (
    SupabaseVisionSessionRepository,
)
from vision_mint.config import Settings, parse_csv
from vision_mint.services.checkout import CheckoutService
from vision_mint.services.entitlements import (
    EntitlementRepository,
    EntitlementService,
    InMemoryEntitlementRepository,
)
from vision_mint.services.mint_ledger import MintLedger
from vision_mint.services.minting import MintService, Uploader
from vision_mint.services.payments import PaymentVerifier
from vision_mint.services.replay import (
    InMemoryProofRepository,
    ProofRepository,
    ReplayGuard,
)
from vision_mint.services.sessions import (
    InMemoryVisionSessionRepository,
    SessionService,
    VisionSessionRepository,
)
from vision_mint.services.visions import VisionService

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    entitlement_service: EntitlementService
    session_service: SessionService
    vision_service: VisionService
    mint_service: MintService
    checkout_service: CheckoutService
    mint_ledger: MintLedger
    uploader: Uploader
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    timeout = resolved_settings.http_timeout_seconds
    dev_wallets = frozenset(parse_csv(resolved_settings.dev_wallets))

    proof_repository: ProofRepository
    entitlement_repository: EntitlementRepository
    session_repository: VisionSessionRepository
    mint_ledger: MintLedger
    if resolved_settings.uses_supabase:
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
        proof_repository = SupabaseProofRepository(supabase_client)
        entitlement_repository = SupabaseEntitlementRepository(supabase_client)
        session_repository = SupabaseVisionSessionRepository(supabase_client)
        mint_ledger = SupabaseMintLedger(supabase_client)
    else:
        proof_repository = InMemoryProofRepository()
        entitlement_repository = InMemoryEntitlementRepository()
        session_repository = InMemoryVisionSessionRepository()
        mint_ledger = FileMintLedger(Path(resolved_settings.mint_store_path))

    chain_client = HttpxSolanaRpcClient.create(
        resolved_settings.solana_rpc_url, timeout=timeout
    )
    card_client = StripeCardClient(
        api_key=resolved_settings.stripe_secret_key,
        webhook_secret=resolved_settings.stripe_webhook_secret,
    )
    uploader = HttpxPinataUploader.create(
        resolved_settings.pinata_jwt,
        gateway_base_url=resolved_settings.pinata_gateway_url,
        timeout=timeout,
    )
    minter = HttpxMintServiceClient.create(
        resolved_settings.mint_service_url,
        resolved_settings.mint_service_token,
    )

    entitlement_service = EntitlementService(
        repository=entitlement_repository,
        mint_ledger=mint_ledger,
        max_free_visions=resolved_settings.max_free_visions,
        max_selfies=resolved_settings.max_selfies,
        cooldown=timedelta(hours=resolved_settings.selfie_cooldown_hours),
        dev_wallets=dev_wallets,
    )
    treasury_accounts = parse_csv(resolved_settings.treasury_accounts)
    if not treasury_accounts:
        if resolved_settings.payment_mint:
            logger.warning(
                "No treasury accounts configured, "
                "token payments to any holder are accepted"
            )
        else:
            logger.warning(
                "No treasury accounts configured, "
                "every chain payment will be rejected"
            )
    session_service = SessionService(session_repository)
    payment_verifier = PaymentVerifier(
        chain_client=chain_client,
        card_client=card_client,
        treasury_accounts=treasury_accounts,
        payment_mint=resolved_settings.payment_mint,
    )
    vision_service = VisionService(
        entitlement_service=entitlement_service,
        session_service=session_service,
        payment_verifier=payment_verifier,
        replay_guard=ReplayGuard(proof_repository),
        server_salt=resolved_settings.server_salt,
    )
    mint_service = MintService(
        session_service=session_service,
        mint_ledger=mint_ledger,
        uploader=uploader,
        minter=minter,
        total_supply=resolved_settings.total_supply,
        dev_wallets=dev_wallets,
    )
    checkout_service = CheckoutService(
        card_client=card_client,
        vision_price_pence=resolved_settings.vision_price_pence,
        reroll_price_pence=resolved_settings.reroll_price_pence,
        currency=resolved_settings.fiat_currency,
        verify_webhooks=bool(resolved_settings.stripe_webhook_secret),
    )

    async def close_resources() -> None:
        await chain_client.close()
        await uploader.close()
        await minter.close()

    return AppContainer(
        settings=resolved_settings,
        entitlement_service=entitlement_service,
        session_service=session_service,
        vision_service=vision_service,
        mint_service=mint_service,
        checkout_service=checkout_service,
        mint_ledger=mint_ledger,
        uploader=uploader,
        close_resources=close_resources,
    )
