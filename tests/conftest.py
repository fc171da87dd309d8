"""Shared test fixtures."""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from vision_mint.config import Settings
from vision_mint.containers import AppContainer
from vision_mint.domain.minting import MintedAsset
from vision_mint.services.checkout import CheckoutService
from vision_mint.services.entitlements import (
    EntitlementService,
    InMemoryEntitlementRepository,
)
from vision_mint.services.mint_ledger import InMemoryMintLedger
from vision_mint.services.minting import AssetMinter, MintService, Uploader
from vision_mint.services.payments import (
    CardProcessorClient,
    ChainClient,
    PaymentVerifier,
)
from vision_mint.services.replay import InMemoryProofRepository, ReplayGuard
from vision_mint.services.sessions import (
    InMemoryVisionSessionRepository,
    SessionService,
)
from vision_mint.services.visions import VisionService

TREASURY = "Treasury1111111111111111111111111111111111"
DEV_WALLET = "DevWallet11111111111111111111111111111111"


@dataclass
class FakeClock:
    """Controllable clock injected wherever services read the time."""

    current: datetime = field(
        default_factory=lambda: datetime(2025, 1, 1, 12, 0, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current = self.current + delta


def chain_transaction(
    payer: str,
    treasury: str = TREASURY,
    *,
    lamports: int = 10_000_000,
    blockhash: str = "RecentBlockhash111",
    err: object | None = None,
    signed: bool = True,
) -> dict[str, object]:
    """Build a jsonParsed transaction moving lamports from payer to treasury."""
    return {
        "meta": {
            "err": err,
            "preBalances": [50_000_000, 0],
            "postBalances": [50_000_000 - lamports - 5000, lamports],
        },
        "transaction": {
            "message": {
                "accountKeys": [
                    {"pubkey": payer, "signer": signed, "writable": True},
                    {"pubkey": treasury, "signer": False, "writable": True},
                ],
                "recentBlockhash": blockhash,
            }
        },
    }


@dataclass
class FakeChainClient(ChainClient):
    """Fake chain client serving canned transactions."""

    transactions: dict[str, dict[str, object]] = field(default_factory=dict)
    lookups: list[str] = field(default_factory=list)
    error: Exception | None = None

    async def get_transaction(self, signature: str) -> dict[str, object] | None:
        self.lookups.append(signature)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.transactions.get(signature)


@dataclass
class FakeCardClient(CardProcessorClient):
    """Fake card processor that records created payments."""

    intents: dict[str, dict[str, object]] = field(default_factory=dict)
    checkout_sessions: dict[str, dict[str, object]] = field(default_factory=dict)
    created_intents: list[dict[str, object]] = field(default_factory=list)
    created_sessions: list[dict[str, object]] = field(default_factory=list)
    valid_signature: str = "valid-signature"

    async def retrieve_payment_intent(self, intent_id: str) -> dict[str, object] | None:
        return self.intents.get(intent_id)

    async def retrieve_checkout_session(
        self, session_id: str
    ) -> dict[str, object] | None:
        return self.checkout_sessions.get(session_id)

    async def create_payment_intent(
        self,
        *,
        amount: int,
        currency: str,
        description: str,
        metadata: dict[str, str],
    ) -> dict[str, object]:
        intent_id = f"pi_{len(self.created_intents) + 1}"
        intent = {
            "id": intent_id,
            "status": "requires_payment_method",
            "client_secret": f"{intent_id}_secret",
            "amount": amount,
            "currency": currency,
            "description": description,
            "metadata": metadata,
        }
        self.created_intents.append(intent)
        return intent

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
        session_id = f"cs_{len(self.created_sessions) + 1}"
        session = {
            "id": session_id,
            "payment_status": "unpaid",
            "url": f"https://checkout.example/{session_id}",
            "amount": amount,
            "currency": currency,
            "metadata": metadata,
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        self.created_sessions.append(session)
        return session

    def construct_webhook_event(
        self, payload: bytes, signature: str | None
    ) -> dict[str, object] | None:
        if signature != self.valid_signature:
            return None
        return json.loads(payload)

    def add_paid_intent(self, intent_id: str, wallet: str, payment_type: str) -> None:
        self.intents[intent_id] = {
            "id": intent_id,
            "status": "succeeded",
            "metadata": {"wallet": wallet, "type": payment_type},
        }

    def add_paid_checkout(self, session_id: str, wallet: str) -> None:
        self.checkout_sessions[session_id] = {
            "id": session_id,
            "payment_status": "paid",
            "metadata": {"wallet": wallet, "type": "vision", "visionNumber": "3"},
        }


@dataclass
class FakeUploader(Uploader):
    """Fake object storage that returns predictable URIs."""

    files: list[tuple[str, bytes, str]] = field(default_factory=list)
    documents: list[tuple[str, dict[str, object]]] = field(default_factory=list)
    fail: bool = False

    async def upload_file(self, content: bytes, file_name: str, mime_type: str) -> str:
        if self.fail:
            raise RuntimeError("upload failed")
        self.files.append((file_name, content, mime_type))
        return f"ipfs://image-{len(self.files)}"

    async def upload_json(self, payload: dict[str, object], name: str) -> str:
        self.documents.append((name, payload))
        return f"ipfs://metadata-{len(self.documents)}"

    def gateway_url(self, uri: str) -> str:
        return uri.replace("ipfs://", "https://gateway.test/ipfs/")


@dataclass
class FakeMinter(AssetMinter):
    """Fake NFT minter that records mint calls."""

    minted: list[dict[str, str]] = field(default_factory=list)
    fail: bool = False

    async def mint_asset(
        self, *, metadata_uri: str, name: str, owner: str
    ) -> MintedAsset:
        if self.fail:
            raise RuntimeError("mint failed")
        self.minted.append({"metadata_uri": metadata_uri, "name": name, "owner": owner})
        number = len(self.minted)
        return MintedAsset(asset_id=f"asset-{number}", signature=f"sig-{number}")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        admin_secret="admin-secret",
        server_salt="test-salt",
        treasury_accounts=TREASURY,
        dev_wallets=DEV_WALLET,
        total_supply=666,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def chain_client() -> FakeChainClient:
    return FakeChainClient()


@pytest.fixture
def card_client() -> FakeCardClient:
    return FakeCardClient()


@pytest.fixture
def uploader() -> FakeUploader:
    return FakeUploader()


@pytest.fixture
def minter() -> FakeMinter:
    return FakeMinter()


@pytest.fixture
def mint_ledger() -> InMemoryMintLedger:
    return InMemoryMintLedger()


@pytest.fixture
def proof_repository() -> InMemoryProofRepository:
    return InMemoryProofRepository()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    clock: FakeClock,
    chain_client: FakeChainClient,
    card_client: FakeCardClient,
    uploader: FakeUploader,
    minter: FakeMinter,
    mint_ledger: InMemoryMintLedger,
    proof_repository: InMemoryProofRepository,
) -> AppContainer:
    dev_wallets = frozenset({DEV_WALLET})
    entitlement_service = EntitlementService(
        repository=InMemoryEntitlementRepository(),
        mint_ledger=mint_ledger,
        max_free_visions=settings.max_free_visions,
        max_selfies=settings.max_selfies,
        cooldown=timedelta(hours=settings.selfie_cooldown_hours),
        dev_wallets=dev_wallets,
        now=clock,
    )
    session_service = SessionService(InMemoryVisionSessionRepository(), now=clock)
    vision_service = VisionService(
        entitlement_service=entitlement_service,
        session_service=session_service,
        payment_verifier=PaymentVerifier(
            chain_client=chain_client,
            card_client=card_client,
            treasury_accounts=(TREASURY,),
        ),
        replay_guard=ReplayGuard(proof_repository),
        server_salt=settings.server_salt,
        now=clock,
    )
    mint_service = MintService(
        session_service=session_service,
        mint_ledger=mint_ledger,
        uploader=uploader,
        minter=minter,
        total_supply=settings.total_supply,
        dev_wallets=dev_wallets,
    )
    checkout_service = CheckoutService(
        card_client=card_client,
        vision_price_pence=settings.vision_price_pence,
        reroll_price_pence=settings.reroll_price_pence,
        currency=settings.fiat_currency,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        entitlement_service=entitlement_service,
        session_service=session_service,
        vision_service=vision_service,
        mint_service=mint_service,
        checkout_service=checkout_service,
        mint_ledger=mint_ledger,
        uploader=uploader,
        close_resources=close_resources,
    )
