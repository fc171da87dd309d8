"""Tests for the per-wallet entitlement rules."""

from datetime import timedelta

from tests.conftest import DEV_WALLET, FakeClock
from vision_mint.domain.entitlements import EntitlementDecision, WalletEntitlement
from vision_mint.domain.errors import ErrorKind, Failure
from vision_mint.services.entitlements import (
    EntitlementService,
    InMemoryEntitlementRepository,
)
from vision_mint.services.mint_ledger import InMemoryMintLedger

WALLET = "W1"


def _service(
    clock: FakeClock,
    repository: InMemoryEntitlementRepository | None = None,
    ledger: InMemoryMintLedger | None = None,
) -> EntitlementService:
    return EntitlementService(
        repository=repository or InMemoryEntitlementRepository(),
        mint_ledger=ledger or InMemoryMintLedger(),
        max_free_visions=2,
        max_selfies=3,
        cooldown=timedelta(hours=3),
        dev_wallets=frozenset({DEV_WALLET}),
        now=clock,
    )


def _take(
    service: EntitlementService, wallet: str, session_id: str
) -> EntitlementDecision:
    decision = service.evaluate(wallet)
    assert isinstance(decision, EntitlementDecision)
    assert service.record_vision(decision, session_id) is not None
    return decision


def test_free_then_paid_tier(clock: FakeClock) -> None:
    service = _service(clock)

    first = _take(service, WALLET, "s1")
    second = _take(service, WALLET, "s2")
    third = service.evaluate(WALLET)

    assert (first.vision_number, first.requires_payment) == (1, False)
    assert first.visions_remaining_after == 2
    assert (second.vision_number, second.requires_payment) == (2, False)
    assert isinstance(third, EntitlementDecision)
    assert third.vision_number == 3
    assert third.requires_payment is True
    assert third.visions_remaining_after == 0


def test_exhausted_batch_reports_cooldown_end(clock: FakeClock) -> None:
    service = _service(clock)
    started = clock()
    _take(service, WALLET, "s1")
    clock.advance(timedelta(minutes=10))
    _take(service, WALLET, "s2")
    _take(service, WALLET, "s3")

    result = service.evaluate(WALLET)

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.COOLDOWN_ACTIVE
    assert result.cooldown_ends_at == started + timedelta(hours=3)


def test_cooldown_elapsed_starts_fresh_batch(clock: FakeClock) -> None:
    repository = InMemoryEntitlementRepository()
    service = _service(clock, repository)
    for index in range(3):
        _take(service, WALLET, f"s{index}")

    clock.advance(timedelta(hours=3))
    decision = service.evaluate(WALLET)

    assert isinstance(decision, EntitlementDecision)
    assert decision.vision_number == 1
    assert decision.requires_payment is False
    updated = service.record_vision(decision, "s-new")
    assert updated is not None
    assert updated.visions_consumed == 1
    assert updated.session_ids == ("s-new",)
    assert updated.batch_started_at == clock()
    assert updated.version == 4


def test_missing_batch_start_counts_as_elapsed(clock: FakeClock) -> None:
    repository = InMemoryEntitlementRepository()
    repository.entries[WALLET] = WalletEntitlement(
        wallet=WALLET, visions_consumed=3, version=3
    )

    decision = _service(clock, repository).evaluate(WALLET)

    assert isinstance(decision, EntitlementDecision)
    assert decision.vision_number == 1


def test_minted_wallet_is_rejected(clock: FakeClock) -> None:
    ledger = InMemoryMintLedger(mint_count=1, minted_wallets=[WALLET])

    result = _service(clock, ledger=ledger).evaluate(WALLET)

    assert result == Failure(ErrorKind.ALREADY_MINTED, "Wallet already minted")


def test_dev_wallet_skips_minted_check_and_cooldown(clock: FakeClock) -> None:
    ledger = InMemoryMintLedger(mint_count=1, minted_wallets=[DEV_WALLET])
    service = _service(clock, ledger=ledger)
    for index in range(3):
        _take(service, DEV_WALLET, f"s{index}")

    decision = service.evaluate(DEV_WALLET)

    assert isinstance(decision, EntitlementDecision)
    assert decision.vision_number == 1
    assert service.status(DEV_WALLET).has_minted is False


def test_stale_decision_loses_compare_and_set(clock: FakeClock) -> None:
    service = _service(clock)
    first = service.evaluate(WALLET)
    second = service.evaluate(WALLET)
    assert isinstance(first, EntitlementDecision)
    assert isinstance(second, EntitlementDecision)

    assert service.record_vision(first, "s1") is not None
    assert service.record_vision(second, "s2") is None
    assert service.load(WALLET).session_ids == ("s1",)


def test_status_is_read_only(clock: FakeClock) -> None:
    repository = InMemoryEntitlementRepository()
    service = _service(clock, repository)
    for index in range(3):
        _take(service, WALLET, f"s{index}")

    during = service.status(WALLET)
    clock.advance(timedelta(hours=4))
    after = service.status(WALLET)

    assert during.selfie_count == 3
    assert during.cooldown_ends_at == clock() - timedelta(hours=1)
    assert after.selfie_count == 0
    assert after.cooldown_ends_at is None
    assert repository.entries[WALLET].visions_consumed == 3


def test_status_for_unknown_wallet(clock: FakeClock) -> None:
    status = _service(clock).status("W-new")

    assert status.selfie_count == 0
    assert status.max_selfies == 3
    assert status.max_free_visions == 2
    assert status.has_minted is False
    assert status.cooldown_ends_at is None
