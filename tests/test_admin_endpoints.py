"""Tests for admin endpoints."""

from fastapi.testclient import TestClient

from vision_mint.api.app import create_app

HEADERS = {"X-Admin-Secret": "admin-secret"}


def test_admin_requires_secret(container) -> None:
    client = TestClient(create_app(container))

    missing = client.post("/admin/reset-mints")
    wrong = client.get("/admin/mint-stats", headers={"X-Admin-Secret": "guess"})

    assert missing.status_code == 401
    assert wrong.status_code == 401


def test_reset_mints(container, mint_ledger) -> None:
    client = TestClient(create_app(container))
    mint_ledger.mint_count = 5
    mint_ledger.minted_wallets.extend(["W1", "W2"])

    response = client.post("/admin/reset-mints", headers=HEADERS)

    assert response.status_code == 200
    assert response.json() == {"ok": True, "mintCount": 0}
    assert mint_ledger.minted_wallets == []


def test_mint_stats(container, mint_ledger) -> None:
    client = TestClient(create_app(container))
    mint_ledger.mint_count = 7

    response = client.get("/admin/mint-stats", headers=HEADERS)

    assert response.status_code == 200
    assert response.json() == {"mintCount": 7, "totalSupply": 666}
