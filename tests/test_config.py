"""Tests for application settings."""

from vision_mint.config import Settings, parse_csv


def test_parse_csv() -> None:
    assert parse_csv(None) == ()
    assert parse_csv("") == ()
    assert parse_csv(" A1 , ,B2,") == ("A1", "B2")


def test_settings_defaults() -> None:
    settings = Settings(admin_secret="secret")

    assert settings.max_free_visions == 2
    assert settings.max_selfies == 3
    assert settings.selfie_cooldown_hours == 3.0
    assert settings.total_supply == 666
    assert settings.uses_supabase is False


def test_settings_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("ADMIN_SECRET", "from-env")
    monkeypatch.setenv("TOTAL_SUPPLY", "10")
    monkeypatch.setenv("DEV_WALLETS", "Dev1,Dev2")

    settings = Settings()

    assert settings.admin_secret == "from-env"
    assert settings.total_supply == 10
    assert parse_csv(settings.dev_wallets) == ("Dev1", "Dev2")
