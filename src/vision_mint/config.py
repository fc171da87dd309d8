"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    admin_secret: str
    server_salt: str = "graveyard"
    solana_rpc_url: str = "https://api.devnet.solana.com"
    treasury_accounts: str | None = None
    payment_mint: str | None = None
    stripe_secret_key: str | None = None
    stripe_webhook_secret: str | None = None
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    mint_store_path: str = ".mint-store.json"
    pinata_jwt: str | None = None
    pinata_gateway_url: str = "https://gateway.pinata.cloud/ipfs/"
    mint_service_url: str | None = None
    mint_service_token: str | None = None
    max_free_visions: int = 2
    max_selfies: int = 3
    selfie_cooldown_hours: float = 3.0
    total_supply: int = 666
    dev_wallets: str | None = None
    vision_price_pence: int = 500
    reroll_price_pence: int = 250
    fiat_currency: str = "gbp"
    http_timeout_seconds: float = 15.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def uses_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)


def parse_csv(raw: str | None) -> tuple[str, ...]:
    """Parse a comma-separated env value into non-empty entries."""
    if raw is None:
        return ()
    values = []
    for chunk in raw.split(","):
        value = chunk.strip()
        if value:
            values.append(value)
    return tuple(values)
