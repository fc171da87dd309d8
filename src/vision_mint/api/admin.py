"""Admin API endpoints with shared-secret auth."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from vision_mint.containers import AppContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_secret(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_secret


async def require_admin(
    x_admin_secret: str | None = Header(default=None),
    admin_secret: str = Depends(_get_admin_secret),
) -> None:
    """Ensure requests include the admin secret."""
    if not admin_secret or not x_admin_secret or x_admin_secret != admin_secret:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized"
        )


@router.post("/reset-mints", dependencies=[Depends(require_admin)])
async def reset_mints(request: Request) -> dict[str, object]:
    """Clear the mint ledger."""
    container: AppContainer = request.app.state.container
    container.mint_ledger.reset()
    logger.warning("Mint ledger reset by admin")
    return {"ok": True, "mintCount": container.mint_ledger.total_minted()}


@router.get("/mint-stats", dependencies=[Depends(require_admin)])
async def mint_stats(request: Request) -> dict[str, object]:
    """Return the mint count against the total supply."""
    container: AppContainer = request.app.state.container
    return {
        "mintCount": container.mint_ledger.total_minted(),
        "totalSupply": container.settings.total_supply,
    }
