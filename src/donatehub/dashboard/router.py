"""Dashboard endpoints: NGO and donor dashboards, public platform stats."""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from donatehub.auth.dependencies import require_role
from donatehub.auth.principal import Principal
from donatehub.dashboard.service import donor_dashboard, ngo_dashboard, platform_stats
from donatehub.database import get_session
from donatehub.responses import api_response

router = APIRouter(prefix="/api/v1/dashboard", tags=["Dashboard"])


@router.get("/ngo")
async def get_ngo_dashboard(
    principal: Principal = Depends(require_role("ngo")),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Overall stats, recent campaigns, performance table and monthly trend."""
    return api_response(await ngo_dashboard(db, principal), "NGO dashboard data fetched successfully")


@router.get("/donor")
async def get_donor_dashboard(
    principal: Principal = Depends(require_role("donor")),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Giving stats, recent donations, supported campaigns and monthly trend."""
    return api_response(await donor_dashboard(db, principal), "Donor dashboard data fetched successfully")


@router.get("/stats")
async def get_platform_stats(db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    """Public platform totals."""
    return api_response(await platform_stats(db), "Platform statistics fetched successfully")
