"""
Settings Router — per-tenant reorder and cost policy.
"""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_customer_id, get_db
from db.models import AppSettings
from inventory.policy import TenantPolicy

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/settings", tags=["settings"])


class SettingsUpdate(BaseModel):
    auto_reorder_enabled: bool | None = None
    minimum_profit_margin: float | None = Field(None, le=100)
    shipping_cost: float | None = Field(None, ge=0)
    label_cost: float | None = Field(None, ge=0)
    cancellation_shipping_loss: float | None = Field(None, ge=0)


async def _get_row(db: AsyncSession, customer_id: UUID) -> AppSettings | None:
    result = await db.execute(select(AppSettings).where(AppSettings.customer_id == customer_id))
    return result.scalar_one_or_none()


@router.get("", response_model=TenantPolicy)
async def get_tenant_settings(
    customer_id: UUID = Depends(get_customer_id),
    db: AsyncSession = Depends(get_db),
):
    """Effective policy: stored values merged over defaults."""
    row = await _get_row(db, customer_id)
    try:
        return TenantPolicy.from_row(row)
    except ValidationError as exc:
        logger.error("settings.invalid_row", customer_id=str(customer_id), error=str(exc))
        raise HTTPException(status_code=422, detail="Stored settings are invalid")


@router.patch("", response_model=TenantPolicy)
async def update_tenant_settings(
    body: SettingsUpdate,
    customer_id: UUID = Depends(get_customer_id),
    db: AsyncSession = Depends(get_db),
):
    row = await _get_row(db, customer_id)
    if row is None:
        row = AppSettings(customer_id=customer_id)
        db.add(row)

    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    for name, value in changes.items():
        setattr(row, name, value)

    await db.commit()
    logger.info("settings.updated", customer_id=str(customer_id), fields=sorted(changes))
    return TenantPolicy.from_row(row)
