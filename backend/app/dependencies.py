"""Dependency injection helpers for FastAPI."""

from functools import lru_cache
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.bridges.alerts import CriticalAlertBridge, get_alert_bridge
from app.bridges.storage import StorageBridge, get_storage_bridge
from app.core.config import settings
from app.core.database import get_db
from app.models.location import Location, UserLocation
from app.models.user import Profile
from app.services.access_scope import AccessScope, Actor, resolve_scope
from app.services.evidence_service import EvidenceService
from app.services.inspection_service import InspectionService
from app.services.inspection_stats import InspectionStatsService
from app.services.templates import TemplateCatalog


async def get_current_actor(
    db: AsyncSession = Depends(get_db),
    x_user_id: Optional[UUID] = Header(default=None),
) -> Actor:
    """Get the acting user and their assignment records.

    The hub's auth gateway authenticates the request and forwards the user id
    in the X-User-Id header; this engine only loads the profile behind it.
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    profile = await db.get(Profile, x_user_id)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    if not profile.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive",
        )

    result = await db.execute(
        select(UserLocation.location_id).where(UserLocation.user_id == profile.id)
    )
    allowed = profile.allowed_departments
    return Actor(
        user_id=profile.id,
        role=profile.role,
        full_name=profile.full_name or "",
        primary_location_id=profile.location_id,
        assigned_location_ids=frozenset(result.scalars().all()),
        allowed_departments=tuple(allowed) if allowed is not None else None,
    )


async def get_access_scope(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> AccessScope:
    """Resolve what the acting user may see."""
    result = await db.execute(select(Location.id).where(Location.is_active.is_(True)))
    return resolve_scope(
        actor, result.scalars().all(), settings.INSPECTION_DEPARTMENTS, settings.DEPARTMENT_ALIASES
    )


@lru_cache()
def get_template_catalog() -> TemplateCatalog:
    catalog = TemplateCatalog(settings.TEMPLATES_DIR, departments=settings.INSPECTION_DEPARTMENTS)
    catalog.load()
    return catalog


def get_inspection_service(
    db: AsyncSession = Depends(get_db),
    catalog: TemplateCatalog = Depends(get_template_catalog),
    storage: StorageBridge = Depends(get_storage_bridge),
    alerts: CriticalAlertBridge = Depends(get_alert_bridge),
) -> InspectionService:
    return InspectionService(db, catalog, storage, alerts=alerts)


def get_evidence_service(db: AsyncSession = Depends(get_db)) -> EvidenceService:
    return EvidenceService(db)


def get_stats_service(db: AsyncSession = Depends(get_db)) -> InspectionStatsService:
    return InspectionStatsService(db)
