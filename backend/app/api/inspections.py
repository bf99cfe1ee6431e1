"""
Inspections API

Intake, checklist edits, lifecycle, evidence and dashboards for department
inspections. Every endpoint acts on behalf of the X-User-Id actor and goes
through the access scope resolver.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from app.core.config import settings
from app.dependencies import (
    get_access_scope,
    get_current_actor,
    get_evidence_service,
    get_inspection_service,
    get_stats_service,
    get_template_catalog,
)
from app.models.inspection import InspectionStatus
from app.schemas.evidence import EvidenceUpsert, EvidenceUpsertResult
from app.schemas.inspection import (
    InspectionCreate,
    InspectionDelete,
    InspectionResponse,
    InspectionSummary,
    ItemsUpdate,
    MetricsResponse,
    StatusChangeResponse,
    StatusUpdate,
    TemplateSummary,
)
from app.schemas.stats import InspectionStats, ScoreTrend
from app.services.access_scope import AccessScope, Actor, narrow
from app.services.evidence_service import EvidenceService
from app.services.inspection_service import InspectionService
from app.services.inspection_stats import InspectionStatsService
from app.services.templates import TemplateCatalog

router = APIRouter(prefix="/inspections", tags=["inspections"])


# ============================================================================
# INTAKE
# ============================================================================

@router.post("", response_model=InspectionResponse, status_code=status.HTTP_201_CREATED)
async def create_inspection(
    payload: InspectionCreate,
    actor: Actor = Depends(get_current_actor),
    scope: AccessScope = Depends(get_access_scope),
    service: InspectionService = Depends(get_inspection_service),
):
    """Create a draft inspection from a template category or explicit areas."""
    return await service.create_inspection(payload, actor, scope)


@router.get("/templates", response_model=List[TemplateSummary])
async def list_templates(
    actor: Actor = Depends(get_current_actor),
    catalog: TemplateCatalog = Depends(get_template_catalog),
):
    """Checklist categories available for intake."""
    return [
        TemplateSummary(
            category=t.category,
            department=t.department,
            total_areas=len(t.areas),
            total_items=t.total_items,
        )
        for t in catalog.categories()
    ]


# ============================================================================
# DASHBOARDS
# ============================================================================

@router.get("", response_model=List[InspectionSummary])
async def list_inspections(
    location_id: Optional[UUID] = None,
    department: Optional[str] = None,
    status_filter: Optional[InspectionStatus] = Query(default=None, alias="status"),
    mine: bool = False,
    limit: int = Query(default=settings.LIST_DEFAULT_LIMIT, ge=1, le=settings.LIST_MAX_LIMIT),
    offset: int = Query(default=0, ge=0),
    actor: Actor = Depends(get_current_actor),
    scope: AccessScope = Depends(get_access_scope),
    stats: InspectionStatsService = Depends(get_stats_service),
):
    """Inspections in scope, newest first."""
    scope_filter = narrow(
        scope, location_id, department, settings.INSPECTION_DEPARTMENTS, settings.DEPARTMENT_ALIASES
    )
    return await stats.list_inspections(
        scope_filter,
        limit=limit,
        offset=offset,
        status=status_filter,
        mine_user_id=actor.user_id if mine else None,
    )


@router.get("/stats", response_model=InspectionStats)
async def get_stats(
    location_id: Optional[UUID] = None,
    department: Optional[str] = None,
    mine: bool = False,
    recent_limit: Optional[int] = Query(default=None, ge=1, le=settings.LIST_MAX_LIMIT),
    actor: Actor = Depends(get_current_actor),
    scope: AccessScope = Depends(get_access_scope),
    stats: InspectionStatsService = Depends(get_stats_service),
):
    """Totals, pending approvals, average score and recent inspections."""
    scope_filter = narrow(
        scope, location_id, department, settings.INSPECTION_DEPARTMENTS, settings.DEPARTMENT_ALIASES
    )
    return await stats.get_aggregate_stats(
        scope_filter,
        mine_user_id=actor.user_id if mine else None,
        recent_limit=recent_limit,
    )


@router.get("/trend", response_model=ScoreTrend)
async def get_trend(
    location_id: Optional[UUID] = None,
    department: Optional[str] = None,
    count: Optional[int] = Query(default=None, ge=1, le=settings.LIST_MAX_LIMIT),
    scope: AccessScope = Depends(get_access_scope),
    stats: InspectionStatsService = Depends(get_stats_service),
):
    """Score percentages of the latest submitted inspections, oldest first."""
    scope_filter = narrow(
        scope, location_id, department, settings.INSPECTION_DEPARTMENTS, settings.DEPARTMENT_ALIASES
    )
    return await stats.get_score_trend(scope_filter, count)


# ============================================================================
# AGGREGATE
# ============================================================================

@router.get("/{inspection_id}", response_model=InspectionResponse)
async def get_inspection(
    inspection_id: UUID,
    scope: AccessScope = Depends(get_access_scope),
    service: InspectionService = Depends(get_inspection_service),
):
    """Full inspection with ordered areas, items and signed evidence URLs."""
    return await service.get_inspection(inspection_id, scope)


@router.patch("/{inspection_id}/items", response_model=MetricsResponse)
async def update_items(
    inspection_id: UUID,
    payload: ItemsUpdate,
    actor: Actor = Depends(get_current_actor),
    scope: AccessScope = Depends(get_access_scope),
    service: InspectionService = Depends(get_inspection_service),
):
    """
    Save a batch of item changes.

    Metrics are recomputed and persisted with the items; send
    `expected_version` to reject the save when someone else saved first.
    """
    return await service.update_items(inspection_id, payload, actor, scope)


@router.post("/{inspection_id}/status", response_model=StatusChangeResponse)
async def update_status(
    inspection_id: UUID,
    payload: StatusUpdate,
    actor: Actor = Depends(get_current_actor),
    scope: AccessScope = Depends(get_access_scope),
    service: InspectionService = Depends(get_inspection_service),
):
    """Complete, approve, reject or reopen an inspection.

    Completing returns the critical items found and whether the notifier got them.
    """
    return await service.transition_status(inspection_id, payload.status, actor, scope)


@router.delete("/{inspection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_inspection(
    inspection_id: UUID,
    payload: InspectionDelete,
    actor: Actor = Depends(get_current_actor),
    scope: AccessScope = Depends(get_access_scope),
    service: InspectionService = Depends(get_inspection_service),
):
    """Delete an inspection. Requires an acknowledgment; a snapshot is logged."""
    await service.delete_inspection(inspection_id, payload.acknowledgment_text, actor, scope)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# EVIDENCE
# ============================================================================

@router.put(
    "/{inspection_id}/items/{item_id}/evidences/{slot}",
    response_model=EvidenceUpsertResult,
)
async def put_evidence(
    inspection_id: UUID,
    item_id: UUID,
    slot: int,
    payload: EvidenceUpsert,
    actor: Actor = Depends(get_current_actor),
    scope: AccessScope = Depends(get_access_scope),
    evidences: EvidenceService = Depends(get_evidence_service),
):
    """Record an uploaded file in one of the item's two evidence slots."""
    return await evidences.attach(inspection_id, item_id, slot, payload, actor, scope)


@router.delete(
    "/{inspection_id}/items/{item_id}/evidences/{slot}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_evidence(
    inspection_id: UUID,
    item_id: UUID,
    slot: int,
    actor: Actor = Depends(get_current_actor),
    scope: AccessScope = Depends(get_access_scope),
    evidences: EvidenceService = Depends(get_evidence_service),
):
    """Clear an evidence slot."""
    await evidences.remove(inspection_id, item_id, slot, actor, scope)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
