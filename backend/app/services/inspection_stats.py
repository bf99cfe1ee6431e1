"""
Inspection listing and dashboard statistics.

Every query takes a ScopeFilter from access_scope.narrow(); an empty filter
short-circuits to an empty result without touching the database.
"""

import logging
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, settings as default_settings
from app.core.types import score_to_percentage
from app.models.inspection import Inspection, InspectionStatus
from app.schemas.inspection import InspectionSummary
from app.schemas.stats import InspectionStats, ScoreTrend, StatusBreakdown
from app.services.access_scope import ScopeFilter, ScopeStatus

logger = logging.getLogger(__name__)

# Submitted inspections: the ones whose score counts on dashboards
SCORED_STATUSES = (InspectionStatus.COMPLETED, InspectionStatus.APPROVED)

EMPTY_SCOPE_MESSAGES = {
    ScopeStatus.NO_LOCATIONS: "No locations assigned to your profile",
    ScopeStatus.NO_DEPARTMENTS: "No departments assigned to your profile",
}


def _apply_filter(query: Select, scope: ScopeFilter, mine_user_id: Optional[uuid.UUID] = None) -> Select:
    query = query.where(Inspection.location_id.in_(scope.location_ids))
    if scope.departments is not None:
        query = query.where(Inspection.department.in_(scope.departments))
    if mine_user_id is not None:
        query = query.where(Inspection.inspector_user_id == mine_user_id)
    return query


def _empty_reason(scope: ScopeFilter) -> ScopeStatus:
    if scope.status != ScopeStatus.OK:
        return scope.status
    if scope.departments is not None and not scope.departments:
        return ScopeStatus.NO_DEPARTMENTS
    return ScopeStatus.NO_LOCATIONS


def _newest_first(query: Select) -> Select:
    return query.order_by(Inspection.inspection_date.desc(), Inspection.created_at.desc())


class InspectionStatsService:
    """Read-only queries over inspection rows (no checklist loading)."""

    def __init__(self, db: AsyncSession, config: Settings = default_settings) -> None:
        self.db = db
        self.config = config

    def clamp_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            return self.config.LIST_DEFAULT_LIMIT
        return max(1, min(limit, self.config.LIST_MAX_LIMIT))

    async def list_inspections(
        self,
        scope: ScopeFilter,
        limit: Optional[int] = None,
        offset: int = 0,
        status: Optional[InspectionStatus] = None,
        mine_user_id: Optional[uuid.UUID] = None,
    ) -> list[InspectionSummary]:
        """Inspection rows in scope, newest inspection_date first."""
        if scope.is_empty:
            return []

        query = _apply_filter(select(Inspection), scope, mine_user_id)
        if status is not None:
            query = query.where(Inspection.status == status)
        query = _newest_first(query).limit(self.clamp_limit(limit)).offset(max(offset, 0))

        result = await self.db.execute(query)
        return [InspectionSummary.model_validate(row) for row in result.scalars().all()]

    async def get_aggregate_stats(
        self,
        scope: ScopeFilter,
        mine_user_id: Optional[uuid.UUID] = None,
        recent_limit: Optional[int] = None,
    ) -> InspectionStats:
        """
        Totals, pending approvals, average score (0-100) and recent rows.

        An empty scope is not an error: the result is all zeros and carries the
        reason in `scope_status` / `message`.
        """
        if scope.is_empty:
            status = _empty_reason(scope)
            logger.info(f"Stats requested for empty scope ({status.value})")
            return InspectionStats(scope_status=status, message=EMPTY_SCOPE_MESSAGES[status])

        count_query = _apply_filter(
            select(Inspection.status, func.count(Inspection.id)),
            scope,
            mine_user_id,
        ).group_by(Inspection.status)
        counts = {InspectionStatus(s): n for s, n in (await self.db.execute(count_query)).all()}
        by_status = StatusBreakdown(**{s.value: n for s, n in counts.items()})

        avg_query = _apply_filter(
            select(func.avg(Inspection.average_score)),
            scope,
            mine_user_id,
        ).where(Inspection.status.in_(SCORED_STATUSES))
        mean = (await self.db.execute(avg_query)).scalar()
        average = score_to_percentage(Decimal(str(mean))) if mean is not None else 0

        limit = recent_limit if recent_limit is not None else self.config.RECENT_INSPECTIONS_LIMIT
        recent = await self.list_inspections(scope, limit=limit, mine_user_id=mine_user_id)

        return InspectionStats(
            total_inspections=sum(counts.values()),
            pending_approval=counts.get(InspectionStatus.COMPLETED, 0),
            average_score=average,
            recent_inspections=recent,
            by_status=by_status,
        )

    async def get_score_trend(self, scope: ScopeFilter, count: Optional[int] = None) -> ScoreTrend:
        """Score percentages of the latest completed inspections, oldest first.

        Only `completed` rows feed the trend; approved ones drop out of it.
        """
        if scope.is_empty:
            return ScoreTrend(scope_status=_empty_reason(scope))

        points = count if count is not None else self.config.TREND_POINTS
        points = max(1, min(points, self.config.LIST_MAX_LIMIT))
        query = _apply_filter(select(Inspection.average_score), scope).where(
            Inspection.status == InspectionStatus.COMPLETED
        )
        query = _newest_first(query).limit(points)
        scores = [score_to_percentage(s) for s in (await self.db.execute(query)).scalars().all()]
        scores.reverse()
        return ScoreTrend(scores=scores)
