from typing import Optional, List
from pydantic import BaseModel

from app.schemas.inspection import InspectionSummary
from app.services.access_scope import ScopeStatus


class StatusBreakdown(BaseModel):
    draft: int = 0
    completed: int = 0
    approved: int = 0
    rejected: int = 0


class InspectionStats(BaseModel):
    """Dashboard statistics for the actor's (narrowed) scope."""
    total_inspections: int = 0
    pending_approval: int = 0
    # 0-100: mean 0-10 score of completed + approved inspections, times 10
    average_score: int = 0
    recent_inspections: List[InspectionSummary] = []
    by_status: StatusBreakdown = StatusBreakdown()
    scope_status: ScopeStatus = ScopeStatus.OK
    # Set when the result is empty because of permissions, not data
    message: Optional[str] = None


class ScoreTrend(BaseModel):
    """Latest completed inspection scores as percentages, oldest first."""
    scores: List[int] = []
    scope_status: ScopeStatus = ScopeStatus.OK
