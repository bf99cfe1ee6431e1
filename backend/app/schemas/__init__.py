from app.schemas.evidence import EvidenceResponse, EvidenceUpsert, EvidenceUpsertResult
from app.schemas.inspection import (
    AreaResponse,
    AreaTemplate,
    CriticalItem,
    InspectionCreate,
    InspectionDelete,
    InspectionResponse,
    InspectionSummary,
    ItemDelta,
    ItemResponse,
    ItemsUpdate,
    ItemTemplate,
    MetricsResponse,
    StatusChangeResponse,
    StatusUpdate,
    TemplateSummary,
)
from app.schemas.stats import InspectionStats, ScoreTrend, StatusBreakdown

__all__ = [
    "EvidenceResponse",
    "EvidenceUpsert",
    "EvidenceUpsertResult",
    "AreaResponse",
    "AreaTemplate",
    "CriticalItem",
    "InspectionCreate",
    "InspectionDelete",
    "InspectionResponse",
    "InspectionSummary",
    "ItemDelta",
    "ItemResponse",
    "ItemsUpdate",
    "ItemTemplate",
    "MetricsResponse",
    "StatusChangeResponse",
    "StatusUpdate",
    "TemplateSummary",
    "InspectionStats",
    "ScoreTrend",
    "StatusBreakdown",
]
