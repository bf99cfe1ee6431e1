from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, Field, field_validator, model_validator

from app.core.types import QualityScore, ScoreValue
from app.models.inspection import ComplianceValue, InspectionStatus
from app.schemas.evidence import EvidenceResponse


def _ensure_unique(orders: List[int], what: str) -> None:
    seen = set()
    for order in orders:
        if order in seen:
            raise ValueError(f"Duplicate {what} {order}")
        seen.add(order)


# ============================================================================
# TEMPLATE / CREATE
# ============================================================================

class ItemTemplate(BaseModel):
    """One checklist item as supplied by a template (or the client at intake)."""
    item_order: int = Field(ge=0)
    descripcion: str = Field(min_length=1)
    tipo_dato: str = "Fijo"
    cumplimiento_valor: ComplianceValue = ComplianceValue.PENDING
    cumplimiento_editable: bool = True
    calif_valor: QualityScore = Decimal("0")
    calif_editable: bool = True
    comentarios_valor: str = ""
    comentarios_libre: bool = True


class AreaTemplate(BaseModel):
    """Named, ordered group of checklist items."""
    area_name: str = Field(min_length=1)
    area_order: int = Field(ge=0)
    items: List[ItemTemplate] = []

    @field_validator("items")
    @classmethod
    def _unique_item_order(cls, items: List[ItemTemplate]) -> List[ItemTemplate]:
        _ensure_unique([i.item_order for i in items], "item_order")
        return items


def validate_areas(areas: List[AreaTemplate]) -> List[AreaTemplate]:
    if not areas:
        raise ValueError("An inspection needs at least one area")
    _ensure_unique([a.area_order for a in areas], "area_order")
    return areas


class InspectionCreate(BaseModel):
    """Schema for creating an inspection.

    Either `areas` (explicit checklist) or `category` (resolved through the
    template catalog) must be given. Inspector identity is the acting user.
    """
    location_id: UUID
    inspection_date: date
    department: Optional[str] = None
    category: Optional[str] = None
    property_code: Optional[str] = None
    property_name: Optional[str] = None
    general_comments: str = ""
    areas: Optional[List[AreaTemplate]] = None

    @model_validator(mode="after")
    def _areas_or_category(self) -> "InspectionCreate":
        if self.areas is None:
            if not self.category:
                raise ValueError("Provide either areas or a template category")
        else:
            validate_areas(self.areas)
            if not self.department:
                raise ValueError("department is required when areas are supplied")
        return self


# ============================================================================
# UPDATE
# ============================================================================

class ItemDelta(BaseModel):
    """Partial update of one item; omitted fields stay untouched."""
    item_id: UUID
    cumplimiento_valor: Optional[ComplianceValue] = None
    calif_valor: Optional[QualityScore] = None
    comentarios_valor: Optional[str] = None


class ItemsUpdate(BaseModel):
    """Batch of item deltas saved (and rescored) atomically."""
    items: List[ItemDelta] = []
    general_comments: Optional[str] = None
    expected_version: Optional[int] = None


class StatusUpdate(BaseModel):
    status: InspectionStatus


class InspectionDelete(BaseModel):
    acknowledgment_text: str


# ============================================================================
# RESPONSES
# ============================================================================

class ItemResponse(BaseModel):
    id: UUID
    area_id: UUID
    inspection_id: UUID
    item_order: int
    descripcion: str
    tipo_dato: str
    cumplimiento_valor: ComplianceValue
    cumplimiento_editable: bool
    calif_valor: ScoreValue
    calif_editable: bool
    comentarios_valor: str
    comentarios_libre: bool
    evidences: List[EvidenceResponse] = []

    class Config:
        from_attributes = True


class AreaResponse(BaseModel):
    id: UUID
    inspection_id: UUID
    area_name: str
    area_order: int
    calculated_score: ScoreValue
    items: List[ItemResponse] = []

    class Config:
        from_attributes = True


class InspectionSummary(BaseModel):
    """Inspection row without its checklist (lists, dashboards)."""
    id: UUID
    location_id: UUID
    department: str
    category: Optional[str] = None
    inspector_user_id: UUID
    inspector_name: str
    inspection_date: date
    property_code: str
    property_name: str
    status: InspectionStatus
    total_areas: int
    total_items: int
    items_cumple: int
    items_no_cumple: int
    items_na: int
    items_pending: int
    coverage_percentage: int
    compliance_percentage: int
    average_score: ScoreValue
    general_comments: str
    reviewed_by_user_id: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    version: int

    class Config:
        from_attributes = True


class InspectionResponse(InspectionSummary):
    """Full aggregate: ordered areas, ordered items, evidence per item."""
    areas: List[AreaResponse] = []


class CriticalItem(BaseModel):
    """Evaluated item scored below the critical threshold."""
    area_name: str
    descripcion: str
    calif_valor: ScoreValue
    comentarios_valor: str = ""


class StatusChangeResponse(InspectionSummary):
    """Inspection after a status change.

    Entering `completed` lists the critical items found and whether the
    alert reached the notifier.
    """
    critical_items: List[CriticalItem] = []
    alert_delivered: bool = False


class MetricsResponse(BaseModel):
    """Metrics after an item batch update."""
    inspection_id: UUID
    version: int
    total_areas: int
    total_items: int
    items_cumple: int
    items_no_cumple: int
    items_na: int
    items_pending: int
    coverage_percentage: int
    compliance_percentage: int
    average_score: ScoreValue
    area_scores: List[ScoreValue] = []


class TemplateSummary(BaseModel):
    category: str
    department: str
    total_areas: int
    total_items: int
