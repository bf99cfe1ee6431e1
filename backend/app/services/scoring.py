"""
Inspection Scoring Engine

Pure computation: item states in, metrics out. No I/O; callers persist
the result in the same transaction that wrote the items.

Coverage   - share of items evaluated with any value (N/A included).
Compliance - share of APPLICABLE evaluated items that passed (N/A excluded).
Quality    - per area, mean score of its "Cumple" items (0 when none);
             overall, mean of ALL area scores, zeros included. An area with
             only failed / N/A / pending items therefore pulls the average
             down. That is the intended penalty, do not filter zero areas out.
Critical   - evaluated items (score above 0) scored below the alert threshold,
             reported when an inspection is completed.
"""

from decimal import Decimal
from typing import Iterable, Protocol, Sequence

from pydantic import BaseModel, Field

from app.core.types import ScoreValue, percent, round_half_up
from app.models.inspection import ComplianceValue
from app.schemas.inspection import CriticalItem


class ScorableItem(Protocol):
    """Anything with a compliance value and a quality score (ORM item or schema)."""
    cumplimiento_valor: str
    calif_valor: Decimal


class ScorableArea(Protocol):
    area_name: str
    items: Sequence[ScorableItem]


class InspectionMetrics(BaseModel):
    """Derived metrics written back to the inspection row."""
    total_areas: int = 0
    total_items: int = 0
    items_cumple: int = 0
    items_no_cumple: int = 0
    items_na: int = 0
    items_pending: int = 0
    coverage_percentage: int = Field(default=0, ge=0, le=100)
    compliance_percentage: int = Field(default=0, ge=0, le=100)
    average_score: ScoreValue = Decimal("0.00")
    # Same order as the areas passed in
    area_scores: list[ScoreValue] = Field(default_factory=list)


def _compliance(item: ScorableItem) -> str:
    value = item.cumplimiento_valor
    if isinstance(value, ComplianceValue):
        return value.value
    return value or ""


def area_score(items: Iterable[ScorableItem]) -> Decimal:
    """Mean quality score of the area's "Cumple" items, unrounded; 0 if none."""
    scores = [
        Decimal(item.calif_valor or 0)
        for item in items
        if _compliance(item) == ComplianceValue.CUMPLE.value
    ]
    if not scores:
        return Decimal("0")
    return sum(scores, Decimal("0")) / len(scores)


def recompute(areas: Sequence[Sequence[ScorableItem]]) -> InspectionMetrics:
    """
    Recompute all derived metrics from current item states.

    Args:
        areas: items grouped by area, in area order

    Returns:
        InspectionMetrics; zero items yields 0% coverage and 0% compliance.
    """
    counts = {value.value: 0 for value in ComplianceValue}
    raw_area_scores: list[Decimal] = []

    for items in areas:
        for item in items:
            value = _compliance(item)
            if value not in counts:
                # Unknown values are rejected on write; never count them as evaluated
                value = ComplianceValue.PENDING.value
            counts[value] += 1
        raw_area_scores.append(area_score(items))

    cumple = counts[ComplianceValue.CUMPLE.value]
    no_cumple = counts[ComplianceValue.NO_CUMPLE.value]
    na = counts[ComplianceValue.NA.value]
    pending = counts[ComplianceValue.PENDING.value]
    total_items = cumple + no_cumple + na + pending

    evaluated = cumple + no_cumple + na
    applicable_evaluated = cumple + no_cumple

    if raw_area_scores:
        average = sum(raw_area_scores, Decimal("0")) / len(raw_area_scores)
    else:
        average = Decimal("0")

    return InspectionMetrics(
        total_areas=len(areas),
        total_items=total_items,
        items_cumple=cumple,
        items_no_cumple=no_cumple,
        items_na=na,
        items_pending=pending,
        coverage_percentage=percent(evaluated, total_items),
        compliance_percentage=percent(cumple, applicable_evaluated),
        average_score=round_half_up(average),
        area_scores=[round_half_up(score) for score in raw_area_scores],
    )


def find_critical_items(areas: Sequence[ScorableArea], threshold: Decimal) -> list[CriticalItem]:
    """
    Items with 0 < calif_valor < threshold, in area then item order.

    A score of 0 is an item nobody scored, never a critical one.
    """
    critical = []
    for area in areas:
        for item in area.items:
            score = Decimal(item.calif_valor or 0)
            if Decimal("0") < score < threshold:
                critical.append(
                    CriticalItem(
                        area_name=area.area_name,
                        descripcion=getattr(item, "descripcion", ""),
                        calif_valor=score,
                        comentarios_valor=getattr(item, "comentarios_valor", "") or "",
                    )
                )
    return critical
