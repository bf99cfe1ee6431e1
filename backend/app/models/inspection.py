import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, utcnow


class InspectionStatus(str, Enum):
    """Lifecycle status of an inspection."""
    DRAFT = "draft"
    COMPLETED = "completed"
    APPROVED = "approved"
    REJECTED = "rejected"


class ComplianceValue(str, Enum):
    """Tri-state compliance of a checklist item (plus unset)."""
    PENDING = ""
    CUMPLE = "Cumple"
    NO_CUMPLE = "No Cumple"
    NA = "N/A"


# Items are frozen once a reviewer has acted on the inspection.
FROZEN_STATUSES = frozenset({InspectionStatus.APPROVED, InspectionStatus.REJECTED})


class Inspection(Base):
    """One audit event against a property/department on a given date."""

    __tablename__ = "inspections"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    location_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("locations.id"),
        nullable=False,
        index=True,
    )
    department: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    inspector_user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    inspector_name: Mapped[str] = mapped_column(String(255), nullable=False)
    inspection_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Denormalized from the location at intake
    property_code: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    property_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    status: Mapped[InspectionStatus] = mapped_column(
        SQLEnum(
            InspectionStatus,
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
        ),
        default=InspectionStatus.DRAFT,
        nullable=False,
        index=True,
    )

    # Derived metrics: written only by the recompute path
    total_areas: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_items: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    items_cumple: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    items_no_cumple: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    items_na: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    items_pending: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    coverage_percentage: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    compliance_percentage: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    average_score: Mapped[Decimal] = mapped_column(Numeric(4, 2), default=Decimal("0"), nullable=False)

    general_comments: Mapped[str] = mapped_column(Text, default="", nullable=False)

    reviewed_by_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Optimistic concurrency: bumped by the ORM on every UPDATE
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Relationships
    areas: Mapped[list["InspectionArea"]] = relationship(
        "InspectionArea",
        back_populates="inspection",
        cascade="all, delete-orphan",
        order_by="InspectionArea.area_order",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("coverage_percentage BETWEEN 0 AND 100", name="inspections_coverage_range"),
        CheckConstraint("compliance_percentage BETWEEN 0 AND 100", name="inspections_compliance_range"),
        CheckConstraint("average_score BETWEEN 0 AND 10", name="inspections_average_score_range"),
    )

    @property
    def is_frozen(self) -> bool:
        return self.status in FROZEN_STATUSES


class InspectionArea(Base):
    """Named grouping of checklist items within an inspection."""

    __tablename__ = "inspection_areas"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    inspection_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("inspections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    area_name: Mapped[str] = mapped_column(String(255), nullable=False)
    area_order: Mapped[int] = mapped_column(Integer, nullable=False)
    calculated_score: Mapped[Decimal] = mapped_column(Numeric(4, 2), default=Decimal("0"), nullable=False)

    inspection: Mapped["Inspection"] = relationship("Inspection", back_populates="areas")
    items: Mapped[list["InspectionItem"]] = relationship(
        "InspectionItem",
        back_populates="area",
        cascade="all, delete-orphan",
        order_by="InspectionItem.item_order",
    )

    __table_args__ = (
        UniqueConstraint("inspection_id", "area_order", name="inspection_areas_order_unique"),
    )


class InspectionItem(Base):
    """One checklist line: tri-state compliance plus an optional 0-10 quality score."""

    __tablename__ = "inspection_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # Direct reference to the inspection for query efficiency
    inspection_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("inspections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    area_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("inspection_areas.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_order: Mapped[int] = mapped_column(Integer, nullable=False)
    descripcion: Mapped[str] = mapped_column(Text, nullable=False)
    tipo_dato: Mapped[str] = mapped_column(String(50), nullable=False, default="Fijo")

    cumplimiento_valor: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    cumplimiento_editable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    calif_valor: Mapped[Decimal] = mapped_column(Numeric(4, 2), nullable=False, default=Decimal("0"))
    calif_editable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    comentarios_valor: Mapped[str] = mapped_column(Text, nullable=False, default="")
    comentarios_libre: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    area: Mapped["InspectionArea"] = relationship("InspectionArea", back_populates="items")
    evidences: Mapped[list["InspectionItemEvidence"]] = relationship(
        "InspectionItemEvidence",
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="InspectionItemEvidence.slot",
    )

    __table_args__ = (
        CheckConstraint(
            "cumplimiento_valor IN ('', 'Cumple', 'No Cumple', 'N/A')",
            name="inspection_items_cumplimiento_valid",
        ),
        CheckConstraint("calif_valor BETWEEN 0 AND 10", name="inspection_items_calif_range"),
    )
