"""Item evidence model - metadata of photos stored in external object storage."""

import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, utcnow


EVIDENCE_SLOTS = (1, 2)


class InspectionItemEvidence(Base):
    """Evidence record occupying one of the two slots of a checklist item."""

    __tablename__ = "inspection_item_evidences"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    inspection_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("inspections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("inspection_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    slot: Mapped[int] = mapped_column(Integer, nullable=False)

    # Storage location (bucket-relative)
    storage_path: Mapped[str] = mapped_column(String(500), nullable=False)

    # File metadata
    file_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    mime_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    uploaded_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    item: Mapped["InspectionItem"] = relationship("InspectionItem", back_populates="evidences")

    __table_args__ = (
        UniqueConstraint("item_id", "slot", name="inspection_item_evidences_item_slot_unique"),
        CheckConstraint("slot IN (1, 2)", name="inspection_item_evidences_slot_valid"),
    )
