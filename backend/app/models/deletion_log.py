"""Deletion audit log - written before an inspection aggregate is destroyed."""

import uuid
from datetime import datetime
from typing import Any
from sqlalchemy import DateTime, JSON, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, utcnow


class InspectionDeletionLog(Base):
    """One row per deleted inspection, with the operator's justification.

    No foreign key to inspections: the row must outlive the deleted aggregate.
    """

    __tablename__ = "inspection_deletion_log"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    inspection_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    deleted_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    deleted_by_role: Mapped[str] = mapped_column(String(50), nullable=False)
    acknowledgment_text: Mapped[str] = mapped_column(Text, nullable=False)
    snapshot_json: Mapped[dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
    )
    deleted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
