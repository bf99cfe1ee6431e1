import uuid
from datetime import datetime
from enum import Enum
from typing import Optional
from sqlalchemy import String, DateTime, Boolean, ForeignKey, JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, utcnow


class UserRole(str, Enum):
    """Hub roles relevant to inspections."""
    ADMIN = "admin"
    CORPORATE_ADMIN = "corporate_admin"
    SUPERVISOR = "supervisor"
    AUDITOR = "auditor"
    AGENT_L1 = "agent_l1"
    AGENT_L2 = "agent_l2"
    REQUESTER = "requester"


class Profile(Base):
    """Hub user profile - role and assignment records read by the scope resolver.

    Identity and credentials live in the auth provider; this engine only reads
    the profile row keyed by the authenticated user id.
    """

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False, default=UserRole.REQUESTER.value)
    # Primary assigned location
    location_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("locations.id", ondelete="SET NULL"),
        nullable=True,
    )
    # Department allow-list for the restricted administrative role
    allowed_departments: Mapped[Optional[list]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
