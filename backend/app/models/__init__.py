from app.models.location import Location, UserLocation
from app.models.user import Profile, UserRole
from app.models.inspection import (
    ComplianceValue,
    FROZEN_STATUSES,
    Inspection,
    InspectionArea,
    InspectionItem,
    InspectionStatus,
)
from app.models.evidence import EVIDENCE_SLOTS, InspectionItemEvidence
from app.models.deletion_log import InspectionDeletionLog

__all__ = [
    "Location",
    "UserLocation",
    "Profile",
    "UserRole",
    "ComplianceValue",
    "FROZEN_STATUSES",
    "Inspection",
    "InspectionArea",
    "InspectionItem",
    "InspectionStatus",
    "EVIDENCE_SLOTS",
    "InspectionItemEvidence",
    "InspectionDeletionLog",
]
