"""
Inspection Lifecycle State Machine

States:
    draft      -> being filled in by the inspector
    completed  -> submitted, awaiting review
    approved   -> accepted by a reviewer (items frozen)
    rejected   -> sent back by a reviewer (items frozen until reopened)

Rules:
    - Only transitions in VALID_TRANSITIONS are accepted
    - draft -> completed is the inspector's own action and stamps completed_at
    - review decisions and reopening need review authority
    - transitions are logged
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.core.database import utcnow
from app.core.errors import ForbiddenError, InvalidTransitionError, ValidationError
from app.models.inspection import Inspection, InspectionStatus
from app.models.user import UserRole
from app.services.access_scope import Actor

logger = logging.getLogger(__name__)


REVIEW_ROLES = frozenset({UserRole.ADMIN.value, UserRole.SUPERVISOR.value})


@dataclass(frozen=True)
class TransitionRecord:
    """Outcome of one applied transition."""
    inspection_id: object
    previous: InspectionStatus
    current: InspectionStatus
    actor_id: object
    at: datetime


class InspectionLifecycle:
    """Validates and applies status transitions on an Inspection row."""

    # Valid state transitions: current_state -> allowed_next_states
    VALID_TRANSITIONS: dict[InspectionStatus, frozenset[InspectionStatus]] = {
        InspectionStatus.DRAFT: frozenset({InspectionStatus.COMPLETED}),
        InspectionStatus.COMPLETED: frozenset({InspectionStatus.APPROVED, InspectionStatus.REJECTED}),
        InspectionStatus.REJECTED: frozenset({InspectionStatus.DRAFT}),
        InspectionStatus.APPROVED: frozenset(),
    }

    def __init__(self, require_complete_for_approval: bool = False) -> None:
        self.require_complete_for_approval = require_complete_for_approval

    def can_transition(self, current: InspectionStatus, target: InspectionStatus) -> bool:
        return target in self.VALID_TRANSITIONS.get(current, frozenset())

    def check(self, inspection: Inspection, target: InspectionStatus, actor: Actor) -> None:
        """Raise if `actor` may not move `inspection` to `target`."""
        current = InspectionStatus(inspection.status)
        if not self.can_transition(current, target):
            raise InvalidTransitionError(current.value, target.value)

        if current == InspectionStatus.DRAFT:
            if actor.user_id != inspection.inspector_user_id:
                raise ForbiddenError(
                    "Only the inspection's own inspector can complete it",
                    inspection_id=inspection.id,
                    actor_id=actor.user_id,
                )
        elif actor.role not in REVIEW_ROLES:
            raise ForbiddenError(
                f"Role '{actor.role}' has no review authority",
                inspection_id=inspection.id,
                requested_status=target.value,
            )

        if (
            target == InspectionStatus.APPROVED
            and self.require_complete_for_approval
            and inspection.items_pending > 0
        ):
            raise ValidationError(
                f"Cannot approve with {inspection.items_pending} pending items",
                inspection_id=inspection.id,
                field="items_pending",
            )

    def apply(
        self,
        inspection: Inspection,
        target: InspectionStatus,
        actor: Actor,
        now: Optional[datetime] = None,
    ) -> TransitionRecord:
        """Validate, then mutate status and timestamps in place."""
        self.check(inspection, target, actor)
        now = now or utcnow()
        previous = InspectionStatus(inspection.status)

        inspection.status = target
        if target == InspectionStatus.COMPLETED:
            inspection.completed_at = now
        elif target in (InspectionStatus.APPROVED, InspectionStatus.REJECTED):
            inspection.reviewed_by_user_id = actor.user_id
            inspection.reviewed_at = now
        elif target == InspectionStatus.DRAFT:
            # Reopened: previous submission and review no longer apply
            inspection.completed_at = None
            inspection.reviewed_by_user_id = None
            inspection.reviewed_at = None

        logger.info(
            f"Inspection {inspection.id}: {previous.value} -> {target.value} by {actor.user_id} ({actor.role})"
        )
        return TransitionRecord(
            inspection_id=inspection.id,
            previous=previous,
            current=target,
            actor_id=actor.user_id,
            at=now,
        )
