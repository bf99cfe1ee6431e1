"""
Inspection engine error taxonomy.

Every error carries an HTTP status, a human-readable message and a context
dict naming the entity and offending field, so the API layer can render an
actionable message without inspecting the exception type.
"""

from typing import Any, Optional


class InspectionEngineError(Exception):
    """Base class for all domain errors raised by the engine."""

    status_code: int = 500
    code: str = "engine_error"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = {k: (str(v) if v is not None else None) for k, v in context.items()}

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "error": self.code, **self.context}


class ValidationError(InspectionEngineError):
    """Malformed input: bad compliance value, score out of range, short acknowledgment."""
    status_code = 422
    code = "validation_error"


class NotFoundError(InspectionEngineError):
    """Unknown inspection, area, item, location or evidence slot."""
    status_code = 404
    code = "not_found"


class ForbiddenError(InspectionEngineError):
    """Actor lacks the role, location or department scope for the operation."""
    status_code = 403
    code = "forbidden"


class InvalidTransitionError(InspectionEngineError):
    """Lifecycle violation."""
    status_code = 409
    code = "invalid_transition"

    def __init__(self, current: str, requested: str, message: Optional[str] = None) -> None:
        super().__init__(
            message or f"Invalid transition: {current} -> {requested}",
            current_status=current,
            requested_status=requested,
        )
        self.current = current
        self.requested = requested


class ConflictError(InspectionEngineError):
    """Stale write (version mismatch) or write against a frozen inspection."""
    status_code = 409
    code = "conflict"


class PartialWriteError(InspectionEngineError):
    """A multi-step write could not be rolled back; persisted state is unknown."""
    status_code = 500
    code = "partial_write"


class TemplateError(Exception):
    """Raised when a checklist template file is malformed."""
    pass
