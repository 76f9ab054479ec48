"""Domain exceptions for the checklist inspection engine.

Every exception carries the HTTP status it maps to; ``main.py`` registers a
single handler that renders them as ``{"detail": message}``.
"""


class InspectionServiceError(Exception):
    """Base exception for inspection/checklist service errors."""

    status_code = 500
    default_message = "Inspection service error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# =============================================================================
# Not Found (404) - also covers rows owned by another company
# =============================================================================

class NotFoundError(InspectionServiceError):
    status_code = 404
    default_message = "Not found"


class InspectionNotFoundError(NotFoundError):
    default_message = "Inspection not found"


class TemplateNotFoundError(NotFoundError):
    default_message = "No active checklist template found"


class ChecklistItemNotFoundError(NotFoundError):
    default_message = "Checklist item not found"


class InspectionFileNotFoundError(NotFoundError):
    default_message = "File not found"


class MemberNotFoundError(NotFoundError):
    default_message = "User not found in company"


# =============================================================================
# Forbidden (403)
# =============================================================================

class ForbiddenError(InspectionServiceError):
    status_code = 403
    default_message = "Access denied"


class InspectionAccessError(ForbiddenError):
    """Caller lacks the role or assignment required for the operation."""


class InspectionLockedError(ForbiddenError):
    """Inspection status no longer allows edits by this caller."""

    default_message = "Inspection is locked. Only admins can edit submitted inspections."


# =============================================================================
# Conflict (409)
# =============================================================================

class ConflictError(InspectionServiceError):
    status_code = 409
    default_message = "Conflict"


class InvalidStatusTransitionError(ConflictError):
    default_message = "Inspection cannot move to the requested status"


class TemplateNotAssignedError(ConflictError):
    default_message = "No checklist template assigned to inspection"


# =============================================================================
# Bad input (400)
# =============================================================================

class InvalidResponseValueError(InspectionServiceError):
    status_code = 400
    default_message = "Invalid response value"


class InvalidFileError(InspectionServiceError):
    status_code = 400
    default_message = "File not allowed"


class InvalidTemplateError(InspectionServiceError):
    status_code = 400
    default_message = "Invalid checklist template"


# =============================================================================
# Upstream / infrastructure (502)
# =============================================================================

class StorageError(InspectionServiceError):
    status_code = 502
    default_message = "File storage is unavailable. Please try again."
