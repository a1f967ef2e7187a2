"""Domain errors raised by the assessment services.

Every error carries a stable ``code`` and the HTTP status the API layer
responds with, so routes never build ``HTTPException`` themselves.
"""


class AssessmentError(Exception):
    """Base class for all assessment service errors."""

    code = "assessment_error"
    status_code = 500

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.__class__.__doc__ or self.code
        super().__init__(self.detail)


class ValidationError(AssessmentError):
    """Invalid request data."""

    code = "validation_error"
    status_code = 400


class NotFoundError(AssessmentError):
    """Requested resource not found."""

    code = "not_found"
    status_code = 404


class ForbiddenError(AssessmentError):
    """Only the owner can modify this assessment."""

    code = "forbidden"
    status_code = 403


class ConflictError(AssessmentError):
    """Operation conflicts with the current state."""

    code = "conflict"
    status_code = 409


class AlreadyActive(ConflictError):
    """An active attempt already exists for this assessment."""

    code = "attempt_already_active"


class AlreadyCompleted(ConflictError):
    """Attempt has already been submitted."""

    code = "attempt_already_completed"


class NotCompleted(AssessmentError):
    """Assessment is not completed yet."""

    code = "attempt_not_completed"
    status_code = 400


class UnknownVariant(AssessmentError):
    """Question variant has no registered payload shape."""

    code = "unknown_variant"


class VariantMismatch(AssessmentError):
    """Question payload does not match its variant."""

    code = "variant_mismatch"


class StorageError(AssessmentError):
    """Storage operation failed."""

    code = "storage_error"


class CreateFailed(StorageError):
    """Failed to create assessment."""

    code = "create_failed"
