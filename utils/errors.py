"""
Domain error taxonomy for the reservation engine.

Every error carries an HTTP status, a stable machine code and a context dict
so the API layer can render it without inspecting the message text.
"""

from typing import Optional


class ReservationError(Exception):
    """Base class for errors raised by reservation operations."""

    status = 500
    code = 'INTERNAL_ERROR'
    retryable = False

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        """Serialize for the JSON error body."""
        body = {'code': self.code, 'retryable': self.retryable}
        body.update(self.context)
        return body


class ValidationError(ReservationError):
    """Malformed or missing input, reported per field."""

    status = 400
    code = 'VALIDATION_ERROR'

    def __init__(self, message: str, fields: Optional[dict] = None):
        super().__init__(message, fields=fields or {})
        self.fields = fields or {}


class PermissionDeniedError(ReservationError):
    """Caller is authenticated but does not own the resource."""

    status = 403
    code = 'FORBIDDEN'


class NotFoundError(ReservationError):
    """Referenced entity does not exist."""

    status = 404
    code = 'NOT_FOUND'

    def __init__(self, message: str, entity: str, entity_id=None):
        super().__init__(message, entity=entity, entity_id=entity_id)
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(ReservationError):
    """Requested range overlaps a committed reservation on the same cabana."""

    status = 409
    code = 'CONFLICT'
    retryable = True

    def __init__(self, message: str, cabana_id: int, start_date: str,
                 end_date: str, conflicting_ids: list):
        super().__init__(
            message,
            cabana_id=cabana_id,
            start_date=start_date,
            end_date=end_date,
            conflicting_ids=list(conflicting_ids),
        )
        self.cabana_id = cabana_id
        self.start_date = start_date
        self.end_date = end_date
        self.conflicting_ids = list(conflicting_ids)


class DuplicateReviewError(ReservationError):
    """The reservation already has a review."""

    status = 409
    code = 'DUPLICATE_REVIEW'


class InvalidStateTransitionError(ReservationError):
    """Operation is not allowed from the entity's current status."""

    status = 400
    code = 'INVALID_STATE'

    def __init__(self, message: str, entity: str = 'reservation',
                 current_status: Optional[str] = None,
                 required: Optional[list] = None):
        super().__init__(
            message,
            entity=entity,
            current_status=current_status,
            required_status=list(required or []),
        )
        self.entity = entity
        self.current_status = current_status
        self.required = list(required or [])


class LockTimeoutError(ReservationError):
    """The write lock could not be acquired within the configured timeout."""

    status = 503
    code = 'LOCK_TIMEOUT'
    retryable = True
