"""
Reservation model facade.

Re-exports the reservation lifecycle from its split modules:
- reservation_state: statuses, transition matrix, history
- reservation_availability: conflict guard
- reservation_crud: create, read, approve, reject, check-in, check-out
- reservation_requests: modification and cancellation requests
- reservation_extras: extra items
"""

from models.reservation_state import (
    STATUS_PENDING,
    STATUS_APPROVED,
    STATUS_REJECTED,
    STATUS_CANCELLED,
    STATUS_CHECKED_IN,
    STATUS_CHECKED_OUT,
    STATUS_MODIFICATION_PENDING,
    STATUS_EXTRA_PENDING,
    ALL_STATUSES,
    COMMITTED_STATUSES,
    TERMINAL_STATUSES,
    VALID_TRANSITIONS,
    get_allowed_transitions,
    validate_state_transition,
    get_status_history,
)
from models.reservation_availability import (
    overlaps,
    get_conflicting_reservations,
    check_cabana_availability,
    check_and_reserve,
)
from models.reservation_crud import (
    get_reservation_by_id,
    require_reservation,
    get_reservation_with_details,
    get_reservations_filtered,
    create_reservation,
    approve_reservation,
    reject_reservation,
    check_in_reservation,
    check_out_reservation,
)
from models.reservation_requests import (
    get_modification_requests,
    get_cancellation_requests,
    create_modification_request,
    resolve_modification_request,
    create_cancellation_request,
    resolve_cancellation_request,
)
from models.reservation_extras import (
    get_extra_items,
    add_extra_items,
)

__all__ = [
    # State
    'STATUS_PENDING', 'STATUS_APPROVED', 'STATUS_REJECTED', 'STATUS_CANCELLED',
    'STATUS_CHECKED_IN', 'STATUS_CHECKED_OUT', 'STATUS_MODIFICATION_PENDING',
    'STATUS_EXTRA_PENDING', 'ALL_STATUSES', 'COMMITTED_STATUSES', 'TERMINAL_STATUSES',
    'VALID_TRANSITIONS', 'get_allowed_transitions', 'validate_state_transition',
    'get_status_history',
    # Availability
    'overlaps', 'get_conflicting_reservations', 'check_cabana_availability',
    'check_and_reserve',
    # CRUD and lifecycle
    'get_reservation_by_id', 'require_reservation', 'get_reservation_with_details',
    'get_reservations_filtered', 'create_reservation', 'approve_reservation',
    'reject_reservation', 'check_in_reservation', 'check_out_reservation',
    # Sub-requests
    'get_modification_requests', 'get_cancellation_requests',
    'create_modification_request', 'resolve_modification_request',
    'create_cancellation_request', 'resolve_cancellation_request',
    # Extras
    'get_extra_items', 'add_extra_items',
]
