"""
Reservation state management functions.
Status constants, the transition matrix, and the append-only status history.

Every status change goes through apply_transition() so the reservation row and
its history entry are written in the same transaction.
"""

from typing import Optional

from database import get_db
from utils.errors import InvalidStateTransitionError, NotFoundError
from utils.messages import MESSAGES


# =============================================================================
# CONSTANTS
# =============================================================================

STATUS_PENDING = 'PENDING'
STATUS_APPROVED = 'APPROVED'
STATUS_REJECTED = 'REJECTED'
STATUS_CANCELLED = 'CANCELLED'
STATUS_CHECKED_IN = 'CHECKED_IN'
STATUS_CHECKED_OUT = 'CHECKED_OUT'
STATUS_MODIFICATION_PENDING = 'MODIFICATION_PENDING'
# Reserved for a future extra-request workflow; nothing transitions into it
STATUS_EXTRA_PENDING = 'EXTRA_PENDING'

ALL_STATUSES = (
    STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED, STATUS_CANCELLED,
    STATUS_CHECKED_IN, STATUS_CHECKED_OUT, STATUS_MODIFICATION_PENDING,
    STATUS_EXTRA_PENDING,
)

# Reservations in these statuses hold their cabana for their date range
COMMITTED_STATUSES = (
    STATUS_APPROVED,
    STATUS_MODIFICATION_PENDING,
    STATUS_EXTRA_PENDING,
    STATUS_CHECKED_IN,
    STATUS_CHECKED_OUT,
)

TERMINAL_STATUSES = (STATUS_REJECTED, STATUS_CANCELLED, STATUS_CHECKED_OUT)

VALID_TRANSITIONS = {
    STATUS_PENDING: [STATUS_APPROVED, STATUS_REJECTED],
    STATUS_APPROVED: [STATUS_MODIFICATION_PENDING, STATUS_CHECKED_IN],
    STATUS_MODIFICATION_PENDING: [STATUS_APPROVED, STATUS_CANCELLED],
    STATUS_CHECKED_IN: [STATUS_CHECKED_OUT],
    STATUS_EXTRA_PENDING: [],
    STATUS_REJECTED: [],
    STATUS_CANCELLED: [],
    STATUS_CHECKED_OUT: [],
}


# =============================================================================
# TRANSITION RULES
# =============================================================================

def get_allowed_transitions(current_status: str) -> list:
    """
    Get statuses reachable from a status.

    Args:
        current_status: Current reservation status

    Returns:
        List of target statuses (empty for terminal or unknown statuses)
    """
    return list(VALID_TRANSITIONS.get(current_status, []))


def validate_state_transition(current_status: str, new_status: str) -> None:
    """
    Validate a status change against the transition matrix.

    Args:
        current_status: Current reservation status
        new_status: Requested status

    Raises:
        InvalidStateTransitionError: If the transition is not allowed
    """
    if new_status not in get_allowed_transitions(current_status):
        raise InvalidStateTransitionError(
            MESSAGES['invalid_state'].format(status=current_status),
            current_status=current_status,
            required=[s for s, targets in VALID_TRANSITIONS.items() if new_status in targets]
        )


def require_status(reservation: dict, *allowed: str) -> None:
    """
    Guard an operation on the reservation's current status.

    Raises:
        InvalidStateTransitionError: If the status is not one of allowed
    """
    if reservation['status'] not in allowed:
        raise InvalidStateTransitionError(
            MESSAGES['invalid_state'].format(status=reservation['status']),
            current_status=reservation['status'],
            required=list(allowed)
        )


# =============================================================================
# LOCKED READS AND WRITES (inside the caller's transaction)
# =============================================================================

def load_reservation(db, reservation_id: int) -> dict:
    """
    Read a reservation row inside a transaction.

    Raises:
        NotFoundError: If the reservation does not exist
    """
    row = db.execute('SELECT * FROM reservations WHERE id = ?', (reservation_id,)).fetchone()
    if not row:
        raise NotFoundError(MESSAGES['reservation_not_found'],
                            entity='reservation', entity_id=reservation_id)
    return dict(row)


def record_status_change(db, reservation_id: int, from_status: Optional[str],
                         to_status: str, changed_by: Optional[int],
                         reason: str = None) -> int:
    """
    Append a status history entry.

    Args:
        db: Connection with an open transaction
        reservation_id: Reservation ID
        from_status: Previous status (None for the creation entry)
        to_status: New status
        changed_by: Acting user ID
        reason: Optional reason or note

    Returns:
        History entry ID
    """
    cursor = db.execute('''
        INSERT INTO reservation_status_history
        (reservation_id, from_status, to_status, changed_by, reason)
        VALUES (?, ?, ?, ?, ?)
    ''', (reservation_id, from_status, to_status, changed_by, reason))
    return cursor.lastrowid


def apply_transition(db, reservation: dict, new_status: str, changed_by: Optional[int],
                     reason: str = None, **fields) -> dict:
    """
    Move a reservation to a new status and record it in history.

    Args:
        db: Connection with an open transaction
        reservation: Reservation dict as read inside the same transaction
        new_status: Target status
        changed_by: Acting user ID
        reason: Optional reason stored on the history entry
        **fields: Extra columns to update on the reservation row

    Returns:
        The reservation dict with the new values applied

    Raises:
        InvalidStateTransitionError: If the transition is not allowed
    """
    validate_state_transition(reservation['status'], new_status)

    columns = {'status': new_status, **fields}
    assignments = ', '.join(f'{column} = ?' for column in columns)
    db.execute(f'''
        UPDATE reservations
        SET {assignments}, updated_at = CURRENT_TIMESTAMP
        WHERE id = ?
    ''', (*columns.values(), reservation['id']))

    record_status_change(db, reservation['id'], reservation['status'], new_status,
                         changed_by, reason)

    updated = dict(reservation)
    updated.update(columns)
    return updated


# =============================================================================
# HISTORY QUERIES
# =============================================================================

def get_status_history(reservation_id: int) -> list:
    """
    Get status history for a reservation in commit order.

    Args:
        reservation_id: Reservation ID

    Returns:
        List of history entries with the acting username
    """
    db = get_db()
    cursor = db.execute('''
        SELECT h.*, u.username as changed_by_username
        FROM reservation_status_history h
        LEFT JOIN users u ON h.changed_by = u.id
        WHERE h.reservation_id = ?
        ORDER BY h.id
    ''', (reservation_id,))
    return [dict(row) for row in cursor.fetchall()]
