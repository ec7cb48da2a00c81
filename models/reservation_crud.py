"""
Reservation CRUD and lifecycle operations.
Create, read, approve, reject, check-in and check-out.

Each operation validates input first, then runs all of its checks and writes
inside one transaction (database.transaction) and publishes its side effects
only after COMMIT.
"""

import logging
from typing import Optional

from database import get_db, transaction
from models.cabana import (
    get_cabana_by_id, is_bookable, flip_cabana_status,
    CABANA_AVAILABLE, CABANA_RESERVED,
)
from models.guest import get_guest_by_id, record_guest_visit
from models.pricing import calculate_price
from models.reservation_availability import check_and_reserve
from models.reservation_events import (
    publish, EVENT_CREATED, EVENT_APPROVED, EVENT_REJECTED,
    EVENT_CHECKED_IN, EVENT_CHECKED_OUT,
)
from models.reservation_state import (
    STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED,
    STATUS_CHECKED_IN, STATUS_CHECKED_OUT,
    load_reservation, record_status_change, apply_transition, require_status,
)
from utils.audit import (
    audit_after_commit, ACTION_CREATE, ACTION_APPROVE, ACTION_REJECT,
    ACTION_CHECK_IN, ACTION_CHECK_OUT,
)
from utils.datetime_helpers import get_today, now_timestamp
from utils.errors import NotFoundError, ValidationError
from utils.messages import MESSAGES
from utils.validators import (
    validate_date_range, validate_not_in_past, validate_guest_name,
    parse_price, parse_positive_int, sanitize_input, require_reason,
)

logger = logging.getLogger(__name__)


# =============================================================================
# READ OPERATIONS
# =============================================================================

def get_reservation_by_id(reservation_id: int) -> Optional[dict]:
    """
    Get reservation with cabana and requester names.

    Args:
        reservation_id: Reservation ID

    Returns:
        Reservation dict or None if not found
    """
    db = get_db()
    row = db.execute('''
        SELECT r.*, c.name as cabana_name, u.username as requester_username
        FROM reservations r
        JOIN cabanas c ON r.cabana_id = c.id
        JOIN users u ON r.user_id = u.id
        WHERE r.id = ?
    ''', (reservation_id,)).fetchone()
    return dict(row) if row else None


def require_reservation(reservation_id: int) -> dict:
    """
    Get reservation or raise.

    Raises:
        NotFoundError: If the reservation does not exist
    """
    reservation = get_reservation_by_id(reservation_id)
    if not reservation:
        raise NotFoundError(MESSAGES['reservation_not_found'],
                            entity='reservation', entity_id=reservation_id)
    return reservation


def get_reservation_with_details(reservation_id: int) -> Optional[dict]:
    """
    Get reservation with history, sub-requests and extras.

    Args:
        reservation_id: Reservation ID

    Returns:
        Reservation dict with 'history', 'modification_requests',
        'cancellation_requests', 'extras' and 'review', or None
    """
    from models.reservation_state import get_status_history
    from models.reservation_requests import (
        get_modification_requests, get_cancellation_requests,
    )
    from models.reservation_extras import get_extra_items
    from models.review import get_review_for_reservation

    reservation = get_reservation_by_id(reservation_id)
    if not reservation:
        return None

    reservation['history'] = get_status_history(reservation_id)
    reservation['modification_requests'] = get_modification_requests(reservation_id)
    reservation['cancellation_requests'] = get_cancellation_requests(reservation_id)
    reservation['extras'] = get_extra_items(reservation_id)
    reservation['review'] = get_review_for_reservation(reservation_id)
    return reservation


def get_reservations_filtered(
    user_id: int = None,
    status: str = None,
    cabana_id: int = None,
    page: int = 1,
    per_page: int = 20
) -> dict:
    """
    List reservations newest first with optional filters.

    Args:
        user_id: Only reservations requested by this user
        status: Filter by status
        cabana_id: Filter by cabana
        page: 1-based page number
        per_page: Page size

    Returns:
        dict: {'reservations': [...], 'total': int, 'page': int, 'per_page': int}
    """
    db = get_db()
    where = ' WHERE 1=1'
    params = []

    if user_id is not None:
        where += ' AND r.user_id = ?'
        params.append(user_id)
    if status:
        where += ' AND r.status = ?'
        params.append(status)
    if cabana_id is not None:
        where += ' AND r.cabana_id = ?'
        params.append(cabana_id)

    total = db.execute(f'SELECT COUNT(*) FROM reservations r{where}', params).fetchone()[0]

    rows = db.execute(f'''
        SELECT r.*, c.name as cabana_name, u.username as requester_username
        FROM reservations r
        JOIN cabanas c ON r.cabana_id = c.id
        JOIN users u ON r.user_id = u.id
        {where}
        ORDER BY r.id DESC
        LIMIT ? OFFSET ?
    ''', (*params, per_page, (page - 1) * per_page)).fetchall()

    return {
        'reservations': [dict(row) for row in rows],
        'total': total,
        'page': page,
        'per_page': per_page,
    }


# =============================================================================
# CREATE
# =============================================================================

def _validate_create(data: dict) -> dict:
    """Check a create payload and return the cleaned values."""
    if not isinstance(data, dict):
        raise ValidationError(MESSAGES['invalid_json'])

    errors = {}

    cabana_id = parse_positive_int(data.get('cabana_id'))
    if cabana_id is None:
        errors['cabana_id'] = MESSAGES['field_required']

    guest_error = validate_guest_name(data.get('guest_name'))
    if guest_error:
        errors['guest_name'] = guest_error

    start_date = data.get('start_date')
    end_date = data.get('end_date')
    errors.update(validate_date_range(start_date, end_date))
    if 'start_date' not in errors:
        errors.update(validate_not_in_past(start_date, get_today()))

    notes = data.get('notes')
    if notes is not None and not isinstance(notes, str):
        errors['notes'] = MESSAGES['invalid_value']

    guest_id = None
    if data.get('guest_id') is not None:
        guest_id = parse_positive_int(data.get('guest_id'))
        if guest_id is None:
            errors['guest_id'] = MESSAGES['invalid_value']

    if errors:
        raise ValidationError(MESSAGES['validation_failed'], errors)

    return {
        'cabana_id': cabana_id,
        'guest_id': guest_id,
        'guest_name': sanitize_input(data['guest_name'], max_length=200),
        'start_date': start_date,
        'end_date': end_date,
        'notes': sanitize_input(notes, max_length=2000) or None,
    }


def create_reservation(data: dict, user_id: int) -> dict:
    """
    Create a PENDING reservation request.

    Args:
        data: {cabana_id, guest_name, start_date, end_date, notes, guest_id?}
        user_id: Requesting user

    Returns:
        The created reservation dict

    Raises:
        ValidationError: If the payload is invalid or the cabana is not bookable
        NotFoundError: If the cabana or guest does not exist
        ConflictError: If a committed reservation already holds the range
    """
    values = _validate_create(data)

    if values['guest_id'] is not None and not get_guest_by_id(values['guest_id']):
        raise NotFoundError(MESSAGES['guest_not_found'], entity='guest', entity_id=values['guest_id'])

    with transaction() as db:
        cabana = get_cabana_by_id(values['cabana_id'])
        if not cabana:
            raise NotFoundError(MESSAGES['cabana_not_found'], entity='cabana',
                                entity_id=values['cabana_id'])
        if not is_bookable(cabana):
            raise ValidationError(MESSAGES['cabana_closed'], {'cabana_id': MESSAGES['cabana_closed']})

        check_and_reserve(db, values['cabana_id'], values['start_date'], values['end_date'])

        cursor = db.execute('''
            INSERT INTO reservations
            (cabana_id, user_id, guest_id, guest_name, start_date, end_date, notes, status)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ''', (values['cabana_id'], user_id, values['guest_id'], values['guest_name'],
              values['start_date'], values['end_date'], values['notes'], STATUS_PENDING))
        reservation_id = cursor.lastrowid

        record_status_change(db, reservation_id, None, STATUS_PENDING, user_id)
        reservation = load_reservation(db, reservation_id)

    logger.info(f"Reservation {reservation_id} created on cabana {values['cabana_id']} "
                f"{values['start_date']}..{values['end_date']} by user {user_id}")
    audit_after_commit(ACTION_CREATE, 'reservation', reservation_id, after=values, user_id=user_id)
    publish(EVENT_CREATED, reservation, user_id)
    return reservation


# =============================================================================
# APPROVE / REJECT
# =============================================================================

def approve_reservation(reservation_id: int, user_id: int, total_price=None) -> dict:
    """
    Approve a PENDING reservation and commit its cabana.

    The conflict guard runs again here: two overlapping requests may both be
    PENDING, but only the first approval wins.

    Args:
        reservation_id: Reservation ID
        user_id: Approving user
        total_price: Optional manual price overriding the computed one

    Returns:
        The approved reservation dict (with 'price_breakdown' when computed)

    Raises:
        ValidationError: If total_price is invalid
        NotFoundError: If the reservation does not exist
        InvalidStateTransitionError: If the reservation is not PENDING
        ConflictError: If a committed reservation now holds the range
    """
    manual_price = parse_price(total_price) if total_price is not None else None
    breakdown = None

    with transaction() as db:
        reservation = load_reservation(db, reservation_id)
        require_status(reservation, STATUS_PENDING)

        check_and_reserve(db, reservation['cabana_id'], reservation['start_date'],
                          reservation['end_date'], exclude_reservation_id=reservation_id)

        if manual_price is None:
            cabana = get_cabana_by_id(reservation['cabana_id'])
            breakdown = calculate_price(reservation['cabana_id'], cabana['concept_id'],
                                        reservation['start_date'], reservation['end_date'])
            price = breakdown['grand_total']
        else:
            price = manual_price

        reservation = apply_transition(db, reservation, STATUS_APPROVED, user_id,
                                       total_price=price)
        flip_cabana_status(db, reservation['cabana_id'], CABANA_RESERVED)

    logger.info(f"Reservation {reservation_id} approved by user {user_id} (total {price})")
    audit_after_commit(ACTION_APPROVE, 'reservation', reservation_id,
                       before={'status': STATUS_PENDING},
                       after={'status': STATUS_APPROVED, 'total_price': price,
                              'manual_price': manual_price is not None},
                       user_id=user_id)
    publish(EVENT_APPROVED, reservation, user_id)

    if breakdown is not None:
        reservation['price_breakdown'] = breakdown
    return reservation


def reject_reservation(reservation_id: int, user_id: int, reason: str) -> dict:
    """
    Reject a PENDING reservation.

    Raises:
        ValidationError: If the reason is missing
        NotFoundError: If the reservation does not exist
        InvalidStateTransitionError: If the reservation is not PENDING
    """
    reason = require_reason(reason)

    with transaction() as db:
        reservation = load_reservation(db, reservation_id)
        require_status(reservation, STATUS_PENDING)
        reservation = apply_transition(db, reservation, STATUS_REJECTED, user_id,
                                       reason=reason, rejection_reason=reason)

    logger.info(f"Reservation {reservation_id} rejected by user {user_id}")
    audit_after_commit(ACTION_REJECT, 'reservation', reservation_id,
                       before={'status': STATUS_PENDING},
                       after={'status': STATUS_REJECTED, 'reason': reason},
                       user_id=user_id)
    publish(EVENT_REJECTED, reservation, user_id, reason=reason)
    return reservation


# =============================================================================
# CHECK-IN / CHECK-OUT
# =============================================================================

def check_in_reservation(reservation_id: int, user_id: int) -> dict:
    """
    Register guest arrival on an APPROVED reservation.

    Raises:
        NotFoundError: If the reservation does not exist
        InvalidStateTransitionError: If the reservation is not APPROVED
    """
    with transaction() as db:
        reservation = load_reservation(db, reservation_id)
        require_status(reservation, STATUS_APPROVED)
        reservation = apply_transition(db, reservation, STATUS_CHECKED_IN, user_id,
                                       check_in_at=now_timestamp(), checked_in_by=user_id)

    logger.info(f"Reservation {reservation_id} checked in by user {user_id}")
    audit_after_commit(ACTION_CHECK_IN, 'reservation', reservation_id,
                       before={'status': STATUS_APPROVED},
                       after={'status': STATUS_CHECKED_IN,
                              'check_in_at': reservation['check_in_at']},
                       user_id=user_id)
    publish(EVENT_CHECKED_IN, reservation, user_id)
    return reservation


def check_out_reservation(reservation_id: int, user_id: int) -> dict:
    """
    Register guest departure on a CHECKED_IN reservation.

    Increments the linked guest's visit counter and frees the cabana.

    Raises:
        NotFoundError: If the reservation does not exist
        InvalidStateTransitionError: If the reservation is not CHECKED_IN
    """
    with transaction() as db:
        reservation = load_reservation(db, reservation_id)
        require_status(reservation, STATUS_CHECKED_IN)

        checked_out_at = now_timestamp()
        reservation = apply_transition(db, reservation, STATUS_CHECKED_OUT, user_id,
                                       check_out_at=checked_out_at, checked_out_by=user_id)
        if reservation['guest_id']:
            record_guest_visit(db, reservation['guest_id'], checked_out_at)
        flip_cabana_status(db, reservation['cabana_id'], CABANA_AVAILABLE)

    logger.info(f"Reservation {reservation_id} checked out by user {user_id}")
    audit_after_commit(ACTION_CHECK_OUT, 'reservation', reservation_id,
                       before={'status': STATUS_CHECKED_IN},
                       after={'status': STATUS_CHECKED_OUT, 'check_out_at': checked_out_at},
                       user_id=user_id)
    publish(EVENT_CHECKED_OUT, reservation, user_id)
    return reservation
