"""
Sub-request ledger: modification and cancellation requests.

A requester asks to change or cancel an APPROVED reservation; the reservation
waits in MODIFICATION_PENDING until an approver resolves the request. Since a
request can only be opened from APPROVED, a reservation has at most one
pending request at a time. Resolved requests are immutable (enforced by
schema triggers as well).
"""

import logging

from database import get_db, transaction
from models.cabana import get_cabana_by_id, is_bookable, flip_cabana_status, CABANA_AVAILABLE, CABANA_RESERVED
from models.pricing import calculate_price
from models.reservation_availability import check_and_reserve
from models.reservation_events import (
    publish, EVENT_MODIFICATION_REQUESTED, EVENT_MODIFICATION_RESOLVED,
    EVENT_CANCELLATION_REQUESTED, EVENT_CANCELLATION_RESOLVED,
)
from models.reservation_state import (
    STATUS_APPROVED, STATUS_CANCELLED, STATUS_MODIFICATION_PENDING,
    load_reservation, apply_transition, require_status,
)
from utils.audit import (
    audit_after_commit, ACTION_MODIFY_REQUEST, ACTION_MODIFY_APPROVE, ACTION_MODIFY_REJECT,
    ACTION_CANCEL_REQUEST, ACTION_CANCEL_APPROVE, ACTION_CANCEL_REJECT,
)
from utils.datetime_helpers import get_today, now_timestamp
from utils.errors import (
    ValidationError, NotFoundError, PermissionDeniedError, InvalidStateTransitionError,
)
from utils.messages import MESSAGES
from utils.validators import (
    validate_date_format, validate_date_range, validate_not_in_past, validate_guest_name,
    parse_price, parse_positive_int, require_reason, sanitize_input,
)

logger = logging.getLogger(__name__)

REQUEST_PENDING = 'PENDING'
REQUEST_APPROVED = 'APPROVED'
REQUEST_REJECTED = 'REJECTED'

ACTION_APPROVE = 'approve'
ACTION_REJECT = 'reject'

MODIFICATION_TABLE = 'modification_requests'
CANCELLATION_TABLE = 'cancellation_requests'


# =============================================================================
# READ OPERATIONS
# =============================================================================

def get_modification_requests(reservation_id: int) -> list:
    """Get all modification requests of a reservation, oldest first."""
    rows = get_db().execute('''
        SELECT m.*, c.name as new_cabana_name
        FROM modification_requests m
        LEFT JOIN cabanas c ON m.new_cabana_id = c.id
        WHERE m.reservation_id = ?
        ORDER BY m.id
    ''', (reservation_id,)).fetchall()
    return [dict(row) for row in rows]


def get_cancellation_requests(reservation_id: int) -> list:
    """Get all cancellation requests of a reservation, oldest first."""
    rows = get_db().execute('''
        SELECT * FROM cancellation_requests
        WHERE reservation_id = ?
        ORDER BY id
    ''', (reservation_id,)).fetchall()
    return [dict(row) for row in rows]


# =============================================================================
# SHARED HELPERS
# =============================================================================

def _require_owner(reservation: dict, user_id: int) -> None:
    if reservation['user_id'] != user_id:
        raise PermissionDeniedError(MESSAGES['not_owner'], reservation_id=reservation['id'])


def _parse_action(action) -> str:
    if action not in (ACTION_APPROVE, ACTION_REJECT):
        raise ValidationError(MESSAGES['validation_failed'], {'action': MESSAGES['invalid_action']})
    return action


def _load_pending_request(db, table: str, request_id: int, reservation_id: int) -> dict:
    """
    Read a request that must belong to the reservation and still be PENDING.

    Raises:
        NotFoundError: If the request does not exist for this reservation
        InvalidStateTransitionError: If the request is already resolved
    """
    row = db.execute(f'SELECT * FROM {table} WHERE id = ? AND reservation_id = ?',
                     (request_id, reservation_id)).fetchone()
    if not row:
        raise NotFoundError(MESSAGES['request_not_found'], entity=table, entity_id=request_id)
    request = dict(row)
    if request['status'] != REQUEST_PENDING:
        raise InvalidStateTransitionError(
            MESSAGES['request_already_resolved'],
            entity=table,
            current_status=request['status'],
            required=[REQUEST_PENDING]
        )
    return request


def _resolve_request(db, table: str, request_id: int, status: str, user_id: int,
                     rejection_reason: str = None) -> None:
    db.execute(f'''
        UPDATE {table}
        SET status = ?, rejection_reason = ?, resolved_by = ?, resolved_at = ?
        WHERE id = ? AND status = ?
    ''', (status, rejection_reason, user_id, now_timestamp(), request_id, REQUEST_PENDING))


# =============================================================================
# MODIFICATION REQUESTS
# =============================================================================

def _validate_modification(data: dict) -> dict:
    """Check a modification payload; at least one change is required."""
    if not isinstance(data, dict):
        raise ValidationError(MESSAGES['invalid_json'])

    errors = {}
    changes = {}

    if data.get('new_cabana_id') is not None:
        cabana_id = parse_positive_int(data.get('new_cabana_id'))
        if cabana_id is None:
            errors['new_cabana_id'] = MESSAGES['invalid_value']
        else:
            changes['new_cabana_id'] = cabana_id

    for field in ('new_start_date', 'new_end_date'):
        if data.get(field) is not None:
            if not validate_date_format(data.get(field)):
                errors[field] = MESSAGES['invalid_date']
            else:
                changes[field] = data[field]

    if data.get('new_guest_name') is not None:
        name_error = validate_guest_name(data.get('new_guest_name'))
        if name_error:
            errors['new_guest_name'] = name_error
        else:
            changes['new_guest_name'] = sanitize_input(data['new_guest_name'], max_length=200)

    if errors:
        raise ValidationError(MESSAGES['validation_failed'], errors)
    if not changes:
        raise ValidationError(MESSAGES['no_changes_requested'],
                              {'changes': MESSAGES['no_changes_requested']})
    return changes


def _target_values(reservation: dict, request: dict) -> dict:
    """Reservation values after applying a modification request."""
    return {
        'cabana_id': request.get('new_cabana_id') or reservation['cabana_id'],
        'start_date': request.get('new_start_date') or reservation['start_date'],
        'end_date': request.get('new_end_date') or reservation['end_date'],
        'guest_name': request.get('new_guest_name') or reservation['guest_name'],
    }


def create_modification_request(reservation_id: int, user_id: int, data: dict) -> dict:
    """
    Ask to change cabana, dates or guest name of an APPROVED reservation.

    Args:
        reservation_id: Reservation ID
        user_id: Requesting user (must own the reservation)
        data: Any of new_cabana_id, new_start_date, new_end_date, new_guest_name

    Returns:
        The created request dict

    Raises:
        ValidationError: If no change is given or the resulting stay is invalid
        PermissionDeniedError: If the caller does not own the reservation
        NotFoundError: If the reservation or new cabana does not exist
        InvalidStateTransitionError: If the reservation is not APPROVED
    """
    changes = _validate_modification(data)

    with transaction() as db:
        reservation = load_reservation(db, reservation_id)
        _require_owner(reservation, user_id)
        require_status(reservation, STATUS_APPROVED)

        target = _target_values(reservation, changes)
        errors = validate_date_range(target['start_date'], target['end_date'])
        if 'new_start_date' in changes and not errors:
            errors.update(validate_not_in_past(target['start_date'], get_today()))
        if errors:
            raise ValidationError(MESSAGES['validation_failed'], {
                f'new_{field}': message for field, message in errors.items()
            })

        if 'new_cabana_id' in changes:
            cabana = get_cabana_by_id(changes['new_cabana_id'])
            if not cabana:
                raise NotFoundError(MESSAGES['cabana_not_found'], entity='cabana',
                                    entity_id=changes['new_cabana_id'])
            if not is_bookable(cabana):
                raise ValidationError(MESSAGES['cabana_closed'],
                                      {'new_cabana_id': MESSAGES['cabana_closed']})

        cursor = db.execute('''
            INSERT INTO modification_requests
            (reservation_id, requested_by, new_cabana_id, new_start_date, new_end_date,
             new_guest_name, status)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        ''', (reservation_id, user_id, changes.get('new_cabana_id'),
              changes.get('new_start_date'), changes.get('new_end_date'),
              changes.get('new_guest_name'), REQUEST_PENDING))
        request_id = cursor.lastrowid

        reservation = apply_transition(db, reservation, STATUS_MODIFICATION_PENDING, user_id,
                                       reason=f'Solicitud de modificación #{request_id}')
        request = dict(db.execute('SELECT * FROM modification_requests WHERE id = ?',
                                  (request_id,)).fetchone())

    logger.info(f"Modification request {request_id} opened on reservation {reservation_id}")
    audit_after_commit(ACTION_MODIFY_REQUEST, 'reservation', reservation_id,
                       after={'request_id': request_id, **changes}, user_id=user_id)
    publish(EVENT_MODIFICATION_REQUESTED, reservation, user_id, request_id=request_id)
    return request


def resolve_modification_request(reservation_id: int, request_id: int, user_id: int,
                                 action: str, reason: str = None, total_price=None) -> dict:
    """
    Approve or reject a pending modification request.

    Approval re-runs the conflict guard on the target cabana and dates
    (excluding the reservation itself), reprices the stay unless a manual
    total is given, and moves cabana status when the cabana changes. On
    conflict nothing is written and the reservation stays MODIFICATION_PENDING.

    Args:
        reservation_id: Reservation ID
        request_id: Modification request ID
        user_id: Approving user
        action: 'approve' or 'reject'
        reason: Required when rejecting
        total_price: Optional manual total on approval

    Returns:
        The reservation dict after resolution

    Raises:
        ValidationError: If action, reason or price is invalid, or the new
            cabana was closed after the request was filed
        NotFoundError: If the reservation or request does not exist
        InvalidStateTransitionError: If the request is resolved or the
            reservation is not MODIFICATION_PENDING
        ConflictError: If the target range is held by another reservation
    """
    action = _parse_action(action)
    if action == ACTION_REJECT:
        reason = require_reason(reason)
    manual_price = parse_price(total_price) if total_price is not None else None

    with transaction() as db:
        reservation = load_reservation(db, reservation_id)
        request = _load_pending_request(db, MODIFICATION_TABLE, request_id, reservation_id)
        require_status(reservation, STATUS_MODIFICATION_PENDING)
        before = {key: reservation[key] for key in
                  ('cabana_id', 'start_date', 'end_date', 'guest_name', 'total_price')}

        if action == ACTION_REJECT:
            _resolve_request(db, MODIFICATION_TABLE, request_id, REQUEST_REJECTED, user_id, reason)
            reservation = apply_transition(db, reservation, STATUS_APPROVED, user_id,
                                           reason=f'Modificación rechazada: {reason}')
        else:
            target = _target_values(reservation, request)
            if request.get('new_cabana_id'):
                cabana = get_cabana_by_id(target['cabana_id'])
                if not is_bookable(cabana):
                    raise ValidationError(MESSAGES['cabana_closed'],
                                          {'new_cabana_id': MESSAGES['cabana_closed']})
            check_and_reserve(db, target['cabana_id'], target['start_date'], target['end_date'],
                              exclude_reservation_id=reservation_id)

            if manual_price is None:
                cabana = get_cabana_by_id(target['cabana_id'])
                breakdown = calculate_price(target['cabana_id'], cabana['concept_id'],
                                            target['start_date'], target['end_date'])
                extras_total = db.execute('''
                    SELECT COALESCE(SUM(quantity * unit_price), 0)
                    FROM extra_items WHERE reservation_id = ?
                ''', (reservation_id,)).fetchone()[0]
                price = round(breakdown['grand_total'] + extras_total, 2)
            else:
                price = manual_price

            if target['cabana_id'] != reservation['cabana_id']:
                flip_cabana_status(db, reservation['cabana_id'], CABANA_AVAILABLE)
                flip_cabana_status(db, target['cabana_id'], CABANA_RESERVED)

            _resolve_request(db, MODIFICATION_TABLE, request_id, REQUEST_APPROVED, user_id)
            reservation = apply_transition(db, reservation, STATUS_APPROVED, user_id,
                                           reason='Solicitud de modificación aprobada',
                                           total_price=price, **target)

    logger.info(f"Modification request {request_id} {action}d by user {user_id}")
    audit_after_commit(
        ACTION_MODIFY_APPROVE if action == ACTION_APPROVE else ACTION_MODIFY_REJECT,
        'reservation', reservation_id,
        before=before,
        after={key: reservation[key] for key in before} | {'request_id': request_id},
        user_id=user_id
    )
    publish(EVENT_MODIFICATION_RESOLVED, reservation, user_id,
            request_id=request_id, decision=action, reason=reason)
    return reservation


# =============================================================================
# CANCELLATION REQUESTS
# =============================================================================

def create_cancellation_request(reservation_id: int, user_id: int, reason: str) -> dict:
    """
    Ask to cancel an APPROVED reservation.

    Raises:
        ValidationError: If the reason is missing
        PermissionDeniedError: If the caller does not own the reservation
        NotFoundError: If the reservation does not exist
        InvalidStateTransitionError: If the reservation is not APPROVED
    """
    reason = require_reason(reason)

    with transaction() as db:
        reservation = load_reservation(db, reservation_id)
        _require_owner(reservation, user_id)
        require_status(reservation, STATUS_APPROVED)

        cursor = db.execute('''
            INSERT INTO cancellation_requests (reservation_id, requested_by, reason, status)
            VALUES (?, ?, ?, ?)
        ''', (reservation_id, user_id, reason, REQUEST_PENDING))
        request_id = cursor.lastrowid

        reservation = apply_transition(db, reservation, STATUS_MODIFICATION_PENDING, user_id,
                                       reason=f'Solicitud de cancelación #{request_id}: {reason}')
        request = dict(db.execute('SELECT * FROM cancellation_requests WHERE id = ?',
                                  (request_id,)).fetchone())

    logger.info(f"Cancellation request {request_id} opened on reservation {reservation_id}")
    audit_after_commit(ACTION_CANCEL_REQUEST, 'reservation', reservation_id,
                       after={'request_id': request_id, 'reason': reason}, user_id=user_id)
    publish(EVENT_CANCELLATION_REQUESTED, reservation, user_id, request_id=request_id,
            reason=reason)
    return request


def resolve_cancellation_request(reservation_id: int, request_id: int, user_id: int,
                                 action: str, reason: str = None) -> dict:
    """
    Approve or reject a pending cancellation request.

    Approval cancels the reservation and frees its cabana; rejection returns
    the reservation to APPROVED.

    Returns:
        The reservation dict after resolution

    Raises:
        ValidationError: If action or reason is invalid
        NotFoundError: If the reservation or request does not exist
        InvalidStateTransitionError: If the request is resolved or the
            reservation is not MODIFICATION_PENDING
    """
    action = _parse_action(action)
    if action == ACTION_REJECT:
        reason = require_reason(reason)

    with transaction() as db:
        reservation = load_reservation(db, reservation_id)
        _load_pending_request(db, CANCELLATION_TABLE, request_id, reservation_id)
        require_status(reservation, STATUS_MODIFICATION_PENDING)

        if action == ACTION_REJECT:
            _resolve_request(db, CANCELLATION_TABLE, request_id, REQUEST_REJECTED, user_id, reason)
            reservation = apply_transition(db, reservation, STATUS_APPROVED, user_id,
                                           reason=f'Cancelación rechazada: {reason}')
        else:
            _resolve_request(db, CANCELLATION_TABLE, request_id, REQUEST_APPROVED, user_id)
            reservation = apply_transition(db, reservation, STATUS_CANCELLED, user_id,
                                           reason='Solicitud de cancelación aprobada')
            flip_cabana_status(db, reservation['cabana_id'], CABANA_AVAILABLE)

    logger.info(f"Cancellation request {request_id} {action}d by user {user_id}")
    audit_after_commit(
        ACTION_CANCEL_APPROVE if action == ACTION_APPROVE else ACTION_CANCEL_REJECT,
        'reservation', reservation_id,
        before={'status': STATUS_MODIFICATION_PENDING},
        after={'status': reservation['status'], 'request_id': request_id, 'reason': reason},
        user_id=user_id
    )
    publish(EVENT_CANCELLATION_RESOLVED, reservation, user_id,
            request_id=request_id, decision=action, reason=reason)
    return reservation
