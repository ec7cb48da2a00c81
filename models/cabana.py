"""
Cabana model and data access functions.
Resource store: cabana records and their occupancy status.

Status is a cache of "is it booked now". The reservation lifecycle flips it on
approval, cancellation, modification and check-out; reconcile_cabana_statuses()
recomputes it from committed reservations when it has drifted.
"""

import logging
from typing import Optional

from database import get_db, transaction
from utils.audit import audit_after_commit, ACTION_UPDATE
from utils.errors import NotFoundError, ValidationError
from utils.messages import MESSAGES

logger = logging.getLogger(__name__)

CABANA_AVAILABLE = 'AVAILABLE'
CABANA_RESERVED = 'RESERVED'
CABANA_CLOSED = 'CLOSED'

CABANA_STATUSES = (CABANA_AVAILABLE, CABANA_RESERVED, CABANA_CLOSED)


# =============================================================================
# READ OPERATIONS
# =============================================================================

def get_all_cabanas(status: str = None, open_only: bool = False) -> list:
    """
    Get cabanas with their class and concept names.

    Args:
        status: Optional status filter
        open_only: Only cabanas open for reservation

    Returns:
        List of cabana dicts ordered by name
    """
    db = get_db()
    query = '''
        SELECT c.*, cc.name as class_name, co.name as concept_name
        FROM cabanas c
        LEFT JOIN cabana_classes cc ON c.class_id = cc.id
        LEFT JOIN concepts co ON c.concept_id = co.id
        WHERE 1=1
    '''
    params = []
    if status:
        query += ' AND c.status = ?'
        params.append(status)
    if open_only:
        query += ' AND c.is_open_for_reservation = 1'
    query += ' ORDER BY c.name'

    return [dict(row) for row in db.execute(query, params).fetchall()]


def get_cabana_by_id(cabana_id: int) -> Optional[dict]:
    """
    Get cabana by ID.

    Args:
        cabana_id: Cabana ID

    Returns:
        Cabana dict or None if not found
    """
    db = get_db()
    row = db.execute('''
        SELECT c.*, cc.name as class_name, co.name as concept_name
        FROM cabanas c
        LEFT JOIN cabana_classes cc ON c.class_id = cc.id
        LEFT JOIN concepts co ON c.concept_id = co.id
        WHERE c.id = ?
    ''', (cabana_id,)).fetchone()
    return dict(row) if row else None


def require_cabana(cabana_id: int) -> dict:
    """
    Get cabana or raise.

    Raises:
        NotFoundError: If the cabana does not exist
    """
    cabana = get_cabana_by_id(cabana_id)
    if not cabana:
        raise NotFoundError(MESSAGES['cabana_not_found'], entity='cabana', entity_id=cabana_id)
    return cabana


def is_bookable(cabana: dict) -> bool:
    """A cabana accepts new requests when it is open and not closed."""
    return bool(cabana['is_open_for_reservation']) and cabana['status'] != CABANA_CLOSED


# =============================================================================
# STATUS FLIPS (called inside the caller's transaction)
# =============================================================================

def flip_cabana_status(db, cabana_id: int, status: str) -> bool:
    """
    Set occupancy status as part of a reservation transition.

    A CLOSED cabana is left untouched: manual closure wins over lifecycle flips.

    Args:
        db: Connection with an open transaction
        cabana_id: Cabana ID
        status: AVAILABLE or RESERVED

    Returns:
        True if the row changed
    """
    cursor = db.execute('''
        UPDATE cabanas
        SET status = ?, updated_at = CURRENT_TIMESTAMP
        WHERE id = ? AND status != ?
    ''', (status, cabana_id, CABANA_CLOSED))
    return cursor.rowcount > 0


# =============================================================================
# MANUAL ADMINISTRATION
# =============================================================================

def update_cabana_status(cabana_id: int, status: str, user_id: int = None) -> dict:
    """
    Manually override a cabana's status.

    Args:
        cabana_id: Cabana ID
        status: New status (AVAILABLE, RESERVED, CLOSED)
        user_id: Acting system admin

    Returns:
        Updated cabana dict

    Raises:
        ValidationError: If status is unknown
        NotFoundError: If the cabana does not exist
    """
    if status not in CABANA_STATUSES:
        raise ValidationError(MESSAGES['validation_failed'], {'status': MESSAGES['invalid_status']})

    with transaction() as db:
        row = db.execute('SELECT status FROM cabanas WHERE id = ?', (cabana_id,)).fetchone()
        if not row:
            raise NotFoundError(MESSAGES['cabana_not_found'], entity='cabana', entity_id=cabana_id)
        old_status = row['status']
        db.execute('''
            UPDATE cabanas SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?
        ''', (status, cabana_id))

    logger.info(f"Cabana {cabana_id} status overridden {old_status} -> {status} by user {user_id}")
    audit_after_commit(ACTION_UPDATE, 'cabana', cabana_id,
                       before={'status': old_status}, after={'status': status}, user_id=user_id)
    return get_cabana_by_id(cabana_id)


def set_open_for_reservation(cabana_id: int, is_open: bool, user_id: int = None) -> dict:
    """
    Open or close a cabana for new reservation requests.

    Returns:
        Updated cabana dict

    Raises:
        NotFoundError: If the cabana does not exist
    """
    with transaction() as db:
        row = db.execute('SELECT is_open_for_reservation FROM cabanas WHERE id = ?',
                         (cabana_id,)).fetchone()
        if not row:
            raise NotFoundError(MESSAGES['cabana_not_found'], entity='cabana', entity_id=cabana_id)
        db.execute('''
            UPDATE cabanas SET is_open_for_reservation = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
        ''', (1 if is_open else 0, cabana_id))

    audit_after_commit(ACTION_UPDATE, 'cabana', cabana_id,
                       before={'is_open_for_reservation': bool(row['is_open_for_reservation'])},
                       after={'is_open_for_reservation': bool(is_open)}, user_id=user_id)
    return get_cabana_by_id(cabana_id)


# =============================================================================
# RECONCILIATION
# =============================================================================

def reconcile_cabana_statuses(today: str, dry_run: bool = False) -> list:
    """
    Recompute cabana status from committed reservations covering a day.

    A cabana with a committed reservation where start <= today < end is
    RESERVED, otherwise AVAILABLE. CLOSED cabanas are never touched.

    Args:
        today: Day to evaluate (YYYY-MM-DD)
        dry_run: Report drift without writing

    Returns:
        List of dicts {cabana_id, name, current, expected} for drifted cabanas
    """
    from models.reservation_state import COMMITTED_STATUSES

    placeholders = ','.join('?' * len(COMMITTED_STATUSES))

    with transaction() as db:
        rows = db.execute(f'''
            SELECT c.id, c.name, c.status,
                   EXISTS (
                       SELECT 1 FROM reservations r
                       WHERE r.cabana_id = c.id
                         AND r.status IN ({placeholders})
                         AND r.start_date <= ? AND r.end_date > ?
                   ) AS occupied
            FROM cabanas c
            WHERE c.status != ?
            ORDER BY c.id
        ''', (*COMMITTED_STATUSES, today, today, CABANA_CLOSED)).fetchall()

        drift = []
        for row in rows:
            expected = CABANA_RESERVED if row['occupied'] else CABANA_AVAILABLE
            if row['status'] != expected:
                drift.append({
                    'cabana_id': row['id'],
                    'name': row['name'],
                    'current': row['status'],
                    'expected': expected,
                })
                if not dry_run:
                    flip_cabana_status(db, row['id'], expected)

    if drift:
        logger.info(f"Cabana status drift on {today}: {len(drift)} cabana(s)"
                    f"{' (dry run)' if dry_run else ' fixed'}")
    return drift
