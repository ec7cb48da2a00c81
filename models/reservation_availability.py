"""
Reservation availability checks.

The conflict guard decides whether a cabana is free for a half-open stay
[start, end). Two stays overlap when existing.start < new.end and
existing.end > new.start, so a checkout day may be the next guest's arrival
day. Only committed reservations block; PENDING requests never do.
"""

import logging

from database import get_db
from models.reservation_state import COMMITTED_STATUSES
from utils.errors import ConflictError
from utils.messages import MESSAGES

logger = logging.getLogger(__name__)


def overlaps(a_start: str, a_end: str, b_start: str, b_end: str) -> bool:
    """Half-open range overlap on ISO date strings."""
    return a_start < b_end and a_end > b_start


def get_conflicting_reservations(
    cabana_id: int,
    start_date: str,
    end_date: str,
    exclude_reservation_id: int = None
) -> list:
    """
    Find committed reservations on a cabana that overlap a stay.

    Args:
        cabana_id: Cabana ID
        start_date: First day (YYYY-MM-DD)
        end_date: Exclusive last day (YYYY-MM-DD)
        exclude_reservation_id: Reservation to ignore (when changing itself)

    Returns:
        List of dicts with id, start_date, end_date, status, guest_name
    """
    db = get_db()
    placeholders = ','.join('?' * len(COMMITTED_STATUSES))
    query = f'''
        SELECT id, start_date, end_date, status, guest_name
        FROM reservations
        WHERE cabana_id = ?
          AND status IN ({placeholders})
          AND start_date < ?
          AND end_date > ?
    '''
    params = [cabana_id, *COMMITTED_STATUSES, end_date, start_date]

    if exclude_reservation_id is not None:
        query += ' AND id != ?'
        params.append(exclude_reservation_id)

    query += ' ORDER BY start_date, id'
    return [dict(row) for row in db.execute(query, params).fetchall()]


def check_cabana_availability(
    cabana_id: int,
    start_date: str,
    end_date: str,
    exclude_reservation_id: int = None
) -> dict:
    """
    Non-locking availability lookup for display purposes.

    The answer can be stale by the time a write happens; writers must use
    check_and_reserve() inside their transaction.

    Returns:
        dict: {'available': bool, 'conflicts': [...]}
    """
    conflicts = get_conflicting_reservations(cabana_id, start_date, end_date,
                                             exclude_reservation_id)
    return {'available': not conflicts, 'conflicts': conflicts}


def check_and_reserve(
    db,
    cabana_id: int,
    start_date: str,
    end_date: str,
    exclude_reservation_id: int = None
) -> None:
    """
    Assert that a cabana is free for a stay, inside the caller's transaction.

    The caller must hold the write lock (database.transaction()) so no other
    writer can commit an overlapping reservation until this transaction ends.

    Args:
        db: Connection with an open transaction
        cabana_id: Cabana ID
        start_date: First day (YYYY-MM-DD)
        end_date: Exclusive last day (YYYY-MM-DD)
        exclude_reservation_id: Reservation to ignore (when changing itself)

    Raises:
        RuntimeError: If called outside a transaction
        ConflictError: If a committed reservation overlaps the stay
    """
    if not db.in_transaction:
        raise RuntimeError('check_and_reserve() must run inside a transaction')

    conflicts = get_conflicting_reservations(cabana_id, start_date, end_date,
                                             exclude_reservation_id)
    if conflicts:
        conflicting_ids = [c['id'] for c in conflicts]
        logger.warning(
            f"Conflict on cabana {cabana_id} for {start_date}..{end_date}: "
            f"reservations {conflicting_ids}"
        )
        raise ConflictError(
            MESSAGES['cabana_unavailable'],
            cabana_id=cabana_id,
            start_date=start_date,
            end_date=end_date,
            conflicting_ids=conflicting_ids
        )
