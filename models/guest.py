"""
Guest profile access.
Guest records are managed elsewhere; the reservation lifecycle only links to
them and maintains their visit counters.
"""

from typing import Optional

from database import get_db


def get_guest_by_id(guest_id: int) -> Optional[dict]:
    """
    Get guest by ID.

    Args:
        guest_id: Guest ID

    Returns:
        Guest dict or None if not found
    """
    row = get_db().execute('SELECT * FROM guests WHERE id = ?', (guest_id,)).fetchone()
    return dict(row) if row else None


def record_guest_visit(db, guest_id: int, visited_at: str) -> None:
    """
    Count a completed stay on the guest profile.

    Args:
        db: Connection with an open transaction
        guest_id: Guest ID
        visited_at: Check-out timestamp
    """
    db.execute('''
        UPDATE guests
        SET total_visits = total_visits + 1,
            last_visit_at = ?
        WHERE id = ?
    ''', (visited_at, guest_id))
