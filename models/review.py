"""
Guest reviews.
One review per reservation, left by the requester after check-out.
"""

import logging
import sqlite3
from typing import Optional

from database import get_db, transaction
from models.reservation_state import STATUS_CHECKED_OUT, load_reservation, require_status
from utils.audit import audit_after_commit, ACTION_CREATE
from utils.errors import ValidationError, PermissionDeniedError, DuplicateReviewError
from utils.messages import MESSAGES
from utils.validators import sanitize_input

logger = logging.getLogger(__name__)


def get_review_for_reservation(reservation_id: int) -> Optional[dict]:
    """Get the review of a reservation, if any."""
    row = get_db().execute('SELECT * FROM reviews WHERE reservation_id = ?',
                           (reservation_id,)).fetchone()
    return dict(row) if row else None


def create_review(reservation_id: int, user_id: int, rating, comment: str = None) -> dict:
    """
    Record the guest review of a completed stay.

    Args:
        reservation_id: Reservation ID
        user_id: Reviewing user (must own the reservation)
        rating: Integer from 1 to 5
        comment: Optional free text

    Returns:
        The created review dict

    Raises:
        ValidationError: If the rating is out of range
        PermissionDeniedError: If the caller does not own the reservation
        NotFoundError: If the reservation does not exist
        InvalidStateTransitionError: If the reservation is not CHECKED_OUT
        DuplicateReviewError: If a review already exists
    """
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError(MESSAGES['validation_failed'], {'rating': MESSAGES['invalid_rating']})
    comment = sanitize_input(comment, max_length=2000) or None

    with transaction() as db:
        reservation = load_reservation(db, reservation_id)
        if reservation['user_id'] != user_id:
            raise PermissionDeniedError(MESSAGES['not_owner'], reservation_id=reservation_id)
        require_status(reservation, STATUS_CHECKED_OUT)

        try:
            cursor = db.execute('''
                INSERT INTO reviews (reservation_id, user_id, rating, comment)
                VALUES (?, ?, ?, ?)
            ''', (reservation_id, user_id, rating, comment))
        except sqlite3.IntegrityError as e:
            raise DuplicateReviewError(MESSAGES['review_exists'], reservation_id=reservation_id) from e

        review = dict(db.execute('SELECT * FROM reviews WHERE id = ?',
                                 (cursor.lastrowid,)).fetchone())

    logger.info(f"Review {review['id']} recorded for reservation {reservation_id}")
    audit_after_commit(ACTION_CREATE, 'review', review['id'],
                       after={'reservation_id': reservation_id, 'rating': rating},
                       user_id=user_id)
    return review
