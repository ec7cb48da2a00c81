"""
Extra items added to approved reservations by fulfillment staff.

Unit prices are snapshotted at insert time. The reservation total is
recomputed as (previous total - previous extras) + all extras, so repeated
additions never count the same extras twice.
"""

import logging

from database import get_db, transaction
from models.pricing import normalize_extra_items
from models.product import get_products_by_ids
from models.reservation_events import publish, EVENT_EXTRAS_ADDED
from models.reservation_state import STATUS_APPROVED, load_reservation, require_status
from utils.audit import audit_after_commit, ACTION_EXTRA_ADD
from utils.errors import ValidationError
from utils.messages import MESSAGES

logger = logging.getLogger(__name__)


def get_extra_items(reservation_id: int) -> list:
    """
    Get extras of a reservation with product names.

    Returns:
        List of dicts with line_total, oldest first
    """
    rows = get_db().execute('''
        SELECT e.*, p.name as product_name,
               ROUND(e.quantity * e.unit_price, 2) as line_total
        FROM extra_items e
        JOIN products p ON e.product_id = p.id
        WHERE e.reservation_id = ?
        ORDER BY e.id
    ''', (reservation_id,)).fetchall()
    return [dict(row) for row in rows]


def _extras_total(db, reservation_id: int) -> float:
    return db.execute('''
        SELECT COALESCE(SUM(quantity * unit_price), 0)
        FROM extra_items WHERE reservation_id = ?
    ''', (reservation_id,)).fetchone()[0]


def add_extra_items(reservation_id: int, user_id: int, items) -> dict:
    """
    Add extra products to an APPROVED reservation.

    Args:
        reservation_id: Reservation ID
        user_id: Fulfillment user adding the items
        items: List of {'product_id': int, 'quantity': int}

    Returns:
        dict: {'reservation': ..., 'extras': [...], 'extras_total': float}

    Raises:
        ValidationError: If items are empty/malformed or reference missing or
            inactive products
        NotFoundError: If the reservation does not exist
        InvalidStateTransitionError: If the reservation is not APPROVED
    """
    items = normalize_extra_items(items)
    if not items:
        raise ValidationError(MESSAGES['extras_required'], {'items': MESSAGES['extras_required']})

    with transaction() as db:
        reservation = load_reservation(db, reservation_id)
        require_status(reservation, STATUS_APPROVED)

        products = get_products_by_ids(item['product_id'] for item in items)
        errors = {}
        for item in items:
            product = products.get(item['product_id'])
            if product is None:
                errors[f"product_{item['product_id']}"] = MESSAGES['product_not_found']
            elif not product['is_active']:
                errors[f"product_{item['product_id']}"] = MESSAGES['product_inactive']
        if errors:
            raise ValidationError(MESSAGES['validation_failed'], errors)

        previous_extras = _extras_total(db, reservation_id)

        for item in items:
            db.execute('''
                INSERT INTO extra_items (reservation_id, product_id, quantity, unit_price, added_by)
                VALUES (?, ?, ?, ?, ?)
            ''', (reservation_id, item['product_id'], item['quantity'],
                  products[item['product_id']]['sale_price'], user_id))

        all_extras = _extras_total(db, reservation_id)
        base = (reservation['total_price'] or 0) - previous_extras
        new_total = round(base + all_extras, 2)

        db.execute('''
            UPDATE reservations SET total_price = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
        ''', (new_total, reservation_id))
        reservation['total_price'] = new_total

    logger.info(f"{len(items)} extra item(s) added to reservation {reservation_id}, "
                f"total now {new_total}")
    audit_after_commit(ACTION_EXTRA_ADD, 'reservation', reservation_id,
                       before={'extras_total': round(previous_extras, 2)},
                       after={'extras_total': round(all_extras, 2), 'items': items,
                              'total_price': new_total},
                       user_id=user_id)
    publish(EVENT_EXTRAS_ADDED, reservation, user_id, items=items)

    return {
        'reservation': reservation,
        'extras': get_extra_items(reservation_id),
        'extras_total': round(all_extras, 2),
    }
