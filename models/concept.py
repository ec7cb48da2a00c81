"""
Concept (package) data access functions.
A concept bundles products with quantities and may override their prices.
"""

import logging
from typing import Optional, Dict, List

from database import get_db, transaction
from utils.audit import audit_after_commit, ACTION_UPDATE
from utils.errors import NotFoundError
from utils.messages import MESSAGES
from utils.validators import parse_price

logger = logging.getLogger(__name__)


def get_concept_by_id(concept_id: int) -> Optional[Dict]:
    """
    Get concept with its product contents.

    Args:
        concept_id: Concept ID

    Returns:
        Concept dict with 'products' list, or None if not found
    """
    db = get_db()
    row = db.execute('SELECT * FROM concepts WHERE id = ?', (concept_id,)).fetchone()
    if not row:
        return None

    concept = dict(row)
    concept['products'] = get_concept_products(concept_id)
    return concept


def get_concept_products(concept_id: int) -> List[Dict]:
    """
    Get a concept's products with general and override prices.

    Returns:
        List of dicts: product_id, name, quantity, sale_price, concept_price
        (concept_price is None when no override exists)
    """
    db = get_db()
    rows = db.execute('''
        SELECT cp.product_id, cp.quantity, p.name, p.sale_price,
               pr.price as concept_price
        FROM concept_products cp
        JOIN products p ON cp.product_id = p.id
        LEFT JOIN concept_prices pr
               ON pr.concept_id = cp.concept_id AND pr.product_id = cp.product_id
        WHERE cp.concept_id = ?
        ORDER BY cp.id
    ''', (concept_id,)).fetchall()
    return [dict(row) for row in rows]


def upsert_concept_price(concept_id: int, product_id: int, price, user_id: int = None) -> Dict:
    """
    Set the override price of a product inside a concept.

    Args:
        concept_id: Concept ID
        product_id: Product ID
        price: Override price (>= 0)
        user_id: Acting system admin

    Returns:
        Dict with concept_id, product_id and price

    Raises:
        ValidationError: If price is invalid
        NotFoundError: If the concept or product does not exist
    """
    price = parse_price(price, field='price')

    with transaction() as db:
        if not db.execute('SELECT 1 FROM concepts WHERE id = ?', (concept_id,)).fetchone():
            raise NotFoundError(MESSAGES['concept_not_found'], entity='concept', entity_id=concept_id)
        if not db.execute('SELECT 1 FROM products WHERE id = ?', (product_id,)).fetchone():
            raise NotFoundError(MESSAGES['product_not_found'], entity='product', entity_id=product_id)

        previous = db.execute('''
            SELECT price FROM concept_prices WHERE concept_id = ? AND product_id = ?
        ''', (concept_id, product_id)).fetchone()

        db.execute('''
            INSERT INTO concept_prices (concept_id, product_id, price)
            VALUES (?, ?, ?)
            ON CONFLICT(concept_id, product_id)
            DO UPDATE SET price = excluded.price, updated_at = CURRENT_TIMESTAMP
        ''', (concept_id, product_id, price))

    audit_after_commit(ACTION_UPDATE, 'concept_price', concept_id,
                       before={'product_id': product_id,
                               'price': previous['price'] if previous else None},
                       after={'product_id': product_id, 'price': price},
                       user_id=user_id)
    return {'concept_id': concept_id, 'product_id': product_id, 'price': price}
