"""
Product data access functions.
Products are imported upstream; the engine only reads names, sale prices and
the active flag.
"""

from typing import Optional, Dict, List, Iterable

from database import get_db


def get_product_by_id(product_id: int) -> Optional[Dict]:
    """
    Get product by ID.

    Args:
        product_id: Product ID

    Returns:
        Product dict or None if not found
    """
    row = get_db().execute('SELECT * FROM products WHERE id = ?', (product_id,)).fetchone()
    return dict(row) if row else None


def get_products_by_ids(product_ids: Iterable[int]) -> Dict[int, Dict]:
    """
    Get several products in one query.

    Args:
        product_ids: Product IDs (duplicates allowed)

    Returns:
        Dict mapping product ID to product dict (missing IDs are absent)
    """
    ids = sorted(set(product_ids))
    if not ids:
        return {}
    placeholders = ','.join('?' * len(ids))
    rows = get_db().execute(
        f'SELECT * FROM products WHERE id IN ({placeholders})', ids
    ).fetchall()
    return {row['id']: dict(row) for row in rows}


def get_all_products(active_only: bool = True) -> List[Dict]:
    """Get products ordered by name."""
    query = 'SELECT * FROM products'
    if active_only:
        query += ' WHERE is_active = 1'
    query += ' ORDER BY name'
    return [dict(row) for row in get_db().execute(query).fetchall()]
