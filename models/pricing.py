"""
Pricing data access and the layered price resolver.

Cabana nightly price precedence, per day of the half-open stay [start, end):
    1. Per-day override (cabana_prices)
    2. Date-range price (cabana_price_ranges), highest priority first,
       most recently created on ties
    3. Nothing matched: the day contributes 0

Concept contents use the concept override price when present, otherwise the
product's general sale price. Extras always use the current sale price.
calculate_price() only reads; it is safe inside or outside a transaction.
"""

import logging
from typing import Optional, Dict, List

from database import get_db, transaction
from models.product import get_products_by_ids
from utils.audit import audit_after_commit, ACTION_CREATE, ACTION_UPDATE, ACTION_DELETE
from utils.datetime_helpers import parse_date, iter_days
from utils.errors import NotFoundError, ValidationError
from utils.messages import MESSAGES
from utils.validators import validate_date_format, validate_date_range, parse_price, parse_positive_int

logger = logging.getLogger(__name__)

PRICE_SOURCE_CABANA = 'CABANA_SPECIFIC'
PRICE_SOURCE_CONCEPT = 'CONCEPT_SPECIFIC'
PRICE_SOURCE_GENERAL = 'GENERAL'

ITEM_CABANA_DAILY = 'cabana_daily'
ITEM_CABANA_RANGE = 'cabana_range'
ITEM_CONCEPT = 'concept'
ITEM_EXTRA = 'extra'


def _money(value: float) -> float:
    return round(value, 2)


# =============================================================================
# PRICE TIERS: READ
# =============================================================================

def get_cabana_prices(cabana_id: int, start_date: str = None, end_date: str = None) -> List[Dict]:
    """
    Get per-day price overrides for a cabana.

    Args:
        cabana_id: Cabana ID
        start_date: Optional inclusive lower bound (YYYY-MM-DD)
        end_date: Optional exclusive upper bound (YYYY-MM-DD)

    Returns:
        List of dicts ordered by date
    """
    query = 'SELECT * FROM cabana_prices WHERE cabana_id = ?'
    params = [cabana_id]
    if start_date:
        query += ' AND date >= ?'
        params.append(start_date)
    if end_date:
        query += ' AND date < ?'
        params.append(end_date)
    query += ' ORDER BY date'
    return [dict(row) for row in get_db().execute(query, params).fetchall()]


def get_price_ranges(cabana_id: int, start_date: str = None, end_date: str = None) -> List[Dict]:
    """
    Get date-range prices for a cabana in resolution order.

    When both bounds are given, only ranges overlapping [start_date, end_date)
    are returned.

    Returns:
        List of range dicts, highest priority first
    """
    query = 'SELECT * FROM cabana_price_ranges WHERE cabana_id = ?'
    params = [cabana_id]
    if start_date and end_date:
        query += ' AND start_date < ? AND end_date > ?'
        params.extend([end_date, start_date])
    query += ' ORDER BY priority DESC, id DESC'
    return [dict(row) for row in get_db().execute(query, params).fetchall()]


# =============================================================================
# PRICE TIERS: WRITE
# =============================================================================

def upsert_cabana_price(cabana_id: int, date: str, daily_price, user_id: int = None) -> Dict:
    """
    Create or replace the per-day price of a cabana.

    Args:
        cabana_id: Cabana ID
        date: Day (YYYY-MM-DD)
        daily_price: Price for that day (>= 0)
        user_id: Acting system admin

    Returns:
        The stored price row

    Raises:
        ValidationError: If the date or price is invalid
        NotFoundError: If the cabana does not exist
    """
    if not validate_date_format(date):
        raise ValidationError(MESSAGES['validation_failed'], {'date': MESSAGES['invalid_date']})
    daily_price = parse_price(daily_price, field='daily_price')

    with transaction() as db:
        if not db.execute('SELECT 1 FROM cabanas WHERE id = ?', (cabana_id,)).fetchone():
            raise NotFoundError(MESSAGES['cabana_not_found'], entity='cabana', entity_id=cabana_id)
        previous = db.execute('''
            SELECT daily_price FROM cabana_prices WHERE cabana_id = ? AND date = ?
        ''', (cabana_id, date)).fetchone()
        db.execute('''
            INSERT INTO cabana_prices (cabana_id, date, daily_price)
            VALUES (?, ?, ?)
            ON CONFLICT(cabana_id, date)
            DO UPDATE SET daily_price = excluded.daily_price, updated_at = CURRENT_TIMESTAMP
        ''', (cabana_id, date, daily_price))
        row = db.execute('''
            SELECT * FROM cabana_prices WHERE cabana_id = ? AND date = ?
        ''', (cabana_id, date)).fetchone()

    audit_after_commit(ACTION_UPDATE, 'cabana_price', cabana_id,
                       before={'date': date, 'daily_price': previous['daily_price'] if previous else None},
                       after={'date': date, 'daily_price': daily_price},
                       user_id=user_id)
    return dict(row)


def create_price_range(cabana_id: int, start_date: str, end_date: str, daily_price,
                       label: str = None, priority=0, user_id: int = None) -> Dict:
    """
    Create a date-range price for a cabana.

    Args:
        cabana_id: Cabana ID
        start_date: First day covered (YYYY-MM-DD)
        end_date: First day not covered (YYYY-MM-DD)
        daily_price: Price per day (> 0)
        label: Optional display label (e.g. 'Temporada alta')
        priority: Resolution priority (>= 0, higher wins)
        user_id: Acting system admin

    Returns:
        The created range row

    Raises:
        ValidationError: If any field is invalid
        NotFoundError: If the cabana does not exist
    """
    errors = validate_date_range(start_date, end_date)

    try:
        daily_price = parse_price(daily_price, field='daily_price')
        if daily_price <= 0:
            errors['daily_price'] = MESSAGES['invalid_price']
    except ValidationError as e:
        errors.update(e.fields)

    if isinstance(priority, bool) or not isinstance(priority, int) or priority < 0:
        errors['priority'] = MESSAGES['invalid_value']

    if errors:
        raise ValidationError(MESSAGES['validation_failed'], errors)

    with transaction() as db:
        if not db.execute('SELECT 1 FROM cabanas WHERE id = ?', (cabana_id,)).fetchone():
            raise NotFoundError(MESSAGES['cabana_not_found'], entity='cabana', entity_id=cabana_id)
        cursor = db.execute('''
            INSERT INTO cabana_price_ranges (cabana_id, start_date, end_date, daily_price, label, priority)
            VALUES (?, ?, ?, ?, ?, ?)
        ''', (cabana_id, start_date, end_date, daily_price, label, priority))
        range_id = cursor.lastrowid
        row = db.execute('SELECT * FROM cabana_price_ranges WHERE id = ?', (range_id,)).fetchone()

    audit_after_commit(ACTION_CREATE, 'cabana_price_range', range_id, after=dict(row), user_id=user_id)
    return dict(row)


def delete_price_range(range_id: int, user_id: int = None) -> None:
    """
    Delete a date-range price.

    Raises:
        NotFoundError: If the range does not exist
    """
    with transaction() as db:
        row = db.execute('SELECT * FROM cabana_price_ranges WHERE id = ?', (range_id,)).fetchone()
        if not row:
            raise NotFoundError(MESSAGES['price_range_not_found'],
                                entity='cabana_price_range', entity_id=range_id)
        db.execute('DELETE FROM cabana_price_ranges WHERE id = ?', (range_id,))

    audit_after_commit(ACTION_DELETE, 'cabana_price_range', range_id, before=dict(row), user_id=user_id)


# =============================================================================
# PRICE RESOLVER
# =============================================================================

def _resolve_cabana_days(cabana_id: int, start_date: str, end_date: str) -> List[Dict]:
    """
    Build the cabana line items for a stay.

    Returns:
        Line items: at most one per-day line, then one line per range used
    """
    days = [d.isoformat() for d in iter_days(parse_date(start_date), parse_date(end_date))]
    if not days:
        return []

    daily = {row['date']: row['daily_price']
             for row in get_cabana_prices(cabana_id, start_date, end_date)}
    ranges = get_price_ranges(cabana_id, start_date, end_date)

    daily_total = 0.0
    daily_count = 0
    range_usage = {}  # range id -> number of days

    for day in days:
        if day in daily:
            daily_total += daily[day]
            daily_count += 1
            continue
        # ranges are already in priority order; ISO strings compare as dates
        for price_range in ranges:
            if price_range['start_date'] <= day < price_range['end_date']:
                range_usage[price_range['id']] = range_usage.get(price_range['id'], 0) + 1
                break

    items = []
    if daily_count:
        items.append({
            'kind': ITEM_CABANA_DAILY,
            'name': 'Tarifa diaria de cabana',
            'quantity': daily_count,
            'unit_price': _money(daily_total / daily_count),
            'total': _money(daily_total),
            'source': PRICE_SOURCE_CABANA,
        })

    for price_range in ranges:
        count = range_usage.get(price_range['id'])
        if not count:
            continue
        items.append({
            'kind': ITEM_CABANA_RANGE,
            'name': price_range['label'] or 'Tarifa de temporada',
            'quantity': count,
            'unit_price': _money(price_range['daily_price']),
            'total': _money(price_range['daily_price'] * count),
            'source': PRICE_SOURCE_CABANA,
            'price_range_id': price_range['id'],
        })

    return items


def _resolve_concept(concept_id: int) -> List[Dict]:
    from models.concept import get_concept_by_id

    concept = get_concept_by_id(concept_id)
    if not concept:
        raise NotFoundError(MESSAGES['concept_not_found'], entity='concept', entity_id=concept_id)

    items = []
    for product in concept['products']:
        overridden = product['concept_price'] is not None
        unit_price = product['concept_price'] if overridden else product['sale_price']
        items.append({
            'kind': ITEM_CONCEPT,
            'name': product['name'],
            'product_id': product['product_id'],
            'quantity': product['quantity'],
            'unit_price': _money(unit_price),
            'total': _money(unit_price * product['quantity']),
            'source': PRICE_SOURCE_CONCEPT if overridden else PRICE_SOURCE_GENERAL,
        })
    return items


def normalize_extra_items(extra_items) -> List[Dict]:
    """
    Validate an extras payload.

    Args:
        extra_items: List of {'product_id': int, 'quantity': int}

    Returns:
        List of normalized {'product_id', 'quantity'} dicts

    Raises:
        ValidationError: If the list or any entry is malformed
    """
    if extra_items is None:
        return []
    if not isinstance(extra_items, list):
        raise ValidationError(MESSAGES['validation_failed'], {'extra_items': MESSAGES['invalid_value']})

    normalized = []
    errors = {}
    for index, item in enumerate(extra_items):
        if not isinstance(item, dict):
            errors[f'extra_items[{index}]'] = MESSAGES['invalid_value']
            continue
        product_id = parse_positive_int(item.get('product_id'))
        quantity = parse_positive_int(item.get('quantity'))
        if product_id is None:
            errors[f'extra_items[{index}].product_id'] = MESSAGES['invalid_value']
        if quantity is None:
            errors[f'extra_items[{index}].quantity'] = MESSAGES['invalid_quantity']
        if product_id is not None and quantity is not None:
            normalized.append({'product_id': product_id, 'quantity': quantity})

    if errors:
        raise ValidationError(MESSAGES['validation_failed'], errors)
    return normalized


def _resolve_extras(extra_items: List[Dict]) -> List[Dict]:
    products = get_products_by_ids(item['product_id'] for item in extra_items)
    missing = sorted({item['product_id'] for item in extra_items} - set(products))
    if missing:
        raise ValidationError(
            MESSAGES['validation_failed'],
            {'extra_items': f"{MESSAGES['product_not_found']}: {', '.join(map(str, missing))}"}
        )

    items = []
    for item in extra_items:
        product = products[item['product_id']]
        items.append({
            'kind': ITEM_EXTRA,
            'name': product['name'],
            'product_id': product['id'],
            'quantity': item['quantity'],
            'unit_price': _money(product['sale_price']),
            'total': _money(product['sale_price'] * item['quantity']),
            'source': PRICE_SOURCE_GENERAL,
        })
    return items


def calculate_price(cabana_id: int, concept_id: Optional[int], start_date: str,
                    end_date: str, extra_items: list = None) -> Dict:
    """
    Compute the itemized price of a stay.

    Args:
        cabana_id: Cabana ID
        concept_id: Optional concept (package) ID
        start_date: First day (YYYY-MM-DD)
        end_date: Exclusive last day (YYYY-MM-DD); equal to start_date gives
            a zero cabana total
        extra_items: Optional list of {'product_id', 'quantity'}

    Returns:
        dict: {
            'cabana_daily': float,
            'concept_total': float,
            'extras_total': float,
            'grand_total': float,
            'price_source': 'CABANA_SPECIFIC' | 'CONCEPT_SPECIFIC' | 'GENERAL',
            'items': [{'kind', 'name', 'quantity', 'unit_price', 'total', 'source', ...}]
        }

    Raises:
        ValidationError: If dates are malformed, start is after end, or an
            extra references an unknown product
        NotFoundError: If the concept does not exist
    """
    errors = {}
    if not validate_date_format(start_date):
        errors['start_date'] = MESSAGES['invalid_date']
    if not validate_date_format(end_date):
        errors['end_date'] = MESSAGES['invalid_date']
    if not errors and start_date > end_date:
        errors['end_date'] = MESSAGES['invalid_date_range']
    if errors:
        raise ValidationError(MESSAGES['validation_failed'], errors)

    cabana_items = _resolve_cabana_days(cabana_id, start_date, end_date)
    concept_items = _resolve_concept(concept_id) if concept_id else []
    extra_lines = _resolve_extras(normalize_extra_items(extra_items))

    cabana_daily = _money(sum(item['total'] for item in cabana_items))
    concept_total = _money(sum(item['total'] for item in concept_items))
    extras_total = _money(sum(item['total'] for item in extra_lines))

    concept_override_total = sum(item['total'] for item in concept_items
                                 if item['source'] == PRICE_SOURCE_CONCEPT)
    if cabana_daily > 0:
        price_source = PRICE_SOURCE_CABANA
    elif concept_override_total > 0:
        price_source = PRICE_SOURCE_CONCEPT
    else:
        price_source = PRICE_SOURCE_GENERAL

    return {
        'cabana_daily': cabana_daily,
        'concept_total': concept_total,
        'extras_total': extras_total,
        'grand_total': _money(cabana_daily + concept_total + extras_total),
        'price_source': price_source,
        'items': cabana_items + concept_items + extra_lines,
    }
