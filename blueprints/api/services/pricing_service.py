"""
Pricing Service - orchestration for price previews.

Handles:
- Preview payload validation
- Defaulting the concept to the cabana's own concept
- Delegating to the layered price resolver
"""

from typing import Dict, Any

from models.cabana import require_cabana
from models.concept import get_concept_by_id
from models.pricing import calculate_price
from utils.datetime_helpers import parse_date
from utils.errors import NotFoundError, ValidationError
from utils.messages import MESSAGES
from utils.validators import validate_date_format, parse_positive_int


def preview_reservation_price(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Price a prospective stay without writing anything.

    Args:
        data: {
            "cabana_id": int,
            "start_date": "YYYY-MM-DD",
            "end_date": "YYYY-MM-DD",
            "concept_id": int | null (optional; defaults to the cabana's concept,
                          explicit null prices without a concept),
            "extra_items": [{"product_id": int, "quantity": int}] (optional)
        }

    Returns:
        Price breakdown dict plus cabana_id, concept_id and nights

    Raises:
        ValidationError: If the payload is malformed
        NotFoundError: If the cabana or concept does not exist
    """
    errors = {}

    cabana_id = parse_positive_int(data.get('cabana_id'))
    if cabana_id is None:
        errors['cabana_id'] = MESSAGES['field_required']

    for field in ('start_date', 'end_date'):
        if not data.get(field):
            errors[field] = MESSAGES['field_required']
        elif not validate_date_format(data[field]):
            errors[field] = MESSAGES['invalid_date']

    if not errors and data['start_date'] > data['end_date']:
        errors['end_date'] = MESSAGES['invalid_date_range']

    concept_id = None
    if 'concept_id' in data and data['concept_id'] is not None:
        concept_id = parse_positive_int(data['concept_id'])
        if concept_id is None:
            errors['concept_id'] = MESSAGES['invalid_value']

    if errors:
        raise ValidationError(MESSAGES['validation_failed'], errors)

    cabana = require_cabana(cabana_id)
    if 'concept_id' not in data:
        concept_id = cabana['concept_id']
    elif concept_id is not None and not get_concept_by_id(concept_id):
        raise NotFoundError(MESSAGES['concept_not_found'], entity='concept', entity_id=concept_id)

    breakdown = calculate_price(cabana_id, concept_id, data['start_date'], data['end_date'],
                                data.get('extra_items'))
    breakdown.update({
        'cabana_id': cabana_id,
        'concept_id': concept_id,
        'nights': (parse_date(data['end_date']) - parse_date(data['start_date'])).days,
    })
    return breakdown
