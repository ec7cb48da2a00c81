"""
Pricing API endpoints: price preview and price catalog maintenance.
"""

from flask import request
from flask_login import login_required, current_user

from blueprints.api.services.pricing_service import preview_reservation_price
from models.concept import upsert_concept_price
from models.pricing import (
    upsert_cabana_price, create_price_range, delete_price_range,
    get_cabana_prices, get_price_ranges,
)
from models.cabana import require_cabana
from models.product import get_all_products
from utils.api_response import api_success, get_json_body
from utils.decorators import role_required, ROLE_APPROVER, ROLE_SYSTEM_ADMIN
from utils.errors import ValidationError
from utils.messages import MESSAGES
from utils.validators import parse_positive_int


def _require_id(data: dict, field: str) -> int:
    value = parse_positive_int(data.get(field))
    if value is None:
        raise ValidationError(MESSAGES['validation_failed'], {field: MESSAGES['field_required']})
    return value


def register_routes(bp):
    """Register pricing API routes on the blueprint."""

    @bp.route('/pricing/preview', methods=['POST'])
    @login_required
    @role_required(ROLE_APPROVER, ROLE_SYSTEM_ADMIN)
    def pricing_preview():
        """
        Price a stay without creating anything.

        Request JSON:
        {
            "cabana_id": 1,
            "start_date": "2025-06-01",
            "end_date": "2025-06-04",
            "concept_id": 1,                                  (optional)
            "extra_items": [{"product_id": 3, "quantity": 1}]  (optional)
        }

        Response JSON:
        {
            "success": true,
            "data": {
                "cabana_daily": 3000.0,
                "concept_total": 500.0,
                "extras_total": 2500.0,
                "grand_total": 6000.0,
                "price_source": "CABANA_SPECIFIC",
                "items": [...]
            }
        }
        """
        return api_success(data=preview_reservation_price(get_json_body()))

    @bp.route('/pricing/cabanas/<int:cabana_id>')
    @login_required
    @role_required(ROLE_APPROVER, ROLE_SYSTEM_ADMIN)
    def cabana_price_tiers(cabana_id):
        """
        List the per-day prices and price ranges of a cabana.

        Query params:
            start_date, end_date: optional YYYY-MM-DD window
        """
        require_cabana(cabana_id)
        start_date = request.args.get('start_date')
        end_date = request.args.get('end_date')
        return api_success(data={
            'cabana_id': cabana_id,
            'daily_prices': get_cabana_prices(cabana_id, start_date, end_date),
            'price_ranges': get_price_ranges(cabana_id, start_date, end_date),
        })

    @bp.route('/pricing/cabana-prices', methods=['PUT'])
    @login_required
    @role_required(ROLE_SYSTEM_ADMIN)
    def put_cabana_price():
        """
        Upsert a per-day cabana price.

        Request JSON: {"cabana_id": 1, "date": "2025-06-01", "daily_price": 1500}
        """
        data = get_json_body()
        row = upsert_cabana_price(_require_id(data, 'cabana_id'), data.get('date'),
                                  data.get('daily_price'), user_id=current_user.id)
        return api_success(data=row, message=MESSAGES['price_saved'])

    @bp.route('/pricing/cabana-price-ranges', methods=['POST'])
    @login_required
    @role_required(ROLE_SYSTEM_ADMIN)
    def post_price_range():
        """
        Create a date-range price.

        Request JSON:
        {"cabana_id": 1, "start_date": "2025-06-01", "end_date": "2025-09-01",
         "daily_price": 1000, "label": "Temporada alta", "priority": 1}
        """
        data = get_json_body()
        row = create_price_range(
            _require_id(data, 'cabana_id'),
            data.get('start_date'),
            data.get('end_date'),
            data.get('daily_price'),
            label=data.get('label'),
            priority=data.get('priority', 0),
            user_id=current_user.id
        )
        return api_success(data=row, message=MESSAGES['price_saved'], status=201)

    @bp.route('/pricing/cabana-price-ranges/<int:range_id>', methods=['DELETE'])
    @login_required
    @role_required(ROLE_SYSTEM_ADMIN)
    def remove_price_range(range_id):
        """Delete a date-range price."""
        delete_price_range(range_id, user_id=current_user.id)
        return api_success(message=MESSAGES['price_deleted'])

    @bp.route('/pricing/concept-prices', methods=['PUT'])
    @login_required
    @role_required(ROLE_SYSTEM_ADMIN)
    def put_concept_price():
        """
        Upsert a concept product override price.

        Request JSON: {"concept_id": 1, "product_id": 2, "price": 250}
        """
        data = get_json_body()
        row = upsert_concept_price(_require_id(data, 'concept_id'), _require_id(data, 'product_id'),
                                   data.get('price'), user_id=current_user.id)
        return api_success(data=row, message=MESSAGES['price_saved'])

    @bp.route('/products')
    @login_required
    def list_products():
        """
        List catalog products with their current sale price.

        Query params:
            all: 'true' to include inactive products
        """
        active_only = request.args.get('all', '').lower() != 'true'
        return api_success(data=get_all_products(active_only=active_only))
