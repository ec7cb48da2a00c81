"""
Tests for the layered price resolver and price catalog maintenance.
"""

import pytest

from tests.conftest import (
    CABANA_1, CABANA_2, CONCEPT_GOLD, PRODUCT_WATER, PRODUCT_FRUIT,
    PRODUCT_CHAMPAGNE, ADMIN_ID, day,
)


def _add_range(cabana_id, start, end, price, priority=0, label=None):
    from models.pricing import create_price_range
    return create_price_range(cabana_id, start, end, price, label=label,
                              priority=priority, user_id=ADMIN_ID)


class TestCabanaDailyPrice:
    """Per-day override > date range > zero."""

    def test_no_prices_defined_is_zero(self, app):
        """Test a cabana without any tier prices to zero."""
        from models.pricing import calculate_price

        with app.app_context():
            result = calculate_price(CABANA_2, None, day('06-01'), day('06-04'))

        assert result['cabana_daily'] == 0
        assert result['grand_total'] == 0
        assert result['price_source'] == 'GENERAL'
        assert result['items'] == []

    def test_range_price_applies_per_day(self, app):
        """Test a range covering the stay charges every day."""
        from models.pricing import calculate_price

        with app.app_context():
            _add_range(CABANA_2, day('05-01'), day('09-01'), 1000, label='Temporada alta')
            result = calculate_price(CABANA_2, None, day('06-01'), day('06-04'))

        assert result['cabana_daily'] == 3000.0
        assert result['price_source'] == 'CABANA_SPECIFIC'
        assert len(result['items']) == 1
        item = result['items'][0]
        assert item['kind'] == 'cabana_range'
        assert item['name'] == 'Temporada alta'
        assert item['quantity'] == 3
        assert item['unit_price'] == 1000.0
        assert item['total'] == 3000.0

    def test_daily_override_beats_range(self, app):
        """Test a per-day price wins over a range on the same day."""
        from models.pricing import calculate_price, upsert_cabana_price

        with app.app_context():
            _add_range(CABANA_2, day('05-01'), day('09-01'), 1000)
            upsert_cabana_price(CABANA_2, day('06-02'), 1500, user_id=ADMIN_ID)
            result = calculate_price(CABANA_2, None, day('06-01'), day('06-04'))

        # 06-01 range, 06-02 override, 06-03 range
        assert result['cabana_daily'] == 3500.0
        kinds = {item['kind']: item for item in result['items']}
        assert kinds['cabana_daily']['quantity'] == 1
        assert kinds['cabana_daily']['total'] == 1500.0
        assert kinds['cabana_range']['quantity'] == 2

    def test_end_day_is_exclusive(self, app):
        """Test the end date is not charged."""
        from models.pricing import calculate_price, upsert_cabana_price

        with app.app_context():
            upsert_cabana_price(CABANA_2, day('06-04'), 999, user_id=ADMIN_ID)
            result = calculate_price(CABANA_2, None, day('06-01'), day('06-04'))

        assert result['cabana_daily'] == 0

    def test_higher_priority_range_wins(self, app):
        """Test overlapping ranges resolve by priority."""
        from models.pricing import calculate_price

        with app.app_context():
            _add_range(CABANA_2, day('05-01'), day('09-01'), 1000, priority=0)
            _add_range(CABANA_2, day('06-01'), day('06-03'), 2000, priority=5, label='Festival')
            result = calculate_price(CABANA_2, None, day('06-01'), day('06-04'))

        assert result['cabana_daily'] == 5000.0
        assert [item['name'] for item in result['items']] == ['Festival', 'Tarifa de temporada']

    def test_equal_priority_newest_range_wins(self, app):
        """Test ties go to the most recently created range."""
        from models.pricing import calculate_price

        with app.app_context():
            _add_range(CABANA_2, day('06-01'), day('06-10'), 1000)
            _add_range(CABANA_2, day('06-01'), day('06-10'), 1200)
            result = calculate_price(CABANA_2, None, day('06-01'), day('06-03'))

        assert result['cabana_daily'] == 2400.0

    def test_start_equals_end_gives_zero(self, app):
        """Test an empty stay prices to zero cabana days."""
        from models.pricing import calculate_price

        with app.app_context():
            _add_range(CABANA_2, day('05-01'), day('09-01'), 1000)
            result = calculate_price(CABANA_2, None, day('06-01'), day('06-01'))

        assert result['cabana_daily'] == 0

    def test_start_after_end_rejected(self, app):
        """Test an inverted range raises a validation error."""
        from models.pricing import calculate_price
        from utils.errors import ValidationError

        with app.app_context():
            with pytest.raises(ValidationError):
                calculate_price(CABANA_2, None, day('06-05'), day('06-01'))


class TestConceptPricing:
    """Concept contents use override price, else the general sale price."""

    def test_general_prices(self, app):
        """Test concept items at product sale prices."""
        from models.pricing import calculate_price

        with app.app_context():
            result = calculate_price(CABANA_1, CONCEPT_GOLD, day('06-01'), day('06-04'))

        # 4 x 50 + 1 x 300, once per stay
        assert result['concept_total'] == 500.0
        assert result['price_source'] == 'GENERAL'
        assert all(item['source'] == 'GENERAL' for item in result['items'])

    def test_concept_override(self, app):
        """Test a concept override price replaces the sale price."""
        from models.concept import upsert_concept_price
        from models.pricing import calculate_price

        with app.app_context():
            upsert_concept_price(CONCEPT_GOLD, PRODUCT_FRUIT, 250, user_id=ADMIN_ID)
            result = calculate_price(CABANA_1, CONCEPT_GOLD, day('06-01'), day('06-04'))

        assert result['concept_total'] == 450.0
        assert result['price_source'] == 'CONCEPT_SPECIFIC'
        fruit = next(i for i in result['items'] if i.get('product_id') == PRODUCT_FRUIT)
        assert fruit['unit_price'] == 250.0
        assert fruit['source'] == 'CONCEPT_SPECIFIC'

    def test_cabana_price_sets_source(self, app):
        """Test a cabana tier price makes the source CABANA_SPECIFIC."""
        from models.concept import upsert_concept_price
        from models.pricing import calculate_price

        with app.app_context():
            upsert_concept_price(CONCEPT_GOLD, PRODUCT_FRUIT, 250, user_id=ADMIN_ID)
            _add_range(CABANA_1, day('05-01'), day('09-01'), 800)
            result = calculate_price(CABANA_1, CONCEPT_GOLD, day('06-01'), day('06-03'))

        assert result['price_source'] == 'CABANA_SPECIFIC'
        assert result['grand_total'] == 1600.0 + 450.0

    def test_unknown_concept(self, app):
        """Test an unknown concept raises not found."""
        from models.pricing import calculate_price
        from utils.errors import NotFoundError

        with app.app_context():
            with pytest.raises(NotFoundError):
                calculate_price(CABANA_1, 999, day('06-01'), day('06-03'))


class TestExtrasPricing:
    """Extras are priced at the current sale price."""

    def test_extras_added_to_total(self, app):
        """Test extras lines and grand total."""
        from models.pricing import calculate_price

        with app.app_context():
            _add_range(CABANA_2, day('05-01'), day('09-01'), 1000)
            result = calculate_price(
                CABANA_2, None, day('06-01'), day('06-03'),
                [{'product_id': PRODUCT_CHAMPAGNE, 'quantity': 1},
                 {'product_id': PRODUCT_WATER, 'quantity': 3}]
            )

        assert result['extras_total'] == 2650.0
        assert result['grand_total'] == 4650.0
        extras = [i for i in result['items'] if i['kind'] == 'extra']
        assert [(e['product_id'], e['total']) for e in extras] == [
            (PRODUCT_CHAMPAGNE, 2500.0), (PRODUCT_WATER, 150.0)
        ]

    def test_unknown_product_rejected(self, app):
        """Test an extra pointing to a missing product."""
        from models.pricing import calculate_price
        from utils.errors import ValidationError

        with app.app_context():
            with pytest.raises(ValidationError) as exc_info:
                calculate_price(CABANA_2, None, day('06-01'), day('06-03'),
                                [{'product_id': 999, 'quantity': 1}])

        assert 'extra_items' in exc_info.value.fields

    def test_invalid_quantity_rejected(self, app):
        """Test zero quantities are refused."""
        from models.pricing import calculate_price
        from utils.errors import ValidationError

        with app.app_context():
            with pytest.raises(ValidationError):
                calculate_price(CABANA_2, None, day('06-01'), day('06-03'),
                                [{'product_id': PRODUCT_WATER, 'quantity': 0}])


class TestPriceCatalog:
    """Tests for price tier maintenance."""

    def test_upsert_replaces_daily_price(self, app):
        """Test a second upsert on the same day replaces the price."""
        from models.pricing import upsert_cabana_price, get_cabana_prices

        with app.app_context():
            upsert_cabana_price(CABANA_2, day('06-01'), 1000, user_id=ADMIN_ID)
            upsert_cabana_price(CABANA_2, day('06-01'), 1100, user_id=ADMIN_ID)
            prices = get_cabana_prices(CABANA_2)

        assert len(prices) == 1
        assert prices[0]['daily_price'] == 1100.0

    def test_range_validation(self, app):
        """Test invalid ranges are refused with per-field errors."""
        from utils.errors import ValidationError

        with app.app_context():
            with pytest.raises(ValidationError) as exc_info:
                _add_range(CABANA_2, day('06-05'), day('06-01'), 0, priority=-1)

        assert {'end_date', 'daily_price', 'priority'} <= set(exc_info.value.fields)

    def test_delete_range(self, app):
        """Test deleting a range removes it from resolution."""
        from models.pricing import delete_price_range, calculate_price
        from utils.errors import NotFoundError

        with app.app_context():
            price_range = _add_range(CABANA_2, day('05-01'), day('09-01'), 1000)
            delete_price_range(price_range['id'], user_id=ADMIN_ID)
            result = calculate_price(CABANA_2, None, day('06-01'), day('06-03'))

            with pytest.raises(NotFoundError):
                delete_price_range(price_range['id'], user_id=ADMIN_ID)

        assert result['cabana_daily'] == 0

    def test_price_change_is_audited(self, app):
        """Test catalog writes leave an audit entry."""
        from models.audit_log import get_audit_logs
        from models.pricing import upsert_cabana_price

        with app.app_context():
            upsert_cabana_price(CABANA_2, day('06-01'), 1000, user_id=ADMIN_ID)
            logs = get_audit_logs(entity_type='cabana_price')

        assert len(logs) == 1
        assert logs[0]['user_id'] == ADMIN_ID
