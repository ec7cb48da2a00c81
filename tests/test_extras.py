"""
Tests for extra items on approved reservations.
"""

import pytest

from tests.conftest import (
    CABANA_1, FULFILLMENT_ID, PRODUCT_WATER, PRODUCT_FRUIT, PRODUCT_CHAMPAGNE,
    PRODUCT_INACTIVE, day,
)


def _add(app, reservation_id, items):
    from models.reservation import add_extra_items

    with app.app_context():
        return add_extra_items(reservation_id, FULFILLMENT_ID, items)


class TestAddExtraItems:
    """Tests for add_extra_items()."""

    def test_adds_to_total(self, app, make_approved):
        reservation = make_approved(CABANA_1, day('06-01'), day('06-05'), total_price=1000)

        result = _add(app, reservation['id'], [{'product_id': PRODUCT_CHAMPAGNE, 'quantity': 1}])

        assert result['extras_total'] == 2500.0
        assert result['reservation']['total_price'] == 3500.0
        assert result['extras'][0]['product_name'] == 'Champán'
        assert result['extras'][0]['unit_price'] == 2500.0
        assert result['extras'][0]['line_total'] == 2500.0
        assert result['extras'][0]['added_by'] == FULFILLMENT_ID

    def test_repeated_additions_do_not_double_count(self, app, make_approved):
        """Test the base price is kept and extras are summed once."""
        from models.reservation import get_reservation_by_id

        reservation = make_approved(CABANA_1, day('06-01'), day('06-05'), total_price=1000)

        _add(app, reservation['id'], [{'product_id': PRODUCT_WATER, 'quantity': 2}])
        result = _add(app, reservation['id'], [{'product_id': PRODUCT_FRUIT, 'quantity': 1}])

        assert result['extras_total'] == 400.0
        assert result['reservation']['total_price'] == 1400.0
        with app.app_context():
            assert get_reservation_by_id(reservation['id'])['total_price'] == 1400.0

    def test_unit_price_is_snapshotted(self, app, make_approved):
        """Test later catalog price changes do not touch stored extras."""
        from database import get_db
        from models.reservation import get_extra_items

        reservation = make_approved(CABANA_1, day('06-01'), day('06-05'), total_price=0)
        _add(app, reservation['id'], [{'product_id': PRODUCT_WATER, 'quantity': 1}])

        with app.app_context():
            get_db().execute('UPDATE products SET sale_price = 75 WHERE id = ?', (PRODUCT_WATER,))
            extras = get_extra_items(reservation['id'])

        assert extras[0]['unit_price'] == 50.0

    def test_inactive_product_refused(self, app, make_approved):
        from utils.errors import ValidationError

        reservation = make_approved(CABANA_1, day('06-01'), day('06-05'))
        with pytest.raises(ValidationError):
            _add(app, reservation['id'], [{'product_id': PRODUCT_INACTIVE, 'quantity': 1}])

    def test_unknown_product_refused(self, app, make_approved):
        from utils.errors import ValidationError

        reservation = make_approved(CABANA_1, day('06-01'), day('06-05'))
        with pytest.raises(ValidationError):
            _add(app, reservation['id'], [{'product_id': 999, 'quantity': 1}])

    def test_empty_and_malformed_lists(self, app, make_approved):
        from utils.errors import ValidationError

        reservation = make_approved(CABANA_1, day('06-01'), day('06-05'))
        with pytest.raises(ValidationError):
            _add(app, reservation['id'], [])
        with pytest.raises(ValidationError):
            _add(app, reservation['id'], [{'product_id': PRODUCT_WATER, 'quantity': -1}])
        with pytest.raises(ValidationError):
            _add(app, reservation['id'], 'champagne')

    def test_requires_approved(self, app, make_reservation):
        from utils.errors import InvalidStateTransitionError

        reservation = make_reservation(CABANA_1, day('06-01'), day('06-05'))
        with pytest.raises(InvalidStateTransitionError):
            _add(app, reservation['id'], [{'product_id': PRODUCT_WATER, 'quantity': 1}])

    def test_extras_do_not_change_status(self, app, make_approved):
        reservation = make_approved(CABANA_1, day('06-01'), day('06-05'))
        result = _add(app, reservation['id'], [{'product_id': PRODUCT_WATER, 'quantity': 1}])
        assert result['reservation']['status'] == 'APPROVED'
