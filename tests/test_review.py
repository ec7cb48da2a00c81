"""
Tests for guest reviews of completed stays.
"""

import pytest

from tests.conftest import CABANA_1, REQUESTER_ID, OTHER_REQUESTER_ID, APPROVER_ID, day


@pytest.fixture
def checked_out(app, make_approved):
    """A reservation that went through check-in and check-out."""
    from models.reservation import check_in_reservation, check_out_reservation

    reservation = make_approved(CABANA_1, day('06-01'), day('06-05'))
    with app.app_context():
        check_in_reservation(reservation['id'], APPROVER_ID)
        return check_out_reservation(reservation['id'], APPROVER_ID)


class TestCreateReview:
    """Tests for create_review()."""

    def test_review_checked_out_stay(self, app, checked_out):
        from models.review import create_review, get_review_for_reservation

        with app.app_context():
            review = create_review(checked_out['id'], REQUESTER_ID, 5, 'Excelente servicio')
            stored = get_review_for_reservation(checked_out['id'])

        assert review['rating'] == 5
        assert stored['comment'] == 'Excelente servicio'

    def test_one_review_per_reservation(self, app, checked_out):
        from models.review import create_review
        from utils.errors import DuplicateReviewError, ReservationError

        with app.app_context():
            create_review(checked_out['id'], REQUESTER_ID, 4)
            with pytest.raises(DuplicateReviewError) as exc_info:
                create_review(checked_out['id'], REQUESTER_ID, 3)

        assert isinstance(exc_info.value, ReservationError)
        assert exc_info.value.status == 409
        assert exc_info.value.to_dict()['code'] == 'DUPLICATE_REVIEW'

    @pytest.mark.parametrize('rating', [0, 6, '5', None, True])
    def test_rating_range(self, app, checked_out, rating):
        from models.review import create_review
        from utils.errors import ValidationError

        with app.app_context():
            with pytest.raises(ValidationError):
                create_review(checked_out['id'], REQUESTER_ID, rating)

    def test_only_owner(self, app, checked_out):
        from models.review import create_review
        from utils.errors import PermissionDeniedError

        with app.app_context():
            with pytest.raises(PermissionDeniedError):
                create_review(checked_out['id'], OTHER_REQUESTER_ID, 5)

    def test_requires_checked_out(self, app, make_approved):
        from models.review import create_review
        from utils.errors import InvalidStateTransitionError

        reservation = make_approved(CABANA_1, day('06-01'), day('06-05'))
        with app.app_context():
            with pytest.raises(InvalidStateTransitionError):
                create_review(reservation['id'], REQUESTER_ID, 5)
