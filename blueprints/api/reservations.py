"""
Reservation API routes: create, query, approve/reject, check-in/out, review.
"""

from flask import request, current_app
from flask_login import login_required, current_user

from models.reservation import (
    ALL_STATUSES,
    require_reservation, get_reservation_with_details, get_reservations_filtered,
    get_status_history, create_reservation, approve_reservation, reject_reservation,
    check_in_reservation, check_out_reservation,
)
from models.review import create_review
from utils.api_response import api_success, get_json_body
from utils.decorators import (
    role_required, ROLE_REQUESTER, ROLE_APPROVER, ROLE_SYSTEM_ADMIN,
)
from utils.errors import PermissionDeniedError, ValidationError
from utils.messages import MESSAGES


def _ensure_can_view(reservation: dict) -> None:
    """Requesters and fulfillment staff only see reservations they own."""
    if current_user.role in (ROLE_APPROVER, ROLE_SYSTEM_ADMIN):
        return
    if reservation['user_id'] != current_user.id:
        raise PermissionDeniedError(MESSAGES['permission_denied'], reservation_id=reservation['id'])


def register_routes(bp):
    """Register reservation API routes on the blueprint."""

    # ============================================================================
    # QUERIES
    # ============================================================================

    @bp.route('/reservations')
    @login_required
    def list_reservations():
        """
        List reservations, newest first.

        Query params:
            status: Filter by status (optional)
            cabana_id: Filter by cabana (optional)
            page: Page number (default 1)
            limit: Page size (default ITEMS_PER_PAGE)
        """
        status = request.args.get('status')
        if status and status not in ALL_STATUSES:
            raise ValidationError(MESSAGES['validation_failed'], {'status': MESSAGES['invalid_status']})

        max_limit = current_app.config.get('MAX_ITEMS_PER_PAGE', 100)
        page = max(request.args.get('page', 1, type=int), 1)
        limit = request.args.get('limit', current_app.config.get('ITEMS_PER_PAGE', 20), type=int)
        limit = min(max(limit, 1), max_limit)

        # Requesters only ever see their own reservations
        user_id = current_user.id if current_user.role == ROLE_REQUESTER else None

        result = get_reservations_filtered(
            user_id=user_id,
            status=status,
            cabana_id=request.args.get('cabana_id', type=int),
            page=page,
            per_page=limit
        )
        return api_success(
            data=result['reservations'],
            pagination={'page': result['page'], 'limit': result['per_page'],
                        'total': result['total']}
        )

    @bp.route('/reservations/<int:reservation_id>')
    @login_required
    def reservation_detail(reservation_id):
        """Get reservation with history, sub-requests, extras and review."""
        reservation = require_reservation(reservation_id)
        _ensure_can_view(reservation)
        return api_success(data=get_reservation_with_details(reservation_id))

    @bp.route('/reservations/<int:reservation_id>/history')
    @login_required
    def reservation_history(reservation_id):
        """Get reservation status history in commit order."""
        reservation = require_reservation(reservation_id)
        _ensure_can_view(reservation)
        return api_success(data=get_status_history(reservation_id))

    # ============================================================================
    # LIFECYCLE
    # ============================================================================

    @bp.route('/reservations', methods=['POST'])
    @login_required
    @role_required(ROLE_REQUESTER)
    def post_reservation():
        """
        Create a reservation request (PENDING).

        Request JSON:
        {
            "cabana_id": 1,
            "guest_name": "Ayşe Yılmaz",
            "start_date": "2025-06-01",
            "end_date": "2025-06-05",
            "notes": "Aniversario",
            "guest_id": 7 (optional)
        }
        """
        reservation = create_reservation(get_json_body(), current_user.id)
        return api_success(data=reservation, message=MESSAGES['reservation_created'], status=201)

    @bp.route('/reservations/<int:reservation_id>/approve', methods=['POST'])
    @login_required
    @role_required(ROLE_APPROVER)
    def post_approve(reservation_id):
        """
        Approve a PENDING reservation.

        Request JSON (optional): {"total_price": 4500}
        """
        data = get_json_body()
        reservation = approve_reservation(reservation_id, current_user.id,
                                          total_price=data.get('total_price'))
        return api_success(data=reservation, message=MESSAGES['reservation_approved'])

    @bp.route('/reservations/<int:reservation_id>/reject', methods=['POST'])
    @login_required
    @role_required(ROLE_APPROVER)
    def post_reject(reservation_id):
        """
        Reject a PENDING reservation.

        Request JSON: {"reason": "..."}
        """
        data = get_json_body()
        reservation = reject_reservation(reservation_id, current_user.id, data.get('reason'))
        return api_success(data=reservation, message=MESSAGES['reservation_rejected'])

    @bp.route('/reservations/<int:reservation_id>/check-in', methods=['POST'])
    @login_required
    @role_required(ROLE_APPROVER, ROLE_SYSTEM_ADMIN)
    def post_check_in(reservation_id):
        """Register guest arrival."""
        reservation = check_in_reservation(reservation_id, current_user.id)
        return api_success(data=reservation, message=MESSAGES['reservation_checked_in'])

    @bp.route('/reservations/<int:reservation_id>/check-out', methods=['POST'])
    @login_required
    @role_required(ROLE_APPROVER, ROLE_SYSTEM_ADMIN)
    def post_check_out(reservation_id):
        """Register guest departure."""
        reservation = check_out_reservation(reservation_id, current_user.id)
        return api_success(data=reservation, message=MESSAGES['reservation_checked_out'])

    # ============================================================================
    # REVIEW
    # ============================================================================

    @bp.route('/reservations/<int:reservation_id>/review', methods=['POST'])
    @login_required
    @role_required(ROLE_REQUESTER)
    def post_review(reservation_id):
        """
        Leave the guest review of a checked-out stay.

        Request JSON: {"rating": 5, "comment": "..."}
        """
        data = get_json_body()
        review = create_review(reservation_id, current_user.id,
                               data.get('rating'), data.get('comment'))
        return api_success(data=review, message=MESSAGES['review_created'], status=201)
