"""
Modification and cancellation request API routes.
"""

from flask_login import login_required, current_user

from models.reservation import (
    create_modification_request, resolve_modification_request,
    create_cancellation_request, resolve_cancellation_request,
)
from utils.api_response import api_success, get_json_body
from utils.decorators import role_required, ROLE_REQUESTER, ROLE_APPROVER
from utils.messages import MESSAGES


def register_routes(bp):
    """Register sub-request API routes on the blueprint."""

    # ============================================================================
    # MODIFICATIONS
    # ============================================================================

    @bp.route('/reservations/<int:reservation_id>/modifications', methods=['POST'])
    @login_required
    @role_required(ROLE_REQUESTER)
    def post_modification_request(reservation_id):
        """
        Ask to change an APPROVED reservation.

        Request JSON (at least one field):
        {"new_cabana_id": 2, "new_start_date": "...", "new_end_date": "...",
         "new_guest_name": "..."}
        """
        request_row = create_modification_request(reservation_id, current_user.id,
                                                  get_json_body())
        return api_success(data=request_row, message=MESSAGES['modification_requested'],
                           status=201)

    @bp.route('/reservations/<int:reservation_id>/modifications/<int:request_id>',
              methods=['POST'])
    @login_required
    @role_required(ROLE_APPROVER)
    def post_modification_decision(reservation_id, request_id):
        """
        Resolve a modification request.

        Request JSON:
        {"action": "approve", "total_price": 5000 (optional)}
        {"action": "reject", "reason": "..."}
        """
        data = get_json_body()
        reservation = resolve_modification_request(
            reservation_id, request_id, current_user.id,
            action=data.get('action'),
            reason=data.get('reason'),
            total_price=data.get('total_price')
        )
        message_key = ('modification_approved' if data.get('action') == 'approve'
                       else 'modification_rejected')
        return api_success(data=reservation, message=MESSAGES[message_key])

    # ============================================================================
    # CANCELLATIONS
    # ============================================================================

    @bp.route('/reservations/<int:reservation_id>/cancellations', methods=['POST'])
    @login_required
    @role_required(ROLE_REQUESTER)
    def post_cancellation_request(reservation_id):
        """
        Ask to cancel an APPROVED reservation.

        Request JSON: {"reason": "..."}
        """
        data = get_json_body()
        request_row = create_cancellation_request(reservation_id, current_user.id,
                                                  data.get('reason'))
        return api_success(data=request_row, message=MESSAGES['cancellation_requested'],
                           status=201)

    @bp.route('/reservations/<int:reservation_id>/cancellations/<int:request_id>',
              methods=['POST'])
    @login_required
    @role_required(ROLE_APPROVER)
    def post_cancellation_decision(reservation_id, request_id):
        """
        Resolve a cancellation request.

        Request JSON: {"action": "approve"} or {"action": "reject", "reason": "..."}
        """
        data = get_json_body()
        reservation = resolve_cancellation_request(
            reservation_id, request_id, current_user.id,
            action=data.get('action'),
            reason=data.get('reason')
        )
        message_key = ('cancellation_approved' if data.get('action') == 'approve'
                       else 'cancellation_rejected')
        return api_success(data=reservation, message=MESSAGES[message_key])
