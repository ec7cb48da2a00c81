"""
Extra item API routes for fulfillment staff.
"""

from flask_login import login_required, current_user

from models.reservation import require_reservation, get_extra_items, add_extra_items
from utils.api_response import api_success, get_json_body
from utils.decorators import role_required, ROLE_FULFILLMENT, ROLE_APPROVER, ROLE_SYSTEM_ADMIN
from utils.messages import MESSAGES


def register_routes(bp):
    """Register extras API routes on the blueprint."""

    @bp.route('/reservations/<int:reservation_id>/extras')
    @login_required
    @role_required(ROLE_FULFILLMENT, ROLE_APPROVER, ROLE_SYSTEM_ADMIN)
    def list_extras(reservation_id):
        """List the extras of a reservation."""
        require_reservation(reservation_id)
        return api_success(data=get_extra_items(reservation_id))

    @bp.route('/reservations/<int:reservation_id>/extras', methods=['POST'])
    @login_required
    @role_required(ROLE_FULFILLMENT)
    def post_extras(reservation_id):
        """
        Add extras to an APPROVED reservation.

        Request JSON: {"items": [{"product_id": 2, "quantity": 1}]}
        """
        data = get_json_body()
        result = add_extra_items(reservation_id, current_user.id, data.get('items'))
        return api_success(data=result, message=MESSAGES['extras_added'], status=201)
