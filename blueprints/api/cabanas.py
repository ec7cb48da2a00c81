"""
Cabana API routes: listing, detail, availability and manual administration.
"""

from flask import request
from flask_login import login_required, current_user

from models.cabana import (
    get_all_cabanas, require_cabana, update_cabana_status, set_open_for_reservation,
)
from models.reservation import check_cabana_availability
from utils.api_response import api_success, get_json_body
from utils.decorators import role_required, ROLE_SYSTEM_ADMIN
from utils.errors import ValidationError
from utils.messages import MESSAGES
from utils.validators import validate_date_range


def register_routes(bp):
    """Register cabana API routes on the blueprint."""

    @bp.route('/cabanas')
    @login_required
    def list_cabanas():
        """
        List cabanas.

        Query params:
            status: AVAILABLE | RESERVED | CLOSED (optional)
            open: 'true' to only list cabanas open for reservation
        """
        cabanas = get_all_cabanas(
            status=request.args.get('status'),
            open_only=request.args.get('open', '').lower() == 'true'
        )
        return api_success(data=cabanas)

    @bp.route('/cabanas/<int:cabana_id>')
    @login_required
    def cabana_detail(cabana_id):
        """Get a single cabana."""
        return api_success(data=require_cabana(cabana_id))

    @bp.route('/cabanas/<int:cabana_id>/availability')
    @login_required
    def cabana_availability(cabana_id):
        """
        Check whether a cabana is free for a stay.

        Query params:
            start_date, end_date: YYYY-MM-DD, end exclusive
        """
        start_date = request.args.get('start_date')
        end_date = request.args.get('end_date')
        errors = validate_date_range(start_date, end_date)
        if errors:
            raise ValidationError(MESSAGES['validation_failed'], errors)

        require_cabana(cabana_id)
        result = check_cabana_availability(cabana_id, start_date, end_date)
        return api_success(data={
            'cabana_id': cabana_id,
            'start_date': start_date,
            'end_date': end_date,
            'available': result['available'],
            'conflicting_ids': [c['id'] for c in result['conflicts']],
        })

    @bp.route('/cabanas/<int:cabana_id>/status', methods=['PATCH'])
    @login_required
    @role_required(ROLE_SYSTEM_ADMIN)
    def override_cabana_status(cabana_id):
        """
        Manually set a cabana's status.

        Request JSON: {"status": "AVAILABLE" | "RESERVED" | "CLOSED"}
        """
        data = get_json_body()
        cabana = update_cabana_status(cabana_id, data.get('status'), user_id=current_user.id)
        return api_success(data=cabana, message=MESSAGES['cabana_updated'])

    @bp.route('/cabanas/<int:cabana_id>/open', methods=['PATCH'])
    @login_required
    @role_required(ROLE_SYSTEM_ADMIN)
    def toggle_cabana_open(cabana_id):
        """
        Open or close a cabana for new reservation requests.

        Request JSON: {"is_open": true | false}
        """
        data = get_json_body()
        if not isinstance(data.get('is_open'), bool):
            raise ValidationError(MESSAGES['validation_failed'], {'is_open': MESSAGES['invalid_value']})
        cabana = set_open_for_reservation(cabana_id, data['is_open'], user_id=current_user.id)
        return api_success(data=cabana, message=MESSAGES['cabana_updated'])
