"""
Notification API routes for the current user.
"""

from flask import request
from flask_login import login_required, current_user

from models.notification import get_notifications_for_user, mark_notification_read
from utils.api_response import api_success, api_error
from utils.messages import MESSAGES


def register_routes(bp):
    """Register notification API routes on the blueprint."""

    @bp.route('/notifications')
    @login_required
    def list_notifications():
        """
        List the current user's notifications, newest first.

        Query params:
            unread: 'true' to only list unread notifications
        """
        notifications = get_notifications_for_user(
            current_user.id,
            unread_only=request.args.get('unread', '').lower() == 'true'
        )
        return api_success(data=notifications)

    @bp.route('/notifications/<int:notification_id>/read', methods=['POST'])
    @login_required
    def read_notification(notification_id):
        """Mark one of the current user's notifications as read."""
        if not mark_notification_read(notification_id, current_user.id):
            return api_error(MESSAGES['notification_not_found'], status=404, code='NOT_FOUND')
        return api_success(message=MESSAGES['notification_read'])
