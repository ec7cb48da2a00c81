"""
Post-commit reservation events.

Each committed transition publishes one event. The event fans out to the
notification, email and realtime sinks as independent side effects, so a
failing sink never affects the others or the transition itself.
"""

import logging

from models.cabana import get_cabana_by_id
from models.notification import (
    NOTIFICATION_NEW_REQUEST, NOTIFICATION_APPROVED, NOTIFICATION_REJECTED,
    NOTIFICATION_MODIFICATION_REQUEST, NOTIFICATION_CANCELLATION_REQUEST,
    NOTIFICATION_STATUS_CHANGED, NOTIFICATION_CHECK_IN, NOTIFICATION_CHECK_OUT,
    NOTIFICATION_EXTRA_ADDED,
)
from models.user import get_user_by_id
from utils import notifications, realtime
from utils.decorators import ROLE_APPROVER
from utils.messages import MESSAGES
from utils.side_effects import run_after_commit

logger = logging.getLogger(__name__)

EVENT_CREATED = 'reservation:created'
EVENT_APPROVED = 'reservation:approved'
EVENT_REJECTED = 'reservation:rejected'
EVENT_MODIFICATION_REQUESTED = 'reservation:modification_requested'
EVENT_MODIFICATION_RESOLVED = 'reservation:modification_resolved'
EVENT_CANCELLATION_REQUESTED = 'reservation:cancellation_requested'
EVENT_CANCELLATION_RESOLVED = 'reservation:cancellation_resolved'
EVENT_CHECKED_IN = 'reservation:checked_in'
EVENT_CHECKED_OUT = 'reservation:checked_out'
EVENT_EXTRAS_ADDED = 'reservation:extras_added'

# Events announced to approvers; the rest go to the requester
_APPROVER_EVENTS = {
    EVENT_CREATED: (NOTIFICATION_NEW_REQUEST, 'notif_new_request'),
    EVENT_MODIFICATION_REQUESTED: (NOTIFICATION_MODIFICATION_REQUEST, 'notif_modification_request'),
    EVENT_CANCELLATION_REQUESTED: (NOTIFICATION_CANCELLATION_REQUEST, 'notif_cancellation_request'),
}

_REQUESTER_EVENTS = {
    EVENT_APPROVED: (NOTIFICATION_APPROVED, 'notif_approved'),
    EVENT_REJECTED: (NOTIFICATION_REJECTED, 'notif_rejected'),
    EVENT_MODIFICATION_RESOLVED: (NOTIFICATION_STATUS_CHANGED, 'notif_status_changed'),
    EVENT_CANCELLATION_RESOLVED: (NOTIFICATION_STATUS_CHANGED, 'notif_status_changed'),
    EVENT_CHECKED_IN: (NOTIFICATION_CHECK_IN, 'notif_check_in'),
    EVENT_CHECKED_OUT: (NOTIFICATION_CHECK_OUT, 'notif_check_out'),
    EVENT_EXTRAS_ADDED: (NOTIFICATION_EXTRA_ADDED, 'notif_extra_added'),
}


def _payload(reservation: dict, extra: dict) -> dict:
    payload = {
        'reservation_id': reservation['id'],
        'cabana_id': reservation['cabana_id'],
        'status': reservation['status'],
        'start_date': reservation['start_date'],
        'end_date': reservation['end_date'],
    }
    payload.update(extra)
    return payload


def _email_data(reservation: dict, requester: dict, extra: dict) -> dict:
    cabana = get_cabana_by_id(reservation['cabana_id'])
    return {
        'reservation_id': reservation['id'],
        'requester_name': requester.get('full_name') or requester['username'],
        'cabana_name': cabana['name'] if cabana else reservation['cabana_id'],
        'guest_name': reservation['guest_name'],
        'start_date': reservation['start_date'],
        'end_date': reservation['end_date'],
        'total_price': reservation.get('total_price'),
        'reason': extra.get('reason'),
    }


def publish(event: str, reservation: dict, actor_id: int = None, **extra) -> None:
    """
    Fan a committed transition out to the side-effect sinks.

    Must be called after the transaction has committed.

    Args:
        event: Event name (EVENT_* constant)
        reservation: Reservation dict after the transition
        actor_id: User who performed the transition
        **extra: Event specific fields (reason, request_id, decision, ...)
    """
    payload = _payload(reservation, extra)
    payload['actor_id'] = actor_id
    message = f"Reserva #{reservation['id']}: {reservation['status']}"

    if event in _APPROVER_EVENTS:
        notification_type, title_key = _APPROVER_EVENTS[event]
        run_after_commit(notifications.notify_role, ROLE_APPROVER, notification_type,
                         MESSAGES[title_key], message, payload)
        run_after_commit(realtime.send_to_role, ROLE_APPROVER, event, payload)

    if event in _REQUESTER_EVENTS:
        notification_type, title_key = _REQUESTER_EVENTS[event]
        run_after_commit(notifications.notify, reservation['user_id'], notification_type,
                         MESSAGES[title_key], message, payload)

    run_after_commit(realtime.broadcast, event, payload)

    email_sender = None
    if event == EVENT_APPROVED:
        email_sender = notifications.send_approved
    elif event == EVENT_REJECTED:
        email_sender = notifications.send_rejected
    elif event == EVENT_CANCELLATION_RESOLVED and extra.get('decision') == 'approve':
        email_sender = notifications.send_cancelled

    if email_sender is not None:
        run_after_commit(_send_email, email_sender, dict(reservation), extra)

    logger.debug(f"Published {event} for reservation {reservation['id']}")


def _send_email(email_sender, reservation: dict, extra: dict) -> None:
    """Look up the requester and cabana, then render and send one email."""
    requester = get_user_by_id(reservation['user_id'])
    if not requester:
        logger.warning(f"No requester found for reservation {reservation['id']}, email skipped")
        return
    email_sender(requester['email'], _email_data(reservation, requester, extra))
