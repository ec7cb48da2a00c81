"""
Notification and email sinks.

Both are called from post-commit side effects only. Notifications are stored
in the notifications table. Emails are rendered from Jinja templates and handed
to the 'mail' logger; transport belongs to the mail relay that tails it.
"""

import logging

from flask import current_app, render_template_string

from models.user import get_users_by_role
from models.notification import create_notification

logger = logging.getLogger(__name__)
mail_logger = logging.getLogger('mail')


# =============================================================================
# IN-APP NOTIFICATIONS
# =============================================================================

def notify(user_id: int, notification_type: str, title: str,
           message: str = None, metadata: dict = None) -> int:
    """
    Deliver an in-app notification to one user.

    Returns:
        Notification ID
    """
    notification_id = create_notification(user_id, notification_type, title, message, metadata)
    logger.debug(f"Notification {notification_type} -> user {user_id}")
    return notification_id


def notify_role(role: str, notification_type: str, title: str,
                message: str = None, metadata: dict = None) -> int:
    """
    Deliver the same notification to every active user with a role.

    Returns:
        Number of users notified
    """
    rows = get_users_by_role(role)
    for row in rows:
        notify(row['id'], notification_type, title, message, metadata)
    return len(rows)


# =============================================================================
# EMAIL
# =============================================================================

EMAIL_TEMPLATES = {
    'approved': {
        'subject': 'Reserva #{{ reservation_id }} aprobada',
        'body': (
            'Hola {{ requester_name }},\n\n'
            'La reserva de {{ cabana_name }} para {{ guest_name }} '
            '({{ start_date }} - {{ end_date }}) ha sido aprobada.\n'
            'Importe total: {{ "%.2f"|format(total_price or 0) }}\n\n'
            '{{ app_name }}'
        ),
    },
    'rejected': {
        'subject': 'Reserva #{{ reservation_id }} rechazada',
        'body': (
            'Hola {{ requester_name }},\n\n'
            'La reserva de {{ cabana_name }} para {{ guest_name }} '
            '({{ start_date }} - {{ end_date }}) ha sido rechazada.\n'
            'Motivo: {{ reason }}\n\n'
            '{{ app_name }}'
        ),
    },
    'cancelled': {
        'subject': 'Reserva #{{ reservation_id }} cancelada',
        'body': (
            'Hola {{ requester_name }},\n\n'
            'La reserva de {{ cabana_name }} para {{ guest_name }} '
            '({{ start_date }} - {{ end_date }}) ha sido cancelada.\n\n'
            '{{ app_name }}'
        ),
    },
}


def render_email(template_name: str, template_data: dict) -> dict:
    """
    Render subject and body for an email template.

    Args:
        template_name: Key in EMAIL_TEMPLATES
        template_data: Template variables

    Returns:
        Dict with subject and body
    """
    template = EMAIL_TEMPLATES[template_name]
    context = dict(template_data)
    context.setdefault('app_name', current_app.config.get('APP_NAME', 'CabanaClub'))
    return {
        'subject': render_template_string(template['subject'], **context),
        'body': render_template_string(template['body'], **context),
    }


def _send(template_name: str, to_address: str, template_data: dict) -> dict:
    if not to_address:
        logger.warning(f"Email '{template_name}' skipped: recipient has no address")
        return None
    message = render_email(template_name, template_data)
    message['to'] = to_address
    mail_logger.info(f"To: {to_address} | Subject: {message['subject']}\n{message['body']}")
    return message


def send_approved(to_address: str, template_data: dict) -> dict:
    """Send the reservation-approved email."""
    return _send('approved', to_address, template_data)


def send_rejected(to_address: str, template_data: dict) -> dict:
    """Send the reservation-rejected email."""
    return _send('rejected', to_address, template_data)


def send_cancelled(to_address: str, template_data: dict) -> dict:
    """Send the reservation-cancelled email."""
    return _send('cancelled', to_address, template_data)
