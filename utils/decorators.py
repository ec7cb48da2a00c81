"""
Route decorators for authentication and authorization.
Provides role-based access control for API routes.

The full authorization policy lives upstream; these decorators only gate
each endpoint by the caller's role.
"""

from functools import wraps
from flask_login import login_required, current_user

from utils.api_response import api_error
from utils.messages import MESSAGES

ROLE_REQUESTER = 'requester'
ROLE_APPROVER = 'approver'
ROLE_FULFILLMENT = 'fulfillment'
ROLE_SYSTEM_ADMIN = 'system_admin'

ALL_ROLES = (ROLE_REQUESTER, ROLE_APPROVER, ROLE_FULFILLMENT, ROLE_SYSTEM_ADMIN)


def role_required(*roles: str):
    """
    Decorator to require one of the given roles for a route.

    Usage:
        @bp.route('/reservations/<int:reservation_id>/approve', methods=['POST'])
        @login_required
        @role_required('approver')
        def approve(reservation_id):
            ...

    Args:
        *roles: Role names allowed to call the route

    Returns:
        Decorator function
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if current_user.role not in roles:
                return api_error(MESSAGES['permission_denied'], status=403, code='FORBIDDEN')

            return func(*args, **kwargs)
        return wrapper
    return decorator


# Re-export login_required for convenience
__all__ = ['login_required', 'role_required', 'ALL_ROLES',
           'ROLE_REQUESTER', 'ROLE_APPROVER', 'ROLE_FULFILLMENT', 'ROLE_SYSTEM_ADMIN']
