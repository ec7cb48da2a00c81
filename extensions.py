"""
Flask extensions initialization.
Extensions are initialized here and then initialized with the app in app.py.
"""

from flask import current_app
from flask_login import LoginManager

from utils.api_response import api_error
from utils.messages import MESSAGES

# Initialize Flask-Login
login_manager = LoginManager()


@login_manager.user_loader
def load_user(user_id):
    """
    Load user by ID for Flask-Login.

    Args:
        user_id: The user ID as a string

    Returns:
        User object or None if not found
    """
    from models.user import get_user_by_id, User

    try:
        user_dict = get_user_by_id(int(user_id))
    except (TypeError, ValueError):
        return None
    if user_dict:
        return User(user_dict)
    return None


@login_manager.request_loader
def load_user_from_request(request):
    """
    Load the caller from the identity header forwarded by the gateway.

    Session issuance happens upstream; this service only trusts the
    authenticated user id the gateway puts on each request.

    Args:
        request: Incoming Flask request

    Returns:
        User object or None if the header is missing or unknown
    """
    header = current_app.config.get('AUTH_USER_HEADER', 'X-User-Id')
    user_id = request.headers.get(header)
    if not user_id:
        return None
    user = load_user(user_id)
    if user is None or not user.is_active:
        return None
    return user


@login_manager.unauthorized_handler
def unauthorized():
    """Return a JSON 401 instead of redirecting to a login page."""
    return api_error(MESSAGES['login_required'], status=401, code='UNAUTHORIZED')
