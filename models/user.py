"""
User model and data access functions.
Users are provisioned upstream; this module only reads them and wraps them for
Flask-Login.
"""

from database import get_db


class User:
    """
    User class for Flask-Login integration.
    Wraps database row dictionary with required Flask-Login properties.
    """

    def __init__(self, user_dict):
        """
        Initialize User from database row.

        Args:
            user_dict: Dictionary with user data from database
        """
        self.id = user_dict['id']
        self.username = user_dict['username']
        self.email = user_dict['email']
        self.full_name = user_dict['full_name']
        self.role = user_dict['role']
        self.active = user_dict['active']

    @property
    def is_authenticated(self):
        """Required by Flask-Login."""
        return True

    @property
    def is_active(self):
        """Required by Flask-Login."""
        return self.active == 1

    @property
    def is_anonymous(self):
        """Required by Flask-Login."""
        return False

    def get_id(self):
        """Required by Flask-Login. Returns user ID as unicode string."""
        return str(self.id)


def get_user_by_id(user_id: int) -> dict:
    """
    Get user by ID.

    Args:
        user_id: User ID

    Returns:
        User dict or None if not found
    """
    db = get_db()
    row = db.execute('SELECT * FROM users WHERE id = ?', (user_id,)).fetchone()
    return dict(row) if row else None


def get_users_by_role(role: str, active_only: bool = True) -> list:
    """
    Get all users with a role.

    Args:
        role: Role name (requester, approver, fulfillment, system_admin)
        active_only: Skip deactivated users

    Returns:
        List of user dicts
    """
    db = get_db()
    query = 'SELECT * FROM users WHERE role = ?'
    if active_only:
        query += ' AND active = 1'
    query += ' ORDER BY id'
    return [dict(row) for row in db.execute(query, (role,)).fetchall()]
