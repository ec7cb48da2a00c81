"""
Notification model and data access functions.
Stores in-app notifications delivered to users after reservation events.
"""

import json

from database import get_db

# Notification types
NOTIFICATION_NEW_REQUEST = 'NEW_REQUEST'
NOTIFICATION_APPROVED = 'APPROVED'
NOTIFICATION_REJECTED = 'REJECTED'
NOTIFICATION_MODIFICATION_REQUEST = 'MODIFICATION_REQUEST'
NOTIFICATION_CANCELLATION_REQUEST = 'CANCELLATION_REQUEST'
NOTIFICATION_EXTRA_ADDED = 'EXTRA_ADDED'
NOTIFICATION_STATUS_CHANGED = 'STATUS_CHANGED'
NOTIFICATION_CHECK_IN = 'CHECK_IN'
NOTIFICATION_CHECK_OUT = 'CHECK_OUT'


def create_notification(user_id: int, notification_type: str, title: str,
                        message: str = None, metadata: dict = None) -> int:
    """
    Persist a notification for a user.

    Returns:
        New notification ID
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('''
        INSERT INTO notifications (user_id, type, title, message, metadata)
        VALUES (?, ?, ?, ?, ?)
    ''', (user_id, notification_type, title, message,
          json.dumps(metadata, default=str, ensure_ascii=False) if metadata else None))
    return cursor.lastrowid


def get_notifications_for_user(user_id: int, unread_only: bool = False,
                               limit: int = 50) -> list:
    """
    Get a user's notifications, newest first.

    Args:
        user_id: Recipient user ID
        unread_only: Only return unread notifications
        limit: Maximum number of rows

    Returns:
        List of notification dicts with metadata decoded
    """
    db = get_db()
    query = 'SELECT * FROM notifications WHERE user_id = ?'
    params = [user_id]
    if unread_only:
        query += ' AND is_read = 0'
    query += ' ORDER BY id DESC LIMIT ?'
    params.append(limit)

    notifications = []
    for row in db.execute(query, params).fetchall():
        item = dict(row)
        item['metadata'] = json.loads(item['metadata']) if item['metadata'] else None
        item['is_read'] = bool(item['is_read'])
        notifications.append(item)
    return notifications


def mark_notification_read(notification_id: int, user_id: int) -> bool:
    """
    Mark a notification as read for its recipient.

    Returns:
        True if a row was updated
    """
    cursor = get_db().execute('''
        UPDATE notifications SET is_read = 1
        WHERE id = ? AND user_id = ?
    ''', (notification_id, user_id))
    return cursor.rowcount > 0
