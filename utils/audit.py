"""
Audit logging utility functions.
Records who did what to which entity. Audit writes are best effort and never
fail the operation that triggered them.
"""

import logging

from utils.side_effects import run_after_commit, request_metadata

# Configure logger for audit operations
logger = logging.getLogger(__name__)

# Action codes
ACTION_CREATE = 'CREATE'
ACTION_APPROVE = 'APPROVE'
ACTION_REJECT = 'REJECT'
ACTION_MODIFY_REQUEST = 'MODIFY_REQUEST'
ACTION_MODIFY_APPROVE = 'MODIFY_APPROVE'
ACTION_MODIFY_REJECT = 'MODIFY_REJECT'
ACTION_CANCEL_REQUEST = 'CANCEL_REQUEST'
ACTION_CANCEL_APPROVE = 'CANCEL_APPROVE'
ACTION_CANCEL_REJECT = 'CANCEL_REJECT'
ACTION_CHECK_IN = 'CHECK_IN'
ACTION_CHECK_OUT = 'CHECK_OUT'
ACTION_EXTRA_ADD = 'EXTRA_ADD'
ACTION_UPDATE = 'UPDATE'
ACTION_DELETE = 'DELETE'


def log_audit(
    action: str,
    entity_type: str,
    entity_id: int = None,
    before: dict = None,
    after: dict = None,
    user_id: int = None,
    ip_address: str = None,
    user_agent: str = None
) -> int:
    """
    Write an audit entry.

    Args:
        action: Action code (CREATE, APPROVE, CHECK_IN, etc.)
        entity_type: Entity type (reservation, cabana, pricing, etc.)
        entity_id: ID of the affected entity
        before: Dictionary with entity state before the change
        after: Dictionary with entity state after the change
        user_id: Acting user ID (None for system actions)
        ip_address: Client IP address
        user_agent: Client user agent string

    Returns:
        New audit log ID, or None if logging failed
    """
    try:
        from models.audit_log import create_audit_log

        changes = None
        if before is not None or after is not None:
            changes = {
                'before': before,
                'after': after
            }

        return create_audit_log(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            changes=changes,
            ip_address=ip_address,
            user_agent=user_agent
        )

    except Exception as e:
        # Audit logging should never fail the main operation
        logger.error(f"Failed to log audit entry: {e}", exc_info=True)
        return None


def audit_after_commit(
    action: str,
    entity_type: str,
    entity_id: int = None,
    before: dict = None,
    after: dict = None,
    user_id: int = None
) -> None:
    """
    Schedule an audit entry for a committed change.

    Request metadata is captured now, while the request is still bound.
    """
    run_after_commit(
        log_audit,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        before=before,
        after=after,
        user_id=user_id,
        **request_metadata()
    )


# Export public API
__all__ = [
    'log_audit',
    'audit_after_commit',
]
