"""
In-process realtime broadcaster.

Subscribers (websocket bridges, test listeners) register a callback and receive
(event_name, payload) pairs. Delivery is best effort: a failing subscriber is
logged and skipped.
"""

import logging
import threading

logger = logging.getLogger(__name__)

_subscribers = []
_lock = threading.Lock()


def subscribe(callback, role: str = None):
    """
    Register a callback for broadcast events.

    Args:
        callback: Callable taking (event_name, payload)
        role: Only receive send_to_role events for this role (None = all events)

    Returns:
        Handle to pass to unsubscribe()
    """
    handle = (callback, role)
    with _lock:
        _subscribers.append(handle)
    return handle


def unsubscribe(handle) -> None:
    """Remove a subscriber registered with subscribe()."""
    with _lock:
        if handle in _subscribers:
            _subscribers.remove(handle)


def _deliver(targets, event_name: str, payload: dict) -> int:
    delivered = 0
    for callback, _role in targets:
        try:
            callback(event_name, payload)
            delivered += 1
        except Exception as e:
            logger.error(f"Broadcast subscriber failed on {event_name}: {e}", exc_info=True)
    return delivered


def broadcast(event_name: str, payload: dict) -> int:
    """
    Send an event to every subscriber.

    Returns:
        Number of subscribers that accepted the event
    """
    with _lock:
        targets = list(_subscribers)
    return _deliver(targets, event_name, payload)


def send_to_role(role: str, event_name: str, payload: dict) -> int:
    """
    Send an event to subscribers listening for a role (and catch-all ones).

    Returns:
        Number of subscribers that accepted the event
    """
    with _lock:
        targets = [s for s in _subscribers if s[1] in (None, role)]
    return _deliver(targets, event_name, payload)
