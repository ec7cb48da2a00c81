"""
Post-commit side-effect dispatch.

Notifications, email, realtime broadcast and audit entries are fired only
after a transition has committed. They run on a small thread pool (inline
when SIDE_EFFECTS_ASYNC is off) and can never fail or roll back the
transition: every exception is logged and dropped.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from flask import current_app, has_request_context, request

logger = logging.getLogger(__name__)

_executor = None
_executor_lock = threading.Lock()


def _get_executor(max_workers: int) -> ThreadPoolExecutor:
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(
                max_workers=max_workers,
                thread_name_prefix='side-effects'
            )
        return _executor


def _run_safely(app, func, args, kwargs):
    with app.app_context():
        try:
            func(*args, **kwargs)
        except Exception as e:
            logger.error(f"Side effect {getattr(func, '__name__', func)} failed: {e}", exc_info=True)


def run_after_commit(func, *args, **kwargs) -> None:
    """
    Schedule a side effect for a transition that has already committed.

    Args:
        func: Callable to run inside a fresh application context
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func
    """
    app = current_app._get_current_object()

    if not app.config.get('SIDE_EFFECTS_ASYNC', True):
        _run_safely(app, func, args, kwargs)
        return

    try:
        executor = _get_executor(app.config.get('SIDE_EFFECT_WORKERS', 4))
        executor.submit(_run_safely, app, func, args, kwargs)
    except RuntimeError as e:
        # Executor already shut down (interpreter exit)
        logger.error(f"Could not schedule side effect: {e}")


def request_metadata() -> dict:
    """
    Capture client IP and user agent while the request is still bound.

    Returns:
        Dict with ip_address and user_agent (None outside a request)
    """
    if not has_request_context():
        return {'ip_address': None, 'user_agent': None}

    ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
    if ip_address and ',' in ip_address:
        ip_address = ip_address.split(',')[0].strip()
    user_agent = request.headers.get('User-Agent', '')[:255]
    return {'ip_address': ip_address, 'user_agent': user_agent}


def shutdown_executor(wait: bool = True) -> None:
    """Stop the side-effect pool (used on worker exit and in tests)."""
    global _executor
    with _executor_lock:
        if _executor is not None:
            _executor.shutdown(wait=wait)
            _executor = None
