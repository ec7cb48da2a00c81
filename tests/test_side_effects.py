"""
Tests for post-commit side effects: notifications, email, realtime and audit.
"""

import logging

from tests.conftest import (
    CABANA_1, REQUESTER_ID, APPROVER_ID, day,
)


class TestNotifications:
    """In-app notifications fired after transitions."""

    def test_new_request_notifies_approvers(self, app, make_reservation):
        from models.notification import get_notifications_for_user

        reservation = make_reservation(CABANA_1, day('06-01'), day('06-05'))

        with app.app_context():
            notifications = get_notifications_for_user(APPROVER_ID)
            own = get_notifications_for_user(REQUESTER_ID)

        assert len(notifications) == 1
        assert notifications[0]['type'] == 'NEW_REQUEST'
        assert notifications[0]['metadata']['reservation_id'] == reservation['id']
        assert notifications[0]['is_read'] is False
        assert own == []

    def test_approval_notifies_requester(self, app, make_approved):
        from models.notification import get_notifications_for_user

        make_approved(CABANA_1, day('06-01'), day('06-05'))

        with app.app_context():
            notifications = get_notifications_for_user(REQUESTER_ID)

        assert [n['type'] for n in notifications] == ['APPROVED']

    def test_mark_read(self, app, make_reservation):
        from models.notification import get_notifications_for_user, mark_notification_read

        make_reservation(CABANA_1, day('06-01'), day('06-05'))

        with app.app_context():
            notification = get_notifications_for_user(APPROVER_ID)[0]
            assert mark_notification_read(notification['id'], REQUESTER_ID) is False
            assert mark_notification_read(notification['id'], APPROVER_ID) is True
            assert get_notifications_for_user(APPROVER_ID, unread_only=True) == []


class TestEmail:
    """Emails are rendered and handed to the mail logger."""

    def test_approval_email(self, app, make_approved, caplog):
        with caplog.at_level(logging.INFO, logger='mail'):
            reservation = make_approved(CABANA_1, day('06-01'), day('06-05'))

        mails = [r.getMessage() for r in caplog.records if r.name == 'mail']
        assert len(mails) == 1
        assert 'casino1@cabanaclub.local' in mails[0]
        assert f"Reserva #{reservation['id']} aprobada" in mails[0]
        assert 'Cabana 1' in mails[0]

    def test_rejection_email_contains_reason(self, app, make_reservation, caplog):
        from models.reservation import reject_reservation

        reservation = make_reservation(CABANA_1, day('06-01'), day('06-05'))
        with caplog.at_level(logging.INFO, logger='mail'):
            with app.app_context():
                reject_reservation(reservation['id'], APPROVER_ID, 'Evento privado')

        mails = [r.getMessage() for r in caplog.records if r.name == 'mail']
        assert len(mails) == 1
        assert 'Evento privado' in mails[0]

    def test_render_email(self, app):
        from utils.notifications import render_email

        with app.app_context():
            message = render_email('cancelled', {
                'reservation_id': 7, 'requester_name': 'Casino Uno',
                'cabana_name': 'Cabana 2', 'guest_name': 'Ayşe',
                'start_date': '2025-06-01', 'end_date': '2025-06-05',
            })

        assert '7' in message['subject']
        assert 'Cabana 2' in message['body']
        assert 'CabanaClub' in message['body']


class TestRealtime:
    """Broadcast subscribers receive committed events."""

    def test_subscriber_receives_events(self, app, make_approved):
        from utils import realtime

        received = []
        handle = realtime.subscribe(lambda event, payload: received.append((event, payload)))
        try:
            reservation = make_approved(CABANA_1, day('06-01'), day('06-05'))
        finally:
            realtime.unsubscribe(handle)

        events = [event for event, _ in received]
        assert 'reservation:created' in events
        assert 'reservation:approved' in events
        approved = next(p for e, p in received if e == 'reservation:approved')
        assert approved['reservation_id'] == reservation['id']
        assert approved['status'] == 'APPROVED'

    def test_role_subscriber_filtering(self):
        from utils import realtime

        approver_events = []
        other_events = []
        handles = [
            realtime.subscribe(lambda e, p: approver_events.append(e), role='approver'),
            realtime.subscribe(lambda e, p: other_events.append(e), role='fulfillment'),
        ]
        try:
            realtime.send_to_role('approver', 'ping', {})
        finally:
            for handle in handles:
                realtime.unsubscribe(handle)

        assert approver_events == ['ping']
        assert other_events == []


class TestFailureIsolation:
    """A failing sink never undoes the transition."""

    def test_failing_notification_sink(self, app, make_reservation, monkeypatch):
        from models.reservation import approve_reservation, get_reservation_by_id
        from utils import notifications

        def broken(*args, **kwargs):
            raise RuntimeError('notification store down')

        monkeypatch.setattr(notifications, 'notify', broken)
        reservation = make_reservation(CABANA_1, day('06-01'), day('06-05'))

        with app.app_context():
            approved = approve_reservation(reservation['id'], APPROVER_ID, total_price=1000)
            stored = get_reservation_by_id(reservation['id'])

        assert approved['status'] == 'APPROVED'
        assert stored['status'] == 'APPROVED'

    def test_failing_email_lookup(self, app, make_reservation, monkeypatch, caplog):
        """Test a lookup failure while building the email stays in the side effect."""
        from models import reservation_events
        from models.notification import get_notifications_for_user
        from models.reservation import approve_reservation, get_reservation_by_id

        def broken(*args, **kwargs):
            raise RuntimeError('users table locked')

        monkeypatch.setattr(reservation_events, 'get_user_by_id', broken)
        monkeypatch.setattr(reservation_events, 'get_cabana_by_id', broken)
        reservation = make_reservation(CABANA_1, day('06-01'), day('06-05'))

        with caplog.at_level(logging.ERROR):
            with app.app_context():
                approved = approve_reservation(reservation['id'], APPROVER_ID, total_price=1000)
                stored = get_reservation_by_id(reservation['id'])
                notified = get_notifications_for_user(REQUESTER_ID)

        assert approved['status'] == 'APPROVED'
        assert stored['status'] == 'APPROVED'
        assert [n['type'] for n in notified] == ['APPROVED']
        assert '_send_email failed' in caplog.text

    def test_failing_subscriber(self, app, make_reservation):
        from utils import realtime

        def broken(event, payload):
            raise ValueError('socket closed')

        handle = realtime.subscribe(broken)
        try:
            reservation = make_reservation(CABANA_1, day('06-01'), day('06-05'))
        finally:
            realtime.unsubscribe(handle)

        assert reservation['status'] == 'PENDING'


class TestAsyncDispatch:
    """Side effects on the thread pool."""

    def test_async_effects_complete(self, app, make_reservation):
        from models.notification import get_notifications_for_user
        from utils.side_effects import shutdown_executor

        app.config['SIDE_EFFECTS_ASYNC'] = True
        try:
            make_reservation(CABANA_1, day('06-01'), day('06-05'))
        finally:
            shutdown_executor(wait=True)
            app.config['SIDE_EFFECTS_ASYNC'] = False

        with app.app_context():
            assert len(get_notifications_for_user(APPROVER_ID)) == 1


class TestAudit:
    """Audit entries for lifecycle operations."""

    def test_lifecycle_is_audited(self, app, make_approved):
        from models.audit_log import get_audit_logs

        reservation = make_approved(CABANA_1, day('06-01'), day('06-05'))

        with app.app_context():
            logs = get_audit_logs(entity_type='reservation', entity_id=reservation['id'])

        assert [log['action'] for log in logs] == ['APPROVE', 'CREATE']
        assert logs[0]['user_id'] == APPROVER_ID
        assert logs[0]['changes']['after']['total_price'] == 1000.0
