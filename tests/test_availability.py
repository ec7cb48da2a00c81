"""
Tests for the conflict guard.

Stays are half-open [start, end): a checkout day may be the next arrival day.
Only committed reservations block a cabana.
"""

import threading

import pytest

from tests.conftest import CABANA_1, CABANA_2, APPROVER_ID, day


class TestOverlaps:
    """Pure overlap predicate."""

    def test_boundary_touch_does_not_overlap(self):
        from models.reservation_availability import overlaps
        assert overlaps('2025-06-01', '2025-06-05', '2025-06-05', '2025-06-08') is False
        assert overlaps('2025-06-05', '2025-06-08', '2025-06-01', '2025-06-05') is False

    def test_partial_and_contained_overlap(self):
        from models.reservation_availability import overlaps
        assert overlaps('2025-06-01', '2025-06-05', '2025-06-03', '2025-06-07') is True
        assert overlaps('2025-06-01', '2025-06-10', '2025-06-03', '2025-06-04') is True


class TestConflictGuard:
    """Guard behaviour against stored reservations."""

    def test_overlap_with_approved_conflicts(self, app, make_approved, make_reservation):
        """Scenario B: creating over an approved stay is refused."""
        from utils.errors import ConflictError

        first = make_approved(CABANA_1, day('06-01'), day('06-05'))

        with pytest.raises(ConflictError) as exc_info:
            make_reservation(CABANA_1, day('06-03'), day('06-07'))

        error = exc_info.value
        assert error.conflicting_ids == [first['id']]
        assert error.cabana_id == CABANA_1
        assert error.retryable is True

    def test_boundary_does_not_conflict(self, app, make_approved, make_reservation):
        """Scenario C: arriving on the previous checkout day succeeds."""
        make_approved(CABANA_1, day('06-01'), day('06-05'))

        reservation = make_reservation(CABANA_1, day('06-05'), day('06-08'))

        assert reservation['status'] == 'PENDING'

    def test_pending_never_blocks(self, app, make_reservation):
        """Test two overlapping PENDING requests can coexist."""
        make_reservation(CABANA_1, day('06-01'), day('06-05'))
        second = make_reservation(CABANA_1, day('06-02'), day('06-04'))

        assert second['status'] == 'PENDING'

    def test_other_cabana_does_not_conflict(self, app, make_approved, make_reservation):
        make_approved(CABANA_1, day('06-01'), day('06-05'))
        assert make_reservation(CABANA_2, day('06-01'), day('06-05'))['status'] == 'PENDING'

    def test_availability_lookup(self, app, make_approved):
        """Test the non-locking availability query."""
        from models.reservation_availability import check_cabana_availability

        first = make_approved(CABANA_1, day('06-01'), day('06-05'))

        with app.app_context():
            busy = check_cabana_availability(CABANA_1, day('06-04'), day('06-06'))
            free = check_cabana_availability(CABANA_1, day('06-05'), day('06-06'))
            own = check_cabana_availability(CABANA_1, day('06-01'), day('06-05'),
                                            exclude_reservation_id=first['id'])

        assert busy['available'] is False
        assert [c['id'] for c in busy['conflicts']] == [first['id']]
        assert free['available'] is True
        assert own['available'] is True

    def test_guard_refuses_outside_transaction(self, app):
        """Test check_and_reserve requires the caller's write lock."""
        from database import get_db
        from models.reservation_availability import check_and_reserve

        with app.app_context():
            with pytest.raises(RuntimeError):
                check_and_reserve(get_db(), CABANA_1, day('06-01'), day('06-05'))


class TestConcurrentApproval:
    """Racing approvals on overlapping PENDING requests."""

    def test_only_one_of_two_racing_approvals_commits(self, app, make_reservation):
        """Test exactly one approval wins and the other sees a conflict."""
        from models.reservation import approve_reservation, get_reservation_by_id
        from utils.errors import ConflictError

        first = make_reservation(CABANA_1, day('06-01'), day('06-05'))
        second = make_reservation(CABANA_1, day('06-03'), day('06-07'))

        barrier = threading.Barrier(2)
        outcomes = {}

        def approve(reservation_id):
            with app.app_context():
                barrier.wait()
                try:
                    approve_reservation(reservation_id, APPROVER_ID, total_price=1000)
                    outcomes[reservation_id] = 'approved'
                except ConflictError:
                    outcomes[reservation_id] = 'conflict'

        threads = [threading.Thread(target=approve, args=(r['id'],)) for r in (first, second)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert sorted(outcomes.values()) == ['approved', 'conflict']

        with app.app_context():
            statuses = sorted(get_reservation_by_id(r['id'])['status'] for r in (first, second))
        assert statuses == ['APPROVED', 'PENDING']

    def test_racing_approvals_of_one_reservation(self, app, make_reservation):
        """Test a second approval racing the first sees the new state."""
        from models.reservation import approve_reservation, get_status_history
        from utils.errors import InvalidStateTransitionError

        reservation = make_reservation(CABANA_1, day('06-01'), day('06-05'))

        barrier = threading.Barrier(2)
        outcomes = []

        def approve():
            with app.app_context():
                barrier.wait()
                try:
                    approve_reservation(reservation['id'], APPROVER_ID, total_price=1000)
                    outcomes.append('approved')
                except InvalidStateTransitionError:
                    outcomes.append('invalid_state')

        threads = [threading.Thread(target=approve) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert sorted(outcomes) == ['approved', 'invalid_state']

        with app.app_context():
            history = get_status_history(reservation['id'])
        assert [(h['from_status'], h['to_status']) for h in history] == [
            (None, 'PENDING'), ('PENDING', 'APPROVED'),
        ]

    def test_modification_races_overlapping_approval(self, app, make_reservation,
                                                     make_approved):
        """Test an extension and a new approval cannot both take the same days."""
        from models.reservation import (
            approve_reservation, create_modification_request, resolve_modification_request,
            get_reservation_by_id,
        )
        from utils.errors import ConflictError

        held = make_approved(CABANA_1, day('06-01'), day('06-05'))
        pending = make_reservation(CABANA_1, day('06-06'), day('06-09'))
        with app.app_context():
            request = create_modification_request(held['id'], held['user_id'],
                                                  {'new_end_date': day('06-08')})

        barrier = threading.Barrier(2)
        outcomes = {}

        def extend():
            with app.app_context():
                barrier.wait()
                try:
                    resolve_modification_request(held['id'], request['id'], APPROVER_ID,
                                                 'approve', total_price=1400)
                    outcomes['modification'] = 'approved'
                except ConflictError:
                    outcomes['modification'] = 'conflict'

        def approve():
            with app.app_context():
                barrier.wait()
                try:
                    approve_reservation(pending['id'], APPROVER_ID, total_price=900)
                    outcomes['reservation'] = 'approved'
                except ConflictError:
                    outcomes['reservation'] = 'conflict'

        threads = [threading.Thread(target=extend), threading.Thread(target=approve)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert sorted(outcomes.values()) == ['approved', 'conflict']

        with app.app_context():
            extended = get_reservation_by_id(held['id'])
            other = get_reservation_by_id(pending['id'])

        if outcomes['modification'] == 'approved':
            assert (extended['status'], extended['end_date']) == ('APPROVED', day('06-08'))
            assert other['status'] == 'PENDING'
        else:
            assert (extended['status'], extended['end_date']) == ('MODIFICATION_PENDING',
                                                                  day('06-05'))
            assert other['status'] == 'APPROVED'
