"""
Tests for cabana administration and status reconciliation.
"""

from datetime import date, timedelta

import pytest

from tests.conftest import CABANA_1, CABANA_2, CABANA_3, APPROVER_ID, day


class TestCabanaAdmin:
    """Manual status override and open toggle."""

    def test_status_override(self, app):
        from models.cabana import update_cabana_status

        with app.app_context():
            cabana = update_cabana_status(CABANA_2, 'CLOSED')
        assert cabana['status'] == 'CLOSED'

    def test_unknown_status(self, app):
        from models.cabana import update_cabana_status
        from utils.errors import ValidationError

        with app.app_context():
            with pytest.raises(ValidationError):
                update_cabana_status(CABANA_2, 'BROKEN')

    def test_unknown_cabana(self, app):
        from models.cabana import set_open_for_reservation
        from utils.errors import NotFoundError

        with app.app_context():
            with pytest.raises(NotFoundError):
                set_open_for_reservation(999, True)

    def test_closed_cabana_not_bookable(self, app):
        from models.cabana import get_cabana_by_id, is_bookable, update_cabana_status

        with app.app_context():
            assert is_bookable(get_cabana_by_id(CABANA_2)) is True
            update_cabana_status(CABANA_2, 'CLOSED')
            assert is_bookable(get_cabana_by_id(CABANA_2)) is False

    def test_list_filters(self, app):
        from models.cabana import get_all_cabanas, set_open_for_reservation

        with app.app_context():
            set_open_for_reservation(CABANA_3, False)
            open_ids = [c['id'] for c in get_all_cabanas(open_only=True)]
            available = get_all_cabanas(status='AVAILABLE')

        assert CABANA_3 not in open_ids
        assert len(available) == 4


class TestReconcile:
    """reconcile_cabana_statuses() recomputes status from reservations."""

    def test_detects_and_fixes_drift(self, app, make_approved):
        from database import get_db
        from models.cabana import reconcile_cabana_statuses, get_cabana_by_id

        make_approved(CABANA_1, day('06-01'), day('06-05'))

        with app.app_context():
            # Force drift on an idle cabana
            get_db().execute("UPDATE cabanas SET status = 'RESERVED' WHERE id = ?", (CABANA_2,))

            drift = reconcile_cabana_statuses(day('06-02'))
            statuses = {c: get_cabana_by_id(c)['status'] for c in (CABANA_1, CABANA_2)}

        assert {d['cabana_id']: d['expected'] for d in drift} == {CABANA_2: 'AVAILABLE'}
        assert statuses == {CABANA_1: 'RESERVED', CABANA_2: 'AVAILABLE'}

    def test_day_outside_stay_frees_cabana(self, app, make_approved):
        from models.cabana import reconcile_cabana_statuses

        make_approved(CABANA_1, day('06-01'), day('06-05'))

        with app.app_context():
            drift = reconcile_cabana_statuses(day('06-05'))

        assert [(d['cabana_id'], d['current'], d['expected']) for d in drift] == [
            (CABANA_1, 'RESERVED', 'AVAILABLE')
        ]

    def test_dry_run_writes_nothing(self, app, make_approved):
        from models.cabana import reconcile_cabana_statuses, get_cabana_by_id

        make_approved(CABANA_1, day('06-01'), day('06-05'))

        with app.app_context():
            drift = reconcile_cabana_statuses(day('07-01'), dry_run=True)
            status = get_cabana_by_id(CABANA_1)['status']

        assert len(drift) == 1
        assert status == 'RESERVED'

    def test_closed_cabanas_skipped(self, app, make_approved):
        from models.cabana import reconcile_cabana_statuses, update_cabana_status

        make_approved(CABANA_1, day('06-01'), day('06-05'))

        with app.app_context():
            update_cabana_status(CABANA_1, 'CLOSED')
            drift = reconcile_cabana_statuses(day('06-02'))

        assert drift == []


class TestCliCommands:
    """Flask CLI commands."""

    def test_reconcile_command(self, app, make_approved):
        from database import get_db

        with app.app_context():
            get_db().execute("UPDATE cabanas SET status = 'RESERVED' WHERE id = ?", (CABANA_2,))

        runner = app.test_cli_runner()
        result = runner.invoke(args=['reconcile-cabana-status', '--dry-run'])

        assert result.exit_code == 0
        assert 'Cabana 2' in result.output
        assert 'would change' in result.output

    def test_reconcile_command_bad_date(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['reconcile-cabana-status', '--date', '06/01/2025'])
        assert result.exit_code != 0

    def test_reconcile_command_no_drift(self, app):
        runner = app.test_cli_runner()
        tomorrow = (date.today() + timedelta(days=1)).isoformat()
        result = runner.invoke(args=['reconcile-cabana-status', '--date', tomorrow])

        assert result.exit_code == 0
        assert 'No drift' in result.output

    def test_init_db_command(self, app, make_reservation):
        from models.reservation import get_reservations_filtered

        make_reservation(CABANA_1, day('06-01'), day('06-05'))

        runner = app.test_cli_runner()
        result = runner.invoke(args=['init-db'])

        assert result.exit_code == 0
        with app.app_context():
            assert get_reservations_filtered()['total'] == 0
