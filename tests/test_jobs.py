"""Tests for the recurring expense job."""

import asyncio
from datetime import date

from pennywise import jobs
from pennywise.models.expense import Expense
from pennywise.models.recurring import Frequency
from pennywise.services import recurring_service


class TestRunDueExpenses:
    """Test processing across users."""

    def test_processes_every_user_with_due_expenses(self, db_session, user_id, sample_recurring):
        other = recurring_service.create_recurring_expense(
            db_session, "other-user",
            amount=20, currency="USD",
            frequency=Frequency.weekly, start_date=date(2026, 2, 1),
        )

        results = jobs.run_due_expenses(db_session, date(2026, 2, 15))

        assert results == {user_id: 1, "other-user": 1}
        assert db_session.query(Expense).count() == 2

        db_session.refresh(other)
        assert other.next_execution_date == date(2026, 2, 22)

    def test_single_user(self, db_session, user_id, sample_recurring):
        recurring_service.create_recurring_expense(
            db_session, "other-user",
            amount=20, currency="USD",
            frequency=Frequency.weekly, start_date=date(2026, 2, 1),
        )

        results = jobs.run_due_expenses(db_session, date(2026, 2, 15), user_id=user_id)

        assert results == {user_id: 1}
        assert db_session.query(Expense).filter(Expense.user_id == "other-user").count() == 0

    def test_nothing_due(self, db_session, sample_recurring):
        assert jobs.run_due_expenses(db_session, date(2026, 2, 1)) == {}


class TestRunJob:
    """Test the job entry points."""

    def test_refreshes_rates_then_processes(self, db_session, monkeypatch, user_id, sample_recurring,
                                            rate_service, stub_source):
        monkeypatch.setattr(jobs, "SessionLocal", lambda: db_session)

        results = asyncio.run(jobs.run_job(date(2026, 2, 15), rate_service))

        assert results == {user_id: 1}
        assert stub_source.calls == 1

    def test_main_skip_rates(self, db_session, monkeypatch, user_id, sample_recurring):
        monkeypatch.setattr(jobs, "SessionLocal", lambda: db_session)
        monkeypatch.setattr(jobs, "init_db", lambda: None)

        def fail_build():
            raise AssertionError("rate service should not be built")

        monkeypatch.setattr(jobs, "build_rate_service", fail_build)

        assert jobs.main(["--date", "2026-02-15", "--skip-rates"]) == 0
        assert db_session.query(Expense).filter(Expense.user_id == user_id).count() == 1
