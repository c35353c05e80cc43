"""Tests for the maintenance scheduler."""
import pytest
from unittest.mock import patch, MagicMock
from apscheduler.triggers.interval import IntervalTrigger

from shiftboard.scheduler.maintenance_scheduler import (
    run_maintenance,
    start_scheduler,
    stop_scheduler,
    scheduler
)
from shiftboard.services.rate_limiter import RateLimiter


class SteppedClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestMaintenanceSweep:
    """Test suite for the periodic sweep."""

    def test_run_maintenance_creates_and_closes_session(self):
        with patch('shiftboard.scheduler.maintenance_scheduler.SessionLocal') as mock_session_local:
            mock_db = MagicMock()
            mock_session_local.return_value = mock_db

            with patch('shiftboard.scheduler.maintenance_scheduler.ShiftLifecycleService') as mock_service_class:
                mock_service_class.return_value.expire_overdue_assignments.return_value = 2

                run_maintenance(RateLimiter())

                mock_session_local.assert_called_once()
                mock_service_class.assert_called_once_with(mock_db)
                mock_service_class.return_value.expire_overdue_assignments.assert_called_once()
                mock_db.close.assert_called_once()

    def test_run_maintenance_sweeps_limiter(self):
        clock = SteppedClock()
        limiter = RateLimiter(shards=2, clock=clock)
        limiter.check_and_increment("general:a", 5, 10)
        limiter.check_and_increment("general:b", 5, 100)
        clock.now = 50

        with patch('shiftboard.scheduler.maintenance_scheduler.SessionLocal'):
            with patch('shiftboard.scheduler.maintenance_scheduler.ShiftLifecycleService') as mock_service_class:
                mock_service_class.return_value.expire_overdue_assignments.return_value = 0
                run_maintenance(limiter)

        assert limiter.bucket_count() == 1

    def test_run_maintenance_handles_errors(self):
        """A failed run is logged and the session is still closed."""
        with patch('shiftboard.scheduler.maintenance_scheduler.SessionLocal') as mock_session_local:
            mock_db = MagicMock()
            mock_session_local.return_value = mock_db

            with patch('shiftboard.scheduler.maintenance_scheduler.ShiftLifecycleService') as mock_service_class:
                mock_service_class.side_effect = Exception("Database error")

                run_maintenance(RateLimiter())

                mock_db.close.assert_called_once()


class TestSchedulerLifecycle:
    """Test job registration and shutdown."""

    @pytest.fixture(autouse=True)
    def clean_scheduler(self):
        if scheduler.running:
            scheduler.shutdown(wait=True)
        scheduler.remove_all_jobs()
        yield
        scheduler.remove_all_jobs()

    def test_start_scheduler_registers_job(self):
        limiter = RateLimiter()

        with patch.object(scheduler, 'start') as mock_start:
            start_scheduler(limiter, 120)

        mock_start.assert_called_once()
        jobs = scheduler.get_jobs()
        assert len(jobs) == 1
        job = jobs[0]
        assert job.id == 'maintenance_sweep'
        assert job.name == 'Maintenance Sweep'
        assert isinstance(job.trigger, IntervalTrigger)
        assert job.trigger.interval.total_seconds() == 120
        assert job.args == (limiter,)

    def test_stop_scheduler_when_not_running(self):
        stop_scheduler()

        assert not scheduler.running
