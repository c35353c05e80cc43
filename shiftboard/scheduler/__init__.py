"""Scheduler and background tasks package."""
from shiftboard.scheduler.maintenance_scheduler import (
    start_scheduler,
    stop_scheduler,
    run_maintenance
)

__all__ = [
    'start_scheduler',
    'stop_scheduler',
    'run_maintenance'
]
