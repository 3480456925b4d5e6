"""
Status and recurrence rules for maintenance tasks.

Plain functions over the task's fields so they can be checked without a
database row. `now` is always passed in by the caller's wrapper.
"""
from datetime import timedelta
from enum import Enum


class MaintenanceStatus(str, Enum):
    UPCOMING = "Upcoming"
    OVERDUE = "Overdue"
    COMPLETED = "Completed"


def compute_status(scheduled, last_completed, is_recurring, frequency_days, now):
    if last_completed is not None:
        if scheduled > now:
            return MaintenanceStatus.UPCOMING
        elif is_recurring and last_completed + timedelta(days=frequency_days) < now:
            return MaintenanceStatus.OVERDUE
        elif not is_recurring and last_completed < scheduled:
            return MaintenanceStatus.COMPLETED
        # a completed recurring task whose next due date has not arrived yet
        # is judged on the original scheduled time below

    if scheduled < now:
        return MaintenanceStatus.OVERDUE

    return MaintenanceStatus.UPCOMING


def next_scheduled_datetime(scheduled, last_completed, is_recurring, frequency_days):
    if not is_recurring:
        return scheduled

    if last_completed is not None:
        return last_completed + timedelta(days=frequency_days)

    return scheduled


def complete(scheduled, is_recurring, frequency_days, now):
    """Returns the new (last_completed, scheduled) pair."""
    if is_recurring:
        return now, now + timedelta(days=frequency_days)
    return now, scheduled


def validate_recurrence(is_recurring, frequency_days):
    if not is_recurring:
        return True
    return frequency_days is not None and frequency_days > 0
