"""Due-date arithmetic for homework tasks.

All arithmetic runs on calendar dates, so daylight-saving changes between the
task's creation and its deadline cannot move the result.
"""

from __future__ import annotations

from datetime import date, timedelta

from ..recruitee.types import Task

DEFAULT_HOMEWORK_DURATION_IN_DAYS = 8

_WEEKDAYS_DE = ("Montag", "Dienstag", "Mittwoch", "Donnerstag", "Freitag", "Samstag", "Sonntag")
_MONTHS_DE = (
    "Januar",
    "Februar",
    "März",
    "April",
    "Mai",
    "Juni",
    "Juli",
    "August",
    "September",
    "Oktober",
    "November",
    "Dezember",
)


def compute_due_date(task: Task, default_days: int = DEFAULT_HOMEWORK_DURATION_IN_DAYS) -> date:
    if task.due_date is not None:
        return task.due_date
    return task.created_at.date() + timedelta(days=default_days)


def reminder_date(due_date: date) -> date:
    return due_date - timedelta(days=1)


def format_due_date_de(value: date) -> str:
    """Long German form, e.g. ``Dienstag, 9. Januar``."""
    return f"{_WEEKDAYS_DE[value.weekday()]}, {value.day}. {_MONTHS_DE[value.month - 1]}"


def format_date_numeric_de(value: date) -> str:
    return value.strftime("%d.%m.%Y")
