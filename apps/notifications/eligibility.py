"""
Eligibility of tasks for automatic scheduled reminders.

A task is due for a reminder when its deadline day sits in one of the
windows below and the window's cooldown has passed since the last
reminder. Windows are checked in order; the first whose position matches
decides.
"""

from collections import namedtuple
from datetime import timedelta

from django.db.models import Q
from django.utils import timezone

from apps.tasks.models import Task
from .urgency import days_until_deadline, start_of_day, start_of_day_offset

ReminderWindow = namedtuple('ReminderWindow', ['name', 'cooldown'])

THREE_DAYS = ReminderWindow('three_days', timedelta(hours=24))
ONE_DAY = ReminderWindow('one_day', timedelta(hours=12))
DUE_TODAY = ReminderWindow('due_today', timedelta(hours=6))
OVERDUE = ReminderWindow('overdue', timedelta(hours=24))

REMINDER_WINDOWS = [THREE_DAYS, ONE_DAY, DUE_TODAY, OVERDUE]


def match_window(task, now=None):
    """The reminder window the task's deadline falls in, or None."""
    if task.status == Task.Status.COMPLETED:
        return None

    days = days_until_deadline(task.deadline, now)
    if days == 3:
        return THREE_DAYS
    if days == 1:
        return ONE_DAY
    if days == 0:
        return DUE_TODAY
    if days < 0 and task.status == Task.Status.OVERDUE:
        return OVERDUE
    return None


def cooldown_elapsed(task, window, now=None):
    """A task never reminded satisfies any cooldown."""
    if task.last_reminder_sent is None:
        return True
    now = now or timezone.now()
    return task.last_reminder_sent < now - window.cooldown


def is_due_for_reminder(task, now=None):
    now = now or timezone.now()
    window = match_window(task, now)
    return window is not None and cooldown_elapsed(task, window, now)


def find_scheduled_reminder_candidates(now=None):
    """
    Tasks due for a scheduled reminder at `now`.

    The query narrows to non-completed tasks with a deadline no later than
    the end of the three-days-out day; the windows and cooldowns are then
    applied per task.

    Returns:
        list of (task, window) pairs
    """
    now = now or timezone.now()
    horizon = start_of_day_offset(4, now)

    # Only overdue tasks are eligible once the deadline day has passed
    queryset = (
        Task.objects.not_completed()
        .filter(deadline__lt=horizon)
        .filter(Q(deadline__gte=start_of_day(now)) | Q(status=Task.Status.OVERDUE))
        .select_related('created_by')
    )

    candidates = []
    for task in queryset:
        if is_due_for_reminder(task, now):
            candidates.append((task, match_window(task, now)))
    return candidates
