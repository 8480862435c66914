"""
Urgency classification for reminders.

Deadlines are compared by local calendar day (TIME_ZONE), never by raw
elapsed time: a task due at 09:00 tomorrow is "1 day out" whether it is
08:00 or 23:00 now.
"""

from datetime import timedelta

from django.db import models
from django.utils import timezone


class Tone(models.TextChoices):
    FRIENDLY = 'friendly', 'Friendly'
    FIRM = 'firm', 'Firm'
    URGENT = 'urgent', 'Urgent'
    ESCALATION = 'escalation', 'Escalation'


# Reminder number from which the tone hardens regardless of the deadline
FIRM_AFTER_REMINDERS = 2
URGENT_AFTER_REMINDERS = 4


def start_of_day(now=None):
    """Local midnight of the day containing `now` (aware datetime)."""
    local = timezone.localtime(now or timezone.now())
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_day_offset(days, now=None):
    """Local midnight `days` calendar days after today (negative for the past)."""
    return start_of_day(now) + timedelta(days=days)


def days_until_deadline(deadline, now=None):
    """
    Whole calendar days from today to the deadline's day.

    0 means due today, negative means the deadline day has passed.
    """
    today = timezone.localtime(now or timezone.now()).date()
    deadline_day = timezone.localtime(deadline).date()
    return (deadline_day - today).days


def get_reminder_tone(reminder_count, days_until):
    """
    Pick the tone for a reminder.

    An overdue deadline always escalates. Otherwise the number of reminders
    already sent dominates, and a deadline within a day is at least firm.
    """
    if days_until < 0:
        return Tone.ESCALATION
    if reminder_count >= URGENT_AFTER_REMINDERS:
        return Tone.URGENT
    if reminder_count >= FIRM_AFTER_REMINDERS or days_until <= 1:
        return Tone.FIRM
    return Tone.FRIENDLY


def describe_deadline(days_until):
    """Short human phrase for a deadline distance, used in emails."""
    if days_until < 0:
        overdue = abs(days_until)
        return f"{overdue} day{'s' if overdue != 1 else ''} overdue"
    if days_until == 0:
        return 'Due today!'
    return f"Due in {days_until} day{'s' if days_until > 1 else ''}"
