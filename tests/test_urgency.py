"""Tests for tone classification and calendar-day arithmetic."""

from datetime import timedelta

import pytest

from apps.notifications.urgency import (
    Tone,
    days_until_deadline,
    describe_deadline,
    get_reminder_tone,
    start_of_day,
)


class TestGetReminderTone:

    @pytest.mark.parametrize('count', [0, 1, 3, 4, 10])
    def test_negative_days_always_escalate(self, count):
        assert get_reminder_tone(count, -1) == Tone.ESCALATION
        assert get_reminder_tone(count, -30) == Tone.ESCALATION

    def test_many_reminders_are_urgent(self):
        # Scenario C: four reminders, deadline five days out
        assert get_reminder_tone(4, 5) == Tone.URGENT

    def test_two_reminders_are_firm(self):
        assert get_reminder_tone(2, 10) == Tone.FIRM

    def test_deadline_within_a_day_is_firm(self):
        assert get_reminder_tone(0, 1) == Tone.FIRM
        assert get_reminder_tone(1, 0) == Tone.FIRM

    def test_first_reminder_far_from_deadline_is_friendly(self):
        assert get_reminder_tone(1, 3) == Tone.FRIENDLY
        assert get_reminder_tone(0, 7) == Tone.FRIENDLY

    def test_is_pure(self):
        assert [get_reminder_tone(3, 2) for _ in range(3)] == [Tone.FIRM] * 3


class TestDaysUntilDeadline:

    def test_same_day_is_zero_regardless_of_hour(self, now, days_from):
        assert days_until_deadline(days_from(0, hour=23), now) == 0
        assert days_until_deadline(days_from(0, hour=1), now) == 0

    def test_tomorrow_early_morning_is_one(self, now, days_from):
        assert days_until_deadline(days_from(1, hour=0), now) == 1

    def test_yesterday_is_minus_one(self, now, days_from):
        assert days_until_deadline(days_from(-1, hour=23), now) == -1

    def test_start_of_day_is_local_midnight(self, now):
        midnight = start_of_day(now)
        assert midnight <= now < midnight + timedelta(days=1)
        assert (midnight.hour, midnight.minute) == (0, 0)


def test_describe_deadline():
    assert describe_deadline(-1) == '1 day overdue'
    assert describe_deadline(-3) == '3 days overdue'
    assert describe_deadline(0) == 'Due today!'
    assert describe_deadline(1) == 'Due in 1 day'
    assert describe_deadline(5) == 'Due in 5 days'
