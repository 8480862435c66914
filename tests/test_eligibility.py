"""Tests for scheduled reminder windows and cooldowns."""

from datetime import timedelta
from unittest import mock

import pytest

from apps.notifications import eligibility
from apps.notifications.urgency import Tone, get_reminder_tone
from apps.tasks.models import Task


@pytest.mark.django_db
class TestMatchWindow:

    @pytest.mark.parametrize('days, window', [
        (3, eligibility.THREE_DAYS),
        (1, eligibility.ONE_DAY),
        (0, eligibility.DUE_TODAY),
    ])
    def test_positions(self, make_task, now, days, window):
        assert eligibility.match_window(make_task(deadline_days=days), now) == window

    @pytest.mark.parametrize('days', [2, 4, 10])
    def test_between_windows_is_not_eligible(self, make_task, now, days):
        assert eligibility.match_window(make_task(deadline_days=days), now) is None

    def test_past_deadline_needs_overdue_status(self, make_task, now):
        assert eligibility.match_window(make_task(deadline_days=-1), now) is None
        overdue = make_task(deadline_days=-1, status=Task.Status.OVERDUE)
        assert eligibility.match_window(overdue, now) == eligibility.OVERDUE

    def test_completed_never_eligible(self, make_task, now):
        task = make_task(deadline_days=0, status=Task.Status.COMPLETED)
        assert eligibility.match_window(task, now) is None


@pytest.mark.django_db
class TestCooldown:

    def test_never_reminded_is_due(self, make_task, now):
        assert eligibility.is_due_for_reminder(make_task(deadline_days=3), now)

    def test_due_today_cooldown_is_six_hours(self, make_task, now):
        recent = make_task(deadline_days=0, last_reminder_sent=now - timedelta(hours=5))
        older = make_task(deadline_days=0, last_reminder_sent=now - timedelta(hours=7))

        assert not eligibility.is_due_for_reminder(recent, now)
        assert eligibility.is_due_for_reminder(older, now)

    def test_one_day_cooldown_is_twelve_hours(self, make_task, now):
        task = make_task(deadline_days=1, last_reminder_sent=now - timedelta(hours=11))
        assert not eligibility.is_due_for_reminder(task, now)

    def test_overdue_resend_after_a_day(self, make_task, now):
        # Scenario B: overdue since yesterday, last reminded 30 hours ago
        task = make_task(
            deadline_days=-1,
            status=Task.Status.OVERDUE,
            reminder_count=2,
            last_reminder_sent=now - timedelta(hours=30),
        )

        assert eligibility.is_due_for_reminder(task, now)
        assert get_reminder_tone(task.reminder_count + 1, task.days_until_deadline(now)) == Tone.ESCALATION


@pytest.mark.django_db
def test_find_scheduled_reminder_candidates(make_task, now):
    three_days = make_task(deadline_days=3)
    due_today = make_task(deadline_days=0)
    overdue = make_task(deadline_days=-2, status=Task.Status.OVERDUE)
    make_task(deadline_days=2)
    make_task(deadline_days=-2)  # not yet reconciled
    make_task(deadline_days=1, last_reminder_sent=now - timedelta(hours=1))
    make_task(deadline_days=0, status=Task.Status.COMPLETED)

    candidates = eligibility.find_scheduled_reminder_candidates(now)

    by_task = {task.pk: window for task, window in candidates}
    assert by_task == {
        three_days.pk: eligibility.THREE_DAYS,
        due_today.pk: eligibility.DUE_TODAY,
        overdue.pk: eligibility.OVERDUE,
    }


@pytest.mark.django_db
def test_candidates_follow_is_due_for_reminder(make_task, now):
    make_task(deadline_days=3)
    make_task(deadline_days=0)

    with mock.patch.object(eligibility, 'is_due_for_reminder', return_value=False) as due:
        assert eligibility.find_scheduled_reminder_candidates(now) == []

    assert due.call_count == 2
