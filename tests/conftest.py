"""
Shared fixtures.

Engine functions take `now` explicitly; tests pass the fixed `now` below so
nothing depends on the wall clock.
"""

from datetime import datetime, timedelta

import pytest
from django.core.cache import cache
from django.utils import timezone

from apps.accounts.models import User
from apps.automation.models import AutomationRule
from apps.tasks.models import Task


@pytest.fixture
def now():
    """Monday 10 March 2025, 10:00 local time."""
    return timezone.make_aware(datetime(2025, 3, 10, 10, 0))


@pytest.fixture
def days_from(now):
    """Local 12:00 on the day `n` days from `now`."""
    def _days_from(n, hour=12):
        return (timezone.localtime(now) + timedelta(days=n)).replace(hour=hour, minute=0)
    return _days_from


@pytest.fixture
def owner(db):
    return User.objects.create_user(
        email='olivia@example.com',
        password='testpass123',
        first_name='Olivia',
        last_name='Owner',
    )


@pytest.fixture
def other_user(db):
    return User.objects.create_user(
        email='oscar@example.com',
        password='testpass123',
        first_name='Oscar',
        last_name='Other',
    )


@pytest.fixture
def make_task(owner, days_from):
    """Task factory; `deadline_days` places the deadline relative to `now`."""
    def _make_task(deadline_days=3, created_by=None, **fields):
        fields.setdefault('title', 'Quarterly report')
        fields.setdefault('assignee_name', 'Asha Assignee')
        fields.setdefault('assignee_email', 'asha@example.com')
        fields.setdefault('deadline', days_from(deadline_days))
        return Task.objects.create(created_by=created_by or owner, **fields)
    return _make_task


@pytest.fixture
def make_rule(owner):
    def _make_rule(trigger_type, actions=('send_reminder',), conditions=None, created_by=None, **fields):
        fields.setdefault('name', f'{trigger_type} rule')
        return AutomationRule.objects.create(
            created_by=created_by or owner,
            trigger_type=trigger_type,
            trigger_conditions=conditions or {},
            actions=[{'type': action} for action in actions],
            **fields,
        )
    return _make_rule


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()
