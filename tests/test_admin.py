"""Smoke tests for the admin pages."""

import pytest
from django.urls import reverse


@pytest.mark.django_db
@pytest.mark.parametrize('url_name', [
    'admin:accounts_user_changelist',
    'admin:accounts_user_add',
    'admin:tasks_task_changelist',
    'admin:automation_automationrule_changelist',
    'admin:activity_log_reminderlog_changelist',
])
def test_admin_pages_render(admin_client, make_task, make_rule, url_name):
    make_task()
    make_rule('task_overdue')

    assert admin_client.get(reverse(url_name)).status_code == 200
