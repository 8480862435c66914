"""Tests for the cron triggers and the reminder JSON endpoints."""

import json
from unittest import mock

import pytest
from django.core import mail
from django.urls import reverse

from apps.activity_log.models import ReminderLog
from apps.notifications.dispatcher import dispatch_reminder
from apps.tasks.models import Task


@pytest.mark.django_db
class TestCronViews:

    @pytest.mark.parametrize('name, job', [
        ('cron_check_overdue', 'check_overdue_tasks'),
        ('cron_run_automation', 'run_automation_rules'),
        ('cron_check_deadlines', 'check_deadline_reminders'),
        ('cron_run_batch', 'run_reminder_batch'),
    ])
    def test_get_and_post_run_the_sweep(self, client, name, job):
        with mock.patch(f'apps.notifications.tasks.{job}', return_value={'errors': []}) as sweep:
            get = client.get(reverse(f'notifications:{name}'))
            post = client.post(reverse(f'notifications:{name}'))

        assert get.status_code == post.status_code == 200
        assert get.json()['success'] is True
        assert get.json()['results'] == {'errors': []}
        assert sweep.call_count == 2

    def test_secret_required_when_configured(self, client, settings):
        settings.CRON_SECRET = 's3cret'
        url = reverse('notifications:cron_check_overdue')

        assert client.get(url).status_code == 401
        assert client.get(url, HTTP_X_CRON_SECRET='wrong').status_code == 401
        assert client.get(url, HTTP_X_CRON_SECRET='s3cret').status_code == 200

    def test_infrastructure_failure_is_500(self, client):
        with mock.patch('apps.notifications.tasks.run_automation_rules', side_effect=RuntimeError('db gone')):
            response = client.post(reverse('notifications:cron_run_automation'))

        assert response.status_code == 500
        assert response.json() == {'error': 'Failed to run automation', 'details': 'db gone'}

    def test_runs_real_overdue_sweep(self, client, make_task):
        task = make_task(deadline_days=-400)

        response = client.get(reverse('notifications:cron_check_overdue'))

        assert response.json()['results']['updated'] == 1
        assert Task.objects.get(pk=task.pk).status == Task.Status.OVERDUE


@pytest.mark.django_db
class TestManualReminder:

    def post_json(self, client, url, body):
        return client.post(url, data=json.dumps(body), content_type='application/json')

    def test_sends_manual_reminder(self, client, owner, make_task):
        client.force_login(owner)
        task = make_task()

        response = self.post_json(
            client,
            reverse('notifications:send_task_reminder', args=[task.pk]),
            {'customMessage': 'Status please', 'useAI': False},
        )

        assert response.status_code == 200
        data = response.json()
        assert data['success'] is True
        assert data['reminder']['status'] == 'sent'
        assert data['reminder']['isAIGenerated'] is False

        log = ReminderLog.objects.get()
        assert log.message_type == ReminderLog.MessageType.MANUAL
        assert log.message == 'Status please'
        assert Task.objects.get(pk=task.pk).reminder_count == 1

    def test_past_deadline_task_reconciled_before_sending(self, client, owner, make_task, settings):
        settings.WORKFLOW_WEBHOOK_URL = 'https://hooks.example.com/reminders'
        client.force_login(owner)
        task = make_task(deadline_days=-1, status=Task.Status.PENDING)

        with mock.patch('apps.notifications.webhooks.requests.post') as post:
            response = self.post_json(
                client,
                reverse('notifications:send_task_reminder', args=[task.pk]),
                {'useAI': False},
            )

        assert response.status_code == 200
        assert Task.objects.get(pk=task.pk).status == Task.Status.OVERDUE
        assert post.call_args.kwargs['json']['status'] == Task.Status.OVERDUE

    def test_bulk_reconciles_past_deadline_tasks(self, client, owner, make_task):
        client.force_login(owner)
        task = make_task(deadline_days=-1)

        self.post_json(client, reverse('notifications:send_bulk_reminders'),
                       {'taskIds': [task.pk], 'useAI': False})

        assert Task.objects.get(pk=task.pk).status == Task.Status.OVERDUE

    def test_other_users_task_is_404(self, client, other_user, make_task):
        client.force_login(other_user)
        task = make_task()

        response = self.post_json(client, reverse('notifications:send_task_reminder', args=[task.pk]), {})

        assert response.status_code == 404
        assert not mail.outbox

    def test_login_required(self, client, make_task):
        response = client.post(reverse('notifications:send_task_reminder', args=[make_task().pk]))
        assert response.status_code == 302

    def test_bulk_reminders(self, client, owner, other_user, make_task):
        client.force_login(owner)
        mine = [make_task(title='One'), make_task(title='Two')]
        theirs = make_task(created_by=other_user)

        response = self.post_json(
            client,
            reverse('notifications:send_bulk_reminders'),
            {'taskIds': [t.pk for t in mine] + [theirs.pk], 'useAI': False},
        )

        assert response.status_code == 200
        assert response.json()['summary'] == {'total': 2, 'sent': 2, 'failed': 0}
        assert Task.objects.get(pk=theirs.pk).reminder_count == 0

    def test_bulk_requires_ids(self, client, owner):
        client.force_login(owner)

        response = self.post_json(client, reverse('notifications:send_bulk_reminders'), {'taskIds': []})

        assert response.status_code == 400


@pytest.mark.django_db
class TestReminderLogs:

    def test_lists_own_logs_with_filters(self, client, owner, other_user, make_task, now):
        first = make_task(title='Alpha')
        second = make_task(title='Beta')
        dispatch_reminder(first, use_ai=False, now=now)
        dispatch_reminder(second, use_ai=False, now=now)
        dispatch_reminder(make_task(created_by=other_user), use_ai=False, now=now)

        client.force_login(owner)
        url = reverse('notifications:reminder_logs')

        everything = client.get(url).json()
        assert everything['pagination']['total'] == 2
        assert {log['taskTitle'] for log in everything['logs']} == {'Alpha', 'Beta'}

        filtered = client.get(url, {'task': first.pk}).json()
        assert [log['taskId'] for log in filtered['logs']] == [first.pk]

        limited = client.get(url, {'limit': 1}).json()
        assert len(limited['logs']) == 1
        assert limited['pagination']['totalPages'] == 2
