"""Tests for the reminder dispatch pipeline."""

from unittest import mock

import pytest
import requests
from django.core import mail

from apps.activity_log.models import ReminderLog
from apps.notifications import dispatcher
from apps.notifications.messages import MessageGenerationError, ReminderMessageGenerator
from apps.notifications.services import SendResult
from apps.notifications.urgency import Tone
from apps.tasks.models import Task


@pytest.fixture
def generation_fails():
    with mock.patch.object(
        ReminderMessageGenerator, 'generate', side_effect=MessageGenerationError('API down')
    ) as generate:
        yield generate


@pytest.mark.django_db
class TestDispatchReminder:

    def test_successful_send(self, make_task, now):
        task = make_task(deadline_days=3)

        outcome = dispatcher.dispatch_reminder(task, now=now)

        assert outcome.success is True
        assert outcome.tone == Tone.FRIENDLY
        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == ['asha@example.com']

        task.refresh_from_db()
        assert task.reminder_count == 1
        assert task.last_reminder_sent == now

        log = ReminderLog.objects.get()
        assert log.status == ReminderLog.Status.SENT
        assert log.message_type == ReminderLog.MessageType.SCHEDULED
        assert log.reminder_number == 1
        assert log.created_by_id == task.created_by_id
        assert log.sent_at == now

    def test_generation_failure_falls_back(self, make_task, now, generation_fails):
        # Scenario D
        task = make_task(deadline_days=3)

        outcome = dispatcher.dispatch_reminder(task, use_ai=True, now=now)

        generation_fails.assert_called_once()
        assert outcome.success is True
        log = ReminderLog.objects.get()
        assert log.is_ai_generated is False
        assert log.subject.strip()
        assert log.message.strip()

    def test_ai_message_is_used_when_available(self, make_task, now):
        generated = mock.Mock(subject='Nudge', body='Please wrap up.', is_ai_generated=True)
        with mock.patch.object(ReminderMessageGenerator, 'generate', return_value=generated):
            outcome = dispatcher.dispatch_reminder(make_task(), now=now)

        assert outcome.is_ai_generated is True
        assert ReminderLog.objects.get().subject == 'Nudge'
        assert mail.outbox[0].subject == 'Nudge'

    def test_failed_delivery_logs_without_increment(self, make_task, now):
        task = make_task(deadline_days=1, reminder_count=2)
        failure = SendResult(success=False, error='SMTP refused')

        with mock.patch('apps.notifications.services.send_reminder_email', return_value=failure):
            outcome = dispatcher.dispatch_reminder(task, now=now)

        assert outcome.success is False
        assert outcome.error == 'SMTP refused'

        task.refresh_from_db()
        assert task.reminder_count == 2
        assert task.last_reminder_sent is None

        log = ReminderLog.objects.get()
        assert log.status == ReminderLog.Status.FAILED
        assert log.error_message == 'SMTP refused'
        assert log.sent_at is None
        assert log.reminder_number == 3

    def test_one_log_per_attempt(self, make_task, now):
        task = make_task()
        dispatcher.dispatch_reminder(task, now=now)
        with mock.patch('apps.notifications.services.send_reminder_email',
                        return_value=SendResult(success=False, error='x')):
            dispatcher.dispatch_reminder(task, now=now)

        assert ReminderLog.objects.filter(task=task).count() == 2

    def test_tone_uses_next_reminder_number(self, make_task, now):
        task = make_task(deadline_days=5, reminder_count=3)
        assert dispatcher.dispatch_reminder(task, now=now).tone == Tone.URGENT

    def test_manual_reminder_uses_custom_message(self, make_task, now):
        task = make_task()

        dispatcher.dispatch_reminder(
            task,
            message_type=ReminderLog.MessageType.MANUAL,
            use_ai=False,
            custom_message='Can you send the draft?',
            now=now,
        )

        log = ReminderLog.objects.get()
        assert log.message_type == ReminderLog.MessageType.MANUAL
        assert log.message == 'Can you send the draft?'
        assert 'Can you send the draft?' in mail.outbox[0].body


@pytest.mark.django_db
class TestWorkflowHook:

    def test_event_posted_after_success(self, make_task, now, settings):
        settings.WORKFLOW_WEBHOOK_URL = 'https://hooks.example.com/reminders'
        task = make_task()
        with mock.patch('apps.notifications.webhooks.requests.post') as post:
            dispatcher.dispatch_reminder(
                task, message_type=ReminderLog.MessageType.MANUAL,
                use_ai=False, now=now, triggered_by='Olivia Owner',
            )

        post.assert_called_once()
        payload = post.call_args.kwargs['json']
        assert payload['event'] == 'manual_nudge'
        assert payload['taskId'] == str(task.pk)
        assert payload['reminderCount'] == 1
        assert payload['triggeredBy'] == 'Olivia Owner'

    def test_hook_failure_is_swallowed(self, make_task, now, settings):
        settings.WORKFLOW_WEBHOOK_URL = 'https://hooks.example.com/reminders'
        task = make_task()
        with mock.patch('apps.notifications.webhooks.requests.post',
                        side_effect=requests.ConnectionError('refused')):
            outcome = dispatcher.dispatch_reminder(task, now=now)

        assert outcome.success is True
        assert Task.objects.get(pk=task.pk).reminder_count == 1

    def test_queue_failure_is_swallowed(self, make_task, now, settings):
        settings.WORKFLOW_WEBHOOK_URL = 'https://hooks.example.com/reminders'
        task = make_task()
        with mock.patch('apps.notifications.webhooks.async_task', side_effect=RuntimeError('broker down')):
            outcome = dispatcher.dispatch_reminder(task, now=now)

        assert outcome.success is True


@pytest.mark.django_db
class TestEscalationAndOverdue:

    def test_escalation_goes_to_owner(self, make_task, owner, now):
        task = make_task(reminder_count=3)

        outcome = dispatcher.send_escalation(task, now)

        assert outcome.success is True
        assert mail.outbox[0].to == [owner.email]
        log = ReminderLog.objects.get()
        assert log.message_type == ReminderLog.MessageType.ESCALATION
        assert log.tone == Tone.ESCALATION
        assert log.recipient_email == owner.email
        assert Task.objects.get(pk=task.pk).reminder_count == 3
        assert dispatcher.escalated_today(task, now)

    def test_escalation_respects_owner_opt_out(self, make_task, owner, now):
        owner.receive_escalations = False
        owner.save()

        outcome = dispatcher.send_escalation(make_task(), now)

        assert outcome.skipped is True
        assert not mail.outbox
        assert not ReminderLog.objects.exists()

    def test_overdue_notices_owner_and_assignee(self, make_task, owner, now):
        task = make_task(deadline_days=-2)

        results = dispatcher.send_overdue_notices(task, now)

        assert all(r.success for r in results)
        assert [m.to for m in mail.outbox] == [[owner.email], ['asha@example.com']]
        assert '2 day(s) overdue' in mail.outbox[0].body

    def test_overdue_notice_not_duplicated_for_self_assigned(self, make_task, owner, now):
        task = make_task(deadline_days=-1, assignee_email=owner.email.upper())

        assert len(dispatcher.send_overdue_notices(task, now)) == 1
