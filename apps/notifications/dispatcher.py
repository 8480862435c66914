"""
Reminder dispatch pipeline.

    classify tone → compose message → send → log attempt → bookkeeping → workflow hook

Message generation and delivery failures are absorbed into the outcome and
the ReminderLog row. Database errors propagate to the caller, which isolates
them per task.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from django.utils import dateformat, timezone

from apps.activity_log.models import ReminderLog, log_reminder_attempt
from apps.tasks.models import Task
from apps.tasks.services import record_reminder_sent
from . import services, webhooks
from .messages import MessageContext, compose_reminder_message
from .urgency import Tone, days_until_deadline, describe_deadline, get_reminder_tone, start_of_day

logger = logging.getLogger(__name__)


@dataclass
class ReminderOutcome:
    task_id: int
    success: bool
    tone: Optional[str] = None
    is_ai_generated: bool = False
    error: Optional[str] = None
    log: Optional[ReminderLog] = None
    skipped: bool = False


def format_deadline(deadline):
    return dateformat.format(timezone.localtime(deadline), 'l, j F Y')


def build_message_context(task, days_remaining, reminder_number):
    return MessageContext(
        recipient_name=task.assignee_name,
        task_title=task.title,
        task_description=task.description,
        deadline=format_deadline(task.deadline),
        priority=task.priority,
        days_remaining=days_remaining,
        reminder_count=reminder_number,
    )


# =============================================================================
# Assignee Reminders
# =============================================================================

def dispatch_reminder(task, message_type=ReminderLog.MessageType.SCHEDULED, use_ai=True,
                      custom_message=None, now=None, triggered_by=None):
    """
    Send one reminder to the task assignee.

    Args:
        task: Task to remind about (re-read from the database first)
        message_type: scheduled or manual
        use_ai: Try the message generator before the fallback templates
        custom_message: Owner's note; used as the body when use_ai is off
        now: Evaluation time (defaults to timezone.now())
        triggered_by: Email of the user who asked for a manual reminder

    Returns:
        ReminderOutcome

    Raises:
        Task.DoesNotExist: If the task was deleted meanwhile
    """
    now = now or timezone.now()
    task = Task.objects.select_related('created_by').get(pk=task.pk)

    days_remaining = days_until_deadline(task.deadline, now)
    reminder_number = task.reminder_count + 1
    tone = get_reminder_tone(reminder_number, days_remaining)

    message = compose_reminder_message(
        build_message_context(task, days_remaining, reminder_number),
        tone,
        reminder_number,
        use_ai=use_ai,
        custom_message=custom_message,
    )

    result = services.send_reminder_email(
        task,
        subject=message.subject,
        body=message.body,
        tone=tone,
        days_remaining=days_remaining,
        reminder_number=reminder_number,
        custom_message=custom_message,
    )

    log = log_reminder_attempt(
        task,
        recipient_email=task.assignee_email,
        recipient_name=task.assignee_name,
        message_type=message_type,
        tone=tone,
        subject=message.subject,
        message=message.body,
        is_ai_generated=message.is_ai_generated,
        reminder_number=reminder_number,
        success=result.success,
        error_message=result.error,
        sent_at=now,
    )

    if not result.success:
        logger.warning('Reminder #%s for task %s failed: %s', reminder_number, task.pk, result.error)
        return ReminderOutcome(
            task_id=task.pk,
            success=False,
            tone=tone,
            is_ai_generated=message.is_ai_generated,
            error=result.error,
            log=log,
        )

    record_reminder_sent(task, now)
    logger.info('Reminder #%s (%s) sent for task %s', reminder_number, tone, task.pk)

    event = (
        webhooks.EVENT_MANUAL_NUDGE
        if message_type == ReminderLog.MessageType.MANUAL
        else webhooks.EVENT_REMINDER_TRIGGERED
    )
    webhooks.notify_workflow(task, event, custom_message=custom_message, triggered_by=triggered_by, now=now)

    return ReminderOutcome(
        task_id=task.pk,
        success=True,
        tone=tone,
        is_ai_generated=message.is_ai_generated,
        log=log,
    )


def reminded_today(task, now=None):
    """True if the assignee already got a reminder on the current local day."""
    return task.last_reminder_sent is not None and task.last_reminder_sent >= start_of_day(now)


# =============================================================================
# Owner Escalations
# =============================================================================

def escalated_today(task, now=None):
    """True if an escalation was delivered for the task on the current local day."""
    today_start = start_of_day(now)
    return ReminderLog.objects.filter(
        task=task,
        message_type=ReminderLog.MessageType.ESCALATION,
        status=ReminderLog.Status.SENT,
        sent_at__gte=today_start,
        sent_at__lt=today_start + timedelta(days=1),
    ).exists()


def build_escalation_message(task, days_remaining):
    subject = f'🚨 Escalation: {task.title} needs attention!'
    body = (
        f'"{task.title}" assigned to {task.assignee_name} ({task.assignee_email}) '
        f'has received {task.reminder_count} reminder{"s" if task.reminder_count != 1 else ""} '
        f'and is {describe_deadline(days_remaining).lower().rstrip("!")}.\n\n'
        f'Please follow up with the assignee directly.'
    )
    return subject, body


def send_escalation(task, now=None):
    """
    Notify the task owner that the task needs their attention.

    Logged as an escalation attempt. The assignee's reminder count is not
    touched. Owners who opted out of escalations are skipped.

    Returns:
        ReminderOutcome
    """
    now = now or timezone.now()
    task = Task.objects.select_related('created_by').get(pk=task.pk)
    owner = task.created_by

    if not owner.receive_escalations:
        logger.info('Owner of task %s does not receive escalations, skipping', task.pk)
        return ReminderOutcome(task_id=task.pk, success=False, tone=Tone.ESCALATION, skipped=True)

    days_remaining = days_until_deadline(task.deadline, now)
    subject, body = build_escalation_message(task, days_remaining)

    result = services.send_escalation_email(task, subject, body, days_remaining)

    log = log_reminder_attempt(
        task,
        recipient_email=owner.email,
        recipient_name=owner.get_full_name(),
        message_type=ReminderLog.MessageType.ESCALATION,
        tone=Tone.ESCALATION,
        subject=subject,
        message=body,
        is_ai_generated=False,
        reminder_number=task.reminder_count,
        success=result.success,
        error_message=result.error,
        sent_at=now,
    )

    if result.success:
        logger.info('Escalation for task %s sent to %s', task.pk, owner.email)
    else:
        logger.warning('Escalation for task %s failed: %s', task.pk, result.error)

    return ReminderOutcome(
        task_id=task.pk,
        success=result.success,
        tone=Tone.ESCALATION,
        error=result.error,
        log=log,
    )


# =============================================================================
# Overdue Notices
# =============================================================================

def send_overdue_notices(task, now=None):
    """
    Tell the owner and the assignee that the task is overdue.

    The assignee is skipped when their address is the owner's.

    Returns:
        list of SendResult, owner first
    """
    days_overdue = max(-days_until_deadline(task.deadline, now), 1)
    owner = task.created_by

    results = [services.send_overdue_reminder(task, days_overdue, to_owner=True)]
    if task.assignee_email and task.assignee_email.lower() != owner.email.lower():
        results.append(services.send_overdue_reminder(task, days_overdue, to_owner=False))
    return results
