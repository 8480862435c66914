"""
Service layer for notifications app.

Email sending functions for reminder events:
- send_notification_email: Generic HTML + text email from a template pair
- send_reminder_email: Reminder to the task assignee
- send_overdue_reminder: Overdue notice to the owner or the assignee
- send_escalation_email: Escalation notice to the task owner

Every sender returns a SendResult and never raises for delivery errors.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string

from .urgency import Tone, describe_deadline

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    success: bool
    error: Optional[str] = None


# Header colour per tone, used by the reminder template
TONE_COLORS = {
    Tone.FRIENDLY: '#3B82F6',
    Tone.FIRM: '#F59E0B',
    Tone.URGENT: '#EF4444',
    Tone.ESCALATION: '#DC2626',
}


def send_notification_email(to_email, subject, template_name, context, from_email=None):
    """
    Generic email sending function with HTML/text templates.

    Args:
        to_email: Recipient email address
        subject: Email subject
        template_name: Base template name (without extension), e.g.
            'notifications/emails/reminder'
        context: Template context dict
        from_email: Sender email (defaults to DEFAULT_FROM_EMAIL)

    Returns:
        SendResult: success flag and the delivery error, if any
    """
    if not to_email:
        return SendResult(success=False, error='No recipient address')

    context = {**context, 'site_url': settings.SITE_URL}

    try:
        text_body = render_to_string(f'{template_name}.txt', context)
        html_body = render_to_string(f'{template_name}.html', context)

        email = EmailMultiAlternatives(
            subject=subject,
            body=text_body,
            from_email=from_email or settings.DEFAULT_FROM_EMAIL,
            to=[to_email],
        )
        email.attach_alternative(html_body, 'text/html')
        email.send(fail_silently=False)
    except Exception as e:
        logger.error('Failed to send "%s" to %s: %s', subject, to_email, e)
        return SendResult(success=False, error=str(e) or e.__class__.__name__)

    logger.info('Email "%s" sent to %s', subject, to_email)
    return SendResult(success=True)


def _task_context(task, days_remaining):
    return {
        'task': task,
        'days_remaining': days_remaining,
        'deadline_text': describe_deadline(days_remaining),
        'is_overdue': days_remaining < 0,
    }


def send_reminder_email(task, subject, body, tone, days_remaining, reminder_number, custom_message=None):
    """
    Send a reminder to the task assignee.

    Args:
        task: Task the reminder is about
        subject: Composed subject line
        body: Composed message body (plain text)
        tone: Tone of the reminder, drives the header colour
        days_remaining: Calendar days until the deadline
        reminder_number: Number shown in the header
        custom_message: Owner's note, shown in its own block

    Returns:
        SendResult
    """
    context = {
        **_task_context(task, days_remaining),
        'recipient_name': task.assignee_name,
        'subject': subject,
        'body': body,
        'tone': tone,
        'reminder_number': reminder_number,
        'tone_color': TONE_COLORS.get(tone, TONE_COLORS[Tone.FRIENDLY]),
        'custom_message': custom_message,
    }
    return send_notification_email(
        task.assignee_email,
        subject,
        'notifications/emails/reminder',
        context,
    )


def send_overdue_reminder(task, days_overdue, to_owner):
    """
    Send an overdue notice.

    The owner gets "your assigned task is overdue", the assignee gets
    "please update the status".

    Returns:
        SendResult
    """
    owner = task.created_by
    if to_owner:
        to_email = owner.email
        template_name = 'notifications/emails/overdue_owner'
        subject = f'⚠️ OVERDUE: "{task.title}" - Action Required!'
        recipient_name = owner.get_full_name()
    else:
        to_email = task.assignee_email
        template_name = 'notifications/emails/overdue_assignee'
        subject = f'🔴 Overdue: {task.title} needs your attention'
        recipient_name = task.assignee_name

    context = {
        **_task_context(task, -days_overdue),
        'recipient_name': recipient_name,
        'owner': owner,
        'days_overdue': days_overdue,
    }
    return send_notification_email(to_email, subject, template_name, context)


def send_escalation_email(task, subject, body, days_remaining):
    """
    Send an escalation notice to the task owner.

    Returns:
        SendResult
    """
    owner = task.created_by
    context = {
        **_task_context(task, days_remaining),
        'recipient_name': owner.get_full_name(),
        'subject': subject,
        'body': body,
        'tone_color': TONE_COLORS[Tone.ESCALATION],
    }
    return send_notification_email(
        owner.email,
        subject,
        'notifications/emails/escalation',
        context,
    )
