"""
Workflow automation hook.

Task events are POSTed as JSON to WORKFLOW_WEBHOOK_URL from the django-q2
queue. Delivery is best effort: a missing URL, a queue failure or a bad
response is logged and otherwise ignored.
"""

import logging

import requests
from django.conf import settings
from django.utils import timezone
from django_q.tasks import async_task

from .urgency import days_until_deadline

logger = logging.getLogger(__name__)

EVENT_TASK_CREATED = 'task_created'
EVENT_REMINDER_TRIGGERED = 'reminder_triggered'
EVENT_MANUAL_NUDGE = 'manual_nudge'


def build_workflow_payload(task, event, custom_message=None, triggered_by=None, now=None):
    """JSON-ready payload describing `task` for the workflow receiver."""
    now = now or timezone.now()
    payload = {
        'event': event,
        'taskId': str(task.pk),
        'taskTitle': task.title,
        'assigneeName': task.assignee_name,
        'assigneeEmail': task.assignee_email,
        'deadline': task.deadline.isoformat(),
        'priority': task.priority,
        'status': task.status,
        'daysRemaining': days_until_deadline(task.deadline, now),
        'reminderCount': task.reminder_count,
        'timestamp': now.isoformat(),
    }
    if custom_message:
        payload['customMessage'] = custom_message
    if triggered_by:
        payload['triggeredBy'] = triggered_by
    return payload


def post_workflow_event(payload):
    """
    POST one payload to the workflow receiver. Runs on the django-q2 worker.

    Returns:
        bool: True if the receiver answered with a 2xx status
    """
    url = settings.WORKFLOW_WEBHOOK_URL
    if not url:
        return False

    try:
        response = requests.post(
            url,
            json=payload,
            headers={'Content-Type': 'application/json'},
            timeout=settings.WORKFLOW_WEBHOOK_TIMEOUT,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.warning('Workflow event %s for task %s failed: %s', payload.get('event'), payload.get('taskId'), e)
        return False

    logger.info('Workflow event %s for task %s delivered (%s)', payload.get('event'), payload.get('taskId'), response.status_code)
    return True


def notify_workflow(task, event, custom_message=None, triggered_by=None, now=None):
    """
    Queue a workflow event for `task`. Never raises.

    Returns:
        bool: True if the event was handed to the queue
    """
    if not settings.WORKFLOW_WEBHOOK_URL:
        logger.debug('Workflow webhook not configured, skipping %s for task %s', event, task.pk)
        return False

    try:
        payload = build_workflow_payload(task, event, custom_message, triggered_by, now)
        async_task('apps.notifications.webhooks.post_workflow_event', payload)
    except Exception as e:
        logger.warning('Could not queue workflow event %s for task %s: %s', event, task.pk, e)
        return False
    return True


def notify_task_created(task):
    return notify_workflow(task, EVENT_TASK_CREATED)
