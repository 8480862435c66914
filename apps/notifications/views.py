"""
Views for notifications app.

JSON endpoints only:
- Cron triggers for the reminder sweeps (shared-secret protected)
- Manual reminder for one task, and bulk reminders
- Reminder history for the signed-in owner
"""

import json
import logging

from django.conf import settings
from django.contrib.auth.decorators import login_required
from django.core.paginator import Paginator
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils.crypto import constant_time_compare
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.activity_log.filters import ReminderLogFilter
from apps.activity_log.models import ReminderLog
from apps.tasks.models import Task
from apps.tasks.services import reconcile_overdue
from . import tasks as jobs
from .dispatcher import dispatch_reminder

logger = logging.getLogger(__name__)

DEFAULT_LOG_LIMIT = 50


# =============================================================================
# Cron Triggers
# =============================================================================

def _cron_authorized(request):
    secret = settings.CRON_SECRET
    if not secret:
        return True
    return constant_time_compare(request.headers.get('X-Cron-Secret', ''), secret)


def _run_cron_job(request, job, message, failure):
    if not _cron_authorized(request):
        return JsonResponse({'error': 'Unauthorized'}, status=401)

    try:
        results = job()
    except Exception as e:
        logger.exception('%s', failure)
        return JsonResponse({'error': failure, 'details': str(e)}, status=500)

    return JsonResponse({'success': True, 'message': message, 'results': results})


@csrf_exempt
@require_http_methods(["GET", "POST"])
def cron_check_overdue(request):
    """Mark overdue tasks and notify owners and assignees."""
    return _run_cron_job(
        request, jobs.check_overdue_tasks,
        'Overdue check completed', 'Failed to check overdue tasks',
    )


@csrf_exempt
@require_http_methods(["GET", "POST"])
def cron_run_automation(request):
    """Run all active automation rules."""
    return _run_cron_job(
        request, jobs.run_automation_rules,
        'Automation rules executed', 'Failed to run automation',
    )


@csrf_exempt
@require_http_methods(["GET", "POST"])
def cron_check_deadlines(request):
    """Send scheduled reminders for tasks inside a reminder window."""
    return _run_cron_job(
        request, jobs.check_deadline_reminders,
        'Deadline reminders processed', 'Failed to check deadlines',
    )


@csrf_exempt
@require_http_methods(["GET", "POST"])
def cron_run_batch(request):
    """Overdue sweep then rule sweep, skipped if a batch is already running."""
    return _run_cron_job(
        request, jobs.run_reminder_batch,
        'Reminder batch executed', 'Failed to run reminder batch',
    )


# =============================================================================
# Manual Reminders
# =============================================================================

def _json_body(request):
    try:
        body = json.loads(request.body or b'{}')
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _outcome_json(outcome):
    log = outcome.log
    return {
        'id': log.pk if log else None,
        'status': log.status if log else ReminderLog.Status.FAILED,
        'isAIGenerated': outcome.is_ai_generated,
        'tone': outcome.tone,
        'subject': log.subject if log else None,
        'sentAt': log.sent_at.isoformat() if log and log.sent_at else None,
    }


@login_required
@require_POST
def send_task_reminder(request, pk):
    """Send a manual reminder for one of the user's tasks."""
    task = get_object_or_404(Task, pk=pk, created_by=request.user)
    reconcile_overdue([task])

    body = _json_body(request)
    if body is None:
        return JsonResponse({'error': 'Invalid JSON body'}, status=400)

    outcome = dispatch_reminder(
        task,
        message_type=ReminderLog.MessageType.MANUAL,
        use_ai=bool(body.get('useAI', True)),
        custom_message=body.get('customMessage') or None,
        triggered_by=request.user.get_full_name(),
    )

    return JsonResponse({'success': outcome.success, 'reminder': _outcome_json(outcome)})


@login_required
@require_POST
def send_bulk_reminders(request):
    """Send a manual reminder for each of the given tasks."""
    body = _json_body(request)
    if body is None:
        return JsonResponse({'error': 'Invalid JSON body'}, status=400)

    task_ids = body.get('taskIds')
    if not isinstance(task_ids, list) or not task_ids:
        return JsonResponse({'error': 'At least one task ID is required'}, status=400)

    try:
        task_ids = [int(task_id) for task_id in task_ids]
    except (TypeError, ValueError):
        return JsonResponse({'error': 'Task IDs must be integers'}, status=400)

    tasks = reconcile_overdue(Task.objects.owned_by(request.user).filter(pk__in=task_ids))
    if not tasks:
        return JsonResponse({'error': 'No tasks found'}, status=404)

    use_ai = bool(body.get('useAI', True))
    custom_message = body.get('customMessage') or None

    results = []
    for task in tasks:
        try:
            outcome = dispatch_reminder(
                task,
                message_type=ReminderLog.MessageType.MANUAL,
                use_ai=use_ai,
                custom_message=custom_message,
                triggered_by=request.user.get_full_name(),
            )
        except Exception as e:
            logger.exception('Bulk reminder failed for task %s', task.pk)
            results.append({'taskId': task.pk, 'success': False, 'error': str(e)})
            continue
        results.append({'taskId': task.pk, 'success': outcome.success, 'error': outcome.error})

    sent = sum(1 for r in results if r['success'])
    return JsonResponse({
        'success': True,
        'summary': {
            'total': len(results),
            'sent': sent,
            'failed': len(results) - sent,
        },
        'results': results,
    })


# =============================================================================
# Reminder History
# =============================================================================

def _log_json(log):
    return {
        'id': log.pk,
        'taskId': log.task_id,
        'taskTitle': log.task_title,
        'recipientEmail': log.recipient_email,
        'recipientName': log.recipient_name,
        'channel': log.channel,
        'messageType': log.message_type,
        'tone': log.tone,
        'subject': log.subject,
        'message': log.message,
        'isAIGenerated': log.is_ai_generated,
        'status': log.status,
        'errorMessage': log.error_message,
        'sentAt': log.sent_at.isoformat() if log.sent_at else None,
        'reminderNumber': log.reminder_number,
        'createdAt': log.created_at.isoformat(),
    }


@login_required
@require_GET
def reminder_logs(request):
    """Reminder history of the user's tasks, newest first."""
    queryset = ReminderLog.objects.filter(created_by=request.user).order_by('-created_at')
    filterset = ReminderLogFilter(request.GET, queryset=queryset)

    try:
        limit = max(1, int(request.GET.get('limit', DEFAULT_LOG_LIMIT)))
    except ValueError:
        limit = DEFAULT_LOG_LIMIT

    paginator = Paginator(filterset.qs, limit)
    page = paginator.get_page(request.GET.get('page'))

    return JsonResponse({
        'logs': [_log_json(log) for log in page.object_list],
        'pagination': {
            'page': page.number,
            'limit': limit,
            'total': paginator.count,
            'totalPages': paginator.num_pages,
        },
    })
