"""
Scheduled tasks for notifications app.

Background jobs, run by django-q2 schedules (see setup_schedules), the
/cron/ endpoints and the run_reminders command:
- check_deadline_reminders: Scheduled assignee reminders (hourly)
- check_overdue_tasks: Overdue transition + notices (daily at 9:00 AM)
- run_automation_rules: Owner-defined automation rules (daily at 9:30 AM)
- run_reminder_batch: Overdue sweep then rule sweep, one run at a time

Each job returns a JSON-ready summary. Per-task failures are collected in
the summary's `errors`; only infrastructure failures escape.
"""

import logging

from django.conf import settings
from django.core.cache import cache
from django.utils import timezone

from apps.automation.evaluator import run_rules
from apps.automation.models import AutomationRule
from apps.tasks.models import Task
from apps.tasks.services import (
    claim_overdue_notice,
    mark_overdue_if_open,
    reconcile_overdue_tasks,
    release_overdue_notice,
)
from .dispatcher import dispatch_reminder, send_overdue_notices
from .eligibility import find_scheduled_reminder_candidates
from .urgency import start_of_day

logger = logging.getLogger(__name__)

BATCH_LOCK_KEY = 'notifications:reminder-batch-lock'


def check_overdue_tasks(now=None):
    """
    Scheduled job to run daily at 9:00 AM.

    Moves every unfinished task whose deadline day has passed to overdue
    and emails the owner and the assignee once per task. Tasks the hourly
    sweeps already moved to overdue still get their notices here. A task
    completed between the scan and the update is left alone. When every
    notice for a task fails, the next run tries again.
    """
    now = now or timezone.now()
    logger.info('Overdue check started')

    tasks = list(
        Task.objects.awaiting_overdue_notice(start_of_day(now)).select_related('created_by')
    )
    results = {
        'tasks_scanned': len(tasks),
        'updated': 0,
        'emails_sent': 0,
        'errors': [],
    }

    for task in tasks:
        sent = 0
        try:
            if not claim_overdue_notice(task, now):
                continue
            if mark_overdue_if_open(task):
                results['updated'] += 1

            for send_result in send_overdue_notices(task, now):
                if send_result.success:
                    sent += 1
                else:
                    results['errors'].append(f'{task.pk}: {send_result.error}')
        except Exception as e:
            logger.exception('Overdue check failed for task %s', task.pk)
            results['errors'].append(f'{task.pk}: {e}')

        if task.overdue_notified_at is not None and not sent:
            release_overdue_notice(task)
        results['emails_sent'] += sent

    logger.info(
        'Overdue check complete: %s scanned, %s updated, %s emails sent, %s errors',
        results['tasks_scanned'], results['updated'], results['emails_sent'], len(results['errors'])
    )
    return results


def run_automation_rules(now=None):
    """
    Scheduled job to run daily at 9:30 AM.

    Reconciles overdue tasks first so task_overdue rules see them, then
    evaluates every active rule and saves the rules' execution bookkeeping.
    """
    now = now or timezone.now()
    logger.info('Automation run started')

    reconcile_overdue_tasks(now)

    rules = list(AutomationRule.objects.filter(is_active=True).select_related('created_by'))
    rule_results, updated_rules = run_rules(rules, now)

    for rule in updated_rules:
        rule.save(update_fields=['execution_count', 'last_executed_at', 'updated_at'])

    results = {
        'rules_processed': len(rules),
        'tasks_matched': sum(r.tasks_matched for r in rule_results),
        'reminders_sent': sum(r.reminders_sent for r in rule_results),
        'errors': [error for r in rule_results for error in r.errors],
    }
    logger.info(
        'Automation run complete: %s rules, %s tasks matched, %s sent, %s errors',
        results['rules_processed'], results['tasks_matched'], results['reminders_sent'], len(results['errors'])
    )
    return results


def check_deadline_reminders(now=None):
    """
    Scheduled job to run hourly.

    Sends a scheduled reminder to every task inside a reminder window
    whose cooldown has passed.
    """
    now = now or timezone.now()
    logger.info('Deadline reminder check started')

    reconcile_overdue_tasks(now)
    candidates = find_scheduled_reminder_candidates(now)

    results = {
        'processed': len(candidates),
        'sent': 0,
        'failed': 0,
        'errors': [],
    }

    for task, window in candidates:
        try:
            outcome = dispatch_reminder(task, now=now)
        except Exception as e:
            logger.exception('Scheduled reminder failed for task %s', task.pk)
            results['failed'] += 1
            results['errors'].append(f'{task.pk}: {e}')
            continue

        if outcome.success:
            results['sent'] += 1
        else:
            results['failed'] += 1
            results['errors'].append(f'{task.pk}: {outcome.error}')

    logger.info(
        'Deadline reminder check complete: %s processed, %s sent, %s failed',
        results['processed'], results['sent'], results['failed']
    )
    return results


def run_reminder_batch(now=None):
    """
    Overdue sweep then rule sweep, guarded by a cache lock.

    A failure of the overdue sweep is recorded and the rule sweep still
    runs. Returns {'skipped': True} when another batch holds the lock.
    """
    if not cache.add(BATCH_LOCK_KEY, True, timeout=settings.REMINDER_BATCH_LOCK_TTL):
        logger.info('Reminder batch already running, skipping')
        return {'skipped': True}

    try:
        now = now or timezone.now()
        results = {}

        try:
            results['overdue'] = check_overdue_tasks(now)
        except Exception as e:
            logger.exception('Overdue sweep failed')
            results['overdue'] = {'error': str(e)}

        results['automation'] = run_automation_rules(now)
        return results
    finally:
        cache.delete(BATCH_LOCK_KEY)
