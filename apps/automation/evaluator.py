"""
Automation rule evaluation.

Each active rule selects some of its owner's tasks by trigger and runs its
actions against every match, in order. A failing task is recorded as
"<task id>: <message>" and the rest of the rule still runs.

Re-running the rule sweep on the same day does not repeat deliveries:
send_reminder skips tasks reminded today and send_escalation skips tasks
already escalated today.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from django.utils import timezone

from apps.notifications.dispatcher import (
    dispatch_reminder,
    escalated_today,
    reminded_today,
    send_escalation,
)
from apps.tasks.models import Task
from apps.tasks.services import mark_urgent
from apps.notifications.urgency import start_of_day, start_of_day_offset
from .models import AutomationRule

logger = logging.getLogger(__name__)


@dataclass
class RuleResult:
    rule_id: int
    rule_name: str
    tasks_matched: int = 0
    reminders_sent: int = 0
    errors: List[str] = field(default_factory=list)


# =============================================================================
# Trigger Matching
# =============================================================================

def match_tasks(rule, now=None):
    """
    Tasks owned by the rule's creator that satisfy its trigger.

    Returns:
        QuerySet of Task
    """
    now = now or timezone.now()
    today_start = start_of_day(now)
    tasks = Task.objects.owned_by(rule.created_by_id).select_related('created_by')
    trigger = rule.trigger_type

    if trigger == AutomationRule.TriggerType.DEADLINE_APPROACHING:
        return tasks.open().not_reminded_since(today_start).filter(
            deadline__gt=today_start,
            deadline__lt=start_of_day_offset(rule.days_condition + 1, now),
        )

    if trigger == AutomationRule.TriggerType.TASK_OVERDUE:
        return tasks.filter(status=Task.Status.OVERDUE, deadline__lt=today_start)

    if trigger == AutomationRule.TriggerType.NO_RESPONSE:
        return tasks.not_completed().filter(
            last_reminder_sent__lt=start_of_day_offset(-rule.days_condition, now),
            reminder_count__gt=0,
        )

    if trigger == AutomationRule.TriggerType.REMINDER_COUNT:
        return tasks.not_completed().filter(reminder_count__gte=rule.count_condition)

    logger.warning('Rule %s has unknown trigger %r', rule.pk, trigger)
    return tasks.none()


# =============================================================================
# Actions
# =============================================================================

def execute_actions(rule, task, now=None):
    """
    Run the rule's actions against one task, in order.

    Returns:
        (deliveries, failures): number of reminders and escalations sent,
        and the delivery errors of the ones that failed

    Raises:
        Any database error; the caller isolates it to this task
    """
    now = now or timezone.now()
    deliveries = 0
    failures = []

    for action in rule.actions or []:
        action_type = action.get('type')

        if action_type == AutomationRule.ActionType.SEND_REMINDER:
            task.refresh_from_db(fields=['last_reminder_sent'])
            if reminded_today(task, now):
                logger.debug('Task %s already reminded today, skipping', task.pk)
                continue
            outcome = dispatch_reminder(task, now=now)
            if outcome.success:
                deliveries += 1
            else:
                failures.append(outcome.error or 'Reminder delivery failed')

        elif action_type == AutomationRule.ActionType.MARK_URGENT:
            mark_urgent(task)

        elif action_type == AutomationRule.ActionType.SEND_ESCALATION:
            if escalated_today(task, now):
                logger.debug('Task %s already escalated today, skipping', task.pk)
                continue
            outcome = send_escalation(task, now=now)
            if outcome.success:
                deliveries += 1
            elif not outcome.skipped:
                failures.append(outcome.error or 'Escalation delivery failed')

        else:
            failures.append(f'Unknown action {action_type!r}')

    return deliveries, failures


def run_rule(rule, now=None):
    """
    Evaluate one rule against its owner's tasks.

    Returns:
        RuleResult
    """
    now = now or timezone.now()
    result = RuleResult(rule_id=rule.pk, rule_name=rule.name)

    tasks = list(match_tasks(rule, now))
    result.tasks_matched = len(tasks)
    logger.info('Rule "%s": %s tasks matched', rule.name, len(tasks))

    for task in tasks:
        try:
            deliveries, failures = execute_actions(rule, task, now)
        except Exception as e:
            logger.exception('Rule %s failed on task %s', rule.pk, task.pk)
            result.errors.append(f'{task.pk}: {e}')
            continue

        result.reminders_sent += deliveries
        result.errors.extend(f'{task.pk}: {failure}' for failure in failures)

    return result


def run_rules(rules, now=None):
    """
    Evaluate a set of rules.

    Execution bookkeeping (count, last run) is applied to every rule that
    matched at least one task but not saved; the caller persists the
    returned rules.

    Returns:
        (results, updated_rules): one RuleResult per rule, and the rules
        whose bookkeeping changed
    """
    now = now or timezone.now()
    results = []
    updated_rules = []

    for rule in rules:
        if not rule.is_active:
            continue
        try:
            result = run_rule(rule, now)
        except Exception as e:
            logger.exception('Rule %s could not be evaluated', rule.pk)
            result = RuleResult(rule_id=rule.pk, rule_name=rule.name, errors=[f'Rule {rule.name}: {e}'])
        results.append(result)

        if result.tasks_matched:
            rule.execution_count += 1
            rule.last_executed_at = now
            updated_rules.append(rule)

    return results, updated_rules
