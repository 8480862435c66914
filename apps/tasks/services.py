"""
Service layer for tasks app.

All task state changes go through here, so the reminder sweeps and the
user-facing endpoints share one implementation of the status workflow.

Services:
- reconcile_overdue: Move open tasks past their deadline to overdue
- change_status / complete_task: User-driven transitions
- mark_overdue_if_open: Conditional overdue transition used by the sweep
- claim_overdue_notice / release_overdue_notice: One-time overdue notice marker
- record_reminder_sent: Reminder bookkeeping after a successful send
- mark_urgent: Raise priority to high
- create_task / add_comment: Task creation and comments
"""

import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from .models import Task, Comment

logger = logging.getLogger(__name__)


# =============================================================================
# Overdue Reconciliation
# =============================================================================

def reconcile_overdue(tasks, now=None):
    """
    Apply the lazy overdue transition to a batch of tasks.

    Every task that is still open and whose deadline is before `now` is
    moved to overdue and saved. The other tasks are returned untouched.

    Args:
        tasks: Iterable of Task instances
        now: Evaluation time (defaults to timezone.now())

    Returns:
        list of the same Task instances, in order
    """
    now = now or timezone.now()
    tasks = list(tasks)

    for task in tasks:
        if task.needs_overdue_transition(now):
            task.status = Task.Status.OVERDUE
            task.save(update_fields=['status', 'updated_at'])
            logger.info('Task %s marked overdue (deadline %s)', task.pk, task.deadline.isoformat())

    return tasks


def reconcile_overdue_tasks(now=None, owner=None):
    """
    Reconcile every open task past its deadline, optionally for one owner.

    Returns:
        list of the tasks that were moved to overdue
    """
    now = now or timezone.now()
    queryset = Task.objects.past_deadline(now)
    if owner is not None:
        queryset = queryset.owned_by(owner)
    return reconcile_overdue(queryset, now)


def mark_overdue_if_open(task):
    """
    Move a task to overdue unless it changed state since it was read.

    The update is conditional on the row still being open, so a task the
    user completed in the meantime is left alone.

    Returns:
        bool: True if this call made the transition
    """
    updated = Task.objects.filter(pk=task.pk).open().update(
        status=Task.Status.OVERDUE,
        updated_at=timezone.now(),
    )
    if updated:
        task.status = Task.Status.OVERDUE
    return bool(updated)


def claim_overdue_notice(task, now=None):
    """
    Reserve the one-time overdue notice for a task.

    Only one caller can claim a given task, and completed tasks are never
    claimed. A task already moved to overdue by reconciliation can still
    be claimed, so its notices go out on the next overdue sweep.

    Returns:
        bool: True if the caller should send the notices
    """
    now = now or timezone.now()
    claimed = Task.objects.filter(pk=task.pk, overdue_notified_at__isnull=True).not_completed().update(
        overdue_notified_at=now,
    )
    if claimed:
        task.overdue_notified_at = now
    return bool(claimed)


def release_overdue_notice(task):
    """Undo a claim whose notices all failed, so the next sweep retries."""
    Task.objects.filter(pk=task.pk).update(overdue_notified_at=None)
    task.overdue_notified_at = None


# =============================================================================
# Status Workflow
# =============================================================================

def change_status(task, user, new_status):
    """
    Change task status with workflow validation.

    Workflow Rules:
    - pending/todo → in-progress → completed
    - overdue → completed
    - overdue is never set by hand

    Args:
        task: Task instance
        user: User changing the status (must own the task)
        new_status: Target status

    Returns:
        Updated Task instance

    Raises:
        ValidationError: If the transition is invalid
    """
    if task.created_by_id != user.pk:
        raise ValidationError("Only the task owner can change its status.")

    if new_status == Task.Status.OVERDUE:
        raise ValidationError("Overdue status is set automatically.")

    if not task.can_transition_to(new_status):
        raise ValidationError(
            f"Cannot change status from '{task.get_status_display()}' to "
            f"'{dict(Task.Status.choices).get(new_status, new_status)}'."
        )

    old_status = task.status

    with transaction.atomic():
        task.status = new_status

        # Set completion timestamp
        if new_status == Task.Status.COMPLETED:
            task.completed_at = timezone.now()

        task.save()

    logger.info('Task %s status changed from %s to %s by %s', task.pk, old_status, new_status, user.email)
    return task


def complete_task(task, user):
    """Mark a task completed (allowed from any open or overdue status)."""
    return change_status(task, user, Task.Status.COMPLETED)


# =============================================================================
# Reminder Bookkeeping
# =============================================================================

def record_reminder_sent(task, now=None):
    """
    Count a successfully sent reminder against the task.

    The increment runs in the database on the current row, so a stale
    in-memory `reminder_count` is never written back.

    Returns:
        The task, refreshed from the database
    """
    now = now or timezone.now()
    Task.objects.filter(pk=task.pk).update(
        reminder_count=F('reminder_count') + 1,
        last_reminder_sent=now,
        updated_at=timezone.now(),
    )
    task.refresh_from_db(fields=['reminder_count', 'last_reminder_sent', 'updated_at'])
    return task


def mark_urgent(task):
    """
    Raise priority to high. Idempotent; sends nothing.

    A critical task keeps its priority.

    Returns:
        bool: True if the priority changed
    """
    updated = Task.objects.filter(pk=task.pk).exclude(
        priority__in=[Task.Priority.HIGH, Task.Priority.CRITICAL]
    ).update(
        priority=Task.Priority.HIGH,
        updated_at=timezone.now(),
    )
    if updated:
        task.priority = Task.Priority.HIGH
        logger.info('Task %s marked urgent', task.pk)
    return bool(updated)


# =============================================================================
# Task Creation & Comments
# =============================================================================

def create_task(
    title: str,
    created_by,
    assignee_name: str,
    assignee_email: str,
    deadline,
    description: str = '',
    priority: str = 'medium',
):
    """
    Central task creation function.

    Args:
        title: Task title (required)
        created_by: Owning user (required)
        assignee_name: Display name of the assignee (required)
        assignee_email: Address reminders are sent to (required)
        deadline: Aware datetime when the task is due (required)
        description: Task description (optional)
        priority: low/medium/high/critical (default: medium)

    Returns:
        Created Task instance

    Raises:
        ValidationError: If required fields are missing
    """
    if not title or not title.strip():
        raise ValidationError("Task title is required.")

    if not assignee_name or not assignee_name.strip():
        raise ValidationError("Assignee name is required.")

    if not assignee_email or not assignee_email.strip():
        raise ValidationError("Assignee email is required.")

    if deadline is None:
        raise ValidationError("Deadline is required.")

    if priority not in Task.Priority.values:
        priority = Task.Priority.MEDIUM

    task = Task.objects.create(
        title=title.strip(),
        description=description.strip() if description else '',
        assignee_name=assignee_name.strip(),
        assignee_email=assignee_email.strip().lower(),
        deadline=deadline,
        priority=priority,
        created_by=created_by,
    )

    from apps.notifications.webhooks import notify_task_created
    notify_task_created(task)

    return task


def add_comment(task, user, content):
    """
    Append a comment to a task.

    Raises:
        ValidationError: If content is empty
    """
    if not content or not content.strip():
        raise ValidationError("Comment cannot be empty.")

    return Comment.objects.create(
        task=task,
        author=user,
        content=content.strip()[:500],
    )
