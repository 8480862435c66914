"""
Task models.

Models:
- Task: Trackable work with a deadline, an assignee and reminder bookkeeping
- Comment: Append-only free-text log on a task
"""

from django.db import models
from django.conf import settings
from django.utils import timezone

from apps.notifications.urgency import days_until_deadline


class TaskQuerySet(models.QuerySet):
    """Query helpers used by the reminder sweeps."""

    def owned_by(self, user):
        return self.filter(created_by=user)

    def not_completed(self):
        return self.exclude(status=Task.Status.COMPLETED)

    def open(self):
        """Tasks still waiting on the assignee (not completed, not overdue)."""
        return self.exclude(status__in=Task.CLOSED_OR_OVERDUE)

    def past_deadline(self, cutoff):
        """Open tasks whose deadline is before `cutoff`."""
        return self.open().filter(deadline__lt=cutoff)

    def awaiting_overdue_notice(self, cutoff):
        """Unfinished tasks past `cutoff` whose overdue notices were never sent."""
        return self.not_completed().filter(deadline__lt=cutoff, overdue_notified_at__isnull=True)

    def not_reminded_since(self, cutoff):
        return self.filter(
            models.Q(last_reminder_sent__isnull=True) |
            models.Q(last_reminder_sent__lt=cutoff)
        )


class Task(models.Model):
    """
    A unit of trackable work owned by `created_by`.

    Status workflow:
    - pending (legacy alias: todo) → in-progress → completed
    - any open status → overdue once the deadline passes (set by
      reconciliation, never by a user)
    - overdue → completed (late completion)

    Invariants:
    - status == completed implies completed_at is set
    - status == overdue implies the deadline had passed when last evaluated
    """

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        TODO = 'todo', 'To Do'
        IN_PROGRESS = 'in-progress', 'In Progress'
        COMPLETED = 'completed', 'Completed'
        OVERDUE = 'overdue', 'Overdue'

    class Priority(models.TextChoices):
        LOW = 'low', 'Low'
        MEDIUM = 'medium', 'Medium'
        HIGH = 'high', 'High'
        CRITICAL = 'critical', 'Critical'

    CLOSED_OR_OVERDUE = [Status.COMPLETED, Status.OVERDUE]

    # Core fields
    title = models.CharField(max_length=100)
    description = models.TextField(blank=True)

    # Assignee is a contact, not an account
    assignee_name = models.CharField(max_length=255)
    assignee_email = models.EmailField(db_index=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='created_tasks',
        help_text='Owner of the task; receives escalations'
    )

    status = models.CharField(
        max_length=15,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    priority = models.CharField(
        max_length=10,
        choices=Priority.choices,
        default=Priority.MEDIUM,
        db_index=True,
    )
    deadline = models.DateTimeField(db_index=True)

    # Reminder bookkeeping
    reminder_count = models.PositiveIntegerField(
        default=0,
        help_text='Reminders successfully sent to the assignee'
    )
    last_reminder_sent = models.DateTimeField(null=True, blank=True)
    overdue_notified_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text='When the owner and assignee were told the task is overdue'
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    objects = TaskQuerySet.as_manager()

    class Meta:
        verbose_name = 'task'
        verbose_name_plural = 'tasks'
        ordering = ['deadline']
        indexes = [
            models.Index(fields=['created_by', 'status'], name='task_owner_status_idx'),
            models.Index(fields=['deadline', 'status'], name='task_deadline_status_idx'),
        ]

    def __str__(self):
        return f"#{self.pk}: {self.title}"

    # ==========================================================================
    # Status Properties
    # ==========================================================================

    @property
    def is_completed(self):
        return self.status == self.Status.COMPLETED

    @property
    def is_open(self):
        """Pending, todo or in progress."""
        return self.status not in self.CLOSED_OR_OVERDUE

    def is_past_deadline(self, now=None):
        return self.deadline < (now or timezone.now())

    def needs_overdue_transition(self, now=None):
        """True when reconciliation would move this task to overdue."""
        return self.is_open and self.is_past_deadline(now)

    def days_until_deadline(self, now=None):
        return days_until_deadline(self.deadline, now)

    @property
    def assignee_first_name(self):
        return self.assignee_name.split(' ')[0] if self.assignee_name else ''

    # ==========================================================================
    # Status Workflow Methods
    # ==========================================================================

    def can_transition_to(self, new_status):
        """Check if a user-driven status transition is valid."""
        valid_transitions = {
            self.Status.PENDING: [self.Status.IN_PROGRESS, self.Status.COMPLETED],
            self.Status.TODO: [self.Status.IN_PROGRESS, self.Status.COMPLETED],
            self.Status.IN_PROGRESS: [self.Status.COMPLETED],
            self.Status.OVERDUE: [self.Status.COMPLETED],
            self.Status.COMPLETED: [],
        }
        return new_status in valid_transitions.get(self.status, [])


class Comment(models.Model):
    """
    Task comment model.

    Comments are append-only; the reminder engine never edits them.
    """

    task = models.ForeignKey(
        Task,
        on_delete=models.CASCADE,
        related_name='comments',
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='task_comments',
    )
    content = models.TextField(max_length=500)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'comment'
        verbose_name_plural = 'comments'
        ordering = ['created_at']  # Chronological order

    def __str__(self):
        return f"Comment by {self.author} on task #{self.task_id}"
