"""
Reminder log model: the audit trail of reminder attempts.

One row is written for every attempt to notify someone about a task:
- Scheduled reminders from the sweeps and automation rules
- Manual reminders sent by the task owner
- Escalations sent to the task owner

Rows are insert-only. Retention is handled outside the application.
"""

from django.db import models
from django.conf import settings

from apps.notifications.urgency import Tone


class ReminderLog(models.Model):
    """
    Immutable record of one reminder attempt.

    `reminder_number` is the assignee reminder number the attempt was made
    as (task.reminder_count + 1 at the time), or the current count for
    escalations, which do not advance it.
    """

    class Channel(models.TextChoices):
        EMAIL = 'email', 'Email'
        SLACK = 'slack', 'Slack'
        PUSH = 'push', 'Push'

    class MessageType(models.TextChoices):
        SCHEDULED = 'scheduled', 'Scheduled'
        MANUAL = 'manual', 'Manual'
        ESCALATION = 'escalation', 'Escalation'

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        SENT = 'sent', 'Sent'
        FAILED = 'failed', 'Failed'

    task = models.ForeignKey(
        'tasks.Task',
        on_delete=models.CASCADE,
        related_name='reminder_logs',
    )
    task_title = models.CharField(max_length=255)
    recipient_email = models.EmailField(db_index=True)
    recipient_name = models.CharField(max_length=255)

    channel = models.CharField(
        max_length=10,
        choices=Channel.choices,
        default=Channel.EMAIL,
    )
    message_type = models.CharField(
        max_length=15,
        choices=MessageType.choices,
        default=MessageType.SCHEDULED,
        db_index=True,
    )
    tone = models.CharField(
        max_length=15,
        choices=Tone.choices,
        default=Tone.FRIENDLY,
    )
    subject = models.CharField(max_length=255)
    message = models.TextField()
    is_ai_generated = models.BooleanField(default=False)

    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    error_message = models.TextField(null=True, blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    reminder_number = models.PositiveIntegerField()

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='reminder_logs',
        help_text='Owner of the task at the time of the attempt'
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = 'reminder log'
        verbose_name_plural = 'reminder logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['task', '-created_at'], name='reminderlog_task_idx'),
            models.Index(fields=['created_by', '-created_at'], name='reminderlog_owner_idx'),
            models.Index(fields=['status', '-created_at'], name='reminderlog_status_idx'),
        ]

    def __str__(self):
        return f"Task #{self.task_id} - {self.get_message_type_display()} to {self.recipient_email} ({self.status})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Reminder logs are append-only and cannot be modified.")
        super().save(*args, **kwargs)

    @property
    def was_sent(self):
        return self.status == self.Status.SENT


def log_reminder_attempt(task, recipient_email, recipient_name, message_type, tone,
                         subject, message, is_ai_generated, reminder_number,
                         success, error_message=None, sent_at=None):
    """
    Helper function to create reminder log entries.

    Args:
        task: Task the reminder was about
        recipient_email: Address the message was sent to
        recipient_name: Display name of the recipient
        message_type: One of ReminderLog.MessageType choices
        tone: One of Tone choices
        subject: Email subject
        message: Message body (plain text, as generated)
        is_ai_generated: Whether the body came from the message generator
        reminder_number: Reminder number snapshot
        success: Whether the notifier accepted the message
        error_message: Delivery error detail on failure
        sent_at: Delivery time on success

    Returns:
        Created ReminderLog instance
    """
    return ReminderLog.objects.create(
        task=task,
        task_title=task.title[:255],
        recipient_email=recipient_email,
        recipient_name=recipient_name,
        channel=ReminderLog.Channel.EMAIL,
        message_type=message_type,
        tone=tone,
        subject=subject[:255],
        message=message,
        is_ai_generated=is_ai_generated,
        status=ReminderLog.Status.SENT if success else ReminderLog.Status.FAILED,
        error_message=None if success else error_message,
        sent_at=sent_at if success else None,
        reminder_number=reminder_number,
        created_by_id=task.created_by_id,
    )
