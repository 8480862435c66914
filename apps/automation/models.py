"""
Automation rule model.

A rule is an owner-defined escalation policy: when a trigger matches one of
the owner's tasks, run the rule's actions against it, in order.

Example rule (stored as JSON in trigger_conditions / actions):
    trigger_type = 'no_response'
    trigger_conditions = {'days': 2}
    actions = [{'type': 'send_reminder'}, {'type': 'mark_urgent'}]
"""

from django.db import models
from django.conf import settings
from django.core.exceptions import ValidationError


class AutomationRule(models.Model):
    """User-defined trigger/condition/action rule."""

    class TriggerType(models.TextChoices):
        DEADLINE_APPROACHING = 'deadline_approaching', 'Deadline Approaching'
        TASK_OVERDUE = 'task_overdue', 'Task Overdue'
        NO_RESPONSE = 'no_response', 'No Response'
        REMINDER_COUNT = 'reminder_count', 'Reminder Count'

    class ActionType(models.TextChoices):
        SEND_REMINDER = 'send_reminder', 'Send Reminder'
        MARK_URGENT = 'mark_urgent', 'Mark Urgent'
        SEND_ESCALATION = 'send_escalation', 'Send Escalation'

    # Condition defaults when the rule does not set them
    DEFAULT_DAYS = {
        TriggerType.DEADLINE_APPROACHING: 3,
        TriggerType.NO_RESPONSE: 2,
    }
    DEFAULT_COUNT = 3

    name = models.CharField(max_length=100)
    description = models.TextField(max_length=500, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    trigger_type = models.CharField(
        max_length=25,
        choices=TriggerType.choices,
    )
    trigger_conditions = models.JSONField(
        default=dict,
        blank=True,
        help_text='{"days": int} or {"count": int} depending on the trigger'
    )
    actions = models.JSONField(
        default=list,
        help_text='Ordered list of {"type": ..., "params": {...}}'
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='automation_rules',
    )

    # Execution bookkeeping, written by the batch runner
    execution_count = models.PositiveIntegerField(default=0)
    last_executed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'automation rule'
        verbose_name_plural = 'automation rules'
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['created_by', 'is_active'], name='rule_owner_active_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.get_trigger_type_display()})"

    # ==========================================================================
    # Conditions
    # ==========================================================================

    @property
    def days_condition(self):
        """`days` condition for deadline_approaching / no_response triggers."""
        days = (self.trigger_conditions or {}).get('days')
        if days is None:
            return self.DEFAULT_DAYS.get(self.trigger_type, 0)
        return int(days)

    @property
    def count_condition(self):
        """`count` condition for reminder_count triggers."""
        count = (self.trigger_conditions or {}).get('count')
        if count is None:
            return self.DEFAULT_COUNT
        return int(count)

    @property
    def action_types(self):
        return [action.get('type') for action in (self.actions or [])]

    def clean(self):
        """Validate conditions and the action list."""
        conditions = self.trigger_conditions or {}
        if not isinstance(conditions, dict):
            raise ValidationError({'trigger_conditions': 'Conditions must be an object.'})

        for key in ('days', 'count'):
            value = conditions.get(key)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValidationError({'trigger_conditions': f'"{key}" must be a non-negative integer.'})

        if not isinstance(self.actions, list) or not self.actions:
            raise ValidationError({'actions': 'At least one action is required.'})

        valid_types = set(self.ActionType.values)
        for action in self.actions:
            if not isinstance(action, dict) or action.get('type') not in valid_types:
                raise ValidationError({'actions': f'Invalid action: {action!r}'})
