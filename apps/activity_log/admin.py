"""
Admin configuration for activity_log app.
"""

from django.contrib import admin
from .models import ReminderLog


@admin.register(ReminderLog)
class ReminderLogAdmin(admin.ModelAdmin):
    """Read-only admin for the reminder audit trail."""

    list_display = (
        'task_title', 'recipient_email', 'message_type', 'tone',
        'status', 'reminder_number', 'is_ai_generated', 'created_at'
    )
    list_filter = ('status', 'message_type', 'tone', 'is_ai_generated', 'created_at')
    search_fields = (
        'task_title', 'subject', 'recipient_email', 'recipient_name',
        'created_by__email'
    )
    ordering = ('-created_at',)
    date_hierarchy = 'created_at'

    readonly_fields = (
        'task', 'task_title', 'recipient_email', 'recipient_name', 'channel',
        'message_type', 'tone', 'subject', 'message', 'is_ai_generated',
        'status', 'error_message', 'sent_at', 'reminder_number',
        'created_by', 'created_at'
    )

    def has_add_permission(self, request):
        """Prevent manual creation of reminder logs."""
        return False

    def has_change_permission(self, request, obj=None):
        """Prevent editing of reminder logs."""
        return False

    def has_delete_permission(self, request, obj=None):
        """Prevent deletion of reminder logs."""
        return False

    def get_queryset(self, request):
        """Optimize with select_related."""
        return super().get_queryset(request).select_related('task', 'created_by')
