"""
Admin configuration for tasks app.
"""

from django.contrib import admin
from django.utils.html import format_html
from .models import Task, Comment


class CommentInline(admin.TabularInline):
    """Inline admin for comments on task detail."""
    model = Comment
    extra = 0
    readonly_fields = ('author', 'content', 'created_at')
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    """Admin for Task model."""

    list_display = (
        'title', 'assignee_name', 'assignee_email', 'created_by',
        'status_display', 'priority_display', 'deadline',
        'reminder_count', 'last_reminder_sent'
    )
    list_filter = ('status', 'priority', 'created_at', 'deadline')
    search_fields = ('title', 'description', 'assignee_name', 'assignee_email')
    ordering = ('deadline',)
    date_hierarchy = 'deadline'

    # Reminder bookkeeping is owned by the dispatcher
    readonly_fields = (
        'reminder_count', 'last_reminder_sent', 'overdue_notified_at',
        'created_at', 'updated_at', 'completed_at'
    )

    fieldsets = (
        (None, {
            'fields': ('title', 'description', 'created_by')
        }),
        ('Assignee', {
            'fields': ('assignee_name', 'assignee_email')
        }),
        ('Status & Priority', {
            'fields': ('status', 'priority', 'deadline')
        }),
        ('Reminders', {
            'fields': ('reminder_count', 'last_reminder_sent', 'overdue_notified_at'),
            'classes': ('collapse',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'completed_at'),
            'classes': ('collapse',),
        }),
    )

    inlines = [CommentInline]

    def get_queryset(self, request):
        """Optimize with select_related."""
        return super().get_queryset(request).select_related('created_by')

    def status_display(self, obj):
        """Display status with color coding."""
        colors = {
            'pending': '#FFA500',      # Orange
            'todo': '#FFA500',
            'in-progress': '#3498db',  # Blue
            'completed': '#27ae60',    # Green
            'overdue': '#e74c3c',      # Red
        }
        color = colors.get(obj.status, '#000')
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            color, obj.get_status_display()
        )
    status_display.short_description = 'Status'
    status_display.admin_order_field = 'status'

    def priority_display(self, obj):
        """Display priority with color coding."""
        colors = {
            'low': '#95a5a6',
            'medium': '#3498db',
            'high': '#e67e22',
            'critical': '#e74c3c',
        }
        color = colors.get(obj.priority, '#000')
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            color, obj.get_priority_display()
        )
    priority_display.short_description = 'Priority'
    priority_display.admin_order_field = 'priority'


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    """Admin for Comment model."""

    list_display = ('task', 'author', 'content_preview', 'created_at')
    list_filter = ('created_at', 'author')
    search_fields = ('content', 'task__title')
    ordering = ('-created_at',)

    readonly_fields = ('task', 'author', 'created_at')

    def content_preview(self, obj):
        """Show truncated content."""
        return obj.content[:50] + '...' if len(obj.content) > 50 else obj.content
    content_preview.short_description = 'Content'
