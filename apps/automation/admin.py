"""
Admin configuration for automation app.
"""

from django.contrib import admin
from .models import AutomationRule


@admin.register(AutomationRule)
class AutomationRuleAdmin(admin.ModelAdmin):
    """Admin for AutomationRule model."""

    list_display = (
        'name', 'created_by', 'trigger_type', 'actions_display',
        'is_active', 'execution_count', 'last_executed_at'
    )
    list_filter = ('is_active', 'trigger_type', 'created_at')
    search_fields = ('name', 'description', 'created_by__email')
    ordering = ('-created_at',)
    list_editable = ('is_active',)

    readonly_fields = ('execution_count', 'last_executed_at', 'created_at', 'updated_at')

    fieldsets = (
        (None, {
            'fields': ('name', 'description', 'created_by', 'is_active')
        }),
        ('Trigger', {
            'fields': ('trigger_type', 'trigger_conditions')
        }),
        ('Actions', {
            'fields': ('actions',)
        }),
        ('Execution', {
            'fields': ('execution_count', 'last_executed_at', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    def get_queryset(self, request):
        """Optimize with select_related."""
        return super().get_queryset(request).select_related('created_by')

    def actions_display(self, obj):
        return ', '.join(str(t) for t in obj.action_types)
    actions_display.short_description = 'Actions'
