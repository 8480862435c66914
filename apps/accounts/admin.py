"""
Admin configuration for accounts app.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .forms import AdminUserChangeForm, AdminUserCreationForm
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """User admin keyed on email, with task and rule counts."""

    form = AdminUserChangeForm
    add_form = AdminUserCreationForm

    list_display = (
        'email', 'full_name_display', 'open_task_count', 'active_rule_count',
        'receive_escalations', 'is_active', 'created_at'
    )
    list_filter = ('is_active', 'is_staff', 'receive_escalations')
    search_fields = ('email', 'first_name', 'last_name')
    ordering = ('first_name', 'last_name')
    list_per_page = 25

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        (_('Personal Info'), {'fields': ('first_name', 'last_name')}),
        (_('Notifications'), {'fields': ('receive_escalations',)}),
        (_('Permissions'), {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',),
        }),
        (_('Important dates'), {
            'fields': ('last_login', 'created_at', 'updated_at'),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'first_name', 'last_name', 'password1', 'password2'),
        }),
    )

    readonly_fields = ('created_at', 'updated_at', 'last_login')

    def full_name_display(self, obj):
        """Display full name."""
        return obj.get_full_name() or '-'
    full_name_display.short_description = 'Name'
    full_name_display.admin_order_field = 'first_name'

    def open_task_count(self, obj):
        """Tasks owned by the user that are not completed."""
        return obj.created_tasks.exclude(status='completed').count()
    open_task_count.short_description = 'Open tasks'

    def active_rule_count(self, obj):
        return obj.automation_rules.filter(is_active=True).count()
    active_rule_count.short_description = 'Active rules'
