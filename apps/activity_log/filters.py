"""
Reminder log filters using django-filter.

Backs the reminder history endpoint:
- Task filter (by task id)
- Status filter (sent / failed / pending)
- Message type and tone filters
- Date range filter (from date, to date)
- Free-text search over subject, task title and recipient
"""

import django_filters
from django.db.models import Q

from apps.notifications.urgency import Tone
from .models import ReminderLog


class ReminderLogFilter(django_filters.FilterSet):
    """
    Filter for the reminder history endpoint.

    Usage in views:
        filterset = ReminderLogFilter(request.GET, queryset=queryset)
        logs = filterset.qs
    """

    task = django_filters.NumberFilter(field_name='task_id', label='Task')

    status = django_filters.ChoiceFilter(choices=ReminderLog.Status.choices)

    message_type = django_filters.ChoiceFilter(choices=ReminderLog.MessageType.choices)

    tone = django_filters.ChoiceFilter(choices=Tone.choices)

    date_from = django_filters.DateFilter(
        field_name='created_at',
        lookup_expr='date__gte',
        label='From Date',
    )

    date_to = django_filters.DateFilter(
        field_name='created_at',
        lookup_expr='date__lte',
        label='To Date',
    )

    search = django_filters.CharFilter(method='filter_search', label='Search')

    class Meta:
        model = ReminderLog
        fields = ['task', 'status', 'message_type', 'tone', 'date_from', 'date_to', 'search']

    def filter_search(self, queryset, name, value):
        """Case-insensitive partial match on subject, task title and recipient."""
        if not value:
            return queryset

        return queryset.filter(
            Q(subject__icontains=value) |
            Q(task_title__icontains=value) |
            Q(recipient_name__icontains=value) |
            Q(recipient_email__icontains=value)
        )
