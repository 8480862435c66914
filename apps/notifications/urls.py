"""
URL configuration for notifications app.
"""

from django.urls import path
from . import views

app_name = 'notifications'

urlpatterns = [
    # Cron triggers
    path('cron/check-overdue/', views.cron_check_overdue, name='cron_check_overdue'),
    path('cron/run-automation/', views.cron_run_automation, name='cron_run_automation'),
    path('cron/check-deadlines/', views.cron_check_deadlines, name='cron_check_deadlines'),
    path('cron/run-batch/', views.cron_run_batch, name='cron_run_batch'),

    # Manual reminders
    path('tasks/<int:pk>/remind/', views.send_task_reminder, name='send_task_reminder'),
    path('reminders/bulk/', views.send_bulk_reminders, name='send_bulk_reminders'),

    # History
    path('reminders/logs/', views.reminder_logs, name='reminder_logs'),
]
