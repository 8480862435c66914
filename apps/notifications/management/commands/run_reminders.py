"""
Management command to run a reminder sweep once.

Usage:
    python manage.py run_reminders                  # overdue + automation, locked
    python manage.py run_reminders --sweep deadlines

Prints the sweep summary as JSON.
"""
import json

from django.core.management.base import BaseCommand

from apps.notifications import tasks as jobs


SWEEPS = {
    'overdue': jobs.check_overdue_tasks,
    'automation': jobs.run_automation_rules,
    'deadlines': jobs.check_deadline_reminders,
    'all': jobs.run_reminder_batch,
}


class Command(BaseCommand):
    help = 'Run a reminder sweep once and print its summary'

    def add_arguments(self, parser):
        parser.add_argument(
            '--sweep',
            choices=sorted(SWEEPS),
            default='all',
            help='Which sweep to run (default: all = overdue then automation)',
        )

    def handle(self, *args, **options):
        results = SWEEPS[options['sweep']]()
        self.stdout.write(json.dumps(results, indent=2, default=str))
