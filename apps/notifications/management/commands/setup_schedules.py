"""
Management command to set up Django-Q2 schedules for the reminder sweeps.

This command creates/updates the scheduled tasks required for:
- Hourly scheduled reminder checks
- Daily overdue task check (9:00 AM)
- Daily automation rule run (9:30 AM)

Usage:
    python manage.py setup_schedules

The command is idempotent - safe to run multiple times.
Existing schedules will be updated if their configuration changes.
"""
from django.core.management.base import BaseCommand
from django_q.models import Schedule


SCHEDULES = [
    {
        'name': 'Deadline Reminder Check',
        'label': 'hourly',
        'defaults': {
            'func': 'apps.notifications.tasks.check_deadline_reminders',
            'schedule_type': Schedule.HOURLY,
            'repeats': -1,  # Run forever
        },
    },
    {
        'name': 'Overdue Task Check',
        'label': 'daily at 9:00 AM',
        'defaults': {
            'func': 'apps.notifications.tasks.check_overdue_tasks',
            'schedule_type': Schedule.CRON,
            'cron': '0 9 * * *',
            'repeats': -1,
        },
    },
    {
        'name': 'Automation Rules Run',
        'label': 'daily at 9:30 AM',
        'defaults': {
            'func': 'apps.notifications.tasks.run_automation_rules',
            'schedule_type': Schedule.CRON,
            'cron': '30 9 * * *',
            'repeats': -1,
        },
    },
]


class Command(BaseCommand):
    help = 'Set up Django-Q2 schedules for the reminder sweeps'

    def handle(self, *args, **options):
        self.stdout.write('\nSetting up Django-Q2 schedules...\n')

        schedules_created = 0
        schedules_updated = 0

        for entry in SCHEDULES:
            _, created = Schedule.objects.update_or_create(
                name=entry['name'],
                defaults=entry['defaults'],
            )
            if created:
                schedules_created += 1
                self.stdout.write(
                    self.style.SUCCESS(f"✓ Created schedule: {entry['name']} ({entry['label']})")
                )
            else:
                schedules_updated += 1
                self.stdout.write(
                    self.style.WARNING(f"↻ Updated schedule: {entry['name']} ({entry['label']})")
                )

        total = schedules_created + schedules_updated
        self.stdout.write('')
        self.stdout.write(
            self.style.SUCCESS(
                f'Done! {schedules_created} schedule(s) created, '
                f'{schedules_updated} schedule(s) updated. '
                f'Total: {total} schedules configured.'
            )
        )
        self.stdout.write('')
        self.stdout.write(
            self.style.NOTICE(
                'Note: Ensure Django-Q cluster is running: python manage.py qcluster'
            )
        )
        self.stdout.write('')
