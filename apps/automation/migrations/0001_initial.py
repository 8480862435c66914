import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='AutomationRule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True, max_length=500)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('trigger_type', models.CharField(choices=[('deadline_approaching', 'Deadline Approaching'), ('task_overdue', 'Task Overdue'), ('no_response', 'No Response'), ('reminder_count', 'Reminder Count')], max_length=25)),
                ('trigger_conditions', models.JSONField(blank=True, default=dict, help_text='{"days": int} or {"count": int} depending on the trigger')),
                ('actions', models.JSONField(default=list, help_text='Ordered list of {"type": ..., "params": {...}}')),
                ('execution_count', models.PositiveIntegerField(default=0)),
                ('last_executed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='automation_rules', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'automation rule',
                'verbose_name_plural': 'automation rules',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['created_by', 'is_active'], name='rule_owner_active_idx'),
                ],
            },
        ),
    ]
