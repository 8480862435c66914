import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tasks', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ReminderLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('task_title', models.CharField(max_length=255)),
                ('recipient_email', models.EmailField(db_index=True, max_length=254)),
                ('recipient_name', models.CharField(max_length=255)),
                ('channel', models.CharField(choices=[('email', 'Email'), ('slack', 'Slack'), ('push', 'Push')], default='email', max_length=10)),
                ('message_type', models.CharField(choices=[('scheduled', 'Scheduled'), ('manual', 'Manual'), ('escalation', 'Escalation')], db_index=True, default='scheduled', max_length=15)),
                ('tone', models.CharField(choices=[('friendly', 'Friendly'), ('firm', 'Firm'), ('urgent', 'Urgent'), ('escalation', 'Escalation')], default='friendly', max_length=15)),
                ('subject', models.CharField(max_length=255)),
                ('message', models.TextField()),
                ('is_ai_generated', models.BooleanField(default=False)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('sent', 'Sent'), ('failed', 'Failed')], db_index=True, default='pending', max_length=10)),
                ('error_message', models.TextField(blank=True, null=True)),
                ('sent_at', models.DateTimeField(blank=True, null=True)),
                ('reminder_number', models.PositiveIntegerField()),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('created_by', models.ForeignKey(help_text='Owner of the task at the time of the attempt', on_delete=django.db.models.deletion.CASCADE, related_name='reminder_logs', to=settings.AUTH_USER_MODEL)),
                ('task', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reminder_logs', to='tasks.task')),
            ],
            options={
                'verbose_name': 'reminder log',
                'verbose_name_plural': 'reminder logs',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['task', '-created_at'], name='reminderlog_task_idx'),
                    models.Index(fields=['created_by', '-created_at'], name='reminderlog_owner_idx'),
                    models.Index(fields=['status', '-created_at'], name='reminderlog_status_idx'),
                ],
            },
        ),
    ]
