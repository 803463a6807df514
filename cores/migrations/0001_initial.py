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
            name='PlatformSetting',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('site_name', models.CharField(default='Aula Campus', max_length=100)),
                ('support_email', models.EmailField(default='support@aula.local', max_length=254)),
                ('default_pass_mark', models.PositiveIntegerField(default=60, help_text='Default pass mark percentage')),
                ('default_exam_duration', models.PositiveIntegerField(default=60, help_text='Default duration in minutes')),
                ('default_max_attempts', models.PositiveIntegerField(default=1)),
                ('default_reminder_hours', models.PositiveIntegerField(default=24, help_text='Look-ahead window for closing/opening reminders')),
            ],
        ),
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(choices=[('CREATE', 'Create'), ('UPDATE', 'Update'), ('DELETE', 'Delete'), ('PUBLISH', 'Exam Published'), ('CLOSE', 'Exam Closed'), ('GRADE', 'Grade Submitted'), ('SETTINGS', 'Settings Changed')], max_length=20)),
                ('target_model', models.CharField(help_text='e.g., Exam, Attempt', max_length=50)),
                ('target_object_id', models.CharField(blank=True, max_length=100, null=True)),
                ('details', models.TextField(blank=True, help_text='Description of changes')),
                ('timestamp', models.DateTimeField(auto_now_add=True)),
                ('actor', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-timestamp'],
            },
        ),
    ]
