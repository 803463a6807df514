import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('exams', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Attempt',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('number', models.PositiveIntegerField()),
                ('state', models.CharField(choices=[('in_progress', 'In progress'), ('completed', 'Completed'), ('graded', 'Graded')], default='in_progress', max_length=20)),
                ('raw_score', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=9)),
                ('percentage', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=5)),
                ('started_at', models.DateTimeField()),
                ('submitted_at', models.DateTimeField(blank=True, null=True)),
                ('elapsed_minutes', models.PositiveIntegerField(blank=True, null=True)),
                ('feedback', models.TextField(blank=True)),
                ('exam', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attempts', to='exams.exam')),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attempts', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['exam', 'student', 'number'],
                'indexes': [
                    models.Index(fields=['exam', 'state'], name='attempt_exam_state_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('exam', 'student', 'number'), name='unique_attempt_number_per_student'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AnswerRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('value', models.TextField(blank=True, null=True)),
                ('is_correct', models.BooleanField(null=True)),
                ('score', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=7)),
                ('comment', models.TextField(blank=True)),
                ('attempt', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='answers', to='assessments.attempt')),
                ('question', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='answer_records', to='exams.question')),
            ],
            options={
                'ordering': ['question__order', 'question_id'],
                'constraints': [
                    models.UniqueConstraint(fields=('attempt', 'question'), name='unique_answer_per_question'),
                ],
            },
        ),
    ]
