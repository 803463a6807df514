import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('courses', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Exam',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('duration_minutes', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('max_attempts', models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ('show_answers', models.BooleanField(default=True, help_text='Reveal correct answers once an attempt is graded')),
                ('shuffle_questions', models.BooleanField(default=False)),
                ('shuffle_options', models.BooleanField(default=False)),
                ('passing_score', models.PositiveIntegerField(default=60, validators=[django.core.validators.MaxValueValidator(100)])),
                ('open_at', models.DateTimeField()),
                ('close_at', models.DateTimeField()),
                ('total_weight', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=9)),
                ('state', models.CharField(choices=[('draft', 'Draft'), ('published', 'Published'), ('closed', 'Closed')], default='draft', max_length=20)),
                ('stats_graded_count', models.PositiveIntegerField(default=0)),
                ('stats_average', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=5)),
                ('stats_passed', models.PositiveIntegerField(default=0)),
                ('stats_failed', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('course', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='exams', to='courses.course')),
                ('instructor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='authored_exams', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-close_at', '-created_at'],
                'indexes': [
                    models.Index(fields=['course', 'state'], name='exam_course_state_idx'),
                    models.Index(fields=['state', 'close_at'], name='exam_state_close_idx'),
                    models.Index(fields=['open_at', 'close_at'], name='exam_window_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(open_at__lt=models.F('close_at')), name='exam_open_before_close'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Question',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('question_type', models.CharField(choices=[('multiple_choice', 'Multiple Choice'), ('true_false', 'True / False'), ('short_answer', 'Short Answer'), ('essay', 'Essay')], max_length=20)),
                ('prompt', models.TextField()),
                ('correct_value', models.TextField(blank=True)),
                ('weight', models.DecimalField(decimal_places=2, max_digits=7, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('order', models.PositiveIntegerField(default=0)),
                ('exam', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='questions', to='exams.exam')),
            ],
            options={
                'ordering': ['order', 'id'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(weight__gte=0), name='question_weight_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Option',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(max_length=20)),
                ('text', models.CharField(max_length=500)),
                ('is_correct', models.BooleanField(default=False)),
                ('order', models.PositiveIntegerField(default=0)),
                ('question', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='options', to='exams.question')),
            ],
            options={
                'ordering': ['order', 'id'],
                'constraints': [
                    models.UniqueConstraint(fields=('question', 'key'), name='unique_option_key_per_question'),
                ],
            },
        ),
    ]
