from django.core.management.base import BaseCommand, CommandError

from cores.models import PlatformSetting
from exams.reconciliation import closing_within, opening_within


class Command(BaseCommand):
    help = 'Lists published exams opening or closing soon, for the notification service'

    def add_arguments(self, parser):
        parser.add_argument('--hours', type=int, help='Look-ahead window (defaults to the platform setting)')

    def handle(self, *args, **options):
        hours = options['hours']
        if hours is None:
            hours = PlatformSetting.load().default_reminder_hours
        if hours < 1:
            raise CommandError("--hours must be at least 1")

        for label, exams, field in (
            ('Closing', closing_within(hours), 'close_at'),
            ('Opening', opening_within(hours), 'open_at'),
        ):
            self.stdout.write(f"{label} within {hours}h: {len(exams)}")
            for exam in exams:
                self.stdout.write(f"  [{exam.pk}] {exam.course.code} {exam.title} at {getattr(exam, field):%Y-%m-%d %H:%M}")
