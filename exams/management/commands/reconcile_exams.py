from django.core.management.base import BaseCommand

from exams.reconciliation import reconcile


class Command(BaseCommand):
    help = 'Closes published exams whose close time has passed. Meant to run from cron.'

    def handle(self, *args, **options):
        count = reconcile()
        self.stdout.write(self.style.SUCCESS(f"Closed {count} exam(s)"))
