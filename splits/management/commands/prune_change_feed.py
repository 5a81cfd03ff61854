"""
Delete change feed entries past retention.

Clients that were offline longer than the retention window must reload
their session snapshot instead of catching up from the feed.
"""

from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from splits.change_feed import change_feed
from splits.models import ChangeEvent


class Command(BaseCommand):
    help = 'Remove change feed events older than the retention window'

    def add_arguments(self, parser):
        parser.add_argument(
            '--days', type=int, default=settings.CHANGE_FEED_RETENTION_DAYS,
            help='keep events newer than this many days',
        )
        parser.add_argument('--dry-run', action='store_true')

    def handle(self, *args, **options):
        cutoff = timezone.now() - timedelta(days=options['days'])

        if options['dry_run']:
            count = ChangeEvent.objects.filter(created_at__lt=cutoff).count()
            self.stdout.write(f"Would delete {count} events older than {cutoff:%Y-%m-%d %H:%M}")
            return

        deleted = change_feed.prune(cutoff)
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} events older than {cutoff:%Y-%m-%d %H:%M}"))
