"""
Follow a split session from the terminal.

Builds a SessionMirror for one viewer, prints roster, claim and status
changes as they arrive on the change feed, and prints the viewer's
settlement once the host finishes the split.
"""

import time

from django.core.management.base import BaseCommand, CommandError

from splits.services import SplitError
from splits.session_mirror import CLAIMS, ROSTER, SETTLED, STATUS, SessionMirror


class Command(BaseCommand):
    help = 'Watch a split session and print the settlement when it finishes'

    def add_arguments(self, parser):
        parser.add_argument('session_id')
        parser.add_argument('--user', required=True, help='user id to settle for')
        parser.add_argument('--interval', type=float, default=2.0, help='seconds between polls')
        parser.add_argument('--once', action='store_true', help='print the current state and exit')

    def handle(self, *args, **options):
        try:
            mirror = SessionMirror(options['session_id'], options['user'])
        except ValueError:
            raise CommandError(f"{options['session_id']!r} is not a session id")

        mirror.observe(self._print_change)
        try:
            mirror.load()
        except SplitError as e:
            raise CommandError(e.message)

        if options['once'] or mirror.settlement is not None:
            return

        try:
            while mirror.settlement is None:
                time.sleep(options['interval'])
                mirror.catch_up()
        except KeyboardInterrupt:
            self.stdout.write('Stopped watching.')

    def _print_change(self, kind, mirror):
        if kind == ROSTER:
            names = ', '.join(p.display_name for p in mirror.participants) or '(nobody yet)'
            self.stdout.write(f"Participants: {names}")
        elif kind == CLAIMS:
            for index, item in enumerate(mirror.receipt.items):
                names = mirror.claimant_names(index)
                claimed = ', '.join(names) if names else 'unclaimed'
                self.stdout.write(f"  #{index} {item.name}: {claimed}")
        elif kind == STATUS:
            self.stdout.write(f"Status: {mirror.status}")
        elif kind == SETTLED:
            self._print_settlement(mirror.settlement.as_dict())
            self._print_everyone(mirror)

    def _print_settlement(self, settlement):
        self.stdout.write(self.style.SUCCESS('Split finished'))
        for item in settlement['claimed_items']:
            self.stdout.write(
                f"  {item['name']}: ${item['my_share']} of ${item['line_total']} "
                f"(shared by {item['claimant_count']})"
            )
        self.stdout.write(f"  Unclaimed items: ${settlement['unclaimed_share']}")
        self.stdout.write(f"  Items: ${settlement['item_subtotal']}")
        self.stdout.write(f"  Tax:   ${settlement['tax']}")
        self.stdout.write(f"  Tip:   ${settlement['tip']}")
        self.stdout.write(self.style.SUCCESS(f"  You owe ${settlement['total']}"))

    def _print_everyone(self, mirror):
        self.stdout.write('Everyone:')
        for user_id, settlement in mirror.settle_everyone().items():
            self.stdout.write(f"  {mirror.display_name(user_id)}: ${settlement.as_dict()['total']}")
