"""
Change feed: events recorded from model signals, polling and in-process delivery.
"""
from datetime import timedelta
from decimal import Decimal
from unittest.mock import Mock

from django.test import TestCase, override_settings
from django.utils import timezone

from splits.change_feed import ChangeFeed, change_feed
from splits.models import ChangeEvent, Receipt, SplitSession
from splits.services import ClaimService, RosterService, SessionService


class ChangeFeedTests(TestCase):
    def setUp(self):
        self.receipt = Receipt.objects.create(
            owner_id='host', subtotal=Decimal('9.00'),
            items=[{'name': 'Ramen', 'line_total': '9.00'}],
        )
        self.sessions = SessionService()
        self.split_session = self.sessions.create_session(self.receipt.id, 'host', 'Hana')

    def events(self, **filters):
        return [(e.table, e.event) for e in change_feed.poll(self.split_session.id, **filters)]

    def test_creation_records_session_and_host(self):
        self.assertEqual(self.events(), [
            (ChangeEvent.SESSIONS, ChangeEvent.INSERT),
            (ChangeEvent.PARTICIPANTS, ChangeEvent.INSERT),
        ])

    def test_claim_lifecycle_is_recorded(self):
        self.sessions.transition(self.split_session.id, SplitSession.ACTIVE, 'host')
        cursor = change_feed.latest_cursor(self.split_session.id)

        ClaimService().claim(self.split_session.id, 0, 'host')
        ClaimService().claim(self.split_session.id, 0, 'host')
        ClaimService().unclaim(self.split_session.id, 0, 'host')

        events = change_feed.poll(self.split_session.id, since=cursor)
        self.assertEqual([(e.table, e.event) for e in events], [
            (ChangeEvent.CLAIMS, ChangeEvent.INSERT),
            (ChangeEvent.CLAIMS, ChangeEvent.DELETE),
        ])
        self.assertEqual(events[1].row['item_index'], 0)
        self.assertEqual(events[1].row['user_id'], 'host')

    def test_unchanged_rejoin_records_nothing(self):
        cursor = change_feed.latest_cursor()
        RosterService().join(self.split_session.id, 'host', 'Hana')
        self.assertEqual(change_feed.poll(self.split_session.id, since=cursor), [])

        RosterService().join(self.split_session.id, 'host', 'Hana B')
        self.assertEqual(self.events(since=cursor), [(ChangeEvent.PARTICIPANTS, ChangeEvent.UPDATE)])

    def test_poll_pages_in_cursor_order(self):
        for i in range(5):
            RosterService().join(self.split_session.id, f'user-{i}', f'User {i}')

        first = change_feed.poll(self.split_session.id, since=0, limit=3)
        rest = change_feed.poll(self.split_session.id, since=first[-1].id, limit=100)

        ids = [e.id for e in first + rest]
        self.assertEqual(ids, sorted(ids))
        self.assertEqual(len(ids), 7)

    @override_settings(CHANGE_FEED_PAGE_SIZE=2)
    def test_default_page_size(self):
        RosterService().join(self.split_session.id, 'bob', 'Bob')
        self.assertEqual(len(change_feed.poll(self.split_session.id)), 2)

    def test_feeds_are_scoped_per_session(self):
        other = self.sessions.create_session(self.receipt.id, 'host', 'Hana')
        self.assertEqual(len(change_feed.poll(other.id)), 2)
        self.assertEqual(len(change_feed.poll(self.split_session.id)), 2)

    def test_prune(self):
        ChangeEvent.objects.filter(session_id=self.split_session.id).update(
            created_at=timezone.now() - timedelta(days=30)
        )
        RosterService().join(self.split_session.id, 'bob', 'Bob')

        deleted = change_feed.prune(timezone.now() - timedelta(days=7))

        self.assertEqual(deleted, 2)
        self.assertEqual(self.events(), [(ChangeEvent.PARTICIPANTS, ChangeEvent.INSERT)])


class SubscriptionTests(TestCase):
    def setUp(self):
        self.feed = ChangeFeed()
        self.receipt = Receipt.objects.create(owner_id='host', items=[{'name': 'Tea', 'line_total': '3.00'}])
        self.split_session = SessionService().create_session(self.receipt.id, 'host', 'Hana')

    def record_join(self, user_id):
        return self.feed.record(
            session_id=self.split_session.id,
            table=ChangeEvent.PARTICIPANTS,
            event=ChangeEvent.INSERT,
            row_id=user_id,
            row={'user_id': user_id, 'display_name': user_id},
        )

    def test_delivered_after_commit(self):
        callback = Mock()
        self.feed.subscribe(ChangeEvent.PARTICIPANTS, self.split_session.id, callback)

        with self.captureOnCommitCallbacks(execute=True):
            change = self.record_join('bob')
            callback.assert_not_called()

        callback.assert_called_once_with(change)

    def test_not_delivered_when_rolled_back(self):
        callback = Mock()
        self.feed.subscribe(ChangeEvent.PARTICIPANTS, self.split_session.id, callback)

        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            self.record_join('bob')

        self.assertEqual(len(callbacks), 1)
        callback.assert_not_called()

    def test_filters_by_table_session_and_event(self):
        wrong_table = Mock()
        wrong_event = Mock()
        other_session = Mock()
        self.feed.subscribe(ChangeEvent.CLAIMS, self.split_session.id, wrong_table)
        self.feed.subscribe(ChangeEvent.PARTICIPANTS, self.split_session.id, wrong_event, events=[ChangeEvent.DELETE])
        self.feed.subscribe(ChangeEvent.PARTICIPANTS, '00000000-0000-0000-0000-000000000000', other_session)

        with self.captureOnCommitCallbacks(execute=True):
            self.record_join('bob')

        wrong_table.assert_not_called()
        wrong_event.assert_not_called()
        other_session.assert_not_called()

    def test_closed_subscription_stops_delivery(self):
        callback = Mock()
        subscription = self.feed.subscribe(ChangeEvent.PARTICIPANTS, self.split_session.id, callback)
        subscription.close()
        subscription.close()

        with self.captureOnCommitCallbacks(execute=True):
            self.record_join('bob')

        callback.assert_not_called()
        self.assertEqual(self.feed.subscriber_count(), 0)

    def test_failing_subscriber_does_not_block_others(self):
        broken = Mock(side_effect=RuntimeError('boom'))
        healthy = Mock()
        self.feed.subscribe(ChangeEvent.PARTICIPANTS, self.split_session.id, broken)
        self.feed.subscribe(ChangeEvent.PARTICIPANTS, self.split_session.id, healthy)

        with self.assertLogs('splits.change_feed', level='ERROR'):
            with self.captureOnCommitCallbacks(execute=True):
                self.record_join('bob')

        healthy.assert_called_once()

    def test_rejects_unknown_tables_and_events(self):
        with self.assertRaises(ValueError):
            self.feed.subscribe('receipts', self.split_session.id, Mock())
        with self.assertRaises(ValueError):
            self.feed.subscribe(ChangeEvent.CLAIMS, self.split_session.id, Mock(), events=['TRUNCATE'])

    def test_session_ids_are_matched_in_any_spelling(self):
        callback = Mock()
        self.feed.subscribe(ChangeEvent.PARTICIPANTS, self.split_session.id.hex, callback)

        with self.captureOnCommitCallbacks(execute=True):
            self.record_join('bob')

        callback.assert_called_once()
