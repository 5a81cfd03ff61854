"""
Joining sessions: idempotent upserts keyed on (session, user).
"""
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from splits.models import Receipt, SessionParticipant, SplitSession
from splits.services import RosterService, SessionClosedError, SessionNotFoundError, SessionService


class RosterTests(TestCase):
    def setUp(self):
        self.receipt = Receipt.objects.create(
            owner_id='host', subtotal=Decimal('10.00'),
            items=[{'name': 'Pizza', 'quantity': 1, 'unit_price': '10.00', 'line_total': '10.00'}],
        )
        self.sessions = SessionService()
        self.roster = RosterService()
        self.split_session = self.sessions.create_session(self.receipt.id, 'host', 'Hana')

    def test_join_adds_participant(self):
        participant = self.roster.join(self.split_session.id, 'bob', 'Bob')

        self.assertEqual(participant.display_name, 'Bob')
        self.assertEqual([p.user_id for p in self.roster.list(self.split_session.id)], ['host', 'bob'])

    def test_join_twice_keeps_one_row(self):
        self.roster.join(self.split_session.id, 'bob', 'Bob')
        self.roster.join(self.split_session.id, 'bob', 'Bob')

        self.assertEqual(SessionParticipant.objects.filter(session=self.split_session, user_id='bob').count(), 1)
        self.assertEqual(len(self.roster.list(self.split_session.id)), 2)

    def test_rejoin_renames_but_keeps_joined_at(self):
        first = self.roster.join(self.split_session.id, 'bob', 'Bob')
        second = self.roster.join(self.split_session.id, 'bob', 'Robert')

        self.assertEqual(first.id, second.id)
        self.assertEqual(second.display_name, 'Robert')
        self.assertEqual(SessionParticipant.objects.get(id=first.id).joined_at, first.joined_at)

    def test_blank_name_falls_back_to_guest(self):
        participant = self.roster.join(self.split_session.id, 'anon', '')
        self.assertEqual(participant.display_name, 'Guest')

    def test_name_is_sanitized(self):
        participant = self.roster.join(self.split_session.id, 'eve', '<b>Eve</b>')
        self.assertEqual(participant.display_name, 'Eve')

    def test_overlong_name_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.roster.join(self.split_session.id, 'long', 'x' * 51)

    def test_join_by_code(self):
        split_session, participant = self.roster.join_by_code(
            self.split_session.join_code.lower(), 'carol', 'Carol'
        )
        self.assertEqual(split_session.id, self.split_session.id)
        self.assertEqual(participant.user_id, 'carol')

    def test_unknown_session(self):
        with self.assertRaises(SessionNotFoundError):
            self.roster.join('00000000-0000-0000-0000-000000000000', 'bob', 'Bob')
        with self.assertRaises(SessionNotFoundError):
            self.roster.list('00000000-0000-0000-0000-000000000000')

    def test_finished_session_is_closed_to_newcomers(self):
        self.roster.join(self.split_session.id, 'bob', 'Bob')
        self.sessions.transition(self.split_session.id, SplitSession.ACTIVE, 'host')
        self.sessions.transition(self.split_session.id, SplitSession.FINISHED, 'host')

        with self.assertRaises(SessionClosedError):
            self.roster.join(self.split_session.id, 'late', 'Latecomer')

        # Existing members can still "rejoin" to reopen the summary; the frozen roster is untouched
        participant = self.roster.join(self.split_session.id, 'bob', 'Renamed')
        self.assertEqual(participant.display_name, 'Bob')
        self.assertEqual(len(self.roster.list(self.split_session.id)), 2)
