"""
End-to-end split with three devices: the host uploads and opens a session,
two friends join by code, everyone claims, the host finishes, and each
device's mirror settles from what it saw over the change feed.
"""

from decimal import Decimal

from django.urls import reverse

from splits.models import SplitSession

from .base_test import IntegrationTestBase, SplitClient


class UploadTest(IntegrationTestBase):

    def test_extracted_receipt_is_saved_as_reviewed(self):
        self.assertEqual(self.receipt['merchant_name'], self.dinner()['merchant_name'])
        self.assertEqual([item['name'] for item in self.receipt['items']], ['Burger', 'Fries', 'Soda'])
        self.assertEqual(self.receipt['owner_id'], self.alice.user_id)

    def test_unreadable_image_is_a_gateway_error(self):
        response = self.alice.upload_image(b'blank')
        self.assertEqual(response.status_code, 502)
        self.assertIn('error', response.json())


class LifecycleTest(IntegrationTestBase):

    def test_claims_rejected_until_host_starts(self):
        self.assertEqual(self.bob.claim(self.session_id, 0).status_code, 400)
        self.assertEqual(self.bob.set_status(self.session_id, SplitSession.ACTIVE).status_code, 403)

        self.assertEqual(self.alice.set_status(self.session_id, SplitSession.ACTIVE).status_code, 200)
        self.assertEqual(self.bob.claim(self.session_id, 0).status_code, 200)

    def test_joining_finished_session_is_refused_for_newcomers(self):
        self.alice.set_status(self.session_id, SplitSession.ACTIVE)
        self.alice.set_status(self.session_id, SplitSession.FINISHED)

        dave = SplitClient('Dave')
        self.assertEqual(dave.join_by_code(self.session['join_code']).status_code, 404)
        self.assertEqual(dave.post(reverse('join_session', args=[self.session_id])).status_code, 409)

        response = self.bob.post(reverse('join_session', args=[self.session_id]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['participant']['display_name'], 'Bob')


class ConvergenceTest(IntegrationTestBase):

    def test_full_split_converges_on_every_device(self):
        devices = (self.alice, self.bob, self.cara)
        mirrors = {d.user_id: d.open_mirror(self.session_id) for d in devices}
        for mirror in mirrors.values():
            self.assertEqual([p.display_name for p in mirror.participants], ['Alice', 'Bob', 'Cara'])

        self.assertEqual(self.alice.set_status(self.session_id, SplitSession.ACTIVE).status_code, 200)

        # Interleaved; Cara changes her mind about the fries once
        self.assertEqual(self.bob.claim(self.session_id, 0).status_code, 200)
        self.assertTrue(self.cara.toggle(self.session_id, 1).json()['claimed'])
        self.assertEqual(self.cara.claim(self.session_id, 2).status_code, 200)
        self.assertFalse(self.cara.toggle(self.session_id, 1).json()['claimed'])
        self.assertEqual(self.bob.claim(self.session_id, 2).status_code, 200)
        self.assertEqual(self.bob.claim(self.session_id, 2).status_code, 200)
        self.assertTrue(self.cara.toggle(self.session_id, 1).json()['claimed'])

        bob_view = mirrors[self.bob.user_id]
        bob_view.sync()
        self.assertEqual(bob_view.status, SplitSession.ACTIVE)
        self.assertEqual(bob_view.claimant_names(2), ['Cara', 'Bob'])
        self.assertTrue(bob_view.is_claimed_by_me(0))
        self.assertIsNone(bob_view.settlement)

        self.assertEqual(self.alice.set_status(self.session_id, SplitSession.FINISHED).status_code, 200)
        self.assertEqual(self.bob.unclaim(self.session_id, 0).status_code, 400)

        for mirror in mirrors.values():
            mirror.sync()
            self.assertEqual(mirror.status, SplitSession.FINISHED)
            self.assertIsNotNone(mirror.settlement)

        totals = {user_id: mirror.settlement.total for user_id, mirror in mirrors.items()}
        cents = Decimal('0.01')
        self.assertEqual(totals[self.bob.user_id].quantize(cents), Decimal('17.55'))
        self.assertEqual(totals[self.cara.user_id].quantize(cents), Decimal('8.45'))
        self.assertEqual(totals[self.alice.user_id], Decimal('0'))
        self.assertEqual(sum(totals.values()), Decimal('26.00'))

    def test_mirror_opened_after_finish_settles_from_snapshot(self):
        self.alice.set_status(self.session_id, SplitSession.ACTIVE)
        self.bob.claim(self.session_id, 0)
        self.cara.claim(self.session_id, 1)
        self.alice.set_status(self.session_id, SplitSession.FINISHED)

        late_view = self.cara.open_mirror(self.session_id)
        self.assertEqual(late_view.sync(), [])
        self.assertIsNotNone(late_view.settlement)
        # Fries plus a third of the unclaimed soda
        self.assertEqual(late_view.settlement.item_subtotal.quantize(Decimal('0.01')), Decimal('6.00'))

    def test_changes_are_paged_by_cursor(self):
        self.alice.set_status(self.session_id, SplitSession.ACTIVE)
        for index in range(3):
            self.bob.claim(self.session_id, index)

        first = self.bob.get(reverse('session_changes', args=[self.session_id]), {'since': 0, 'limit': 2}).json()
        self.assertEqual(len(first['events']), 2)
        rest = self.bob.changes(self.session_id, since=first['cursor'])
        self.assertTrue(all(event['id'] > first['cursor'] for event in rest['events']))

        ids = [event['id'] for event in first['events'] + rest['events']]
        self.assertEqual(ids, sorted(ids))
        self.assertEqual(len(ids), len(set(ids)))
