"""
Client-side convergent view of one split session.

A mirror is loaded from a snapshot and then fed change events, either by
polling (``catch_up``) or by an in-process subscription (``attach``). Events
may arrive more than once and out of order across tables; every row is
reconciled by its natural key and the cursor of the last event applied to
it, so two mirrors fed the same events in any order end in the same state.

When the mirror first sees the session finished it settles exactly once,
preferring the roster and claims frozen into ``settlement_snapshot``.
"""

from typing import Callable, Dict, List, Optional, Tuple
import logging

from lib.extraction.models import ReceiptRecord
from splits.change_feed import ChangeFeed, change_feed, session_key
from splits.models import ChangeEvent, SplitSession
from splits.rows import ClaimRow, ParticipantRow, SessionRow
from splits.settlement import Settlement, settle, settle_all

logger = logging.getLogger(__name__)

UNKNOWN_CLAIMANT = 'Someone'

STATUS_RANK = {
    SplitSession.LOBBY: 0,
    SplitSession.ACTIVE: 1,
    SplitSession.FINISHED: 2,
}

# Observer notification kinds
ROSTER = 'roster'
CLAIMS = 'claims'
STATUS = 'status'
SETTLED = 'settled'


class SessionMirror:
    def __init__(self, session_id, viewer_id: str, feed: Optional[ChangeFeed] = None):
        self.session_id = session_key(session_id)
        self.viewer_id = viewer_id
        self.feed = feed or change_feed

        self.session: Optional[SessionRow] = None
        self.receipt: Optional[ReceiptRecord] = None
        self.settlement: Optional[Settlement] = None
        self.cursor = 0

        # natural key -> (cursor of last applied event, row or None once deleted)
        self._participants: Dict[str, Tuple[int, Optional[ParticipantRow]]] = {}
        self._claims: Dict[Tuple[int, str], Tuple[int, Optional[ClaimRow]]] = {}
        self._session_version = 0
        self._baseline = 0
        self._observers: List[Callable[[str, 'SessionMirror'], None]] = []
        self._subscriptions = []

    # Loading

    def load(self) -> 'SessionMirror':
        """
        Take the feed cursor, then read the snapshot. Anything committed in
        between shows up both in the snapshot and in later events, which is
        harmless; nothing can fall between the two.
        """
        from splits.services import ReceiptService, SessionService

        cursor = self.feed.latest_cursor()
        split_session = SessionService().get_session(self.session_id)
        participants = split_session.participants.all()
        claims = split_session.claims.all()
        receipt = ReceiptService().get_receipt_record(split_session.receipt_id)

        self.load_snapshot(
            cursor=cursor,
            session=split_session.as_row(),
            receipt=receipt,
            participants=[p.as_row() for p in participants],
            claims=[c.as_row() for c in claims],
        )
        return self

    def load_snapshot(self, cursor: int, session: dict, receipt: ReceiptRecord,
                      participants: List[dict], claims: List[dict]):
        self._baseline = cursor
        self.cursor = max(self.cursor, cursor)
        self.receipt = receipt
        self.session = SessionRow.from_dict(session)
        self._session_version = cursor
        self._participants = {
            row['user_id']: (cursor, ParticipantRow.from_dict(row)) for row in participants
        }
        self._claims = {}
        for row in claims:
            claim = ClaimRow.from_dict(row)
            self._claims[claim.key] = (cursor, claim)

        logger.debug(f"Mirror of {self.session_id} loaded at cursor {cursor}")
        self._notify(ROSTER)
        self._notify(CLAIMS)
        self._notify(STATUS)
        self._maybe_settle()

    # Event application

    def apply(self, event) -> bool:
        """
        Apply one change event (a ChangeEvent or its ``as_dict()``).
        Returns False when the event was already reflected and ignored.
        """
        if not isinstance(event, dict):
            event = event.as_dict()

        cursor = int(event['id'])
        if session_key(event['session_id']) != self.session_id:
            return False
        if cursor <= self._baseline:
            return False
        self.cursor = max(self.cursor, cursor)

        table = event['table']
        if table == ChangeEvent.PARTICIPANTS:
            changed = self._apply_participant(cursor, event['event'], event['row'])
            kind = ROSTER
        elif table == ChangeEvent.CLAIMS:
            changed = self._apply_claim(cursor, event['event'], event['row'])
            kind = CLAIMS
        elif table == ChangeEvent.SESSIONS:
            changed = self._apply_session(cursor, event['event'], event['row'])
            kind = STATUS
        else:
            logger.warning(f"Ignoring change #{cursor} for unknown table {table!r}")
            return False

        if changed:
            self._notify(kind)
            self._maybe_settle()
        return changed

    def _apply_participant(self, cursor, event, row) -> bool:
        user_id = row['user_id']
        version, _ = self._participants.get(user_id, (0, None))
        if cursor <= version:
            return False
        value = None if event == ChangeEvent.DELETE else ParticipantRow.from_dict(row)
        self._participants[user_id] = (cursor, value)
        return True

    def _apply_claim(self, cursor, event, row) -> bool:
        claim = ClaimRow.from_dict(row)
        version, _ = self._claims.get(claim.key, (0, None))
        if cursor <= version:
            return False
        self._claims[claim.key] = (cursor, None if event == ChangeEvent.DELETE else claim)
        return True

    def _apply_session(self, cursor, event, row) -> bool:
        if event == ChangeEvent.DELETE or cursor <= self._session_version:
            return False
        incoming = SessionRow.from_dict(row)
        if self.session and STATUS_RANK[incoming.status] < STATUS_RANK[self.session.status]:
            # Status only moves forward
            return False
        self._session_version = cursor
        self.session = incoming
        return True

    # Feed plumbing

    def catch_up(self) -> int:
        """Poll the feed until drained; returns the number of events applied"""
        applied = 0
        while True:
            events = self.feed.poll(self.session_id, since=self.cursor)
            if not events:
                return applied
            for event in events:
                if self.apply(event):
                    applied += 1

    def attach(self) -> 'SessionMirror':
        """Receive committed changes in-process as they happen"""
        for table in (ChangeEvent.SESSIONS, ChangeEvent.PARTICIPANTS, ChangeEvent.CLAIMS):
            self._subscriptions.append(self.feed.subscribe(table, self.session_id, self.apply))
        return self

    def detach(self):
        for subscription in self._subscriptions:
            subscription.close()
        self._subscriptions = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.detach()

    # Observation

    def observe(self, callback: Callable[[str, 'SessionMirror'], None]):
        """callback(kind, mirror) with kind one of roster/claims/status/settled"""
        self._observers.append(callback)

    def _notify(self, kind):
        for callback in list(self._observers):
            callback(kind, self)

    @property
    def status(self) -> Optional[str]:
        return self.session.status if self.session else None

    @property
    def participants(self) -> List[ParticipantRow]:
        rows = [row for _, row in self._participants.values() if row is not None]
        return sorted(rows, key=lambda row: row.sort_key)

    @property
    def claims(self) -> List[ClaimRow]:
        rows = [row for _, row in self._claims.values() if row is not None]
        return sorted(rows, key=lambda row: row.sort_key)

    def display_name(self, user_id) -> str:
        _, row = self._participants.get(user_id, (0, None))
        return row.display_name if row else UNKNOWN_CLAIMANT

    def claimant_names(self, item_index: int) -> List[str]:
        return [self.display_name(c.user_id) for c in self.claims if c.item_index == item_index]

    def is_claimed_by_me(self, item_index: int) -> bool:
        _, row = self._claims.get((item_index, self.viewer_id), (0, None))
        return row is not None

    # Settlement

    def _maybe_settle(self):
        if self.settlement is not None or self.status != SplitSession.FINISHED or self.receipt is None:
            return

        participants, claims = self._settlement_inputs()
        self.settlement = settle(self.viewer_id, participants, self.receipt, claims)
        logger.info(f"Settled session {self.session_id} for {self.viewer_id}: {self.settlement.as_dict()['total']}")
        self._notify(SETTLED)

    def _settlement_inputs(self) -> Tuple[List[ParticipantRow], List[ClaimRow]]:
        """Roster and claims frozen at finish when available, else the live view"""
        snapshot = self.session.settlement_snapshot if self.session else None
        if snapshot:
            participants = [ParticipantRow.from_dict(row) for row in snapshot.get('participants', [])]
            claims = [ClaimRow.from_dict(row) for row in snapshot.get('claims', [])]
            return participants, claims
        return self.participants, self.claims

    def settle_everyone(self) -> Dict[str, Settlement]:
        """Every participant's share, from the same inputs as the viewer's settlement"""
        if self.receipt is None:
            return {}
        participants, claims = self._settlement_inputs()
        return settle_all(participants, self.receipt, claims)
