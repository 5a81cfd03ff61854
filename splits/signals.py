"""
Model signals that feed ``ChangeEvent`` rows.

``QuerySet.update()`` bypasses these, so services that change sessions,
participants or claims must go through ``save()`` / ``delete()``.
"""

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from splits.change_feed import change_feed
from splits.models import ChangeEvent, ItemClaim, SessionParticipant, SplitSession

TABLE_FOR_MODEL = {
    SplitSession: ChangeEvent.SESSIONS,
    SessionParticipant: ChangeEvent.PARTICIPANTS,
    ItemClaim: ChangeEvent.CLAIMS,
}


def _session_id(instance):
    if isinstance(instance, SplitSession):
        return instance.id
    return instance.session_id


@receiver(post_save, sender=SplitSession)
@receiver(post_save, sender=SessionParticipant)
@receiver(post_save, sender=ItemClaim)
def record_save(sender, instance, created, raw=False, **kwargs):
    if raw:
        return
    change_feed.record(
        session_id=_session_id(instance),
        table=TABLE_FOR_MODEL[sender],
        event=ChangeEvent.INSERT if created else ChangeEvent.UPDATE,
        row_id=instance.pk,
        row=instance.as_row(),
    )


@receiver(post_delete, sender=SplitSession)
@receiver(post_delete, sender=SessionParticipant)
@receiver(post_delete, sender=ItemClaim)
def record_delete(sender, instance, **kwargs):
    change_feed.record(
        session_id=_session_id(instance),
        table=TABLE_FOR_MODEL[sender],
        event=ChangeEvent.DELETE,
        row_id=instance.pk,
        row=instance.as_row(),
    )
