"""
Membership freezes.

A freeze pauses a membership between two dates (or indefinitely). Whether a
member is frozen "now" is always judged against the effective date passed in
by the caller, so simulated dates move members in and out of freezes.
"""
import logging
from datetime import date
from typing import Optional

from django.db import DatabaseError, transaction

from classes.models import Enrollment
from members.models import FrozenLog, Member, MemberStatus
from simulator.cache import invalidate_date_views
from studio.dates import days_between, shift_for_freeze
from studio.results import (
    ERROR_PERSISTENCE,
    ERROR_VALIDATION,
    operation_failure,
    operation_success,
    store_message,
)

logger = logging.getLogger(__name__)


def freeze_membership(member: Member, start_date: date, end_date: date,
                      today: date, reason: Optional[str] = None) -> dict:
    """
    Freeze ``member`` from ``start_date`` to ``end_date``.

    Every active enrollment's next payment date is pushed back by the length
    of the freeze.
    """
    freeze_days = days_between(start_date, end_date)
    if freeze_days <= 0:
        return operation_failure('End date must be after the start date.', ERROR_VALIDATION)

    try:
        with transaction.atomic():
            freeze_log = FrozenLog.objects.create(
                member=member,
                start_date=start_date,
                end_date=end_date,
                reason=reason or None,
            )

            shifted = 0
            for enrollment in Enrollment.objects.filter(member=member, active=True):
                enrollment.next_payment_date = shift_for_freeze(enrollment.next_payment_date, freeze_days, today)
                enrollment.save(update_fields=['next_payment_date', 'updated_at'])
                shifted += 1

            member.status = MemberStatus.FROZEN
            member.save(update_fields=['status', 'updated_at'])
    except DatabaseError as e:
        logger.error(f"Failed to freeze member {member.id}: {str(e)}")
        return operation_failure(store_message(e), ERROR_PERSISTENCE)

    invalidate_date_views()
    logger.info(
        f"Member {member.id} frozen from {start_date.isoformat()} to {end_date.isoformat()} "
        f"({freeze_days} days, {shifted} enrollment(s) shifted)"
    )
    return operation_success(freeze_log)


def unfreeze_membership(member: Member) -> dict:
    try:
        member.status = MemberStatus.ACTIVE
        member.save(update_fields=['status', 'updated_at'])
    except DatabaseError as e:
        logger.error(f"Failed to unfreeze member {member.id}: {str(e)}")
        return operation_failure(store_message(e), ERROR_PERSISTENCE)

    invalidate_date_views()
    logger.info(f"Member {member.id} unfrozen")
    return operation_success(True)


def sync_member_statuses(today: date) -> dict:
    """
    Align member statuses with the freeze windows covering ``today``.

    Members inside a freeze window become frozen, frozen members outside every
    window become active again. Archived members are left alone.
    """
    frozen_ids = set(
        FrozenLog.objects.covering(today).values_list('member_id', flat=True)
    )

    try:
        with transaction.atomic():
            to_freeze = Member.objects.filter(
                id__in=frozen_ids, status=MemberStatus.ACTIVE
            ).update(status=MemberStatus.FROZEN)
            to_activate = Member.objects.filter(
                status=MemberStatus.FROZEN
            ).exclude(id__in=frozen_ids).update(status=MemberStatus.ACTIVE)
    except DatabaseError as e:
        logger.error(f"Failed to sync member statuses for {today.isoformat()}: {str(e)}")
        return operation_failure(store_message(e), ERROR_PERSISTENCE)

    updated = to_freeze + to_activate
    if updated:
        invalidate_date_views()
        logger.info(
            f"Synced member statuses for {today.isoformat()}: "
            f"{to_freeze} frozen, {to_activate} reactivated"
        )
    return operation_success({'updated': updated, 'frozen': to_freeze, 'activated': to_activate})
