"""
Instructor commissions and payouts.

Each student payment creates one pending ledger entry per month it covers.
An entry matures when its due date is on or before the effective date; matured
entries are what the next payout settles.
"""
import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from django.db import DatabaseError, transaction
from django.db.models import Count, Sum

from classes.models import DanceClass, InstructorRate
from members.models import Instructor
from payments.models import (
    InstructorLedger,
    InstructorPayout,
    LedgerStatus,
    OPEN_LEDGER_STATUSES,
    Payment,
)
from studio.dates import add_months
from studio.results import (
    ERROR_PERSISTENCE,
    ERROR_VALIDATION,
    operation_failure,
    operation_success,
    store_message,
)

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def get_commission_rate(instructor: Instructor, dance_class: Optional[DanceClass]) -> Decimal:
    """
    Commission percentage for ``instructor`` teaching ``dance_class``.
    A dance-type specific rate wins over the instructor's default.
    """
    if dance_class is not None and dance_class.dance_type_id:
        rate = InstructorRate.objects.filter(
            instructor=instructor, dance_type_id=dance_class.dance_type_id
        ).values_list('rate', flat=True).first()
        if rate:
            return Decimal(rate)

    return Decimal(instructor.default_commission_rate or 0)


def process_student_payment(payment: Payment) -> dict:
    """
    Book the instructor's share of ``payment`` into the ledger.

    The commission is split evenly over ``payment.months_count`` entries due
    on the payment date and the following months. Payments for classes
    without an instructor or a rate create nothing.
    """
    dance_class = payment.dance_class
    if dance_class is None or dance_class.instructor is None:
        return operation_success([])

    instructor = dance_class.instructor
    rate = get_commission_rate(instructor, dance_class)
    if rate <= 0:
        return operation_success([])

    months_count = max(1, payment.months_count or 1)
    total_commission = Decimal(str(payment.amount)) * rate / Decimal('100')
    monthly_commission = (total_commission / months_count).quantize(CENT, rounding=ROUND_HALF_UP)

    entries = [
        InstructorLedger(
            instructor=instructor,
            student_payment=payment,
            amount=monthly_commission,
            due_date=add_months(payment.payment_date, i),
            status=LedgerStatus.PENDING,
        )
        for i in range(months_count)
    ]

    try:
        with transaction.atomic():
            created = InstructorLedger.objects.bulk_create(entries)
    except DatabaseError as e:
        logger.error(f"Failed to book commission for payment {payment.id}: {str(e)}")
        return operation_failure(store_message(e), ERROR_PERSISTENCE)

    logger.info(
        f"Booked {len(created)} ledger entr{'y' if len(created) == 1 else 'ies'} of {monthly_commission} "
        f"for instructor {instructor.id} (payment {payment.id}, rate {rate}%)"
    )
    return operation_success(created)


def matured_entries(today: date, instructor: Optional[Instructor] = None):
    queryset = InstructorLedger.objects.filter(
        status__in=OPEN_LEDGER_STATUSES,
        due_date__lte=today,
    )
    if instructor is not None:
        queryset = queryset.filter(instructor=instructor)
    return queryset


def get_payable_ledger(today: date) -> list[dict]:
    """Per active instructor, the total and number of matured open entries."""
    totals = {
        row['instructor_id']: row
        for row in matured_entries(today)
        .values('instructor_id')
        .annotate(total_amount=Sum('amount'), entry_count=Count('id'))
    }

    result = []
    for instructor in Instructor.objects.filter(active=True, id__in=list(totals)):
        row = totals[instructor.id]
        total_amount = row['total_amount'] or Decimal('0')
        if total_amount <= 0:
            continue
        result.append({
            'instructor': instructor,
            'total_amount': total_amount,
            'entry_count': row['entry_count'],
        })
    return result


def process_payout(instructor: Instructor, amount: Decimal, today: date,
                   note: Optional[str] = None) -> dict:
    """Pay ``instructor`` and settle every entry matured by ``today``."""
    if amount is None or Decimal(str(amount)) <= 0:
        return operation_failure('Payout amount must be greater than zero.', ERROR_VALIDATION)

    try:
        with transaction.atomic():
            payout = InstructorPayout.objects.create(
                instructor=instructor,
                amount=amount,
                payment_date=today,
                note=note or 'Automatic commission payout',
            )
            settled = matured_entries(today, instructor).update(status=LedgerStatus.PAID)
    except DatabaseError as e:
        logger.error(f"Failed to process payout for instructor {instructor.id}: {str(e)}")
        return operation_failure(store_message(e), ERROR_PERSISTENCE)

    logger.info(f"Payout {payout.id} of {amount} to instructor {instructor.id}, {settled} entries settled")
    return operation_success({'payout': payout, 'settled_entries': settled})
