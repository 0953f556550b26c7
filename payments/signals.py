from django.db.models.signals import post_save
from django.dispatch import receiver
import logging

from payments.ledger import process_student_payment
from payments.models import Payment

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Payment)
def book_instructor_commission(sender, instance: Payment, created: bool, **kwargs):
    """
    Create the instructor's ledger entries when a payment is recorded.
    Entries are anchored on the payment date, which callers set from the
    effective date.
    """
    if not created:
        return

    result = process_student_payment(instance)
    if not result['success']:
        logger.error(f"Commission for payment {instance.id} not booked: {result['error']}")
