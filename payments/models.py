from django.db import models
from django.core.validators import MinValueValidator
from members.models import BaseModel


class PaymentMethod(models.TextChoices):
    CASH = ('cash', 'Cash')
    CARD = ('card', 'Credit Card')
    TRANSFER = ('transfer', 'Bank Transfer')


class LedgerStatus(models.TextChoices):
    PENDING = ('pending', 'Pending')
    PAYABLE = ('payable', 'Payable')
    PAID = ('paid', 'Paid')


# Ledger entries in these states count towards the next payout once due
OPEN_LEDGER_STATUSES = [LedgerStatus.PENDING, LedgerStatus.PAYABLE]


class Payment(BaseModel):
    """
    A payment received from a member for one of their classes.
    Price and class name are snapshotted so later class edits do not rewrite history.
    """
    member = models.ForeignKey(
        'members.Member',
        on_delete=models.PROTECT,
        related_name='payments',
        verbose_name='Member'
    )
    dance_class = models.ForeignKey(
        'classes.DanceClass',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='payments',
        verbose_name='Class'
    )
    enrollment = models.ForeignKey(
        'classes.Enrollment',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='payments',
        verbose_name='Enrollment'
    )
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0.01)],
        verbose_name='Amount'
    )
    months_count = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
        verbose_name='Months Covered'
    )
    payment_date = models.DateField(verbose_name='Payment Date')
    period_start = models.DateField(null=True, blank=True, verbose_name='Period Start')
    period_end = models.DateField(null=True, blank=True, verbose_name='Period End')
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        null=True,
        blank=True,
        verbose_name='Payment Method'
    )
    snapshot_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name='Class Price (snapshot)'
    )
    snapshot_class_name = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        verbose_name='Class Name (snapshot)'
    )
    description = models.TextField(null=True, blank=True, verbose_name='Description')

    class Meta:
        db_table = 'payments'
        verbose_name = 'Payment'
        verbose_name_plural = 'Payments'
        ordering = ['-payment_date', '-id']
        indexes = [
            models.Index(fields=['member', 'payment_date'], name='payments_member_date_idx'),
            models.Index(fields=['payment_date'], name='payments_date_idx'),
        ]

    def __str__(self):
        return f"Payment #{self.id} - {self.member.full_name} - {self.amount}"


class InstructorLedger(BaseModel):
    """
    Commission owed to an instructor for a student payment, one row per month.
    An entry matures (becomes payable) once its due date is reached.
    """
    instructor = models.ForeignKey(
        'members.Instructor',
        on_delete=models.PROTECT,
        related_name='ledger_entries',
        verbose_name='Instructor'
    )
    student_payment = models.ForeignKey(
        'payments.Payment',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='ledger_entries',
        verbose_name='Student Payment'
    )
    amount = models.DecimalField(max_digits=10, decimal_places=2, verbose_name='Amount')
    due_date = models.DateField(verbose_name='Due Date')
    status = models.CharField(
        max_length=20,
        choices=LedgerStatus.choices,
        default=LedgerStatus.PENDING,
        verbose_name='Status'
    )

    class Meta:
        db_table = 'instructor_ledger'
        verbose_name = 'Ledger Entry'
        verbose_name_plural = 'Instructor Ledger'
        ordering = ['due_date', 'id']
        indexes = [
            models.Index(fields=['instructor', 'status', 'due_date'], name='ledger_instructor_status_idx'),
        ]

    def __str__(self):
        return f"{self.instructor} - {self.amount} due {self.due_date.isoformat()} ({self.status})"


class InstructorPayout(BaseModel):
    instructor = models.ForeignKey(
        'members.Instructor',
        on_delete=models.PROTECT,
        related_name='payouts',
        verbose_name='Instructor'
    )
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0.01)],
        verbose_name='Amount'
    )
    payment_date = models.DateField(verbose_name='Payment Date')
    note = models.CharField(max_length=255, null=True, blank=True, verbose_name='Note')

    class Meta:
        db_table = 'instructor_payouts'
        verbose_name = 'Instructor Payout'
        verbose_name_plural = 'Instructor Payouts'
        ordering = ['-payment_date', '-id']

    def __str__(self):
        return f"Payout #{self.id} - {self.instructor} - {self.amount}"
