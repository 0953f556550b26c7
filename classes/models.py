from datetime import date
from decimal import Decimal
from typing import Optional
from django.db import models
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from members.models import BaseModel, MemberStatus


class Weekday(models.TextChoices):
    MONDAY = ('monday', 'Monday')  # type: ignore
    TUESDAY = ('tuesday', 'Tuesday')  # type: ignore
    WEDNESDAY = ('wednesday', 'Wednesday')  # type: ignore
    THURSDAY = ('thursday', 'Thursday')  # type: ignore
    FRIDAY = ('friday', 'Friday')  # type: ignore
    SATURDAY = ('saturday', 'Saturday')  # type: ignore
    SUNDAY = ('sunday', 'Sunday')  # type: ignore


class DanceType(BaseModel):
    name = models.CharField(max_length=100, unique=True, verbose_name='Name')
    slug = models.SlugField(max_length=100, null=True, blank=True, verbose_name='Slug')

    class Meta:  # type: ignore
        db_table = 'dance_types'
        verbose_name = 'Dance Type'
        verbose_name_plural = 'Dance Types'
        ordering = ['name']

    def __str__(self):
        return self.name


class InstructorRate(BaseModel):
    instructor = models.ForeignKey(  # type: ignore
        'members.Instructor',
        on_delete=models.PROTECT,
        related_name='rates',
        verbose_name='Instructor'
    )
    dance_type = models.ForeignKey(  # type: ignore
        'classes.DanceType',
        on_delete=models.PROTECT,
        related_name='instructor_rates',
        verbose_name='Dance Type'
    )
    rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        verbose_name='Commission Rate',
        help_text='Percentage of student payments for this dance type'
    )

    class Meta:  # type: ignore
        db_table = 'instructor_rates'
        verbose_name = 'Instructor Rate'
        verbose_name_plural = 'Instructor Rates'
        unique_together = [['instructor', 'dance_type']]

    def __str__(self):
        return f"{self.instructor} / {self.dance_type}: {self.rate}%"


class DanceClass(BaseModel):
    name = models.CharField(max_length=255, verbose_name='Name')
    instructor = models.ForeignKey(  # type: ignore
        'members.Instructor',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='classes',
        verbose_name='Instructor'
    )
    dance_type = models.ForeignKey(  # type: ignore
        'classes.DanceType',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='classes',
        verbose_name='Dance Type'
    )
    day_of_week = models.CharField(
        max_length=20,
        choices=Weekday.choices,
        null=True,
        blank=True,
        verbose_name='Day'
    )
    start_time = models.TimeField(
        null=True,
        blank=True,
        verbose_name='Start Time',
        help_text='Weekly lesson time (e.g., 19:30)'
    )
    duration_minutes = models.PositiveIntegerField(default=60, verbose_name='Duration (minutes)')  # type: ignore
    price_monthly = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
        verbose_name='Monthly Price'
    )
    active = models.BooleanField(default=True, verbose_name='Active')  # type: ignore
    archived = models.BooleanField(default=False, verbose_name='Archived')  # type: ignore

    class Meta:  # type: ignore
        db_table = 'classes'
        verbose_name = 'Class'
        verbose_name_plural = 'Classes'
        ordering = ['name']

    def __str__(self):
        day_display = getattr(self, 'get_day_of_week_display', lambda: self.day_of_week)()
        return f"{self.name} ({day_display or '-'})"

    def clean(self):
        if self.archived and self.active:
            raise ValidationError({
                'active': 'An archived class cannot be active.'
            })

    @property
    def active_enrollments_count(self) -> int:
        if not self.pk:
            return 0
        return self.enrollments.filter(active=True).count()  # type: ignore


class EnrollmentQuerySet(models.QuerySet):

    def overdue(self, today: date):
        """Active enrollments whose payment date has passed, excluding frozen members."""
        return self.filter(
            active=True,
            next_payment_date__isnull=False,
            next_payment_date__lt=today,
        ).exclude(member__status=MemberStatus.FROZEN)


class Enrollment(BaseModel):
    member = models.ForeignKey(  # type: ignore
        'members.Member',
        on_delete=models.PROTECT,
        related_name='enrollments',
        verbose_name='Member'
    )
    dance_class = models.ForeignKey(  # type: ignore
        'classes.DanceClass',
        on_delete=models.PROTECT,
        related_name='enrollments',
        verbose_name='Class'
    )
    active = models.BooleanField(default=True, verbose_name='Active')  # type: ignore
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name='Price',
        help_text='Class price at the time of enrollment'
    )
    custom_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name='Custom Price',
        help_text='Overrides the class price for this member (e.g., legacy pricing)'
    )
    payment_interval = models.PositiveIntegerField(
        default=1,  # type: ignore
        validators=[MinValueValidator(1)],
        verbose_name='Payment Interval (months)'
    )
    next_payment_date = models.DateField(null=True, blank=True, verbose_name='Next Payment Date')

    objects = EnrollmentQuerySet.as_manager()

    class Meta:  # type: ignore
        db_table = 'member_classes'
        verbose_name = 'Enrollment'
        verbose_name_plural = 'Enrollments'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.member.full_name} - {self.dance_class.name}"

    @property
    def effective_price(self) -> Optional[Decimal]:
        if self.custom_price is not None:
            return self.custom_price
        if self.price is not None:
            return self.price
        return self.dance_class.price_monthly

    def is_overdue(self, today: date) -> bool:
        if not self.active or self.next_payment_date is None:
            return False
        if self.member.status == MemberStatus.FROZEN:
            return False
        return self.next_payment_date < today

    def days_until_payment(self, today: date) -> Optional[int]:
        """Days left until the next payment; negative when overdue."""
        if self.next_payment_date is None:
            return None
        return (self.next_payment_date - today).days  # type: ignore
