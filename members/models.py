from datetime import date
from typing import Optional
from django.db import models
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator, RegexValidator
from django.utils.translation import gettext_lazy as _


class BaseModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class MemberStatus(models.TextChoices):
    ACTIVE = ('active', 'Active')
    FROZEN = ('frozen', 'Frozen')
    ARCHIVED = ('archived', 'Archived')


phone_regex = RegexValidator(
    regex=r'^\+?\d{7,15}$',
    message=_("Phone number must contain 7 to 15 digits, optionally prefixed with '+'.")
)


class Instructor(BaseModel):
    first_name = models.CharField(max_length=100, verbose_name='First Name')
    last_name = models.CharField(max_length=100, verbose_name='Last Name')
    specialty = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        verbose_name='Specialty',
        help_text='Dance styles taught (e.g., Salsa & Bachata)'
    )
    phone = models.CharField(
        validators=[phone_regex],
        max_length=17,
        null=True,
        blank=True,
        verbose_name='Phone Number'
    )
    active = models.BooleanField(default=True, verbose_name='Active')  # type: ignore
    default_commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        verbose_name='Default Commission Rate',
        help_text='Percentage of student payments owed to the instructor when no dance-type rate exists'
    )

    class Meta:  # type: ignore
        db_table = 'instructors'
        verbose_name = 'Instructor'
        verbose_name_plural = 'Instructors'
        ordering = ['first_name', 'last_name']

    def __str__(self):
        return self.full_name

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Member(BaseModel):
    first_name = models.CharField(max_length=100, verbose_name='First Name')
    last_name = models.CharField(max_length=100, verbose_name='Last Name')
    phone = models.CharField(
        validators=[phone_regex],
        max_length=17,
        null=True,
        blank=True,
        verbose_name='Phone Number'
    )
    join_date = models.DateField(verbose_name='Join Date')
    status = models.CharField(
        max_length=20,
        choices=MemberStatus.choices,
        default=MemberStatus.ACTIVE,
        verbose_name='Status'
    )
    notes = models.TextField(null=True, blank=True, verbose_name='Notes')

    class Meta:  # type: ignore
        db_table = 'members'
        verbose_name = 'Member'
        verbose_name_plural = 'Members'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='members_status_idx'),
        ]

    def __str__(self):
        return f"{self.full_name} - {self.phone or '-'}"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def active_freeze(self, today: date) -> Optional['FrozenLog']:
        """The freeze whose window covers ``today``, if any."""
        if not self.pk:
            return None
        return FrozenLog.objects.covering(today).filter(member=self).order_by('-start_date').first()

    def is_frozen_on(self, today: date) -> bool:
        return self.active_freeze(today) is not None


class FrozenLogQuerySet(models.QuerySet):

    def covering(self, today: date):
        """Freezes that have started and not yet ended on ``today``."""
        return self.filter(start_date__lte=today).filter(
            models.Q(end_date__isnull=True) | models.Q(end_date__gte=today)
        )


class FrozenLog(BaseModel):
    member = models.ForeignKey(  # type: ignore
        'members.Member',
        on_delete=models.PROTECT,
        related_name='frozen_logs',
        verbose_name='Member'
    )
    start_date = models.DateField(verbose_name='Start Date')
    end_date = models.DateField(
        null=True,
        blank=True,
        verbose_name='End Date',
        help_text='Leave empty for an indefinite freeze'
    )
    reason = models.CharField(max_length=255, null=True, blank=True, verbose_name='Reason')
    days_count = models.PositiveIntegerField(null=True, blank=True, verbose_name='Days')

    objects = FrozenLogQuerySet.as_manager()

    class Meta:  # type: ignore
        db_table = 'frozen_logs'
        verbose_name = 'Freeze'
        verbose_name_plural = 'Freezes'
        ordering = ['-start_date']

    def __str__(self):
        end = self.end_date.isoformat() if self.end_date else '...'
        return f"{self.member.full_name}: {self.start_date.isoformat()} - {end}"

    def clean(self):
        if self.end_date and self.start_date and self.end_date <= self.start_date:
            raise ValidationError({
                'end_date': 'End date must be after the start date.'
            })

    def save(self, *args, **kwargs):
        if self.end_date and self.start_date:
            self.days_count = (self.end_date - self.start_date).days
        self.full_clean()
        super().save(*args, **kwargs)

    @property
    def is_indefinite(self) -> bool:
        return self.end_date is None

    def covers(self, today: date) -> bool:
        if self.start_date > today:
            return False
        return self.end_date is None or self.end_date >= today
