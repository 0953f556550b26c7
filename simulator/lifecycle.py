"""
Administrative data lifecycle: ordered wipe, demo seed and test scenarios.

Deletion walks the foreign key graph children first, creation parents first.
Scenario and seed records are anchored on the effective date, so data
generated while simulating stays consistent with the simulated "today".
"""
import logging
import random
from datetime import date, time, timedelta
from decimal import Decimal
from typing import Optional

from django.db import DatabaseError, transaction
from django.db.models import ProtectedError, RestrictedError

from classes.models import DanceClass, DanceType, Enrollment, InstructorRate, Weekday
from members.models import FrozenLog, Instructor, Member, MemberStatus
from payments.models import InstructorLedger, InstructorPayout, Payment, PaymentMethod
from simulator.cache import invalidate_date_views
from simulator.clock import get_effective_date
from studio.dates import add_months, month_bounds
from studio.results import (
    ERROR_PERSISTENCE,
    ERROR_VALIDATION,
    operation_failure,
    operation_success,
    store_message,
)

logger = logging.getLogger(__name__)

# Child -> parent. Reordering these makes the database reject the wipe.
WIPE_STEPS = (
    # 1. Logs & transactions
    ('payments', Payment),
    ('frozen_logs', FrozenLog),
    ('instructor_payouts', InstructorPayout),
    ('instructor_ledger', InstructorLedger),
    # 2. Member relations
    ('member_classes', Enrollment),
    # 3. Profiles
    ('members', Member),
    # 4. Configuration / master data
    ('instructor_rates', InstructorRate),
    ('classes', DanceClass),
    ('instructors', Instructor),
)

INDEFINITE_FREEZE = 'indefinite-freeze'
TIME_BOUNDED_FREEZE = 'time-bounded-freeze'
FUTURE_FREEZE = 'future-freeze'
DELINQUENT_FREEZE = 'delinquent-freeze'

SCENARIO_KINDS = (INDEFINITE_FREEZE, TIME_BOUNDED_FREEZE, FUTURE_FREEZE, DELINQUENT_FREEZE)


def _delete_all(model) -> int:
    deleted, _ = model._default_manager.all().delete()
    return deleted


def run_ordered_deletes(steps) -> dict:
    """
    Empty each table in ``steps`` in order.

    Every step commits on its own. The first rejected step ends the run;
    steps already done stay done.
    """
    completed = []
    deleted = {}

    for table, model in steps:
        try:
            with transaction.atomic():
                count = _delete_all(model)
        except (ProtectedError, RestrictedError, DatabaseError) as e:
            message = store_message(e)
            logger.error(f"Wipe stopped at '{table}' after {len(completed)} completed step(s): {message}")
            return operation_failure(
                message,
                ERROR_PERSISTENCE,
                failed_step=table,
                completed_steps=completed,
                deleted=deleted,
            )
        completed.append(table)
        deleted[table] = count
        logger.info(f"Deleted {count} row(s) from '{table}'")

    return operation_success({'completed_steps': completed, 'deleted': deleted})


def wipe_all_business_data() -> dict:
    """
    Delete every business record. Auth users and dance types are kept.

    Not transactional: a failure leaves earlier steps deleted and reports
    where it stopped.
    """
    logger.warning("Deleting ALL business data...")
    result = run_ordered_deletes(WIPE_STEPS)

    if result['success'] or result.get('completed_steps'):
        invalidate_date_views()

    if result['success']:
        logger.info("All business data deleted.")
    return result


# ---------------------------------------------------------------------------
# Demo seed
# ---------------------------------------------------------------------------

def _payment(member, dance_class, amount, paid_on, period_start, method, description=None, enrollment=None):
    return Payment.objects.create(
        member=member,
        dance_class=dance_class,
        enrollment=enrollment,
        amount=amount,
        payment_date=paid_on,
        period_start=period_start,
        period_end=add_months(period_start, 1),
        payment_method=method,
        snapshot_price=dance_class.price_monthly,
        snapshot_class_name=dance_class.name,
        description=description,
    )


def _seed(today: date) -> dict:
    month_start, next_month_start = month_bounds(today)

    dance_types = {}
    for name in ('Salsa', 'Bachata', 'Kizomba', 'Tango'):
        dance_types[name], _ = DanceType.objects.get_or_create(name=name, defaults={'slug': name.lower()})

    ezgi = Instructor.objects.create(first_name='Ezgi', last_name='Zaman', specialty='Salsa & Bachata',
                                     phone='5551001001', default_commission_rate=Decimal('40'))
    cem = Instructor.objects.create(first_name='Cem', last_name='Demir', specialty='Kizomba',
                                    phone='5551001002', default_commission_rate=Decimal('35'))
    Instructor.objects.create(first_name='Melis', last_name='Gunes', specialty='Tango',
                              phone='5551001003', default_commission_rate=Decimal('35'))
    InstructorRate.objects.create(instructor=ezgi, dance_type=dance_types['Bachata'], rate=Decimal('45'))

    salsa = DanceClass.objects.create(
        name='Salsa Beginners (A)', instructor=ezgi, dance_type=dance_types['Salsa'],
        day_of_week=Weekday.TUESDAY, start_time=time(19, 30), price_monthly=Decimal('1500'),
    )
    bachata = DanceClass.objects.create(
        name='Bachata Intermediate (B)', instructor=ezgi, dance_type=dance_types['Bachata'],
        day_of_week=Weekday.THURSDAY, start_time=time(20, 30), price_monthly=Decimal('1800'),
    )
    kizomba = DanceClass.objects.create(
        name='Kizomba Lab', instructor=cem, dance_type=dance_types['Kizomba'],
        day_of_week=Weekday.WEDNESDAY, start_time=time(21, 0), price_monthly=Decimal('1200'),
    )
    DanceClass.objects.create(
        name='Old Term Salsa', instructor=ezgi, dance_type=dance_types['Salsa'],
        day_of_week=Weekday.MONDAY, start_time=time(19, 0), price_monthly=Decimal('1000'),
        active=False, archived=True,
    )

    ahmet = Member.objects.create(first_name='Ahmet', last_name='Yilmaz', phone='5321001001',
                                  join_date=add_months(today, -3))
    ayse = Member.objects.create(first_name='Ayse', last_name='Kara', phone='5321001002',
                                 join_date=add_months(today, -1))
    mehmet = Member.objects.create(first_name='Mehmet', last_name='Celik', phone='5321001003',
                                   join_date=add_months(today, -6))
    zeynep = Member.objects.create(first_name='Zeynep', last_name='Demir', phone='5321001004',
                                   join_date=add_months(today, -4), status=MemberStatus.FROZEN)
    can = Member.objects.create(first_name='Can', last_name='Oz', phone='5321001005',
                                join_date=add_months(today, -2))

    FrozenLog.objects.create(member=zeynep, start_date=today - timedelta(days=10), reason='Travelling')

    # Ahmet: Salsa, paid for the last three months
    enrollment = Enrollment.objects.create(member=ahmet, dance_class=salsa, price=salsa.price_monthly,
                                           next_payment_date=next_month_start)
    for i in range(3):
        paid_on = add_months(today, -(2 - i))
        _payment(ahmet, salsa, salsa.price_monthly, paid_on, paid_on.replace(day=1),
                 PaymentMethod.CASH, f"{paid_on.strftime('%B')} payment", enrollment)

    # Ayse: Bachata, new joiner paid for this month
    enrollment = Enrollment.objects.create(member=ayse, dance_class=bachata, price=bachata.price_monthly,
                                           next_payment_date=next_month_start)
    _payment(ayse, bachata, bachata.price_monthly, today, month_start, PaymentMethod.CARD,
             'First registration payment', enrollment)

    # Mehmet: Salsa paid, Kizomba overdue since the start of the month
    enrollment = Enrollment.objects.create(member=mehmet, dance_class=salsa, price=salsa.price_monthly,
                                           next_payment_date=next_month_start)
    _payment(mehmet, salsa, salsa.price_monthly, today, month_start, PaymentMethod.TRANSFER, None, enrollment)
    enrollment = Enrollment.objects.create(member=mehmet, dance_class=kizomba, price=kizomba.price_monthly,
                                           next_payment_date=month_start)
    last_month = add_months(today, -1)
    _payment(mehmet, kizomba, kizomba.price_monthly, last_month, last_month.replace(day=1),
             PaymentMethod.CASH, 'Last month payment', enrollment)

    # Can: legacy member on an old Salsa price, due now
    Enrollment.objects.create(member=can, dance_class=salsa, custom_price=Decimal('1000'),
                              price=Decimal('1000'), next_payment_date=month_start)

    return {
        'instructors': Instructor.objects.count(),
        'classes': DanceClass.objects.count(),
        'members': Member.objects.count(),
        'enrollments': Enrollment.objects.count(),
        'payments': Payment.objects.count(),
    }


def seed_demo_data(context=None, today: Optional[date] = None) -> dict:
    """Replace all business data with the demo data set."""
    wipe = wipe_all_business_data()
    if not wipe['success']:
        return wipe

    today = today or get_effective_date(context)
    logger.info(f"Seeding demo data for {today.isoformat()}...")
    try:
        with transaction.atomic():
            summary = _seed(today)
    except DatabaseError as e:
        logger.error(f"Seed failed: {str(e)}")
        return operation_failure(store_message(e), ERROR_PERSISTENCE)

    invalidate_date_views()
    logger.info(f"Demo data seeded: {summary}")
    return operation_success(summary)


# ---------------------------------------------------------------------------
# Freeze scenarios
# ---------------------------------------------------------------------------

def _random_phone(prefix: str = '555') -> str:
    return prefix + str(random.randint(1000000, 9999999))


def _test_member(first_name: str, status: str, join_date: date) -> Member:
    return Member.objects.create(
        first_name=first_name,
        last_name='Test (Freeze)',
        phone=_random_phone(),
        status=status,
        join_date=join_date,
    )


def _enroll(member: Member, dance_class: DanceClass, next_payment_date: date) -> Enrollment:
    return Enrollment.objects.create(
        member=member,
        dance_class=dance_class,
        price=dance_class.price_monthly,
        payment_interval=1,
        next_payment_date=next_payment_date,
    )


def _indefinite_freeze(today: date, dance_class: DanceClass) -> Member:
    """Frozen a month ago with no end date."""
    member = _test_member('Indefinite', MemberStatus.FROZEN, add_months(today, -3))
    _enroll(member, dance_class, today + timedelta(days=30))
    FrozenLog.objects.create(member=member, start_date=today - timedelta(days=30),
                             end_date=None, reason='Stress Test: Indefinite')
    return member


def _time_bounded_freeze(today: date, dance_class: DanceClass) -> Member:
    """Frozen a month ago, thaws a month from now."""
    member = _test_member('Fixed Term', MemberStatus.FROZEN, add_months(today, -3))
    _enroll(member, dance_class, today)
    FrozenLog.objects.create(member=member, start_date=today - timedelta(days=30),
                             end_date=today + timedelta(days=30), reason='Stress Test: Fixed Term')
    return member


def _future_freeze(today: date, dance_class: DanceClass) -> Member:
    """Active now, freeze scheduled to start in a week."""
    member = _test_member('Future', MemberStatus.ACTIVE, add_months(today, -1))
    _enroll(member, dance_class, today + timedelta(days=15))
    FrozenLog.objects.create(member=member, start_date=today + timedelta(days=7),
                             end_date=None, reason='Stress Test: Future Start')
    return member


def _delinquent_freeze(today: date, dance_class: DanceClass) -> Member:
    """Payment overdue by ten days, frozen from today. The debt predates the freeze."""
    member = _test_member('Overdue', MemberStatus.FROZEN, add_months(today, -5))
    _enroll(member, dance_class, today - timedelta(days=10))
    FrozenLog.objects.create(member=member, start_date=today,
                             end_date=None, reason='Stress Test: Overdue Freeze')
    return member


SCENARIO_BUILDERS = {
    INDEFINITE_FREEZE: _indefinite_freeze,
    TIME_BOUNDED_FREEZE: _time_bounded_freeze,
    FUTURE_FREEZE: _future_freeze,
    DELINQUENT_FREEZE: _delinquent_freeze,
}


def _scenario_class():
    return (
        DanceClass.objects.filter(active=True).order_by('id').first()
        or DanceClass.objects.order_by('id').first()
    )


def generate_scenario(kind: str, context=None, today: Optional[date] = None) -> dict:
    """Create the member, enrollment and freeze log of one scenario kind."""
    builder = SCENARIO_BUILDERS.get(kind)
    if builder is None:
        message = f"Unknown scenario kind '{kind}'. Expected one of: {', '.join(SCENARIO_KINDS)}."
        logger.error(message)
        return operation_failure(message, ERROR_VALIDATION)

    dance_class = _scenario_class()
    if dance_class is None:
        message = 'No classes found to enroll test members.'
        logger.error(f"Scenario '{kind}' not generated: {message}")
        return operation_failure(message, ERROR_VALIDATION)

    today = today or get_effective_date(context)
    try:
        with transaction.atomic():
            member = builder(today, dance_class)
    except DatabaseError as e:
        logger.error(f"Scenario '{kind}' failed: {str(e)}")
        return operation_failure(store_message(e), ERROR_PERSISTENCE)

    invalidate_date_views()
    logger.info(f"Generated scenario '{kind}' for {today.isoformat()}: member {member.id}")
    return operation_success({
        'kind': kind,
        'member_id': member.id,
        'effective_date': today.isoformat(),
    })


def generate_all_scenarios(context=None, today: Optional[date] = None) -> dict:
    """Generate every scenario kind, stopping at the first failure."""
    generated = []
    for kind in SCENARIO_KINDS:
        result = generate_scenario(kind, context, today)
        if not result['success']:
            result['generated'] = generated
            return result
        generated.append(result['data'])
    return operation_success(generated, count=len(generated))


# ---------------------------------------------------------------------------
# Random test records
# ---------------------------------------------------------------------------

FIRST_NAMES = ['Can', 'Merve', 'Emre', 'Selin', 'Burak', 'Elif', 'Deniz', 'Cem']
LAST_NAMES = ['Yilmaz', 'Kaya', 'Demir', 'Celik', 'Sahin', 'Yildiz', 'Oz', 'Aydin']
STYLES = ['Salsa', 'Bachata', 'Kizomba', 'Tango', 'Cha Cha', 'Rumba']
LEVELS = ['Beginner', 'Intermediate', 'Advanced', 'Open Level']


def create_random_member(context=None) -> dict:
    today = get_effective_date(context)
    try:
        member = Member.objects.create(
            first_name=f"{random.choice(FIRST_NAMES)} (Test)",
            last_name=random.choice(LAST_NAMES),
            phone='5' + str(random.randint(100000000, 999999999)),
            join_date=today,
            status=MemberStatus.ACTIVE,
        )
    except DatabaseError as e:
        logger.error(f"Random member not created: {str(e)}")
        return operation_failure(store_message(e), ERROR_PERSISTENCE)

    invalidate_date_views()
    logger.info(f"Created random member {member.id}")
    return operation_success(member)


def create_random_class() -> dict:
    instructor_ids = list(Instructor.objects.values_list('id', flat=True))
    if not instructor_ids:
        return operation_failure('No instructors found.', ERROR_VALIDATION)

    try:
        dance_class = DanceClass.objects.create(
            name=f"{random.choice(STYLES)} {random.choice(LEVELS)} (Test)",
            instructor_id=random.choice(instructor_ids),
            day_of_week=random.choice(Weekday.values),
            start_time=time(random.randint(18, 21), 0),
            price_monthly=Decimal(random.randint(1000, 2499)),
            active=True,
        )
    except DatabaseError as e:
        logger.error(f"Random class not created: {str(e)}")
        return operation_failure(store_message(e), ERROR_PERSISTENCE)

    invalidate_date_views()
    logger.info(f"Created random class {dance_class.id}")
    return operation_success(dance_class)
