import time
from datetime import date
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.conf import settings
from django.contrib.auth.models import User
from django.core import signing
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import DatabaseError
from django.http import HttpResponse
from django.test import TestCase, RequestFactory
from django.utils import timezone

from classes.models import DanceClass, DanceType, Enrollment, InstructorRate
from members.models import FrozenLog, Instructor, Member, MemberStatus
from payments.models import InstructorLedger, InstructorPayout, Payment
from simulator import lifecycle
from simulator.cache import get_generation
from simulator.clock import (
    SimulationContext,
    get_effective_date,
    get_effective_now,
    get_effective_today,
    read_override,
)
from simulator.controls import clear_simulation_date, get_simulation_status, set_simulation_date
from simulator.lifecycle import (
    DELINQUENT_FREEZE,
    FUTURE_FREEZE,
    INDEFINITE_FREEZE,
    TIME_BOUNDED_FREEZE,
    WIPE_STEPS,
    create_random_class,
    create_random_member,
    generate_all_scenarios,
    generate_scenario,
    run_ordered_deletes,
    seed_demo_data,
    wipe_all_business_data,
)
from studio.results import ERROR_CONTEXT, ERROR_PERSISTENCE, ERROR_VALIDATION


def signed_request(value=None, signed_at=None):
    """A request carrying ``value`` in the simulation cookie, signed at ``signed_at``."""
    request = RequestFactory().get('/')
    if value is not None:
        signer = signing.get_cookie_signer(
            salt=settings.SIMULATION_COOKIE_NAME + settings.SIMULATION_COOKIE_SALT
        )
        if signed_at is None:
            cookie = signer.sign(value)
        else:
            with mock.patch('django.core.signing.time.time', return_value=signed_at):
                cookie = signer.sign(value)
        request.COOKIES[settings.SIMULATION_COOKIE_NAME] = cookie
    return request


def real_today():
    return timezone.localdate().isoformat()


class EffectiveDateResolverTestCase(TestCase):

    def test_without_override_returns_real_date(self):
        self.assertEqual(get_effective_today(), real_today())
        self.assertEqual(get_effective_today(signed_request()), real_today())

    def test_valid_override_returned_verbatim(self):
        request = signed_request('2023-06-15')
        self.assertEqual(get_effective_today(request), '2023-06-15')
        self.assertEqual(get_effective_date(request), date(2023, 6, 15))

    def test_malformed_override_falls_back_to_real_date(self):
        for value in ['2023-13-45', 'tomorrow', '2023-6-1', '', '2023-02-30']:
            with self.subTest(value=value):
                self.assertEqual(get_effective_today(signed_request(value)), real_today())

    def test_unsigned_cookie_is_ignored(self):
        request = RequestFactory().get('/')
        request.COOKIES[settings.SIMULATION_COOKIE_NAME] = '2023-06-15'
        self.assertIsNone(read_override(request))
        self.assertEqual(get_effective_today(request), real_today())

    def test_override_expires_after_max_age(self):
        signed_at = time.time() - settings.SIMULATION_COOKIE_MAX_AGE - 10
        request = signed_request('2023-06-15', signed_at=signed_at)
        self.assertIsNone(read_override(request))
        self.assertEqual(get_effective_today(request), real_today())
        self.assertFalse(get_simulation_status(request)['is_simulating'])

    def test_override_valid_within_max_age(self):
        request = signed_request('2023-06-15', signed_at=time.time() - 3600)
        self.assertEqual(get_effective_today(request), '2023-06-15')

    def test_effective_now_is_start_of_effective_day(self):
        now = get_effective_now(signed_request('2023-06-15'))
        self.assertTrue(timezone.is_aware(now))
        self.assertEqual(timezone.localtime(now).date(), date(2023, 6, 15))
        self.assertEqual((now.hour, now.minute, now.second), (0, 0, 0))

    def test_pending_change_visible_in_same_request(self):
        context = SimulationContext(signed_request('2023-06-15'))
        context.set('2024-02-29')
        self.assertEqual(get_effective_today(context), '2024-02-29')
        context.clear()
        self.assertEqual(get_effective_today(context), real_today())


class SimulationControlTestCase(TestCase):

    def setUp(self):
        self.context = SimulationContext(signed_request())

    def test_set_then_clear_returns_to_real_time(self):
        result = set_simulation_date(self.context, '2023-06-15')
        self.assertTrue(result['success'])
        self.assertEqual(result['data'], '2023-06-15')
        self.assertEqual(get_effective_today(self.context), '2023-06-15')
        self.assertTrue(get_simulation_status(self.context)['is_simulating'])

        result = clear_simulation_date(self.context)
        self.assertTrue(result['success'])
        self.assertTrue(result['data'])
        self.assertEqual(get_effective_today(self.context), real_today())
        self.assertEqual(
            get_simulation_status(self.context),
            {'is_simulating': False, 'effective_date': real_today()}
        )

    def test_set_writes_signed_cookie(self):
        set_simulation_date(self.context, '2023-06-15')
        response = HttpResponse()
        self.context.apply(response)

        cookie = response.cookies[settings.SIMULATION_COOKIE_NAME]
        self.assertEqual(cookie['max-age'], 86400)
        self.assertEqual(cookie['path'], '/')
        self.assertEqual(cookie['samesite'], 'Lax')
        self.assertTrue(cookie['httponly'])
        self.assertNotEqual(cookie.value, '2023-06-15')

        next_request = RequestFactory().get('/')
        next_request.COOKIES[settings.SIMULATION_COOKIE_NAME] = cookie.value
        self.assertEqual(get_effective_today(next_request), '2023-06-15')

    def test_clear_when_nothing_set_succeeds(self):
        result = clear_simulation_date(self.context)
        self.assertTrue(result['success'])

        response = HttpResponse()
        self.context.apply(response)
        self.assertEqual(response.cookies[settings.SIMULATION_COOKIE_NAME]['max-age'], 0)

    def test_invalid_value_is_kept_but_not_used(self):
        result = set_simulation_date(self.context, 'not-a-date')
        self.assertTrue(result['success'])
        status = get_simulation_status(self.context)
        self.assertTrue(status['is_simulating'])
        self.assertEqual(status['effective_date'], real_today())

    def test_missing_context_reports_context_unavailable(self):
        result = set_simulation_date(None, '2023-06-15')
        self.assertFalse(result['success'])
        self.assertEqual(result['error_type'], ERROR_CONTEXT)

        result = clear_simulation_date(None)
        self.assertFalse(result['success'])
        self.assertEqual(result['error_type'], ERROR_CONTEXT)

    def test_closed_context_reports_context_unavailable(self):
        self.context.apply(HttpResponse())
        result = set_simulation_date(self.context, '2023-06-15')
        self.assertFalse(result['success'])
        self.assertEqual(result['error_type'], ERROR_CONTEXT)

    def test_set_and_clear_invalidate_date_views(self):
        generation = get_generation()
        set_simulation_date(self.context, '2023-06-15')
        self.assertEqual(get_generation(), generation + 1)
        clear_simulation_date(self.context)
        self.assertEqual(get_generation(), generation + 2)


class StudioDataMixin:

    def create_studio_data(self):
        self.dance_type, _ = DanceType.objects.get_or_create(name='Salsa', defaults={'slug': 'salsa'})
        self.instructor = Instructor.objects.create(
            first_name='Ezgi', last_name='Zaman', default_commission_rate=Decimal('40')
        )
        InstructorRate.objects.create(instructor=self.instructor, dance_type=self.dance_type, rate=Decimal('45'))
        self.dance_class = DanceClass.objects.create(
            name='Salsa Beginners', instructor=self.instructor, dance_type=self.dance_type,
            price_monthly=Decimal('1500')
        )
        self.member = Member.objects.create(first_name='Ahmet', last_name='Yilmaz', join_date=date(2024, 10, 1))
        self.enrollment = Enrollment.objects.create(
            member=self.member, dance_class=self.dance_class,
            price=Decimal('1500'), next_payment_date=date(2025, 2, 1)
        )
        for month in (11, 12, 1):
            Payment.objects.create(
                member=self.member, dance_class=self.dance_class, enrollment=self.enrollment,
                amount=Decimal('1500'),
                payment_date=date(2025 if month == 1 else 2024, month, 1),
            )
        FrozenLog.objects.create(member=self.member, start_date=date(2024, 12, 20), end_date=date(2024, 12, 27))
        InstructorPayout.objects.create(instructor=self.instructor, amount=Decimal('500'), payment_date=date(2025, 1, 5))


class WipeTestCase(StudioDataMixin, TestCase):

    def setUp(self):
        self.create_studio_data()
        self.user = User.objects.create_user(username='admin', password='testpass123', is_staff=True)

    def test_wipe_removes_every_business_table(self):
        self.assertEqual(InstructorLedger.objects.count(), 3)

        result = wipe_all_business_data()

        self.assertTrue(result['success'])
        self.assertEqual(result['data']['completed_steps'], [table for table, _ in WIPE_STEPS])
        for _, model in WIPE_STEPS:
            self.assertEqual(model._default_manager.count(), 0, model.__name__)
        # Reference data and auth users are kept
        self.assertTrue(DanceType.objects.filter(name='Salsa').exists())
        self.assertTrue(User.objects.filter(username='admin').exists())

    def test_wipe_with_three_payments_on_one_enrollment(self):
        self.assertEqual(Payment.objects.filter(enrollment=self.enrollment).count(), 3)

        result = wipe_all_business_data()

        self.assertTrue(result['success'])
        self.assertEqual(Payment.objects.count(), 0)
        self.assertFalse(Enrollment.objects.filter(id=self.enrollment.id).exists())

    def test_failed_step_stops_run_and_keeps_completed_steps(self):
        real_delete_all = lifecycle._delete_all

        def delete_all(model):
            if model is InstructorPayout:
                raise DatabaseError('connection lost')
            return real_delete_all(model)

        with mock.patch('simulator.lifecycle._delete_all', side_effect=delete_all):
            result = wipe_all_business_data()

        self.assertFalse(result['success'])
        self.assertEqual(result['error_type'], ERROR_PERSISTENCE)
        self.assertEqual(result['error'], 'connection lost')
        self.assertEqual(result['failed_step'], 'instructor_payouts')
        self.assertEqual(result['completed_steps'], ['payments', 'frozen_logs'])
        # Completed steps are not rolled back, later ones never ran
        self.assertEqual(Payment.objects.count(), 0)
        self.assertEqual(FrozenLog.objects.count(), 0)
        self.assertEqual(InstructorPayout.objects.count(), 1)
        self.assertEqual(InstructorLedger.objects.count(), 3)
        self.assertEqual(Member.objects.count(), 1)
        self.assertEqual(Instructor.objects.count(), 1)

    def test_parent_before_child_is_rejected(self):
        steps = (('payments', Payment), ('members', Member), ('classes', DanceClass))

        result = run_ordered_deletes(steps)

        self.assertFalse(result['success'])
        self.assertEqual(result['error_type'], ERROR_PERSISTENCE)
        self.assertEqual(result['failed_step'], 'members')
        self.assertEqual(result['completed_steps'], ['payments'])
        self.assertEqual(Payment.objects.count(), 0)
        self.assertEqual(Member.objects.count(), 1)
        self.assertEqual(DanceClass.objects.count(), 1)

    def test_wipe_of_empty_database_succeeds(self):
        wipe_all_business_data()
        result = wipe_all_business_data()
        self.assertTrue(result['success'])
        self.assertEqual(sum(result['data']['deleted'].values()), 0)

    def test_wipe_invalidates_date_views(self):
        generation = get_generation()
        wipe_all_business_data()
        self.assertEqual(get_generation(), generation + 1)


class ScenarioTestCase(TestCase):

    def setUp(self):
        self.dance_class = DanceClass.objects.create(name='Bachata Open', price_monthly=Decimal('1200'))

    def test_future_freeze_starts_after_simulated_date(self):
        context = SimulationContext(signed_request('2025-01-01'))

        result = generate_scenario(FUTURE_FREEZE, context)

        self.assertTrue(result['success'])
        self.assertEqual(result['data']['effective_date'], '2025-01-01')
        member = Member.objects.get(id=result['data']['member_id'])
        freeze_log = member.frozen_logs.get()
        self.assertGreater(freeze_log.start_date, date(2025, 1, 1))
        self.assertEqual(freeze_log.start_date, date(2025, 1, 8))
        self.assertEqual(member.status, MemberStatus.ACTIVE)
        self.assertFalse(member.is_frozen_on(date(2025, 1, 1)))
        self.assertTrue(member.is_frozen_on(date(2025, 1, 8)))

    def test_scenarios_are_anchored_on_effective_date(self):
        today = date(2025, 3, 31)
        expected = {
            INDEFINITE_FREEZE: (MemberStatus.FROZEN, date(2024, 12, 31), date(2025, 4, 30), date(2025, 3, 1), None),
            TIME_BOUNDED_FREEZE: (MemberStatus.FROZEN, date(2024, 12, 31), date(2025, 3, 31), date(2025, 3, 1), date(2025, 4, 30)),
            FUTURE_FREEZE: (MemberStatus.ACTIVE, date(2025, 2, 28), date(2025, 4, 15), date(2025, 4, 7), None),
            DELINQUENT_FREEZE: (MemberStatus.FROZEN, date(2024, 10, 31), date(2025, 3, 21), date(2025, 3, 31), None),
        }
        for kind, (status, join_date, next_payment, start, end) in expected.items():
            with self.subTest(kind=kind):
                result = generate_scenario(kind, today=today)
                self.assertTrue(result['success'])

                member = Member.objects.get(id=result['data']['member_id'])
                self.assertEqual(member.status, status)
                self.assertEqual(member.join_date, join_date)

                enrollment = member.enrollments.get()
                self.assertEqual(enrollment.dance_class, self.dance_class)
                self.assertEqual(enrollment.next_payment_date, next_payment)

                freeze_log = member.frozen_logs.get()
                self.assertEqual(freeze_log.start_date, start)
                self.assertEqual(freeze_log.end_date, end)

    def test_delinquent_freeze_is_not_overdue_while_frozen(self):
        result = generate_scenario(DELINQUENT_FREEZE, today=date(2025, 3, 31))
        enrollment = Enrollment.objects.get(member_id=result['data']['member_id'])
        self.assertFalse(enrollment.is_overdue(date(2025, 3, 31)))
        self.assertEqual(enrollment.days_until_payment(date(2025, 3, 31)), -10)

    def test_unknown_kind_writes_nothing(self):
        result = generate_scenario('eternal-freeze')
        self.assertFalse(result['success'])
        self.assertEqual(result['error_type'], ERROR_VALIDATION)
        self.assertEqual(Member.objects.count(), 0)
        self.assertEqual(FrozenLog.objects.count(), 0)

    def test_no_class_to_enroll_writes_nothing(self):
        DanceClass.objects.all().delete()
        result = generate_scenario(INDEFINITE_FREEZE)
        self.assertFalse(result['success'])
        self.assertEqual(result['error_type'], ERROR_VALIDATION)
        self.assertEqual(Member.objects.count(), 0)

    def test_inactive_class_used_when_no_active_class(self):
        self.dance_class.active = False
        self.dance_class.save()
        result = generate_scenario(INDEFINITE_FREEZE)
        self.assertTrue(result['success'])
        self.assertEqual(Enrollment.objects.get().dance_class, self.dance_class)

    def test_generate_all_scenarios(self):
        result = generate_all_scenarios(today=date(2025, 1, 1))
        self.assertTrue(result['success'])
        self.assertEqual(result['count'], 4)
        self.assertEqual([s['kind'] for s in result['data']], list(lifecycle.SCENARIO_KINDS))
        self.assertEqual(Member.objects.count(), 4)
        self.assertEqual(FrozenLog.objects.count(), 4)


class SeedTestCase(TestCase):

    def test_seed_creates_demo_data(self):
        today = date(2025, 3, 15)

        result = seed_demo_data(today=today)

        self.assertTrue(result['success'])
        self.assertEqual(result['data'], {
            'instructors': 3,
            'classes': 4,
            'members': 5,
            'enrollments': 5,
            'payments': 6,
        })
        zeynep = Member.objects.get(first_name='Zeynep')
        self.assertEqual(zeynep.status, MemberStatus.FROZEN)
        self.assertTrue(zeynep.is_frozen_on(today))

        overdue = Enrollment.objects.overdue(today)
        self.assertEqual(
            sorted(e.member.first_name for e in overdue),
            ['Can', 'Mehmet']
        )
        can = Enrollment.objects.get(member__first_name='Can')
        self.assertEqual(can.effective_price, Decimal('1000'))
        self.assertTrue(DanceClass.objects.filter(archived=True, active=False).exists())
        # Every seeded payment is for a class with an instructor
        self.assertEqual(InstructorLedger.objects.count(), 6)

    def test_seed_replaces_existing_data(self):
        seed_demo_data(today=date(2025, 3, 15))
        result = seed_demo_data(today=date(2025, 3, 15))
        self.assertTrue(result['success'])
        self.assertEqual(Member.objects.count(), 5)
        self.assertEqual(DanceType.objects.filter(name='Salsa').count(), 1)

    def test_seed_uses_simulated_date(self):
        result = seed_demo_data(SimulationContext(signed_request('2024-02-10')))
        self.assertTrue(result['success'])
        self.assertEqual(Member.objects.get(first_name='Ayse').join_date, date(2024, 1, 10))
        self.assertEqual(
            sorted(Payment.objects.filter(member__first_name='Ahmet').values_list('payment_date', flat=True)),
            [date(2023, 12, 10), date(2024, 1, 10), date(2024, 2, 10)]
        )

    def test_seed_aborts_when_wipe_fails(self):
        failure = {'success': False, 'error': 'locked', 'error_type': ERROR_PERSISTENCE, 'completed_steps': []}
        with mock.patch('simulator.lifecycle.wipe_all_business_data', return_value=failure):
            result = seed_demo_data(today=date(2025, 3, 15))
        self.assertEqual(result, failure)
        self.assertEqual(Member.objects.count(), 0)


class RandomRecordsTestCase(TestCase):

    def test_random_member_joins_on_effective_date(self):
        result = create_random_member(SimulationContext(signed_request('2024-07-01')))
        self.assertTrue(result['success'])
        member = result['data']
        self.assertEqual(member.join_date, date(2024, 7, 1))
        self.assertEqual(member.status, MemberStatus.ACTIVE)

    def test_random_class_requires_instructor(self):
        result = create_random_class()
        self.assertFalse(result['success'])
        self.assertEqual(result['error_type'], ERROR_VALIDATION)
        self.assertEqual(DanceClass.objects.count(), 0)

    def test_random_class(self):
        instructor = Instructor.objects.create(first_name='Cem', last_name='Demir')
        result = create_random_class()
        self.assertTrue(result['success'])
        self.assertEqual(result['data'].instructor, instructor)
        self.assertTrue(result['data'].active)


class ManagementCommandTestCase(StudioDataMixin, TestCase):

    def test_wipe_business_data(self):
        self.create_studio_data()
        out = StringIO()
        call_command('wipe_business_data', '--noinput', stdout=out)
        self.assertIn('All business data deleted.', out.getvalue())
        self.assertEqual(Member.objects.count(), 0)
        self.assertEqual(Instructor.objects.count(), 0)

    def test_seed_demo_data(self):
        call_command('seed_demo_data', '--date', '2025-03-15', stdout=StringIO())
        self.assertEqual(Member.objects.count(), 5)
        self.assertEqual(Member.objects.get(first_name='Ayse').join_date, date(2025, 2, 15))

    def test_generate_scenario_with_date(self):
        DanceClass.objects.create(name='Tango', price_monthly=Decimal('1000'))
        out = StringIO()
        call_command('generate_scenario', FUTURE_FREEZE, '--date', '2025-01-01', stdout=out)
        self.assertEqual(FrozenLog.objects.get().start_date, date(2025, 1, 8))
        self.assertIn('1 scenario(s) generated.', out.getvalue())

    def test_generate_scenario_without_class_fails(self):
        with self.assertRaises(CommandError):
            call_command('generate_scenario', 'all', stdout=StringIO())
