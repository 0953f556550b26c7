from datetime import date
from decimal import Decimal

from django.contrib.auth.models import User
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from classes.models import DanceClass, DanceType, Enrollment, InstructorRate
from members.models import FrozenLog, Instructor, Member, MemberStatus
from payments.ledger import get_commission_rate, get_payable_ledger, process_payout
from payments.models import InstructorLedger, InstructorPayout, LedgerStatus, Payment
from studio.results import ERROR_VALIDATION


class LedgerTestCase(TestCase):
    def setUp(self):
        self.salsa = DanceType._default_manager.create(name='Salsa', slug='salsa')
        self.instructor = Instructor._default_manager.create(
            first_name='Ezgi', last_name='Zaman', default_commission_rate=Decimal('40')
        )
        self.dance_class = DanceClass._default_manager.create(
            name='Salsa Beginners', instructor=self.instructor, dance_type=self.salsa,
            price_monthly=Decimal('1500')
        )
        self.member = Member._default_manager.create(first_name='Ahmet', last_name='Yilmaz', join_date=date(2024, 1, 1))

    def pay(self, amount, payment_date, months_count=1, dance_class=None):
        return Payment._default_manager.create(
            member=self.member,
            dance_class=dance_class or self.dance_class,
            amount=amount,
            months_count=months_count,
            payment_date=payment_date,
        )

    def test_commission_rate_prefers_dance_type_rate(self):
        self.assertEqual(get_commission_rate(self.instructor, self.dance_class), Decimal('40'))
        InstructorRate._default_manager.create(instructor=self.instructor, dance_type=self.salsa, rate=Decimal('55'))
        self.assertEqual(get_commission_rate(self.instructor, self.dance_class), Decimal('55'))

    def test_commission_rate_defaults_to_zero(self):
        instructor = Instructor._default_manager.create(first_name='Cem', last_name='Demir')
        self.assertEqual(get_commission_rate(instructor, None), Decimal('0'))

    def test_payment_books_one_entry_per_month(self):
        payment = self.pay(Decimal('4500'), date(2025, 1, 31), months_count=3)

        entries = list(InstructorLedger._default_manager.filter(student_payment=payment))
        self.assertEqual([e.amount for e in entries], [Decimal('600.00')] * 3)
        self.assertEqual(
            [e.due_date for e in entries],
            [date(2025, 1, 31), date(2025, 2, 28), date(2025, 3, 31)]
        )
        self.assertTrue(all(e.status == LedgerStatus.PENDING for e in entries))

    def test_payment_without_instructor_books_nothing(self):
        dance_class = DanceClass._default_manager.create(name='Open Practice', price_monthly=Decimal('500'))
        self.pay(Decimal('500'), date(2025, 1, 1), dance_class=dance_class)
        self.assertFalse(InstructorLedger._default_manager.exists())

    def test_payable_ledger_counts_only_matured_entries(self):
        self.pay(Decimal('4500'), date(2025, 1, 10), months_count=3)

        self.assertEqual(get_payable_ledger(date(2025, 1, 9)), [])

        rows = get_payable_ledger(date(2025, 2, 10))
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['instructor'], self.instructor)
        self.assertEqual(rows[0]['total_amount'], Decimal('1200.00'))
        self.assertEqual(rows[0]['entry_count'], 2)

    def test_payable_ledger_skips_inactive_instructors(self):
        self.pay(Decimal('1500'), date(2025, 1, 10))
        self.instructor.active = False
        self.instructor.save()
        self.assertEqual(get_payable_ledger(date(2025, 2, 1)), [])

    def test_payout_settles_matured_entries(self):
        self.pay(Decimal('4500'), date(2025, 1, 10), months_count=3)

        result = process_payout(self.instructor, Decimal('600'), today=date(2025, 1, 15))

        self.assertTrue(result['success'])
        self.assertEqual(result['data']['settled_entries'], 1)
        self.assertEqual(result['data']['payout'].payment_date, date(2025, 1, 15))
        self.assertEqual(InstructorLedger._default_manager.filter(status=LedgerStatus.PAID).count(), 1)
        self.assertEqual(InstructorLedger._default_manager.filter(status=LedgerStatus.PENDING).count(), 2)
        self.assertEqual(get_payable_ledger(date(2025, 1, 15)), [])

    def test_payout_amount_must_be_positive(self):
        result = process_payout(self.instructor, Decimal('0'), today=date(2025, 1, 15))
        self.assertFalse(result['success'])
        self.assertEqual(result['error_type'], ERROR_VALIDATION)
        self.assertFalse(InstructorPayout._default_manager.exists())


class PaymentAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.admin_user = User._default_manager.create_user(
            username='admin',
            password='testpass123',
            is_staff=True
        )
        admin_token = RefreshToken.for_user(self.admin_user)
        self.admin_token = str(admin_token.access_token)

        self.instructor = Instructor._default_manager.create(
            first_name='Ezgi', last_name='Zaman', default_commission_rate=Decimal('40')
        )
        self.dance_class = DanceClass._default_manager.create(
            name='Salsa Beginners', instructor=self.instructor, price_monthly=Decimal('1500')
        )
        self.member = Member._default_manager.create(first_name='Ayse', last_name='Kara', join_date=date(2024, 1, 1))
        self.enrollment = Enrollment._default_manager.create(
            member=self.member, dance_class=self.dance_class,
            price=Decimal('1500'), next_payment_date=date(2025, 1, 1)
        )

    def authenticate(self):
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {self.admin_token}')

    def simulate(self, value):
        self.client.post(reverse('simulator_api:simulation'), {'date': value}, format='json')

    def test_list_payments_requires_authentication(self):
        response = self.client.get(reverse('payments:payment-list-create'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_record_payment_on_simulated_date(self):
        self.authenticate()
        self.simulate('2025-01-05')

        data = {
            'member': self.member.id,
            'enrollment': self.enrollment.id,
            'amount': '3000.00',
            'months_count': 2,
            'payment_method': 'cash',
        }
        response = self.client.post(reverse('payments:payment-list-create'), data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        payment = Payment._default_manager.get()
        self.assertEqual(payment.payment_date, date(2025, 1, 5))
        self.assertEqual(payment.period_end, date(2025, 3, 5))
        self.assertEqual(payment.dance_class, self.dance_class)
        self.assertEqual(payment.snapshot_class_name, 'Salsa Beginners')
        self.assertEqual(payment.snapshot_price, Decimal('1500'))

        self.enrollment.refresh_from_db()
        self.assertEqual(self.enrollment.next_payment_date, date(2025, 3, 1))
        self.assertEqual(InstructorLedger._default_manager.filter(student_payment=payment).count(), 2)

    def test_record_payment_for_other_members_enrollment(self):
        other = Member._default_manager.create(first_name='Can', last_name='Oz', join_date=date(2024, 1, 1))
        self.authenticate()
        data = {'member': other.id, 'enrollment': self.enrollment.id, 'amount': '1500.00'}
        response = self.client.post(reverse('payments:payment-list-create'), data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Payment._default_manager.exists())

    def test_payable_ledger_follows_simulated_date(self):
        Payment._default_manager.create(
            member=self.member, dance_class=self.dance_class, amount=Decimal('3000'),
            months_count=2, payment_date=date(2025, 1, 10)
        )
        self.authenticate()
        url = reverse('payments:payable-ledger')

        self.simulate('2025-01-20')
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['effective_date'], '2025-01-20')
        self.assertEqual(response.data['data']['instructors'][0]['total_amount'], '600.00')

        self.simulate('2025-02-10')
        response = self.client.get(url)
        self.assertEqual(response.data['data']['instructors'][0]['total_amount'], '1200.00')
        self.assertEqual(response.data['data']['instructors'][0]['entry_count'], 2)

    def test_create_payout(self):
        Payment._default_manager.create(
            member=self.member, dance_class=self.dance_class, amount=Decimal('1500'),
            payment_date=date(2025, 1, 10)
        )
        self.authenticate()
        self.simulate('2025-01-31')

        data = {'instructor_id': self.instructor.id, 'amount': '600.00', 'note': 'January'}
        response = self.client.post(reverse('payments:instructor-payouts'), data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['settled_entries'], 1)
        self.assertEqual(response.data['data']['payout']['payment_date'], '2025-01-31')

        response = self.client.get(reverse('payments:instructor-payouts'))
        self.assertEqual(response.data['count'], 1)

    def test_create_payout_unknown_instructor(self):
        self.authenticate()
        data = {'instructor_id': 9999, 'amount': '600.00'}
        response = self.client.post(reverse('payments:instructor-payouts'), data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_dashboard_for_simulated_month(self):
        Payment._default_manager.create(
            member=self.member, dance_class=self.dance_class, amount=Decimal('1500'),
            payment_date=date(2025, 1, 10)
        )
        zeynep = Member._default_manager.create(
            first_name='Zeynep', last_name='Demir', join_date=date(2024, 1, 1), status=MemberStatus.FROZEN
        )
        FrozenLog._default_manager.create(member=zeynep, start_date=date(2025, 1, 1))
        self.authenticate()
        url = reverse('payments:finance-dashboard')

        self.simulate('2025-01-20')
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['month'], '2025-01')
        self.assertEqual(data['revenue'], 1500.0)
        self.assertEqual(data['payments_count'], 1)
        self.assertEqual(data['active_members'], 1)
        self.assertEqual(data['frozen_members'], 1)
        self.assertEqual(data['overdue_enrollments'], 1)
        self.assertEqual(data['payable_commission'], 600.0)

        self.simulate('2025-02-20')
        data = self.client.get(url).data['data']
        self.assertEqual(data['month'], '2025-02')
        self.assertEqual(data['revenue'], 0.0)

    def test_dashboard_recomputed_after_invalidation(self):
        self.authenticate()
        self.simulate('2025-01-20')
        url = reverse('payments:finance-dashboard')
        self.assertEqual(self.client.get(url).data['data']['payments_count'], 0)

        # Written behind the API's back: the cached payload is still served
        Payment._default_manager.create(
            member=self.member, dance_class=self.dance_class, amount=Decimal('1500'),
            payment_date=date(2025, 1, 10)
        )
        self.assertEqual(self.client.get(url).data['data']['payments_count'], 0)

        # Re-pinning the date invalidates date-dependent views
        self.simulate('2025-01-20')
        self.assertEqual(self.client.get(url).data['data']['payments_count'], 1)

    def test_dashboard_follows_freeze_and_unfreeze(self):
        self.authenticate()
        self.simulate('2025-01-20')
        url = reverse('payments:finance-dashboard')

        data = self.client.get(url).data['data']
        self.assertEqual((data['active_members'], data['frozen_members']), (1, 0))
        self.assertEqual(data['overdue_enrollments'], 1)

        freeze_url = reverse('members_api:member-freeze', kwargs={'pk': self.member.id})
        response = self.client.post(
            freeze_url, {'start_date': '2025-01-20', 'end_date': '2025-02-20'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        data = self.client.get(url).data['data']
        self.assertEqual((data['active_members'], data['frozen_members']), (0, 1))
        self.assertEqual(data['overdue_enrollments'], 0)

        unfreeze_url = reverse('members_api:member-unfreeze', kwargs={'pk': self.member.id})
        self.assertEqual(self.client.post(unfreeze_url).status_code, status.HTTP_200_OK)

        data = self.client.get(url).data['data']
        self.assertEqual((data['active_members'], data['frozen_members']), (1, 0))

    def test_dashboard_follows_member_and_enrollment_writes(self):
        self.authenticate()
        self.simulate('2025-01-20')
        url = reverse('payments:finance-dashboard')
        self.assertEqual(self.client.get(url).data['data']['active_members'], 1)

        data = {'first_name': 'Selin', 'last_name': 'Kaya', 'phone': '+905551234567'}
        response = self.client.post(reverse('members_api:member-list-create'), data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        selin_id = response.data['data']['id']
        self.assertEqual(self.client.get(url).data['data']['active_members'], 2)

        data = {'member': selin_id, 'dance_class': self.dance_class.id, 'next_payment_date': '2025-01-10'}
        response = self.client.post(reverse('classes_api:enrollment-list-create'), data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(self.client.get(url).data['data']['overdue_enrollments'], 2)

        FrozenLog._default_manager.create(member=self.member, start_date=date(2025, 1, 15))
        response = self.client.post(reverse('simulator_api:sync-statuses'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        data = self.client.get(url).data['data']
        self.assertEqual((data['active_members'], data['frozen_members']), (1, 1))
        self.assertEqual(data['overdue_enrollments'], 1)
