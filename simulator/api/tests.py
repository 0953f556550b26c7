from datetime import date
from decimal import Decimal
from unittest import mock

from django.conf import settings
from django.contrib.auth.models import User
from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from classes.models import DanceClass, Enrollment
from members.models import FrozenLog, Instructor, Member, MemberStatus
from payments.models import Payment


class SimulatorAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.admin_user = User._default_manager.create_user(
            username='admin',
            password='testpass123',
            is_staff=True
        )
        admin_token = RefreshToken.for_user(self.admin_user)
        self.admin_token = str(admin_token.access_token)

        self.staff_less_user = User._default_manager.create_user(
            username='frontdesk',
            password='testpass123'
        )
        self.staff_less_token = str(RefreshToken.for_user(self.staff_less_user).access_token)

        self.dance_class = DanceClass._default_manager.create(
            name='Salsa Beginners',
            price_monthly=Decimal('1500')
        )

    def authenticate(self):
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {self.admin_token}')

    def set_date(self, value):
        return self.client.post(reverse('simulator_api:simulation'), {'date': value}, format='json')

    def test_status_requires_authentication(self):
        response = self.client.get(reverse('simulator_api:simulation'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_status_requires_staff(self):
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {self.staff_less_token}')
        response = self.client.get(reverse('simulator_api:simulation'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_wipe_requires_authentication(self):
        response = self.client.post(reverse('simulator_api:wipe'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertTrue(DanceClass._default_manager.exists())

    def test_status_in_real_time(self):
        self.authenticate()
        response = self.client.get(reverse('simulator_api:simulation'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data'], {
            'is_simulating': False,
            'effective_date': timezone.localdate().isoformat(),
        })

    def test_set_read_clear_cycle(self):
        self.authenticate()

        response = self.set_date('2023-06-15')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['data']['effective_date'], '2023-06-15')
        cookie = response.cookies[settings.SIMULATION_COOKIE_NAME]
        self.assertEqual(cookie['max-age'], 86400)
        self.assertTrue(cookie['httponly'])

        response = self.client.get(reverse('simulator_api:simulation'))
        self.assertEqual(response.data['data'], {'is_simulating': True, 'effective_date': '2023-06-15'})

        response = self.client.delete(reverse('simulator_api:simulation'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['data']['is_simulating'])

        response = self.client.get(reverse('simulator_api:simulation'))
        self.assertEqual(response.data['data'], {
            'is_simulating': False,
            'effective_date': timezone.localdate().isoformat(),
        })

    def test_clear_without_simulation(self):
        self.authenticate()
        response = self.client.delete(reverse('simulator_api:simulation'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])

    def test_invalid_date_keeps_real_time(self):
        self.authenticate()
        response = self.set_date('2023-02-30')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.get(reverse('simulator_api:simulation'))
        self.assertTrue(response.data['data']['is_simulating'])
        self.assertEqual(response.data['data']['effective_date'], timezone.localdate().isoformat())

    def test_set_requires_date(self):
        self.authenticate()
        response = self.client.post(reverse('simulator_api:simulation'), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertNotIn(settings.SIMULATION_COOKIE_NAME, response.cookies)

    def test_set_syncs_member_statuses(self):
        member = Member._default_manager.create(first_name='Selin', last_name='Kaya', join_date=date(2024, 1, 1))
        FrozenLog._default_manager.create(member=member, start_date=date(2025, 1, 1), end_date=date(2025, 2, 1))
        self.authenticate()

        response = self.set_date('2025-01-15')
        self.assertEqual(response.data['data']['synced_members'], 1)
        member.refresh_from_db()
        self.assertEqual(member.status, MemberStatus.FROZEN)

        self.set_date('2025-03-01')
        member.refresh_from_db()
        self.assertEqual(member.status, MemberStatus.ACTIVE)

    def test_future_freeze_while_simulating(self):
        self.authenticate()
        self.set_date('2025-01-01')

        response = self.client.post(
            reverse('simulator_api:scenarios'), {'kind': 'future-freeze'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['effective_date'], '2025-01-01')

        freeze_log = FrozenLog._default_manager.get(member_id=response.data['data']['member_id'])
        self.assertGreater(freeze_log.start_date, date(2025, 1, 1))

    def test_all_scenarios(self):
        self.authenticate()
        response = self.client.post(reverse('simulator_api:scenarios'), {'kind': 'all'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['data']), 4)
        self.assertEqual(Member._default_manager.count(), 4)

    def test_unknown_scenario_kind(self):
        self.authenticate()
        response = self.client.post(reverse('simulator_api:scenarios'), {'kind': 'eternal-freeze'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['errors']['error_type'], 'validation')
        self.assertEqual(Member._default_manager.count(), 0)

    def test_wipe(self):
        member = Member._default_manager.create(first_name='Ahmet', last_name='Yilmaz', join_date=date(2024, 1, 1))
        enrollment = Enrollment._default_manager.create(member=member, dance_class=self.dance_class)
        for day in (1, 2, 3):
            Payment._default_manager.create(
                member=member, dance_class=self.dance_class, enrollment=enrollment,
                amount=Decimal('1500'), payment_date=date(2025, 1, day)
            )
        self.authenticate()

        response = self.client.post(reverse('simulator_api:wipe'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['deleted']['payments'], 3)
        self.assertFalse(Payment._default_manager.exists())
        self.assertFalse(Enrollment._default_manager.exists())
        self.assertFalse(Member._default_manager.exists())
        self.assertFalse(DanceClass._default_manager.exists())

    def test_partial_wipe_reports_completed_steps(self):
        self.authenticate()
        with mock.patch('simulator.lifecycle._delete_all', side_effect=[0, 0, DatabaseError('disk full')]):
            response = self.client.post(reverse('simulator_api:wipe'))

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['message'], 'disk full')
        self.assertEqual(response.data['errors']['error_type'], 'persistence')
        self.assertEqual(response.data['data']['failed_step'], 'instructor_payouts')
        self.assertEqual(response.data['data']['completed_steps'], ['payments', 'frozen_logs'])

    def test_seed_while_simulating(self):
        self.authenticate()
        self.set_date('2024-02-10')

        response = self.client.post(reverse('simulator_api:seed'))

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['members'], 5)
        self.assertEqual(Member._default_manager.get(first_name='Ayse').join_date, date(2024, 1, 10))

    def test_random_member(self):
        self.authenticate()
        self.set_date('2024-07-01')
        response = self.client.post(reverse('simulator_api:random-member'))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['join_date'], '2024-07-01')

    def test_random_class_without_instructor(self):
        self.authenticate()
        response = self.client.post(reverse('simulator_api:random-class'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_random_class(self):
        Instructor._default_manager.create(first_name='Cem', last_name='Demir')
        self.authenticate()
        response = self.client.post(reverse('simulator_api:random-class'))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['data']['active'])

    def test_sync_statuses(self):
        member = Member._default_manager.create(
            first_name='Elif', last_name='Sahin', join_date=date(2024, 1, 1), status=MemberStatus.FROZEN
        )
        self.authenticate()
        response = self.client.post(reverse('simulator_api:sync-statuses'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['activated'], 1)
        member.refresh_from_db()
        self.assertEqual(member.status, MemberStatus.ACTIVE)


class HealthCheckTestCase(TestCase):

    def test_health_reports_effective_date(self):
        response = self.client.get(reverse('health'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['effective_date'], timezone.localdate().isoformat())
        self.assertFalse(response.json()['simulating'])
