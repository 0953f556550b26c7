from datetime import date
from decimal import Decimal

from django.contrib.auth.models import User
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from classes.models import DanceClass, Enrollment
from members.freeze import freeze_membership, sync_member_statuses, unfreeze_membership
from members.models import FrozenLog, Member, MemberStatus
from simulator.cache import get_generation
from studio.results import ERROR_VALIDATION


class FreezeTestCase(TestCase):
    def setUp(self):
        self.member = Member._default_manager.create(
            first_name='Merve', last_name='Aydin', join_date=date(2024, 6, 1)
        )
        self.dance_class = DanceClass._default_manager.create(name='Kizomba Lab', price_monthly=Decimal('1200'))
        self.enrollment = Enrollment._default_manager.create(
            member=self.member, dance_class=self.dance_class, next_payment_date=date(2025, 2, 1)
        )

    def test_freeze_shifts_next_payment_date(self):
        result = freeze_membership(self.member, date(2025, 1, 10), date(2025, 1, 24), today=date(2025, 1, 10))

        self.assertTrue(result['success'])
        self.assertEqual(result['data'].days_count, 14)
        self.enrollment.refresh_from_db()
        self.assertEqual(self.enrollment.next_payment_date, date(2025, 2, 15))
        self.member.refresh_from_db()
        self.assertEqual(self.member.status, MemberStatus.FROZEN)

    def test_freeze_without_due_date_starts_new_cycle(self):
        self.enrollment.next_payment_date = None
        self.enrollment.save()

        freeze_membership(self.member, date(2025, 1, 10), date(2025, 1, 24), today=date(2025, 1, 10))

        self.enrollment.refresh_from_db()
        self.assertEqual(self.enrollment.next_payment_date, date(2025, 2, 7))

    def test_freeze_end_must_follow_start(self):
        result = freeze_membership(self.member, date(2025, 1, 10), date(2025, 1, 10), today=date(2025, 1, 10))

        self.assertFalse(result['success'])
        self.assertEqual(result['error_type'], ERROR_VALIDATION)
        self.assertFalse(FrozenLog._default_manager.exists())
        self.enrollment.refresh_from_db()
        self.assertEqual(self.enrollment.next_payment_date, date(2025, 2, 1))

    def test_unfreeze(self):
        self.member.status = MemberStatus.FROZEN
        self.member.save()
        result = unfreeze_membership(self.member)
        self.assertTrue(result['success'])
        self.member.refresh_from_db()
        self.assertEqual(self.member.status, MemberStatus.ACTIVE)

    def test_sync_follows_freeze_windows(self):
        FrozenLog._default_manager.create(member=self.member, start_date=date(2025, 1, 1), end_date=date(2025, 1, 31))
        archived = Member._default_manager.create(
            first_name='Emre', last_name='Oz', join_date=date(2023, 1, 1), status=MemberStatus.ARCHIVED
        )
        FrozenLog._default_manager.create(member=archived, start_date=date(2025, 1, 1))

        result = sync_member_statuses(date(2025, 1, 15))
        self.assertEqual(result['data'], {'updated': 1, 'frozen': 1, 'activated': 0})
        self.member.refresh_from_db()
        self.assertEqual(self.member.status, MemberStatus.FROZEN)

        # Last day of the window still counts as frozen
        sync_member_statuses(date(2025, 1, 31))
        self.member.refresh_from_db()
        self.assertEqual(self.member.status, MemberStatus.FROZEN)

        result = sync_member_statuses(date(2025, 2, 1))
        self.assertEqual(result['data']['activated'], 1)
        self.member.refresh_from_db()
        self.assertEqual(self.member.status, MemberStatus.ACTIVE)
        archived.refresh_from_db()
        self.assertEqual(archived.status, MemberStatus.ARCHIVED)

    def test_frozen_member_is_never_overdue(self):
        today = date(2025, 2, 10)
        self.assertTrue(self.enrollment.is_overdue(today))
        self.member.status = MemberStatus.FROZEN
        self.member.save()
        self.enrollment.refresh_from_db()
        self.assertFalse(self.enrollment.is_overdue(today))
        self.assertFalse(Enrollment.objects.overdue(today).exists())

    def test_freeze_changes_invalidate_cached_views(self):
        generation = get_generation()
        freeze_membership(self.member, date(2025, 1, 10), date(2025, 1, 24), today=date(2025, 1, 10))
        self.assertGreater(get_generation(), generation)

        generation = get_generation()
        unfreeze_membership(self.member)
        self.assertGreater(get_generation(), generation)

    def test_sync_invalidates_cached_views_only_on_change(self):
        generation = get_generation()
        sync_member_statuses(date(2025, 1, 15))
        self.assertEqual(get_generation(), generation)

        FrozenLog._default_manager.create(member=self.member, start_date=date(2025, 1, 1))
        sync_member_statuses(date(2025, 1, 15))
        self.assertGreater(get_generation(), generation)


class MemberAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.admin_user = User._default_manager.create_user(
            username='admin',
            password='testpass123',
            is_staff=True
        )
        admin_token = RefreshToken.for_user(self.admin_user)
        self.admin_token = str(admin_token.access_token)

        self.member = Member._default_manager.create(
            first_name='Deniz', last_name='Yildiz', phone='5321112233', join_date=date(2024, 9, 1)
        )
        self.dance_class = DanceClass._default_manager.create(name='Salsa Beginners', price_monthly=Decimal('1500'))

    def authenticate(self):
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {self.admin_token}')

    def simulate(self, value):
        self.client.post(reverse('simulator_api:simulation'), {'date': value}, format='json')

    def test_list_members_requires_authentication(self):
        url = reverse('members_api:member-list-create')
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_members_success(self):
        self.authenticate()
        url = reverse('members_api:member-list-create')
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['full_name'], 'Deniz Yildiz')

    def test_list_members_filtered_by_status(self):
        Member._default_manager.create(
            first_name='Burak', last_name='Celik', join_date=date(2024, 1, 1), status=MemberStatus.FROZEN
        )
        self.authenticate()
        url = reverse('members_api:member-list-create')
        response = self.client.get(url, {'status': 'frozen'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['first_name'], 'Burak')

    def test_create_member_joins_on_simulated_date(self):
        self.authenticate()
        self.simulate('2023-06-15')
        url = reverse('members_api:member-list-create')
        data = {'first_name': 'Selin', 'last_name': 'Kaya', 'phone': '+905551234567'}
        response = self.client.post(url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['data']['join_date'], '2023-06-15')

    def test_create_member_invalid_phone(self):
        self.authenticate()
        url = reverse('members_api:member-list-create')
        data = {'first_name': 'Selin', 'last_name': 'Kaya', 'phone': 'call me'}
        response = self.client.post(url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_get_member_success(self):
        self.authenticate()
        url = reverse('members_api:member-retrieve-update-destroy', kwargs={'pk': self.member.id})
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['id'], self.member.id)
        self.assertFalse(response.data['data']['is_frozen'])

    def test_update_member_success(self):
        self.authenticate()
        url = reverse('members_api:member-retrieve-update-destroy', kwargs={'pk': self.member.id})
        response = self.client.patch(url, {'notes': 'Prefers evening classes'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.member.refresh_from_db()
        self.assertEqual(self.member.notes, 'Prefers evening classes')

    def test_delete_member_with_enrollment_conflicts(self):
        Enrollment._default_manager.create(member=self.member, dance_class=self.dance_class)
        self.authenticate()
        url = reverse('members_api:member-retrieve-update-destroy', kwargs={'pk': self.member.id})
        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Member._default_manager.filter(id=self.member.id).exists())

    def test_delete_member_success(self):
        self.authenticate()
        url = reverse('members_api:member-retrieve-update-destroy', kwargs={'pk': self.member.id})
        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Member._default_manager.filter(id=self.member.id).exists())

    def test_freeze_member(self):
        enrollment = Enrollment._default_manager.create(
            member=self.member, dance_class=self.dance_class, next_payment_date=date(2025, 2, 1)
        )
        self.authenticate()
        url = reverse('members_api:member-freeze', kwargs={'pk': self.member.id})
        data = {'start_date': '2025-01-10', 'end_date': '2025-01-20', 'reason': 'Injury'}
        response = self.client.post(url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['days_count'], 10)
        enrollment.refresh_from_db()
        self.assertEqual(enrollment.next_payment_date, date(2025, 2, 11))

        response = self.client.get(reverse('members_api:member-freezes', kwargs={'pk': self.member.id}))
        self.assertEqual(len(response.data['data']), 1)
        self.assertEqual(response.data['data'][0]['reason'], 'Injury')

    def test_freeze_invalid_dates(self):
        self.authenticate()
        url = reverse('members_api:member-freeze', kwargs={'pk': self.member.id})
        data = {'start_date': '2025-01-20', 'end_date': '2025-01-10'}
        response = self.client.post(url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(FrozenLog._default_manager.exists())

    def test_freeze_unknown_member(self):
        self.authenticate()
        url = reverse('members_api:member-freeze', kwargs={'pk': 9999})
        data = {'start_date': '2025-01-10', 'end_date': '2025-01-20'}
        response = self.client.post(url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_unfreeze_member(self):
        self.member.status = MemberStatus.FROZEN
        self.member.save()
        self.authenticate()
        response = self.client.post(reverse('members_api:member-unfreeze', kwargs={'pk': self.member.id}))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], MemberStatus.ACTIVE)

    def test_is_frozen_follows_simulated_date(self):
        FrozenLog._default_manager.create(member=self.member, start_date=date(2025, 1, 1), end_date=date(2025, 1, 31))
        self.authenticate()
        url = reverse('members_api:member-retrieve-update-destroy', kwargs={'pk': self.member.id})

        self.simulate('2025-01-15')
        self.assertTrue(self.client.get(url).data['data']['is_frozen'])

        self.simulate('2025-02-15')
        self.assertFalse(self.client.get(url).data['data']['is_frozen'])

    def test_overdue_members_follow_simulated_date(self):
        Enrollment._default_manager.create(
            member=self.member, dance_class=self.dance_class,
            price=Decimal('1500'), next_payment_date=date(2025, 3, 1)
        )
        self.authenticate()
        url = reverse('members_api:member-overdue')

        self.simulate('2025-02-20')
        response = self.client.get(url)
        self.assertEqual(response.data['data']['count'], 0)

        self.simulate('2025-03-11')
        response = self.client.get(url)
        self.assertEqual(response.data['data']['count'], 1)
        overdue = response.data['data']['members'][0]
        self.assertEqual(overdue['member_id'], self.member.id)
        self.assertEqual(overdue['enrollments'][0]['days_overdue'], 10)
