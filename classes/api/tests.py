from datetime import date, time
from decimal import Decimal

from django.contrib.auth.models import User
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from classes.models import DanceClass, DanceType, Enrollment, Weekday
from members.models import Instructor, Member


class DanceClassAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.admin_user = User._default_manager.create_user(
            username='admin',
            password='testpass123',
            is_staff=True
        )
        admin_token = RefreshToken.for_user(self.admin_user)
        self.admin_token = str(admin_token.access_token)

        self.instructor = Instructor._default_manager.create(first_name='Ezgi', last_name='Zaman')
        self.dance_type = DanceType._default_manager.create(name='Bachata', slug='bachata')
        self.dance_class = DanceClass._default_manager.create(
            name='Bachata Intermediate',
            instructor=self.instructor,
            dance_type=self.dance_type,
            day_of_week=Weekday.THURSDAY,
            start_time=time(20, 30),
            price_monthly=Decimal('1800')
        )
        self.archived_class = DanceClass._default_manager.create(
            name='Old Term Salsa', price_monthly=Decimal('1000'), active=False, archived=True
        )

    def authenticate(self):
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {self.admin_token}')

    def test_list_classes_requires_authentication(self):
        url = reverse('classes_api:class-list-create')
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_classes_hides_archived(self):
        self.authenticate()
        url = reverse('classes_api:class-list-create')
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['name'] for c in response.data['results']], ['Bachata Intermediate'])

        response = self.client.get(url, {'include_archived': 'true'})
        self.assertEqual(response.data['count'], 2)

    def test_create_class_success(self):
        self.authenticate()
        url = reverse('classes_api:class-list-create')
        data = {
            'name': 'Salsa Beginners (A)',
            'instructor': self.instructor.id,
            'day_of_week': Weekday.TUESDAY,
            'start_time': '19:30:00',
            'price_monthly': '1500.00'
        }
        response = self.client.post(url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['data']['instructor_name'], 'Ezgi Zaman')
        self.assertEqual(DanceClass._default_manager.count(), 3)

    def test_create_class_archived_and_active(self):
        self.authenticate()
        url = reverse('classes_api:class-list-create')
        data = {'name': 'Broken', 'price_monthly': '1000.00', 'active': True, 'archived': True}
        response = self.client.post(url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_class_inactive_instructor(self):
        self.instructor.active = False
        self.instructor.save()
        self.authenticate()
        url = reverse('classes_api:class-list-create')
        data = {'name': 'Tango', 'instructor': self.instructor.id, 'price_monthly': '1000.00'}
        response = self.client.post(url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_class_success(self):
        self.authenticate()
        url = reverse('classes_api:class-retrieve-update-destroy', kwargs={'pk': self.dance_class.id})
        response = self.client.patch(url, {'price_monthly': '2000.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.dance_class.refresh_from_db()
        self.assertEqual(self.dance_class.price_monthly, Decimal('2000.00'))

    def test_delete_class_with_enrollment_conflicts(self):
        member = Member._default_manager.create(first_name='Can', last_name='Oz', join_date=date(2024, 1, 1))
        Enrollment._default_manager.create(member=member, dance_class=self.dance_class)
        self.authenticate()
        url = reverse('classes_api:class-retrieve-update-destroy', kwargs={'pk': self.dance_class.id})
        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_delete_class_success(self):
        self.authenticate()
        url = reverse('classes_api:class-retrieve-update-destroy', kwargs={'pk': self.archived_class.id})
        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(DanceClass._default_manager.filter(id=self.archived_class.id).exists())


class EnrollmentAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.admin_user = User._default_manager.create_user(
            username='admin',
            password='testpass123',
            is_staff=True
        )
        self.admin_token = str(RefreshToken.for_user(self.admin_user).access_token)
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {self.admin_token}')

        self.member = Member._default_manager.create(first_name='Elif', last_name='Sahin', join_date=date(2024, 1, 1))
        self.dance_class = DanceClass._default_manager.create(name='Kizomba Lab', price_monthly=Decimal('1200'))

    def test_enroll_sets_price_and_first_due_date(self):
        self.client.post(reverse('simulator_api:simulation'), {'date': '2025-01-01'}, format='json')

        url = reverse('classes_api:enrollment-list-create')
        data = {'member': self.member.id, 'dance_class': self.dance_class.id}
        response = self.client.post(url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        enrollment = Enrollment._default_manager.get()
        self.assertEqual(enrollment.price, Decimal('1200'))
        self.assertEqual(enrollment.next_payment_date, date(2025, 1, 29))
        self.assertEqual(response.data['data']['days_until_payment'], 28)

    def test_enroll_twice_rejected(self):
        Enrollment._default_manager.create(member=self.member, dance_class=self.dance_class)
        url = reverse('classes_api:enrollment-list-create')
        data = {'member': self.member.id, 'dance_class': self.dance_class.id}
        response = self.client.post(url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_enroll_in_inactive_class_rejected(self):
        self.dance_class.active = False
        self.dance_class.save()
        url = reverse('classes_api:enrollment-list-create')
        data = {'member': self.member.id, 'dance_class': self.dance_class.id}
        response = self.client.post(url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Enrollment._default_manager.exists())

    def test_list_enrollments_shows_overdue_state(self):
        Enrollment._default_manager.create(
            member=self.member, dance_class=self.dance_class, next_payment_date=date(2025, 1, 1)
        )
        self.client.post(reverse('simulator_api:simulation'), {'date': '2025-01-05'}, format='json')

        response = self.client.get(reverse('classes_api:enrollment-list-create'), {'member': self.member.id})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        row = response.data['results'][0]
        self.assertTrue(row['is_overdue'])
        self.assertEqual(row['days_until_payment'], -4)
