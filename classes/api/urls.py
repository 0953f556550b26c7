from django.urls import path
from classes.api.views import (
    DanceClassListCreateView,
    DanceClassRetrieveUpdateDestroyView,
    EnrollmentListCreateView,
)

app_name = 'classes_api'

urlpatterns = [
    path('', DanceClassListCreateView.as_view(), name='class-list-create'),
    path('<int:pk>/', DanceClassRetrieveUpdateDestroyView.as_view(), name='class-retrieve-update-destroy'),
    path('enrollments/', EnrollmentListCreateView.as_view(), name='enrollment-list-create'),
]
