from rest_framework import status, generics
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from django.db import transaction
from django.db.models import ProtectedError

from classes.models import DanceClass, Enrollment
from classes.api.serializers import DanceClassSerializer, EnrollmentSerializer
from classes.api.exceptions import ClassNotOpenError
from members.api.permissions import IsStudioAdmin
from members.api.utils import success_response, error_response
from members.api.views import EffectiveDateMixin
from simulator.cache import invalidate_date_views
from simulator.clock import get_effective_date
from studio.dates import next_payment_date


class DanceClassListCreateView(generics.ListCreateAPIView):
    queryset = DanceClass._default_manager.select_related('instructor', 'dance_type').all()
    serializer_class = DanceClassSerializer
    permission_classes = [IsStudioAdmin]

    def get_queryset(self):
        queryset = super().get_queryset()

        # Archived classes are hidden unless asked for
        if self.request.query_params.get('include_archived') not in ('1', 'true'):
            queryset = queryset.filter(archived=False)

        return queryset

    @swagger_auto_schema(
        operation_description="List classes. Archived classes are only included with ?include_archived=true.",
        operation_summary="List Classes",
        manual_parameters=[
            openapi.Parameter('include_archived', openapi.IN_QUERY, type=openapi.TYPE_BOOLEAN, required=False),
        ],
        responses={
            200: openapi.Response('Classes loaded.', DanceClassSerializer(many=True)),
            403: openapi.Response('Permission denied'),
        },
        security=[{'Bearer': []}],
        tags=['Classes']
    )
    def get(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(serializer.data)

        serializer = self.get_serializer(queryset, many=True)
        return success_response(
            data=serializer.data,
            message='Classes loaded.'
        )

    @swagger_auto_schema(
        operation_description="Create a class.",
        operation_summary="Create Class",
        request_body=DanceClassSerializer,
        responses={
            201: openapi.Response('Class created.', DanceClassSerializer),
            400: openapi.Response('Validation errors'),
            403: openapi.Response('Permission denied'),
        },
        security=[{'Bearer': []}],
        tags=['Classes']
    )
    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            dance_class = serializer.save()
        invalidate_date_views()

        response_serializer = DanceClassSerializer(dance_class, context={'request': request})
        return success_response(
            data=response_serializer.data,
            message='Class created.',
            status_code=status.HTTP_201_CREATED
        )


class DanceClassRetrieveUpdateDestroyView(generics.RetrieveUpdateDestroyAPIView):
    queryset = DanceClass._default_manager.select_related('instructor', 'dance_type').all()
    serializer_class = DanceClassSerializer
    permission_classes = [IsStudioAdmin]
    lookup_field = 'pk'

    @swagger_auto_schema(
        operation_description="Get a class by ID.",
        operation_summary="Get Class",
        responses={
            200: openapi.Response('Class loaded.', DanceClassSerializer),
            404: openapi.Response('Class not found'),
        },
        security=[{'Bearer': []}],
        tags=['Classes']
    )
    def get(self, request, *args, **kwargs):
        instance = self.get_object()
        serializer = self.get_serializer(instance)
        return success_response(
            data=serializer.data,
            message='Class loaded.'
        )

    @swagger_auto_schema(
        operation_description="Update a class.",
        operation_summary="Update Class",
        request_body=DanceClassSerializer,
        responses={
            200: openapi.Response('Class updated.', DanceClassSerializer),
            400: openapi.Response('Validation errors'),
            404: openapi.Response('Class not found'),
        },
        security=[{'Bearer': []}],
        tags=['Classes']
    )
    def patch(self, request, *args, **kwargs):
        return super().patch(request, *args, **kwargs)

    @swagger_auto_schema(
        operation_description="Update a class.",
        operation_summary="Update Class",
        request_body=DanceClassSerializer,
        responses={
            200: openapi.Response('Class updated.', DanceClassSerializer),
            400: openapi.Response('Validation errors'),
            404: openapi.Response('Class not found'),
        },
        security=[{'Bearer': []}],
        tags=['Classes']
    )
    def put(self, request, *args, **kwargs):
        return super().put(request, *args, **kwargs)

    @swagger_auto_schema(
        operation_description="Delete a class. Classes with enrollments or payments cannot be deleted; archive them instead.",
        operation_summary="Delete Class",
        responses={
            204: openapi.Response('Class deleted.'),
            404: openapi.Response('Class not found'),
            409: openapi.Response('Class still has related records'),
        },
        security=[{'Bearer': []}],
        tags=['Classes']
    )
    def delete(self, request, *args, **kwargs):
        instance = self.get_object()
        try:
            instance.delete()
        except ProtectedError:
            return error_response(
                message='Class has enrollments or payments and cannot be deleted. Archive it instead.',
                status_code=status.HTTP_409_CONFLICT
            )
        invalidate_date_views()
        return success_response(
            message='Class deleted.',
            status_code=status.HTTP_204_NO_CONTENT
        )

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            serializer.save()
        invalidate_date_views()

        return success_response(
            data=serializer.data,
            message='Class updated.'
        )


class EnrollmentListCreateView(EffectiveDateMixin, generics.ListCreateAPIView):
    queryset = Enrollment._default_manager.select_related('member', 'dance_class').all()
    serializer_class = EnrollmentSerializer
    permission_classes = [IsStudioAdmin]

    def get_queryset(self):
        queryset = super().get_queryset()

        member_id = self.request.query_params.get('member')
        if member_id and member_id.isdigit():
            queryset = queryset.filter(member_id=member_id)

        class_id = self.request.query_params.get('dance_class')
        if class_id and class_id.isdigit():
            queryset = queryset.filter(dance_class_id=class_id)

        return queryset

    @swagger_auto_schema(
        operation_description="List enrollments with their payment state as of the effective date.",
        operation_summary="List Enrollments",
        manual_parameters=[
            openapi.Parameter('member', openapi.IN_QUERY, type=openapi.TYPE_INTEGER, required=False),
            openapi.Parameter('dance_class', openapi.IN_QUERY, type=openapi.TYPE_INTEGER, required=False),
        ],
        responses={
            200: openapi.Response('Enrollments loaded.', EnrollmentSerializer(many=True)),
        },
        security=[{'Bearer': []}],
        tags=['Enrollments']
    )
    def get(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(serializer.data)

        serializer = self.get_serializer(queryset, many=True)
        return success_response(
            data=serializer.data,
            message='Enrollments loaded.'
        )

    @swagger_auto_schema(
        operation_description=(
            "Enroll a member in a class. The class price is copied onto the enrollment and "
            "the first payment falls due one payment cycle after the effective date."
        ),
        operation_summary="Create Enrollment",
        request_body=EnrollmentSerializer,
        responses={
            201: openapi.Response('Enrollment created.', EnrollmentSerializer),
            400: openapi.Response('Validation errors'),
        },
        security=[{'Bearer': []}],
        tags=['Enrollments']
    )
    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dance_class = serializer.validated_data['dance_class']
        if not dance_class.active or dance_class.archived:
            raise ClassNotOpenError()

        due_date = serializer.validated_data.get('next_payment_date') or next_payment_date(get_effective_date(request))
        with transaction.atomic():
            enrollment = serializer.save(price=dance_class.price_monthly, next_payment_date=due_date)
        invalidate_date_views()

        return success_response(
            data=self.get_serializer(enrollment).data,
            message='Enrollment created.',
            status_code=status.HTTP_201_CREATED
        )
