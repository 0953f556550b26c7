
from rest_framework import status, generics
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from django.db import transaction
from django.db.models import ProtectedError

from classes.models import Enrollment
from members.models import Member, MemberStatus
from members.freeze import freeze_membership, unfreeze_membership
from members.api.serializers import (
    MemberSerializer,
    MemberCreateSerializer,
    FrozenLogSerializer,
    FreezeRequestSerializer,
    OverdueEnrollmentSerializer,
)
from members.api.permissions import IsStudioAdmin
from members.api.exceptions import MemberNotFoundError
from members.api.utils import success_response, error_response, result_response
from simulator.cache import invalidate_date_views
from simulator.clock import get_effective_date


def get_member_or_404(pk):
    try:
        return Member._default_manager.get(pk=pk)
    except Member.DoesNotExist:
        raise MemberNotFoundError()


class EffectiveDateMixin:
    """Puts the request's effective date into the serializer context as ``today``."""

    def get_serializer_context(self):
        context = super().get_serializer_context()  # type: ignore
        context['today'] = get_effective_date(self.request)  # type: ignore
        return context


class MemberListCreateView(EffectiveDateMixin, generics.ListCreateAPIView):
    queryset = Member._default_manager.all()
    permission_classes = [IsStudioAdmin]

    def get_serializer_class(self):  # type: ignore
        if self.request.method == 'POST':
            return MemberCreateSerializer
        return MemberSerializer

    def get_queryset(self):
        queryset = super().get_queryset()

        member_status = self.request.query_params.get('status')
        if member_status in MemberStatus.values:
            queryset = queryset.filter(status=member_status)

        return queryset

    @swagger_auto_schema(
        operation_description="List members. Filter with ?status=active|frozen|archived.",
        operation_summary="List Members",
        manual_parameters=[
            openapi.Parameter('status', openapi.IN_QUERY, type=openapi.TYPE_STRING, required=False),
        ],
        responses={
            200: openapi.Response('Members loaded.', MemberSerializer(many=True)),
            403: openapi.Response('Permission denied'),
        },
        security=[{'Bearer': []}],
        tags=['Members']
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
            message='Members loaded.'
        )

    @swagger_auto_schema(
        operation_description="Create a member. The join date defaults to the effective (possibly simulated) date.",
        operation_summary="Create Member",
        request_body=MemberCreateSerializer,
        responses={
            201: openapi.Response('Member created.', MemberSerializer),
            400: openapi.Response('Validation errors'),
            403: openapi.Response('Permission denied'),
        },
        security=[{'Bearer': []}],
        tags=['Members']
    )
    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        join_date = serializer.validated_data.get('join_date') or get_effective_date(request)
        with transaction.atomic():
            member = serializer.save(join_date=join_date)
        invalidate_date_views()

        response_serializer = MemberSerializer(member, context=self.get_serializer_context())
        return success_response(
            data=response_serializer.data,
            message='Member created.',
            status_code=status.HTTP_201_CREATED
        )


class MemberRetrieveUpdateDestroyView(EffectiveDateMixin, generics.RetrieveUpdateDestroyAPIView):
    queryset = Member._default_manager.all()
    serializer_class = MemberSerializer
    permission_classes = [IsStudioAdmin]
    lookup_field = 'pk'

    @swagger_auto_schema(
        operation_description="Get a member by ID.",
        operation_summary="Get Member",
        responses={
            200: openapi.Response('Member loaded.', MemberSerializer),
            404: openapi.Response('Member not found'),
        },
        security=[{'Bearer': []}],
        tags=['Members']
    )
    def get(self, request, *args, **kwargs):
        instance = self.get_object()
        serializer = self.get_serializer(instance)
        return success_response(
            data=serializer.data,
            message='Member loaded.'
        )

    @swagger_auto_schema(
        operation_description="Update a member.",
        operation_summary="Update Member",
        request_body=MemberSerializer,
        responses={
            200: openapi.Response('Member updated.', MemberSerializer),
            400: openapi.Response('Validation errors'),
            404: openapi.Response('Member not found'),
        },
        security=[{'Bearer': []}],
        tags=['Members']
    )
    def patch(self, request, *args, **kwargs):
        return super().patch(request, *args, **kwargs)

    @swagger_auto_schema(
        operation_description="Update a member.",
        operation_summary="Update Member",
        request_body=MemberSerializer,
        responses={
            200: openapi.Response('Member updated.', MemberSerializer),
            400: openapi.Response('Validation errors'),
            404: openapi.Response('Member not found'),
        },
        security=[{'Bearer': []}],
        tags=['Members']
    )
    def put(self, request, *args, **kwargs):
        return super().put(request, *args, **kwargs)

    @swagger_auto_schema(
        operation_description="Delete a member. Members with enrollments, payments or freezes cannot be deleted.",
        operation_summary="Delete Member",
        responses={
            204: openapi.Response('Member deleted.'),
            404: openapi.Response('Member not found'),
            409: openapi.Response('Member still has related records'),
        },
        security=[{'Bearer': []}],
        tags=['Members']
    )
    def delete(self, request, *args, **kwargs):
        instance = self.get_object()
        try:
            instance.delete()
        except ProtectedError:
            return error_response(
                message='Member has related records and cannot be deleted. Archive the member instead.',
                status_code=status.HTTP_409_CONFLICT
            )
        invalidate_date_views()
        return success_response(
            message='Member deleted.',
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
            message='Member updated.'
        )


class MemberFreezeView(generics.GenericAPIView):
    serializer_class = FreezeRequestSerializer
    permission_classes = [IsStudioAdmin]

    @swagger_auto_schema(
        operation_description=(
            "Freeze a membership between two dates. Every active enrollment's next payment "
            "date moves back by the length of the freeze."
        ),
        operation_summary="Freeze Membership",
        request_body=FreezeRequestSerializer,
        responses={
            201: openapi.Response('Membership frozen.', FrozenLogSerializer),
            400: openapi.Response('Validation errors'),
            404: openapi.Response('Member not found'),
            409: openapi.Response('Database rejected the freeze'),
        },
        security=[{'Bearer': []}],
        tags=['Members']
    )
    def post(self, request, pk, *args, **kwargs):
        member = get_member_or_404(pk)
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = freeze_membership(
            member,
            serializer.validated_data['start_date'],
            serializer.validated_data['end_date'],
            today=get_effective_date(request),
            reason=serializer.validated_data.get('reason'),
        )
        data = FrozenLogSerializer(result['data']).data if result['success'] else None
        return result_response(result, 'Membership frozen.', data=data, status_code=status.HTTP_201_CREATED)


class MemberUnfreezeView(generics.GenericAPIView):
    permission_classes = [IsStudioAdmin]

    @swagger_auto_schema(
        operation_description="Set a frozen member back to active.",
        operation_summary="Unfreeze Membership",
        responses={
            200: openapi.Response('Membership unfrozen.'),
            404: openapi.Response('Member not found'),
        },
        security=[{'Bearer': []}],
        tags=['Members']
    )
    def post(self, request, pk, *args, **kwargs):
        member = get_member_or_404(pk)
        result = unfreeze_membership(member)
        return result_response(result, 'Membership unfrozen.', data={'id': member.id, 'status': member.status})


class MemberFreezeListView(generics.ListAPIView):
    serializer_class = FrozenLogSerializer
    permission_classes = [IsStudioAdmin]
    pagination_class = None

    def get_queryset(self):
        member = get_member_or_404(self.kwargs['pk'])
        return member.frozen_logs.select_related('member').all()  # type: ignore

    @swagger_auto_schema(
        operation_description="Freeze history of a member, newest first.",
        operation_summary="Member Freezes",
        responses={
            200: openapi.Response('Freezes loaded.', FrozenLogSerializer(many=True)),
            404: openapi.Response('Member not found'),
        },
        security=[{'Bearer': []}],
        tags=['Members']
    )
    def get(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return success_response(
            data=serializer.data,
            message='Freezes loaded.'
        )


class OverdueMemberListView(generics.GenericAPIView):
    permission_classes = [IsStudioAdmin]

    @swagger_auto_schema(
        operation_description=(
            "Members with at least one overdue enrollment as of the effective date. "
            "Frozen members are never overdue."
        ),
        operation_summary="Overdue Members",
        responses={
            200: openapi.Response('Overdue members loaded.'),
        },
        security=[{'Bearer': []}],
        tags=['Members']
    )
    def get(self, request, *args, **kwargs):
        today = get_effective_date(request)
        enrollments = Enrollment.objects.overdue(today).select_related('member', 'dance_class').order_by(
            'member_id', 'next_payment_date'
        )

        grouped = {}
        for enrollment in enrollments:
            entry = grouped.setdefault(enrollment.member_id, {
                'member_id': enrollment.member_id,
                'full_name': enrollment.member.full_name,
                'phone': enrollment.member.phone,
                'enrollments': [],
            })
            entry['enrollments'].append(
                OverdueEnrollmentSerializer(enrollment, context={'today': today}).data
            )

        return success_response(
            data={
                'effective_date': today.isoformat(),
                'count': len(grouped),
                'members': list(grouped.values()),
            },
            message='Overdue members loaded.'
        )
