from rest_framework import generics, status
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
import logging

from classes.api.serializers import DanceClassSerializer
from members.api.permissions import IsStudioAdmin
from members.api.serializers import MemberSerializer
from members.api.utils import success_response, result_response
from members.freeze import sync_member_statuses
from simulator.api.serializers import (
    SimulationStatusSerializer,
    SimulationDateSerializer,
    ScenarioRequestSerializer,
)
from simulator.clock import get_effective_date
from simulator.controls import clear_simulation_date, get_simulation_status, set_simulation_date
from simulator.lifecycle import (
    create_random_class,
    create_random_member,
    generate_all_scenarios,
    generate_scenario,
    seed_demo_data,
    wipe_all_business_data,
)

logger = logging.getLogger(__name__)


class SimulationView(generics.GenericAPIView):
    """
    Virtual clock control.
    GET reports the state, POST pins a date for 24 hours, DELETE returns to real time.
    """
    permission_classes = [IsStudioAdmin]
    serializer_class = SimulationDateSerializer

    @swagger_auto_schema(
        operation_description="Whether a simulated date is active and the effective date in use",
        operation_summary="Simulation Status",
        responses={
            200: openapi.Response('Simulation status', SimulationStatusSerializer),
            401: openapi.Response('Authentication required'),
        },
        security=[{'Bearer': []}],
        tags=['Simulator']
    )
    def get(self, request):
        return success_response(
            data=get_simulation_status(request),
            message='Simulation status loaded.'
        )

    @swagger_auto_schema(
        operation_description=(
            "Pin the effective date. The value is kept in a signed cookie for 24 hours; "
            "member statuses are re-synced to the freezes active on the new date."
        ),
        operation_summary="Set Simulation Date",
        request_body=SimulationDateSerializer,
        responses={
            200: openapi.Response('Simulation date set', SimulationStatusSerializer),
            400: openapi.Response('Validation error'),
            500: openapi.Response('Simulation context unavailable'),
        },
        security=[{'Bearer': []}],
        tags=['Simulator']
    )
    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = set_simulation_date(getattr(request, 'simulation', None), serializer.validated_data['date'])
        if not result['success']:
            return result_response(result, 'Simulation date could not be set.')

        sync = sync_member_statuses(get_effective_date(request))
        if not sync['success']:
            logger.error(f"Member statuses not synced after setting simulation date: {sync['error']}")

        data = get_simulation_status(request)
        data['synced_members'] = sync['data']['updated'] if sync['success'] else 0
        return result_response(result, 'Simulation date set.', data=data)

    @swagger_auto_schema(
        operation_description="Stop simulating and return to real time. Safe to call when nothing is set.",
        operation_summary="Stop Simulation",
        responses={
            200: openapi.Response('Back to real time', SimulationStatusSerializer),
            500: openapi.Response('Simulation context unavailable'),
        },
        security=[{'Bearer': []}],
        tags=['Simulator']
    )
    def delete(self, request):
        result = clear_simulation_date(getattr(request, 'simulation', None))
        data = get_simulation_status(request) if result['success'] else None
        return result_response(result, 'Simulation stopped.', data=data)


class WipeDataView(generics.GenericAPIView):
    permission_classes = [IsStudioAdmin]

    @swagger_auto_schema(
        operation_description=(
            "Delete ALL business data, children before parents. Not transactional: "
            "on failure the completed steps stay deleted and are listed in the response."
        ),
        operation_summary="Wipe Business Data",
        responses={
            200: openapi.Response('All business data deleted'),
            409: openapi.Response('A step was rejected by the database'),
        },
        security=[{'Bearer': []}],
        tags=['Simulator']
    )
    def post(self, request):
        logger.warning(f"Wipe requested by {request.user}")
        result = wipe_all_business_data()
        return result_response(result, 'All business data deleted.')


class SeedDataView(generics.GenericAPIView):
    permission_classes = [IsStudioAdmin]

    @swagger_auto_schema(
        operation_description="Replace all business data with the demo data set, dated around the effective date.",
        operation_summary="Seed Demo Data",
        responses={
            201: openapi.Response('Demo data created'),
            409: openapi.Response('Database rejected the wipe or the seed'),
        },
        security=[{'Bearer': []}],
        tags=['Simulator']
    )
    def post(self, request):
        result = seed_demo_data(request)
        return result_response(result, 'Demo data created.', status_code=status.HTTP_201_CREATED)


class ScenarioView(generics.GenericAPIView):
    permission_classes = [IsStudioAdmin]
    serializer_class = ScenarioRequestSerializer

    @swagger_auto_schema(
        operation_description="Generate a freeze test scenario anchored on the effective date. kind='all' generates every kind.",
        operation_summary="Generate Scenario",
        request_body=ScenarioRequestSerializer,
        responses={
            201: openapi.Response('Scenario generated'),
            400: openapi.Response('Unknown kind or no class to enroll into'),
            409: openapi.Response('Database rejected the scenario'),
        },
        security=[{'Bearer': []}],
        tags=['Simulator']
    )
    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        kind = serializer.validated_data['kind']
        if kind == 'all':
            result = generate_all_scenarios(request)
        else:
            result = generate_scenario(kind, request)
        return result_response(result, 'Scenario generated.', status_code=status.HTTP_201_CREATED)


class RandomMemberView(generics.GenericAPIView):
    permission_classes = [IsStudioAdmin]

    @swagger_auto_schema(
        operation_description="Create an active test member who joined on the effective date",
        operation_summary="Random Member",
        responses={
            201: openapi.Response('Member created', MemberSerializer),
        },
        security=[{'Bearer': []}],
        tags=['Simulator']
    )
    def post(self, request):
        result = create_random_member(request)
        data = MemberSerializer(result['data']).data if result['success'] else None
        return result_response(result, 'Test member created.', data=data, status_code=status.HTTP_201_CREATED)


class RandomClassView(generics.GenericAPIView):
    permission_classes = [IsStudioAdmin]

    @swagger_auto_schema(
        operation_description="Create an active test class taught by a random instructor",
        operation_summary="Random Class",
        responses={
            201: openapi.Response('Class created', DanceClassSerializer),
            400: openapi.Response('No instructors exist'),
        },
        security=[{'Bearer': []}],
        tags=['Simulator']
    )
    def post(self, request):
        result = create_random_class()
        data = DanceClassSerializer(result['data']).data if result['success'] else None
        return result_response(result, 'Test class created.', data=data, status_code=status.HTTP_201_CREATED)


class SyncStatusesView(generics.GenericAPIView):
    permission_classes = [IsStudioAdmin]

    @swagger_auto_schema(
        operation_description="Freeze or reactivate members according to the freezes covering the effective date",
        operation_summary="Sync Member Statuses",
        responses={
            200: openapi.Response('Statuses synced'),
        },
        security=[{'Bearer': []}],
        tags=['Simulator']
    )
    def post(self, request):
        result = sync_member_statuses(get_effective_date(request))
        return result_response(result, 'Member statuses synced.')
