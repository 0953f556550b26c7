from rest_framework import generics, status
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from django.db import transaction
import logging

from members.models import Instructor
from members.api.permissions import IsStudioAdmin
from members.api.utils import success_response, result_response
from payments.models import Payment, InstructorPayout
from payments.ledger import get_payable_ledger, process_payout
from payments.serializers import (
    PaymentSerializer,
    PayableLedgerSerializer,
    InstructorPayoutSerializer,
    CreatePayoutSerializer,
)
from simulator.cache import invalidate_date_views
from simulator.clock import get_effective_date
from studio.dates import add_months

logger = logging.getLogger(__name__)


class PaymentListCreateView(generics.ListCreateAPIView):
    """
    List payments or record a new one.
    Recording a payment books the instructor's commission and moves the
    enrollment's next payment date forward.
    """
    queryset = Payment.objects.select_related('member', 'dance_class', 'enrollment').all()
    serializer_class = PaymentSerializer
    permission_classes = [IsStudioAdmin]

    def get_queryset(self):
        queryset = super().get_queryset()

        member_id = self.request.query_params.get('member')
        if member_id and member_id.isdigit():
            queryset = queryset.filter(member_id=member_id)

        return queryset

    @swagger_auto_schema(
        operation_description="List payments, newest first. Filter with ?member=<id>.",
        operation_summary="List Payments",
        manual_parameters=[
            openapi.Parameter('member', openapi.IN_QUERY, type=openapi.TYPE_INTEGER, required=False),
        ],
        responses={
            200: openapi.Response('List of payments', PaymentSerializer(many=True)),
            403: openapi.Response('Permission denied'),
        },
        security=[{'Bearer': []}],
        tags=['Payments']
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
            message='Payments loaded.'
        )

    @swagger_auto_schema(
        operation_description=(
            "Record a payment. The payment date defaults to the effective (possibly simulated) date; "
            "the covered period starts on the payment date and spans months_count months."
        ),
        operation_summary="Record Payment",
        request_body=PaymentSerializer,
        responses={
            201: openapi.Response('Payment recorded', PaymentSerializer),
            400: openapi.Response('Validation error'),
            403: openapi.Response('Permission denied'),
        },
        security=[{'Bearer': []}],
        tags=['Payments']
    )
    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        payment_date = serializer.validated_data.get('payment_date') or get_effective_date(request)
        months_count = serializer.validated_data.get('months_count') or 1
        period_start = serializer.validated_data.get('period_start') or payment_date
        dance_class = serializer.validated_data.get('dance_class')
        enrollment = serializer.validated_data.get('enrollment')

        with transaction.atomic():
            payment = serializer.save(
                payment_date=payment_date,
                period_start=period_start,
                period_end=serializer.validated_data.get('period_end') or add_months(period_start, months_count),
                snapshot_price=dance_class.price_monthly if dance_class else None,
                snapshot_class_name=dance_class.name if dance_class else None,
            )

            if enrollment is not None:
                enrollment.next_payment_date = add_months(
                    enrollment.next_payment_date or payment_date, months_count
                )
                enrollment.save(update_fields=['next_payment_date', 'updated_at'])

        invalidate_date_views()
        logger.info(f"Payment {payment.id} of {payment.amount} recorded for member {payment.member_id}")
        return success_response(
            data=self.get_serializer(payment).data,
            message='Payment recorded.',
            status_code=status.HTTP_201_CREATED
        )


class PayableLedgerView(generics.GenericAPIView):
    """
    Commission owed per instructor, counting only entries matured by the effective date.
    """
    permission_classes = [IsStudioAdmin]
    serializer_class = PayableLedgerSerializer

    @swagger_auto_schema(
        operation_description="Matured, unpaid commission per active instructor as of the effective date",
        operation_summary="Payable Ledger",
        responses={
            200: openapi.Response('Payable ledger', PayableLedgerSerializer(many=True)),
            403: openapi.Response('Permission denied'),
        },
        security=[{'Bearer': []}],
        tags=['Payouts']
    )
    def get(self, request):
        today = get_effective_date(request)
        rows = get_payable_ledger(today)
        return success_response(
            data={
                'effective_date': today.isoformat(),
                'instructors': self.get_serializer(rows, many=True).data,
            },
            message='Payable ledger loaded.'
        )


class InstructorPayoutView(generics.ListCreateAPIView):
    """
    List payouts, or pay an instructor and settle their matured ledger entries.
    """
    queryset = InstructorPayout.objects.select_related('instructor').all()
    permission_classes = [IsStudioAdmin]

    def get_serializer_class(self):  # type: ignore
        if self.request.method == 'POST':
            return CreatePayoutSerializer
        return InstructorPayoutSerializer

    @swagger_auto_schema(
        operation_description="List instructor payouts, newest first",
        operation_summary="List Payouts",
        responses={
            200: openapi.Response('List of payouts', InstructorPayoutSerializer(many=True)),
        },
        security=[{'Bearer': []}],
        tags=['Payouts']
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @swagger_auto_schema(
        operation_description="Pay an instructor. Every ledger entry due on or before the effective date is marked paid.",
        operation_summary="Create Payout",
        request_body=CreatePayoutSerializer,
        responses={
            201: openapi.Response('Payout created', InstructorPayoutSerializer),
            400: openapi.Response('Validation error'),
            409: openapi.Response('Database rejected the payout'),
        },
        security=[{'Bearer': []}],
        tags=['Payouts']
    )
    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        instructor = Instructor.objects.get(id=serializer.validated_data['instructor_id'])
        result = process_payout(
            instructor,
            serializer.validated_data['amount'],
            today=get_effective_date(request),
            note=serializer.validated_data.get('note'),
        )
        if not result['success']:
            return result_response(result, 'Payout failed.')

        invalidate_date_views()
        return result_response(
            result,
            'Payout created.',
            data={
                'payout': InstructorPayoutSerializer(result['data']['payout']).data,
                'settled_entries': result['data']['settled_entries'],
            },
            status_code=status.HTTP_201_CREATED
        )
