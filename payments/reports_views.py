"""
Reports API views for the finance dashboard.
Figures are computed for the month of the effective date, so a simulated
date shows that month's books.
"""
from decimal import Decimal
from django.conf import settings
from django.core.cache import cache
from django.db.models import Sum
from rest_framework import generics
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
import logging

from classes.models import Enrollment
from members.models import Member, MemberStatus
from members.api.permissions import IsStudioAdmin
from members.api.utils import success_response
from payments.models import Payment, InstructorPayout
from payments.ledger import get_payable_ledger
from simulator.cache import date_view_cache_key
from simulator.clock import get_effective_date
from studio.dates import month_bounds

logger = logging.getLogger(__name__)


class FinanceDashboardView(generics.GenericAPIView):
    """
    Monthly finance summary:
    - Revenue and number of payments this month
    - Active and frozen members
    - Overdue enrollments
    - Commission payable to instructors, and payouts made this month

    Cached per effective date until the next simulation change or data write.
    """
    permission_classes = [IsStudioAdmin]

    @staticmethod
    def build_dashboard(today) -> dict:
        month_start, next_month_start = month_bounds(today)

        payments = Payment.objects.filter(payment_date__gte=month_start, payment_date__lt=next_month_start)
        revenue = payments.aggregate(total=Sum('amount'))['total'] or Decimal('0')

        payouts = InstructorPayout.objects.filter(payment_date__gte=month_start, payment_date__lt=next_month_start)
        payouts_total = payouts.aggregate(total=Sum('amount'))['total'] or Decimal('0')

        payable = get_payable_ledger(today)
        payable_total = sum((row['total_amount'] for row in payable), Decimal('0'))

        return {
            'effective_date': today.isoformat(),
            'month': month_start.strftime('%Y-%m'),
            'revenue': float(revenue),
            'payments_count': payments.count(),
            'active_members': Member.objects.filter(status=MemberStatus.ACTIVE).count(),
            'frozen_members': Member.objects.filter(status=MemberStatus.FROZEN).count(),
            'overdue_enrollments': Enrollment.objects.overdue(today).count(),
            'payable_commission': float(payable_total),
            'payouts_this_month': float(payouts_total),
        }

    @swagger_auto_schema(
        operation_description="Finance summary for the month of the effective date",
        operation_summary="Finance Dashboard",
        responses={
            200: openapi.Response('Dashboard data'),
            403: openapi.Response('Permission denied'),
        },
        security=[{'Bearer': []}],
        tags=['Reports']
    )
    def get(self, request):
        today = get_effective_date(request)
        cache_key = date_view_cache_key('finance-dashboard', today.isoformat())

        data = cache.get(cache_key)
        if data is None:
            data = self.build_dashboard(today)
            cache.set(cache_key, data, timeout=settings.DASHBOARD_CACHE_TIMEOUT)
            logger.info(f"Finance dashboard computed for {today.isoformat()}")

        return success_response(data=data, message='Dashboard loaded.')
