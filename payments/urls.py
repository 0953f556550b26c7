from django.urls import path
from payments import views
from payments.reports_views import FinanceDashboardView

app_name = 'payments'

urlpatterns = [
    path('', views.PaymentListCreateView.as_view(), name='payment-list-create'),
    path('ledger/payable/', views.PayableLedgerView.as_view(), name='payable-ledger'),
    path('payouts/', views.InstructorPayoutView.as_view(), name='instructor-payouts'),

    # Reports endpoints
    path('reports/dashboard/', FinanceDashboardView.as_view(), name='finance-dashboard'),
]
