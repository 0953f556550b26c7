from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import Payment, InstructorLedger, InstructorPayout, LedgerStatus


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):

    list_display = ('id', 'member', 'snapshot_class_name', 'amount', 'months_count', 'payment_date', 'payment_method')
    list_filter = ('payment_method', 'payment_date')
    search_fields = ('member__first_name', 'member__last_name', 'snapshot_class_name', 'description')
    readonly_fields = ('snapshot_price', 'snapshot_class_name', 'created_at', 'updated_at')
    date_hierarchy = 'payment_date'
    autocomplete_fields = ('member',)

    fieldsets = (
        (_('Payment'), {
            'fields': ('member', 'dance_class', 'enrollment', 'amount', 'months_count', 'payment_method', 'payment_date')
        }),
        (_('Period'), {
            'fields': ('period_start', 'period_end')
        }),
        (_('Snapshot'), {
            'fields': ('snapshot_price', 'snapshot_class_name'),
            'classes': ('collapse',)
        }),
        (_('Notes'), {
            'fields': ('description',)
        }),
        (_('Timestamps'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(InstructorLedger)
class InstructorLedgerAdmin(admin.ModelAdmin):
    list_display = ('id', 'instructor', 'amount', 'due_date', 'status_badge', 'student_payment')
    list_filter = ('status', 'instructor')
    date_hierarchy = 'due_date'

    def status_badge(self, obj):
        colors = {
            LedgerStatus.PENDING: '#e67e22',
            LedgerStatus.PAYABLE: '#3498db',
            LedgerStatus.PAID: '#2ecc71',
        }
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            colors.get(obj.status, '#95a5a6'),
            obj.get_status_display()
        )
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'


@admin.register(InstructorPayout)
class InstructorPayoutAdmin(admin.ModelAdmin):
    list_display = ('id', 'instructor', 'amount', 'payment_date', 'note')
    list_filter = ('instructor',)
    date_hierarchy = 'payment_date'
