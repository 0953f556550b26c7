from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import DanceType, InstructorRate, DanceClass, Enrollment


@admin.register(DanceType)
class DanceTypeAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'slug')
    search_fields = ('name',)
    prepopulated_fields = {'slug': ('name',)}


@admin.register(InstructorRate)
class InstructorRateAdmin(admin.ModelAdmin):
    list_display = ('id', 'instructor', 'dance_type', 'rate')
    list_filter = ('dance_type',)
    search_fields = ('instructor__first_name', 'instructor__last_name')


@admin.register(DanceClass)
class DanceClassAdmin(admin.ModelAdmin):

    list_display = ('id', 'name', 'instructor', 'dance_type', 'day_of_week', 'start_time', 'price_display', 'state_display')
    list_filter = ('active', 'archived', 'day_of_week', 'dance_type')
    search_fields = ('name', 'instructor__first_name', 'instructor__last_name')
    readonly_fields = ('created_at', 'updated_at', 'active_enrollments_count')
    ordering = ('name',)

    fieldsets = (
        (_('Class Information'), {
            'fields': ('name', 'dance_type', 'instructor')
        }),
        (_('Schedule'), {
            'fields': ('day_of_week', 'start_time', 'duration_minutes')
        }),
        (_('Pricing'), {
            'fields': ('price_monthly',)
        }),
        (_('Status'), {
            'fields': ('active', 'archived', 'active_enrollments_count')
        }),
        (_('Timestamps'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def price_display(self, obj):
        if obj.price_monthly is None:
            return '-'
        return format_html('<strong>{}</strong>', f"{obj.price_monthly:,.2f}")
    price_display.short_description = 'Monthly Price'
    price_display.admin_order_field = 'price_monthly'

    def state_display(self, obj):
        if obj.archived:
            return format_html('<span style="color: {};">{}</span>', '#95a5a6', 'Archived')
        if obj.active:
            return format_html('<span style="color: {}; font-weight: bold;">{}</span>', '#2ecc71', 'Active')
        return format_html('<span style="color: {};">{}</span>', '#e67e22', 'Inactive')
    state_display.short_description = 'State'


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'member', 'dance_class', 'active', 'price', 'custom_price', 'next_payment_date')
    list_filter = ('active', 'dance_class')
    search_fields = ('member__first_name', 'member__last_name', 'dance_class__name')
    autocomplete_fields = ('member',)
    date_hierarchy = 'next_payment_date'
