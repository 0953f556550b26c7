from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import Instructor, Member, FrozenLog, MemberStatus


class FrozenLogInline(admin.TabularInline):
    model = FrozenLog
    extra = 0
    fields = ('start_date', 'end_date', 'days_count', 'reason')
    readonly_fields = ('days_count',)


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):

    list_display = ('id', 'full_name', 'phone', 'join_date', 'status_badge', 'created_at')
    list_filter = ('status', 'join_date')
    search_fields = ('first_name', 'last_name', 'phone')
    readonly_fields = ('created_at', 'updated_at')
    ordering = ('-created_at',)
    date_hierarchy = 'join_date'
    inlines = [FrozenLogInline]

    fieldsets = (
        (_('Member Information'), {
            'fields': ('first_name', 'last_name', 'phone', 'join_date')
        }),
        (_('Status'), {
            'fields': ('status', 'notes')
        }),
        (_('Timestamps'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def status_badge(self, obj):
        colors = {
            MemberStatus.ACTIVE: '#2ecc71',
            MemberStatus.FROZEN: '#3498db',
            MemberStatus.ARCHIVED: '#95a5a6',
        }
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            colors.get(obj.status, '#95a5a6'),
            obj.get_status_display()
        )
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'


@admin.register(Instructor)
class InstructorAdmin(admin.ModelAdmin):

    list_display = ('id', 'full_name', 'specialty', 'phone', 'default_commission_rate', 'active')
    list_filter = ('active',)
    search_fields = ('first_name', 'last_name', 'phone', 'specialty')
    readonly_fields = ('created_at', 'updated_at')

    fieldsets = (
        (_('Instructor Information'), {
            'fields': ('first_name', 'last_name', 'specialty', 'phone', 'active')
        }),
        (_('Commission'), {
            'fields': ('default_commission_rate',)
        }),
        (_('Timestamps'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(FrozenLog)
class FrozenLogAdmin(admin.ModelAdmin):
    list_display = ('id', 'member', 'start_date', 'end_date', 'days_count', 'reason')
    list_filter = ('start_date',)
    search_fields = ('member__first_name', 'member__last_name', 'reason')
    readonly_fields = ('days_count', 'created_at', 'updated_at')
    autocomplete_fields = ('member',)
