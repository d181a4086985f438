from django.contrib import admin
from django.utils.html import format_html

from config.clock import get_clock
from .models import SMSCode


@admin.register(SMSCode)
class SMSCodeAdmin(admin.ModelAdmin):
    list_display = ['id', 'phone', 'status_badge', 'expires_at']
    list_filter = ['expires_at']
    search_fields = ['phone']
    ordering = ['-expires_at']
    # Codes are only written by the sign-in flow
    readonly_fields = ['phone', 'code', 'expires_at']

    def has_add_permission(self, request):
        return False

    def status_badge(self, obj: SMSCode):
        if obj.expires_at and obj.expires_at < get_clock().now():
            color = '#EF4444'
            label = 'EXPIRED'
        else:
            color = '#F59E0B'
            label = 'ACTIVE'
        return format_html(
            '<span style="background-color:{};color:#fff;padding:3px 8px;border-radius:10px;font-size:11px;font-weight:600;">{}</span>',
            color,
            label
        )
    status_badge.short_description = 'Status'
