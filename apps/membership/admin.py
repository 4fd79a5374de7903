from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html

from .models import MembershipTier, PriorityCustomer, TierEligibilityCriteria


class TierEligibilityCriteriaInline(admin.TabularInline):
    model = TierEligibilityCriteria
    extra = 0
    fields = ['evaluation_period_days', 'consecutive_periods_required', 'net_earning_required', 'is_active']


@admin.register(MembershipTier)
class MembershipTierAdmin(admin.ModelAdmin):
    """Admin interface for membership tiers"""

    list_display = ['display_name', 'name', 'hierarchy_level', 'points_required', 'member_count', 'created_at']
    search_fields = ['name', 'display_name']
    ordering = ['hierarchy_level']
    readonly_fields = ['created_at', 'updated_at', 'member_count']
    inlines = [TierEligibilityCriteriaInline]

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'display_name', 'hierarchy_level')
        }),
        ('Thresholds & Benefits', {
            'fields': ('points_required', 'benefits')
        }),
        ('Statistics', {
            'fields': ('member_count',),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def member_count(self, obj):
        """Count of customers in this tier"""
        count = obj.customers.count()
        if count > 0:
            url = reverse('admin:customers_customer_changelist')
            return format_html('<a href="{}?tier__id__exact={}">{} customers</a>', url, obj.id, count)
        return '0 customers'
    member_count.short_description = 'Customers'

    def has_delete_permission(self, request, obj=None):
        # Tiers with customers are protected
        if obj and obj.customers.exists():
            return False
        return super().has_delete_permission(request, obj)


@admin.register(PriorityCustomer)
class PriorityCustomerAdmin(admin.ModelAdmin):
    """Admin interface for priority customers"""

    list_display = ['customer', 'tier', 'is_active', 'added_by', 'created_at']
    list_filter = ['tier', 'is_active', 'created_at']
    search_fields = ['customer__customer_id', 'customer__name', 'customer__email', 'reason']
    readonly_fields = ['added_by', 'created_at', 'updated_at']

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('customer', 'tier', 'added_by')

    def save_model(self, request, obj, form, change):
        if not change:
            obj.added_by = request.user
        super().save_model(request, obj, form, change)
