from django.contrib import admin
from .models import AppType, PointCriteria, PointsExpirationRule, PointsLedgerEntry, PointsTransaction


@admin.register(AppType)
class AppTypeAdmin(admin.ModelAdmin):
    list_display = ['name', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name']
    list_editable = ['is_active']


@admin.register(PointCriteria)
class PointCriteriaAdmin(admin.ModelAdmin):
    list_display = ['unique_code', 'name', 'is_active', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['unique_code', 'name', 'description']
    list_editable = ['is_active']


@admin.register(PointsExpirationRule)
class PointsExpirationRuleAdmin(admin.ModelAdmin):
    list_display = ['tier', 'validity_days', 'is_active', 'updated_at']
    list_filter = ['is_active', 'tier']


@admin.register(PointsTransaction)
class PointsTransactionAdmin(admin.ModelAdmin):
    list_display = ['transaction_id', 'customer', 'transaction_type', 'points', 'status', 'transaction_date']
    list_filter = ['transaction_type', 'status', 'transaction_date']
    search_fields = ['transaction_id', 'customer__customer_id', 'note', 'reference_id']
    readonly_fields = ['created_at']

    def has_add_permission(self, request):
        return False  # Transactions are created programmatically

    def has_change_permission(self, request, obj=None):
        return False  # The log is append-only

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PointsLedgerEntry)
class PointsLedgerEntryAdmin(admin.ModelAdmin):
    list_display = ['customer', 'original_points', 'points', 'status', 'earned_at', 'expiry_date']
    list_filter = ['status', 'earned_at', 'expiry_date']
    search_fields = ['customer__customer_id']
    readonly_fields = [
        'customer', 'original_points', 'points', 'earned_at', 'expiry_date',
        'transaction', 'redeemed_at', 'expired_at', 'created_at'
    ]

    def has_add_permission(self, request):
        return False  # Ledger entries are created by grants
