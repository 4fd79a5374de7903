from django.contrib import admin
from .models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    """Admin interface for loyalty customers"""
    list_display = ['customer_id', 'name', 'tier', 'total_points', 'coins', 'is_active', 'created_at']
    list_filter = ['tier', 'is_active', 'created_at']
    search_fields = ['customer_id', 'name', 'email', 'phone']
    ordering = ['customer_id']
    # Balances only move through the points services
    readonly_fields = ['total_points', 'coins', 'created_at', 'updated_at']
