"""
Points views module.

All views are exported from this module so urls import from one place.
"""
from .points_account_views import (
    get_customer_balance, get_customer_ledger, get_customer_transactions
)
from .points_adjustment_views import add_bulk_points, add_individual_points, reduce_points
from .points_processing_views import process_points_and_tiers

__all__ = [
    'get_customer_balance',
    'get_customer_ledger',
    'get_customer_transactions',
    'add_bulk_points',
    'add_individual_points',
    'reduce_points',
    'process_points_and_tiers',
]
