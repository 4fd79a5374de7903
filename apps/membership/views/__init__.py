"""
Membership views module.

All views are exported from this module so urls import from one place.
"""
from .priority_views import PriorityCustomerDetailView, PriorityCustomerListView
from .tier_views import MembershipTierListView

__all__ = [
    'MembershipTierListView',
    'PriorityCustomerDetailView',
    'PriorityCustomerListView',
]
