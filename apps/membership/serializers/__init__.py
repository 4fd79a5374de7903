"""
Membership serializers module.

All serializers are exported from this module so views import from one place.
"""
from .tier_serializers import MembershipTierSerializer
from .priority_serializers import (
    PriorityCustomerCreateSerializer, PriorityCustomerSerializer,
    PriorityCustomerUpdateSerializer
)

__all__ = [
    'MembershipTierSerializer',
    'PriorityCustomerCreateSerializer',
    'PriorityCustomerSerializer',
    'PriorityCustomerUpdateSerializer',
]
