"""
Membership services module.

All services are exported from this module to maintain backward compatibility.
"""
from .membership_service import MembershipService
from .priority_service import PriorityCustomerService
from .retention_service import RetentionDecision, TierRetentionEvaluator

__all__ = [
    'MembershipService',
    'PriorityCustomerService',
    'RetentionDecision',
    'TierRetentionEvaluator',
]
