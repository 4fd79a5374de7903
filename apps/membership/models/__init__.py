"""
Membership models module.

All models are exported from this module to maintain backward compatibility.
"""
from .tier import MembershipTier
from .eligibility import TierEligibilityCriteria
from .priority import PriorityCustomer

__all__ = [
    'MembershipTier',
    'TierEligibilityCriteria',
    'PriorityCustomer',
]
