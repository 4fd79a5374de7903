"""
Points models module.

All models are exported from this module to maintain backward compatibility.
"""
from .app_type import AppType
from .criteria import PointCriteria
from .expiration_rule import PointsExpirationRule
from .transaction import PointsTransaction
from .ledger import PointsLedgerEntry

__all__ = [
    'AppType',
    'PointCriteria',
    'PointsExpirationRule',
    'PointsTransaction',
    'PointsLedgerEntry',
]
