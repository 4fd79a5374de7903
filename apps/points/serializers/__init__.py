"""
Points serializers module.

All serializers are exported from this module so views import from one place.
"""
from .adjustment_serializers import (
    ManualAddIndividualSerializer, ManualBulkAddSerializer,
    ManualReduceSerializer, ProcessRunSerializer
)
from .transaction_serializers import PointsLedgerEntrySerializer, PointsTransactionSerializer

__all__ = [
    'ManualAddIndividualSerializer',
    'ManualBulkAddSerializer',
    'ManualReduceSerializer',
    'ProcessRunSerializer',
    'PointsLedgerEntrySerializer',
    'PointsTransactionSerializer',
]
