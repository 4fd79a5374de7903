"""
Points services module.

All services are exported from this module so callers import from one place.
"""
from .adjustment_service import BulkAdjustmentResult, ManualAdjustmentService
from .ledger_service import ExpirySweepResult, LedgerService, RedemptionResult
from .points_service import PointsMovement, PointsService
from .processor import PointsTierProcessor, ProcessorReport
from .transaction_service import BalanceCheck, TransactionLog

__all__ = [
    'BalanceCheck',
    'BulkAdjustmentResult',
    'ExpirySweepResult',
    'LedgerService',
    'ManualAdjustmentService',
    'PointsMovement',
    'PointsService',
    'PointsTierProcessor',
    'ProcessorReport',
    'RedemptionResult',
    'TransactionLog',
]
