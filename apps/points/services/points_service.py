"""
Points service for balance-affecting operations.

Each operation keeps the three stores in step inside one atomic block:
the transaction log, the ledger and ``Customer.total_points``.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from django.db import transaction
from django.utils import timezone

from apps.common.exceptions import FATAL_DATABASE_ERRORS, LoyaltyValidationError
from apps.common.results import OperationResult

from ..models import PointsTransaction
from .ledger_service import LedgerService
from .transaction_service import TransactionLog

logger = logging.getLogger(__name__)


@dataclass
class PointsMovement(OperationResult):
    customer_id: str
    transaction: PointsTransaction
    points: int
    new_balance: int
    ledger_entry_id: Optional[int] = None
    used_ledger_entries: List[dict] = field(default_factory=list)

    def to_dict(self):
        return {
            'customer_id': self.customer_id,
            'transaction_id': self.transaction.transaction_id,
            'points': self.points,
            'point_balance': self.new_balance,
            'ledger_entry_id': self.ledger_entry_id,
            'used_ledger_entries': self.used_ledger_entries,
            'side_effects': [outcome.to_dict() for outcome in self.side_effects],
        }


class PointsService:
    """Service for earning and redeeming points"""

    @staticmethod
    def earn_points(customer, points, note='', metadata=None, now=None,
                    point_criteria=None, app_type=None, ledger_metadata=None):
        """
        Credit ``points``: earn transaction, balance and coins, ledger entry.

        The ledger entry is written in its own savepoint. If it fails the
        credit still commits and the failure is reported in ``side_effects``.
        """
        if isinstance(points, bool) or not isinstance(points, int) or points <= 0:
            raise LoyaltyValidationError("Points amount must be a positive whole number", points=points)

        now = now or timezone.now()
        with transaction.atomic():
            customer = customer.lock()
            earn = TransactionLog.append(
                customer=customer,
                transaction_type=PointsTransaction.TYPE_EARN,
                points=points,
                note=note,
                metadata=metadata,
                now=now,
                point_criteria=point_criteria,
                app_type=app_type,
            )
            new_balance = customer.adjust_balance(points, coins=points)

            movement = PointsMovement(
                customer_id=customer.customer_id,
                transaction=earn,
                points=points,
                new_balance=new_balance,
            )

            try:
                with transaction.atomic():
                    entry = LedgerService.grant(
                        customer, points, source_transaction=earn, now=now, metadata=ledger_metadata
                    )
                movement.ledger_entry_id = entry.id
                movement.record('ledger_entry', detail={'ledger_entry_id': entry.id})
            except FATAL_DATABASE_ERRORS:
                raise
            except Exception as e:
                logger.error(
                    f"Error creating ledger entry for customer {customer.customer_id} "
                    f"({points} points, transaction {earn.transaction_id}): {e}",
                    exc_info=True,
                )
                movement.record('ledger_entry', succeeded=False, error=str(e))

        logger.info(
            f"Added {points} points to customer {customer.customer_id} "
            f"(transaction {earn.transaction_id}, balance {new_balance})"
        )
        return movement

    @staticmethod
    def redeem_points(customer, amount, note='', metadata=None, now=None, app_type=None):
        """
        Debit ``amount`` points FIFO from the ledger and record the redemption.

        Raises InsufficientPointsError with nothing written when the active
        ledger cannot cover the amount.
        """
        now = now or timezone.now()
        with transaction.atomic():
            redemption = LedgerService.redeem_fifo(customer, amount, now=now)
            redeem = TransactionLog.append(
                customer=customer,
                transaction_type=PointsTransaction.TYPE_REDEEM,
                points=-amount,
                note=note,
                metadata={
                    **(metadata or {}),
                    'redeemed_points': redemption.redeemed_points,
                    'used_ledger_entries': redemption.breakdown,
                },
                now=now,
                app_type=app_type,
            )
            new_balance = customer.adjust_balance(-amount)

        logger.info(
            f"Redeemed {amount} points from customer {customer.customer_id} "
            f"(transaction {redeem.transaction_id}, balance {new_balance})"
        )
        return PointsMovement(
            customer_id=customer.customer_id,
            transaction=redeem,
            points=-amount,
            new_balance=new_balance,
            used_ledger_entries=redemption.breakdown,
        )
