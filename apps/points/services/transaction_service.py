"""
Transaction log: append-only facts and balance aggregation over them.
"""
import logging
import uuid
from dataclasses import dataclass

from django.db.models import Q, Sum
from django.utils import timezone

from ..metadata import build_metadata, metadata_to_dict
from ..models import PointsTransaction

logger = logging.getLogger(__name__)

TRANSACTION_ID_PREFIXES = {
    PointsTransaction.TYPE_EARN: 'EARN',
    PointsTransaction.TYPE_REDEEM: 'RDM',
    PointsTransaction.TYPE_EXPIRE: 'EXP',
    PointsTransaction.TYPE_TIER_UPGRADE: 'TIER-UP',
    PointsTransaction.TYPE_TIER_DOWNGRADE: 'TIER-DOWN',
    PointsTransaction.TYPE_TIER_PROTECTION: 'TIER-PROTECT',
}


@dataclass
class BalanceCheck:
    customer_id: str
    as_of: object
    cached_balance: int
    log_balance: int

    @property
    def drift(self):
        return self.cached_balance - self.log_balance

    @property
    def is_consistent(self):
        return self.drift == 0


class TransactionLog:
    """Service for recording and aggregating points transactions"""

    @staticmethod
    def generate_transaction_id(transaction_type):
        prefix = TRANSACTION_ID_PREFIXES.get(transaction_type, 'TXN')
        return f"{prefix}-{uuid.uuid4().hex[:16].upper()}"

    @staticmethod
    def append(customer, transaction_type, points, note='', metadata=None, now=None,
               point_criteria=None, app_type=None, reference_id=None):
        """
        Record one completed transaction.

        Keeping ``Customer.total_points`` and the ledger in step is the
        caller's job, inside the same ``transaction.atomic()`` block.
        ``metadata`` is either a typed variant or a dict of its fields.
        """
        if metadata is None or isinstance(metadata, dict):
            metadata = build_metadata(transaction_type, **(metadata or {}))

        return PointsTransaction.objects.create(
            transaction_id=TransactionLog.generate_transaction_id(transaction_type),
            customer=customer,
            transaction_type=transaction_type,
            points=points,
            status=PointsTransaction.STATUS_COMPLETED,
            note=note[:500],
            metadata=metadata_to_dict(metadata),
            point_criteria=point_criteria,
            app_type=app_type,
            reference_id=reference_id,
            transaction_date=now or timezone.now(),
        )

    @staticmethod
    def _completed(customer):
        return PointsTransaction.objects.filter(
            customer=customer,
            status=PointsTransaction.STATUS_COMPLETED,
        )

    @staticmethod
    def aggregate_balance(customer, as_of=None):
        """Sum of completed transaction points dated at or before ``as_of``"""
        as_of = as_of or timezone.now()
        total = TransactionLog._completed(customer).filter(
            transaction_date__lte=as_of
        ).aggregate(total=Sum('points'))['total']
        return total or 0

    @staticmethod
    def check_balance(customer, now=None):
        """Compare the cached running balance against the log"""
        now = now or timezone.now()
        customer.refresh_from_db(fields=['total_points'])
        check = BalanceCheck(
            customer_id=customer.customer_id,
            as_of=now,
            cached_balance=customer.total_points,
            log_balance=TransactionLog.aggregate_balance(customer, now),
        )
        if not check.is_consistent:
            logger.warning(
                f"Balance drift for customer {customer.customer_id}: cached {check.cached_balance}, "
                f"log {check.log_balance} (drift {check.drift})"
            )
        return check

    @staticmethod
    def activity_summary(customer, start, end):
        """Opening/closing balance and movements for one customer over a period"""
        completed = TransactionLog._completed(customer)
        in_period = Q(transaction_date__gte=start, transaction_date__lte=end)

        totals = completed.aggregate(
            opening=Sum('points', filter=Q(transaction_date__lt=start)),
            closing=Sum('points', filter=Q(transaction_date__lte=end)),
            earned=Sum('points', filter=in_period & Q(transaction_type=PointsTransaction.TYPE_EARN)),
            redeemed=Sum('points', filter=in_period & Q(transaction_type=PointsTransaction.TYPE_REDEEM)),
            expired=Sum('points', filter=in_period & Q(transaction_type=PointsTransaction.TYPE_EXPIRE)),
        )

        return {
            'customer_id': customer.customer_id,
            'start': start,
            'end': end,
            'opening_balance': totals['opening'] or 0,
            'earned': totals['earned'] or 0,
            'redeemed': abs(totals['redeemed'] or 0),
            'expired': abs(totals['expired'] or 0),
            'closing_balance': totals['closing'] or 0,
        }
