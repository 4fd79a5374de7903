"""
Points ledger: per-grant entries with their own expiry, consumed FIFO.
"""
import logging
from dataclasses import dataclass, field
from typing import List

from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone

from apps.common.exceptions import (
    FATAL_DATABASE_ERRORS, InsufficientPointsError, LoyaltyValidationError,
)
from apps.customers.models import Customer

from ..models import PointsExpirationRule, PointsLedgerEntry, PointsTransaction
from .transaction_service import TransactionLog

logger = logging.getLogger(__name__)


@dataclass
class RedemptionResult:
    requested_points: int
    available_points: int
    redeemed_points: int
    breakdown: List[dict] = field(default_factory=list)


@dataclass
class ExpirySweepResult:
    expired_entries: int = 0
    expired_points: int = 0
    transactions: List[PointsTransaction] = field(default_factory=list)
    failures: List[dict] = field(default_factory=list)


class LedgerService:
    """Service for ledger grants, FIFO redemption and expiry"""

    @staticmethod
    def active_entries(customer, now):
        """Active, unexpired entries with points left, oldest first"""
        return PointsLedgerEntry.objects.filter(
            customer=customer,
            status=PointsLedgerEntry.STATUS_ACTIVE,
            expiry_date__gte=now,
            points__gt=0,
        ).order_by('earned_at', 'id')

    @staticmethod
    def available_points(customer, now=None):
        now = now or timezone.now()
        total = LedgerService.active_entries(customer, now).aggregate(total=Sum('points'))['total']
        return total or 0

    @staticmethod
    def grant(customer, points, source_transaction=None, now=None, metadata=None):
        """Create one active ledger entry; its expiry is fixed at grant time"""
        if points <= 0:
            raise LoyaltyValidationError("Points amount must be positive", points=points)

        now = now or timezone.now()
        expiry_date = PointsExpirationRule.calculate_expiry_date(customer.tier, now)
        if expiry_date <= now:
            raise LoyaltyValidationError("Expiry date must be after the earn date")

        entry = PointsLedgerEntry.objects.create(
            customer=customer,
            original_points=points,
            points=points,
            earned_at=now,
            expiry_date=expiry_date,
            status=PointsLedgerEntry.STATUS_ACTIVE,
            transaction=source_transaction,
            metadata=metadata or {},
        )
        logger.info(
            f"Granted {points} points to customer {customer.customer_id} "
            f"(ledger entry {entry.id}, expires {expiry_date.isoformat()})"
        )
        return entry

    @staticmethod
    def redeem_fifo(customer, amount, now=None):
        """
        Consume ``amount`` points from the oldest active entries.

        The customer row is locked and the ledger re-read inside the atomic
        block, so two redemptions for one customer cannot spend the same
        entry. Nothing is written when the available sum falls short.
        """
        if amount <= 0:
            raise LoyaltyValidationError("Redemption amount must be positive", points=amount)

        now = now or timezone.now()
        with transaction.atomic():
            Customer.objects.select_for_update().get(pk=customer.pk)
            entries = list(LedgerService.active_entries(customer, now).select_for_update())

            available = sum(entry.points for entry in entries)
            if available < amount:
                raise InsufficientPointsError(available=available, requested=amount)

            remaining = amount
            breakdown = []
            for entry in entries:
                if remaining <= 0:
                    break

                original = entry.points
                used = min(original, remaining)
                fully_redeemed = used == original

                entry.points = original - used
                update_fields = ['points', 'updated_at']
                if fully_redeemed:
                    entry.status = PointsLedgerEntry.STATUS_REDEEMED
                    entry.redeemed_at = now
                    update_fields += ['status', 'redeemed_at']
                entry.save(update_fields=update_fields)

                remaining -= used
                breakdown.append({
                    'ledger_entry_id': entry.id,
                    'original_points': original,
                    'points_used': used,
                    'fully_redeemed': fully_redeemed,
                    'expiry_date': entry.expiry_date.isoformat(),
                    'earned_at': entry.earned_at.isoformat(),
                })

        logger.info(
            f"Redeemed {amount} points FIFO for customer {customer.customer_id} "
            f"across {len(breakdown)} ledger entries"
        )
        return RedemptionResult(
            requested_points=amount,
            available_points=available,
            redeemed_points=amount,
            breakdown=breakdown,
        )

    @staticmethod
    def expire_sweep(now=None):
        """
        Expire every active entry past its expiry date.

        Each entry is handled in its own savepoint: the entry is marked
        expired, the customer balance is debited by the remaining points and
        one ``expire`` transaction is recorded. A failing entry is logged and
        skipped; connectivity errors propagate.
        """
        now = now or timezone.now()
        result = ExpirySweepResult()

        expired_ids = list(
            PointsLedgerEntry.objects.filter(
                status=PointsLedgerEntry.STATUS_ACTIVE,
                expiry_date__lt=now,
            ).order_by('expiry_date', 'id').values_list('id', flat=True)
        )
        logger.info(f"Found {len(expired_ids)} expired ledger entries")

        for entry_id in expired_ids:
            try:
                with transaction.atomic():
                    expire_txn = LedgerService._expire_entry(entry_id, now)
            except FATAL_DATABASE_ERRORS:
                raise
            except Exception as e:
                logger.error(f"Error processing expired ledger entry {entry_id}: {e}", exc_info=True)
                result.failures.append({'ledger_entry_id': entry_id, 'error': str(e)})
                continue

            if expire_txn is not None:
                result.expired_entries += 1
                result.expired_points += -expire_txn.points
                result.transactions.append(expire_txn)

        return result

    @staticmethod
    def _expire_entry(entry_id, now):
        entry = PointsLedgerEntry.objects.select_for_update().select_related('customer').filter(
            pk=entry_id, status=PointsLedgerEntry.STATUS_ACTIVE
        ).first()
        if entry is None:
            # Redeemed or expired since the sweep started
            return None

        remaining = entry.points
        entry.status = PointsLedgerEntry.STATUS_EXPIRED
        entry.expired_at = now
        entry.save(update_fields=['status', 'expired_at', 'updated_at'])

        customer = entry.customer
        Customer.objects.filter(pk=customer.pk).update(total_points=F('total_points') - remaining)

        expire_txn = TransactionLog.append(
            customer=customer,
            transaction_type=PointsTransaction.TYPE_EXPIRE,
            points=-remaining,
            note=f"Points expired on {now.isoformat()}",
            metadata={
                'ledger_entry_id': entry.id,
                'original_points': entry.original_points,
                'expired_points': remaining,
                'earned_at': entry.earned_at.isoformat(),
                'expiry_date': entry.expiry_date.isoformat(),
            },
            now=now,
            reference_id=entry.transaction.transaction_id if entry.transaction_id else f"ledger_{entry.id}",
        )
        logger.info(f"Processed expiration for customer {customer.customer_id}: {remaining} points")
        return expire_txn
