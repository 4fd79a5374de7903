"""
Periodic points and tier processing: expire stale ledger entries, then
re-evaluate every tiered or protected customer.
"""
import logging
from dataclasses import dataclass, field
from typing import List

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.common.exceptions import FATAL_DATABASE_ERRORS, NotFoundError
from apps.customers.models import Customer
from apps.membership.models import MembershipTier, PriorityCustomer
from apps.membership.services import MembershipService, RetentionDecision, TierRetentionEvaluator

from ..models import PointsTransaction
from .ledger_service import LedgerService

logger = logging.getLogger(__name__)

DOWNGRADE_REASON = 'tier_retention_criteria_not_met'
PROTECTION_REASON = 'priority_customer_minimum_tier'


@dataclass
class ProcessorReport:
    run_at: str
    expired_entries: int = 0
    expired_points: int = 0
    customers_evaluated: int = 0
    downgrades: List[dict] = field(default_factory=list)
    protection_upgrades: List[dict] = field(default_factory=list)
    retained: int = 0
    failures: List[dict] = field(default_factory=list)

    def to_dict(self):
        return {
            'run_at': self.run_at,
            'expired_entries': self.expired_entries,
            'expired_points': self.expired_points,
            'customers_evaluated': self.customers_evaluated,
            'downgrades': self.downgrades,
            'protection_upgrades': self.protection_upgrades,
            'retained': self.retained,
            'failures': self.failures,
        }


class PointsTierProcessor:
    """
    Runs the expiry sweep and tier retention for all customers.

    The whole run is one atomic block; every ledger entry and every
    customer gets its own savepoint so one bad record is skipped without
    losing the rest. Connectivity errors abort the run.
    """

    def __init__(self, now=None, evaluator=None):
        self.now = now or timezone.now()
        self.evaluator = evaluator or TierRetentionEvaluator(now=self.now)

    @classmethod
    def run(cls, now=None, evaluator=None):
        return cls(now=now, evaluator=evaluator).process()

    def process(self):
        report = ProcessorReport(run_at=self.now.isoformat())
        logger.info(f"Starting points and tier processing at {report.run_at}")

        with transaction.atomic():
            sweep = LedgerService.expire_sweep(self.now)
            report.expired_entries = sweep.expired_entries
            report.expired_points = sweep.expired_points
            report.failures.extend(sweep.failures)

            tiers = list(MembershipTier.objects.order_by('-hierarchy_level'))
            base_tier = MembershipTier.get_base_tier()
            if base_tier is None:
                raise NotFoundError("Base membership tier is not configured")

            priority_tiers = {
                record.customer_id: record.tier
                for record in PriorityCustomer.objects.filter(is_active=True).select_related('tier')
            }

            candidate_ids = list(
                Customer.objects.filter(
                    Q(tier__isnull=False, tier__hierarchy_level__gt=base_tier.hierarchy_level)
                    | Q(pk__in=list(priority_tiers.keys()))
                ).order_by('id').values_list('id', flat=True)
            )
            logger.info(f"Evaluating tier retention for {len(candidate_ids)} customers")

            for customer_id in candidate_ids:
                try:
                    with transaction.atomic():
                        self._process_customer(
                            customer_id, tiers, base_tier, priority_tiers.get(customer_id), report
                        )
                except FATAL_DATABASE_ERRORS:
                    raise
                except Exception as e:
                    logger.error(f"Error processing tier for customer {customer_id}: {e}", exc_info=True)
                    report.failures.append({'customer': customer_id, 'error': str(e)})

        logger.info(
            f"Points and tier processing complete: {report.expired_entries} entries expired "
            f"({report.expired_points} points), {len(report.downgrades)} downgrades, "
            f"{len(report.protection_upgrades)} protection upgrades, {len(report.failures)} failures"
        )
        return report

    def _process_customer(self, customer_id, tiers, base_tier, priority_tier, report):
        customer = Customer.objects.select_for_update().select_related('tier').get(pk=customer_id)
        current_tier = customer.tier or base_tier
        report.customers_evaluated += 1

        if priority_tier is not None and current_tier.is_below(priority_tier):
            self._protect(customer, current_tier, priority_tier, report)
            return

        if self.evaluator.evaluate(customer, current_tier) is RetentionDecision.RETAIN:
            report.retained += 1
            return

        target = self.evaluator.select_downgrade_target(customer, current_tier, tiers, base_tier)
        target = TierRetentionEvaluator.apply_priority_floor(target, priority_tier)
        if not target.is_below(current_tier):
            report.retained += 1
            return

        self._downgrade(customer, current_tier, target, priority_tier, report)

    def _protect(self, customer, current_tier, priority_tier, report):
        change = MembershipService.change_tier(
            customer,
            priority_tier,
            PointsTransaction.TYPE_TIER_PROTECTION,
            note=f"Tier raised to priority minimum {priority_tier.display_name}",
            metadata={
                'previous_tier': current_tier.display_name,
                'enforced_minimum_tier': priority_tier.display_name,
                'total_points': customer.total_points,
                'reason': PROTECTION_REASON,
            },
            now=self.now,
        )
        logger.info(
            f"Priority customer {customer.customer_id} raised from "
            f"{current_tier.display_name} to {priority_tier.display_name}"
        )
        report.protection_upgrades.append({
            'customer_id': customer.customer_id,
            'previous_tier': current_tier.display_name,
            'new_tier': priority_tier.display_name,
            'transaction_id': change.transaction_id,
        })

    def _downgrade(self, customer, current_tier, target, priority_tier, report):
        protected = priority_tier is not None and target.pk == priority_tier.pk
        reason = f"{DOWNGRADE_REASON}_priority_protected" if protected else DOWNGRADE_REASON

        change = MembershipService.change_tier(
            customer,
            target,
            PointsTransaction.TYPE_TIER_DOWNGRADE,
            note=f"Tier downgraded from {current_tier.display_name} to {target.display_name}",
            metadata={
                'previous_tier': current_tier.display_name,
                'new_tier': target.display_name,
                'total_points': customer.total_points,
                'downgrade_reason': reason,
                'priority_minimum_tier': MembershipService.tier_label(priority_tier),
            },
            now=self.now,
        )
        logger.info(
            f"Downgraded customer {customer.customer_id} from "
            f"{current_tier.display_name} to {target.display_name} ({reason})"
        )
        report.downgrades.append({
            'customer_id': customer.customer_id,
            'previous_tier': current_tier.display_name,
            'new_tier': target.display_name,
            'reason': reason,
            'transaction_id': change.transaction_id,
        })
