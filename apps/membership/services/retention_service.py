"""
Tier retention: decides whether a customer keeps a tier at period end.
"""
import enum
import logging
from datetime import timedelta

from django.conf import settings
from django.db.models import Sum
from django.utils import timezone

from apps.common.exceptions import FATAL_DATABASE_ERRORS

from ..models import TierEligibilityCriteria

logger = logging.getLogger(__name__)

_UNSET = object()


class RetentionDecision(enum.Enum):
    RETAIN = 'retain'
    DOWNGRADE = 'downgrade'


class TierRetentionEvaluator:
    """
    Evaluate retention of a tier against its eligibility criteria.

    Without active criteria the tier is kept iff the balance covers
    ``points_required``. With criteria, the customer needs
    ``consecutive_periods_required`` back-to-back windows of
    ``evaluation_period_days`` (most recent first), each with earn
    transactions summing to at least ``net_earning_required``. The first
    short window ends the check.
    """

    def __init__(self, now=None, points_fast_path=None):
        self.now = now or timezone.now()
        if points_fast_path is None:
            points_fast_path = settings.LOYALTY_RETENTION_POINTS_FAST_PATH
        self.points_fast_path = points_fast_path
        self._criteria_cache = {}

    def get_criteria(self, tier):
        if tier.pk not in self._criteria_cache:
            self._criteria_cache[tier.pk] = TierEligibilityCriteria.get_active_for_tier(tier)
        return self._criteria_cache[tier.pk]

    def evaluate(self, customer, tier, criteria=_UNSET):
        """
        Return RETAIN or DOWNGRADE.

        Unexpected errors fail open to RETAIN; lost connections propagate.
        """
        try:
            if criteria is _UNSET:
                criteria = self.get_criteria(tier)
            return self._evaluate(customer, tier, criteria)
        except FATAL_DATABASE_ERRORS:
            raise
        except Exception as e:
            logger.error(
                f"Error checking tier retention eligibility for customer {customer.customer_id} "
                f"and tier {tier}: {e}",
                exc_info=True,
            )
            return RetentionDecision.RETAIN

    def retains(self, customer, tier, criteria=_UNSET):
        return self.evaluate(customer, tier, criteria) is RetentionDecision.RETAIN

    def _evaluate(self, customer, tier, criteria):
        meets_threshold = customer.total_points >= tier.points_required

        if criteria is None:
            logger.debug(f"No tier eligibility criteria found for tier {tier}, using points threshold")
            return RetentionDecision.RETAIN if meets_threshold else RetentionDecision.DOWNGRADE

        if self.points_fast_path and meets_threshold:
            logger.debug(
                f"Customer {customer.customer_id} has sufficient points for tier {tier} "
                f"({customer.total_points} >= {tier.points_required})"
            )
            return RetentionDecision.RETAIN

        period = timedelta(days=criteria.evaluation_period_days)
        for period_index in range(criteria.consecutive_periods_required):
            period_end = self.now - period * period_index
            period_start = period_end - period
            earned = self.period_earnings(customer, period_start, period_end)

            logger.debug(
                f"Period {period_index + 1} check for customer {customer.customer_id}: "
                f"{earned}/{criteria.net_earning_required} points "
                f"[{period_start.isoformat()}, {period_end.isoformat()})"
            )

            if earned < criteria.net_earning_required:
                logger.info(
                    f"Customer {customer.customer_id} failed tier retention for {tier} - "
                    f"insufficient earnings in period {period_index + 1} "
                    f"({earned} < {criteria.net_earning_required}, "
                    f"{period_index}/{criteria.consecutive_periods_required} periods achieved)"
                )
                return RetentionDecision.DOWNGRADE

        logger.info(
            f"Customer {customer.customer_id} retains {tier}: "
            f"{criteria.consecutive_periods_required} consecutive periods met"
        )
        return RetentionDecision.RETAIN

    @staticmethod
    def period_earnings(customer, start, end):
        """Sum of completed earn transactions in [start, end)"""
        from apps.points.models import PointsTransaction

        total = PointsTransaction.objects.filter(
            customer=customer,
            transaction_type=PointsTransaction.TYPE_EARN,
            status=PointsTransaction.STATUS_COMPLETED,
            transaction_date__gte=start,
            transaction_date__lt=end,
        ).aggregate(total=Sum('points'))['total']
        return total or 0

    def select_downgrade_target(self, customer, current_tier, tiers, base_tier):
        """
        Highest tier below ``current_tier`` the customer also retains.

        ``tiers`` must be ordered by descending hierarchy level. Falls back
        to ``base_tier`` when no lower tier passes.
        """
        for tier in tiers:
            if tier.pk == current_tier.pk or tier.hierarchy_level >= current_tier.hierarchy_level:
                continue
            if self.retains(customer, tier):
                return tier
        return base_tier

    @staticmethod
    def apply_priority_floor(target_tier, priority_tier):
        """Never go below an active priority minimum"""
        if priority_tier is not None and target_tier.hierarchy_level < priority_tier.hierarchy_level:
            return priority_tier
        return target_tier
