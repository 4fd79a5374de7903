"""
Membership service for tier assignment and tier change records.
"""
import logging

from django.db import transaction
from django.utils import timezone

from ..models import MembershipTier

logger = logging.getLogger(__name__)


class MembershipService:
    """Service class for membership tier operations"""

    @staticmethod
    def tier_label(tier):
        return tier.display_name if tier else None

    @staticmethod
    def change_tier(customer, new_tier, transaction_type, note, metadata, now=None):
        """
        Move a customer to ``new_tier`` and record the change.

        Every tier change is paired with exactly one zero-point transaction
        carrying the before/after state.
        """
        from apps.points.services.transaction_service import TransactionLog

        now = now or timezone.now()
        with transaction.atomic():
            customer.tier = new_tier
            customer.save(update_fields=['tier', 'updated_at'])
            return TransactionLog.append(
                customer=customer,
                transaction_type=transaction_type,
                points=0,
                note=note,
                metadata=metadata,
                now=now,
            )

    @staticmethod
    def check_and_upgrade_tier(customer, now=None):
        """
        Promote the customer to the highest tier their balance qualifies for.

        Returns the tier_upgrade transaction, or None when no promotion
        applies. Never demotes.
        """
        from apps.points.models import PointsTransaction

        customer.refresh_from_db(fields=['total_points', 'tier'])
        current_tier = customer.tier
        eligible_tier = MembershipTier.get_tier_for_points(customer.total_points)

        if eligible_tier is None:
            return None
        if current_tier is not None and not current_tier.is_below(eligible_tier):
            return None

        upgrade = MembershipService.change_tier(
            customer,
            eligible_tier,
            PointsTransaction.TYPE_TIER_UPGRADE,
            note=(
                f"Tier upgraded from {MembershipService.tier_label(current_tier) or 'none'} "
                f"to {eligible_tier.display_name}"
            ),
            metadata={
                'previous_tier': MembershipService.tier_label(current_tier),
                'new_tier': eligible_tier.display_name,
                'total_points': customer.total_points,
            },
            now=now,
        )
        logger.info(
            f"Upgraded customer {customer.customer_id} from "
            f"{MembershipService.tier_label(current_tier)} to {eligible_tier.display_name}"
        )
        return upgrade
