"""
Priority customer management: admin-set minimum tier guarantees.
"""
import logging

from django.db import transaction
from django.db.models import Q

from apps.common.exceptions import ConflictError, LoyaltyValidationError

from ..models import PriorityCustomer

logger = logging.getLogger(__name__)


class PriorityCustomerService:
    """Service for creating, updating and deactivating priority records"""

    @staticmethod
    def create(customer, tier, reason='', added_by=None):
        """Create a priority record, or reactivate the customer's inactive one"""
        with transaction.atomic():
            existing = PriorityCustomer.objects.select_for_update().filter(customer=customer).first()

            if existing and existing.is_active:
                raise ConflictError(
                    "Customer is already marked as priority",
                    priority_customer_id=existing.id,
                )

            if existing:
                existing.tier = tier
                existing.reason = reason or ''
                existing.is_active = True
                existing.added_by = added_by
                existing.save()
                record = existing
                logger.info(f"Reactivated priority protection for customer {customer.customer_id} at {tier}")
            else:
                record = PriorityCustomer.objects.create(
                    customer=customer,
                    tier=tier,
                    reason=reason or '',
                    added_by=added_by,
                )
                logger.info(f"Added priority protection for customer {customer.customer_id} at {tier}")

        return record

    @staticmethod
    def update(record, tier=None, reason=None, is_active=None):
        if tier is None and reason is None and is_active is None:
            raise LoyaltyValidationError("At least one field must be provided")

        if tier is not None:
            record.tier = tier
        if reason is not None:
            record.reason = reason
        if is_active is not None:
            record.is_active = is_active
        record.save()
        logger.info(f"Updated priority record {record.id} for customer {record.customer.customer_id}")
        return record

    @staticmethod
    def deactivate(record):
        """Soft delete: the row is kept so it can be reactivated later"""
        record.is_active = False
        record.save(update_fields=['is_active', 'updated_at'])
        logger.info(f"Deactivated priority protection for customer {record.customer.customer_id}")
        return record

    @staticmethod
    def get_active_tier(customer):
        return PriorityCustomer.get_active_tier(customer)

    @staticmethod
    def search(search=None, tier=None, is_active=None):
        queryset = PriorityCustomer.objects.select_related('customer', 'customer__tier', 'tier', 'added_by')

        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        if tier is not None:
            queryset = queryset.filter(tier=tier)
        if search:
            queryset = queryset.filter(
                Q(customer__name__icontains=search)
                | Q(customer__customer_id__icontains=search)
                | Q(customer__email__icontains=search)
                | Q(customer__phone__icontains=search)
            )
        return queryset.order_by('-created_at')
