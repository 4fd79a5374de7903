from django.conf import settings
from django.db import models


class PriorityCustomer(models.Model):
    """Admin-set floor that keeps a customer at or above a minimum tier"""
    # One row per customer; removal clears is_active and re-adding reuses the row
    customer = models.OneToOneField('customers.Customer', on_delete=models.CASCADE, related_name='priority_record')
    tier = models.ForeignKey('MembershipTier', on_delete=models.PROTECT, related_name='priority_customers')
    added_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True
    )
    reason = models.CharField(max_length=500, blank=True, default='')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'priority_customers'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['customer', 'is_active']),
            models.Index(fields=['tier', 'is_active']),
        ]

    def __str__(self):
        state = 'active' if self.is_active else 'inactive'
        return f"{self.customer.customer_id} >= {self.tier} ({state})"

    @classmethod
    def get_active_tier(cls, customer):
        record = cls.objects.filter(customer=customer, is_active=True).select_related('tier').first()
        return record.tier if record else None
