from django.db import models


class PointsTransaction(models.Model):
    """Append-only record of every balance or tier affecting event"""
    TYPE_EARN = 'earn'
    TYPE_REDEEM = 'redeem'
    TYPE_EXPIRE = 'expire'
    TYPE_TIER_UPGRADE = 'tier_upgrade'
    TYPE_TIER_DOWNGRADE = 'tier_downgrade'
    TYPE_TIER_PROTECTION = 'tier_protection_adjustment'

    TRANSACTION_TYPES = [
        (TYPE_EARN, 'Points Earned'),
        (TYPE_REDEEM, 'Points Redeemed'),
        (TYPE_EXPIRE, 'Points Expired'),
        (TYPE_TIER_UPGRADE, 'Tier Upgrade'),
        (TYPE_TIER_DOWNGRADE, 'Tier Downgrade'),
        (TYPE_TIER_PROTECTION, 'Tier Protection Adjustment'),
    ]

    STATUS_COMPLETED = 'completed'
    STATUS_PENDING = 'pending'
    STATUS_FAILED = 'failed'

    STATUS_CHOICES = [
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_PENDING, 'Pending'),
        (STATUS_FAILED, 'Failed'),
    ]

    transaction_id = models.CharField(max_length=100, unique=True)
    customer = models.ForeignKey('customers.Customer', on_delete=models.PROTECT, related_name='transactions')
    transaction_type = models.CharField(max_length=40, choices=TRANSACTION_TYPES)
    points = models.IntegerField()  # Positive for earning, negative for redemption/expiration
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_COMPLETED)
    note = models.CharField(max_length=500, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    point_criteria = models.ForeignKey(
        'PointCriteria', on_delete=models.SET_NULL, null=True, blank=True, related_name='transactions'
    )
    app_type = models.ForeignKey(
        'AppType', on_delete=models.SET_NULL, null=True, blank=True, related_name='transactions'
    )
    reference_id = models.CharField(max_length=100, blank=True, null=True)  # Ledger entry, source transaction, etc.
    transaction_date = models.DateTimeField(db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'points_transactions'
        ordering = ['-transaction_date', '-id']
        indexes = [
            models.Index(fields=['customer', 'transaction_type', 'transaction_date']),
            models.Index(fields=['status', 'transaction_date']),
        ]
        verbose_name = 'Points Transaction'
        verbose_name_plural = 'Points Transactions'

    def __str__(self):
        return f"{self.customer_id} - {self.points} points ({self.get_transaction_type_display()})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Points transactions are immutable once recorded")
        super().save(*args, **kwargs)

    @property
    def is_earning(self):
        return self.points > 0

    @property
    def is_spending(self):
        return self.points < 0
