from django.db import models


class PointsLedgerEntry(models.Model):
    """One discrete points grant with its own expiry, consumed FIFO"""
    STATUS_ACTIVE = 'active'
    STATUS_REDEEMED = 'redeemed'
    STATUS_EXPIRED = 'expired'

    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_REDEEMED, 'Redeemed'),
        (STATUS_EXPIRED, 'Expired'),
    ]

    customer = models.ForeignKey('customers.Customer', on_delete=models.PROTECT, related_name='ledger_entries')
    original_points = models.PositiveIntegerField()
    points = models.PositiveIntegerField()  # Remaining, decremented by redemptions
    earned_at = models.DateTimeField()
    expiry_date = models.DateTimeField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    transaction = models.ForeignKey(
        'PointsTransaction', on_delete=models.PROTECT, null=True, blank=True, related_name='ledger_entries'
    )
    redeemed_at = models.DateTimeField(null=True, blank=True)
    expired_at = models.DateTimeField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'points_ledger_entries'
        ordering = ['earned_at', 'id']
        indexes = [
            models.Index(fields=['customer', 'status', 'earned_at']),
            models.Index(fields=['status', 'expiry_date']),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(points__gte=0), name='ledger_points_non_negative'),
            models.CheckConstraint(
                condition=models.Q(points__lte=models.F('original_points')),
                name='ledger_points_within_original',
            ),
            models.CheckConstraint(
                condition=models.Q(expiry_date__gt=models.F('earned_at')),
                name='ledger_expiry_after_earned',
            ),
        ]
        verbose_name = 'Points Ledger Entry'
        verbose_name_plural = 'Points Ledger Entries'

    def __str__(self):
        return (
            f"{self.customer_id} - {self.points}/{self.original_points} points "
            f"({self.status}, expires {self.expiry_date.date()})"
        )

    def save(self, *args, **kwargs):
        # Set original_points to the granted amount on creation
        if self._state.adding and self.original_points is None:
            self.original_points = self.points
        super().save(*args, **kwargs)

    def is_expired_at(self, moment):
        return self.expiry_date < moment
