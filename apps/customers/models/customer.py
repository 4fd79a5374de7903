from django.db import models
from django.db.models import F


class CustomerQuerySet(models.QuerySet):

    def resolve(self, identifier):
        """Find a customer by business code, falling back to primary key."""
        normalized = str(identifier or '').strip()
        if not normalized:
            return None

        customer = self.filter(customer_id=normalized).select_related('tier').first()
        if customer is None and normalized.isdigit():
            customer = self.filter(pk=int(normalized)).select_related('tier').first()
        return customer


class Customer(models.Model):
    """Loyalty member with a denormalized running points balance"""
    customer_id = models.CharField(max_length=50, unique=True)  # Business code, e.g. CUST000001
    name = models.CharField(max_length=150, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    tier = models.ForeignKey(
        'membership.MembershipTier', on_delete=models.PROTECT,
        null=True, blank=True, related_name='customers'
    )
    # Cache of the transaction log sum; the log is authoritative
    total_points = models.IntegerField(default=0)
    coins = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomerQuerySet.as_manager()

    class Meta:
        db_table = 'customers'
        ordering = ['customer_id']
        verbose_name = 'Customer'
        verbose_name_plural = 'Customers'

    def __str__(self):
        return f"{self.customer_id} - {self.total_points} points"

    def adjust_balance(self, points, coins=0):
        """Apply a signed balance delta with an atomic UPDATE and refresh."""
        updates = {'total_points': F('total_points') + points}
        if coins:
            updates['coins'] = F('coins') + coins
        Customer.objects.filter(pk=self.pk).update(**updates)
        self.refresh_from_db(fields=['total_points', 'coins'])
        return self.total_points

    def lock(self):
        """Re-read this customer with a row lock; call inside transaction.atomic()."""
        return Customer.objects.select_for_update().select_related('tier').get(pk=self.pk)
