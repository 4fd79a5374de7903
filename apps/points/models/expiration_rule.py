from datetime import timedelta

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class PointsExpirationRule(models.Model):
    """Validity period for newly granted points, per tier or default"""
    tier = models.ForeignKey(
        'membership.MembershipTier', on_delete=models.CASCADE,
        null=True, blank=True, related_name='expiration_rules'
    )  # NULL = default rule
    validity_days = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'points_expiration_rules'
        ordering = ['tier__hierarchy_level']

    def __str__(self):
        scope = self.tier.display_name if self.tier else 'Default'
        return f"{scope}: {self.validity_days} days"

    @classmethod
    def get_validity_days(cls, tier=None):
        rule = None
        if tier is not None:
            rule = cls.objects.filter(tier=tier, is_active=True).order_by('-updated_at').first()
        if rule is None:
            rule = cls.objects.filter(tier__isnull=True, is_active=True).order_by('-updated_at').first()
        days = rule.validity_days if rule else settings.LOYALTY_DEFAULT_POINTS_VALIDITY_DAYS
        return max(int(days), 1)

    @classmethod
    def calculate_expiry_date(cls, tier, earned_at):
        """Expiry for a grant earned at ``earned_at``; always after it"""
        return earned_at + timedelta(days=cls.get_validity_days(tier))
