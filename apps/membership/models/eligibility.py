from django.core.validators import MinValueValidator
from django.db import models


class TierEligibilityCriteria(models.Model):
    """Retention policy for a tier: N consecutive windows of earning activity"""
    tier = models.ForeignKey('MembershipTier', on_delete=models.CASCADE, related_name='eligibility_criteria')
    evaluation_period_days = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    consecutive_periods_required = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    net_earning_required = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'tier_eligibility_criteria'
        ordering = ['-updated_at']
        verbose_name = 'Tier Eligibility Criteria'
        verbose_name_plural = 'Tier Eligibility Criteria'

    def __str__(self):
        return (
            f"{self.tier}: {self.net_earning_required} points per {self.evaluation_period_days} days "
            f"x{self.consecutive_periods_required}"
        )

    @classmethod
    def get_active_for_tier(cls, tier):
        return cls.objects.filter(tier=tier, is_active=True).order_by('-updated_at', '-id').first()
