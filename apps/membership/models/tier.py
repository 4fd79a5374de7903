from django.db import models


class MembershipTier(models.Model):
    """Membership tier definitions ordered by hierarchy level"""
    name = models.SlugField(max_length=50, unique=True)
    display_name = models.CharField(max_length=100)
    hierarchy_level = models.PositiveIntegerField(unique=True)  # Higher is better, 0 is the base tier
    points_required = models.PositiveIntegerField(default=0)
    benefits = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'membership_tiers'
        ordering = ['hierarchy_level']

    def __str__(self):
        return self.display_name

    def is_below(self, other):
        return other is not None and self.hierarchy_level < other.hierarchy_level

    @classmethod
    def get_base_tier(cls):
        """Tier with hierarchy level 0, or the lowest tier when none has it"""
        return cls.objects.filter(hierarchy_level=0).first() or cls.objects.order_by('hierarchy_level').first()

    @classmethod
    def get_tier_for_points(cls, total_points):
        """Highest tier whose points threshold is covered by the balance"""
        return cls.objects.filter(
            points_required__lte=max(total_points, 0)
        ).order_by('-hierarchy_level').first()
