from django.db import models

from apps.common.exceptions import LoyaltyValidationError


class PointCriteria(models.Model):
    """Named earning rule set; manual grants use its fixed-rate rule"""
    POINT_TYPE_FIXED = 'fixed'
    POINT_TYPE_PERCENTAGE = 'percentage'

    unique_code = models.CharField(max_length=100, unique=True)
    name = models.CharField(max_length=200)
    # [{"point_type": "fixed", "point_rate": 100}, ...]
    point_system = models.JSONField(default=list, blank=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'point_criteria'
        ordering = ['unique_code']
        verbose_name = 'Point Criteria'
        verbose_name_plural = 'Point Criteria'

    def __str__(self):
        return f"{self.unique_code} - {self.name}"

    def get_manual_award(self):
        """
        Resolve the fixed award used for manual grants.

        Returns (points, rule). The first ``fixed`` rule wins, otherwise the
        first rule of any type; its rate must be a whole number of at least 1.
        """
        rules = self.point_system if isinstance(self.point_system, list) else []
        if not rules:
            raise LoyaltyValidationError(
                "Point criteria is missing point system configuration",
                point_criteria=self.unique_code,
            )

        rule = next((r for r in rules if r.get('point_type') == self.POINT_TYPE_FIXED), rules[0])
        rate = rule.get('point_rate')
        if (
            isinstance(rate, bool)
            or not isinstance(rate, (int, float))
            or (isinstance(rate, float) and not rate.is_integer())
            or rate < 1
        ):
            raise LoyaltyValidationError(
                "Point criteria does not have a valid fixed point rule",
                point_criteria=self.unique_code,
            )
        return int(rate), rule

    @classmethod
    def resolve(cls, identifier):
        """Find criteria by primary key, then by unique code"""
        normalized = str(identifier or '').strip()
        if not normalized:
            return None

        if normalized.isdigit():
            criteria = cls.objects.filter(pk=int(normalized)).first()
            if criteria:
                return criteria
        return cls.objects.filter(unique_code=normalized).first()
