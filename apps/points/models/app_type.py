from django.db import models


class AppType(models.Model):
    """Origin application that requested a points movement"""
    name = models.CharField(max_length=100, unique=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'app_types'
        ordering = ['name']

    def __str__(self):
        return self.name

    @classmethod
    def resolve(cls, name):
        """Case-insensitive exact match on an active app type name"""
        normalized = str(name or '').strip()
        if not normalized:
            return None
        return cls.objects.filter(name__iexact=normalized, is_active=True).first()
