from django.core.management.base import BaseCommand
from django.db import transaction

from apps.points.models import AppType, PointCriteria, PointsExpirationRule


class Command(BaseCommand):
    help = 'Set up default point criteria, app types and the default expiration rule'

    def handle(self, *args, **options):
        criteria_data = [
            {
                'unique_code': 'CUSTOMER_SERVICE',
                'name': 'Customer service goodwill',
                'point_system': [{'point_type': 'fixed', 'point_rate': 100}],
                'description': 'Goodwill points granted by customer service',
            },
            {
                'unique_code': 'EVENT_ATTENDANCE',
                'name': 'Event attendance',
                'point_system': [{'point_type': 'fixed', 'point_rate': 250}],
                'description': 'Points for attending a member event',
            },
            {
                'unique_code': 'PURCHASE',
                'name': 'Purchase',
                'point_system': [{'point_type': 'percentage', 'point_rate': 1}],
                'description': 'Earn 1% of purchase amount as points',
            },
        ]
        app_types = ['admin_panel', 'mobile_app', 'pos']

        created_count = 0
        updated_count = 0

        with transaction.atomic():
            for data in criteria_data:
                criteria, created = PointCriteria.objects.get_or_create(
                    unique_code=data['unique_code'],
                    defaults=data
                )
                if created:
                    created_count += 1
                    self.stdout.write(self.style.SUCCESS(f'Created point criteria: {criteria.unique_code}'))
                else:
                    for key, value in data.items():
                        if key != 'unique_code':
                            setattr(criteria, key, value)
                    criteria.save()
                    updated_count += 1
                    self.stdout.write(self.style.WARNING(f'Updated point criteria: {criteria.unique_code}'))

            for name in app_types:
                AppType.objects.get_or_create(name=name)

            if not PointsExpirationRule.objects.filter(tier__isnull=True, is_active=True).exists():
                PointsExpirationRule.objects.create(tier=None, validity_days=365)
                self.stdout.write(self.style.SUCCESS('Created default expiration rule: 365 days'))

        self.stdout.write(
            self.style.SUCCESS(
                f'Point criteria setup complete. Created: {created_count}, Updated: {updated_count}'
            )
        )
