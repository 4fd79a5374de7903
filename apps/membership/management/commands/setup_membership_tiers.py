from django.core.management.base import BaseCommand
from django.db import transaction

from apps.membership.models import MembershipTier, TierEligibilityCriteria


class Command(BaseCommand):
    help = 'Set up membership tiers with points thresholds and retention criteria'

    def handle(self, *args, **options):
        """Create or update membership tiers and their eligibility criteria"""
        tiers = [
            {
                'name': 'bronze',
                'display_name': 'Bronze',
                'hierarchy_level': 0,
                'points_required': 0,
                'benefits': {'birthday_bonus': False, 'priority_support': False},
                'criteria': None,
            },
            {
                'name': 'silver',
                'display_name': 'Silver',
                'hierarchy_level': 1,
                'points_required': 1000,
                'benefits': {'birthday_bonus': True, 'priority_support': False},
                'criteria': {
                    'evaluation_period_days': 90,
                    'consecutive_periods_required': 1,
                    'net_earning_required': 300,
                },
            },
            {
                'name': 'gold',
                'display_name': 'Gold',
                'hierarchy_level': 2,
                'points_required': 5000,
                'benefits': {'birthday_bonus': True, 'priority_support': True},
                'criteria': {
                    'evaluation_period_days': 90,
                    'consecutive_periods_required': 2,
                    'net_earning_required': 1000,
                },
            },
            {
                'name': 'platinum',
                'display_name': 'Platinum',
                'hierarchy_level': 3,
                'points_required': 20000,
                'benefits': {'birthday_bonus': True, 'priority_support': True, 'exclusive_events': True},
                'criteria': {
                    'evaluation_period_days': 90,
                    'consecutive_periods_required': 4,
                    'net_earning_required': 3000,
                },
            },
        ]

        created_count = 0
        updated_count = 0

        with transaction.atomic():
            for tier_data in tiers:
                criteria_data = tier_data.pop('criteria')
                tier, created = MembershipTier.objects.get_or_create(
                    name=tier_data['name'],
                    defaults=tier_data
                )

                if created:
                    created_count += 1
                    self.stdout.write(self.style.SUCCESS(f'Created tier: {tier.display_name}'))
                else:
                    for key, value in tier_data.items():
                        if key != 'name':
                            setattr(tier, key, value)
                    tier.save()
                    updated_count += 1
                    self.stdout.write(self.style.WARNING(f'Updated tier: {tier.display_name}'))

                if criteria_data:
                    TierEligibilityCriteria.objects.update_or_create(
                        tier=tier, is_active=True, defaults=criteria_data
                    )

        self.stdout.write(
            self.style.SUCCESS(
                f'Successfully set up membership tiers: {created_count} created, {updated_count} updated'
            )
        )
