from django.core.management.base import BaseCommand, CommandError

from apps.common.exceptions import LoyaltyError
from apps.common.utils import parse_moment
from apps.points.services import PointsTierProcessor


class Command(BaseCommand):
    help = 'Expire past-due ledger entries and re-evaluate membership tiers'

    def add_arguments(self, parser):
        parser.add_argument(
            '--now',
            help='Evaluation moment as an ISO date or datetime (defaults to the current time)',
        )

    def handle(self, *args, **options):
        try:
            now = parse_moment(options.get('now'))
            self.stdout.write('Starting points and tier processing...')
            report = PointsTierProcessor.run(now=now)
        except LoyaltyError as e:
            raise CommandError(str(e))

        self.stdout.write(
            f'Expired {report.expired_entries} ledger entries ({report.expired_points} points)'
        )
        for change in report.protection_upgrades:
            self.stdout.write(
                f"Protected {change['customer_id']}: {change['previous_tier']} -> {change['new_tier']}"
            )
        for change in report.downgrades:
            self.stdout.write(
                f"Downgraded {change['customer_id']}: {change['previous_tier']} -> {change['new_tier']}"
            )
        for failure in report.failures:
            self.stdout.write(self.style.WARNING(f'Skipped: {failure}'))

        self.stdout.write(
            self.style.SUCCESS(
                f'Processing complete: {report.customers_evaluated} customers evaluated, '
                f'{len(report.downgrades)} downgraded, {report.retained} retained'
            )
        )
