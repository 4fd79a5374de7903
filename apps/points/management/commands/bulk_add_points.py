from django.core.management.base import BaseCommand, CommandError

from apps.common.exceptions import BulkValidationError, LoyaltyError
from apps.points.services import ManualAdjustmentService
from apps.points.services.adjustment_service import read_bulk_csv


class Command(BaseCommand):
    help = 'Grant manual points from a CSV file (customer_id, points, point_criteria, note)'

    def add_arguments(self, parser):
        parser.add_argument('csv_path', help='Path to the CSV file')
        parser.add_argument(
            '--requested-by',
            required=True,
            help='Requesting application or admin name recorded on each transaction',
        )

    def handle(self, *args, **options):
        try:
            with open(options['csv_path'], 'rb') as csv_file:
                rows = read_bulk_csv(csv_file)
        except OSError as e:
            raise CommandError(f"Cannot read {options['csv_path']}: {e}")
        except LoyaltyError as e:
            raise CommandError(f"Invalid CSV {options['csv_path']}: {e.message}")

        try:
            # Header is row 1
            result = ManualAdjustmentService.add_bulk(
                rows, requested_by=options['requested_by'], first_row_number=2
            )
        except BulkValidationError as e:
            for error in e.errors:
                self.stderr.write(self.style.ERROR(error))
            raise CommandError(f'{e.message}: {len(e.errors)} invalid rows, nothing was written')
        except LoyaltyError as e:
            raise CommandError(str(e))

        for outcome in result.side_effects:
            if not outcome.succeeded:
                self.stdout.write(self.style.WARNING(f'{outcome.name} failed: {outcome.error}'))

        self.stdout.write(
            self.style.SUCCESS(f'Added points for {result.success_count} of {result.total_rows} rows')
        )
