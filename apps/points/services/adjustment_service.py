"""
Manual points adjustments made by admins: single grants, bulk grants and
reductions. They reuse the ledger and transaction primitives of
``PointsService``; the tier check after a grant is best-effort.
"""
import csv
import io
import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import List

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.common.exceptions import (
    FATAL_DATABASE_ERRORS, BulkValidationError, LoyaltyValidationError, NotFoundError,
    PersistenceError,
)
from apps.common.results import OperationResult
from apps.customers.models import Customer
from apps.membership.services import MembershipService

from ..models import AppType, PointCriteria
from .points_service import PointsService

logger = logging.getLogger(__name__)

MANUAL_SOURCE = 'admin_panel'
REQUIRED_BULK_COLUMNS = ['customer_id', 'points', 'point_criteria', 'note']


@dataclass
class BulkAdjustmentResult(OperationResult):
    total_rows: int
    success_count: int = 0
    details: List[dict] = field(default_factory=list)

    def to_dict(self):
        return {
            'total_rows': self.total_rows,
            'success_count': self.success_count,
            'details': self.details,
            'side_effects': [outcome.to_dict() for outcome in self.side_effects],
        }


def normalize_string(value):
    return str(value if value is not None else '').strip()


def build_manual_note(action, note):
    return f"Manual points {action} by admin - {normalize_string(note)}"


def read_bulk_csv(source):
    """
    Read bulk rows from CSV text, bytes or an uploaded file.

    Headers are matched case-insensitively; every required column must be
    present in the header row.
    """
    content = source.read() if hasattr(source, 'read') else source
    if isinstance(content, bytes):
        try:
            content = content.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise LoyaltyValidationError("CSV file must be UTF-8 encoded") from e

    reader = csv.DictReader(io.StringIO(content))
    headers = [normalize_string(name).lower() for name in (reader.fieldnames or [])]
    missing = [column for column in REQUIRED_BULK_COLUMNS if column not in headers]
    if missing:
        raise LoyaltyValidationError(f"Missing required columns: {', '.join(missing)}")

    return [
        {normalize_string(key).lower(): value for key, value in row.items() if key is not None}
        for row in reader
    ]


def parse_points(value):
    """Positive whole number of points, or None"""
    if isinstance(value, bool):
        return None
    try:
        number = Decimal(normalize_string(value))
    except InvalidOperation:
        return None
    if not number.is_finite() or number <= 0 or number != number.to_integral_value():
        return None
    return int(number)


class ManualAdjustmentService:
    """Service for admin-triggered point grants and deductions"""

    @staticmethod
    def _require_text(value, field_name):
        normalized = normalize_string(value)
        if not normalized:
            raise LoyaltyValidationError(f"{field_name} is required")
        return normalized

    @staticmethod
    def _resolve_customer(customer_ref):
        customer = Customer.objects.resolve(customer_ref)
        if customer is None:
            raise NotFoundError("Customer not found", customer_id=normalize_string(customer_ref))
        return customer

    @staticmethod
    def _resolve_criteria(criteria_ref):
        criteria = PointCriteria.resolve(criteria_ref)
        if criteria is None:
            raise NotFoundError("Point criteria not found", point_criteria=normalize_string(criteria_ref))
        return criteria

    @staticmethod
    def _check_tier(result, customer, now, row_number=None):
        """Best-effort tier upgrade; failures are recorded, never raised"""
        side_effect = 'tier_check' if row_number is None else f'tier_check:row_{row_number}'
        try:
            with transaction.atomic():
                upgrade = MembershipService.check_and_upgrade_tier(customer, now=now)
        except FATAL_DATABASE_ERRORS:
            raise
        except Exception as e:
            logger.error(
                f"Error evaluating tier upgrade for customer {customer.customer_id}: {e}",
                exc_info=True,
            )
            result.record(side_effect, succeeded=False, error=str(e))
            return None

        detail = {'tier_upgrade_transaction_id': upgrade.transaction_id} if upgrade else None
        result.record(side_effect, detail=detail)
        return upgrade

    @staticmethod
    def add_individual(customer_ref, point_criteria_ref, requested_by, note, now=None):
        """Grant the fixed award of a point criteria to one customer"""
        requested_by = ManualAdjustmentService._require_text(requested_by, 'requested_by')
        note = ManualAdjustmentService._require_text(note, 'note')
        customer = ManualAdjustmentService._resolve_customer(customer_ref)
        criteria = ManualAdjustmentService._resolve_criteria(point_criteria_ref)
        points, rule = criteria.get_manual_award()
        now = now or timezone.now()

        try:
            with transaction.atomic():
                movement = PointsService.earn_points(
                    customer,
                    points,
                    note=build_manual_note('addition', note),
                    metadata={
                        'requested_by': requested_by,
                        'admin_entered': True,
                        'manual_source': MANUAL_SOURCE,
                        'point_criteria_code': criteria.unique_code,
                        'manual_point_rule': {
                            'point_type': rule.get('point_type'),
                            'point_rate': rule.get('point_rate'),
                        },
                    },
                    now=now,
                    point_criteria=criteria,
                    app_type=AppType.resolve(requested_by),
                    ledger_metadata={'admin_entered': True, 'requested_by': requested_by},
                )
                ManualAdjustmentService._check_tier(movement, customer, now)
        except DatabaseError as e:
            logger.error(
                f"Error adding manual points for customer {customer.customer_id} "
                f"({points} points via {criteria.unique_code}): {e}",
                exc_info=True,
            )
            raise PersistenceError("Failed to add manual points", customer_id=customer.customer_id) from e

        return movement

    @staticmethod
    def validate_bulk_rows(rows, first_row_number=1):
        """Return (enriched_rows, errors); touches nothing"""
        errors = []
        enriched = []

        for index, raw_row in enumerate(rows):
            row_number = first_row_number + index

            if not isinstance(raw_row, dict):
                errors.append(f"Row {row_number}: Invalid row format")
                continue

            missing = [column for column in REQUIRED_BULK_COLUMNS if column not in raw_row]
            if missing:
                errors.append(f"Row {row_number}: Missing columns {', '.join(missing)}")
                continue

            customer_ref = normalize_string(raw_row['customer_id'])
            points = parse_points(raw_row['points'])
            criteria_ref = normalize_string(raw_row['point_criteria'])
            note = normalize_string(raw_row['note'])

            if not customer_ref:
                errors.append(f"Row {row_number}: customer_id is required")
                continue
            if points is None:
                errors.append(f"Row {row_number}: points must be a positive whole number")
                continue
            if not criteria_ref:
                errors.append(f"Row {row_number}: point_criteria is required")
                continue
            if not note:
                errors.append(f"Row {row_number}: note is required")
                continue

            customer = Customer.objects.resolve(customer_ref)
            if customer is None:
                errors.append(f"Row {row_number}: Customer {customer_ref} not found")
                continue

            criteria = PointCriteria.resolve(criteria_ref)
            if criteria is None:
                errors.append(f"Row {row_number}: Point criteria {criteria_ref} not found")
                continue

            enriched.append({
                'row_number': row_number,
                'customer': customer,
                'criteria': criteria,
                'points': points,
                'note': note,
            })

        return enriched, errors

    @staticmethod
    def add_bulk(rows, requested_by, now=None, first_row_number=1):
        """
        Grant points for many rows as one unit of work.

        Every row is validated before anything is written; one bad row
        rejects the whole batch with the full list of row errors.
        """
        requested_by = ManualAdjustmentService._require_text(requested_by, 'requested_by')
        rows = list(rows or [])
        if not rows:
            raise LoyaltyValidationError("Uploaded file does not contain data")

        enriched, errors = ManualAdjustmentService.validate_bulk_rows(rows, first_row_number)
        if errors:
            logger.warning(f"Bulk manual points rejected: {len(errors)} invalid rows")
            raise BulkValidationError(errors)

        now = now or timezone.now()
        chunk_size = max(settings.LOYALTY_BULK_CHUNK_SIZE, 1)
        pause = settings.LOYALTY_BULK_CHUNK_PAUSE_SECONDS
        result = BulkAdjustmentResult(total_rows=len(enriched))

        try:
            with transaction.atomic():
                app_type = AppType.resolve(requested_by)

                for start in range(0, len(enriched), chunk_size):
                    if start and pause:
                        time.sleep(pause)

                    for entry in enriched[start:start + chunk_size]:
                        customer = entry['customer']
                        row_number = entry['row_number']
                        movement = PointsService.earn_points(
                            customer,
                            entry['points'],
                            note=build_manual_note('addition', entry['note']),
                            metadata={
                                'requested_by': requested_by,
                                'admin_entered': True,
                                'manual_source': MANUAL_SOURCE,
                                'point_criteria_code': entry['criteria'].unique_code,
                                'bulk_row': row_number,
                            },
                            now=now,
                            point_criteria=entry['criteria'],
                            app_type=app_type,
                            ledger_metadata={
                                'admin_entered': True,
                                'requested_by': requested_by,
                                'bulk_row': row_number,
                            },
                        )
                        for outcome in movement.side_effects:
                            outcome.name = f"{outcome.name}:row_{row_number}"
                            result.side_effects.append(outcome)

                        result.success_count += 1
                        result.details.append({
                            'row': row_number,
                            'customer_id': customer.customer_id,
                            'transaction_id': movement.transaction.transaction_id,
                            'new_balance': movement.new_balance,
                        })

                    logger.info(
                        f"Bulk manual points: processed rows {start + 1}-"
                        f"{min(start + chunk_size, len(enriched))} of {len(enriched)}"
                    )

                for entry in enriched:
                    ManualAdjustmentService._check_tier(result, entry['customer'], now, entry['row_number'])
        except DatabaseError as e:
            logger.error(f"Error processing bulk manual points: {e}", exc_info=True)
            raise PersistenceError("Failed to process bulk manual points", rows=len(enriched)) from e

        logger.info(f"Bulk manual points added for {result.success_count} rows by {requested_by}")
        return result

    @staticmethod
    def reduce(customer_ref, amount, requested_by, note, now=None):
        """Deduct points FIFO; InsufficientPointsError leaves everything untouched"""
        requested_by = ManualAdjustmentService._require_text(requested_by, 'requested_by')
        note = ManualAdjustmentService._require_text(note, 'note')
        customer = ManualAdjustmentService._resolve_customer(customer_ref)
        points = parse_points(amount)
        if points is None:
            raise LoyaltyValidationError("Points must be a positive number", points=normalize_string(amount))

        try:
            return PointsService.redeem_points(
                customer,
                points,
                note=build_manual_note('reduction', note),
                metadata={
                    'requested_by': requested_by,
                    'admin_entered': True,
                    'manual_source': MANUAL_SOURCE,
                },
                now=now,
                app_type=AppType.resolve(requested_by),
            )
        except DatabaseError as e:
            logger.error(
                f"Error reducing manual points for customer {customer.customer_id} ({points} points): {e}",
                exc_info=True,
            )
            raise PersistenceError("Failed to reduce manual points", customer_id=customer.customer_id) from e
