"""
Tests for admin-triggered manual points adjustments.
"""
from unittest import mock

import pytest
from django.test import override_settings

from apps.common.exceptions import (
    BulkValidationError, InsufficientPointsError, LoyaltyValidationError, NotFoundError,
)
from apps.membership.services import MembershipService
from apps.points.models import PointsLedgerEntry, PointsTransaction
from apps.points.services import ManualAdjustmentService, TransactionLog
from apps.points.services.adjustment_service import parse_points, read_bulk_csv
from tests.factories import AppTypeFactory, CustomerFactory, PointCriteriaFactory


@pytest.mark.django_db
class TestAddIndividual:

    def test_grants_fixed_award(self, customer, point_criteria, now):
        app_type = AppTypeFactory(name='Admin_Panel')

        movement = ManualAdjustmentService.add_individual(
            customer.customer_id, point_criteria.unique_code, 'admin_panel', 'Late delivery', now=now
        )

        customer.refresh_from_db()
        assert customer.total_points == 100
        assert customer.coins == 100
        txn = movement.transaction
        assert txn.note == 'Manual points addition by admin - Late delivery'
        assert txn.point_criteria == point_criteria
        assert txn.app_type == app_type
        assert txn.metadata['admin_entered'] is True
        assert txn.metadata['manual_source'] == 'admin_panel'
        assert txn.metadata['requested_by'] == 'admin_panel'
        assert txn.metadata['point_criteria_code'] == 'CUSTOMER_SERVICE'
        assert txn.metadata['manual_point_rule'] == {'point_type': 'fixed', 'point_rate': 100}
        assert PointsLedgerEntry.objects.filter(customer=customer, points=100).exists()
        assert not movement.has_side_issues
        assert [outcome.name for outcome in movement.side_effects] == ['ledger_entry', 'tier_check']

    def test_resolves_by_primary_keys(self, customer, point_criteria, now):
        movement = ManualAdjustmentService.add_individual(
            str(customer.pk), str(point_criteria.pk), 'support', 'Goodwill', now=now
        )

        assert movement.customer_id == customer.customer_id
        assert movement.transaction.app_type is None

    def test_runs_tier_upgrade_check(self, customer, point_criteria, tiers, now):
        movement = ManualAdjustmentService.add_individual(
            customer.customer_id, point_criteria.unique_code, 'support', 'Goodwill', now=now
        )

        customer.refresh_from_db()
        assert customer.tier == tiers['gold']
        upgrade = PointsTransaction.objects.get(transaction_type=PointsTransaction.TYPE_TIER_UPGRADE)
        assert upgrade.metadata['previous_tier'] == 'Bronze'
        assert upgrade.metadata['new_tier'] == 'Gold'
        assert movement.side_effects[-1].detail == {'tier_upgrade_transaction_id': upgrade.transaction_id}

    def test_tier_check_failure_keeps_the_grant(self, customer, point_criteria, now):
        with mock.patch.object(
            MembershipService, 'check_and_upgrade_tier', side_effect=RuntimeError('tiers unavailable')
        ):
            movement = ManualAdjustmentService.add_individual(
                customer.customer_id, point_criteria.unique_code, 'support', 'Goodwill', now=now
            )

        customer.refresh_from_db()
        assert customer.total_points == 100
        assert movement.has_side_issues
        tier_check = movement.side_effects[-1]
        assert (tier_check.name, tier_check.succeeded, tier_check.error) == (
            'tier_check', False, 'tiers unavailable'
        )

    def test_unknown_customer(self, point_criteria, now):
        with pytest.raises(NotFoundError):
            ManualAdjustmentService.add_individual('CUST404', point_criteria.unique_code, 'support', 'x', now=now)

    def test_unknown_criteria(self, customer, now):
        with pytest.raises(NotFoundError):
            ManualAdjustmentService.add_individual(customer.customer_id, 'NOPE', 'support', 'x', now=now)

    @pytest.mark.parametrize('point_system', [
        [],
        [{'point_type': 'fixed', 'point_rate': 0}],
        [{'point_type': 'fixed'}],
        [{'point_type': 'fixed', 'point_rate': 0.5}],
        [{'point_type': 'fixed', 'point_rate': 2.7}],
        [{'point_type': 'fixed', 'point_rate': '100'}],
    ])
    def test_criteria_without_valid_award(self, customer, now, point_system):
        criteria = PointCriteriaFactory(point_system=point_system)

        with pytest.raises(LoyaltyValidationError):
            ManualAdjustmentService.add_individual(
                customer.customer_id, criteria.unique_code, 'support', 'x', now=now
            )
        assert not PointsTransaction.objects.exists()

    def test_whole_float_rate_is_accepted(self, customer, now):
        criteria = PointCriteriaFactory(point_system=[{'point_type': 'fixed', 'point_rate': 25.0}])

        movement = ManualAdjustmentService.add_individual(
            customer.customer_id, criteria.unique_code, 'support', 'Goodwill', now=now
        )

        assert movement.points == 25
        assert movement.transaction.points == 25
        assert not movement.has_side_issues

    def test_note_is_required(self, customer, point_criteria, now):
        with pytest.raises(LoyaltyValidationError):
            ManualAdjustmentService.add_individual(
                customer.customer_id, point_criteria.unique_code, 'support', '   ', now=now
            )


@pytest.mark.django_db
class TestAddBulk:

    @pytest.fixture
    def customers(self, bronze_tier):
        return [CustomerFactory(tier=bronze_tier) for _ in range(10)]

    def make_rows(self, customers, criteria):
        return [
            {
                'customer_id': c.customer_id,
                'points': 10 * (i + 1),
                'point_criteria': criteria.unique_code,
                'note': f'Campaign row {i + 1}',
            }
            for i, c in enumerate(customers)
        ]

    def test_one_invalid_row_rejects_the_batch(self, customers, point_criteria, now):
        rows = self.make_rows(customers, point_criteria)
        rows[2]['points'] = 'abc'

        with pytest.raises(BulkValidationError) as exc_info:
            ManualAdjustmentService.add_bulk(rows, 'support', now=now)

        assert exc_info.value.errors == ['Row 3: points must be a positive whole number']
        assert not PointsTransaction.objects.exists()
        assert not PointsLedgerEntry.objects.exists()
        assert all(c.total_points == 0 for c in type(customers[0]).objects.all())

    def test_every_row_error_is_reported(self, customers, point_criteria, now):
        rows = self.make_rows(customers[:4], point_criteria)
        rows[0]['customer_id'] = 'CUST404'
        rows[1]['point_criteria'] = 'NOPE'
        del rows[2]['note']
        rows[3]['points'] = -5

        with pytest.raises(BulkValidationError) as exc_info:
            ManualAdjustmentService.add_bulk(rows, 'support', now=now, first_row_number=2)

        assert exc_info.value.errors == [
            'Row 2: Customer CUST404 not found',
            'Row 3: Point criteria NOPE not found',
            'Row 4: Missing columns note',
            'Row 5: points must be a positive whole number',
        ]

    def test_empty_upload(self, now, db):
        with pytest.raises(LoyaltyValidationError):
            ManualAdjustmentService.add_bulk([], 'support', now=now)

    @override_settings(LOYALTY_BULK_CHUNK_SIZE=4, LOYALTY_BULK_CHUNK_PAUSE_SECONDS=0.01)
    def test_processes_rows_in_chunks(self, customers, point_criteria, now):
        rows = self.make_rows(customers, point_criteria)

        with mock.patch('apps.points.services.adjustment_service.time.sleep') as sleep:
            result = ManualAdjustmentService.add_bulk(rows, 'support', now=now)

        assert sleep.call_count == 2
        assert result.total_rows == 10
        assert result.success_count == 10
        assert [detail['row'] for detail in result.details] == list(range(1, 11))
        assert result.details[4]['new_balance'] == 50
        assert not result.has_side_issues

        for customer in customers:
            customer.refresh_from_db()
            assert TransactionLog.check_balance(customer, now).is_consistent
        earn = PointsTransaction.objects.get(transaction_id=result.details[0]['transaction_id'])
        assert earn.metadata['bulk_row'] == 1

    def test_same_customer_on_several_rows(self, customer, point_criteria, now):
        rows = [
            {'customer_id': customer.customer_id, 'points': '30', 'point_criteria': point_criteria.unique_code,
             'note': 'first'},
            {'customer_id': customer.customer_id, 'points': '45.0', 'point_criteria': point_criteria.unique_code,
             'note': 'second'},
        ]

        result = ManualAdjustmentService.add_bulk(rows, 'support', now=now)

        customer.refresh_from_db()
        assert customer.total_points == 75
        assert result.details[1]['new_balance'] == 75

    def test_row_side_effect_failures_are_labelled(self, customers, point_criteria, now):
        rows = self.make_rows(customers[:2], point_criteria)

        with mock.patch.object(MembershipService, 'check_and_upgrade_tier', side_effect=RuntimeError('boom')):
            result = ManualAdjustmentService.add_bulk(rows, 'support', now=now)

        assert result.success_count == 2
        failed = [outcome.name for outcome in result.side_effects if not outcome.succeeded]
        assert failed == ['tier_check:row_1', 'tier_check:row_2']


class TestBulkCsv:

    def test_reads_rows_with_case_insensitive_headers(self):
        rows = read_bulk_csv(b'\xef\xbb\xbfCustomer_ID,Points,Point_Criteria,Note\nCUST000001,10,CS,Hello\n')

        assert rows == [{'customer_id': 'CUST000001', 'points': '10', 'point_criteria': 'CS', 'note': 'Hello'}]

    def test_missing_columns(self):
        with pytest.raises(LoyaltyValidationError) as exc_info:
            read_bulk_csv('customer_id,points\nCUST000001,10\n')

        assert 'point_criteria' in exc_info.value.message

    @pytest.mark.parametrize('value, expected', [
        (10, 10), ('10', 10), ('10.0', 10), (' 7 ', 7),
        ('10.5', None), (0, None), ('-1', None), ('abc', None), (None, None), (True, None), ('NaN', None),
    ])
    def test_parse_points(self, value, expected):
        assert parse_points(value) == expected


@pytest.mark.django_db
class TestReduce:

    @pytest.fixture
    def funded_customer(self, customer, point_criteria, now):
        ManualAdjustmentService.add_individual(
            customer.customer_id, point_criteria.unique_code, 'support', 'Funding', now=now
        )
        customer.refresh_from_db()
        return customer

    def test_deducts_fifo_and_records_breakdown(self, funded_customer, now):
        movement = ManualAdjustmentService.reduce(funded_customer.customer_id, 30, 'support', 'Correction', now=now)

        funded_customer.refresh_from_db()
        assert funded_customer.total_points == 70
        txn = movement.transaction
        assert txn.note == 'Manual points reduction by admin - Correction'
        assert txn.metadata['admin_entered'] is True
        assert txn.metadata['redeemed_points'] == 30
        assert txn.metadata['used_ledger_entries'][0]['points_used'] == 30

    def test_insufficient_points(self, funded_customer, now):
        transactions_before = PointsTransaction.objects.count()

        with pytest.raises(InsufficientPointsError) as exc_info:
            ManualAdjustmentService.reduce(funded_customer.customer_id, 101, 'support', 'Correction', now=now)

        assert exc_info.value.shortfall == 1
        funded_customer.refresh_from_db()
        assert funded_customer.total_points == 100
        assert PointsTransaction.objects.count() == transactions_before

    @pytest.mark.parametrize('amount', [0, -10, 'ten', 2.5])
    def test_invalid_amount(self, funded_customer, now, amount):
        with pytest.raises(LoyaltyValidationError):
            ManualAdjustmentService.reduce(funded_customer.customer_id, amount, 'support', 'Correction', now=now)
